"""
Tests for the command-line helpers (called as functions).
"""

import numpy as np
import pytest
import soundfile as sf

from conftest import TINY_FRAME, tiny_config
from streamtok.codec import CodecModel
from streamtok.init_codec import config_from_args, init_codec, parse_args
from streamtok.streaming import StreamingEncoder
from streamtok.tokenize_wav import tokenize_wav


def test_init_codec_is_seeded(tmp_path):
    a = init_codec(tmp_path / "a.pt", tiny_config(), seed=3)
    b = init_codec(tmp_path / "nested" / "b.pt", tiny_config(), seed=3)
    for (name, pa), (_, pb) in zip(a.state_dict().items(), b.state_dict().items()):
        assert (pa == pb).all(), name
    assert CodecModel.load_checkpoint(tmp_path / "nested" / "b.pt").cfg == tiny_config()


def test_tokenize_wav_matches_single_call(tmp_path, checkpoint_path):
    rng = np.random.default_rng(0)
    audio = (rng.standard_normal(10 * TINY_FRAME + 3) * 0.3).astype(np.float32)
    wav = tmp_path / "in.wav"
    sf.write(str(wav), audio, 800, subtype="FLOAT")

    codes = tokenize_wav(checkpoint_path, wav, num_codebooks=2, chunk_ms=15.0)
    expected = StreamingEncoder.create(checkpoint_path, 2).encode_step(audio)
    assert codes.num_steps == 10
    assert np.array_equal(codes.codes, expected.codes)


def test_tokenize_wav_rejects_other_sample_rate(tmp_path, checkpoint_path):
    wav = tmp_path / "in.wav"
    sf.write(str(wav), np.zeros(100, dtype=np.float32), 16000)
    with pytest.raises(ValueError, match="expects 800 Hz"):
        tokenize_wav(checkpoint_path, wav, num_codebooks=2)


def test_init_codec_args_build_custom_frame_layout(tmp_path):
    args = parse_args([
        "--output", str(tmp_path / "c.pt"),
        "--sample_rate", "800",
        "--frame_rate", "100",
        "--ratios", "2", "2",
        "--downsample_stride", "2",
        "--n_filters", "4",
        "--dim", "8",
        "--num_codebooks", "4",
        "--codebook_size", "16",
    ])
    cfg = config_from_args(args)
    cfg.validate()
    assert cfg == tiny_config()
    assert cfg.frame_size == TINY_FRAME


def test_init_codec_default_args_are_valid(tmp_path):
    cfg = config_from_args(parse_args(["--output", str(tmp_path / "c.pt")]))
    cfg.validate()
    assert cfg.frame_size == 1920
