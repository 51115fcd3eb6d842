"""
Shared fixtures: tiny codec checkpoints written to tmp_path.

The tiny config uses 8-sample frames (800 Hz / 100 Hz) so tests can reason
about frame boundaries by hand.
"""

import pytest
import torch

from streamtok.codec import CodecConfig, CodecModel
from streamtok.streaming import StreamingEncoder

TINY_FRAME = 8


def tiny_config(**overrides) -> CodecConfig:
    values = dict(
        sample_rate=800,
        frame_rate=100.0,
        n_filters=4,
        ratios=(2, 2),
        downsample_stride=2,
        dim=8,
        num_codebooks=4,
        codebook_size=16,
    )
    values.update(overrides)
    return CodecConfig(**values)


@pytest.fixture
def tiny_model() -> CodecModel:
    torch.manual_seed(0)
    return CodecModel(tiny_config()).eval()


@pytest.fixture
def checkpoint_path(tmp_path, tiny_model):
    path = tmp_path / "tiny_codec.pt"
    tiny_model.save_checkpoint(path)
    return path


@pytest.fixture
def encoder(checkpoint_path):
    enc = StreamingEncoder.create(checkpoint_path, 4)
    yield enc
    enc.destroy()


@pytest.fixture
def signal():
    g = torch.Generator().manual_seed(1234)
    return torch.randn(203, generator=g) * 0.5
