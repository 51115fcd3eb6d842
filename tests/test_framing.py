"""
Unit tests for PCM frame splitting.
"""

import pytest
import torch

from streamtok.streaming import count_frames, split_frames


def test_count_frames_floor_division():
    assert count_frames(0, 8) == 0
    assert count_frames(7, 8) == 0
    assert count_frames(8, 8) == 1
    assert count_frames(17, 8) == 2


def test_count_frames_rejects_bad_frame_size():
    with pytest.raises(ValueError):
        count_frames(10, 0)


def test_no_residual_exact_multiple():
    pcm = torch.arange(16, dtype=torch.float32)
    frames, tail = split_frames(torch.zeros(0), pcm, 8)
    frames = list(frames)
    assert len(frames) == 2
    assert torch.equal(frames[0], pcm[:8])
    assert torch.equal(frames[1], pcm[8:])
    assert tail.numel() == 0


def test_residual_is_prepended_to_first_frame():
    residual = torch.tensor([100.0, 101.0, 102.0])
    pcm = torch.arange(10, dtype=torch.float32)
    frames, tail = split_frames(residual, pcm, 8)
    frames = list(frames)
    assert len(frames) == 1
    assert frames[0].tolist() == [100.0, 101.0, 102.0, 0.0, 1.0, 2.0, 3.0, 4.0]
    assert tail.tolist() == [5.0, 6.0, 7.0, 8.0, 9.0]


def test_short_input_goes_to_tail():
    residual = torch.tensor([1.0, 2.0])
    pcm = torch.tensor([3.0, 4.0])
    frames, tail = split_frames(residual, pcm, 8)
    assert list(frames) == []
    assert tail.tolist() == [1.0, 2.0, 3.0, 4.0]


def test_empty_input_keeps_residual():
    residual = torch.tensor([1.0, 2.0, 3.0])
    frames, tail = split_frames(residual, torch.zeros(0), 8)
    assert list(frames) == []
    assert torch.equal(tail, residual)


def test_tail_does_not_alias_input():
    pcm = torch.arange(12, dtype=torch.float32)
    _, tail = split_frames(torch.zeros(0), pcm, 8)
    pcm[8:] = -1.0
    assert tail.tolist() == [8.0, 9.0, 10.0, 11.0]


def test_frames_after_the_first_are_views():
    pcm = torch.arange(24, dtype=torch.float32)
    frames, _ = split_frames(torch.zeros(0), pcm, 8)
    for frame in frames:
        assert frame.data_ptr() >= pcm.data_ptr()
        assert frame.untyped_storage().data_ptr() == pcm.untyped_storage().data_ptr()


def test_residual_must_be_shorter_than_frame():
    with pytest.raises(ValueError, match="must be < frame_size"):
        split_frames(torch.zeros(8), torch.zeros(4), 8)
