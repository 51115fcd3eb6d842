"""
Frame splitting for streaming PCM (pure).

Design:
- Pure functions only (no model, no state objects).
- Frames are produced lazily, and only the first frame (residual plus the
  head of the new chunk) is a copy. Every other frame is a view into the
  caller's chunk, so a large chunk is never duplicated in memory.
- The incomplete tail is returned, never padded or dropped.
"""

from typing import Iterator, Tuple

import torch


def count_frames(num_samples: int, frame_size: int) -> int:
    """Number of whole frames in `num_samples` samples (floor division)."""
    if frame_size <= 0:
        raise ValueError("frame_size must be > 0")
    if num_samples <= 0:
        return 0
    return num_samples // frame_size


def split_frames(
    residual: torch.Tensor, pcm: torch.Tensor, frame_size: int
) -> Tuple[Iterator[torch.Tensor], torch.Tensor]:
    """
    Partition `residual + pcm` into whole frames and a remainder.

    Args:
        residual:
            1D tensor of samples left over from earlier calls. Must be
            shorter than `frame_size`.
        pcm:
            1D tensor of new samples. May be empty.
        frame_size:
            Samples per frame.

    Returns:
        frames:
            Iterator over 1D tensors of exactly `frame_size` samples, in
            time order.
        tail:
            1D tensor with the `(len(residual) + len(pcm)) % frame_size`
            samples that did not fill a frame. Always a fresh tensor, never
            a view into `pcm`.
    """
    n_res = residual.shape[0]
    if n_res >= frame_size:
        raise ValueError(f"residual has {n_res} samples, must be < frame_size ({frame_size})")

    total = n_res + pcm.shape[0]
    num_frames = count_frames(total, frame_size)

    # Offset into pcm where whole frames built purely from new samples begin.
    head = frame_size - n_res if n_res else 0
    if num_frames == 0:
        tail = torch.cat([residual, pcm])
    else:
        consumed = num_frames * frame_size - n_res
        tail = pcm[consumed:].clone()

    def _frames() -> Iterator[torch.Tensor]:
        if num_frames == 0:
            return
        remaining = num_frames
        if n_res:
            yield torch.cat([residual, pcm[:head]])
            remaining -= 1
        for i in range(remaining):
            start = head + i * frame_size
            yield pcm[start : start + frame_size]

    return _frames(), tail
