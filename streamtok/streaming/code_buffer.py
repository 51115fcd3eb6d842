"""
Output grid of codebook indices.

Layout: a C-contiguous `numpy.uint32` array of shape
`(num_codebooks, num_steps)`. Flattened, all steps of codebook 0 come
first, then all steps of codebook 1, and so on (codebook-major). The
dimensions always travel with the data; never infer `num_steps` from the
buffer length alone.
"""

from typing import Iterable, Optional, Sequence

import numpy as np
import torch

from ..errors import BufferReleased

CODE_DTYPE = np.uint32


class CodeBuffer:
    """Codebooks x time-steps grid owned by whoever received it.

    Every `encode_step` returns a new buffer that shares no memory with the
    encoder. The owner calls `release()` when done; reading a released
    buffer raises `BufferReleased`.
    """

    LAYOUT = "codebook-major"

    def __init__(self, codes: np.ndarray):
        if codes.ndim != 2:
            raise ValueError(f"Expected a 2D (codebooks, steps) array, got shape {codes.shape}")
        if codes.shape[0] < 1:
            raise ValueError("A code buffer needs at least one codebook")
        self._codes: Optional[np.ndarray] = np.ascontiguousarray(codes, dtype=CODE_DTYPE)
        self._num_codebooks = codes.shape[0]
        self._num_steps = codes.shape[1]

    @classmethod
    def empty(cls, num_codebooks: int) -> "CodeBuffer":
        return cls(np.zeros((num_codebooks, 0), dtype=CODE_DTYPE))

    @classmethod
    def from_frames(cls, frames: Sequence[torch.Tensor], num_codebooks: int) -> "CodeBuffer":
        """Assemble per-frame index vectors, in production order, into a grid.

        Args:
            frames: One tensor of `num_codebooks` indices per time step.
            num_codebooks: Grid height, used as-is when `frames` is empty.
        """
        if not frames:
            return cls.empty(num_codebooks)
        grid = torch.stack([f.reshape(-1) for f in frames], dim=1)  # [K, T]
        if grid.shape[0] != num_codebooks:
            raise ValueError(f"Expected {num_codebooks} indices per frame, got {grid.shape[0]}")
        return cls(grid.cpu().numpy().astype(CODE_DTYPE))

    @classmethod
    def concatenate(cls, buffers: Iterable["CodeBuffer"]) -> "CodeBuffer":
        """Join grids along the time axis."""
        arrays = [b.codes for b in buffers]
        if not arrays:
            raise ValueError("Nothing to concatenate")
        heights = {a.shape[0] for a in arrays}
        if len(heights) != 1:
            raise ValueError(f"Cannot concatenate grids with different codebook counts: {sorted(heights)}")
        return cls(np.concatenate(arrays, axis=1))

    @property
    def num_codebooks(self) -> int:
        return self._num_codebooks

    @property
    def num_steps(self) -> int:
        return self._num_steps

    @property
    def released(self) -> bool:
        return self._codes is None

    @property
    def codes(self) -> np.ndarray:
        if self._codes is None:
            raise BufferReleased("Code buffer has been released")
        return self._codes

    def flatten(self) -> np.ndarray:
        """1D copy of the grid in codebook-major order."""
        return self.codes.reshape(-1).copy()

    def to_tensor(self) -> torch.Tensor:
        """Grid as a [1, num_codebooks, num_steps] long tensor."""
        return torch.from_numpy(self.codes.astype(np.int64)).unsqueeze(0)

    def release(self) -> None:
        self._codes = None

    def __len__(self) -> int:
        return self._num_steps

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"CodeBuffer(num_codebooks={self._num_codebooks}, num_steps={self._num_steps}, {state})"
