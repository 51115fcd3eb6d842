from typing import Tuple

import torch
import torch.nn as nn


class StreamingConv1d(nn.Conv1d):
    """Causal strided Conv1d that carries its left context explicitly.

    The layer itself holds no per-stream state. Callers keep the context
    tensor returned by `step` and feed it back on the next call, so that
    processing a signal piecewise gives the same output as processing it
    in one go.

    The last `kernel_size - stride` input samples are kept as context. An
    input of `L` samples (with `L` a multiple of `stride`) therefore yields
    exactly `L // stride` output steps.
    """

    def __init__(self, in_channels: int, out_channels: int, kernel_size: int, stride: int = 1):
        if kernel_size < stride:
            raise ValueError(f"kernel_size ({kernel_size}) must be >= stride ({stride})")
        super().__init__(in_channels, out_channels, kernel_size=kernel_size, stride=stride, padding=0)

    @property
    def context_size(self) -> int:
        return self.kernel_size[0] - self.stride[0]

    def init_context(
        self, batch_size: int = 1, device=None, dtype: torch.dtype = torch.float32
    ) -> torch.Tensor:
        """Zero left context, i.e. the state before any input has been seen."""
        return torch.zeros(batch_size, self.in_channels, self.context_size, device=device, dtype=dtype)

    def step(self, x: torch.Tensor, context: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        """Convolve `x` given the context left over from previous inputs.

        Args:
            x: [B, C_in, L] with L a multiple of the stride.
            context: [B, C_in, kernel_size - stride].

        Returns:
            y: [B, C_out, L // stride].
            next_context: [B, C_in, kernel_size - stride].
        """
        stride = self.stride[0]
        assert x.shape[-1] % stride == 0, f"Input length {x.shape[-1]} is not a multiple of stride {stride}"
        xc = torch.cat([context, x], dim=-1)
        y = self.forward(xc)
        next_context = xc[..., xc.shape[-1] - self.context_size :]
        return y, next_context
