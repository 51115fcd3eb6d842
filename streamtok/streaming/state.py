from dataclasses import dataclass, replace

import torch

from ..codec import CodecModel, CodecState


@dataclass(frozen=True)
class StreamState:
    """Everything needed to resume encoding where the last chunk stopped.

    Values are never mutated in place. The encoder builds a new
    `StreamState` per call and swaps it in only once every frame of that
    call has been encoded.

    Attributes:
        residual: 1D tensor of samples not yet forming a whole frame.
        codec: Recurrent state of the codec model.
        step: Number of frames encoded so far (diagnostic only).
    """

    residual: torch.Tensor
    codec: CodecState
    step: int = 0

    @classmethod
    def initial(cls, model: CodecModel) -> "StreamState":
        """Fresh state: no residual, no history."""
        param = next(model.parameters())
        return cls(
            residual=torch.zeros(0, device=param.device, dtype=param.dtype),
            codec=model.init_state(),
            step=0,
        )

    @property
    def pending_samples(self) -> int:
        return self.residual.shape[0]

    def advance(self, residual: torch.Tensor, codec: CodecState, frames: int) -> "StreamState":
        return replace(self, residual=residual, codec=codec, step=self.step + frames)
