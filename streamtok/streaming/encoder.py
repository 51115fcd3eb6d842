import logging
import numbers
from pathlib import Path
from typing import Sequence, Union

import numpy as np
import torch

from ..codec import CodecModel
from ..errors import EncodeError, EncoderClosed, InvalidConfig, InvalidInput
from .code_buffer import CodeBuffer
from .framing import split_frames
from .state import StreamState

logger = logging.getLogger(__name__)

PCMInput = Union[torch.Tensor, np.ndarray, Sequence[float]]


class StreamingEncoder:
    """Incremental PCM-to-codes encoder for one audio stream.

    Feeding a signal in chunks of any size gives the same codes as feeding
    it in one call: samples are cut into fixed frames regardless of chunk
    boundaries, the leftover partial frame is kept for the next call, and
    the codec's recurrent state is carried from frame to frame.

    One instance per stream. Calls on the same instance must not overlap;
    separate instances share nothing and can run on separate threads.
    """

    def __init__(self, model: CodecModel, codebook_count: int):
        if isinstance(codebook_count, bool) or not isinstance(codebook_count, numbers.Integral):
            raise InvalidConfig(f"codebook_count must be an integer, got {codebook_count!r}")
        if not 1 <= codebook_count <= model.num_codebooks:
            raise InvalidConfig(
                f"codebook_count must be in [1, {model.num_codebooks}], got {codebook_count}"
            )
        self.model = model
        self._num_codebooks = int(codebook_count)
        self._state = StreamState.initial(model)
        self._destroyed = False

    @classmethod
    def create(
        cls, model_path: Union[str, Path], codebook_count: int, device: str = "cpu"
    ) -> "StreamingEncoder":
        """Load a codec checkpoint and wrap it in a fresh encoder.

        Raises:
            ModelLoadError: if the checkpoint cannot be loaded.
            InvalidConfig: if `codebook_count` is zero or above the model maximum.
        """
        model = CodecModel.load_checkpoint(model_path, device=device)
        return cls(model, codebook_count)

    @property
    def frame_size(self) -> int:
        return self.model.frame_size

    @property
    def sample_rate(self) -> int:
        return self.model.sample_rate

    @property
    def num_codebooks(self) -> int:
        return self._num_codebooks

    @property
    def max_codebooks(self) -> int:
        return self.model.num_codebooks

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def pending_samples(self) -> int:
        """Samples buffered toward the next frame."""
        return self._state.pending_samples

    @property
    def steps(self) -> int:
        """Frames encoded since creation or the last reset."""
        return self._state.step

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def _check_open(self) -> None:
        if self._destroyed:
            raise EncoderClosed("StreamingEncoder has been destroyed")

    def _as_pcm(self, pcm_samples: PCMInput) -> torch.Tensor:
        """Flatten [N], [1, N] or [1, 1, N] input into a 1D tensor on the model device."""
        if isinstance(pcm_samples, torch.Tensor):
            pcm = pcm_samples
        else:
            pcm = torch.as_tensor(np.asarray(pcm_samples, dtype=np.float32))
        if pcm.dim() == 0:
            raise InvalidInput("PCM input must have a time axis")
        if pcm.dim() > 3 or any(d != 1 for d in pcm.shape[:-1]):
            raise InvalidInput(f"Expected PCM of shape [N], [1, N] or [1, 1, N], got {tuple(pcm.shape)}")
        param = next(self.model.parameters())
        return pcm.reshape(-1).to(device=param.device, dtype=param.dtype)

    def encode_step(self, pcm_samples: PCMInput) -> CodeBuffer:
        """Encode a chunk of mono PCM samples.

        The stored residual and the new samples are cut into as many whole
        frames as possible; each frame yields one time step of codes and the
        rest is kept for the next call.

        Args:
            pcm_samples: Float samples, shape [N], [1, N] or [1, 1, N]. N may be 0.

        Returns:
            A new `CodeBuffer` of shape (num_codebooks, frames_formed). It
            has zero steps when no frame could be completed.

        Raises:
            InvalidInput: if the input is not single-batch, single-channel.
            EncodeError: if the codec fails on any frame. The stream state is
                then exactly what it was before the call.
        """
        self._check_open()
        pcm = self._as_pcm(pcm_samples)
        state = self._state

        frames, tail = split_frames(state.residual, pcm, self.frame_size)
        codec_state = state.codec
        codes = []
        try:
            for frame in frames:
                indices, codec_state = self.model.step(frame.view(1, 1, -1), codec_state, self._num_codebooks)
                codes.append(indices[0, :, 0])
        except EncodeError as e:
            logger.warning("Encode failed at frame %d of this call: %s", len(codes), e)
            raise
        except RuntimeError as e:
            logger.warning("Encode failed at frame %d of this call: %s", len(codes), e)
            raise EncodeError(f"Codec failed at step {state.step + len(codes)}: {e}") from e

        assert tail.shape[0] < self.frame_size, f"Residual of {tail.shape[0]} samples would skip a frame"
        buffer = CodeBuffer.from_frames(codes, self._num_codebooks)
        self._state = state.advance(tail, codec_state, len(codes))
        logger.debug(
            "encode_step: %d new samples -> %d steps, %d pending",
            pcm.shape[0],
            len(codes),
            self._state.pending_samples,
        )
        return buffer

    def reset(self) -> None:
        """Return to the freshly created state without reloading the model."""
        self._check_open()
        self._state = StreamState.initial(self.model)
        logger.debug("Stream state reset")

    def warmup(self) -> None:
        """Exercise the model once on silence. Stream state is untouched."""
        self._check_open()
        self.model.warmup()

    def destroy(self) -> None:
        """Release the model and state. The encoder must not be used afterwards."""
        if self._destroyed:
            return
        self.model = None
        self._state = None
        self._destroyed = True

    def __enter__(self) -> "StreamingEncoder":
        return self

    def __exit__(self, *exc) -> None:
        self.destroy()
