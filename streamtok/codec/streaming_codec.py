import logging
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import torch
import torch.nn as nn

from ..errors import EncodeError, InvalidConfig, ModelLoadError
from .rvq import ResidualVectorQuantizer, ResidualVectorQuantizerConfig
from .streaming_conv import StreamingConv1d

logger = logging.getLogger(__name__)


@dataclass
class CodecConfig:
    """Configuration for the causal streaming RVQ codec.

    Defaults follow a 24 kHz / 12.5 Hz layout: the encoder strides multiply
    to 960 and a final stride-2 downsample brings one frame to 1920 samples.
    """

    sample_rate: int = 24_000
    frame_rate: float = 12.5
    channels: int = 1
    n_filters: int = 32
    ratios: Tuple[int, ...] = (8, 6, 5, 4)
    downsample_stride: int = 2
    dim: int = 256
    num_codebooks: int = 32
    codebook_size: int = 2048

    @property
    def frame_size(self) -> int:
        return math.prod(self.ratios) * self.downsample_stride

    def validate(self) -> None:
        if self.channels != 1:
            raise InvalidConfig(f"Only mono audio is supported, got channels={self.channels}")
        for name in ("sample_rate", "n_filters", "dim", "num_codebooks", "codebook_size", "downsample_stride"):
            if getattr(self, name) <= 0:
                raise InvalidConfig(f"{name} must be > 0, got {getattr(self, name)}")
        if self.frame_rate <= 0:
            raise InvalidConfig(f"frame_rate must be > 0, got {self.frame_rate}")
        if not self.ratios or any(r <= 0 for r in self.ratios):
            raise InvalidConfig(f"ratios must be non-empty and positive, got {self.ratios}")
        if abs(self.sample_rate / self.frame_rate - self.frame_size) > 1e-6:
            raise InvalidConfig(
                f"sample_rate / frame_rate = {self.sample_rate / self.frame_rate} does not match "
                f"the encoder frame size {self.frame_size}"
            )

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "CodecConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise InvalidConfig(f"Unknown codec config keys: {sorted(unknown)}")
        values = dict(values)
        if "ratios" in values:
            values["ratios"] = tuple(values["ratios"])
        return cls(**values)


@dataclass(frozen=True)
class CodecState:
    """Recurrent state of the codec between frames.

    Attributes:
        conv_contexts: Left context of every encoder convolution, in layer order.
        hidden: GRU hidden state, [1, B, D].
    """

    conv_contexts: Tuple[torch.Tensor, ...]
    hidden: torch.Tensor


class CausalConvEncoder(nn.Module):
    """Causal convolutional encoder, one latent vector per frame.

    Input conv, one strided conv per ratio (doubling channels), projection
    to the latent dim, then a strided downsample to the frame rate.
    """

    def __init__(self, cfg: CodecConfig):
        super().__init__()
        ch = cfg.n_filters
        layers = [StreamingConv1d(cfg.channels, ch, kernel_size=7)]
        for ratio in cfg.ratios:
            layers.append(StreamingConv1d(ch, ch * 2, kernel_size=2 * ratio, stride=ratio))
            ch *= 2
        self.num_activated = len(layers)
        layers.append(StreamingConv1d(ch, cfg.dim, kernel_size=3))
        layers.append(
            StreamingConv1d(cfg.dim, cfg.dim, kernel_size=2 * cfg.downsample_stride, stride=cfg.downsample_stride)
        )
        self.convs = nn.ModuleList(layers)
        self.act = nn.SiLU()

    def init_contexts(self, batch_size: int, device, dtype: torch.dtype) -> Tuple[torch.Tensor, ...]:
        return tuple(conv.init_context(batch_size, device=device, dtype=dtype) for conv in self.convs)

    def step(
        self, audio: torch.Tensor, contexts: Tuple[torch.Tensor, ...]
    ) -> Tuple[torch.Tensor, Tuple[torch.Tensor, ...]]:
        """Encode audio given per-layer left contexts.

        Args:
            audio: [B, 1, L] waveform, L a multiple of the frame size.
            contexts: One context tensor per conv layer.

        Returns:
            latents: [B, D, L // frame_size].
            next_contexts: Updated contexts, same layout as `contexts`.
        """
        x = audio
        next_contexts = []
        for i, (conv, context) in enumerate(zip(self.convs, contexts)):
            x, context = conv.step(x, context)
            if i < self.num_activated:
                x = self.act(x)
            next_contexts.append(context)
        return x, tuple(next_contexts)


class CodecModel(nn.Module):
    """Causal RVQ codec exposing a frame-by-frame encode step.

    The model owns weights only. All per-stream state lives in `CodecState`
    values that `step` takes and returns without mutating, so a caller can
    discard a half-finished sequence of steps and keep its previous state.
    """

    def __init__(self, cfg: Optional[CodecConfig] = None):
        super().__init__()
        self.cfg = cfg or CodecConfig()
        self.cfg.validate()

        self.encoder = CausalConvEncoder(self.cfg)
        self.gru = nn.GRU(self.cfg.dim, self.cfg.dim, num_layers=1, batch_first=True)
        rvq_cfg = ResidualVectorQuantizerConfig(
            dim=self.cfg.dim,
            num_codebooks=self.cfg.num_codebooks,
            codebook_size=self.cfg.codebook_size,
        )
        self.rvq = ResidualVectorQuantizer(rvq_cfg)

    @property
    def frame_size(self) -> int:
        return self.cfg.frame_size

    @property
    def sample_rate(self) -> int:
        return self.cfg.sample_rate

    @property
    def num_codebooks(self) -> int:
        """Maximum number of codebooks this model can emit."""
        return self.rvq.num_codebooks

    @property
    def codebook_size(self) -> int:
        return self.rvq.codebook_size

    @property
    def device(self) -> torch.device:
        return next(self.parameters()).device

    def init_state(self, batch_size: int = 1) -> CodecState:
        """State before any audio has been seen."""
        param = next(self.parameters())
        return CodecState(
            conv_contexts=self.encoder.init_contexts(batch_size, param.device, param.dtype),
            hidden=torch.zeros(1, batch_size, self.cfg.dim, device=param.device, dtype=param.dtype),
        )

    @torch.no_grad()
    def step(
        self, frame: torch.Tensor, state: CodecState, num_codebooks: Optional[int] = None
    ) -> Tuple[torch.Tensor, CodecState]:
        """Encode exactly one frame.

        Args:
            frame: [B, 1, frame_size] waveform.
            state: State after the previous frame (or `init_state()`).
            num_codebooks: Leading codebooks to emit (defaults to all).

        Returns:
            indices: [B, num_codebooks, 1] long tensor.
            next_state: State after this frame. `state` is left untouched.
        """
        assert frame.dim() == 3 and frame.shape[-1] == self.frame_size, (
            f"Expected frame of shape [B, 1, {self.frame_size}], got {tuple(frame.shape)}"
        )
        latents, contexts = self.encoder.step(frame, state.conv_contexts)
        out, hidden = self.gru(latents.transpose(1, 2), state.hidden)  # [B, 1, D]
        if not torch.isfinite(out).all():
            raise EncodeError("Codec produced non-finite latents")
        indices = self.rvq.encode(out, num_codebooks)
        return indices, CodecState(conv_contexts=contexts, hidden=hidden)

    @torch.no_grad()
    def encode(self, audio: torch.Tensor, num_codebooks: Optional[int] = None) -> torch.Tensor:
        """Encode a whole signal from a fresh state.

        Args:
            audio: [B, T] or [B, 1, T] waveform.
            num_codebooks: Leading codebooks to emit (defaults to all).

        Returns:
            indices: [B, num_codebooks, T // frame_size]. A trailing partial
            frame is dropped.
        """
        if audio.dim() == 2:
            audio = audio.unsqueeze(1)  # [B, 1, T]
        n_q = self.num_codebooks if num_codebooks is None else num_codebooks
        state = self.init_state(audio.shape[0])
        steps = []
        for start in range(0, audio.shape[-1] - self.frame_size + 1, self.frame_size):
            indices, state = self.step(audio[..., start : start + self.frame_size], state, n_q)
            steps.append(indices)
        if not steps:
            return torch.zeros(audio.shape[0], n_q, 0, dtype=torch.long, device=audio.device)
        return torch.cat(steps, dim=-1)

    def warmup(self) -> None:
        """Run one silent frame so lazy kernel setup happens before real audio."""
        param = next(self.parameters())
        frame = torch.zeros(1, 1, self.frame_size, device=param.device, dtype=param.dtype)
        self.step(frame, self.init_state())

    def save_checkpoint(self, path: Union[str, Path]) -> None:
        torch.save({"cfg": asdict(self.cfg), "state_dict": self.state_dict()}, path)

    @classmethod
    def load_checkpoint(cls, path: Union[str, Path], device: str = "cpu") -> "CodecModel":
        """Load a model saved with `save_checkpoint`.

        Raises:
            ModelLoadError: if the file is missing or unreadable, or does not
                hold a valid codec config and matching weights.
        """
        path = Path(path)
        if not path.is_file():
            raise ModelLoadError(f"Checkpoint not found: {path}")
        try:
            ckpt = torch.load(path, map_location=device)
        except Exception as e:
            raise ModelLoadError(f"Could not read checkpoint {path}: {e}") from e

        if not isinstance(ckpt, dict) or "cfg" not in ckpt or "state_dict" not in ckpt:
            raise ModelLoadError(f"{path} is not a codec checkpoint (expected 'cfg' and 'state_dict')")

        try:
            cfg = CodecConfig.from_dict(ckpt["cfg"])
            model = cls(cfg)
            model.load_state_dict(ckpt["state_dict"])
        except (InvalidConfig, TypeError, ValueError, RuntimeError) as e:
            raise ModelLoadError(f"Incompatible checkpoint {path}: {e}") from e

        model.to(device)
        model.eval()
        logger.info(
            "Loaded codec checkpoint from %s (frame_size=%d, max_codebooks=%d)",
            path,
            cfg.frame_size,
            cfg.num_codebooks,
        )
        return model
