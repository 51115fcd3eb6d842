"""
Causal streaming audio codec used as the tokenizer's numerical model.

The main entry point is `CodecModel`, which wraps:
- A causal convolutional encoder that turns one frame of audio into one latent.
- A GRU that carries context across frames.
- A residual vector quantizer (RVQ) producing discrete codebook indices.
"""

from .streaming_codec import CodecConfig, CodecModel, CodecState

__all__ = ["CodecConfig", "CodecModel", "CodecState"]
