"""
Streaming audio tokenizer.

This package exposes:
- codec: causal convolutional RVQ codec used as the numerical model
- streaming: frame-exact streaming encoder, its state and output buffers
- boundary: handle-based shim that reports failures as sentinels
"""

from .codec import CodecConfig, CodecModel
from .errors import (
    BufferReleased,
    EncodeError,
    EncoderClosed,
    InvalidConfig,
    InvalidInput,
    ModelLoadError,
    StreamTokError,
)
from .streaming import CodeBuffer, StreamingEncoder, StreamState

__all__ = [
    "CodecConfig",
    "CodecModel",
    "CodeBuffer",
    "StreamingEncoder",
    "StreamState",
    "StreamTokError",
    "ModelLoadError",
    "InvalidConfig",
    "InvalidInput",
    "EncodeError",
    "EncoderClosed",
    "BufferReleased",
]
