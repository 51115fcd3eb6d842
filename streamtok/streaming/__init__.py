"""
Streaming encode engine.

Main entry points:
- `StreamingEncoder`: turns PCM chunks of any size into code grids.
- `StreamState`: residual samples and codec state carried between calls.
- `CodeBuffer`: codebook-major grid of indices handed to the caller.
"""

from .code_buffer import CodeBuffer
from .encoder import StreamingEncoder
from .framing import count_frames, split_frames
from .state import StreamState

__all__ = ["CodeBuffer", "StreamingEncoder", "StreamState", "count_frames", "split_frames"]
