"""
Handle-based surface for foreign callers.

Nothing here raises. Every failure is logged and reported as `None`, which
never collides with a successful result. Callers hold integer handles and
never see `StreamingEncoder` objects directly.

    handle = tokenizer_new("mimi.pt", 8)
    codes = encode_step(handle, pcm)   # CodeBuffer or None
    ...
    free_codes(codes)
    tokenizer_free(handle)
"""

import itertools
import logging
import threading
from typing import Dict, Optional

from .errors import StreamTokError
from .streaming import CodeBuffer, StreamingEncoder
from .streaming.encoder import PCMInput

logger = logging.getLogger(__name__)

_registry: Dict[int, StreamingEncoder] = {}
_registry_lock = threading.Lock()
_next_handle = itertools.count(1)


def tokenizer_new(path: str, num_codebooks: int, device: str = "cpu") -> Optional[int]:
    """Create a tokenizer; returns its handle, or None on failure."""
    if path is None:
        return None
    try:
        encoder = StreamingEncoder.create(path, num_codebooks, device=device)
    except (StreamTokError, TypeError, ValueError) as e:
        logger.error("Error creating tokenizer from %s: %s", path, e)
        return None
    with _registry_lock:
        handle = next(_next_handle)
        _registry[handle] = encoder
    return handle


def _lookup(handle: int) -> Optional[StreamingEncoder]:
    with _registry_lock:
        return _registry.get(handle)


def encode_step(handle: int, pcm: PCMInput) -> Optional[CodeBuffer]:
    """Encode one chunk. Returns a caller-owned buffer, or None on failure."""
    encoder = _lookup(handle)
    if encoder is None or pcm is None:
        return None
    try:
        return encoder.encode_step(pcm)
    except (StreamTokError, TypeError, ValueError) as e:
        logger.error("Error encoding: %s", e)
        return None


def reset(handle: int) -> None:
    encoder = _lookup(handle)
    if encoder is not None:
        encoder.reset()


def tokenizer_free(handle: int) -> None:
    with _registry_lock:
        encoder = _registry.pop(handle, None)
    if encoder is not None:
        encoder.destroy()


def free_codes(codes: Optional[CodeBuffer]) -> None:
    if codes is not None:
        codes.release()
