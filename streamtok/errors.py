"""
Error taxonomy for the streaming tokenizer.

Library code raises these; only `streamtok.boundary` turns them into
failure sentinels.
"""


class StreamTokError(Exception):
    """Base class for every error raised by streamtok."""


class ModelLoadError(StreamTokError):
    """The checkpoint is missing, unreadable, or not a valid codec checkpoint."""


class InvalidConfig(StreamTokError):
    """A model or session configuration value is out of its supported range."""


class InvalidInput(StreamTokError, ValueError):
    """PCM input does not have a single-batch, single-channel layout."""


class EncodeError(StreamTokError):
    """The codec model failed while encoding a frame.

    The encoder state is left exactly as it was before the failing call.
    """


class EncoderClosed(StreamTokError):
    """The encoder was used after `destroy()`."""


class BufferReleased(StreamTokError):
    """A code buffer was read after `release()`."""
