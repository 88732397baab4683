"""Exception hierarchy for msg-to-pdf."""


class MsgToPdfError(Exception):
    """Base exception for all conversion errors."""


class InputPathError(MsgToPdfError):
    """The given file or directory cannot be used as input."""


class MessageDecodeError(MsgToPdfError):
    """Failed to decode a .msg container."""


class RenderError(MsgToPdfError):
    """The rendering engine failed to produce a PDF."""
