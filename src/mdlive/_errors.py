"""mdlive error hierarchy.

All mdlive-specific errors inherit from MdliveError for easy catching.
"""


class MdliveError(Exception):
    """Base error for all mdlive operations."""


class ConfigError(MdliveError):
    """Invalid or missing configuration."""


class PathError(MdliveError, ValueError):
    """A root or index path is unusable.

    Raised by root reconfiguration and key derivation. Reconfiguration is
    all-or-nothing: when this is raised the previous root and index stay
    in effect.
    """


class PathNotFound(PathError):
    """The path does not exist on disk."""


class NotASubpath(PathError):
    """The path does not lie under the current served root."""


class InvalidPath(PathError):
    """The path is outside the root or is not representable as portable text."""


class DecodeError(MdliveError, ValueError):
    """A source file is not valid UTF-8 text."""


class RenderError(MdliveError):
    """The markdown renderer failed on otherwise valid text."""


class WatchBackendError(MdliveError):
    """The filesystem watch backend failed fatally."""
