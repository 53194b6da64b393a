"""Error kinds shared by the timeline and asset engine.

Readiness for editing is not an error: readiness checks return a boolean.
"""


class VlogError(Exception):
    """Base class for all vlogkit errors."""


class ValidationError(VlogError, ValueError):
    """Input rejected before any state was changed.

    Raised for invalid time ranges, overlapping subtitles, missing
    template/segment/subtitle references and unmet export preconditions.
    """


class StorageError(VlogError):
    """Project store or local file I/O failure."""

    @classmethod
    def wrap(cls, error: BaseException, message: str = "") -> "StorageError":
        """Return ``error`` if it already is a StorageError, otherwise wrap it."""
        if isinstance(error, StorageError):
            return error
        wrapped = cls(f"{message}: {error}" if message else str(error))
        wrapped.__cause__ = error
        return wrapped


class EncodeError(VlogError):
    """Trim or export failure reported by the media encoder."""


class ExportCancelled(VlogError):
    """Raised inside an encoder once cooperative cancellation is observed."""


class GuideImageError(VlogError):
    """The guide-image generator failed to produce an image."""
