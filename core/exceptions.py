"""
Conversion Errors

Every failure the pipeline can surface to the user.
"""


class ConversionError(RuntimeError):
    """Base class for all conversion failures."""


class UnsupportedFormatError(ConversionError):
    """Raised when the file extension is not a recognised office format."""


class MalformedDocumentError(ConversionError):
    """Raised when a document cannot be decoded (corrupt or unreadable bytes)."""


class RenderLibraryUnavailableError(ConversionError):
    """Raised when a rendering or PDF dependency is missing at run time."""


class ConversionTimeoutError(ConversionError):
    """Raised when rendering or the whole conversion takes too long."""


class UnknownError(ConversionError):
    """Any other failure, carrying the raw message."""
