"""
Format Detector Module

Maps a file name to the office format that will handle it.
"""

from enum import Enum
from typing import List

from .exceptions import UnsupportedFormatError


class FileType(Enum):
    """Office formats understood by the converter"""
    DOCX = "docx"
    XLSX = "xlsx"
    PPTX = "pptx"
    UNKNOWN = "unknown"


# Extension (without dot, lower case) -> format
EXTENSION_MAP = {
    'docx': FileType.DOCX,
    'xlsx': FileType.XLSX,
    'xls': FileType.XLSX,
    'pptx': FileType.PPTX,
    'ppt': FileType.PPTX,
}

SUPPORTED_EXTENSIONS: List[str] = [f".{ext}" for ext in EXTENSION_MAP]

INVALID_FORMAT_MESSAGE = "Invalid file format. Please upload DOCX, XLSX, or PPTX."


def detect(file_name: str) -> FileType:
    """
    Detect the format of a file from its name.

    Only the text after the last dot counts and the comparison is
    case-insensitive. Names without a recognised suffix map to UNKNOWN.

    Args:
        file_name: File name or path

    Returns:
        The detected FileType
    """
    if not file_name or '.' not in file_name:
        return FileType.UNKNOWN

    extension = file_name.rsplit('.', 1)[-1].lower()
    return EXTENSION_MAP.get(extension, FileType.UNKNOWN)


def is_supported(file_name: str) -> bool:
    """Check whether a file can be converted."""
    return detect(file_name) is not FileType.UNKNOWN


def validate_selection(file_name: str) -> FileType:
    """
    Check a picked file before anything else happens to it.

    Raises:
        UnsupportedFormatError: The name has no supported suffix
    """
    file_type = detect(file_name)
    if file_type is FileType.UNKNOWN:
        raise UnsupportedFormatError(INVALID_FORMAT_MESSAGE)
    return file_type
