"""
File Utilities Module

File name helpers for input validation and output naming, and hand-off
of finished files to the desktop viewer or printer.
"""

import os
import re
import platform
import subprocess
from pathlib import Path
from typing import Union
import logging

logger = logging.getLogger(__name__)


def sanitize_filename(filename: str, max_length: int = 200, replacement: str = '_') -> str:
    """
    Sanitize a filename by removing or replacing invalid characters.

    Args:
        filename: Original filename
        max_length: Maximum length for the filename
        replacement: Character to replace invalid chars with

    Returns:
        Sanitized filename
    """
    if not filename:
        return "unnamed"

    # Characters not allowed in filenames (Windows is most restrictive)
    invalid_chars = '<>:"/\\|?*' + ''.join(chr(i) for i in range(32))

    sanitized = filename
    for char in invalid_chars:
        sanitized = sanitized.replace(char, replacement)

    # Replace multiple consecutive replacements with single
    sanitized = re.sub(f'{re.escape(replacement)}+', replacement, sanitized)

    # Remove leading/trailing dots, spaces, and replacement chars
    sanitized = sanitized.strip(f'. {replacement}')

    # Limit length while preserving extension
    if len(sanitized) > max_length:
        name, ext = os.path.splitext(sanitized)
        sanitized = name[:max_length - len(ext)] + ext

    if not sanitized:
        return "unnamed"

    reserved_names = {
        'CON', 'PRN', 'AUX', 'NUL',
        'COM1', 'COM2', 'COM3', 'COM4', 'COM5', 'COM6', 'COM7', 'COM8', 'COM9',
        'LPT1', 'LPT2', 'LPT3', 'LPT4', 'LPT5', 'LPT6', 'LPT7', 'LPT8', 'LPT9'
    }

    name_without_ext = os.path.splitext(sanitized)[0].upper()
    if name_without_ext in reserved_names:
        sanitized = f"_{sanitized}"

    return sanitized


def output_filename(source_name: str) -> str:
    """
    Suggested PDF name for a source document: its base name plus .pdf.

    Args:
        source_name: Uploaded file name or path

    Returns:
        Sanitized file name ending in .pdf
    """
    stem = Path(source_name).stem if source_name else ""
    return sanitize_filename(f"{stem or 'document'}.pdf")


def ensure_dir(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path

    Returns:
        Path object for the directory
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_file_size_mb(size_bytes: int) -> str:
    """File size in megabytes with two decimals, e.g. '1.25 MB'."""
    return f"{size_bytes / 1024 / 1024:.2f} MB"


# Commands per platform and action; Windows uses shell verbs instead
SYSTEM_COMMANDS = {
    'Darwin': {'open': ['open'], 'print': ['lpr']},
    'Linux': {'open': ['xdg-open'], 'print': ['lp']},
}

WINDOWS_VERBS = {'open': 'open', 'print': 'print'}


def open_with_system(path: Union[str, Path], action: str = 'open'):
    """
    Hand a file to the desktop: show it in the default viewer or send it
    to the default printer.

    Args:
        path: File to open or print
        action: 'open' or 'print'

    Raises:
        ValueError: Unknown action
        OSError: The command could not be started
        subprocess.CalledProcessError: The command reported failure
    """
    if action not in WINDOWS_VERBS:
        raise ValueError(f"Unknown action: {action}")

    path = str(path)
    system = platform.system()

    if system == 'Windows':
        os.startfile(path, WINDOWS_VERBS[action])
        return

    # Other Unix desktops follow the freedesktop tools
    command = SYSTEM_COMMANDS.get(system, SYSTEM_COMMANDS['Linux'])[action]
    logger.info(f"Running {command[0]} for {path}")
    subprocess.run(command + [path], check=True)
