"""
Utilities Package
"""

from .file_utils import sanitize_filename, output_filename, ensure_dir, get_file_size_mb, open_with_system

__all__ = [
    'sanitize_filename',
    'output_filename',
    'ensure_dir',
    'get_file_size_mb',
    'open_with_system',
]
