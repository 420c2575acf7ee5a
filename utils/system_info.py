"""
System Information Diagnostic Module

Collects platform details and the availability of the rendering stack
for troubleshooting.
"""

import sys
import os
import shutil
import platform
import logging
from importlib import metadata
from typing import Dict, Any, List
from datetime import datetime

logger = logging.getLogger(__name__)

# (display name, distribution name on the package index)
STACK_DISTRIBUTIONS = [
    ('WeasyPrint', 'weasyprint'),
    ('pdf2image', 'pdf2image'),
    ('Pillow', 'Pillow'),
    ('reportlab', 'reportlab'),
    ('mammoth', 'mammoth'),
    ('pandas', 'pandas'),
    ('openpyxl', 'openpyxl'),
    ('xlrd', 'xlrd'),
    ('beautifulsoup4', 'beautifulsoup4'),
]


def get_system_info() -> Dict[str, Any]:
    """
    Collect system information for diagnostics.

    Returns a dictionary with platform, Python, renderer and library details.
    """
    info = {
        'timestamp': datetime.now().isoformat(),
        'platform': {
            'system': platform.system(),
            'release': platform.release(),
            'version': platform.version(),
            'machine': platform.machine(),
        },
        'python': {
            'version': sys.version,
            'executable': sys.executable,
            'is_bundled': hasattr(sys, '_MEIPASS'),
        },
        'renderer': get_renderer_info(),
        'libraries': get_library_versions(),
    }

    path_val = os.environ.get('PATH', '<not set>')
    if len(path_val) > 200:
        path_val = path_val[:200] + '... (truncated)'
    info['environment'] = {
        'PATH': path_val,
        'WEASYPRINT_DLL_DIRECTORIES': os.environ.get('WEASYPRINT_DLL_DIRECTORIES', '<not set>'),
    }

    return info


def get_renderer_info() -> Dict[str, Any]:
    """Get WeasyPrint and Poppler availability."""
    from core.page_rasterizer import WEASYPRINT_AVAILABLE, find_poppler, has_poppler

    poppler_path = find_poppler()
    renderer_info = {
        'weasyprint_available': WEASYPRINT_AVAILABLE,
        'poppler_available': has_poppler(poppler_path),
        'poppler_path': poppler_path or shutil.which('pdftoppm') or '<not found>',
    }

    if not WEASYPRINT_AVAILABLE:
        try:
            import weasyprint  # noqa: F401
        except (ImportError, OSError) as e:
            renderer_info['weasyprint_reason'] = str(e)

    return renderer_info


def get_library_versions() -> Dict[str, str]:
    """Get versions of the conversion libraries."""
    libs = {}
    for display_name, dist_name in STACK_DISTRIBUTIONS:
        try:
            libs[display_name] = metadata.version(dist_name)
        except metadata.PackageNotFoundError:
            libs[display_name] = 'not installed'
    return libs


def get_missing_dependencies() -> List[str]:
    """Human-readable warnings for rendering dependencies that are missing."""
    renderer = get_renderer_info()
    warnings = []

    if not renderer['weasyprint_available']:
        warnings.append(
            "WeasyPrint not available. Documents cannot be rendered.\n"
            "Install with: pip install weasyprint (needs GTK/Pango libraries)"
        )

    if not renderer['poppler_available']:
        warnings.append(
            "Poppler (pdftoppm) not found. Documents cannot be rasterized.\n"
            "Install with: brew install poppler (macOS) or apt-get install poppler-utils (Linux)"
        )

    return warnings


def generate_diagnostic_report() -> str:
    """
    Generate a full diagnostic report as a string.

    This can be shown to the user or written to a file.
    """
    info = get_system_info()

    report = []
    report.append("=" * 60)
    report.append("DOCUCONVERT PRO - DIAGNOSTIC REPORT")
    report.append("=" * 60)
    report.append(f"Generated: {info['timestamp']}")
    report.append("")

    for title, key in (
        ("PLATFORM", 'platform'),
        ("PYTHON", 'python'),
        ("RENDERER", 'renderer'),
        ("LIBRARIES", 'libraries'),
        ("ENVIRONMENT VARIABLES", 'environment'),
    ):
        report.append(f"{title}:")
        report.append("-" * 40)
        for k, v in info[key].items():
            report.append(f"  {k}: {v}")
        report.append("")

    report.append("=" * 60)
    report.append("END OF REPORT")
    report.append("=" * 60)

    return "\n".join(report)


def log_system_info():
    """Log system info at startup for debugging."""
    try:
        info = get_system_info()
        logger.info("System Info:")
        logger.info(f"  Platform: {info['platform']['system']} {info['platform']['release']}")
        logger.info(f"  Python: {sys.version.split()[0]}, Bundled: {info['python']['is_bundled']}")
        logger.info(
            f"  WeasyPrint: {info['libraries']['WeasyPrint']} "
            f"(available: {info['renderer']['weasyprint_available']})"
        )
        logger.info(f"  Poppler: {info['renderer']['poppler_path']}")
    except Exception as e:
        logger.warning(f"Could not collect system info: {e}")
