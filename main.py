#!/usr/bin/env python3
"""
DocuConvert Pro - Office to PDF Converter

Entry point: prepares the bundled runtime, logging and the Tk window.
"""

import sys
import os
import logging
import tempfile
from pathlib import Path

APP_DIR_NAME = 'DocuConvertPro'
LOG_FILE_NAME = 'docuconvert.log'

# Seconds before a running conversion is abandoned
DEFAULT_TIMEOUT = 300

# Directories inside a frozen Windows bundle that hold native libraries.
# The flag marks the one WeasyPrint searches for GTK/Pango.
BUNDLED_LIBRARY_DIRS = (
    (('gtk',), True),
    (('poppler', 'bin'), False),
)

QUIET_LOGGERS = ('PIL', 'fontTools', 'weasyprint')


def _bundle_root():
    """Unpack directory of a frozen build, None when running from source."""
    return getattr(sys, '_MEIPASS', None)


def setup_bundled_paths():
    """Expose the bundle's native libraries before WeasyPrint is imported."""
    bundle = _bundle_root()
    if bundle is None or sys.platform != 'win32':
        return

    found = []
    for parts, weasyprint_dir in BUNDLED_LIBRARY_DIRS:
        directory = Path(bundle).joinpath(*parts)
        if not directory.is_dir():
            continue
        found.append(str(directory))
        if weasyprint_dir:
            os.environ['WEASYPRINT_DLL_DIRECTORIES'] = str(directory)

    if found:
        found.append(os.environ.get('PATH', ''))
        os.environ['PATH'] = os.pathsep.join(found)


# WeasyPrint loads its DLLs at import time
setup_bundled_paths()

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))


def _installed_log_root() -> Path:
    home = Path.home()
    roots = {
        'win32': Path(os.environ.get('USERPROFILE', home)) / 'Documents' / APP_DIR_NAME / 'logs',
        'darwin': home / 'Library' / 'Logs' / APP_DIR_NAME,
    }
    return roots.get(sys.platform, home / '.local' / 'share' / APP_DIR_NAME / 'logs')


def get_log_directory() -> Path:
    """
    Where the log file goes: the user's log area for a frozen build,
    ./logs next to the sources otherwise. Falls back to the temp directory
    when the preferred one cannot be created.
    """
    preferred = _installed_log_root() if _bundle_root() else PROJECT_ROOT / 'logs'
    fallback = Path(tempfile.gettempdir()) / APP_DIR_NAME / 'logs'

    for candidate in (preferred, fallback):
        try:
            candidate.mkdir(parents=True, exist_ok=True)
            return candidate
        except OSError as e:
            print(f"Cannot use log directory {candidate}: {e}")

    raise OSError("No writable log directory")


def setup_logging():
    """Configure application logging."""
    log_file = get_log_directory() / LOG_FILE_NAME
    print(f"Log file: {log_file}")

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging to {log_file}")


def _set_icon(root, logger):
    import tkinter as tk

    icon_path = PROJECT_ROOT / 'assets' / 'icon.png'
    if not icon_path.exists():
        return
    try:
        root.iconphoto(True, tk.PhotoImage(file=str(icon_path)))
    except tk.TclError as e:
        logger.debug(f"Could not load icon: {e}")


def main():
    """Main entry point."""
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting DocuConvert Pro")

    from utils.system_info import get_missing_dependencies, log_system_info
    log_system_info()

    missing = get_missing_dependencies()
    for warning in missing:
        logger.warning(warning)

    try:
        import tkinter as tk
        from tkinter import messagebox
        from gui.main_window import MainWindow
    except ImportError as e:
        logger.error(f"Import error: {e}")
        print(f"\nError: Missing required module: {e}")
        print("Please install dependencies with: pip install -e .")
        sys.exit(1)

    root = tk.Tk()
    _set_icon(root, logger)

    try:
        MainWindow(root, timeout=DEFAULT_TIMEOUT)

        if missing:
            text = "Some dependencies are missing:\n\n" + "\n\n".join(missing)
            root.after(500, lambda: messagebox.showwarning("Missing Dependencies", text))

        root.mainloop()
    except Exception as e:
        logger.exception(f"Application error: {e}")
        raise

    logger.info("DocuConvert Pro closed")


if __name__ == "__main__":
    main()
