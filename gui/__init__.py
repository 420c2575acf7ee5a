"""
GUI Package
"""

from .main_window import MainWindow
from .progress_dialog import ProgressDialog
from .settings_panel import SettingsPanel

__all__ = ['MainWindow', 'ProgressDialog', 'SettingsPanel']
