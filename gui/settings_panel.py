"""
Settings Panel Module

Conversion options shown under the selected file. The Excel and slide
sections only appear for spreadsheets and presentations.
"""

import tkinter as tk
from tkinter import ttk
from typing import Dict, Any

from core.format_detector import FileType

# Combobox label -> option value
QUALITY_CHOICES = {
    "Compact (small)": "small",
    "Standard (medium)": "medium",
    "HD Print (large)": "large",
}

EXCEL_MODE_CHOICES = {
    "Active Sheet Only": "active",
    "Entire Workbook (All Sheets)": "all",
}

PPT_LAYOUT_CHOICES = {
    "One Slide Per Page": "single",
    "Handout Style (Two per Row)": "handout",
}

DEFAULT_SETTINGS = {
    'quality': 'medium',
    'excel_mode': 'active',
    'ppt_layout': 'single',
    'preserve_images': True,
}


def _label_for(choices: Dict[str, str], value: str) -> str:
    for label, choice in choices.items():
        if choice == value:
            return label
    return next(iter(choices))


class SettingsPanel:
    """Option form for one conversion."""

    def __init__(self, parent: tk.Widget, current_settings: Dict[str, Any]):
        """
        Initialize settings panel.

        Args:
            parent: Parent widget
            current_settings: Current settings dictionary
        """
        self.current = {**DEFAULT_SETTINGS, **current_settings}

        self.frame = ttk.LabelFrame(parent, text="Conversion Settings", padding=10)
        self._create_widgets()
        self._load_current_settings()

    def _create_widgets(self):
        """Create panel widgets."""
        # === General Quality ===
        quality_frame = ttk.Frame(self.frame)
        quality_frame.pack(anchor=tk.W, fill=tk.X, pady=5)

        ttk.Label(quality_frame, text="General Quality:").pack(side=tk.LEFT)

        self.quality_var = tk.StringVar()
        ttk.Combobox(
            quality_frame,
            textvariable=self.quality_var,
            values=list(QUALITY_CHOICES),
            state="readonly",
            width=22
        ).pack(side=tk.LEFT, padx=10)

        self.preserve_images_var = tk.BooleanVar(value=True)
        ttk.Checkbutton(
            self.frame,
            text="Keep embedded images",
            variable=self.preserve_images_var
        ).pack(anchor=tk.W, pady=5)

        # === Excel Options ===
        self.excel_frame = ttk.Frame(self.frame)

        ttk.Label(self.excel_frame, text="Workbook Range:").pack(side=tk.LEFT)

        self.excel_mode_var = tk.StringVar()
        ttk.Combobox(
            self.excel_frame,
            textvariable=self.excel_mode_var,
            values=list(EXCEL_MODE_CHOICES),
            state="readonly",
            width=28
        ).pack(side=tk.LEFT, padx=10)

        # === Presentation Options ===
        self.ppt_frame = ttk.Frame(self.frame)

        ttk.Label(self.ppt_frame, text="Slide Layout:").pack(side=tk.LEFT)

        self.ppt_layout_var = tk.StringVar()
        ttk.Combobox(
            self.ppt_frame,
            textvariable=self.ppt_layout_var,
            values=list(PPT_LAYOUT_CHOICES),
            state="readonly",
            width=28
        ).pack(side=tk.LEFT, padx=10)

        ttk.Button(
            self.frame,
            text="Reset to Defaults",
            command=self.reset_defaults
        ).pack(anchor=tk.E, pady=(10, 0))

    def _load_current_settings(self):
        """Load current settings into UI."""
        self.quality_var.set(_label_for(QUALITY_CHOICES, self.current['quality']))
        self.excel_mode_var.set(_label_for(EXCEL_MODE_CHOICES, self.current['excel_mode']))
        self.ppt_layout_var.set(_label_for(PPT_LAYOUT_CHOICES, self.current['ppt_layout']))
        self.preserve_images_var.set(bool(self.current['preserve_images']))

    def reset_defaults(self):
        """Reset all settings to defaults."""
        self.current = dict(DEFAULT_SETTINGS)
        self._load_current_settings()

    def show_for(self, file_type: FileType):
        """Show only the sections relevant to the file type."""
        self.excel_frame.pack_forget()
        self.ppt_frame.pack_forget()

        if file_type == FileType.XLSX:
            self.excel_frame.pack(anchor=tk.W, fill=tk.X, pady=5)
        elif file_type == FileType.PPTX:
            self.ppt_frame.pack(anchor=tk.W, fill=tk.X, pady=5)

    def get_settings(self) -> Dict[str, Any]:
        """Collect settings as option values."""
        self.current = {
            'quality': QUALITY_CHOICES[self.quality_var.get()],
            'excel_mode': EXCEL_MODE_CHOICES[self.excel_mode_var.get()],
            'ppt_layout': PPT_LAYOUT_CHOICES[self.ppt_layout_var.get()],
            'preserve_images': self.preserve_images_var.get(),
        }
        return dict(self.current)
