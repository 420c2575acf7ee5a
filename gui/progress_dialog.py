"""
Progress Dialog Module

Modal window shown while a document converts. It mirrors the session's
progress and lets the user abandon the run.
"""

import itertools
import time
import tkinter as tk
from tkinter import ttk
from typing import Optional, Callable

TICK_MS = 500
SPINNER_FRAMES = ("", ".", "..", "...")


def format_elapsed(seconds: float) -> str:
    """Elapsed time as M:SS, e.g. '1:05'."""
    minutes, secs = divmod(int(max(seconds, 0)), 60)
    return f"{minutes}:{secs:02d}"


class ProgressDialog:
    """Modal dialog showing conversion progress."""

    def __init__(self, parent: tk.Tk, file_name: str, on_abandon: Optional[Callable[[], None]] = None):
        """
        Args:
            parent: Parent window
            file_name: Name of the document being converted
            on_abandon: Called when the user abandons the conversion
        """
        self.on_abandon = on_abandon
        self._started = time.monotonic()
        self._frames = itertools.cycle(SPINNER_FRAMES)

        self.dialog = tk.Toplevel(parent)
        self.dialog.title("Converting...")
        self.dialog.resizable(False, False)
        self.dialog.transient(parent)
        self.dialog.protocol("WM_DELETE_WINDOW", self._abandon)

        self._build(file_name)
        self._place_over(parent)

        self.dialog.grab_set()
        self._tick()

    def _build(self, file_name: str):
        body = ttk.Frame(self.dialog, padding=20)
        body.grid(sticky="nsew")
        body.columnconfigure(0, weight=1)

        ttk.Label(
            body,
            text=f"Converting {file_name}",
            font=('Helvetica', 12, 'bold')
        ).grid(row=0, column=0, columnspan=2, sticky="w", pady=(0, 10))

        self.progress_var = tk.DoubleVar(value=0)
        ttk.Progressbar(
            body,
            variable=self.progress_var,
            maximum=100,
            length=400,
            mode='determinate'
        ).grid(row=1, column=0, columnspan=2, sticky="ew")

        self.percent_var = tk.StringVar(value="0%")
        self.elapsed_var = tk.StringVar(value=format_elapsed(0))
        ttk.Label(body, textvariable=self.percent_var).grid(row=2, column=0, sticky="w", pady=(6, 0))
        ttk.Label(body, textvariable=self.elapsed_var, foreground="gray").grid(
            row=2, column=1, sticky="e", pady=(6, 0)
        )

        # Stage message followed by the spinner dots
        self.message = ""
        self.message_var = tk.StringVar(value="")
        ttk.Label(
            body,
            textvariable=self.message_var,
            foreground="gray",
            wraplength=400
        ).grid(row=3, column=0, columnspan=2, sticky="w", pady=(10, 0))

        ttk.Button(body, text="Abandon", command=self._abandon).grid(
            row=4, column=1, sticky="e", pady=(15, 0)
        )

    def _place_over(self, parent: tk.Tk):
        self.dialog.update_idletasks()
        width = self.dialog.winfo_reqwidth()
        height = self.dialog.winfo_reqheight()
        x = parent.winfo_rootx() + (parent.winfo_width() - width) // 2
        y = parent.winfo_rooty() + (parent.winfo_height() - height) // 2
        self.dialog.geometry(f"+{max(x, 0)}+{max(y, 0)}")

    def _tick(self):
        """Refresh the spinner and elapsed time while the dialog is open."""
        if not self.dialog.winfo_exists():
            return
        self.message_var.set(self.message + next(self._frames))
        self.elapsed_var.set(format_elapsed(time.monotonic() - self._started))
        self.dialog.after(TICK_MS, self._tick)

    def _abandon(self):
        if self.on_abandon:
            self.on_abandon()

    def update_progress(self, percentage: float, message: str):
        """Show the session's latest percentage and stage message."""
        if not self.dialog.winfo_exists():
            return
        self.progress_var.set(percentage)
        self.percent_var.set(f"{percentage:.0f}%")
        self.message = message
        self.message_var.set(message)

    def close(self):
        if self.dialog.winfo_exists():
            self.dialog.grab_release()
            self.dialog.destroy()
