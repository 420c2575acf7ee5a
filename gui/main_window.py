"""
Main Window Module

Main application window for DocuConvert Pro.
Flow: pick a document -> adjust settings -> convert -> open or save the PDF.
"""

import logging
import subprocess
import tkinter as tk
from tkinter import ttk, filedialog, messagebox
from typing import Optional

from core.conversion_pipeline import ConversionPipeline
from core.conversion_session import ConversionSession
from core.document_preprocessor import DocumentPreprocessor
from core.exceptions import RenderLibraryUnavailableError, UnsupportedFormatError
from core.format_detector import FileType, validate_selection, SUPPORTED_EXTENSIONS
from core.models import ConversionOptions, ConversionState, ConversionStatus, SourceFile
from core.page_rasterizer import WeasyPrintRenderer
from core.pdf_paginator import PDFPaginator
from utils.file_utils import get_file_size_mb, open_with_system
from .progress_dialog import ProgressDialog
from .settings_panel import SettingsPanel

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

FILE_TYPE_LABELS = {
    FileType.DOCX: "Word Document",
    FileType.XLSX: "Excel Workbook",
    FileType.PPTX: "PowerPoint Presentation",
}


class MainWindow:
    """Main application window."""

    def __init__(self, root: tk.Tk, timeout: Optional[float] = None):
        """
        Initialize the main window.

        Args:
            root: Tkinter root window
            timeout: Seconds before a conversion is abandoned (None = no limit)
        """
        self.root = root
        self.root.title("DocuConvert Pro - Office to PDF")
        self.root.geometry("620x560")
        self.root.minsize(560, 480)

        # State
        self.source: Optional[SourceFile] = None
        self.progress_dialog: Optional[ProgressDialog] = None
        self.session: Optional[ConversionSession] = None

        self.settings = {
            'quality': 'medium',
            'excel_mode': 'active',
            'ppt_layout': 'single',
            'preserve_images': True,
        }

        self._setup_styles()
        self._create_widgets()
        self._create_session(timeout)
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        self._center_window()

    def _setup_styles(self):
        """Setup ttk styles."""
        style = ttk.Style()

        available_themes = style.theme_names()
        if 'aqua' in available_themes:  # macOS
            style.theme_use('aqua')
        elif 'vista' in available_themes:  # Windows
            style.theme_use('vista')
        elif 'clam' in available_themes:
            style.theme_use('clam')

        style.configure('Title.TLabel', font=('Helvetica', 16, 'bold'))
        style.configure('Subtitle.TLabel', font=('Helvetica', 11))
        style.configure('Status.TLabel', font=('Helvetica', 10))
        style.configure('Big.TButton', font=('Helvetica', 12), padding=10)

    def _create_session(self, timeout: Optional[float]):
        """Build the conversion pipeline. Without a renderer, converting stays disabled."""
        try:
            renderer = WeasyPrintRenderer()
        except RenderLibraryUnavailableError as e:
            logger.error(f"Rendering unavailable: {e}")
            self._update_status("Rendering engine unavailable - see Help > System Diagnostics")
            self.convert_btn.config(state=tk.DISABLED)
            self.root.after(500, lambda: messagebox.showerror("Rendering Unavailable", str(e)))
            return

        pipeline = ConversionPipeline(DocumentPreprocessor(), renderer, PDFPaginator())
        self.session = ConversionSession(
            pipeline,
            on_state_change=self._on_state_change,
            timeout=timeout
        )

    # === Layout ===

    def _create_widgets(self):
        """Create all UI widgets."""
        self._create_menu_bar()

        self.main_frame = ttk.Frame(self.root, padding="10")
        self.main_frame.pack(fill=tk.BOTH, expand=True)

        title_frame = ttk.Frame(self.main_frame)
        title_frame.pack(fill=tk.X, pady=(0, 10))

        ttk.Label(title_frame, text="DocuConvert Pro", style='Title.TLabel').pack()
        ttk.Label(
            title_frame,
            text="Word, Excel and PowerPoint to PDF",
            style='Subtitle.TLabel'
        ).pack()

        # Upload and settings live here; replaced by the result or error panel
        self.input_frame = ttk.Frame(self.main_frame)
        self._create_input_panel(self.input_frame)

        self.result_frame = ttk.Frame(self.main_frame, padding=20)
        self._create_result_panel(self.result_frame)

        self.error_frame = ttk.Frame(self.main_frame, padding=20)
        self._create_error_panel(self.error_frame)

        self._show_panel(self.input_frame)

        footer_frame = ttk.Frame(self.main_frame)
        footer_frame.pack(side=tk.BOTTOM, fill=tk.X, pady=(5, 0))

        self.status_label = ttk.Label(footer_frame, text="Ready", style='Status.TLabel')
        self.status_label.pack(side=tk.LEFT)

        ttk.Label(footer_frame, text=f"v{APP_VERSION}", foreground="gray").pack(side=tk.RIGHT)

    def _create_input_panel(self, frame: ttk.Frame):
        file_frame = ttk.LabelFrame(frame, text="Document", padding=10)
        file_frame.pack(fill=tk.X, pady=(0, 10))

        self.browse_btn = ttk.Button(
            file_frame,
            text="Select File...",
            command=self._browse_file
        )
        self.browse_btn.pack(anchor=tk.W)

        # File card
        self.file_name_label = ttk.Label(
            file_frame,
            text="No file selected",
            font=('Helvetica', 11, 'bold')
        )
        self.file_name_label.pack(anchor=tk.W, pady=(10, 0))

        self.file_details_label = ttk.Label(file_frame, text="", foreground="gray")
        self.file_details_label.pack(anchor=tk.W)

        self.settings_panel = SettingsPanel(frame, self.settings)
        self.settings_panel.frame.pack(fill=tk.X, pady=(0, 10))

        self.convert_btn = ttk.Button(
            frame,
            text="Convert to PDF",
            command=self._start_conversion,
            style='Big.TButton',
            state=tk.DISABLED
        )
        self.convert_btn.pack(pady=10)

    def _create_result_panel(self, frame: ttk.Frame):
        ttk.Label(frame, text="Conversion Complete", style='Title.TLabel').pack(pady=(0, 5))

        self.result_details_label = ttk.Label(frame, text="", style='Subtitle.TLabel')
        self.result_details_label.pack(pady=(0, 15))

        btn_frame = ttk.Frame(frame)
        btn_frame.pack()

        ttk.Button(btn_frame, text="Open PDF", command=self._open_pdf).pack(side=tk.LEFT, padx=5)
        ttk.Button(btn_frame, text="Save As...", command=self._save_pdf).pack(side=tk.LEFT, padx=5)
        ttk.Button(btn_frame, text="Print", command=self._print_pdf).pack(side=tk.LEFT, padx=5)

        ttk.Button(
            frame,
            text="Convert Another File",
            command=self._convert_another
        ).pack(pady=(20, 0))

    def _create_error_panel(self, frame: ttk.Frame):
        ttk.Label(
            frame,
            text="Conversion Failed",
            style='Title.TLabel',
            foreground="#b00020"
        ).pack(pady=(0, 10))

        self.error_label = ttk.Label(frame, text="", wraplength=480, justify=tk.CENTER)
        self.error_label.pack(pady=(0, 15))

        ttk.Button(
            frame,
            text="Try Another File",
            command=self._convert_another
        ).pack()

    def _show_panel(self, panel: ttk.Frame):
        for frame in (self.input_frame, self.result_frame, self.error_frame):
            frame.pack_forget()
        panel.pack(fill=tk.BOTH, expand=True)

    def _create_menu_bar(self):
        """Create the application menu bar."""
        menubar = tk.Menu(self.root)
        self.root.config(menu=menubar)

        help_menu = tk.Menu(menubar, tearoff=0)
        menubar.add_cascade(label="Help", menu=help_menu)

        help_menu.add_command(label="System Diagnostics...", command=self._show_diagnostics)
        help_menu.add_separator()
        help_menu.add_command(label="About", command=self._show_about)

    def _show_diagnostics(self):
        """Show system diagnostics dialog."""
        try:
            from utils.system_info import generate_diagnostic_report
            report = generate_diagnostic_report()
        except Exception as e:
            report = f"Error generating diagnostics: {e}"

        diag_window = tk.Toplevel(self.root)
        diag_window.title("System Diagnostics")
        diag_window.geometry("700x500")
        diag_window.transient(self.root)

        text_frame = ttk.Frame(diag_window)
        text_frame.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)

        scrollbar = ttk.Scrollbar(text_frame)
        scrollbar.pack(side=tk.RIGHT, fill=tk.Y)

        text_widget = tk.Text(
            text_frame,
            wrap=tk.NONE,
            font=('Courier', 10),
            yscrollcommand=scrollbar.set
        )
        text_widget.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        scrollbar.config(command=text_widget.yview)

        text_widget.insert('1.0', report)
        text_widget.config(state=tk.DISABLED)

        btn_frame = ttk.Frame(diag_window)
        btn_frame.pack(fill=tk.X, padx=10, pady=(0, 10))

        def copy_to_clipboard():
            self.root.clipboard_clear()
            self.root.clipboard_append(report)
            messagebox.showinfo("Copied", "Diagnostic report copied to clipboard!")

        def save_to_file():
            filepath = filedialog.asksaveasfilename(
                defaultextension=".txt",
                filetypes=[("Text files", "*.txt"), ("All files", "*.*")],
                initialfile="docuconvert_diagnostics.txt"
            )
            if filepath:
                try:
                    with open(filepath, 'w') as f:
                        f.write(report)
                    messagebox.showinfo("Saved", f"Report saved to:\n{filepath}")
                except OSError as e:
                    messagebox.showerror("Error", f"Could not save file: {e}")

        ttk.Button(btn_frame, text="Copy to Clipboard", command=copy_to_clipboard).pack(side=tk.LEFT, padx=5)
        ttk.Button(btn_frame, text="Save to File", command=save_to_file).pack(side=tk.LEFT, padx=5)
        ttk.Button(btn_frame, text="Close", command=diag_window.destroy).pack(side=tk.RIGHT, padx=5)

    def _show_about(self):
        """Show about dialog."""
        messagebox.showinfo(
            "About DocuConvert Pro",
            f"DocuConvert Pro v{APP_VERSION}\n\n"
            "Convert Word documents and Excel workbooks to A4 PDFs.\n"
            "Everything runs locally; no file leaves this computer."
        )

    def _center_window(self):
        """Center the window on screen."""
        self.root.update_idletasks()
        width = self.root.winfo_width()
        height = self.root.winfo_height()
        x = (self.root.winfo_screenwidth() // 2) - (width // 2)
        y = (self.root.winfo_screenheight() // 2) - (height // 2)
        self.root.geometry(f'{width}x{height}+{x}+{y}')

    # === File selection ===

    def _browse_file(self):
        """Open file dialog to select an office document."""
        patterns = " ".join(f"*{ext}" for ext in SUPPORTED_EXTENSIONS)
        filepath = filedialog.askopenfilename(
            title="Select Document",
            filetypes=[
                ("Office documents", patterns),
                ("All files", "*.*"),
            ]
        )
        if not filepath:
            return

        try:
            validate_selection(filepath)
        except UnsupportedFormatError as e:
            messagebox.showerror("Unsupported File", str(e))
            return

        try:
            self.source = SourceFile.from_path(filepath)
        except OSError as e:
            messagebox.showerror("Error", f"Could not read file:\n{e}")
            return

        self._show_file_card()

    def _show_file_card(self):
        file_type = self.source.file_type
        self.file_name_label.config(text=self.source.name)
        self.file_details_label.config(
            text=f"{get_file_size_mb(self.source.size)}  |  {FILE_TYPE_LABELS.get(file_type, 'Unknown')}"
        )
        self.settings_panel.show_for(file_type)

        if self.session is not None:
            self.convert_btn.config(state=tk.NORMAL)
        self._update_status(f"Selected: {self.source.name}")

    def _clear_file(self):
        self.source = None
        self.file_name_label.config(text="No file selected")
        self.file_details_label.config(text="")
        self.settings_panel.show_for(FileType.UNKNOWN)
        self.convert_btn.config(state=tk.DISABLED)

    # === Conversion ===

    def _start_conversion(self):
        """Start conversion in a background thread."""
        if self.source is None or self.session is None:
            return

        self.settings = self.settings_panel.get_settings()
        try:
            options = ConversionOptions.from_settings(self.settings)
        except ValueError as e:
            messagebox.showerror("Error", str(e))
            return

        self._set_ui_state(False)
        self.progress_dialog = ProgressDialog(
            self.root,
            self.source.name,
            on_abandon=self._abandon_conversion
        )

        try:
            self.session.start(self.source, options)
        except RuntimeError as e:
            logger.warning(str(e))
            self._close_progress()
            self._set_ui_state(True)

    def _on_state_change(self, state: ConversionState):
        """Handle state changes from the session (any thread)."""
        # Schedule UI update on main thread
        self.root.after(0, lambda: self._apply_state(state))

    def _apply_state(self, state: ConversionState):
        """Update the UI for a state on the main thread."""
        if state.status == ConversionStatus.PROCESSING:
            if self.progress_dialog:
                self.progress_dialog.update_progress(state.progress, state.message)
            self._update_status(state.message)
            return

        # The session may have moved on since this update was scheduled
        if state is not self.session.state:
            return

        self._close_progress()
        self._set_ui_state(True)

        if state.status == ConversionStatus.COMPLETED:
            artifact = self.session.artifact
            pages = artifact.page_count if artifact else 0
            self.result_details_label.config(
                text=f"{artifact.file_name if artifact else ''}\n"
                     f"{pages} page{'s' if pages != 1 else ''}"
            )
            self._show_panel(self.result_frame)
            self._update_status(state.message)

        elif state.status == ConversionStatus.ERROR:
            self.error_label.config(text=state.error or "")
            self._show_panel(self.error_frame)
            self._update_status(state.message)

        else:
            self._show_panel(self.input_frame)
            self._update_status("Ready")

    def _abandon_conversion(self):
        """Abandon the running conversion and return to idle."""
        if self.session:
            self.session.reset()
        self._close_progress()
        self._update_status("Conversion abandoned")

    def _close_progress(self):
        if self.progress_dialog:
            self.progress_dialog.close()
            self.progress_dialog = None

    def _convert_another(self):
        """Discard the current result and start over."""
        if self.session:
            self.session.reset()
        self._clear_file()
        self._show_panel(self.input_frame)

    # === Result actions ===

    def _open_pdf(self):
        """Open the generated PDF with the system viewer."""
        self._hand_off_pdf('open')

    def _print_pdf(self):
        """Send the generated PDF to the system print dialog or default printer."""
        self._hand_off_pdf('print')

    def _hand_off_pdf(self, action: str):
        artifact = self.session.artifact if self.session else None
        if artifact is None or artifact.path is None:
            messagebox.showerror("Error", "The PDF is no longer available.")
            return

        try:
            open_with_system(artifact.path, action)
            if action == 'print':
                self._update_status(f"Sent to printer: {artifact.file_name}")
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Could not {action} PDF: {e}")
            messagebox.showerror("Error", f"Could not {action} PDF:\n{e}")

    def _save_pdf(self):
        """Save the generated PDF under a user-chosen name."""
        artifact = self.session.artifact if self.session else None
        if artifact is None:
            return

        filepath = filedialog.asksaveasfilename(
            title="Save PDF",
            defaultextension=".pdf",
            initialfile=artifact.file_name,
            filetypes=[("PDF files", "*.pdf")]
        )
        if not filepath:
            return

        try:
            saved = artifact.save_as(filepath)
            self._update_status(f"Saved: {saved}")
        except OSError as e:
            messagebox.showerror("Error", f"Could not save PDF:\n{e}")

    # === Helpers ===

    def _update_status(self, message: str):
        """Update status label."""
        self.status_label.config(text=message)

    def _set_ui_state(self, enabled: bool):
        """Enable or disable input controls during conversion."""
        state = tk.NORMAL if enabled else tk.DISABLED
        self.browse_btn.config(state=state)
        if self.source is not None and self.session is not None:
            self.convert_btn.config(state=state)

    def _on_close(self):
        """Handle window close."""
        if self.session and self.session.is_busy:
            if not messagebox.askyesno(
                "Conversion in Progress",
                "A conversion is in progress. Abandon it and exit?"
            ):
                return

        if self.session:
            # Releases the temporary PDF
            self.session.reset()
        self.root.destroy()
