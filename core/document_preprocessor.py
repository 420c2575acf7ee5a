"""
Document Preprocessor Module

Turns raw office documents into styled HTML fragments.
Supports: DOCX (mammoth), XLS(X) (pandas), PPT(X) (placeholder layout)
"""

import io
import html
from datetime import datetime
import logging
import zipfile
from typing import Optional, Callable, List

import mammoth
import pandas as pd
from bs4 import BeautifulSoup

from .exceptions import UnsupportedFormatError, MalformedDocumentError
from .format_detector import FileType
from .models import ConversionOptions, ExcelMode, PptLayout, StyledFragment

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]

# Container signatures
ZIP_SIGNATURE = b'PK\x03\x04'
OLE2_SIGNATURE = b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1'

DOCX_WRAPPER_STYLE = "font-family: 'Inter', 'Times New Roman', serif; max-width: 800px; margin: 0 auto;"

SPREADSHEET_STYLESHEET = """
.sheet-container { margin-bottom: 50px; page-break-after: always; }
.sheet-title { color: #1e293b; font-family: sans-serif; font-size: 18pt; margin-bottom: 15px; border-bottom: 2px solid #e2e8f0; padding-bottom: 10px; }
table { border-collapse: collapse; width: 100%; font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; font-size: 10pt; }
td, th { border: 1px solid #cbd5e1; padding: 6px 10px; text-align: left; min-width: 60px; }
th { background-color: #f8fafc; font-weight: 600; color: #475569; }
tr:nth-child(even) { background-color: #f1f5f9; }
"""

PRESENTATION_STYLESHEET = """
.slide { background: #fff; border: 1px solid #e2e8f0; border-radius: 4px; padding: 40px; box-sizing: border-box; }
.slide-header { font-family: 'Inter', sans-serif; font-weight: 800; font-size: 24pt; color: #1e293b; margin-bottom: 20px; }
.slide-body { color: #475569; font-size: 14pt; }
.chart-placeholder { height: 200px; line-height: 200px; text-align: center; background: #f8fafc; border: 2px dashed #cbd5e1; border-radius: 12px; color: #94a3b8; }
"""

# 16:9 slides sized for the 1200px rendering width
SLIDE_STYLES = {
    PptLayout.SINGLE: "width: 100%; height: 675px; margin-bottom: 40px; page-break-after: always;",
    PptLayout.HANDOUT: "width: 48%; height: 324px; display: inline-block; vertical-align: top; margin: 1%;",
}


def _format_cell(value):
    """Show dates without a time part when the time is midnight."""
    if pd.isna(value) or not isinstance(value, datetime):
        return value
    if value.hour == value.minute == value.second == value.microsecond == 0:
        return value.strftime("%Y-%m-%d")
    return value.strftime("%Y-%m-%d %H:%M:%S")


class DocumentPreprocessor:
    """
    Builds the styled fragment for each supported office format.
    Format handlers are looked up by FileType.
    """

    FORMAT_HANDLERS = {
        FileType.DOCX: '_prepare_docx',
        FileType.XLSX: '_prepare_spreadsheet',
        FileType.PPTX: '_prepare_presentation',
    }

    def preprocess(
        self,
        file_type: FileType,
        data: bytes,
        options: ConversionOptions,
        report_progress: Optional[ProgressCallback] = None
    ) -> StyledFragment:
        """
        Convert document bytes into a styled fragment.

        Args:
            file_type: Detected document format
            data: Raw file content
            options: Conversion options
            report_progress: Optional callback(percent, message)

        Returns:
            StyledFragment with the renderable HTML

        Raises:
            UnsupportedFormatError: No handler for file_type
            MalformedDocumentError: The document could not be decoded
        """
        method_name = self.FORMAT_HANDLERS.get(file_type)
        if method_name is None:
            raise UnsupportedFormatError(f"Unsupported file type: {file_type.value}")

        report = report_progress or (lambda progress, message: None)
        fragment = getattr(self, method_name)(data, options, report)

        if not options.preserve_images:
            fragment = self._strip_images(fragment)

        return fragment

    def get_supported_types(self) -> List[FileType]:
        """Get list of formats with a handler."""
        return list(self.FORMAT_HANDLERS.keys())

    # === Word Documents ===

    def _prepare_docx(
        self,
        data: bytes,
        options: ConversionOptions,
        report: ProgressCallback
    ) -> StyledFragment:
        """Convert DOCX to HTML using mammoth."""
        report(30, 'Parsing Word document structure...')

        # A corrupt container can hang the ZIP reader inside mammoth
        if not data.startswith(ZIP_SIGNATURE) or not zipfile.is_zipfile(io.BytesIO(data)):
            raise MalformedDocumentError("File is not a valid DOCX document (damaged ZIP container)")

        try:
            result = mammoth.convert_to_html(io.BytesIO(data))
        except Exception as e:
            raise MalformedDocumentError(f"Could not read Word document: {e}") from e

        for message in result.messages:
            logger.debug(f"mammoth: {message}")

        body = f'<div style="{DOCX_WRAPPER_STYLE}">{result.value}</div>'
        report(60, 'Reconstructing layouts and fonts...')

        return StyledFragment(body=body, source_type=FileType.DOCX)

    # === Spreadsheets ===

    def _prepare_spreadsheet(
        self,
        data: bytes,
        options: ConversionOptions,
        report: ProgressCallback
    ) -> StyledFragment:
        """Convert XLS/XLSX sheets to HTML tables using pandas."""
        report(30, 'Initializing spreadsheet parser...')

        engine = self._excel_engine(data)
        try:
            workbook = pd.ExcelFile(io.BytesIO(data), engine=engine)
        except Exception as e:
            raise MalformedDocumentError(f"Could not read spreadsheet: {e}") from e

        with workbook:
            sheet_names = list(workbook.sheet_names)
            if not sheet_names:
                raise MalformedDocumentError("Workbook contains no sheets")

            logger.info(f"Workbook has {len(sheet_names)} sheets: {sheet_names}")

            if options.excel_mode == ExcelMode.ALL:
                selected = sheet_names
            else:
                selected = sheet_names[:1]

            sections = []
            for i, sheet_name in enumerate(selected):
                report(int(30 + (i / len(selected)) * 40), f"Processing sheet: {sheet_name}")

                try:
                    df = workbook.parse(sheet_name, header=None)
                except Exception as e:
                    raise MalformedDocumentError(f"Could not read sheet '{sheet_name}': {e}") from e

                sections.append(
                    '<div class="sheet-container">'
                    f'<h2 class="sheet-title">Sheet: {html.escape(str(sheet_name))}</h2>'
                    f'{self._sheet_to_html(df)}'
                    '</div>'
                )

        return StyledFragment(
            body="\n".join(sections),
            source_type=FileType.XLSX,
            stylesheet=SPREADSHEET_STYLESHEET,
            section_count=len(sections)
        )

    def _excel_engine(self, data: bytes) -> str:
        """Pick the pandas engine from the container signature."""
        if data.startswith(ZIP_SIGNATURE):
            return 'openpyxl'
        if data.startswith(OLE2_SIGNATURE):
            return 'xlrd'
        raise MalformedDocumentError("File is not a valid Excel workbook")

    def _sheet_to_html(self, df: pd.DataFrame) -> str:
        """Render one sheet's used range; the first row becomes the header."""
        if df.empty:
            return '<table><tr><td>(Empty sheet)</td></tr></table>'

        df = df.map(_format_cell)
        header = ["" if pd.isna(value) else str(value) for value in df.iloc[0]]
        rows = df.iloc[1:].copy()
        rows.columns = header

        return rows.to_html(index=False, na_rep="", border=0, escape=True)

    # === Presentations ===

    def _prepare_presentation(
        self,
        data: bytes,
        options: ConversionOptions,
        report: ProgressCallback
    ) -> StyledFragment:
        """
        Build the presentation export layout.

        The deck itself is not parsed: a fixed two-slide layout is emitted
        for every input. Only the slide geometry follows ppt_layout.
        """
        report(30, 'Simulating presentation rendering...')
        logger.warning(
            "Presentation content is not parsed; rendering placeholder slides "
            f"({len(data)} bytes ignored)"
        )

        slide_style = SLIDE_STYLES[options.ppt_layout]

        body = f"""
<div style="text-align: center; margin-bottom: 40px;">
  <h1 style="font-size: 32pt; font-weight: 900; color: #4f46e5;">Presentation Export</h1>
  <p style="color: #64748b;">Generated with DocuConvert Pro Engine</p>
</div>
<div class="slide" style="{slide_style}">
  <div class="slide-header">Title Slide</div>
  <div class="slide-body">
    <ul>
      <li>Project Overview</li>
      <li>Key Deliverables</li>
      <li>Strategic Alignment</li>
    </ul>
  </div>
</div>
<div class="slide" style="{slide_style}">
  <div class="slide-header">Data Visualizations</div>
  <div class="slide-body">
    <div class="chart-placeholder">Chart Re-vectorization in Progress...</div>
  </div>
</div>
"""
        report(60, 'Optimizing slide assets...')

        return StyledFragment(
            body=body,
            source_type=FileType.PPTX,
            stylesheet=PRESENTATION_STYLESHEET,
            section_count=2
        )

    # === Options ===

    def _strip_images(self, fragment: StyledFragment) -> StyledFragment:
        """Remove all <img> elements from a fragment."""
        soup = BeautifulSoup(fragment.body, 'html.parser')

        removed_count = 0
        for img in soup.find_all('img'):
            img.decompose()
            removed_count += 1

        if not removed_count:
            return fragment

        logger.info(f"Removed {removed_count} images from {fragment.source_type.value} content")
        return StyledFragment(
            body=str(soup),
            source_type=fragment.source_type,
            stylesheet=fragment.stylesheet,
            section_count=fragment.section_count
        )
