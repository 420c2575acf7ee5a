"""
Page Rasterizer Module

Renders styled fragments into a single tall bitmap.
Uses WeasyPrint for HTML/CSS layout and pdf2image (poppler) for rasterizing.
"""

import os
import math
import sys
import shutil
import tempfile
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, List

from PIL import Image, ImageChops
from pdf2image import convert_from_path
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPopplerTimeoutError,
    PDFPageCountError,
    PDFSyntaxError,
)

from .exceptions import (
    RenderLibraryUnavailableError,
    ConversionTimeoutError,
    MalformedDocumentError,
)
from .models import Quality, StyledFragment, PageImage

# WeasyPrint needs GTK/Pango native libraries, which may be missing
WEASYPRINT_AVAILABLE = False
WEASYPRINT_DEFAULT_URL_FETCHER = None
try:
    from weasyprint import HTML, CSS, default_url_fetcher
    from weasyprint.text.fonts import FontConfiguration
    WEASYPRINT_AVAILABLE = True
    WEASYPRINT_DEFAULT_URL_FETCHER = default_url_fetcher
except (ImportError, OSError):
    # ImportError: package not installed
    # OSError: native libraries (libgobject, etc.) not found
    pass

logger = logging.getLogger(__name__)

QUALITY_SCALE = {
    Quality.SMALL: 1,
    Quality.MEDIUM: 2,
    Quality.LARGE: 3,
}

# CSS pixels per inch
CSS_DPI = 96

# A4 portrait height / width
A4_RATIO = 297 / 210


def scale_for_quality(quality: Quality) -> int:
    """Device-pixel scale factor for a quality tier."""
    return QUALITY_SCALE[quality]


def find_poppler() -> Optional[str]:
    """Find Poppler binaries path, checking bundled location first."""
    # Check if running as PyInstaller bundle
    if getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS'):
        bundled_path = os.path.join(sys._MEIPASS, 'bin', 'poppler')
        if os.path.isdir(bundled_path):
            logger.info(f"Using bundled Poppler at: {bundled_path}")
            return bundled_path

    if sys.platform == 'win32':
        common_paths = [
            r"C:\Program Files\poppler\bin",
            r"C:\Program Files\poppler-24.02.0\Library\bin",
            r"C:\poppler\bin",
        ]
        for path in common_paths:
            if os.path.isdir(path) and os.path.isfile(os.path.join(path, 'pdftoppm.exe')):
                logger.info(f"Found Poppler at: {path}")
                return path

    # On macOS/Linux, pdf2image finds it via PATH
    return None


def has_poppler(poppler_path: Optional[str] = None) -> bool:
    """Check whether pdftoppm can be run."""
    if poppler_path:
        return any(
            os.path.isfile(os.path.join(poppler_path, name))
            for name in ('pdftoppm', 'pdftoppm.exe')
        )
    return shutil.which('pdftoppm') is not None


class RenderSurface:
    """
    Temporary off-screen directory a fragment is laid out in.

    Used as a context manager; the directory is removed on exit whether
    rendering succeeded or not.
    """

    def __init__(self, prefix: str = "docuconvert_surface_"):
        self.prefix = prefix
        self.path: Optional[Path] = None

    def __enter__(self) -> "RenderSurface":
        self.path = Path(tempfile.mkdtemp(prefix=self.prefix))
        logger.debug(f"Mounted render surface at {self.path}")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unmount()
        return False

    def unmount(self):
        if self.path is not None and self.path.exists():
            shutil.rmtree(self.path, ignore_errors=True)
            logger.debug(f"Removed render surface {self.path}")

    def write_document(self, html_content: str, name: str = "fragment.html") -> Path:
        if self.path is None:
            raise RuntimeError("Render surface is not mounted")
        document_path = self.path / name
        document_path.write_text(html_content, encoding='utf-8')
        return document_path


class Renderer(ABC):
    """Produces a bitmap from a styled fragment."""

    @abstractmethod
    def render(self, fragment: StyledFragment, scale: int) -> PageImage:
        """
        Render a fragment at a device-pixel scale.

        Args:
            fragment: Content to render
            scale: Device pixels per CSS pixel

        Returns:
            One bitmap covering the whole fragment
        """


class WeasyPrintRenderer(Renderer):
    """
    Renders fragments with WeasyPrint and rasterizes the result with poppler.

    The fragment is laid out on pages of the surface width whose height is
    A4-proportional, so forced section breaks line up with output pages once
    the stacked bitmap is sliced into A4 pages.
    """

    def __init__(
        self,
        content_width: int = 1200,
        padding: int = 60,
        timeout: int = 120,
        poppler_path: Optional[str] = None
    ):
        """
        Initialize the renderer.

        Args:
            content_width: Logical content width in CSS pixels
            padding: Padding around the content in CSS pixels
            timeout: Maximum seconds poppler may spend rasterizing
            poppler_path: Directory containing poppler binaries (default: PATH)

        Raises:
            RenderLibraryUnavailableError: WeasyPrint or poppler is missing
        """
        if not WEASYPRINT_AVAILABLE:
            raise RenderLibraryUnavailableError(
                "WeasyPrint is not available. Install it with its GTK/Pango libraries."
            )

        self.poppler_path = poppler_path or find_poppler()
        if not has_poppler(self.poppler_path):
            raise RenderLibraryUnavailableError(
                "Poppler (pdftoppm) not found. Install with: "
                "brew install poppler (macOS) or apt-get install poppler-utils (Linux)"
            )

        self.content_width = content_width
        self.padding = padding
        self.timeout = timeout

    @property
    def surface_width(self) -> int:
        return self.content_width + 2 * self.padding

    @property
    def surface_page_height(self) -> int:
        # Floor keeps one full surface page within one A4 page
        return math.floor(self.surface_width * A4_RATIO)

    def render(self, fragment: StyledFragment, scale: int) -> PageImage:
        logger.info(
            f"Rendering {fragment.source_type.value} fragment at {scale}x "
            f"({self.surface_width}px wide)"
        )

        with RenderSurface() as surface:
            document_path = surface.write_document(self._build_document(fragment))
            pdf_path = surface.path / "surface.pdf"

            self._layout(document_path, pdf_path)
            pages = self._rasterize(pdf_path, scale, surface.path)

            image = self._stack_pages(pages)
            image = self._trim_trailing_space(image, self.padding * scale)

        logger.info(f"Rendered bitmap: {image.width}x{image.height}px")
        return PageImage.from_image(image)

    def _build_document(self, fragment: StyledFragment) -> str:
        """Build a complete HTML document around the fragment."""
        return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>
        html, body {{
            margin: 0;
            padding: 0;
            background: white;
        }}
        .conversion-container {{
            width: {self.content_width}px;
            padding: {self.padding}px;
            background: white;
            color: black;
            font-size: 12pt;
            line-height: 1.6;
        }}
        {fragment.stylesheet}
    </style>
</head>
<body>
    <div class="conversion-container">
        {fragment.body}
    </div>
</body>
</html>"""

    def _layout(self, document_path: Path, pdf_path: Path):
        """Lay out the HTML document into surface pages."""
        font_config = FontConfiguration()
        page_css = CSS(
            string=f"@page {{ size: {self.surface_width}px {self.surface_page_height}px; margin: 0; }}",
            font_config=font_config
        )

        try:
            html = HTML(
                filename=str(document_path),
                base_url=str(document_path.parent),
                url_fetcher=self._url_fetcher
            )
            html.write_pdf(str(pdf_path), stylesheets=[page_css], font_config=font_config)
        except Exception as e:
            raise MalformedDocumentError(f"Could not lay out document content: {e}") from e

    def _rasterize(self, pdf_path: Path, scale: int, output_folder: Path) -> List[Image.Image]:
        """Rasterize every surface page."""
        convert_kwargs = {
            'dpi': CSS_DPI * scale,
            'timeout': self.timeout,
            'output_folder': str(output_folder),
        }
        if self.poppler_path:
            convert_kwargs['poppler_path'] = self.poppler_path

        try:
            pages = convert_from_path(str(pdf_path), **convert_kwargs)
        except PDFInfoNotInstalledError as e:
            raise RenderLibraryUnavailableError(f"Poppler is not installed: {e}") from e
        except PDFPopplerTimeoutError as e:
            raise ConversionTimeoutError(
                f"Rasterizing took longer than {self.timeout} seconds"
            ) from e
        except (PDFPageCountError, PDFSyntaxError) as e:
            raise MalformedDocumentError(f"Rendered surface could not be read: {e}") from e

        # Load pixel data before the surface directory is removed
        for page in pages:
            page.load()

        logger.debug(f"Rasterized {len(pages)} surface pages at {CSS_DPI * scale} dpi")
        return pages

    def _stack_pages(self, pages: List[Image.Image]) -> Image.Image:
        """Stack page bitmaps vertically into one tall image."""
        if not pages:
            raise MalformedDocumentError("Rendering produced no pages")

        width = max(page.width for page in pages)
        height = sum(page.height for page in pages)

        stacked = Image.new('RGB', (width, height), (255, 255, 255))
        top = 0
        for page in pages:
            stacked.paste(page.convert('RGB'), (0, top))
            top += page.height

        return stacked

    def _trim_trailing_space(self, image: Image.Image, keep: int) -> Image.Image:
        """Cut blank space below the last content, keeping `keep` pixels."""
        background = Image.new(image.mode, image.size, (255, 255, 255))
        bbox = ImageChops.difference(image, background).getbbox()

        # A blank render keeps only the padding strip
        content_bottom = bbox[3] if bbox else 0
        bottom = min(image.height, max(1, content_bottom + keep))
        if bottom >= image.height:
            return image
        return image.crop((0, 0, image.width, bottom))

    def _url_fetcher(self, url: str, *args, **kwargs):
        """
        URL fetcher that never goes to the network.
        Only data: and local file: URLs are resolved.
        """
        if url.startswith(('data:', 'file:')):
            return WEASYPRINT_DEFAULT_URL_FETCHER(url, *args, **kwargs)

        logger.debug(f"Blocked external resource: {url[:100]}")
        return {'string': b'', 'mime_type': 'image/png'}
