"""
PDF Paginator Module

Slices one tall bitmap into A4 pages and assembles the output PDF.
"""

import io
import math
import tempfile
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, List, Union
from dataclasses import dataclass

from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from utils.file_utils import ensure_dir
from .models import Quality, PageImage, OutputArtifact

logger = logging.getLogger(__name__)

PAGE_WIDTH_MM = 210
PAGE_HEIGHT_MM = 297


class RenderHint(Enum):
    """Speed/size trade-off for image encoding"""
    FAST = "FAST"
    SLOW = "SLOW"


@dataclass(frozen=True)
class EncodingSettings:
    """JPEG and page stream settings for a quality tier"""
    jpeg_quality: int
    render_hint: RenderHint

    @property
    def optimize(self) -> bool:
        return self.render_hint == RenderHint.SLOW

    @property
    def page_compression(self) -> int:
        return 1 if self.render_hint == RenderHint.SLOW else 0


def encoding_for_quality(quality: Quality) -> EncodingSettings:
    """Compact output uses low JPEG quality and the fast path."""
    if quality == Quality.SMALL:
        return EncodingSettings(jpeg_quality=60, render_hint=RenderHint.FAST)
    return EncodingSettings(jpeg_quality=95, render_hint=RenderHint.SLOW)


def image_height_mm(width: int, height: int) -> float:
    """Height of the image when scaled to the A4 page width."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {width}x{height}")
    return height * PAGE_WIDTH_MM / width


def page_count(width: int, height: int) -> int:
    """Number of A4 pages needed to show the whole image."""
    # Rounding keeps exact multiples of a page from spilling onto a blank page
    pages = math.ceil(round(image_height_mm(width, height) / PAGE_HEIGHT_MM, 6))
    return max(1, pages)


def page_offsets(width: int, height: int) -> List[float]:
    """Vertical image offset (mm, from the page top) for every page."""
    return [-i * PAGE_HEIGHT_MM for i in range(page_count(width, height))]


class PDFPaginator:
    """
    Builds a multi-page A4 PDF from one tall image.

    Every page shows the same image shifted up by one page height, so the
    content is spread across pages by crop position, not by reflow.
    """

    def __init__(self, output_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the paginator.

        Args:
            output_dir: Directory for the temporary output files
                (default: system temp directory)
        """
        self.output_dir = ensure_dir(output_dir) if output_dir else None

    def paginate(
        self,
        page_image: PageImage,
        quality: Quality,
        file_name: str = "document.pdf"
    ) -> OutputArtifact:
        """
        Assemble the PDF.

        Args:
            page_image: Rendered bitmap
            quality: Quality tier (controls JPEG quality and render hint)
            file_name: Suggested download name

        Returns:
            OutputArtifact backed by a temporary file
        """
        settings = encoding_for_quality(quality)
        img_height = image_height_mm(page_image.width, page_image.height)
        offsets = page_offsets(page_image.width, page_image.height)

        logger.info(
            f"Paginating {page_image.width}x{page_image.height}px image "
            f"into {len(offsets)} A4 pages ({settings.render_hint.value}, "
            f"JPEG q={settings.jpeg_quality})"
        )

        jpeg_data = self._encode_jpeg(page_image.image, settings)
        image_reader = ImageReader(io.BytesIO(jpeg_data))

        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4, pageCompression=settings.page_compression)
        pdf.setTitle(Path(file_name).stem)
        pdf.setCreator("DocuConvert Pro")

        for position in offsets:
            # reportlab measures from the bottom-left corner
            y = PAGE_HEIGHT_MM - (position + img_height)
            pdf.drawImage(
                image_reader,
                0,
                y * mm,
                width=PAGE_WIDTH_MM * mm,
                height=img_height * mm
            )
            pdf.showPage()

        pdf.save()
        data = buffer.getvalue()

        output_path = self._write_temp_file(data)
        logger.info(f"Created PDF: {output_path} ({len(data)} bytes)")

        return OutputArtifact(
            data=data,
            file_name=file_name,
            page_count=len(offsets),
            path=output_path
        )

    def _encode_jpeg(self, image: Image.Image, settings: EncodingSettings) -> bytes:
        """Encode the bitmap as JPEG."""
        if image.mode in ('RGBA', 'P', 'LA'):
            background = Image.new('RGB', image.size, (255, 255, 255))
            if image.mode == 'P':
                image = image.convert('RGBA')
            background.paste(image, mask=image.split()[-1])
            image = background
        elif image.mode != 'RGB':
            image = image.convert('RGB')

        out = io.BytesIO()
        image.save(out, 'JPEG', quality=settings.jpeg_quality, optimize=settings.optimize)
        return out.getvalue()

    def _write_temp_file(self, data: bytes) -> Path:
        """Write the PDF where the viewer can pick it up."""
        with tempfile.NamedTemporaryFile(
            prefix="docuconvert_",
            suffix=".pdf",
            dir=str(self.output_dir) if self.output_dir else None,
            delete=False
        ) as f:
            f.write(data)
        return Path(f.name)
