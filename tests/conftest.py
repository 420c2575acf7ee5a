"""
Shared fixtures for the DocuConvert tests.
"""

import io
import threading

import pytest
from PIL import Image, ImageDraw


@pytest.fixture
def xlsx_bytes():
    """Workbook with three sheets: Summary, Data (header + rows) and an empty Notes."""
    from openpyxl import Workbook

    wb = Workbook()
    summary = wb.active
    summary.title = "Summary"
    summary.append(["Region", "Total"])
    summary.append(["North", 120])
    summary.append(["South", 80])

    data = wb.create_sheet("Data")
    data.append(["Name", "Amount"])
    data.append(["Widget <A>", 10.5])
    data.append(["Gadget", None])

    wb.create_sheet("Notes")

    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


def _png_bytes(size=(40, 30), color=(200, 30, 30)):
    out = io.BytesIO()
    Image.new('RGB', size, color).save(out, 'PNG')
    out.seek(0)
    return out


@pytest.fixture
def docx_bytes():
    """Word document with a heading and two paragraphs."""
    from docx import Document

    doc = Document()
    doc.add_heading("Quarterly Report", level=1)
    doc.add_paragraph("Revenue grew in every region.")
    doc.add_paragraph("Costs stayed flat.")

    out = io.BytesIO()
    doc.save(out)
    return out.getvalue()


@pytest.fixture
def docx_with_image_bytes():
    """Word document containing one embedded PNG."""
    from docx import Document

    doc = Document()
    doc.add_paragraph("Logo below.")
    doc.add_picture(_png_bytes())

    out = io.BytesIO()
    doc.save(out)
    return out.getvalue()


class FakeRenderer:
    """
    Renderer stand-in that needs neither WeasyPrint nor poppler.

    Draws one A4-proportional block per fragment section, so a fragment with
    N sections becomes exactly N output pages.
    """

    WIDTH = 420
    PAGE_HEIGHT = 594

    def __init__(self):
        self.calls = []

    def render(self, fragment, scale):
        from core.models import PageImage

        self.calls.append((fragment, scale))

        height = self.PAGE_HEIGHT * fragment.section_count
        image = Image.new('RGB', (self.WIDTH, height), (255, 255, 255))
        draw = ImageDraw.Draw(image)
        for i in range(fragment.section_count):
            top = i * self.PAGE_HEIGHT
            draw.rectangle([20, top + 20, self.WIDTH - 20, top + 120], fill=(30, 41, 59))

        return PageImage.from_image(image)


class FailingRenderer:
    """Renderer that raises the given exception."""

    def __init__(self, error):
        self.error = error

    def render(self, fragment, scale):
        raise self.error


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def pipeline(fake_renderer, tmp_path):
    """Pipeline with the real preprocessor and paginator and a fake renderer."""
    from core.conversion_pipeline import ConversionPipeline
    from core.document_preprocessor import DocumentPreprocessor
    from core.pdf_paginator import PDFPaginator

    return ConversionPipeline(
        DocumentPreprocessor(),
        fake_renderer,
        PDFPaginator(output_dir=tmp_path / "out")
    )


class BlockingPipeline:
    """
    Pipeline stand-in that waits until released.

    Produces an artifact backed by a real file so release() can be observed.
    """

    def __init__(self, output_dir):
        self.output_dir = output_dir
        self.started = threading.Event()
        self.release_run = threading.Event()
        self.artifacts = []

    def run(self, source, options, progress_callback=None):
        from core.models import OutputArtifact

        self.started.set()
        if progress_callback:
            progress_callback(15, 'Reading file content...')

        self.release_run.wait(timeout=5)

        path = self.output_dir / f"blocking_{len(self.artifacts)}.pdf"
        path.write_bytes(b'%PDF-1.4 placeholder')
        artifact = OutputArtifact(data=b'%PDF-1.4 placeholder', file_name='out.pdf', page_count=1, path=path)
        self.artifacts.append(artifact)

        if progress_callback:
            progress_callback(85, 'Finalizing high-resolution PDF output...')
        return artifact


@pytest.fixture
def blocking_pipeline(tmp_path):
    pipeline = BlockingPipeline(tmp_path)
    yield pipeline
    # Never leave a worker thread waiting
    pipeline.release_run.set()


@pytest.fixture
def failing_pipeline(tmp_path):
    """Factory for a pipeline whose renderer raises the given exception."""
    from core.conversion_pipeline import ConversionPipeline
    from core.document_preprocessor import DocumentPreprocessor
    from core.pdf_paginator import PDFPaginator

    def build(error):
        return ConversionPipeline(
            DocumentPreprocessor(),
            FailingRenderer(error),
            PDFPaginator(output_dir=tmp_path / "out")
        )

    return build
