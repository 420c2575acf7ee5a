"""
Tests for the Page Rasterizer.
"""

import pytest
from PIL import Image, ImageDraw


def _renderer_available():
    from core.page_rasterizer import WEASYPRINT_AVAILABLE, find_poppler, has_poppler
    return WEASYPRINT_AVAILABLE and has_poppler(find_poppler())


def _bare_renderer(content_width=1200, padding=60):
    """WeasyPrintRenderer with its settings but without the library checks."""
    from core.page_rasterizer import WeasyPrintRenderer

    renderer = WeasyPrintRenderer.__new__(WeasyPrintRenderer)
    renderer.content_width = content_width
    renderer.padding = padding
    renderer.timeout = 120
    renderer.poppler_path = None
    return renderer


class TestRenderSurface:
    """The temporary surface never outlives a render."""

    def test_removed_after_use(self):
        from core.page_rasterizer import RenderSurface

        with RenderSurface() as surface:
            document = surface.write_document("<p>hello</p>")
            assert document.read_text(encoding='utf-8') == "<p>hello</p>"
            path = surface.path

        assert not path.exists()

    def test_removed_on_error(self):
        from core.page_rasterizer import RenderSurface

        with pytest.raises(ValueError):
            with RenderSurface() as surface:
                path = surface.path
                raise ValueError("layout failed")

        assert not path.exists()

    def test_write_requires_mount(self):
        from core.page_rasterizer import RenderSurface

        with pytest.raises(RuntimeError):
            RenderSurface().write_document("<p></p>")


class TestRendererGeometry:
    """Surface size, quality scale and bitmap post-processing."""

    def test_quality_scale(self):
        from core.models import Quality
        from core.page_rasterizer import scale_for_quality

        assert scale_for_quality(Quality.SMALL) == 1
        assert scale_for_quality(Quality.MEDIUM) == 2
        assert scale_for_quality(Quality.LARGE) == 3

    def test_surface_is_a4_proportional(self):
        renderer = _bare_renderer()

        assert renderer.surface_width == 1320
        assert renderer.surface_page_height == 1866

    def test_document_wraps_fragment(self):
        from core.format_detector import FileType
        from core.models import StyledFragment

        fragment = StyledFragment(
            body="<table><tr><td>1</td></tr></table>",
            source_type=FileType.XLSX,
            stylesheet=".sheet-title { color: red; }"
        )
        document = _bare_renderer()._build_document(fragment)

        assert "width: 1200px" in document
        assert "padding: 60px" in document
        assert ".sheet-title { color: red; }" in document
        assert fragment.body in document

    def test_stack_pages(self):
        renderer = _bare_renderer()
        pages = [
            Image.new('RGB', (100, 50), (255, 0, 0)),
            Image.new('RGB', (100, 70), (0, 0, 255)),
        ]

        stacked = renderer._stack_pages(pages)

        assert stacked.size == (100, 120)
        assert stacked.getpixel((10, 10)) == (255, 0, 0)
        assert stacked.getpixel((10, 60)) == (0, 0, 255)

    def test_stack_no_pages(self):
        from core.exceptions import MalformedDocumentError

        with pytest.raises(MalformedDocumentError):
            _bare_renderer()._stack_pages([])

    def test_trim_trailing_space(self):
        renderer = _bare_renderer()
        image = Image.new('RGB', (100, 1000), (255, 255, 255))
        ImageDraw.Draw(image).rectangle([10, 10, 90, 199], fill=(0, 0, 0))

        trimmed = renderer._trim_trailing_space(image, keep=60)

        assert trimmed.size == (100, 260)

    def test_blank_image_keeps_padding_strip(self):
        image = Image.new('RGB', (100, 300), (255, 255, 255))

        assert _bare_renderer()._trim_trailing_space(image, keep=60).size == (100, 60)

    def test_full_surface_page_is_one_pdf_page(self):
        """A surface page scaled to A4 width never exceeds one A4 page."""
        from core.pdf_paginator import page_count

        renderer = _bare_renderer()
        for scale in (1, 2, 3):
            width = renderer.surface_width * scale
            height = renderer.surface_page_height * scale
            assert page_count(width, height) == 1
            assert page_count(width, 3 * height) == 3

    def test_blank_render_is_one_page(self):
        from core.pdf_paginator import page_count

        renderer = _bare_renderer()
        scale = 2
        size = (renderer.surface_width * scale, renderer.surface_page_height * scale)
        blank = Image.new('RGB', size, (255, 255, 255))

        trimmed = renderer._trim_trailing_space(blank, keep=renderer.padding * scale)

        assert trimmed.height == renderer.padding * scale
        assert page_count(trimmed.width, trimmed.height) == 1

    def test_blocks_remote_resources(self):
        result = _bare_renderer()._url_fetcher("https://example.com/tracker.png")

        assert result['string'] == b''


@pytest.mark.skipif(not _renderer_available(), reason="WeasyPrint or poppler not installed")
class TestWeasyPrintRenderer:
    """Real rendering engine."""

    def test_render_fragment(self):
        from core.format_detector import FileType
        from core.models import StyledFragment
        from core.page_rasterizer import WeasyPrintRenderer

        fragment = StyledFragment(body="<h1>Hello</h1><p>World</p>", source_type=FileType.DOCX)

        page = WeasyPrintRenderer().render(fragment, scale=1)

        assert page.width == 1320
        assert 0 < page.height <= 1866

    def test_sections_start_new_pages(self):
        from core.document_preprocessor import SPREADSHEET_STYLESHEET
        from core.format_detector import FileType
        from core.models import StyledFragment
        from core.page_rasterizer import WeasyPrintRenderer

        body = "".join(
            f'<div class="sheet-container"><h2 class="sheet-title">Sheet: S{i}</h2></div>'
            for i in range(2)
        )
        fragment = StyledFragment(
            body=body,
            source_type=FileType.XLSX,
            stylesheet=SPREADSHEET_STYLESHEET,
            section_count=2
        )

        page = WeasyPrintRenderer().render(fragment, scale=1)

        assert page.height > 1866


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
