"""
Tests for A4 pagination and PDF assembly.
"""

import io

import pytest
from PIL import Image


def _page_image(width, height, noisy=False):
    from core.models import PageImage

    if noisy:
        image = Image.effect_noise((width, height), 80).convert('RGB')
    else:
        image = Image.new('RGB', (width, height), (255, 255, 255))
    return PageImage.from_image(image)


class TestPageMath:
    """Page count and offsets for a bitmap scaled to the A4 width."""

    def test_short_image_is_one_page(self):
        from core.pdf_paginator import page_count

        assert page_count(1320, 100) == 1
        assert page_count(210, 297) == 1

    def test_just_over_one_page(self):
        from core.pdf_paginator import page_count

        assert page_count(210, 298) == 2

    def test_exact_multiples_do_not_add_blank_page(self):
        from core.pdf_paginator import page_count

        assert page_count(210, 594) == 2
        assert page_count(420, 1188) == 2

    def test_offsets(self):
        from core.pdf_paginator import page_offsets

        assert page_offsets(210, 700) == [0, -297, -594]

    def test_invalid_size(self):
        from core.pdf_paginator import page_count

        with pytest.raises(ValueError):
            page_count(0, 100)
        with pytest.raises(ValueError):
            page_count(100, 0)

    def test_encoding_tiers(self):
        from core.models import Quality
        from core.pdf_paginator import encoding_for_quality, RenderHint

        small = encoding_for_quality(Quality.SMALL)
        assert small.jpeg_quality == 60
        assert small.render_hint == RenderHint.FAST
        assert not small.optimize

        for quality in (Quality.MEDIUM, Quality.LARGE):
            settings = encoding_for_quality(quality)
            assert settings.jpeg_quality == 95
            assert settings.render_hint == RenderHint.SLOW
            assert settings.page_compression == 1


class TestPDFPaginator:
    """PDF assembly with reportlab."""

    def test_page_count_in_pdf(self, tmp_path):
        from PyPDF2 import PdfReader
        from core.models import Quality
        from core.pdf_paginator import PDFPaginator

        artifact = PDFPaginator(output_dir=tmp_path).paginate(
            _page_image(210, 700), Quality.MEDIUM, file_name="report.pdf"
        )

        reader = PdfReader(io.BytesIO(artifact.data))
        assert len(reader.pages) == 3
        assert artifact.page_count == 3
        assert artifact.file_name == "report.pdf"
        assert reader.metadata.title == "report"

        # A4 in points
        box = reader.pages[0].mediabox
        assert round(float(box.width)) == 595
        assert round(float(box.height)) == 842

    def test_artifact_file(self, tmp_path):
        from core.models import Quality
        from core.pdf_paginator import PDFPaginator

        artifact = PDFPaginator(output_dir=tmp_path).paginate(_page_image(420, 300), Quality.SMALL)

        assert artifact.path.parent == tmp_path
        assert artifact.path.read_bytes() == artifact.data
        assert artifact.data.startswith(b'%PDF')
        assert artifact.url.startswith("file://")

    def test_release_and_save(self, tmp_path):
        from core.models import Quality
        from core.pdf_paginator import PDFPaginator

        artifact = PDFPaginator(output_dir=tmp_path).paginate(_page_image(420, 300), Quality.SMALL)
        temp_path = artifact.path

        saved = artifact.save_as(tmp_path / "copies" / "mine.pdf")
        assert saved.read_bytes() == artifact.data

        artifact.release()
        assert not temp_path.exists()
        assert artifact.path is None
        assert artifact.url is None

        # Saving still works from memory, releasing twice is harmless
        artifact.save_as(tmp_path / "again.pdf")
        artifact.release()

    def test_higher_quality_is_larger(self, tmp_path):
        from core.models import Quality
        from core.pdf_paginator import PDFPaginator

        paginator = PDFPaginator(output_dir=tmp_path)
        image = _page_image(400, 560, noisy=True)

        small = paginator.paginate(image, Quality.SMALL)
        large = paginator.paginate(image, Quality.LARGE)

        assert small.size < large.size

    def test_transparent_image(self, tmp_path):
        from core.models import PageImage, Quality
        from core.pdf_paginator import PDFPaginator

        image = Image.new('RGBA', (210, 100), (0, 0, 0, 0))
        artifact = PDFPaginator(output_dir=tmp_path).paginate(PageImage.from_image(image), Quality.MEDIUM)

        assert artifact.page_count == 1


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
