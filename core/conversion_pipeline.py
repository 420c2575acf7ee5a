"""
Conversion Pipeline Module

Orchestrates the document to PDF conversion:
detect format -> preprocess -> rasterize -> paginate.
"""

import logging
from typing import Optional, Callable
from enum import Enum

from .exceptions import ConversionError, UnsupportedFormatError, UnknownError
from .format_detector import FileType, detect
from .document_preprocessor import DocumentPreprocessor
from .page_rasterizer import Renderer, scale_for_quality
from .pdf_paginator import PDFPaginator
from .models import ConversionOptions, SourceFile, OutputArtifact
from utils.file_utils import output_filename

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


class PipelineStage(Enum):
    """Fixed progress checkpoints of the pipeline"""
    READING = 15
    PREPROCESSING = 30
    FINALIZING = 85
    COMPLETE = 100


class ConversionPipeline:
    """
    Runs one document through the conversion stages in order.

    The preprocessor, renderer and paginator are injected so any rendering
    engine implementing Renderer can be used.
    """

    def __init__(
        self,
        preprocessor: DocumentPreprocessor,
        renderer: Renderer,
        paginator: PDFPaginator
    ):
        """
        Initialize the pipeline.

        Args:
            preprocessor: Builds styled fragments from document bytes
            renderer: Rasterizes fragments
            paginator: Assembles the PDF

        Raises:
            ValueError: A collaborator is missing
        """
        for name, component in (
            ('preprocessor', preprocessor),
            ('renderer', renderer),
            ('paginator', paginator),
        ):
            if component is None:
                raise ValueError(f"ConversionPipeline requires a {name}")

        self.preprocessor = preprocessor
        self.renderer = renderer
        self.paginator = paginator

    def run(
        self,
        source: SourceFile,
        options: ConversionOptions,
        progress_callback: Optional[ProgressCallback] = None
    ) -> OutputArtifact:
        """
        Convert a document to PDF.

        Args:
            source: Uploaded document
            options: Conversion options
            progress_callback: Optional callback(percent, message)

        Returns:
            OutputArtifact for the generated PDF

        Raises:
            ConversionError: Any failure; unexpected errors are wrapped
                in UnknownError
        """
        report = progress_callback or (lambda progress, message: None)

        try:
            file_type = detect(source.name)
            if file_type is FileType.UNKNOWN:
                extension = source.name.rsplit('.', 1)[-1] if '.' in source.name else ''
                raise UnsupportedFormatError(f"Unsupported file type: {extension or source.name}")

            logger.info(f"Converting {source.name} ({file_type.value}, {source.size} bytes)")

            report(PipelineStage.READING.value, 'Reading file content...')
            fragment = self.preprocessor.preprocess(file_type, source.data, options, report)

            report(PipelineStage.FINALIZING.value, 'Finalizing high-resolution PDF output...')
            image = self.renderer.render(fragment, scale_for_quality(options.quality))
            artifact = self.paginator.paginate(
                image,
                options.quality,
                file_name=output_filename(source.name)
            )

            report(PipelineStage.COMPLETE.value, 'Conversion successful!')
            logger.info(f"Converted {source.name}: {artifact.page_count} pages")
            return artifact

        except ConversionError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error converting {source.name}")
            raise UnknownError(str(e) or e.__class__.__name__) from e
