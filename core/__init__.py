"""
DocuConvert Core Package
"""

from .exceptions import (
    ConversionError,
    UnsupportedFormatError,
    MalformedDocumentError,
    RenderLibraryUnavailableError,
    ConversionTimeoutError,
    UnknownError,
)
from .format_detector import FileType, detect, is_supported, validate_selection, SUPPORTED_EXTENSIONS
from .models import (
    Quality,
    ExcelMode,
    PptLayout,
    ConversionStatus,
    ConversionOptions,
    ConversionState,
    SourceFile,
    StyledFragment,
    PageImage,
    OutputArtifact,
)
from .document_preprocessor import DocumentPreprocessor
from .page_rasterizer import Renderer, WeasyPrintRenderer, RenderSurface, scale_for_quality
from .pdf_paginator import PDFPaginator, page_count
from .conversion_pipeline import ConversionPipeline
from .conversion_session import ConversionSession

__all__ = [
    'ConversionError',
    'UnsupportedFormatError',
    'MalformedDocumentError',
    'RenderLibraryUnavailableError',
    'ConversionTimeoutError',
    'UnknownError',
    'FileType',
    'detect',
    'is_supported',
    'validate_selection',
    'SUPPORTED_EXTENSIONS',
    'Quality',
    'ExcelMode',
    'PptLayout',
    'ConversionStatus',
    'ConversionOptions',
    'ConversionState',
    'SourceFile',
    'StyledFragment',
    'PageImage',
    'OutputArtifact',
    'DocumentPreprocessor',
    'Renderer',
    'WeasyPrintRenderer',
    'RenderSurface',
    'scale_for_quality',
    'PDFPaginator',
    'page_count',
    'ConversionPipeline',
    'ConversionSession',
]
