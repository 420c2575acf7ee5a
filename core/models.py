"""
Conversion Models

Records passed between the pipeline stages and the presentation layer.
"""

import os
import logging
import shutil
from pathlib import Path
from typing import Optional, Dict, Any, Union
from dataclasses import dataclass, field, replace
from enum import Enum

from PIL import Image

from .format_detector import FileType, detect

logger = logging.getLogger(__name__)


class Quality(Enum):
    """Output quality tier"""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class ExcelMode(Enum):
    """Which sheets of a workbook are rendered"""
    ACTIVE = "active"  # First sheet only
    ALL = "all"


class PptLayout(Enum):
    """Slide arrangement on the page"""
    SINGLE = "single"
    HANDOUT = "handout"  # Two slides per row


class ConversionStatus(Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class ConversionOptions:
    """User options for one conversion"""
    quality: Quality = Quality.MEDIUM
    excel_mode: ExcelMode = ExcelMode.ACTIVE
    ppt_layout: PptLayout = PptLayout.SINGLE
    preserve_images: bool = True

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "ConversionOptions":
        """
        Build options from the GUI settings dictionary.

        Args:
            settings: Dict with 'quality', 'excel_mode', 'ppt_layout' string
                values and a 'preserve_images' flag. Missing keys use defaults.

        Raises:
            ValueError: If a value is not one of the known choices
        """
        defaults = cls()
        return cls(
            quality=Quality(settings.get('quality', defaults.quality.value)),
            excel_mode=ExcelMode(settings.get('excel_mode', defaults.excel_mode.value)),
            ppt_layout=PptLayout(settings.get('ppt_layout', defaults.ppt_layout.value)),
            preserve_images=bool(settings.get('preserve_images', defaults.preserve_images)),
        )


@dataclass(frozen=True)
class ConversionState:
    """
    Snapshot of a conversion.

    Never mutated: every transition builds a new record.
    """
    status: ConversionStatus
    progress: int = 0
    message: str = ""
    output_url: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def idle(cls) -> "ConversionState":
        return cls(status=ConversionStatus.IDLE)

    @classmethod
    def processing(cls, progress: int, message: str) -> "ConversionState":
        return cls(status=ConversionStatus.PROCESSING, progress=progress, message=message)

    @classmethod
    def completed(cls, output_url: str) -> "ConversionState":
        return cls(
            status=ConversionStatus.COMPLETED,
            progress=100,
            message="Conversion successful!",
            output_url=output_url
        )

    @classmethod
    def failed(cls, error: str) -> "ConversionState":
        return cls(
            status=ConversionStatus.ERROR,
            progress=0,
            message="Conversion failed",
            error=error or "An unknown error occurred during conversion."
        )

    def with_progress(self, progress: int, message: str) -> "ConversionState":
        """Return a copy with new progress values."""
        return replace(self, progress=max(0, min(100, int(progress))), message=message)

    @property
    def is_terminal(self) -> bool:
        return self.status in (ConversionStatus.COMPLETED, ConversionStatus.ERROR)


@dataclass(frozen=True)
class SourceFile:
    """An uploaded document: its name and raw bytes"""
    name: str
    data: bytes = field(repr=False)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SourceFile":
        path = Path(path)
        with open(path, 'rb') as f:
            return cls(name=path.name, data=f.read())

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def file_type(self) -> FileType:
        return detect(self.name)


@dataclass(frozen=True)
class StyledFragment:
    """HTML content produced by a preprocessor, ready for rendering"""
    body: str
    source_type: FileType
    stylesheet: str = ""
    section_count: int = 1


@dataclass
class PageImage:
    """A rendered bitmap and its pixel size"""
    image: Image.Image
    width: int
    height: int

    @classmethod
    def from_image(cls, image: Image.Image) -> "PageImage":
        return cls(image=image, width=image.width, height=image.height)


@dataclass
class OutputArtifact:
    """Generated PDF plus the temporary file that exposes it"""
    data: bytes = field(repr=False)
    file_name: str
    page_count: int
    path: Optional[Path] = None

    @property
    def url(self) -> Optional[str]:
        if self.path is None:
            return None
        return self.path.resolve().as_uri()

    @property
    def size(self) -> int:
        return len(self.data)

    def save_as(self, destination: Union[str, Path]) -> Path:
        """Write the PDF to a user-chosen location."""
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        if self.path is not None and self.path.exists():
            shutil.copyfile(self.path, destination)
        else:
            destination.write_bytes(self.data)
        logger.info(f"Saved PDF to {destination}")
        return destination

    def release(self):
        """Delete the temporary file. The reference is invalid afterwards."""
        if self.path is None:
            return
        try:
            if self.path.exists():
                os.remove(self.path)
        except OSError as e:
            logger.warning(f"Could not remove temporary PDF {self.path}: {e}")
        self.path = None
