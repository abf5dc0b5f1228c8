"""
Print job model. One inbound WebSocket text frame becomes one PrintJob.
No queue, no persistence. Pure data classes.
"""
import enum
from dataclasses import dataclass, field
from typing import Tuple

from PIL import Image

PAGE_HEIGHT_INCHES = 11.0


class PayloadKind(enum.Enum):
    TEXT = 'text'
    IMAGE = 'image'         # data URI or raw base64 image
    PDF_URL = 'pdf_url'     # absolute http(s) URL to a PDF


@dataclass(frozen=True)
class PageGeometry:
    """Page size for one job: configurable width, fixed 11in height."""
    width_inches: float
    dpi: int = 203
    height_inches: float = PAGE_HEIGHT_INCHES

    @property
    def width_px(self) -> int:
        return max(1, round(self.width_inches * self.dpi))

    @property
    def height_px(self) -> int:
        return max(1, round(self.height_inches * self.dpi))

    @property
    def size_px(self) -> Tuple[int, int]:
        return self.width_px, self.height_px

    def hundredths_to_px(self, value: float) -> int:
        return round(value * self.dpi / 100)

    @property
    def media(self) -> str:
        """CUPS custom media name, e.g. ``Custom.3x11in``."""
        return f"Custom.{self.width_inches:g}x{self.height_inches:g}in"


@dataclass(frozen=True)
class PrintJob:
    kind: PayloadKind
    payload: str
    printer: str
    page_width_inches: float

    @property
    def title(self) -> str:
        first = self.payload.strip().splitlines()[0] if self.payload.strip() else ''
        if self.kind is PayloadKind.TEXT and first:
            return first[:40]
        return f"{self.kind.value} job"

    def __str__(self):
        return (
            f"PrintJob(kind={self.kind.value} printer={self.printer!r} "
            f"width={self.page_width_inches:g}in payload={len(self.payload)} chars)"
        )


@dataclass
class RenderedPage:
    """A painted page scoped to a single dispatch."""
    image: Image.Image
    lines: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size
