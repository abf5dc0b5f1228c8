"""
Plain text pages: greedy word wrap to the page width, painted left-aligned in a
monospace font.
"""
import logging
from functools import lru_cache
from typing import Callable, List

from PIL import Image, ImageDraw, ImageFont

from ws_printer_server.jobs.models import PageGeometry, RenderedPage

logger = logging.getLogger(__name__)

FONT_SIZE_PT = 9
# Left/top margin in hundredths of an inch; the right margin mirrors it.
MARGIN = 5
MONOSPACE_FONTS = (
    'DejaVuSansMono.ttf',
    'LiberationMono-Regular.ttf',
    'cour.ttf',
    'Courier New.ttf',
    'Menlo.ttc',
)


def wrap_text(text: str, max_width: float, measure: Callable[[str], float]) -> List[str]:
    """
    Greedy word wrap.

    Words are added to the current line while the measured width of
    ``line + " " + word`` stays within ``max_width``. A single word wider than
    ``max_width`` gets a line of its own. Always returns at least one line.
    """
    lines = []
    line = ''
    for word in text.split():
        candidate = f"{line} {word}" if line else word
        if line and measure(candidate) > max_width:
            lines.append(line)
            line = word
        else:
            line = candidate
    lines.append(line)
    return lines


@lru_cache(maxsize=8)
def load_font(size_px: int):
    """First available monospace TrueType font, else Pillow's built-in font."""
    for name in MONOSPACE_FONTS:
        try:
            return ImageFont.truetype(name, size_px)
        except OSError:
            continue
    logger.debug("No monospace TrueType font found, using Pillow default font")
    return ImageFont.load_default(size=size_px)


def render_text(text: str, geometry: PageGeometry) -> RenderedPage:
    """Paint ``text`` onto a white page of the given geometry."""
    font = load_font(round(FONT_SIZE_PT * geometry.dpi / 72))
    margin = geometry.hundredths_to_px(MARGIN)
    max_width = geometry.width_px - 2 * margin

    lines = []
    for paragraph in text.splitlines() or ['']:
        lines.extend(wrap_text(paragraph, max_width, font.getlength))

    page = Image.new('L', geometry.size_px, color=255)
    draw = ImageDraw.Draw(page)
    # Tallest glyph box plus 1/50in leading
    line_height = font.getbbox('Ay|')[3] + geometry.hundredths_to_px(2)

    y = margin
    for line in lines:
        if y + line_height > geometry.height_px:
            logger.warning(f"Text exceeds page height, {len(lines)} lines wrapped, rest clipped")
            break
        draw.text((margin, y), line, font=font, fill=0)
        y += line_height

    return RenderedPage(image=page, lines=tuple(lines))
