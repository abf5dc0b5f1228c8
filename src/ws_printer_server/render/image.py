"""
Embedded image pages: data URI / raw base64 → Pillow image scaled to the page
width (aspect ratio kept), painted at the page origin.
"""
import base64
import binascii
import io
import logging

from PIL import Image, UnidentifiedImageError

from ws_printer_server.errors import DecodeError
from ws_printer_server.jobs.models import PageGeometry, RenderedPage

logger = logging.getLogger(__name__)


def decode_image(payload: str) -> Image.Image:
    """Decode a data URI or raw base64 string into a loaded Pillow image."""
    raw = (payload or '').strip()
    # Strip a "data:image/png;base64," style prefix
    if ',' in raw:
        raw = raw.split(',', 1)[1]
    raw = ''.join(raw.split())

    try:
        image_bytes = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Error decoding Base64 image: {e}")
    if not image_bytes:
        raise DecodeError("Error decoding Base64 image: empty payload")

    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Error decoding Base64 image: {e}")
    return image


def scale_to_width(image: Image.Image, width: int) -> Image.Image:
    """Resize to ``width`` pixels keeping the aspect ratio."""
    new_height = max(1, round(image.height / image.width * width))
    if image.size == (width, new_height):
        return image
    return image.resize((width, new_height), Image.Resampling.LANCZOS)


def render_image(image: Image.Image, geometry: PageGeometry) -> RenderedPage:
    """Paint the image, scaled to the page width, at (0, 0) of a white page."""
    if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
        rgba = image.convert('RGBA')
        flattened = Image.new('RGB', rgba.size, 'white')
        flattened.paste(rgba, mask=rgba.getchannel('A'))
        image = flattened
    else:
        image = image.convert('RGB')

    scaled = scale_to_width(image, geometry.width_px)
    if scaled.height > geometry.height_px:
        logger.warning(
            f"Scaled image is {scaled.height}px tall, page is {geometry.height_px}px; bottom is clipped"
        )

    page = Image.new('RGB', geometry.size_px, 'white')
    page.paste(scaled, (0, 0))
    return RenderedPage(image=page)


def decode_and_scale(payload: str, geometry: PageGeometry) -> RenderedPage:
    image = decode_image(payload)
    logger.debug(f"Decoded image: format={image.format} mode={image.mode} size={image.size}")
    return render_image(image, geometry)
