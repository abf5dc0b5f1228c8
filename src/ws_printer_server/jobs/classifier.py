"""
Payload classification.

Order matters: an absolute http(s) URL is always a PDF reference, even when it
happens to look like base64 as well.
"""
import re
from urllib.parse import urlsplit

from ws_printer_server.jobs.models import PayloadKind

DATA_URI_IMAGE_PREFIX = 'data:image/'
BASE64_PATTERN = re.compile(r'^[A-Za-z0-9+/]*={0,2}$')
_WHITESPACE = re.compile(r'\s')


def is_pdf_url(payload: str) -> bool:
    data = (payload or '').strip()
    if not data or _WHITESPACE.search(data):
        return False
    try:
        parts = urlsplit(data)
        # Accessing .port validates the authority part
        parts.port
    except ValueError:
        return False
    return parts.scheme.lower() in ('http', 'https') and bool(parts.hostname)


def is_base64_image(payload: str) -> bool:
    data = (payload or '').strip()
    if data.startswith(DATA_URI_IMAGE_PREFIX):
        return True
    # Raw base64 blob without a media-type prefix
    return len(data) % 4 == 0 and BASE64_PATTERN.match(data) is not None


def classify(payload: str) -> PayloadKind:
    """Tag a raw payload as PDF URL, image or plain text. Never raises."""
    if is_pdf_url(payload):
        return PayloadKind.PDF_URL
    if is_base64_image(payload):
        return PayloadKind.IMAGE
    return PayloadKind.TEXT
