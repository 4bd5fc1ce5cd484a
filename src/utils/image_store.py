"""Storage for article images uploaded as base64 data URIs."""

import base64
import binascii
import logging
import re
import time
from typing import Optional

from config import IMAGES_DIR

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:image/([A-Za-z+\-/]+);base64,(.+)$", re.DOTALL)


def save_base64_image(data_uri: str, title: str) -> Optional[str]:
    """Write a base64 image to the images directory.

    Args:
        data_uri: ``data:image/<type>;base64,<payload>`` string.
        title: Article title, used to build a readable file name.

    Returns:
        Public URL of the stored image, or None if the payload is invalid
        or cannot be written.
    """
    match = _DATA_URI.match(data_uri or "")
    if not match:
        logger.error("Invalid base64 image format")
        return None

    image_type = match.group(1).replace("/", "_")
    try:
        payload = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError) as exc:
        logger.error("Failed to decode base64 image: %s", exc)
        return None

    safe_title = re.sub(r"[^a-zA-Z0-9]", "_", title)[:50]
    filename = f"article_{safe_title}_{int(time.time() * 1000)}.{image_type}"
    try:
        IMAGES_DIR.mkdir(parents=True, exist_ok=True)
        (IMAGES_DIR / filename).write_bytes(payload)
    except OSError as exc:
        logger.error("Failed to save image %s: %s", filename, exc)
        return None
    return f"/images/{filename}"
