"""QR code rendering using the ``qrcode`` library with the Pillow backend."""

import base64
import io
import json
from typing import Any, Mapping

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from libs.common.config import get_settings


def encode_payload(payload: Mapping[str, Any]) -> str:
    """Serialise a QR payload to the compact JSON string embedded in the image."""
    return json.dumps(payload, separators=(",", ":"), default=str)


def render_png_bytes(data: str) -> bytes:
    settings = get_settings()
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=settings.QR_BOX_SIZE,
        border=settings.QR_BORDER,
    )
    qr.add_data(data)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def render_data_url(payload: Mapping[str, Any]) -> str:
    """Render a payload as a ``data:image/png;base64,...`` URL."""
    png = render_png_bytes(encode_payload(payload))
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
