"""QR code generation."""

import base64
from io import BytesIO

import qrcode


def make_qr_data_url(text: str) -> str:
    """Encode ``text`` as a QR code and return it as a PNG data URL."""
    image = qrcode.make(text)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"
