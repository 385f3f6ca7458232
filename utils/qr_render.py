"""Render WhatsApp pairing tokens as scannable QR images.

The token is encoded with `qrcode`, drawn through Pillow and returned as a
base64 PNG data URL that can be dropped straight into an `<img>` tag.
"""
from __future__ import annotations

import base64
import io

import qrcode
from qrcode.image.pil import PilImage


class QRRenderer:
    """Generate PNG QR codes for pairing tokens.

    Args:
        box_size: Pixel size of each QR module.
        border: Quiet-zone width in modules (4 is the QR standard minimum).
    """

    def __init__(self, box_size: int = 8, border: int = 4):
        self.box_size = box_size
        self.border = border

    def render_png(self, token: str) -> bytes:
        """Return PNG bytes for the given token.

        Raises:
            ValueError: If the token is empty.
        """
        if not token:
            raise ValueError("Pairing token must not be empty")

        qr = qrcode.QRCode(
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(token)
        qr.make(fit=True)
        img = qr.make_image(image_factory=PilImage, fill_color="black", back_color="white")

        out_io = io.BytesIO()
        img.save(out_io, format="PNG")
        return out_io.getvalue()

    def render_data_url(self, token: str) -> str:
        """Return the QR image as a `data:image/png;base64,...` URL."""
        encoded = base64.b64encode(self.render_png(token)).decode("utf-8")
        return f"data:image/png;base64,{encoded}"
