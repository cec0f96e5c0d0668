"""
QR code rendering for pairing URIs: ASCII for terminals, PNG data URL for
browsers.
"""

from __future__ import annotations
from dataclasses import dataclass
import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M


@dataclass
class GeneratedQR:
    ascii: str
    data_url: str


def _build(data: str, border: int) -> qrcode.QRCode:
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=8, border=border)
    qr.add_data(data)
    qr.make(fit=True)
    return qr


def generate_qr(uri: str) -> GeneratedQR:
    """Render a pairing URI as an ASCII QR code and a PNG data URL."""
    ascii_buffer = io.StringIO()
    _build(uri, border=1).print_ascii(out=ascii_buffer, invert=True)

    img = _build(uri, border=2).make_image(fill_color="black", back_color="white")
    png = io.BytesIO()
    img.save(png, format="PNG")
    data_url = "data:image/png;base64," + base64.b64encode(png.getvalue()).decode("ascii")

    return GeneratedQR(ascii=ascii_buffer.getvalue(), data_url=data_url)


__all__ = ["GeneratedQR", "generate_qr"]
