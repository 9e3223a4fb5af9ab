"""Generate scannable QR codes for shareable session links.

The QR code encodes the full share link, which embeds the session's
capability token.  Anyone who scans it can join the session.

Usage::

    from brick_tally.utils.qr_generator import build_share_url, save_share_qr

    url = build_share_url("V1StGXR8_Z5j")
    save_share_qr(url, "share.png")
"""

import io
from pathlib import Path
from typing import Optional

import qrcode

from brick_tally.config import Config

QR_BOX_SIZE = 10
QR_BORDER = 2


def build_share_url(slug: str, base_url: Optional[str] = None) -> str:
    """Join the configured link prefix and a session token."""
    base = Config.SHARE_BASE_URL if base_url is None else base_url
    return f"{base}{slug}"


def slug_from_share_url(text: str, base_url: Optional[str] = None) -> str:
    """Accept either a bare token or a full share link; return the token."""
    text = text.strip()
    base = Config.SHARE_BASE_URL if base_url is None else base_url
    if base and text.startswith(base):
        text = text[len(base):]
    # Tolerate links from other hosts: the token is the last path segment
    return text.rstrip("/").rsplit("/", 1)[-1]


def make_share_qr(data: str, box_size: int = QR_BOX_SIZE) -> io.BytesIO:
    """Generate a QR code image and return it as a PNG buffer."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=QR_BORDER,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def save_share_qr(data: str, output_path: str | Path) -> str:
    """Write the QR PNG for ``data`` to disk. Returns the absolute path."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(make_share_qr(data).getvalue())
    return str(output_path.resolve())
