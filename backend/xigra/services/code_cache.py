"""
Permanent per-shop QR code cache.

The first request for a shop renders a PNG of its upload URL and stores it
as ``<cache_dir>/<shop_id>.png``. Every later request returns those exact
bytes. There is no expiry; deleting the file is the only way to regenerate.
"""

import base64
import io
import logging
import threading
from dataclasses import dataclass
from pathlib import Path

import qrcode
from qrcode.constants import ERROR_CORRECT_H
from PIL import Image

from xigra.core.errors import NotFoundError, RenderError
from xigra.core.files import atomic_write_bytes, safe_segment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeImage:
    url: str
    png: bytes

    @property
    def data_url(self) -> str:
        return to_data_url(self.png)


def to_data_url(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def render_qr_png(url: str, width: int = 700, margin: int = 2) -> bytes:
    """Encode ``url`` as a high error-correction QR PNG of ``width`` pixels."""
    try:
        qr = qrcode.QRCode(
            error_correction=ERROR_CORRECT_H,
            box_size=10,
            border=margin,
        )
        qr.add_data(url)
        qr.make(fit=True)
        image = qr.make_image(fill_color="black", back_color="white").get_image()
        image = image.convert("L").resize((width, width), Image.NEAREST)

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
    except Exception as e:
        raise RenderError(f"QR generation failed: {e}") from e


class CodeCache:
    """Cache-or-generate store for shop QR images."""

    def __init__(self, cache_dir, base_url: str, width: int = 700, margin: int = 2):
        self.cache_dir = Path(cache_dir)
        self.base_url = base_url
        self.width = width
        self.margin = margin
        self._lock = threading.Lock()

    def url_for(self, shop_id: str) -> str:
        return f"{self.base_url}{shop_id}"

    def path_for(self, shop_id: str) -> Path:
        return self.cache_dir / f"{safe_segment(shop_id, 'shopId')}.png"

    def get_or_create(self, shop_id: str) -> CodeImage:
        path = self.path_for(shop_id)
        url = self.url_for(shop_id)

        # Held across check and write so two first requests render once
        with self._lock:
            if path.exists():
                return CodeImage(url=url, png=path.read_bytes())

            png = render_qr_png(url, width=self.width, margin=self.margin)
            atomic_write_bytes(path, png)

        logger.info(f"Generated QR for shop {shop_id}")
        return CodeImage(url=url, png=png)

    def read_cached(self, shop_id: str) -> bytes:
        path = self.path_for(shop_id)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError("QR not found")
