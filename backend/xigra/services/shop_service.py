"""
Shop registration.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from xigra.core.errors import ValidationError, RenderError
from xigra.models import Shop
from xigra.models.shop import utcnow
from xigra.services.code_cache import CodeCache
from xigra.services.record_store import RecordStore

logger = logging.getLogger(__name__)


def new_shop_id() -> str:
    return "SHOP-" + uuid.uuid4().hex[:6].upper()


@dataclass
class Registration:
    shop: Shop
    url: str
    qr: Optional[str]


class ShopService:
    def __init__(self, store: RecordStore, code_cache: CodeCache):
        self.store = store
        self.code_cache = code_cache

    def register(self, shop_name: str) -> Registration:
        """Create a shop and return its upload URL with a best-effort QR."""
        if not shop_name or not shop_name.strip():
            raise ValidationError("shopName required")

        shop = self.store.append_shop(Shop(id=new_shop_id(), name=shop_name.strip(), created_at=utcnow()))
        logger.info(f"Registered shop {shop.id} ({shop.name})")

        url = self.code_cache.url_for(shop.id)
        try:
            qr = self.code_cache.get_or_create(shop.id).data_url
        except RenderError as e:
            logger.warning(f"QR unavailable for new shop {shop.id}: {e}")
            qr = None

        return Registration(shop=shop, url=url, qr=qr)
