"""
Permanent per-shop QR endpoints.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from xigra.dependencies import get_code_cache
from xigra.schemas import QrResponse
from xigra.services.code_cache import CodeCache

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{shop_id}", response_model=QrResponse)
def get_qr(shop_id: str, cache: CodeCache = Depends(get_code_cache)):
    """Return the cached QR for a shop, generating it on first request."""
    image = cache.get_or_create(shop_id)
    return QrResponse(url=image.url, data_url=image.data_url)


@router.get("/{shop_id}/download")
def download_qr(shop_id: str, cache: CodeCache = Depends(get_code_cache)):
    """Download the cached QR as a PNG attachment."""
    png = cache.read_cached(shop_id)
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="xigra_qr_{shop_id}.png"'},
    )
