"""
Shop registration endpoint.
"""

import logging

from fastapi import APIRouter, Depends, Request

from xigra.dependencies import get_shop_service
from xigra.limiter import limiter, register_limit
from xigra.schemas import RegisterRequest, RegisterResponse, ShopSummary
from xigra.services.shop_service import ShopService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=RegisterResponse)
@limiter.limit(register_limit)
def register_shop(
    request: Request,
    payload: RegisterRequest,
    shops: ShopService = Depends(get_shop_service),
):
    """
    Register a shop and return its upload URL with an inline QR (or null).
    """
    registration = shops.register(payload.shopName)
    return RegisterResponse(
        shop=ShopSummary.model_validate(registration.shop),
        url=registration.url,
        qr=registration.qr,
    )
