"""
Shared API dependencies.

The app lifespan builds one ``Services`` bundle and keeps it on
``app.state``; routers pull the pieces they need from there.
"""

from dataclasses import dataclass
from pathlib import Path

from fastapi import Request

from xigra.config import Settings
from xigra.services.code_cache import CodeCache
from xigra.services.crypto_codec import CryptoCodec
from xigra.services.expiry_reaper import ExpiryReaper
from xigra.services.file_service import FileService
from xigra.services.record_store import RecordStore
from xigra.services.shop_service import ShopService


@dataclass
class Services:
    settings: Settings
    store: RecordStore
    code_cache: CodeCache
    shops: ShopService
    files: FileService
    reaper: ExpiryReaper


def build_services(settings: Settings) -> Services:
    """Construct and initialize every component from settings."""
    for directory in (settings.UPLOAD_DIR, settings.SHOP_UPLOAD_DIR, settings.QR_CACHE_DIR):
        Path(directory).mkdir(parents=True, exist_ok=True)

    store = RecordStore(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    store.init()

    code_cache = CodeCache(
        settings.QR_CACHE_DIR,
        base_url=settings.UPLOAD_BASE_URL,
        width=settings.QR_WIDTH,
        margin=settings.QR_MARGIN,
    )
    files = FileService(
        store,
        CryptoCodec(settings.DECRYPTION_SECRET),
        upload_dir=settings.UPLOAD_DIR,
        shop_upload_dir=settings.SHOP_UPLOAD_DIR,
        max_upload_size=settings.MAX_UPLOAD_SIZE,
    )
    reaper = ExpiryReaper(
        store,
        settings.SHOP_UPLOAD_DIR,
        ttl_seconds=settings.FILE_TTL_SECONDS,
        interval_seconds=settings.SWEEP_INTERVAL_SECONDS,
    )

    return Services(
        settings=settings,
        store=store,
        code_cache=code_cache,
        shops=ShopService(store, code_cache),
        files=files,
        reaper=reaper,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_file_service(request: Request) -> FileService:
    return get_services(request).files


def get_code_cache(request: Request) -> CodeCache:
    return get_services(request).code_cache


def get_shop_service(request: Request) -> ShopService:
    return get_services(request).shops
