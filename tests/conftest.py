"""
Pytest configuration - shared fixtures
"""
import sys
import os
from datetime import timedelta
from typing import Generator

import pytest

# Add backend directory to sys.path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../backend"))

from xigra.config import Settings
from xigra.dependencies import Services, build_services
from xigra.models import FileStatus
from xigra.models.shop import utcnow
from xigra.services.crypto_codec import encrypt

SECRET = "TEST_SHARED_SECRET"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings rooted in a per-test temporary directory"""
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'xigra.db'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        SHOP_UPLOAD_DIR=str(tmp_path / "shop_uploads"),
        QR_CACHE_DIR=str(tmp_path / "qr_cache"),
        UPLOAD_BASE_URL="https://print.example/upload?shop=",
        DECRYPTION_SECRET=SECRET,
        FILE_TTL_SECONDS=600,
        SWEEP_INTERVAL_SECONDS=60,
        QR_WIDTH=350,
        MAX_UPLOAD_SIZE=1024 * 1024,
        RATE_LIMIT_ENABLED=False,
    )


@pytest.fixture
def services(test_settings) -> Generator[Services, None, None]:
    """Fully wired components without the HTTP layer"""
    bundle = build_services(test_settings)
    try:
        yield bundle
    finally:
        bundle.reaper.shutdown()
        bundle.store.close()


@pytest.fixture
def store(services):
    return services.store


@pytest.fixture
def sample_pdf() -> bytes:
    """Bytes standing in for a customer's PDF"""
    return b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\n%%EOF\n" + bytes(range(256))


@pytest.fixture
def encrypted_upload(sample_pdf) -> bytes:
    """The .enc body the upload page would send for sample_pdf"""
    return encrypt(sample_pdf, SECRET).encode("ascii")


@pytest.fixture
def make_record(services):
    """Insert a file record (and its .enc blob) with a chosen age"""

    def _make(shop_id="SHOP-ABC123", original_name="doc.pdf", age=timedelta(0),
              status=FileStatus.LOCKED, body=b"ciphertext"):
        record = services.files.ingest(shop_id, original_name, body)
        return services.store.update_file(
            record.id, created_at=utcnow() - age, status=status.value
        )

    return _make
