from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Responses use the camelCase keys the upload frontend expects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Shop ---
class RegisterRequest(BaseModel):
    shopName: Optional[str] = Field(None, max_length=200)


class ShopSummary(CamelModel):
    id: str
    name: str


class RegisterResponse(CamelModel):
    shop: ShopSummary
    url: str
    qr: Optional[str] = None


# --- QR ---
class QrResponse(CamelModel):
    url: str
    data_url: str


# --- Files ---
class FileRecordResponse(CamelModel):
    id: str
    shop_id: str
    original_name: str
    encrypted_path: str
    status: str
    size: int
    created_at: datetime
    printed_at: Optional[datetime] = None


class UploadResponse(CamelModel):
    status: str = "ok"
    file_id: str


class StatusResponse(BaseModel):
    status: str = "ok"
