"""
Shop database model.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime

from xigra.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Shop(Base):
    """A registered print shop that receives customer uploads."""

    __tablename__ = "shops"

    id = Column(String, primary_key=True, index=True)  # SHOP-XXXXXX
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
