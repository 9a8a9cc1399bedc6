"""
FileRecord database model and its status lifecycle.
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Index

from xigra.database import Base
from xigra.models.shop import utcnow


class FileStatus(str, enum.Enum):
    """locked -> unlocked -> printed, never backwards."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"
    PRINTED = "printed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def advance_to(self, target: "FileStatus") -> "FileStatus":
        """Return the later of the two statuses."""
        return target if target.rank >= self.rank else self


_STATUS_ORDER = [FileStatus.LOCKED, FileStatus.UNLOCKED, FileStatus.PRINTED]


class FileRecord(Base):
    """One uploaded encrypted file and where its artifacts live."""

    __tablename__ = "files"
    __table_args__ = (
        Index("idx_file_shop_created", "shop_id", "created_at"),
    )

    id = Column(String, primary_key=True, index=True)
    shop_id = Column(String, nullable=False, index=True)  # Not enforced as a FK
    original_name = Column(String, nullable=False)
    encrypted_path = Column(String, nullable=False)
    status = Column(String, nullable=False, default=FileStatus.LOCKED.value)
    size = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    printed_at = Column(DateTime, nullable=True)
