"""
Database models for the XIGRA+ backend.

All SQLAlchemy models are imported here so ``Base.metadata`` knows them.
"""

from xigra.models.shop import Shop
from xigra.models.file_record import FileRecord, FileStatus

__all__ = [
    "Shop",
    "FileRecord",
    "FileStatus",
]
