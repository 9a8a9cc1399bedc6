"""
Record store for shops and file records.

Both collections live in SQLite. Every mutation of a collection holds that
collection's lock, so a read-decide-write sequence (ingest, unlock, delete,
expiry sweep) can't lose another writer's update. Callers that need to read
and then write under one lock use ``with store.files_lock:``; the lock is
re-entrant so the store's own methods can be called inside it.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from xigra.database import Base, build_engine, build_session_factory
from xigra.models import FileRecord, Shop

logger = logging.getLogger(__name__)


class RecordStore:
    """Keyed store for the ``shops`` and ``files`` collections."""

    def __init__(self, database_url: str, echo: bool = False):
        self.engine = build_engine(database_url, echo=echo)
        self._session_factory = build_session_factory(self.engine)
        self.shops_lock = threading.RLock()
        self.files_lock = threading.RLock()

    def init(self) -> None:
        """Create tables if absent."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Record store initialized")

    def close(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # --- Shops ---

    def list_shops(self) -> List[Shop]:
        with self.session() as db:
            return db.query(Shop).order_by(Shop.created_at).all()

    def get_shop(self, shop_id: str) -> Optional[Shop]:
        with self.session() as db:
            return db.get(Shop, shop_id)

    def append_shop(self, shop: Shop) -> Shop:
        with self.shops_lock, self.session() as db:
            db.add(shop)
        return shop

    # --- Files ---

    def list_files(self, shop_id: Optional[str] = None) -> List[FileRecord]:
        """Files, newest first, optionally for one shop."""
        with self.session() as db:
            query = db.query(FileRecord)
            if shop_id is not None:
                query = query.filter(FileRecord.shop_id == shop_id)
            return query.order_by(desc(FileRecord.created_at)).all()

    def get_file(self, file_id: str) -> Optional[FileRecord]:
        with self.session() as db:
            return db.get(FileRecord, file_id)

    def add_file(self, record: FileRecord) -> FileRecord:
        with self.files_lock, self.session() as db:
            db.add(record)
        return record

    def update_file(self, file_id: str, **changes) -> Optional[FileRecord]:
        """Apply column changes to one record; returns None if it is gone."""
        with self.files_lock, self.session() as db:
            record = db.get(FileRecord, file_id)
            if record is None:
                return None
            for column, value in changes.items():
                setattr(record, column, value)
            return record

    def remove_file(self, file_id: str) -> bool:
        with self.files_lock, self.session() as db:
            record = db.get(FileRecord, file_id)
            if record is None:
                return False
            db.delete(record)
            return True

    def replace_files(self, records: Iterable[FileRecord]) -> None:
        """
        Make the files collection equal to ``records`` in one transaction.

        Rows not in ``records`` are deleted, the rest are merged. Callers
        computing ``records`` from a prior read must hold ``files_lock``
        across the read and this call.
        """
        records = list(records)
        keep_ids = {r.id for r in records}

        with self.files_lock, self.session() as db:
            query = db.query(FileRecord)
            if keep_ids:
                query = query.filter(FileRecord.id.notin_(keep_ids))
            removed = query.delete(synchronize_session=False)
            for record in records:
                db.merge(record)

        logger.debug(f"Replaced files collection: kept {len(records)}, removed {removed}")
