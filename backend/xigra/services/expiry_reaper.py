"""
Expiry reaper: purges file records and artifacts older than the TTL.

Runs as an APScheduler interval job. ``max_instances=1`` keeps sweeps from
overlapping (a late tick is skipped), and each sweep holds the store's files
lock so it serializes with ingest, unlock and delete.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from xigra.core.files import remove_artifacts
from xigra.models.shop import utcnow
from xigra.services.record_store import RecordStore

logger = logging.getLogger(__name__)

JOB_ID = "expiry-sweep"


class ExpiryReaper:
    def __init__(
        self,
        store: RecordStore,
        shop_upload_dir,
        ttl_seconds: int = 600,
        interval_seconds: int = 60,
    ):
        self.store = store
        self.shop_upload_dir = shop_upload_dir
        self.ttl = timedelta(seconds=ttl_seconds)
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[BackgroundScheduler] = None

    def is_expired(self, created_at: datetime, now: datetime) -> bool:
        return now - created_at > self.ttl

    def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Delete every expired record and its artifacts; returns how many.

        A record whose artifacts can't be removed is kept so the next sweep
        retries it, and the failure doesn't stop the rest of the sweep.
        """
        now = now or utcnow()
        purged = 0

        with self.store.files_lock:
            survivors = []
            for record in self.store.list_files():
                if not self.is_expired(record.created_at, now):
                    survivors.append(record)
                    continue
                errors = remove_artifacts(record, self.shop_upload_dir)
                if errors:
                    logger.error(
                        f"Could not purge artifacts of file {record.id}: "
                        + "; ".join(str(e) for e in errors)
                    )
                    survivors.append(record)
                    continue
                purged += 1

            if purged:
                self.store.replace_files(survivors)

        if purged:
            logger.info(f"Expiry sweep purged {purged} file(s)")
        return purged

    def _run(self) -> None:
        try:
            self.sweep()
        except Exception as e:
            logger.error(f"Expiry sweep failed: {e}", exc_info=True)

    def start(self) -> None:
        if self._scheduler is not None:
            return
        scheduler = BackgroundScheduler(timezone="UTC")
        scheduler.add_job(
            self._run,
            "interval",
            seconds=self.interval_seconds,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            f"Expiry reaper started (ttl={self.ttl.total_seconds():.0f}s, "
            f"every {self.interval_seconds}s)"
        )

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=True)
        self._scheduler = None
        logger.info("Expiry reaper stopped")

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running
