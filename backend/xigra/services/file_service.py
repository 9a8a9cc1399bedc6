"""
Encrypted file lifecycle: ingest, unlock, mark printed, delete.

Every step that reads a record and then writes it back holds the store's
files lock, so it serializes with other requests and with the expiry sweep.
"""

import logging
import time
import uuid
from pathlib import Path
from typing import List

from xigra.core.errors import NotFoundError, ValidationError, DecryptionError
from xigra.core.files import (
    atomic_write_bytes,
    decrypted_path,
    remove_artifacts,
    safe_segment,
)
from xigra.models import FileRecord, FileStatus
from xigra.models.shop import utcnow
from xigra.services.crypto_codec import CryptoCodec
from xigra.services.record_store import RecordStore

logger = logging.getLogger(__name__)

ENCRYPTED_SUFFIX = ".enc"


def new_file_id() -> str:
    return uuid.uuid4().hex[:8]


def new_blob_name() -> str:
    """Collision-resistant name for an encrypted upload."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{ENCRYPTED_SUFFIX}"


class FileService:
    def __init__(
        self,
        store: RecordStore,
        codec: CryptoCodec,
        upload_dir,
        shop_upload_dir,
        max_upload_size: int = 50 * 1024 * 1024,
    ):
        self.store = store
        self.codec = codec
        self.upload_dir = Path(upload_dir)
        self.shop_upload_dir = Path(shop_upload_dir)
        self.max_upload_size = max_upload_size

    def _require(self, file_id: str) -> FileRecord:
        record = self.store.get_file(file_id)
        if record is None:
            raise NotFoundError("File not found")
        return record

    def ingest(self, shop_id: str, original_name: str, body: bytes) -> FileRecord:
        """
        Store an already-encrypted upload and create a locked record.

        The body is never decrypted here.
        """
        if not shop_id or not original_name or not body:
            raise ValidationError("Missing shopId/originalName/file")
        safe_segment(shop_id, "shopId")
        safe_segment(original_name, "originalName")
        if len(body) > self.max_upload_size:
            raise ValidationError(
                f"File too large. Max size: {self.max_upload_size / 1024 / 1024} MB"
            )

        blob_path = atomic_write_bytes(self.upload_dir / new_blob_name(), body)

        record = FileRecord(
            id=new_file_id(),
            shop_id=shop_id,
            original_name=original_name,
            encrypted_path=str(blob_path.resolve()),
            status=FileStatus.LOCKED.value,
            size=len(body),
            created_at=utcnow(),
        )
        try:
            self.store.add_file(record)
        except Exception:
            # Unreferenced blobs are invisible to the reaper
            blob_path.unlink(missing_ok=True)
            raise

        logger.info(f"Ingested file {record.id} for shop {shop_id} ({record.size} bytes)")
        return record

    def list_for_shop(self, shop_id: str) -> List[FileRecord]:
        return self.store.list_files(shop_id=shop_id)

    def output_path(self, record: FileRecord) -> Path:
        return decrypted_path(self.shop_upload_dir, record.shop_id, record.original_name)

    def unlock(self, file_id: str) -> FileRecord:
        """
        Decrypt a file into its shop's output directory.

        The plaintext is on disk before the status is persisted, and a repeat
        call rewrites the same path, so an interrupted unlock can be rerun.
        """
        with self.store.files_lock:
            record = self._require(file_id)

            try:
                ciphertext = Path(record.encrypted_path).read_text(encoding="utf-8")
            except FileNotFoundError:
                raise NotFoundError("Encrypted file missing")
            except UnicodeDecodeError:
                logger.error(f"Encrypted file {file_id} is not text (shop {record.shop_id})")
                raise DecryptionError("Encrypted file is not text", stage="envelope")

            try:
                plaintext = self.codec.decrypt(ciphertext)
            except DecryptionError as e:
                logger.error(
                    f"Decrypt failed for file {file_id} (shop {record.shop_id}, "
                    f"{record.size} bytes): stage={e.stage}: {e.message}"
                )
                raise

            out_path = self.output_path(record)
            atomic_write_bytes(out_path, plaintext)

            new_status = FileStatus(record.status).advance_to(FileStatus.UNLOCKED)
            updated = self.store.update_file(file_id, status=new_status.value)
            if updated is None:
                raise NotFoundError("File not found")

        logger.info(f"Unlocked file {file_id} -> {out_path}")
        return updated

    def mark_printed(self, file_id: str) -> FileRecord:
        """Move a file to printed; a second call re-stamps printed_at."""
        with self.store.files_lock:
            self._require(file_id)
            updated = self.store.update_file(
                file_id, status=FileStatus.PRINTED.value, printed_at=utcnow()
            )

        logger.info(f"Marked file {file_id} printed")
        return updated

    def delete(self, file_id: str) -> None:
        """
        Remove both artifacts on a best-effort basis, then the record.

        Missing artifacts are fine; other removal failures are logged and the
        record is dropped regardless.
        """
        with self.store.files_lock:
            record = self._require(file_id)
            errors = remove_artifacts(record, self.shop_upload_dir)
            if errors:
                logger.error(
                    f"Deleting file {file_id} left {len(errors)} artifact(s) on disk: "
                    + "; ".join(str(e) for e in errors)
                )
            self.store.remove_file(file_id)

        logger.info(f"Deleted file {file_id}")

    def preview_path(self, shop_id: str, filename: str) -> Path:
        path = decrypted_path(self.shop_upload_dir, shop_id, filename)
        if not path.is_file():
            raise NotFoundError("Preview not found")
        return path
