"""
Tests for the encrypted file lifecycle: ingest, unlock, mark printed, delete
"""
from pathlib import Path
from unittest.mock import patch

import pytest

from xigra.core.errors import DecryptionError, NotFoundError, ValidationError
from xigra.models import FileStatus
from xigra.services.crypto_codec import CryptoCodec, encrypt
from xigra.services.file_service import FileService


@pytest.mark.unit
class TestIngest:

    def test_creates_locked_record_and_blob(self, services, encrypted_upload):
        record = services.files.ingest("SHOP-ABC123", "receipt.pdf", encrypted_upload)

        assert record.status == FileStatus.LOCKED.value
        assert record.size == len(encrypted_upload)
        blob = Path(record.encrypted_path)
        assert blob.suffix == ".enc"
        assert blob.parent == Path(services.settings.UPLOAD_DIR).resolve()
        assert blob.read_bytes() == encrypted_upload
        assert services.store.get_file(record.id) is not None

    def test_never_writes_plaintext(self, services, encrypted_upload):
        services.files.ingest("SHOP-ABC123", "receipt.pdf", encrypted_upload)
        assert not (Path(services.settings.SHOP_UPLOAD_DIR) / "SHOP-ABC123").exists()

    def test_blob_names_do_not_collide(self, services):
        paths = {services.files.ingest("SHOP-1", "a.pdf", b"x").encrypted_path for _ in range(20)}
        assert len(paths) == 20

    @pytest.mark.parametrize(
        "shop_id, name, body",
        [(None, "a.pdf", b"x"), ("SHOP-1", None, b"x"), ("SHOP-1", "a.pdf", b""), ("", "a.pdf", b"x")],
    )
    def test_missing_inputs_are_validation_errors(self, services, shop_id, name, body):
        with pytest.raises(ValidationError):
            services.files.ingest(shop_id, name, body)
        assert services.store.list_files() == []

    def test_traversal_name_rejected_before_writing(self, services):
        with pytest.raises(ValidationError):
            services.files.ingest("SHOP-1", "../../evil.sh", b"x")
        assert list(Path(services.settings.UPLOAD_DIR).iterdir()) == []

    def test_store_failure_leaves_no_blob(self, services, encrypted_upload):
        with patch.object(services.store, "add_file", side_effect=RuntimeError("db locked")):
            with pytest.raises(RuntimeError):
                services.files.ingest("SHOP-1", "receipt.pdf", encrypted_upload)

        assert list(Path(services.settings.UPLOAD_DIR).iterdir()) == []
        assert services.store.list_files() == []

    def test_encrypted_path_is_absolute(self, services, encrypted_upload, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        files = FileService(
            services.store, CryptoCodec("k"), "rel_uploads", services.settings.SHOP_UPLOAD_DIR
        )

        record = files.ingest("SHOP-1", "receipt.pdf", encrypted_upload)

        path = Path(record.encrypted_path)
        assert path.is_absolute()
        assert path.parent == tmp_path.resolve() / "rel_uploads"

        # still reachable after the working directory moves
        monkeypatch.chdir(path.anchor)
        assert path.read_bytes() == encrypted_upload

    def test_oversized_body_rejected(self, services):
        too_big = b"x" * (services.settings.MAX_UPLOAD_SIZE + 1)
        with pytest.raises(ValidationError):
            services.files.ingest("SHOP-1", "big.pdf", too_big)


@pytest.mark.unit
class TestUnlock:

    def test_writes_plaintext_and_flips_status(self, services, encrypted_upload, sample_pdf):
        record = services.files.ingest("SHOP-ABC123", "receipt.pdf", encrypted_upload)

        updated = services.files.unlock(record.id)

        assert updated.status == FileStatus.UNLOCKED.value
        out = Path(services.settings.SHOP_UPLOAD_DIR) / "SHOP-ABC123" / "receipt.pdf"
        assert out.read_bytes() == sample_pdf

    def test_unlock_twice_is_idempotent(self, services, encrypted_upload, sample_pdf):
        record = services.files.ingest("SHOP-ABC123", "receipt.pdf", encrypted_upload)
        services.files.unlock(record.id)
        again = services.files.unlock(record.id)

        assert again.status == FileStatus.UNLOCKED.value
        assert services.files.output_path(again).read_bytes() == sample_pdf

    def test_unlock_after_printed_keeps_printed(self, services, encrypted_upload):
        record = services.files.ingest("SHOP-ABC123", "receipt.pdf", encrypted_upload)
        services.files.unlock(record.id)
        services.files.mark_printed(record.id)

        again = services.files.unlock(record.id)

        assert again.status == FileStatus.PRINTED.value

    def test_unknown_id_is_not_found(self, services):
        with pytest.raises(NotFoundError):
            services.files.unlock("deadbeef")

    def test_missing_ciphertext_is_not_found(self, services, encrypted_upload):
        record = services.files.ingest("SHOP-1", "receipt.pdf", encrypted_upload)
        Path(record.encrypted_path).unlink()

        with pytest.raises(NotFoundError):
            services.files.unlock(record.id)
        assert services.store.get_file(record.id).status == FileStatus.LOCKED.value

    def test_wrong_key_fails_and_stays_locked(self, services, sample_pdf):
        blob = encrypt(sample_pdf, "SOME_OTHER_KEY").encode()
        record = services.files.ingest("SHOP-1", "receipt.pdf", blob)

        with pytest.raises(DecryptionError):
            services.files.unlock(record.id)

        assert services.store.get_file(record.id).status == FileStatus.LOCKED.value
        assert not services.files.output_path(record).exists()

    def test_binary_garbage_is_decryption_error(self, services):
        record = services.files.ingest("SHOP-1", "receipt.pdf", b"\xff\xfe\x00garbage")
        with pytest.raises(DecryptionError):
            services.files.unlock(record.id)


@pytest.mark.unit
class TestMarkPrintedAndDelete:

    def test_mark_printed_stamps_time(self, services, encrypted_upload):
        record = services.files.ingest("SHOP-1", "receipt.pdf", encrypted_upload)
        services.files.unlock(record.id)

        printed = services.files.mark_printed(record.id)

        assert printed.status == FileStatus.PRINTED.value
        assert printed.printed_at is not None

    def test_mark_printed_twice_restamps(self, services, encrypted_upload):
        record = services.files.ingest("SHOP-1", "receipt.pdf", encrypted_upload)
        first = services.files.mark_printed(record.id)
        second = services.files.mark_printed(record.id)
        assert second.printed_at >= first.printed_at

    def test_mark_printed_unknown_is_not_found(self, services):
        with pytest.raises(NotFoundError):
            services.files.mark_printed("nope")

    def test_delete_removes_record_and_both_artifacts(self, services, encrypted_upload):
        record = services.files.ingest("SHOP-1", "receipt.pdf", encrypted_upload)
        services.files.unlock(record.id)
        out = services.files.output_path(record)

        services.files.delete(record.id)

        assert services.store.get_file(record.id) is None
        assert not Path(record.encrypted_path).exists()
        assert not out.exists()

    def test_delete_with_artifact_already_gone(self, services, encrypted_upload):
        record = services.files.ingest("SHOP-1", "receipt.pdf", encrypted_upload)
        Path(record.encrypted_path).unlink()

        services.files.delete(record.id)

        assert services.store.get_file(record.id) is None

    def test_delete_unknown_is_not_found(self, services):
        with pytest.raises(NotFoundError):
            services.files.delete("nope")

    def test_preview_path(self, services, encrypted_upload):
        record = services.files.ingest("SHOP-1", "receipt.pdf", encrypted_upload)
        with pytest.raises(NotFoundError):
            services.files.preview_path("SHOP-1", "receipt.pdf")

        services.files.unlock(record.id)
        assert services.files.preview_path("SHOP-1", "receipt.pdf").is_file()

        with pytest.raises(ValidationError):
            services.files.preview_path("SHOP-1", "..")

    def test_delete_is_best_effort_when_ciphertext_cannot_be_removed(self, services, encrypted_upload):
        record = services.files.ingest("SHOP-1", "receipt.pdf", encrypted_upload)
        services.files.unlock(record.id)
        out = services.files.output_path(record)
        # a directory in place of the blob makes unlink fail with an OSError
        blob = Path(record.encrypted_path)
        blob.unlink()
        blob.mkdir()

        services.files.delete(record.id)

        assert services.store.get_file(record.id) is None
        assert not out.exists()
        assert blob.is_dir()
