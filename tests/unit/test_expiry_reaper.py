"""
Tests for the expiry reaper sweep and its scheduler lifecycle
"""
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from xigra.models import FileStatus
from xigra.services.expiry_reaper import JOB_ID


@pytest.mark.unit
class TestExpirySweep:

    def test_expired_record_and_artifacts_are_purged(self, services, encrypted_upload):
        record = services.files.ingest("SHOP-1", "receipt.pdf", encrypted_upload)
        services.files.unlock(record.id)
        out = services.files.output_path(record)
        services.store.update_file(record.id, created_at=record.created_at - timedelta(minutes=11))

        purged = services.reaper.sweep()

        assert purged == 1
        assert services.store.get_file(record.id) is None
        assert not Path(record.encrypted_path).exists()
        assert not out.exists()

    def test_young_record_is_untouched(self, services, make_record):
        young = make_record(age=timedelta(minutes=9))
        old = make_record(age=timedelta(minutes=11))

        assert services.reaper.sweep() == 1

        kept = services.store.get_file(young.id)
        assert kept is not None
        assert kept.status == young.status
        assert Path(young.encrypted_path).exists()
        assert services.store.get_file(old.id) is None

    def test_explicit_now_controls_expiry(self, services, make_record):
        record = make_record()
        assert services.reaper.sweep(now=record.created_at + timedelta(seconds=600)) == 0
        assert services.reaper.sweep(now=record.created_at + timedelta(seconds=601)) == 1

    def test_locked_record_without_plaintext_is_purged(self, services, make_record):
        record = make_record(age=timedelta(hours=1), status=FileStatus.LOCKED)
        assert services.reaper.sweep() == 1
        assert not Path(record.encrypted_path).exists()

    def test_one_failing_record_does_not_abort_sweep(self, services, make_record):
        bad = make_record(original_name="bad.pdf", age=timedelta(hours=1))
        good = make_record(original_name="good.pdf", age=timedelta(hours=1))

        from xigra.core import files as files_module
        real_remove = files_module.remove_artifacts

        def flaky_remove(record, shop_upload_dir):
            if record.id == bad.id:
                return [PermissionError("read-only")]
            return real_remove(record, shop_upload_dir)

        with patch("xigra.services.expiry_reaper.remove_artifacts", side_effect=flaky_remove):
            purged = services.reaper.sweep()

        assert purged == 1
        assert services.store.get_file(good.id) is None
        # kept for the next sweep to retry
        assert services.store.get_file(bad.id) is not None

    def test_undeletable_blob_keeps_record_for_retry(self, services, make_record):
        record = make_record(age=timedelta(hours=1))
        blob = Path(record.encrypted_path)
        blob.unlink()
        blob.mkdir()

        assert services.reaper.sweep() == 0
        assert services.store.get_file(record.id) is not None

        blob.rmdir()
        assert services.reaper.sweep() == 1
        assert services.store.get_file(record.id) is None

    def test_sweep_with_nothing_expired_writes_nothing(self, services, make_record):
        make_record()
        with patch.object(services.store, "replace_files") as replace:
            assert services.reaper.sweep() == 0
        replace.assert_not_called()

    def test_shop_listing_empty_after_sweep(self, services, make_record):
        make_record(shop_id="SHOP-ACME01", age=timedelta(minutes=30))
        services.reaper.sweep()
        assert services.files.list_for_shop("SHOP-ACME01") == []


@pytest.mark.unit
class TestReaperLifecycle:

    def test_start_registers_single_instance_job(self, services):
        reaper = services.reaper
        reaper.start()
        try:
            assert reaper.running
            job = reaper._scheduler.get_job(JOB_ID)
            assert job.max_instances == 1
            assert job.coalesce is True
            reaper.start()  # second start is a no-op
            assert len(reaper._scheduler.get_jobs()) == 1
        finally:
            reaper.shutdown()
        assert not reaper.running

    def test_run_logs_and_swallows_errors(self, services, caplog):
        with patch.object(services.reaper, "sweep", side_effect=RuntimeError("disk on fire")):
            services.reaper._run()
        assert "Expiry sweep failed" in caplog.text
