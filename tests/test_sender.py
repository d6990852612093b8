import logging

import pytest

from lakesender.source_info import ContentHeaders
from lakesender.target import EntityKind, MalformedDestination
from lakesender.target import UnsupportedOperation
from lakesender.sender import DataLakeSender, FlushThresholdUnavailable
from lakesender.sender import MetadataFetchError
from lakesender.sender import SenderState, SenderStateError
from lakesender.transfer import TransferStatus

from conftest import DESTINATION, FakeSourceInfo, MiB


@pytest.fixture
def transfer(make_transfer):
    return make_transfer()


@pytest.fixture
def sender(transfer, store, source_info, config):
    return DataLakeSender(transfer, DESTINATION, store, source_info, config)


class TestConstruction:
    def test_plans_chunks(self, sender):
        assert sender.chunk_size == 4 * MiB
        assert sender.num_chunks == 3

    def test_falls_back_to_configured_block_size(
            self, make_transfer, store, source_info, config):
        transfer = make_transfer(source_size=10, block_size=0)
        sender = DataLakeSender(transfer, DESTINATION, store, source_info,
                                config)
        assert sender.chunk_size == config.block_size
        assert sender.num_chunks == 1

    def test_makes_no_remote_call(self, sender, store):
        assert store.calls == []
        assert sender.state == SenderState.CONSTRUCTED

    def test_snapshots_headers_once(self, sender, source_info):
        assert sender.creation_headers == source_info.headers
        sender.prologue()
        assert source_info.calls == 1

    def test_malformed_destination(self, transfer, store, source_info):
        with pytest.raises(MalformedDestination):
            DataLakeSender(transfer, "not a url", store, source_info)
        assert store.calls == []

    def test_metadata_fetch_failure(self, transfer, store):
        error = OSError("gone")
        with pytest.raises(MetadataFetchError) as info:
            DataLakeSender(transfer, DESTINATION, store,
                           FakeSourceInfo(error=error))
        assert info.value.__cause__ is error
        assert store.calls == []

    def test_file_entity_kind(self, sender):
        assert sender.entity_kind() == EntityKind.FILE

    def test_folder_entity_kind_is_unsupported(
            self, make_transfer, store, source_info):
        transfer = make_transfer(source_size=0, entity_kind=EntityKind.FOLDER)
        sender = DataLakeSender(transfer, DESTINATION, store, source_info)

        assert sender.target.kind == EntityKind.FOLDER
        with pytest.raises(UnsupportedOperation):
            sender.entity_kind()

    def test_pacer_is_kept_for_chunk_appends(
            self, transfer, store, source_info):
        pacer = object()
        sender = DataLakeSender(transfer, DESTINATION, store, source_info,
                                pacer=pacer)
        assert sender.pacer is pacer


class TestPrologue:
    def test_flush_threshold_needs_prologue(self, sender):
        with pytest.raises(FlushThresholdUnavailable):
            sender.flush_threshold

    def test_flush_threshold_is_chunk_size_times_multiplier(self, sender):
        sender.prologue()
        assert sender.flush_threshold == 4 * MiB * 3

    def test_creates_file_with_snapshotted_headers(self, sender, store):
        outcome = sender.prologue()

        assert outcome.modified
        assert outcome.ok
        assert store.calls == [("create_file", "dir/file.bin")]
        assert store.files["dir/file.bin"][1] == ContentHeaders(
            content_type="text/plain")
        assert sender.state == SenderState.PROLOGUED

    def test_creation_failure_is_reported_not_raised(
            self, sender, store, transfer):
        error = ConnectionError("network down")
        store.fail_create = error

        outcome = sender.prologue()

        assert outcome.modified
        assert outcome.error is error
        assert transfer.status() == TransferStatus.FAILED
        assert transfer.failure() is error
        assert transfer.context().is_cancelled()
        assert sender.state == SenderState.FAILED

    def test_flush_threshold_is_set_even_if_create_fails(self, sender, store):
        store.fail_create = ConnectionError("network down")
        sender.prologue()
        assert sender.flush_threshold == 4 * MiB * 3

    def test_cancelled_transfer_fails_prologue(self, sender, store, transfer):
        transfer.cancel()
        outcome = sender.prologue()

        assert outcome.modified
        assert not outcome.ok
        assert store.calls == []

    def test_runs_only_once(self, sender):
        sender.prologue()
        with pytest.raises(SenderStateError):
            sender.prologue()


class TestCleanup:
    def test_no_op_after_success(self, sender, store, transfer):
        sender.prologue()
        transfer.set_status(TransferStatus.SUCCESS)

        sender.cleanup()

        assert store.count("delete_file") == 0
        assert sender.state == SenderState.CLEANED_UP

    def test_deletes_after_failure(self, sender, store, transfer):
        sender.prologue()
        transfer.fail_active_upload("Uploading chunk", IOError("boom"))

        sender.cleanup()

        assert store.count("delete_file") == 1
        assert "dir/file.bin" not in store.files

    def test_deletes_after_cancel(self, sender, store, transfer):
        sender.prologue()
        transfer.cancel()

        sender.cleanup()

        assert store.count("delete_file") == 1

    def test_delete_has_its_own_deadline(self, sender, store, transfer, config):
        sender.prologue()
        transfer.cancel()

        sender.cleanup()

        assert transfer.context().is_cancelled()
        timeout = store.timeouts[-1]
        assert 0 < timeout <= config.delete_timeout

    def test_deletes_after_failed_create(self, sender, store):
        store.fail_create = ConnectionError("network down")
        outcome = sender.prologue()
        assert outcome.modified

        sender.cleanup()

        assert store.count("delete_file") == 1

    def test_nothing_to_delete_before_prologue(self, sender, store,
                                               transfer):
        store.files[sender.target.path.path] = (b"existing", None)
        transfer.cancel()

        sender.cleanup()

        assert store.count("delete_file") == 0
        assert sender.target.path.path in store.files
        assert sender.state == SenderState.CLEANED_UP

    def test_deletes_only_once(self, sender, store, transfer, caplog):
        sender.prologue()
        transfer.cancel()

        sender.cleanup()
        with caplog.at_level(logging.WARNING):
            sender.cleanup()

        assert store.count("delete_file") == 1
        assert "already ran" in caplog.text

    def test_delete_failure_is_logged(self, sender, store, transfer, caplog):
        sender.prologue()
        transfer.cancel()
        store.fail_delete = PermissionError("denied")

        with caplog.at_level(logging.ERROR):
            sender.cleanup()

        assert "error deleting the (incomplete) file" in caplog.text
        assert "denied" in caplog.text
        assert transfer.status() == TransferStatus.CANCELLED
        assert sender.state == SenderState.CLEANED_UP


class TestVerification:
    def test_remote_file_exists(self, sender):
        sender.prologue()
        assert sender.remote_file_exists()

    def test_missing_remote_file(self, sender):
        assert sender.remote_file_exists() is False

    def test_remote_file_exists_propagates_other_errors(self, sender, store):
        store.fail_properties = PermissionError("denied")
        with pytest.raises(PermissionError):
            sender.remote_file_exists()

    def test_destination_length(self, sender, store):
        sender.prologue()
        store.append(sender.target.path, 0, b"x" * 42)
        assert sender.get_destination_length() == 42

    def test_destination_length_propagates_errors(self, sender, store):
        store.fail_properties = TimeoutError("slow")
        with pytest.raises(TimeoutError):
            sender.get_destination_length()
