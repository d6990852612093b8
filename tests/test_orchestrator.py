import threading
import time

import pytest

from lakesender.orchestrator import LengthMismatch, TransferOrchestrator
from lakesender.sender import DataLakeSender, SenderStateError
from lakesender.transfer import TransferStatus

from conftest import DESTINATION, MiB


def make_sender(transfer, store, source_info, config):
    return DataLakeSender(transfer, DESTINATION, store, source_info, config)


def appender(store, sender):
    """A chunk function that writes zeros into the fake store."""

    def append(index, offset, length):
        store.append(sender.target.path, offset, bytes(length))

    return append


class TestTransferOrchestrator:
    def test_success(self, make_transfer, store, source_info, config):
        transfer = make_transfer()
        sender = make_sender(transfer, store, source_info, config)

        result = TransferOrchestrator(sender, transfer).run(
            appender(store, sender))

        assert result.status == TransferStatus.SUCCESS
        assert result.error is None
        assert result.destination_length == 10 * MiB
        assert store.count("delete_file") == 0

    def test_chunk_ranges(self, make_transfer, store, source_info, config):
        transfer = make_transfer()
        sender = make_sender(transfer, store, source_info, config)
        seen = []
        lock = threading.Lock()
        append = appender(store, sender)

        def record(index, offset, length):
            with lock:
                seen.append((index, offset, length))
            append(index, offset, length)

        TransferOrchestrator(sender, transfer, max_workers=3).run(record)

        assert sorted(seen) == [
            (0, 0, 4 * MiB),
            (1, 4 * MiB, 4 * MiB),
            (2, 8 * MiB, 2 * MiB),
        ]

    def test_empty_source(self, make_transfer, store, source_info, config):
        transfer = make_transfer(source_size=0)
        sender = make_sender(transfer, store, source_info, config)
        calls = []

        result = TransferOrchestrator(sender, transfer).run(
            lambda *args: calls.append(args))

        assert calls == []
        assert result.status == TransferStatus.SUCCESS
        assert result.destination_length == 0

    def test_prologue_runs_before_any_chunk(
            self, make_transfer, store, source_info, config):
        transfer = make_transfer()
        sender = make_sender(transfer, store, source_info, config)
        created_first = []
        append = appender(store, sender)

        def check(index, offset, length):
            created_first.append(store.calls[0][0] == "create_file")
            append(index, offset, length)

        TransferOrchestrator(sender, transfer).run(check)

        assert created_first == [True, True, True]

    def test_failed_create_skips_chunks_and_deletes(
            self, make_transfer, store, source_info, config):
        transfer = make_transfer()
        sender = make_sender(transfer, store, source_info, config)
        store.fail_create = ConnectionError("network down")
        calls = []

        result = TransferOrchestrator(sender, transfer).run(
            lambda *args: calls.append(args))

        assert calls == []
        assert result.status == TransferStatus.FAILED
        assert result.error is store.fail_create
        assert store.count("delete_file") == 1

    def test_chunk_failure_deletes_after_all_chunks_finish(
            self, make_transfer, store, source_info, config):
        transfer = make_transfer(source_size=8 * MiB)
        sender = make_sender(transfer, store, source_info, config)
        second_started = threading.Event()
        deletes_seen_by_chunk = []

        def chunk(index, offset, length):
            if index == 0:
                second_started.wait(5)
                raise IOError("append failed")
            second_started.set()
            time.sleep(0.2)
            deletes_seen_by_chunk.append(store.count("delete_file"))

        result = TransferOrchestrator(sender, transfer, max_workers=2).run(
            chunk)

        assert result.status == TransferStatus.FAILED
        assert isinstance(result.error, IOError)
        assert deletes_seen_by_chunk == [0]
        assert store.count("delete_file") == 1

    def test_cleanup_called_exactly_once(
            self, make_transfer, store, source_info, config, mocker):
        transfer = make_transfer()
        sender = make_sender(transfer, store, source_info, config)
        cleanup = mocker.spy(sender, "cleanup")

        def fail(index, offset, length):
            raise IOError("append failed")

        TransferOrchestrator(sender, transfer).run(fail)

        assert cleanup.call_count == 1
        assert store.count("delete_file") == 1

    def test_short_destination_fails_verification(
            self, make_transfer, store, source_info, config):
        transfer = make_transfer()
        sender = make_sender(transfer, store, source_info, config)
        append = appender(store, sender)

        def drop_last_chunk(index, offset, length):
            if index < 2:
                append(index, offset, length)

        result = TransferOrchestrator(sender, transfer).run(drop_last_chunk)

        assert result.status == TransferStatus.FAILED
        assert isinstance(result.error, LengthMismatch)
        assert result.error.actual == 8 * MiB
        assert result.destination_length == 8 * MiB
        assert store.count("delete_file") == 1

    def test_cancelled_transfer_skips_queued_chunks(
            self, make_transfer, store, source_info, config):
        transfer = make_transfer()
        sender = make_sender(transfer, store, source_info, config)
        calls = []

        def cancel_on_first(index, offset, length):
            calls.append(index)
            transfer.cancel()

        result = TransferOrchestrator(sender, transfer, max_workers=1).run(
            cancel_on_first)

        assert calls == [0]
        assert result.status == TransferStatus.CANCELLED
        assert store.count("get_file_properties") == 0
        assert store.count("delete_file") == 1

    def test_prologue_state_error_propagates(
            self, make_transfer, store, source_info, config):
        transfer = make_transfer()
        sender = make_sender(transfer, store, source_info, config)
        orchestrator = TransferOrchestrator(sender, transfer)
        orchestrator.run(appender(store, sender))

        with pytest.raises(SenderStateError):
            orchestrator.run(appender(store, sender))
