import threading

import pytest

from lakesender.cloud.base import ObjectProperties, RemoteNotFound
from lakesender.cloud.base import RemoteStoreBase
from lakesender.sender_configuration import SenderConfig
from lakesender.source_info import ContentHeaders, SourceInfoProviderBase
from lakesender.source_info import SourceProperties
from lakesender.transfer import JobTransfer, TransferInfo

DESTINATION = "abfss://data@account.dfs.core.windows.net/dir/file.bin"
MiB = 1 << 20


class FakeStore(RemoteStoreBase):
    """An in-memory store that records every call made to it."""

    def __init__(self):
        self.files = {}
        self.folders = set()
        self.calls = []
        self.timeouts = []
        self.fail_create = None
        self.fail_delete = None
        self.fail_properties = None
        self._lock = threading.Lock()

    def count(self, name):
        return sum(1 for call, _ in self.calls if call == name)

    def _record(self, name, path, timeout):
        with self._lock:
            self.calls.append((name, path.path))
            self.timeouts.append(timeout)

    def append(self, path, offset, data):
        with self._lock:
            content, headers = self.files[path.path]
            end = offset + len(data)
            if len(content) < end:
                content = content + bytes(end - len(content))
            content = content[:offset] + data + content[end:]
            self.files[path.path] = (content, headers)

    def create_file(self, path, size, headers, timeout=None):
        self._record("create_file", path, timeout)
        if self.fail_create:
            raise self.fail_create
        self.files[path.path] = (b"", headers)

    def create_directory(self, path, timeout=None):
        self._record("create_directory", path, timeout)
        if self.fail_create:
            raise self.fail_create
        self.folders.add(path.path)

    def delete_file(self, path, timeout=None):
        self._record("delete_file", path, timeout)
        if self.fail_delete:
            raise self.fail_delete
        if self.files.pop(path.path, None) is None:
            raise RemoteNotFound(path.path)

    def delete_directory(self, path, timeout=None):
        self._record("delete_directory", path, timeout)
        if path.path not in self.folders:
            raise RemoteNotFound(path.path)
        self.folders.remove(path.path)

    def get_file_properties(self, path, timeout=None):
        self._record("get_file_properties", path, timeout)
        if self.fail_properties:
            raise self.fail_properties
        if path.path not in self.files:
            raise RemoteNotFound(path.path)
        content, headers = self.files[path.path]
        return ObjectProperties(len(content), headers)

    def get_directory_properties(self, path, timeout=None):
        self._record("get_directory_properties", path, timeout)
        if path.path not in self.folders:
            raise RemoteNotFound(path.path)
        return ObjectProperties(0, ContentHeaders())


class FakeSourceInfo(SourceInfoProviderBase):
    def __init__(self, headers=None, error=None):
        self.headers = headers or ContentHeaders(content_type="text/plain")
        self.error = error
        self.calls = 0

    def properties(self):
        self.calls += 1
        if self.error:
            raise self.error
        return SourceProperties(self.headers)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def source_info():
    return FakeSourceInfo()


@pytest.fixture
def config():
    return SenderConfig({"flush_threshold_multiplier": 3, "delete_timeout": 5})


@pytest.fixture
def make_transfer():
    def make(source_size=10 * MiB, block_size=4 * MiB, **kwargs):
        info = TransferInfo("local/file.bin", DESTINATION, source_size,
                            block_size, **kwargs)
        return JobTransfer(info)

    return make
