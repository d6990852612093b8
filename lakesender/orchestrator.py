# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Drives a single transfer through a sender.

The order is fixed: prologue, then every chunk, then cleanup, then the
result.  Chunks run concurrently on a thread pool, but none starts before the
prologue returns, and cleanup waits for all of them to finish."""

import concurrent.futures
import logging
import threading

from typing import Callable, Optional

from lakesender.sender import DataLakeSender
from lakesender.transfer import TransferManagerBase, TransferStatus


logger = logging.getLogger(__name__)

# Called with (chunk index, offset, length).  Appends that byte range of the
# source to the remote file.
ChunkFunction = Callable[[int, int, int], None]


class LengthMismatch(Exception):
  """Raised when the remote file's length differs from the source's."""

  def __init__(self, expected: int, actual: int) -> None:
    super().__init__(
        'Destination has {} bytes, expected {}'.format(actual, expected))
    self.expected = expected
    self.actual = actual


class TransferResult(object):
  """How a transfer ended."""

  def __init__(self, status: TransferStatus,
               error: Optional[BaseException] = None,
               destination_length: Optional[int] = None) -> None:
    self.status = status
    self.error = error
    self.destination_length = destination_length


class TransferOrchestrator(object):
  def __init__(self, sender: DataLakeSender, transfer: TransferManagerBase,
               max_workers: int = 4) -> None:
    self._sender = sender
    self._transfer = transfer
    self._max_workers = max_workers
    self._lock = threading.Lock()
    self._error: Optional[BaseException] = None
    self._destination_length: Optional[int] = None

  def _fail(self, stage: str, error: BaseException) -> None:
    with self._lock:
      if self._error is None:
        self._error = error
    self._transfer.fail_active_upload(stage, error)

  def run(self, chunk_fn: ChunkFunction) -> TransferResult:
    outcome = self._sender.prologue()
    if not outcome.ok:
      assert outcome.error is not None
      with self._lock:
        self._error = outcome.error

    try:
      if outcome.ok:
        self._run_chunks(chunk_fn)
      if not self._transfer.is_dead_inflight():
        self._verify()
    finally:
      # Every chunk is terminal by now.  The prologue touched the destination
      # whether or not it succeeded, so cleanup is always owed.
      if outcome.modified:
        self._sender.cleanup()

    return TransferResult(self._transfer.status(), self._error,
                          self._destination_length)

  def _run_chunks(self, chunk_fn: ChunkFunction) -> None:
    source_size = self._transfer.info().source_size
    chunk_size = self._sender.chunk_size

    def run_one(index: int) -> None:
      # Skip chunks that were still queued when the transfer died.
      if self._transfer.is_dead_inflight():
        return
      offset = index * chunk_size
      length = min(chunk_size, source_size - offset)
      try:
        chunk_fn(index, offset, length)
      except Exception as e:
        logger.debug('Chunk %d of %s failed: %s', index, self._sender.target, e)
        self._fail('Uploading chunk', e)

    # Leaving the with block waits for every submitted chunk.
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=self._max_workers,
        thread_name_prefix='chunk') as executor:
      for index in range(self._sender.num_chunks):
        executor.submit(run_one, index)

  def _verify(self) -> None:
    expected = self._transfer.info().source_size
    try:
      actual = self._sender.get_destination_length()
    except Exception as e:
      self._fail('Verifying length', e)
      return

    self._destination_length = actual
    if actual != expected:
      self._fail('Verifying length', LengthMismatch(expected, actual))
      return

    self._transfer.set_status(TransferStatus.SUCCESS)
