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

"""The status of a single transfer, as seen by its sender."""

import abc
import enum
import logging
import threading

from typing import Optional

from lakesender.context import Context
from lakesender.target import EntityKind


class TransferStatus(enum.Enum):
  STARTED = 'started'
  """The transfer is still being processed."""

  SUCCESS = 'success'
  """Every chunk was sent and verified."""

  FAILED = 'failed'
  """Something went wrong.  The remote file is in an unknown state."""

  CANCELLED = 'cancelled'
  """The user or the job stopped the transfer."""


class TransferInfo(object):
  """A snapshot of what is being transferred."""

  def __init__(self,
               source: str,
               destination: str,
               source_size: int,
               block_size: int,
               entity_kind: EntityKind = EntityKind.FILE) -> None:
    self.source = source
    self.destination = destination
    self.source_size = source_size
    self.block_size = block_size
    self.entity_kind = entity_kind

  def is_folder_properties_transfer(self) -> bool:
    """True if this transfer carries a folder rather than a file's data."""
    return self.entity_kind == EntityKind.FOLDER


class TransferManagerBase(object):
  """What a sender needs from the job that owns its transfer."""

  @abc.abstractmethod
  def context(self) -> Context:
    """The context governing the whole transfer."""
    pass

  @abc.abstractmethod
  def info(self) -> TransferInfo:
    pass

  @abc.abstractmethod
  def status(self) -> TransferStatus:
    pass

  @abc.abstractmethod
  def set_status(self, status: TransferStatus) -> None:
    pass

  @abc.abstractmethod
  def is_dead_inflight(self) -> bool:
    """True if the transfer failed or was cancelled while in progress."""
    pass

  @abc.abstractmethod
  def fail_active_upload(self, stage: str, error: BaseException) -> None:
    """Mark the transfer as failed during the named stage."""
    pass

  @abc.abstractmethod
  def log(self, level: int, message: str) -> None:
    pass


class JobTransfer(TransferManagerBase):
  """An in-process transfer status, safe to update from chunk workers."""

  def __init__(self, info: TransferInfo,
               parent_context: Optional[Context] = None,
               logger: Optional[logging.Logger] = None) -> None:
    self._info = info
    parent = parent_context or Context.background()
    self._context = parent.with_cancel()
    self._logger = logger or logging.getLogger(__name__)
    self._lock = threading.Lock()
    self._status = TransferStatus.STARTED
    self._failure: Optional[BaseException] = None

  def context(self) -> Context:
    return self._context

  def info(self) -> TransferInfo:
    return self._info

  def status(self) -> TransferStatus:
    with self._lock:
      return self._status

  def set_status(self, status: TransferStatus) -> None:
    with self._lock:
      # Once dead, a transfer stays dead.
      if self._status in (TransferStatus.FAILED, TransferStatus.CANCELLED):
        return
      self._status = status

  def failure(self) -> Optional[BaseException]:
    """The first error reported through fail_active_upload, if any."""
    with self._lock:
      return self._failure

  def is_dead_inflight(self) -> bool:
    return self.status() in (TransferStatus.FAILED, TransferStatus.CANCELLED)

  def fail_active_upload(self, stage: str, error: BaseException) -> None:
    with self._lock:
      first = self._failure is None
      if first:
        self._failure = error
      if self._status != TransferStatus.CANCELLED:
        self._status = TransferStatus.FAILED

    if first:
      self.log(logging.ERROR, '{} failed: {}'.format(stage, error))
    # Stop any chunk work that is still running.
    self._context.cancel()

  def cancel(self) -> None:
    """Cancel the transfer.  In-flight work sees its context cancelled."""
    with self._lock:
      if self._status == TransferStatus.STARTED:
        self._status = TransferStatus.CANCELLED
    self._context.cancel()

  def log(self, level: int, message: str) -> None:
    self._logger.log(level, '%s -> %s: %s',
                     self._info.source, self._info.destination, message)
