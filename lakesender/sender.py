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

"""Sends one file to a hierarchical-namespace store.

The sender creates the remote file before any chunk is appended, and deletes
it again if the transfer dies in flight.  Chunk appends themselves are run by
the caller; they read flush_threshold to decide when to commit."""

import enum
import logging

from typing import Any, Optional

from lakesender.chunk_plan import plan_chunks
from lakesender.cloud.base import RemoteNotFound, RemoteStoreBase
from lakesender.context import Context
from lakesender.sender_configuration import SenderConfig
from lakesender.source_info import ContentHeaders, SourceInfoProviderBase
from lakesender.target import EntityKind, RemoteTarget, resolve_target
from lakesender.transfer import TransferManagerBase


class MetadataFetchError(Exception):
  """Raised when the source's properties can't be fetched."""
  pass

class FlushThresholdUnavailable(Exception):
  """Raised when the flush threshold is read before the prologue has run."""
  pass

class SenderStateError(Exception):
  """Raised when a lifecycle step is called out of order."""
  pass


class SenderState(enum.Enum):
  CONSTRUCTED = 'constructed'
  PROLOGUED = 'prologued'
  FAILED = 'failed'
  CLEANED_UP = 'cleaned_up'


class PrologueOutcome(object):
  """The result of a prologue.

  modified is always True: even a failed create may have left something
  behind, so the caller still owes a cleanup."""

  def __init__(self, modified: bool,
               error: Optional[BaseException] = None) -> None:
    self.modified = modified
    self.error = error

  @property
  def ok(self) -> bool:
    return self.error is None


class DataLakeSender(object):
  """The per-transfer create/cleanup/verify lifecycle for one remote file."""

  def __init__(self,
               transfer: TransferManagerBase,
               destination: str,
               store: RemoteStoreBase,
               source_info: SourceInfoProviderBase,
               config: Optional[SenderConfig] = None,
               pacer: Optional[Any] = None) -> None:
    self._transfer = transfer
    self._config = config or SenderConfig({})
    self._pacer = pacer

    info = transfer.info()

    block_size = info.block_size or self._config.block_size
    self._plan = plan_chunks(info.source_size, block_size)

    if info.is_folder_properties_transfer():
      kind = EntityKind.FOLDER
    else:
      kind = EntityKind.FILE
    self._target: RemoteTarget = resolve_target(destination, kind, store)

    try:
      properties = source_info.properties()
    except Exception as e:
      raise MetadataFetchError(
          'Unable to fetch properties of {}: {}'.format(info.source, e)) from e
    self._creation_headers: ContentHeaders = properties.headers

    self._flush_threshold: Optional[int] = None
    self._state = SenderState.CONSTRUCTED

  @property
  def state(self) -> SenderState:
    return self._state

  @property
  def target(self) -> RemoteTarget:
    return self._target

  @property
  def chunk_size(self) -> int:
    return self._plan.chunk_size

  @property
  def num_chunks(self) -> int:
    return self._plan.num_chunks

  @property
  def creation_headers(self) -> ContentHeaders:
    return self._creation_headers

  @property
  def pacer(self) -> Optional[Any]:
    """The rate limiter chunk appends should go through, if any."""
    return self._pacer

  @property
  def flush_threshold(self) -> int:
    """Appended bytes are flushed each time they cross a multiple of this."""
    if self._flush_threshold is None:
      raise FlushThresholdUnavailable(
          'The flush threshold is computed by prologue()')
    return self._flush_threshold

  def entity_kind(self) -> EntityKind:
    return self._target.entity_kind()

  def remote_file_exists(self) -> bool:
    try:
      self._target.get_properties(self._transfer.context())
    except RemoteNotFound:
      return False
    return True

  def prologue(self) -> PrologueOutcome:
    """Create the remote file at its full size.  Call once, before any chunk.

    A failure is reported to the transfer and returned in the outcome rather
    than raised."""

    if self._state != SenderState.CONSTRUCTED:
      raise SenderStateError(
          'prologue() called in state {}'.format(self._state.value))

    # The chunk size is final by now.
    self._flush_threshold = (
        self.chunk_size * self._config.flush_threshold_multiplier)

    info = self._transfer.info()
    try:
      # For data lake stores this is "create path".
      self._target.create(self._transfer.context(), info.source_size,
                          self._creation_headers)
    except Exception as e:
      self._transfer.fail_active_upload('Creating file', e)
      self._state = SenderState.FAILED
      return PrologueOutcome(modified=True, error=e)

    self._state = SenderState.PROLOGUED
    return PrologueOutcome(modified=True)

  def cleanup(self) -> None:
    """Delete the remote file if the transfer died in flight.

    Call once, after every chunk has finished.  The delete gets its own
    deadline, so it still runs after the transfer itself was cancelled."""

    if self._state == SenderState.CLEANED_UP:
      self._transfer.log(logging.WARNING,
                         'cleanup() already ran for {}'.format(self._target))
      return

    # Before the prologue nothing was created, so there is nothing to delete.
    prologue_ran = self._state != SenderState.CONSTRUCTED

    if prologue_ran and self._transfer.is_dead_inflight():
      # The file's contents are at an unknown stage of partial completeness.
      deletion_context = Context.background().with_timeout(
          self._config.delete_timeout)
      try:
        self._target.delete(deletion_context)
      except Exception as e:
        self._transfer.log(
            logging.ERROR,
            'error deleting the (incomplete) file {}. Failed with error {}'
            .format(self._target, e))
      finally:
        deletion_context.cancel()

    self._state = SenderState.CLEANED_UP

  def get_destination_length(self) -> int:
    """The length of the remote file, for verification after the transfer."""
    return self._target.get_properties(
        self._transfer.context()).content_length
