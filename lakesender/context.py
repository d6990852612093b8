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

"""Cancellation tokens with optional deadlines."""

import threading
import time
import weakref

from typing import Optional


class ContextCancelled(Exception):
  """Raised by Context.check() when the context was cancelled."""
  pass

class DeadlineExceeded(ContextCancelled):
  """Raised by Context.check() when the context's deadline has passed."""
  pass


class Context(object):
  """A cancellation token that may also carry a deadline.

  A child context created with with_cancel() or with_timeout() is cancelled
  whenever its parent is.  A context created with background() has no parent,
  so nothing but its own deadline or an explicit cancel() can stop it."""

  def __init__(self,
               parent: Optional['Context'] = None,
               deadline: Optional[float] = None) -> None:
    self._event = threading.Event()
    self._lock = threading.Lock()
    # Children are held weakly, so a long-lived job context does not keep every
    # finished transfer context alive.  Each child holds its parent strongly,
    # which keeps intermediate contexts alive while a descendant is in use.
    self._children: weakref.WeakSet = weakref.WeakSet()

    # The effective deadline is the earlier of our own and the parent's.
    if parent is not None and parent.deadline is not None:
      if deadline is None or parent.deadline < deadline:
        deadline = parent.deadline
    self.deadline: Optional[float] = deadline
    """A time.monotonic() value after which the context is expired."""

    self._parent = parent
    if parent is not None:
      parent._add_child(self)

  @staticmethod
  def background() -> 'Context':
    """A root context: never cancelled unless cancel() is called on it."""
    return Context()

  def with_cancel(self) -> 'Context':
    """A child context that can be cancelled without affecting this one."""
    return Context(parent=self)

  def with_timeout(self, seconds: float) -> 'Context':
    """A child context that expires after the given number of seconds."""
    return Context(parent=self, deadline=time.monotonic() + seconds)

  def _add_child(self, child: 'Context') -> None:
    with self._lock:
      if not self._event.is_set():
        self._children.add(child)
        return
    child.cancel()

  def cancel(self) -> None:
    """Cancel this context and every context derived from it."""

    with self._lock:
      self._event.set()
      children = list(self._children)
      self._children = weakref.WeakSet()

    for child in children:
      child.cancel()

  def is_cancelled(self) -> bool:
    return self._event.is_set() or self._expired()

  def _expired(self) -> bool:
    return self.deadline is not None and time.monotonic() >= self.deadline

  def remaining(self) -> Optional[float]:
    """Seconds left before the deadline, or None if there is no deadline."""
    if self.deadline is None:
      return None
    return max(0.0, self.deadline - time.monotonic())

  def check(self) -> None:
    """Raise if this context can no longer be used for new work."""
    if self._event.is_set():
      raise ContextCancelled('Context was cancelled')
    if self._expired():
      raise DeadlineExceeded('Context deadline exceeded')
