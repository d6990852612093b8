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

"""Remote object operations on cloud storage providers.

Base class definition."""

import abc

from typing import NamedTuple, Optional

from lakesender.source_info import ContentHeaders


class RemoteNotFound(Exception):
  """Raised when the remote file or folder does not exist."""
  pass


class RemotePath(NamedTuple):
  """A parsed destination.

  For "gs://bucket/a/b.txt", scheme is "gs", account is "", container is
  "bucket", and path is "a/b.txt".  query holds an Azure SAS token, if the
  destination carried one.  It is a secret, so it never appears in logs."""

  scheme: str
  account: str
  container: str
  path: str
  query: str = ''

  def __repr__(self) -> str:
    query = '<redacted>' if self.query else ''
    return 'RemotePath({!r}, {!r}, {!r}, {!r}, {!r})'.format(
        self.scheme, self.account, self.container, self.path, query)


class ObjectProperties(NamedTuple):
  """What a "get properties" call reports about a remote object."""

  content_length: int
  headers: ContentHeaders


class RemoteStoreBase(object):
  """Create, delete, and inspect files and folders in cloud storage.

  Every method takes a timeout in seconds, or None for no timeout, and raises
  RemoteNotFound when the object does not exist."""

  @abc.abstractmethod
  def create_file(self, path: RemotePath, size: int,
                  headers: ContentHeaders,
                  timeout: Optional[float] = None) -> None:
    """Create an empty file, replacing any existing one.

    size is the length the file will have once every chunk is appended.
    Backends that cannot reserve space up front ignore it."""
    pass

  @abc.abstractmethod
  def create_directory(self, path: RemotePath,
                       timeout: Optional[float] = None) -> None:
    """Create a folder."""
    pass

  @abc.abstractmethod
  def delete_file(self, path: RemotePath,
                  timeout: Optional[float] = None) -> None:
    """Delete a file."""
    pass

  @abc.abstractmethod
  def delete_directory(self, path: RemotePath,
                       timeout: Optional[float] = None) -> None:
    """Delete a folder and everything in it."""
    pass

  @abc.abstractmethod
  def get_file_properties(self, path: RemotePath,
                          timeout: Optional[float] = None) -> ObjectProperties:
    """Fetch the length and content headers of a file."""
    pass

  @abc.abstractmethod
  def get_directory_properties(
      self, path: RemotePath,
      timeout: Optional[float] = None) -> ObjectProperties:
    """Fetch the properties of a folder.  Folders have zero length."""
    pass
