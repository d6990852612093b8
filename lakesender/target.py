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

"""Resolving a destination string into a remote file or folder."""

import enum
import urllib.parse

from typing import Any

from lakesender.cloud.base import ObjectProperties, RemotePath, RemoteStoreBase
from lakesender.context import Context
from lakesender.source_info import ContentHeaders


# Schemes for Azure Data Lake Storage, where the filesystem name is in the
# user info: "abfss://filesystem@account.dfs.core.windows.net/path".
ABFS_SCHEMES = ['abfs', 'abfss']

# Schemes where the filesystem is the first path segment:
# "https://account.dfs.core.windows.net/filesystem/path".
HTTP_SCHEMES = ['http', 'https']


class EntityKind(enum.Enum):
  FILE = 'file'
  FOLDER = 'folder'


class MalformedDestination(Exception):
  """Raised when a destination string cannot be parsed."""
  pass

class UnsupportedOperation(Exception):
  """Raised when an operation is not supported for a kind of target."""
  pass


def parse_destination(destination: str) -> RemotePath:
  """Split a destination URL into the parts of a RemotePath."""

  # Error messages leave out the query, which may hold a SAS token.
  shown = destination.partition('?')[0]

  try:
    url = urllib.parse.urlsplit(destination)
    # Accessing the port validates it.
    url.port
  except ValueError as e:
    raise MalformedDestination(
        'Unable to parse destination {!r}: {}'.format(shown, e)) from e

  if not url.scheme or not url.netloc:
    raise MalformedDestination(
        'Destination {!r} is not a URL'.format(shown))

  scheme = url.scheme.lower()
  # Strip both left and right slashes.  Otherwise, we get a blank folder name.
  path = url.path.strip('/')

  if scheme in ABFS_SCHEMES:
    container = url.username or ''
    account = url.hostname or ''
  elif scheme in HTTP_SCHEMES:
    container, _, path = path.partition('/')
    account = url.netloc
  else:
    # "gs://bucket/path" and "s3://bucket/path": the bucket is the netloc.
    container = url.netloc
    account = ''

  if not container:
    raise MalformedDestination(
        'Destination {!r} has no container'.format(shown))
  if not path:
    raise MalformedDestination(
        'Destination {!r} has no path within {}'.format(shown, container))

  # Only Azure endpoints take a query: the SAS token that authorizes the
  # request.
  if url.query and scheme not in ABFS_SCHEMES + HTTP_SCHEMES:
    raise MalformedDestination(
        'Destination {!r} has a query string, which {} does not accept'
        .format(shown, scheme))

  return RemotePath(scheme, account, container, path, url.query)


def format_identity(path: RemotePath) -> str:
  """A canonical URL for a remote path, stable across resolutions.

  Any SAS token is left out, so the identity is safe to log."""

  quoted = urllib.parse.quote(path.path)
  if path.scheme in ABFS_SCHEMES:
    return '{}://{}@{}/{}'.format(path.scheme, path.container, path.account,
                                  quoted)
  if path.scheme in HTTP_SCHEMES:
    return '{}://{}/{}/{}'.format(path.scheme, path.account, path.container,
                                  quoted)
  return '{}://{}/{}'.format(path.scheme, path.container, quoted)


class RemoteTarget(object):
  """A file or a folder in remote storage.

  The kind is fixed when the target is resolved.  Operations dispatch on the
  kind, so asking a folder for something only files support raises
  UnsupportedOperation rather than failing in some other way."""

  def __init__(self, kind: EntityKind, path: RemotePath,
               store: RemoteStoreBase) -> None:
    self._kind = kind
    self._path = path
    self._store = store
    self._identity = format_identity(path)

  @property
  def kind(self) -> EntityKind:
    return self._kind

  @property
  def path(self) -> RemotePath:
    return self._path

  @property
  def identity(self) -> str:
    return self._identity

  def entity_kind(self) -> EntityKind:
    """The kind of entity a sender for this target can send.

    Sending folders is not supported yet."""
    if self._kind == EntityKind.FOLDER:
      raise UnsupportedOperation(
          'Sending folders is not supported: {}'.format(self._identity))
    return EntityKind.FILE

  def create(self, context: Context, size: int,
             headers: ContentHeaders) -> None:
    context.check()
    if self._kind == EntityKind.FILE:
      self._store.create_file(self._path, size, headers,
                              timeout=context.remaining())
    else:
      self._store.create_directory(self._path, timeout=context.remaining())

  def delete(self, context: Context) -> None:
    context.check()
    if self._kind == EntityKind.FILE:
      self._store.delete_file(self._path, timeout=context.remaining())
    else:
      self._store.delete_directory(self._path, timeout=context.remaining())

  def get_properties(self, context: Context) -> ObjectProperties:
    context.check()
    if self._kind == EntityKind.FILE:
      return self._store.get_file_properties(self._path,
                                             timeout=context.remaining())
    return self._store.get_directory_properties(self._path,
                                                timeout=context.remaining())

  def __eq__(self, other: Any) -> bool:
    if not isinstance(other, RemoteTarget):
      return NotImplemented
    return (self._kind, self._identity) == (other._kind, other._identity)

  def __hash__(self) -> int:
    return hash((self._kind, self._identity))

  def __str__(self) -> str:
    return self._identity

  def __repr__(self) -> str:
    return 'RemoteTarget({}, {!r})'.format(self._kind.value, self._identity)


def resolve_target(destination: str, kind: EntityKind,
                   store: RemoteStoreBase) -> RemoteTarget:
  """Parse the destination and build a reference of the given kind.

  Raises MalformedDestination if the destination can't be parsed."""
  return RemoteTarget(kind, parse_destination(destination), store)
