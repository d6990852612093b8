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

"""Metadata about the source of a transfer."""

import abc
import mimetypes
import os

from typing import Dict, NamedTuple, Optional


class ContentHeaders(NamedTuple):
  """HTTP content headers stored with a remote file."""

  content_type: Optional[str] = None
  content_encoding: Optional[str] = None
  content_language: Optional[str] = None
  content_disposition: Optional[str] = None
  cache_control: Optional[str] = None
  content_md5: Optional[bytes] = None


class SourceProperties(object):
  """Header and metadata properties of a source."""

  def __init__(self, headers: ContentHeaders,
               metadata: Optional[Dict[str, str]] = None) -> None:
    self.headers = headers
    self.metadata: Dict[str, str] = dict(metadata or {})


class SourceInfoProviderBase(object):
  @abc.abstractmethod
  def properties(self) -> SourceProperties:
    """Fetch the source's properties.  May perform I/O."""
    pass


class LocalFileSourceInfoProvider(SourceInfoProviderBase):
  """Reads properties of a file on the local disk."""

  def __init__(self, path: str, cache_control: Optional[str] = None) -> None:
    self._path = path
    self._cache_control = cache_control

  def source_size(self) -> int:
    return os.path.getsize(self._path)

  def properties(self) -> SourceProperties:
    # Fail early, with the OS error, if the file has gone away.
    os.stat(self._path)

    content_type, content_encoding = mimetypes.guess_type(self._path)
    headers = ContentHeaders(
        content_type=content_type or 'application/octet-stream',
        content_encoding=content_encoding,
        cache_control=self._cache_control)
    return SourceProperties(headers)
