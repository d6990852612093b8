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

"""Google Cloud Storage."""

from typing import Optional

import google.cloud.storage  # type: ignore
import google.api_core.exceptions  # type: ignore

from lakesender.cloud.base import ObjectProperties, RemoteNotFound
from lakesender.cloud.base import RemotePath, RemoteStoreBase
from lakesender.source_info import ContentHeaders


# Used when the caller has no deadline.  Matches the client library's own
# default for a single request.
DEFAULT_TIMEOUT = 60


def _folder_marker(path: RemotePath) -> str:
  # Folders are zero-byte objects whose names end in a slash.
  return path.path.rstrip('/') + '/'


class GCSStore(RemoteStoreBase):
  """See base class for interface docs."""

  def __init__(self) -> None:
    self._client = google.cloud.storage.Client()

  def _blob(self, path: RemotePath, name: Optional[str] = None):
    return self._client.bucket(path.container).blob(name or path.path)

  def create_file(self, path: RemotePath, size: int,
                  headers: ContentHeaders,
                  timeout: Optional[float] = None) -> None:
    blob = self._blob(path)
    blob.content_encoding = headers.content_encoding
    blob.content_language = headers.content_language
    blob.content_disposition = headers.content_disposition
    blob.cache_control = headers.cache_control

    # GCS objects are immutable.  This writes an empty placeholder carrying
    # the creation headers.
    blob.upload_from_string(
        b'', content_type=headers.content_type or 'application/octet-stream',
        timeout=timeout or DEFAULT_TIMEOUT,
        retry=google.cloud.storage.retry.DEFAULT_RETRY)

  def create_directory(self, path: RemotePath,
                       timeout: Optional[float] = None) -> None:
    blob = self._blob(path, _folder_marker(path))
    blob.upload_from_string(
        b'', timeout=timeout or DEFAULT_TIMEOUT,
        retry=google.cloud.storage.retry.DEFAULT_RETRY)

  def delete_file(self, path: RemotePath,
                  timeout: Optional[float] = None) -> None:
    try:
      self._blob(path).delete(timeout=timeout or DEFAULT_TIMEOUT,
                              retry=google.cloud.storage.retry.DEFAULT_RETRY)
    except google.api_core.exceptions.NotFound as e:
      raise RemoteNotFound(str(e)) from e

  def delete_directory(self, path: RemotePath,
                       timeout: Optional[float] = None) -> None:
    blobs = list(self._client.list_blobs(path.container,
                                         prefix=_folder_marker(path),
                                         timeout=timeout or DEFAULT_TIMEOUT))
    if not blobs:
      raise RemoteNotFound('No folder at {}'.format(path.path))

    for blob in blobs:
      try:
        blob.delete(timeout=timeout or DEFAULT_TIMEOUT,
                    retry=google.cloud.storage.retry.DEFAULT_RETRY)
      except google.api_core.exceptions.NotFound:
        # Already gone, which is what we wanted.
        pass

  def get_file_properties(self, path: RemotePath,
                          timeout: Optional[float] = None) -> ObjectProperties:
    blob = self._client.bucket(path.container).get_blob(
        path.path, timeout=timeout or DEFAULT_TIMEOUT)
    # get_blob returns None rather than raising NotFound.
    if blob is None:
      raise RemoteNotFound('No file at {}'.format(path.path))

    headers = ContentHeaders(
        content_type=blob.content_type,
        content_encoding=blob.content_encoding,
        content_language=blob.content_language,
        content_disposition=blob.content_disposition,
        cache_control=blob.cache_control)
    return ObjectProperties(blob.size or 0, headers)

  def get_directory_properties(
      self, path: RemotePath,
      timeout: Optional[float] = None) -> ObjectProperties:
    blobs = self._client.list_blobs(path.container,
                                    prefix=_folder_marker(path),
                                    max_results=1,
                                    timeout=timeout or DEFAULT_TIMEOUT)
    if not any(True for _ in blobs):
      raise RemoteNotFound('No folder at {}'.format(path.path))
    return ObjectProperties(0, ContentHeaders())
