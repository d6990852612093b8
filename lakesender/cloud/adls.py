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

"""Azure Data Lake Storage Gen2, a hierarchical-namespace store."""

import math

from typing import Any, Dict, Optional, Tuple

import azure.core.exceptions  # type: ignore
from azure.storage.filedatalake import ContentSettings  # type: ignore
from azure.storage.filedatalake import DataLakeServiceClient  # type: ignore

from lakesender.cloud.base import ObjectProperties, RemoteNotFound
from lakesender.cloud.base import RemotePath, RemoteStoreBase
from lakesender.source_info import ContentHeaders


def _timeout_args(timeout: Optional[float]) -> Dict[str, Any]:
  # The service takes whole seconds, and zero would mean "no timeout".
  if timeout is None:
    return {}
  return {'timeout': max(1, int(math.ceil(timeout)))}


def account_url(path: RemotePath) -> str:
  """The service endpoint for the account a path lives in."""
  if path.scheme in ('abfs', 'abfss'):
    # abfss is TLS; plain abfs still goes to the same HTTPS endpoint.
    return 'https://' + path.account
  return '{}://{}'.format(path.scheme, path.account)


class DataLakeStore(RemoteStoreBase):
  """See base class for interface docs."""

  def __init__(self, credential: Optional[Any] = None) -> None:
    self._credential = credential
    # One service client per account endpoint and SAS token.
    self._services: Dict[Tuple[str, str], DataLakeServiceClient] = {}

  def _service(self, path: RemotePath) -> DataLakeServiceClient:
    if self._credential is not None:
      credential = self._credential
      sas = ''
    else:
      # A SAS token in the destination authorizes requests on its own.
      credential = path.query or None
      sas = path.query

    url = account_url(path)
    service = self._services.get((url, sas))
    if service is None:
      service = DataLakeServiceClient(url, credential=credential)
      self._services[(url, sas)] = service
    return service

  def _file(self, path: RemotePath):
    file_system = self._service(path).get_file_system_client(path.container)
    return file_system.get_file_client(path.path)

  def _directory(self, path: RemotePath):
    file_system = self._service(path).get_file_system_client(path.container)
    return file_system.get_directory_client(path.path)

  def create_file(self, path: RemotePath, size: int,
                  headers: ContentHeaders,
                  timeout: Optional[float] = None) -> None:
    # Appends land at explicit offsets, so there is no space to reserve.
    content_settings = ContentSettings(
        content_type=headers.content_type,
        content_encoding=headers.content_encoding,
        content_language=headers.content_language,
        content_disposition=headers.content_disposition,
        cache_control=headers.cache_control,
        content_md5=headers.content_md5)
    self._file(path).create_file(content_settings=content_settings,
                                 **_timeout_args(timeout))

  def create_directory(self, path: RemotePath,
                       timeout: Optional[float] = None) -> None:
    self._directory(path).create_directory(**_timeout_args(timeout))

  def delete_file(self, path: RemotePath,
                  timeout: Optional[float] = None) -> None:
    try:
      self._file(path).delete_file(**_timeout_args(timeout))
    except azure.core.exceptions.ResourceNotFoundError as e:
      raise RemoteNotFound(str(e)) from e

  def delete_directory(self, path: RemotePath,
                       timeout: Optional[float] = None) -> None:
    try:
      self._directory(path).delete_directory(**_timeout_args(timeout))
    except azure.core.exceptions.ResourceNotFoundError as e:
      raise RemoteNotFound(str(e)) from e

  def get_file_properties(self, path: RemotePath,
                          timeout: Optional[float] = None) -> ObjectProperties:
    try:
      properties = self._file(path).get_file_properties(
          **_timeout_args(timeout))
    except azure.core.exceptions.ResourceNotFoundError as e:
      raise RemoteNotFound(str(e)) from e

    settings = properties.content_settings
    headers = ContentHeaders(
        content_type=settings.content_type,
        content_encoding=settings.content_encoding,
        content_language=settings.content_language,
        content_disposition=settings.content_disposition,
        cache_control=settings.cache_control,
        content_md5=settings.content_md5)
    return ObjectProperties(properties.size, headers)

  def get_directory_properties(
      self, path: RemotePath,
      timeout: Optional[float] = None) -> ObjectProperties:
    try:
      self._directory(path).get_directory_properties(**_timeout_args(timeout))
    except azure.core.exceptions.ResourceNotFoundError as e:
      raise RemoteNotFound(str(e)) from e
    return ObjectProperties(0, ContentHeaders())
