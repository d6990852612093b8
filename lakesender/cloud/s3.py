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

"""Amazon S3."""

from typing import Any, Dict, Optional

import boto3  # type: ignore
import botocore.config  # type: ignore
import botocore.exceptions  # type: ignore

from lakesender.cloud.base import ObjectProperties, RemoteNotFound
from lakesender.cloud.base import RemotePath, RemoteStoreBase
from lakesender.source_info import ContentHeaders


# delete_objects takes at most this many keys per request.
MAX_DELETE_BATCH = 1000

# Attempts allowed for a request that has a deadline.
TIMED_MAX_ATTEMPTS = 2

# Maps ContentHeaders fields to put_object arguments.
HEADER_ARGS = {
  'content_type': 'ContentType',
  'content_encoding': 'ContentEncoding',
  'content_language': 'ContentLanguage',
  'content_disposition': 'ContentDisposition',
  'cache_control': 'CacheControl',
}


def _is_not_found(error: botocore.exceptions.ClientError) -> bool:
  code = error.response.get('Error', {}).get('Code')
  return code in ('404', 'NoSuchKey', 'NotFound')


def _folder_marker(path: RemotePath) -> str:
  return path.path.rstrip('/') + '/'


def _per_wait_timeout(timeout: float) -> int:
  # Each attempt may wait up to connect_timeout plus read_timeout, so the
  # budget is split across both waits of every attempt.
  return max(1, int(timeout / (2 * TIMED_MAX_ATTEMPTS)))


class S3Store(RemoteStoreBase):
  """See base class for interface docs.

  boto3 takes timeouts per client rather than per request.  A request with a
  deadline goes through a client whose connect and read timeouts and retry
  count fit within it."""

  def __init__(self) -> None:
    config = botocore.config.Config(retries = {'mode': 'standard'})
    self._client = boto3.client('s3', config=config)
    # Clients with bounded timeouts, keyed by their per-wait timeout.
    self._timed_clients: Dict[int, Any] = {}

  def _client_for(self, timeout: Optional[float]):
    if timeout is None:
      return self._client

    wait = _per_wait_timeout(timeout)
    client = self._timed_clients.get(wait)
    if client is None:
      config = botocore.config.Config(
          connect_timeout=wait, read_timeout=wait,
          retries = {'mode': 'standard',
                     'max_attempts': TIMED_MAX_ATTEMPTS})
      client = boto3.client('s3', config=config)
      self._timed_clients[wait] = client
    return client

  def create_file(self, path: RemotePath, size: int,
                  headers: ContentHeaders,
                  timeout: Optional[float] = None) -> None:
    extra_args: Dict[str, Any] = {}
    for field, arg in HEADER_ARGS.items():
      value = getattr(headers, field)
      if value is not None:
        extra_args[arg] = value

    self._client_for(timeout).put_object(
        Bucket=path.container, Key=path.path, Body=b'', **extra_args)

  def create_directory(self, path: RemotePath,
                       timeout: Optional[float] = None) -> None:
    self._client_for(timeout).put_object(
        Bucket=path.container, Key=_folder_marker(path), Body=b'')

  def delete_file(self, path: RemotePath,
                  timeout: Optional[float] = None) -> None:
    # S3 reports success for missing keys, too.
    self._client_for(timeout).delete_object(Bucket=path.container,
                                            Key=path.path)

  def delete_directory(self, path: RemotePath,
                       timeout: Optional[float] = None) -> None:
    client = self._client_for(timeout)
    paginator = client.get_paginator('list_objects_v2')
    keys = []
    for page in paginator.paginate(Bucket=path.container,
                                   Prefix=_folder_marker(path)):
      keys.extend(item['Key'] for item in page.get('Contents', []))

    if not keys:
      raise RemoteNotFound('No folder at {}'.format(path.path))

    for start in range(0, len(keys), MAX_DELETE_BATCH):
      batch = keys[start:start + MAX_DELETE_BATCH]
      client.delete_objects(
          Bucket=path.container,
          Delete={'Objects': [{'Key': key} for key in batch], 'Quiet': True})

  def get_file_properties(self, path: RemotePath,
                          timeout: Optional[float] = None) -> ObjectProperties:
    try:
      response = self._client_for(timeout).head_object(
          Bucket=path.container, Key=path.path)
    except botocore.exceptions.ClientError as e:
      if _is_not_found(e):
        raise RemoteNotFound(str(e)) from e
      raise

    headers = ContentHeaders(
        content_type=response.get('ContentType'),
        content_encoding=response.get('ContentEncoding'),
        content_language=response.get('ContentLanguage'),
        content_disposition=response.get('ContentDisposition'),
        cache_control=response.get('CacheControl'))
    return ObjectProperties(response.get('ContentLength', 0), headers)

  def get_directory_properties(
      self, path: RemotePath,
      timeout: Optional[float] = None) -> ObjectProperties:
    response = self._client_for(timeout).list_objects_v2(
        Bucket=path.container, Prefix=_folder_marker(path), MaxKeys=1)
    if not response.get('KeyCount'):
      raise RemoteNotFound('No folder at {}'.format(path.path))
    return ObjectProperties(0, ContentHeaders())
