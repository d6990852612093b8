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

"""Pick a remote store for a destination."""

import logging

from typing import Any, Optional

from lakesender.cloud.base import RemoteStoreBase
from lakesender.target import parse_destination


logger = logging.getLogger(__name__)


# Supported protocols.  Built based on which optional modules are available for
# cloud storage providers.
SUPPORTED_PROTOCOLS: list[str] = []


# All supported protocols.  Used to provide more useful error messages.
ALL_SUPPORTED_PROTOCOLS: list[str] = ['abfs', 'abfss', 'https', 'gs', 's3']


# Try to load each store.  If we can, the user has the libraries it needs.
try:
  from lakesender.cloud.adls import DataLakeStore
  SUPPORTED_PROTOCOLS.extend(['abfs', 'abfss', 'https'])
except ImportError as e:
  logger.debug('Azure Data Lake support unavailable: %s', e)

try:
  from lakesender.cloud.gcs import GCSStore
  SUPPORTED_PROTOCOLS.append('gs')
except ImportError as e:
  logger.debug('Google Cloud Storage support unavailable: %s', e)

try:
  from lakesender.cloud.s3 import S3Store
  SUPPORTED_PROTOCOLS.append('s3')
except ImportError as e:
  logger.debug('Amazon S3 support unavailable: %s', e)


def create(destination: str,
           credential: Optional[Any] = None) -> RemoteStoreBase:
  """Create a store appropriate to the destination URL.

  The credential is only used for Azure.  GCS and S3 use the ambient
  credentials of their SDKs."""

  scheme = parse_destination(destination).scheme

  if scheme not in ALL_SUPPORTED_PROTOCOLS:
    raise RuntimeError("Protocol of {} isn't supported".format(destination))
  if scheme not in SUPPORTED_PROTOCOLS:
    raise RuntimeError(
        "Protocol of {} needs a cloud SDK that isn't installed".format(
            destination))

  if scheme == 'gs':
    return GCSStore()
  elif scheme == 's3':
    return S3Store()
  return DataLakeStore(credential=credential)
