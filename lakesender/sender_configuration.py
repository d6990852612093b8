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

import yaml

from . import configuration

from typing import Any, Dict, Optional


# Hierarchical-namespace stores buffer appended data until a flush commits
# it.  Flushing once per this many chunks amortizes the commit cost.
DEFAULT_FLUSH_THRESHOLD_MULTIPLIER = 7500

# Deleting an incomplete file gets its own deadline, independent of the
# transfer's cancellation.
DEFAULT_DELETE_TIMEOUT = 120

DEFAULT_BLOCK_SIZE = 8 << 20  # 8MB


class SenderConfig(configuration.Base):
  """Policy values for a single sender."""

  flush_threshold_multiplier = configuration.Field(
      configuration.PositiveInt,
      default=DEFAULT_FLUSH_THRESHOLD_MULTIPLIER).cast()
  """The flush threshold is chunk_size times this value, in bytes."""

  delete_timeout = configuration.Field(
      configuration.PositiveNumber, default=DEFAULT_DELETE_TIMEOUT).cast()
  """Seconds allowed for deleting an incomplete file after a failure."""

  block_size = configuration.Field(
      configuration.PositiveInt, default=DEFAULT_BLOCK_SIZE).cast()
  """The chunk size used when a transfer does not request one."""


def load_config(path: Optional[str] = None) -> SenderConfig:
  """Load a SenderConfig from a YAML file.

  With no path, or with an empty file, every field takes its default."""

  dictionary: Dict[str, Any] = {}
  if path:
    with open(path, 'r') as f:
      dictionary = yaml.safe_load(f) or {}

  return SenderConfig(dictionary)
