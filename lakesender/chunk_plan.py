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

"""Splitting a source into chunks."""

from typing import NamedTuple


class ChunkPlan(NamedTuple):
  """How a source is divided into chunks.  Computed once per transfer."""

  chunk_size: int
  num_chunks: int


def get_num_chunks(source_size: int, chunk_size: int) -> int:
  """Returns the number of chunks needed to cover source_size bytes.

  An empty source has no chunks at all."""

  if source_size <= 0:
    return 0
  # Integer ceiling division, exact for sizes beyond float precision.
  return -(-source_size // chunk_size)


def plan_chunks(source_size: int, block_size: int) -> ChunkPlan:
  """Compute the chunk plan for a source of source_size bytes.

  The chunk size is the requested block size.  Raises ValueError for a
  negative source size or a block size that is not positive."""

  if source_size < 0:
    raise ValueError('Source size must not be negative: {}'.format(
        source_size))
  if block_size <= 0:
    raise ValueError('Block size must be positive: {}'.format(block_size))

  return ChunkPlan(chunk_size=block_size,
                   num_chunks=get_num_chunks(source_size, block_size))


def crosses_flush_boundary(before: int, after: int, threshold: int) -> bool:
  """True if the appended byte count moved across a multiple of threshold.

  Chunk appends call this after adding their bytes to the running total.  A
  True result means the buffered data should be flushed (committed)."""

  if threshold <= 0:
    raise ValueError('Flush threshold must be positive: {}'.format(threshold))
  return after // threshold > before // threshold
