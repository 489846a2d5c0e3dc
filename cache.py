#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Bounded in-memory LRU cache used for geocoding lookups."""

import collections
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class LruCache(Generic[T]):
  """In-memory cache that evicts the least recently used key when full.

  The cache is owned by the application (see `config.lifespan`) and injected
  where needed. It relies on single-threaded asyncio scheduling and takes no
  locks.
  """

  def __init__(self, max_size: int = 512) -> None:
    if max_size < 1:
      raise ValueError("max_size must be at least 1")
    self.max_size = max_size
    self._data: "collections.OrderedDict[str, T]" = collections.OrderedDict()
    self.hits = 0
    self.misses = 0

  def get(self, key: str) -> Optional[T]:
    if key in self._data:
      self._data.move_to_end(key)
      self.hits += 1
      return self._data[key]
    self.misses += 1
    return None

  def set(self, key: str, value: T) -> None:
    if key in self._data:
      self._data.move_to_end(key)
    elif len(self._data) >= self.max_size:
      # Evict oldest
      self._data.popitem(last=False)
    self._data[key] = value

  def delete(self, key: str) -> bool:
    return self._data.pop(key, None) is not None

  def clear(self) -> None:
    self._data.clear()

  def __contains__(self, key: Any) -> bool:
    return key in self._data

  def __len__(self) -> int:
    return len(self._data)

  def stats(self) -> dict[str, int]:
    return {
        "size": len(self._data),
        "maxSize": self.max_size,
        "hits": self.hits,
        "misses": self.misses,
    }
