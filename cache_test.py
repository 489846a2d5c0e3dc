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

"""Tests for the LRU cache."""

from absl.testing import absltest
from cache import LruCache


class LruCacheTest(absltest.TestCase):

  def test_evicts_least_recently_used(self) -> None:
    cache = LruCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    # Touch "a" so "b" becomes the oldest
    self.assertEqual(cache.get("a"), 1)
    cache.set("c", 3)

    self.assertIn("a", cache)
    self.assertNotIn("b", cache)
    self.assertIn("c", cache)
    self.assertLen(cache, 2)

  def test_overwrite_does_not_evict(self) -> None:
    cache = LruCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    self.assertEqual(cache.get("a"), 10)
    self.assertEqual(cache.get("b"), 2)

  def test_stats_count_hits_and_misses(self) -> None:
    cache = LruCache(max_size=4)
    cache.set("a", 1)
    cache.get("a")
    cache.get("missing")
    self.assertEqual(
        cache.stats(), {"size": 1, "maxSize": 4, "hits": 1, "misses": 1}
    )

  def test_delete_and_clear(self) -> None:
    cache = LruCache(max_size=4)
    cache.set("a", 1)
    cache.set("b", 2)
    self.assertTrue(cache.delete("a"))
    self.assertFalse(cache.delete("a"))
    cache.clear()
    self.assertEmpty(cache)

  def test_rejects_non_positive_size(self) -> None:
    with self.assertRaises(ValueError):
      LruCache(max_size=0)


if __name__ == "__main__":
  absltest.main()
