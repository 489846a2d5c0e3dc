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

"""Ordered fallback resolution for values that may arrive in several places.

Storefront requests and MercadoPago callbacks carry the same logical value
under different keys (e.g. `shipping.cost` vs `shippingCost`, query `topic` vs
body `type`). Callers list the candidates in precedence order and
`first_present` returns the first one that is usable.
"""

from typing import Any, Callable, Iterable, Mapping, Optional


def _is_present(value: Any) -> bool:
  if value is None:
    return False
  if isinstance(value, str) and not value.strip():
    return False
  return True


def first_present(
    candidates: Iterable[Any],
    accept: Optional[Callable[[Any], bool]] = None,
    default: Any = None,
) -> Any:
  """Returns the first candidate that is present and accepted.

  Args:
    candidates: Values in precedence order, highest first.
    accept: Optional extra predicate; a candidate is skipped if it returns
      False or raises ValueError/TypeError.
    default: Returned when no candidate qualifies.

  Returns:
    The first qualifying candidate, or `default`.
  """
  for candidate in candidates:
    if not _is_present(candidate):
      continue
    if accept is not None:
      try:
        if not accept(candidate):
          continue
      except (ValueError, TypeError):
        continue
    return candidate
  return default


def dig(data: Any, dotted_key: str) -> Any:
  """Looks up `a.b` style keys, trying the flat key first.

  MercadoPago sends `data.id` both as a literal query parameter name and as a
  nested JSON object, so the flat form is checked before descending.
  """
  if not isinstance(data, Mapping):
    return None
  if dotted_key in data:
    return data[dotted_key]
  current: Any = data
  for part in dotted_key.split("."):
    if not isinstance(current, Mapping):
      return None
    current = current.get(part)
  return current


def is_positive_number(value: Any) -> bool:
  return float(value) > 0
