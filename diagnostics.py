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

"""In-memory diagnostics for webhook debugging.

Holds the most recent webhook snapshot and a bounded list of recent background
processing errors. Both are process-lifetime only and are exposed through the
`/api/debug/*` routes.
"""

import collections
import datetime
from typing import Any, Dict, List, Optional


def _now() -> str:
  return datetime.datetime.now(datetime.timezone.utc).isoformat()


class DiagnosticsStore:
  """Application-scoped store for the last webhook and recent errors."""

  def __init__(self, max_errors: int = 50) -> None:
    self._last_webhook: Optional[Dict[str, Any]] = None
    self._errors: collections.deque = collections.deque(maxlen=max_errors)

  def record_webhook(self, snapshot: Dict[str, Any]) -> None:
    """Overwrites the last webhook slot."""
    self._last_webhook = {"receivedAt": _now(), **snapshot}

  @property
  def last_webhook(self) -> Optional[Dict[str, Any]]:
    return self._last_webhook

  def record_error(
      self, source: str, error: BaseException, context: Dict[str, Any]
  ) -> None:
    self._errors.append({
        "at": _now(),
        "source": source,
        "error": type(error).__name__,
        "message": str(error),
        "context": context,
    })

  @property
  def errors(self) -> List[Dict[str, Any]]:
    return list(self._errors)
