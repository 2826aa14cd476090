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


"""In-memory fixed-window rate limiting for checkout attempts.

The table lives in the process, so the limit only holds per server instance.
"""

import time
from typing import Callable, Dict, Tuple

_PRUNE_THRESHOLD = 10000


class FixedWindowRateLimiter:
  """Allows at most `limit` hits per key within each window."""

  def __init__(
      self,
      limit: int = 5,
      window_seconds: float = 60.0,
      clock: Callable[[], float] = time.monotonic,
  ):
    self.limit = limit
    self.window_seconds = window_seconds
    self._clock = clock
    self._windows: Dict[str, Tuple[float, int]] = {}

  def allow(self, key: str) -> bool:
    """Records a hit for `key` and returns whether it is within the limit."""
    now = self._clock()
    if len(self._windows) > _PRUNE_THRESHOLD:
      self._prune(now)

    started_at, count = self._windows.get(key, (now, 0))
    if now - started_at >= self.window_seconds:
      started_at, count = now, 0

    if count >= self.limit:
      return False
    self._windows[key] = (started_at, count + 1)
    return True

  def reset(self) -> None:
    self._windows.clear()

  def _prune(self, now: float) -> None:
    expired = [
        key
        for key, (started_at, _) in self._windows.items()
        if now - started_at >= self.window_seconds
    ]
    for key in expired:
      del self._windows[key]
