"""
Debounced render scheduling with token-based supersession.
Every parameter change issues a new token; only the newest token's render may
be committed, so a slow render that finishes after a newer request is dropped.
"""
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_S = 0.25


@dataclass(frozen=True)
class RenderToken:
    id: int
    requested_at: float
    params: Dict[str, Any] = field(default_factory=dict)


class RenderScheduler:
    def __init__(self, debounce_s: float = DEFAULT_DEBOUNCE_S, clock: Callable[[], float] = time.monotonic):
        self.debounce_s = float(debounce_s)
        self._clock = clock
        self._ids = itertools.count(1)
        self._latest: Optional[RenderToken] = None
        self._pending: Optional[RenderToken] = None
        self.result: Any = None
        self.result_token: Optional[RenderToken] = None

    @property
    def latest(self) -> Optional[RenderToken]:
        return self._latest

    @property
    def pending(self) -> Optional[RenderToken]:
        return self._pending

    def request(self, params: Dict[str, Any]) -> RenderToken:
        """Issue a token for `params`; supersedes any earlier pending request."""
        token = RenderToken(id=next(self._ids), requested_at=self._clock(), params=dict(params))
        if self._pending is not None:
            logger.debug("Render request %d superseded by %d", self._pending.id, token.id)
        self._latest = token
        self._pending = token
        return token

    def due(self, now: Optional[float] = None) -> bool:
        """True once the pending request has been quiet for debounce_s."""
        if self._pending is None:
            return False
        now = self._clock() if now is None else now
        return now - self._pending.requested_at >= self.debounce_s

    def run_pending(self, render_fn: Callable[[Dict[str, Any]], Any], now: Optional[float] = None) -> Any:
        """
        Render the newest pending request if it is due.
        Returns the committed result, or None when nothing ran or the result went stale.
        """
        if not self.due(now):
            return None
        token = self._pending
        self._pending = None
        result = render_fn(token.params)
        if self.commit(token, result):
            return result
        return None

    def commit(self, token: RenderToken, result: Any) -> bool:
        """Apply `result` only if `token` is the newest issued; stale results are discarded."""
        if self._latest is None or token.id != self._latest.id:
            latest_id = self._latest.id if self._latest else None
            logger.debug("Discarding stale render %d (latest %s)", token.id, latest_id)
            return False
        self.result = result
        self.result_token = token
        return True

    def cancel(self) -> None:
        """Drop the pending request without rendering it."""
        self._pending = None
