import heapq
import itertools
import threading
from typing import Any, Callable, Dict, List, Optional

from flask import current_app

from trivia import socketio


class BackgroundTaskRunner:
    """Delayed callbacks on Socket.IO background tasks.

    Best effort: a restart loses pending timers and delivery may be late.
    There is no cancel; stale fires are rejected by the phase nonce.
    """

    def __init__(self, app):
        self.app = app

    def run_after(self, delay_ms: int, handler: Callable[..., Any], kwargs: Dict[str, Any]) -> None:
        socketio.start_background_task(self._worker, max(0, int(delay_ms)), handler, dict(kwargs))

    def _worker(self, delay_ms: int, handler: Callable[..., Any], kwargs: Dict[str, Any]) -> None:
        app = self.app
        delay = delay_ms / 1000.0
        # heartbeat sleep loop if enabled
        try:
            hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0))
        except (TypeError, ValueError):
            hb = 0
        if hb > 0:
            slept = 0.0
            while slept < delay:
                step = min(hb, delay - slept)
                socketio.sleep(step)
                slept += step
                app.logger.info(f"[timer-heartbeat] {kwargs} remaining={max(0.0, delay - slept):.1f}s")
        else:
            socketio.sleep(delay)
        with app.app_context():
            try:
                handler(**kwargs)
            except Exception:
                app.logger.exception(f"[timer-error] handler={getattr(handler, '__name__', handler)} {kwargs}")


class PendingCallbackQueue:
    """Delayed callbacks held in memory until drained against a clock."""

    def __init__(self, clock):
        self.clock = clock
        self._heap = []
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def run_after(self, delay_ms: int, handler: Callable[..., Any], kwargs: Dict[str, Any]) -> None:
        due_at = self.clock.now() + max(0, int(delay_ms)) / 1000.0
        with self._lock:
            heapq.heappush(self._heap, (due_at, next(self._seq), handler, dict(kwargs)))

    def pending(self) -> List[Dict[str, Any]]:
        with self._lock:
            entries = sorted(self._heap)
        return [{'due_at': due_at, 'handler': handler, 'kwargs': kwargs} for due_at, _, handler, kwargs in entries]

    def _pop_due(self, now: Optional[float]):
        with self._lock:
            if not self._heap:
                return None
            if now is not None and self._heap[0][0] > now:
                return None
            return heapq.heappop(self._heap)

    def run_due(self, now: Optional[float] = None) -> List[Any]:
        """Fire every callback due at ``now`` (default: the clock), earliest first."""
        if now is None:
            now = self.clock.now()
        results = []
        entry = self._pop_due(now)
        while entry is not None:
            _, _, handler, kwargs = entry
            results.append(handler(**kwargs))
            entry = self._pop_due(now)
        return results

    def fire_all(self) -> List[Any]:
        results = []
        entry = self._pop_due(None)
        while entry is not None:
            _, _, handler, kwargs = entry
            results.append(handler(**kwargs))
            entry = self._pop_due(None)
        return results


class PhaseScheduler:
    """Arms one deadline callback per (lobby, nonce) arming request.

    Superseding a deadline means arming again: a shorter timer at the same
    nonce (acceleration) or a new nonce after a transition. Older callbacks
    still fire and are absorbed by the advancer's nonce check.
    """

    def __init__(self, store, callbacks, handler: Callable[..., Any]):
        self.store = store
        self.callbacks = callbacks
        self.handler = handler

    def arm(self, lobby_id: int, nonce: int, delay_seconds: float) -> int:
        delay_ms = max(0, int(round(delay_seconds * 1000)))
        kwargs = {'lobby_id': lobby_id, 'expected_nonce': nonce}
        current_app.logger.info(f"[timer-set] lobby={lobby_id} nonce={nonce} delay={delay_ms}ms")
        self.store.on_commit(lambda: self.callbacks.run_after(delay_ms, self.handler, kwargs))
        return delay_ms
