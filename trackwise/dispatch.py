"""
Latest-Only Dispatcher

Views that re-run a model flow whenever the expenses change need two things:

1. Debounce: wait for an idle period before firing, and restart the wait
   if another change arrives first.
2. Ordering: once a call has fired it is tagged with a per-key sequence
   number. When it finishes, its result is delivered only if no newer call
   for the same key has fired since; otherwise it is discarded.

In-flight calls are never cancelled, only outrun. A slow old reply can
therefore arrive after a fast new one, but it can never overwrite it.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)

DELIVERED = "delivered"
DISCARDED = "discarded"
FAILED = "failed"


@dataclass(frozen=True)
class DispatchOutcome:
    """What happened to one fired call."""

    key: str
    sequence: int
    status: str
    result: Any = None
    error: Optional[BaseException] = None

    @property
    def delivered(self) -> bool:
        return self.status == DELIVERED


class LatestOnlyDispatcher:
    """
    Debounces and orders async calls per key.

    Must be used from inside a running event loop.
    """

    def __init__(
        self,
        on_discard: Optional[Callable[[str, int, int], Awaitable[None]]] = None,
    ):
        self._pending: dict[str, asyncio.Task] = {}
        self._issued: dict[str, int] = {}
        self._tasks: set[asyncio.Task] = set()
        self._on_discard = on_discard

    def latest_sequence(self, key: str) -> int:
        """Sequence number of the newest fired call for ``key`` (0 if none)."""
        return self._issued.get(key, 0)

    def has_pending(self, key: str) -> bool:
        """True while a scheduled call for ``key`` is still waiting to fire."""
        task = self._pending.get(key)
        return task is not None and not task.done()

    def cancel_pending(self, key: str) -> bool:
        """Drop a scheduled call that has not fired yet."""
        task = self._pending.pop(key, None)
        if task is not None and not task.done():
            task.cancel()
            return True
        return False

    def schedule(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        delay: float = 0.0,
        on_result: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> "asyncio.Task[Optional[DispatchOutcome]]":
        """
        Fire ``factory()`` after ``delay`` seconds of quiet for ``key``.

        A call scheduled earlier for the same key that has not fired yet is
        cancelled. ``on_result`` / ``on_error`` run only for the newest
        fired call.

        Returns the task; it resolves to a DispatchOutcome, or is cancelled
        if superseded before firing.
        """
        self.cancel_pending(key)

        task = asyncio.get_running_loop().create_task(
            self._run(key, factory, delay, on_result, on_error)
        )
        self._pending[key] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        delay: float,
        on_result: Optional[Callable[[Any], None]],
        on_error: Optional[Callable[[BaseException], None]],
    ) -> DispatchOutcome:
        if delay > 0:
            await asyncio.sleep(delay)

        # Fired: from here on a newer schedule outruns this call instead of cancelling it
        if self._pending.get(key) is asyncio.current_task():
            del self._pending[key]

        sequence = self._issued.get(key, 0) + 1
        self._issued[key] = sequence
        log = logger.bind(key=key, sequence=sequence)
        log.debug("dispatch_fired")

        try:
            result = await factory()
        except Exception as e:
            if self._is_stale(key, sequence):
                return await self._discard(key, sequence, error=e)
            log.warning("dispatch_failed", error=str(e))
            if on_error is not None:
                on_error(e)
            return DispatchOutcome(key, sequence, FAILED, error=e)

        if self._is_stale(key, sequence):
            return await self._discard(key, sequence, result=result)

        if on_result is not None:
            on_result(result)
        log.debug("dispatch_delivered")
        return DispatchOutcome(key, sequence, DELIVERED, result=result)

    def _is_stale(self, key: str, sequence: int) -> bool:
        return sequence != self._issued.get(key, 0)

    async def _discard(
        self,
        key: str,
        sequence: int,
        result: Any = None,
        error: Optional[BaseException] = None,
    ) -> DispatchOutcome:
        latest = self._issued.get(key, 0)
        logger.info("dispatch_discarded_stale", key=key, sequence=sequence, latest=latest)
        if self._on_discard is not None:
            await self._on_discard(key, sequence, latest)
        return DispatchOutcome(key, sequence, DISCARDED, result=result, error=error)

    async def drain(self) -> list[DispatchOutcome]:
        """
        Wait for every scheduled and in-flight call to settle.

        Returns the outcomes of the calls that fired; superseded schedules
        are left out.
        """
        outcomes: list[DispatchOutcome] = []
        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            outcomes.extend(r for r in results if isinstance(r, DispatchOutcome))
        return outcomes
