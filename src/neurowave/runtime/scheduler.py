"""Periodic per-actor evaluation loops on asyncio.

Each running actor gets one task that ticks at the sample interval.
Stopping is cooperative: the loop checks its stop event before every tick
and wakes on it while waiting, and ``stop`` does not return until the
task has exited, so no tick of that actor runs afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from neurowave.utils.errors import ErrorCode, SchedulerError

if TYPE_CHECKING:
    from neurowave.observability.logger import ObservabilityLogger
    from neurowave.observability.metrics import MetricsExporter
    from neurowave.runtime.actor import ActorRuntime

logger = logging.getLogger(__name__)


@dataclass
class _LoopHandle:
    actor: ActorRuntime
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task[None] | None = None


class EvaluationScheduler:
    """Runs and stops one evaluation loop per actor."""

    def __init__(
        self,
        *,
        metrics: MetricsExporter | None = None,
        observability: ObservabilityLogger | None = None,
    ) -> None:
        self.metrics = metrics
        self.observability = observability
        self._loops: dict[str, _LoopHandle] = {}
        self._lock = asyncio.Lock()
        self._closed = False
        self._errors: dict[str, int] = {}
        self._last_errors: dict[str, SchedulerError] = {}

    @property
    def is_closed(self) -> bool:
        return self._closed

    def is_running(self, actor_id: str) -> bool:
        handle = self._loops.get(actor_id)
        return handle is not None and handle.task is not None and not handle.task.done()

    def running_actors(self) -> list[str]:
        return [actor_id for actor_id in self._loops if self.is_running(actor_id)]

    def error_count(self, actor_id: str) -> int:
        """Tick failures recorded for the actor across all of its loops."""
        return self._errors.get(actor_id, 0)

    def last_error(self, actor_id: str) -> SchedulerError | None:
        """Most recent tick failure (E403) recorded for the actor."""
        return self._last_errors.get(actor_id)

    async def start(self, actor: ActorRuntime) -> None:
        """Start the actor's loop, stopping a previous one first.

        Raises:
            SchedulerError: If the scheduler has been closed
        """
        async with self._lock:
            if self._closed:
                raise SchedulerError(
                    ErrorCode.E702_SHUTDOWN_IN_PROGRESS,
                    f"Cannot start loop for {actor.actor_id}: scheduler closed",
                    details={"actor_id": actor.actor_id},
                )
            await self._stop_locked(actor.actor_id)

            handle = _LoopHandle(actor=actor)
            handle.task = asyncio.create_task(
                self._run(handle), name=f"neurowave-eval-{actor.actor_id}"
            )
            self._loops[actor.actor_id] = handle
            self._update_active_gauge()

        if self.observability is not None:
            self.observability.log_scheduler_started(actor.actor_id, actor.settings.sample_interval)

    async def stop(self, actor_id: str) -> bool:
        """Stop the actor's loop and wait for it to exit.

        Returns:
            True if a loop was running
        """
        async with self._lock:
            return await self._stop_locked(actor_id)

    async def stop_all(self, *, close: bool = False) -> None:
        """Stop every loop; with ``close`` no new loop may start afterwards."""
        async with self._lock:
            if close:
                self._closed = True
            for actor_id in list(self._loops):
                await self._stop_locked(actor_id)

    async def _stop_locked(self, actor_id: str) -> bool:
        handle = self._loops.pop(actor_id, None)
        if handle is None:
            return False

        handle.stop_event.set()
        if handle.task is not None:
            await handle.task
        self._update_active_gauge()

        if self.observability is not None:
            self.observability.log_scheduler_stopped(actor_id, handle.actor.tick_count)
        return True

    async def _run(self, handle: _LoopHandle) -> None:
        actor = handle.actor
        stop_event = handle.stop_event
        interval = actor.settings.sample_interval
        loop = asyncio.get_running_loop()
        deadline = loop.time()

        logger.debug("Evaluation loop for %s started (interval=%.4fs)", actor.actor_id, interval)
        while not stop_event.is_set():
            try:
                actor.tick(interval)
            except Exception as e:
                failure = SchedulerError(
                    ErrorCode.E403_TICK_FAILED,
                    f"Evaluation tick failed for actor {actor.actor_id}: {e}",
                    details={"actor_id": actor.actor_id, "error_type": type(e).__name__},
                    recoverable=True,
                )
                self._errors[actor.actor_id] = self._errors.get(actor.actor_id, 0) + 1
                self._last_errors[actor.actor_id] = failure
                logger.error(
                    str(failure), exc_info=True, extra=failure.error_details.to_log_dict()
                )
                if self.metrics is not None:
                    self.metrics.increment_tick_errors(actor.actor_id)
                if self.observability is not None:
                    self.observability.log_tick_failed(
                        actor.actor_id, e, error_code=failure.code.value
                    )

            # Skip missed boundaries instead of bursting to catch up.
            deadline += interval
            now = loop.time()
            if deadline <= now:
                deadline += (int((now - deadline) / interval) + 1) * interval

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=deadline - now)
            except asyncio.TimeoutError:
                pass
        logger.debug("Evaluation loop for %s stopped", actor.actor_id)

    def _update_active_gauge(self) -> None:
        if self.metrics is not None:
            self.metrics.set_active_actors(len(self.running_actors()))
