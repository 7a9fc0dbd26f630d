"""Session progress: processed actors, outcomes and the victory condition.

A downstream consumer of state-change events; it never drives the
coordinator.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from neurowave.cognition.emotion_state_machine import EmotionState

if TYPE_CHECKING:
    from neurowave.runtime.coordinator import StateChangedEvent

logger = logging.getLogger(__name__)

VictoryCallback = Callable[[int, float], None]


class ProgressTracker:
    """Counts processed actors and fires victory once all are done.

    Args:
        total_actors: Number of actors that must be processed for victory
    """

    def __init__(self, total_actors: int) -> None:
        if total_actors < 0:
            raise ValueError("total_actors must be non-negative")
        self.total_actors = total_actors
        self._exit_obedience: dict[str, float] = {}
        self._stabilized: dict[str, int] = {}
        self._failures: dict[str, int] = {}
        self._victory_callbacks: list[VictoryCallback] = []
        self._victory = False

    @property
    def processed(self) -> int:
        return len(self._exit_obedience)

    @property
    def victory(self) -> bool:
        return self._victory

    @property
    def average_exit_obedience(self) -> float:
        """Mean obedience of processed actors; 100 before any is processed."""
        if not self._exit_obedience:
            return 100.0
        return sum(self._exit_obedience.values()) / len(self._exit_obedience)

    def stabilizations(self, actor_id: str) -> int:
        return self._stabilized.get(actor_id, 0)

    def critical_failures(self, actor_id: str) -> int:
        return self._failures.get(actor_id, 0)

    def on_victory(self, callback: VictoryCallback) -> None:
        if callback not in self._victory_callbacks:
            self._victory_callbacks.append(callback)

    def handle_state_changed(self, event: StateChangedEvent) -> None:
        """Coordinator listener: tally stabilizations and critical failures."""
        if event.new_state == EmotionState.STABILIZED:
            self._stabilized[event.actor_id] = self._stabilized.get(event.actor_id, 0) + 1
        elif event.new_state == EmotionState.CRITICAL_FAILURE:
            self._failures[event.actor_id] = self._failures.get(event.actor_id, 0) + 1

    def record_processed(self, actor_id: str, obedience: float = 100.0) -> bool:
        """Mark an actor as processed with its exit obedience (0-100).

        Recording the same actor again overwrites its obedience without
        counting it twice. Ignored once victory has been reached.

        Returns:
            True if this call triggered victory
        """
        if self._victory:
            return False

        self._exit_obedience[actor_id] = max(0.0, min(float(obedience), 100.0))
        logger.info("Actor processed: %s (%d/%d)", actor_id, self.processed, self.total_actors)

        if self.processed >= self.total_actors:
            self._trigger_victory()
            return True
        return False

    def set_total(self, total_actors: int) -> bool:
        """Update the number of actors required for victory.

        Returns:
            True if the new total is already met and victory fired
        """
        if total_actors < 0:
            raise ValueError("total_actors must be non-negative")
        self.total_actors = total_actors
        if not self._victory and total_actors > 0 and self.processed >= total_actors:
            self._trigger_victory()
            return True
        return False

    def forget(self, actor_id: str) -> None:
        """Drop everything recorded for an actor that left the session."""
        self._exit_obedience.pop(actor_id, None)
        self._stabilized.pop(actor_id, None)
        self._failures.pop(actor_id, None)

    def _trigger_victory(self) -> None:
        self._victory = True
        average = self.average_exit_obedience
        logger.info(
            "Victory: %d actors processed, average obedience %.1f", self.processed, average
        )
        for callback in list(self._victory_callbacks):
            try:
                callback(self.processed, average)
            except Exception:
                logger.exception("Victory callback %r failed", callback)

    def reset(self) -> None:
        self._exit_obedience.clear()
        self._stabilized.clear()
        self._failures.clear()
        self._victory = False

    def get_state(self) -> dict[str, Any]:
        return {
            "total_actors": self.total_actors,
            "processed": self.processed,
            "average_exit_obedience": self.average_exit_obedience,
            "victory": self._victory,
        }
