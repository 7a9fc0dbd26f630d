"""Actor runtimes, evaluation loops and the coordinator."""

from .actor import ActorRuntime, ActorTelemetry
from .coordinator import ActivationResult, Coordinator, StateChangedEvent
from .progress import ProgressTracker
from .scheduler import EvaluationScheduler

__all__ = [
    "ActivationResult",
    "ActorRuntime",
    "ActorTelemetry",
    "Coordinator",
    "EvaluationScheduler",
    "ProgressTracker",
    "StateChangedEvent",
]
