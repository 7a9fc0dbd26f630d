"""
neurowave: per-actor wave evaluation and emotional state runtime.

Public API:
-----------
- WaveSample: Sanitized, immutable multi-band sample
- TargetProfile / EvaluationSettings: Validated configuration values
- WaveEvaluator: Scores samples against a profile with EMA smoothing
- EmotionStateMachine: Instability dynamics and state transitions
- Coordinator: Actor registry and single-active-actor control
- ProgressTracker: Processed actors and the victory condition

Quick Start:
-----------
>>> import asyncio
>>> from neurowave import Coordinator, EvaluationSettings, TargetProfile
>>> async def main():
...     coordinator = Coordinator(EvaluationSettings())
...     coordinator.register("citizen-1", TargetProfile())
...     coordinator.set_sample([0.2, 0.2, 0.2, 0.2, 0.2])
...     await coordinator.activate("citizen-1")
...     await asyncio.sleep(0.5)
...     await coordinator.shutdown()
>>> asyncio.run(main())
"""

from __future__ import annotations

from .cognition import (
    EmotionState,
    EmotionStateMachine,
    ObedienceLevel,
    ObedienceSource,
    WaveEvaluator,
)
from .core import BAND_COUNT, BAND_NAMES, EvaluationSettings, TargetProfile, WaveSample
from .runtime import (
    ActivationResult,
    ActorRuntime,
    ActorTelemetry,
    Coordinator,
    EvaluationScheduler,
    ProgressTracker,
    StateChangedEvent,
)
from .utils.config_loader import ConfigLoader
from .utils.errors import ConfigurationError, NeuroWaveError

__version__ = "0.1.0"

__all__ = [
    "BAND_COUNT",
    "BAND_NAMES",
    "ActivationResult",
    "ActorRuntime",
    "ActorTelemetry",
    "ConfigLoader",
    "ConfigurationError",
    "Coordinator",
    "EmotionState",
    "EmotionStateMachine",
    "EvaluationScheduler",
    "EvaluationSettings",
    "NeuroWaveError",
    "ObedienceLevel",
    "ObedienceSource",
    "ProgressTracker",
    "StateChangedEvent",
    "TargetProfile",
    "WaveEvaluator",
    "WaveSample",
    "__version__",
]
