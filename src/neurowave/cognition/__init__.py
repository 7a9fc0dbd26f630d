"""Per-actor cognition: wave scoring, emotional state and obedience."""

from .emotion_state_machine import EmotionState, EmotionStateMachine, StateListener
from .obedience import ObedienceLevel, ObedienceSource, obedience_label
from .wave_evaluator import WaveEvaluator

__all__ = [
    "EmotionState",
    "EmotionStateMachine",
    "ObedienceLevel",
    "ObedienceSource",
    "StateListener",
    "WaveEvaluator",
    "obedience_label",
]
