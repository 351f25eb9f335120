"""
Simulation side of morphevo: configuration and score evaluation.
"""

from .config import SimConfig
from .evaluator import (
    ScoreEvaluator,
    ArenaScoreEvaluator,
    DemoResult,
    MAX_SCORE
)

__all__ = [
    "SimConfig",
    "ScoreEvaluator",
    "ArenaScoreEvaluator",
    "DemoResult",
    "MAX_SCORE"
]
