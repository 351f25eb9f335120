"""
Entity definitions for the morphevo experiment platform.

This module contains the data structures shared by the orchestrator, the
evolutionary engine and the simulator: the experiment configuration, the
encoding variant tag, sensor morphologies and per-iteration statistics.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class EncodingVariant(str, Enum):
    """Genome encoding used by a population."""
    NEAT_CONTROL = "neat_control"
    NEATM = "neatm"
    HYPERNEATM = "hyperneatm"


@dataclass(frozen=True)
class ExperimentConfig:
    """Immutable record of everything a single experiment run needs."""
    config_file: Optional[str] = "config/bossConfig.yml"
    generations: int = 50
    population_size: int = 75
    trials_per_individual: int = 3
    connection_density: float = 0.5
    demo_genome_path: Optional[str] = None
    control: bool = False
    morphology_path: Optional[str] = None
    hyperneatm: bool = True
    population_path: Optional[str] = None
    threads: int = 0  # 0 = one worker per available processor

    # Stopping rule, tied to the evaluator's score scale (see ArenaScoreEvaluator)
    convergence_score: float = 110.0

    # Tracking and output
    experiment_name: str = "morphevo"
    tracking_uri: Optional[str] = None
    output_dir: Optional[str] = "results"
    checkpoint_interval: int = 0
    verbose: bool = True

    @property
    def demo_only(self) -> bool:
        return bool(self.demo_genome_path)

    def describe(self) -> str:
        """Multi-line summary used when logging the options of a run."""
        return ("Options: \n"
                f"\tConfig file path: {self.config_file}\n"
                f"\tNumber of generations: {self.generations}\n"
                f"\tPopulation size: {self.population_size}\n"
                f"\tNumber of trials per individual: {self.trials_per_individual}\n"
                f"\tInitial connection density: {self.connection_density}\n"
                f"\tDemo genome path: {self.demo_genome_path}\n"
                f"\tRunning with the control case: {self.control}\n"
                f"\tHyperNEATM: {self.hyperneatm}\n"
                f"\tMorphology path: {self.morphology_path}\n"
                f"\tPopulation path: {self.population_path}\n"
                f"\tNumber of threads: {self.threads}")


@dataclass(frozen=True)
class SensorSpec:
    """A single proximity sensor mounted on the robot body.

    Angles are in radians. ``bearing`` is the mounting position on the body
    perimeter relative to the heading, ``orientation`` is the facing direction
    relative to the outward normal at that position.
    """
    bearing: float
    orientation: float = 0.0
    range: float = 1.2
    field_of_view: float = 0.6

    def facing(self) -> float:
        return self.bearing + self.orientation


@dataclass(frozen=True)
class SensorMorphology:
    """Sensor layout of a robot controller."""
    sensors: Tuple[SensorSpec, ...]
    name: str = "custom"

    @property
    def num_sensors(self) -> int:
        return len(self.sensors)

    @classmethod
    def from_bearings(cls, bearings_deg: List[float], name: str = "custom",
                      **sensor_kwargs) -> "SensorMorphology":
        sensors = tuple(SensorSpec(bearing=math.radians(b), **sensor_kwargs)
                        for b in bearings_deg)
        return cls(sensors=sensors, name=name)


@dataclass
class IterationStats:
    """Statistics recorded after one generation."""
    iteration: int
    best_score: float
    mean_score: float
    min_score: float
    population_size: int
    iteration_seconds: float
    elapsed_seconds: float

    def as_metrics(self) -> Dict[str, float]:
        return {
            "best_score": self.best_score,
            "mean_score": self.mean_score,
            "min_score": self.min_score,
            "population_size": self.population_size,
            "iteration_seconds": self.iteration_seconds,
            "elapsed_seconds": self.elapsed_seconds,
        }


@dataclass
class ExperimentResult:
    """What a completed run hands back to its caller."""
    variant: Optional[EncodingVariant]
    loop_state: Optional[str]
    start_iteration: Optional[int]
    end_iteration: Optional[int]
    best_score: Optional[float]
    demo_score: float
    artifacts: Dict[str, str] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)
