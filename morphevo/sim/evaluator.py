"""
Score evaluation of controller networks in a simulated arena.

A differential-drive robot starts in the middle of a walled arena and has to
reach a resource using only the readings of its own sensors.

Score scale (per trial, averaged over trials):
    100 * progress        fraction of the initial gap to the resource closed
    + 20 * (1 - t / T)    only when the resource is reached, at step t of T

Scores therefore lie in [0, 120]. The default convergence threshold of 110
corresponds to reaching the resource within the first half of a trial on
average; change the two together.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from ..entities import SensorMorphology
from .config import SimConfig


logger = logging.getLogger(__name__)

PROGRESS_POINTS = 100.0
SPEED_BONUS_POINTS = 20.0
MAX_SCORE = PROGRESS_POINTS + SPEED_BONUS_POINTS

_PLACEMENT_ATTEMPTS = 100


@dataclass
class TrialResult:
    """Outcome of one simulated trial."""
    score: float
    reached: bool
    steps: int
    trajectory: List[Tuple[float, float, float]] = field(default_factory=list)


@dataclass
class DemoResult:
    """Outcome of a demo run of a single network."""
    score: float
    reached: bool
    steps: int
    num_sensors: int
    trajectory: List[Tuple[float, float, float]] = field(default_factory=list)


class ScoreEvaluator(ABC):
    """Scores controller networks; higher is better."""

    min_score: float = 0.0
    max_score: float = MAX_SCORE

    @abstractmethod
    def score(self, network) -> float:
        """Score a network. Called concurrently from worker threads."""
        pass

    @abstractmethod
    def demo(self, network) -> DemoResult:
        """Run a single observable trial of a network."""
        pass


class ArenaScoreEvaluator(ScoreEvaluator):
    """Resource-seeking task in a rectangular arena."""

    def __init__(self, sim_config: SimConfig, trials: int = 3):
        if trials < 1:
            raise ValueError(f"trials must be at least 1, got {trials}")
        self.sim_config = sim_config
        self.trials = trials

    def score(self, network) -> float:
        rng = np.random.default_rng(self.sim_config.seed)
        results = [self._run_trial(network, rng) for _ in range(self.trials)]
        return sum(r.score for r in results) / len(results)

    def demo(self, network) -> DemoResult:
        rng = np.random.default_rng(self.sim_config.seed)
        result = self._run_trial(network, rng, record=True)

        for step, (x, y, heading) in enumerate(result.trajectory):
            if step % 25 == 0:
                logger.debug(f"step {step:4d}: x={x:+.3f} y={y:+.3f} heading={heading:+.2f}")

        logger.info(f"Demo finished: score={result.score:.1f} "
                    f"reached={'yes' if result.reached else 'no'} after {result.steps} steps "
                    f"with {network.morphology.num_sensors} sensors")
        return DemoResult(
            score=result.score,
            reached=result.reached,
            steps=result.steps,
            num_sensors=network.morphology.num_sensors,
            trajectory=result.trajectory
        )

    def _run_trial(self, network, rng: np.random.Generator, record: bool = False) -> TrialResult:
        cfg = self.sim_config
        half_w = cfg.arena_width / 2 - cfg.robot_radius
        half_h = cfg.arena_height / 2 - cfg.robot_radius

        x, y = 0.0, 0.0
        heading = float(rng.uniform(-math.pi, math.pi))
        target = self._place_resource(rng)
        reach = cfg.robot_radius + cfg.resource_radius

        initial_gap = math.hypot(target[0] - x, target[1] - y) - reach
        if initial_gap <= 0:
            return TrialResult(score=MAX_SCORE, reached=True, steps=0)

        trajectory = [(x, y, heading)] if record else []
        gap = initial_gap
        steps = 0
        reached = False
        for steps in range(1, cfg.simulation_steps + 1):
            readings = sense(network.morphology, x, y, heading, target, cfg.robot_radius)
            left, right = network.activate(readings)

            # Differential drive kinematics
            v_left = left * cfg.max_wheel_speed
            v_right = right * cfg.max_wheel_speed
            speed = (v_left + v_right) / 2
            turn_rate = (v_right - v_left) / (2 * cfg.robot_radius)

            heading = _wrap(heading + turn_rate * cfg.time_step)
            x = min(max(x + speed * cfg.time_step * math.cos(heading), -half_w), half_w)
            y = min(max(y + speed * cfg.time_step * math.sin(heading), -half_h), half_h)
            if record:
                trajectory.append((x, y, heading))

            gap = math.hypot(target[0] - x, target[1] - y) - reach
            if gap <= 0:
                reached = True
                break

        if reached:
            score = PROGRESS_POINTS + SPEED_BONUS_POINTS * (1 - steps / cfg.simulation_steps)
        else:
            progress = min(max((initial_gap - gap) / initial_gap, 0.0), 1.0)
            score = PROGRESS_POINTS * progress

        return TrialResult(score=score, reached=reached, steps=steps, trajectory=trajectory)

    def _place_resource(self, rng: np.random.Generator) -> Tuple[float, float]:
        cfg = self.sim_config
        half_w = cfg.arena_width / 2 - cfg.resource_radius
        half_h = cfg.arena_height / 2 - cfg.resource_radius
        target = (0.0, 0.0)
        for _ in range(_PLACEMENT_ATTEMPTS):
            target = (float(rng.uniform(-half_w, half_w)), float(rng.uniform(-half_h, half_h)))
            if math.hypot(*target) >= cfg.min_resource_distance:
                break
        return target


def sense(morphology: SensorMorphology, x: float, y: float, heading: float,
          target: Sequence[float], robot_radius: float) -> List[float]:
    """
    Readings of every sensor of a morphology for a robot pose.

    A sensor reads ``1 - distance / range`` when the resource lies within its
    range and field of view, and 0 otherwise.
    """
    readings = []
    for sensor in morphology.sensors:
        mount_angle = heading + sensor.bearing
        mount_x = x + robot_radius * math.cos(mount_angle)
        mount_y = y + robot_radius * math.sin(mount_angle)

        dx = target[0] - mount_x
        dy = target[1] - mount_y
        distance = math.hypot(dx, dy)
        if distance > sensor.range:
            readings.append(0.0)
            continue

        offset = _wrap(math.atan2(dy, dx) - (mount_angle + sensor.orientation))
        if abs(offset) > sensor.field_of_view / 2:
            readings.append(0.0)
        else:
            readings.append(1.0 - distance / sensor.range)
    return readings


def _wrap(angle: float) -> float:
    return math.atan2(math.sin(angle), math.cos(angle))
