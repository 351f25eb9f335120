"""
Genome classes for the three encodings.

Each class extends neat-python's DefaultGenome and records what it needs to be
decoded on its own (input/output counts, plus the fixed morphology or the
substrate), so a genome read back from disk can be decoded without the
population it came from.
"""

import math
import random
from typing import Optional

import neat

from ..entities import SensorMorphology, SensorSpec


class DescribedGenome(neat.DefaultGenome):
    """DefaultGenome that remembers the network shape it was configured with."""

    def __init__(self, key):
        super().__init__(key)
        self.num_inputs: Optional[int] = None
        self.num_outputs: Optional[int] = None

    def _record_config(self, config):
        self.num_inputs = config.num_inputs
        self.num_outputs = config.num_outputs

    def configure_new(self, config):
        super().configure_new(config)
        self._record_config(config)

    def configure_crossover(self, genome1, genome2, config):
        super().configure_crossover(genome1, genome2, config)
        self._record_config(config)


class ControllerGenome(DescribedGenome):
    """NEAT controller for a fixed, externally supplied morphology."""

    def __init__(self, key):
        super().__init__(key)
        self.morphology: Optional[SensorMorphology] = None

    def _record_config(self, config):
        super()._record_config(config)
        self.morphology = getattr(config, "morphology", None)


class CPPNGenome(DescribedGenome):
    """CPPN queried over a substrate to produce controller and sensors."""

    def __init__(self, key):
        super().__init__(key)
        self.substrate = None

    def _record_config(self, config):
        super()._record_config(config)
        self.substrate = getattr(config, "substrate", None)


# Sensor parameter bounds for evolved morphologies
SENSOR_RANGE_BOUNDS = (0.4, 1.6)
SENSOR_FOV_BOUNDS = (0.2, 1.4)
SENSOR_ORIENTATION_LIMIT = math.pi / 4


class MorphologyGenome(DescribedGenome):
    """NEAT controller whose sensor morphology evolves with it (NEATM)."""

    sensor_mutate_rate = 0.3
    bearing_mutate_power = 0.2
    orientation_mutate_power = 0.1
    range_mutate_power = 0.1
    fov_mutate_power = 0.1
    morphology_distance_coefficient = 1.0

    def __init__(self, key):
        super().__init__(key)
        self.morphology: Optional[SensorMorphology] = None

    def configure_new(self, config):
        super().configure_new(config)
        self.morphology = random_morphology(config.num_inputs)

    def configure_crossover(self, genome1, genome2, config):
        super().configure_crossover(genome1, genome2, config)
        # Sensors come from the fitter parent, matching neat's gene inheritance
        fitter = genome1 if genome1.fitness > genome2.fitness else genome2
        self.morphology = fitter.morphology

    def mutate(self, config):
        super().mutate(config)
        if self.morphology is None:
            self.morphology = random_morphology(config.num_inputs)
        self.morphology = SensorMorphology(
            sensors=tuple(self._mutate_sensor(s) if random.random() < self.sensor_mutate_rate else s
                          for s in self.morphology.sensors),
            name=self.morphology.name
        )

    def distance(self, other, config):
        d = super().distance(other, config)
        if self.morphology is None or other.morphology is None:
            return d
        return d + self.morphology_distance_coefficient * morphology_distance(self.morphology,
                                                                            other.morphology)

    def _mutate_sensor(self, sensor: SensorSpec) -> SensorSpec:
        bearing = _wrap(sensor.bearing + random.gauss(0.0, self.bearing_mutate_power))
        orientation = _clamp(sensor.orientation + random.gauss(0.0, self.orientation_mutate_power),
                             -SENSOR_ORIENTATION_LIMIT, SENSOR_ORIENTATION_LIMIT)
        sensor_range = _clamp(sensor.range + random.gauss(0.0, self.range_mutate_power),
                              *SENSOR_RANGE_BOUNDS)
        fov = _clamp(sensor.field_of_view + random.gauss(0.0, self.fov_mutate_power),
                     *SENSOR_FOV_BOUNDS)
        return SensorSpec(bearing=bearing, orientation=orientation, range=sensor_range,
                          field_of_view=fov)


def random_morphology(num_sensors: int) -> SensorMorphology:
    """Draw a random layout with the given number of sensors."""
    sensors = tuple(
        SensorSpec(
            bearing=random.uniform(-math.pi, math.pi),
            orientation=random.uniform(-SENSOR_ORIENTATION_LIMIT, SENSOR_ORIENTATION_LIMIT) / 2,
            range=random.uniform(*SENSOR_RANGE_BOUNDS),
            field_of_view=random.uniform(*SENSOR_FOV_BOUNDS)
        )
        for _ in range(num_sensors)
    )
    return SensorMorphology(sensors=sensors, name="neatm")


def morphology_distance(a: SensorMorphology, b: SensorMorphology) -> float:
    """Mean per-sensor parameter difference between two layouts of equal size."""
    if a.num_sensors != b.num_sensors:
        return float(abs(a.num_sensors - b.num_sensors))
    if a.num_sensors == 0:
        return 0.0
    total = 0.0
    for s1, s2 in zip(a.sensors, b.sensors):
        total += abs(_wrap(s1.bearing - s2.bearing)) / math.pi
        total += abs(s1.orientation - s2.orientation) / SENSOR_ORIENTATION_LIMIT
        total += abs(s1.range - s2.range)
        total += abs(s1.field_of_view - s2.field_of_view)
    return total / a.num_sensors


def _wrap(angle: float) -> float:
    return math.atan2(math.sin(angle), math.cos(angle))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
