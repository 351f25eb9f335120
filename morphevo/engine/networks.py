"""
Executable controller networks produced by the codecs.

A network maps one reading per sensor of its morphology to the two wheel
commands, each in [-1, 1].
"""

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

import neat
import numpy as np

from ..entities import SensorMorphology
from .substrate import Substrate


class ControllerNetwork(ABC):
    """A decoded controller together with the sensors that feed it."""

    def __init__(self, morphology: SensorMorphology):
        self.morphology = morphology

    @property
    def num_sensors(self) -> int:
        return self.morphology.num_sensors

    def activate(self, readings: Sequence[float]) -> Tuple[float, float]:
        if len(readings) != self.num_sensors:
            raise ValueError(f"Expected {self.num_sensors} sensor readings, got {len(readings)}")
        left, right = self._activate(readings)
        return float(np.clip(left, -1.0, 1.0)), float(np.clip(right, -1.0, 1.0))

    @abstractmethod
    def _activate(self, readings: Sequence[float]) -> Tuple[float, float]:
        pass


class NEATNetwork(ControllerNetwork):
    """Controller decoded directly from a NEAT or NEATM genome."""

    def __init__(self, network: neat.nn.FeedForwardNetwork, morphology: SensorMorphology):
        super().__init__(morphology)
        self.network = network

    def _activate(self, readings):
        outputs = self.network.activate(list(readings))
        return outputs[0], outputs[1]


class SubstrateNetwork(ControllerNetwork):
    """Controller generated by querying a CPPN over a substrate."""

    def __init__(self, substrate: Substrate, morphology: SensorMorphology,
                 input_slots: Sequence[int], input_hidden: np.ndarray,
                 hidden_output: np.ndarray, input_output: np.ndarray):
        super().__init__(morphology)
        self.substrate = substrate
        self.input_slots = tuple(input_slots)
        self.input_hidden = input_hidden
        self.hidden_output = hidden_output
        self.input_output = input_output

    def _activate(self, readings):
        x = np.asarray(readings, dtype=float)
        hidden = np.tanh(self.input_hidden @ x)
        outputs = np.tanh(self.hidden_output @ hidden + self.input_output @ x)
        return outputs[0], outputs[1]
