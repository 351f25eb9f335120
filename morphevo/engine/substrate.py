"""
Robot sensor substrates for HyperNEATM.

A substrate is the fixed geometric layout a CPPN is queried over: candidate
sensor slots on the robot perimeter (inputs), a ring of hidden nodes and the
two wheel outputs. Coordinates are in the robot frame, normalized so the body
perimeter is the unit circle and the heading points along +x.
"""

import math
from dataclasses import dataclass
from typing import Tuple

Coordinate = Tuple[float, float]

MAX_INPUT_SLOTS = 32


@dataclass(frozen=True)
class Substrate:
    """Node coordinates of a substrate network."""
    input_coordinates: Tuple[Coordinate, ...]
    hidden_coordinates: Tuple[Coordinate, ...]
    output_coordinates: Tuple[Coordinate, ...]
    input_bearings: Tuple[float, ...]

    @property
    def num_inputs(self) -> int:
        return len(self.input_coordinates)

    @property
    def num_hidden(self) -> int:
        return len(self.hidden_coordinates)

    @property
    def num_outputs(self) -> int:
        return len(self.output_coordinates)


def create_khepera_substrate(min_dist_between_sensors: float,
                             robot_radius: float) -> Substrate:
    """
    Build the substrate for a round, Khepera-style robot.

    Sensor slots are spread evenly around the perimeter, as many as fit with
    at least ``min_dist_between_sensors`` of arc between neighbours.

    Args:
        min_dist_between_sensors: Minimum arc length between two sensors
        robot_radius: Radius of the robot body

    Returns:
        The substrate
    """
    if robot_radius <= 0:
        raise ValueError(f"robot_radius must be positive, got {robot_radius}")
    if min_dist_between_sensors <= 0:
        raise ValueError(f"min_dist_between_sensors must be positive, got {min_dist_between_sensors}")

    circumference = 2 * math.pi * robot_radius
    slots = int(circumference // min_dist_between_sensors)
    slots = max(1, min(slots, MAX_INPUT_SLOTS))

    bearings = tuple(_wrap(2 * math.pi * i / slots) for i in range(slots))
    inputs = tuple((math.cos(b), math.sin(b)) for b in bearings)

    num_hidden = max(2, slots // 2)
    hidden = tuple(
        (0.5 * math.cos(2 * math.pi * (i + 0.5) / num_hidden),
         0.5 * math.sin(2 * math.pi * (i + 0.5) / num_hidden))
        for i in range(num_hidden)
    )

    # Left and right wheel
    outputs = ((0.0, 0.25), (0.0, -0.25))

    return Substrate(
        input_coordinates=inputs,
        hidden_coordinates=hidden,
        output_coordinates=outputs,
        input_bearings=bearings
    )


def _wrap(angle: float) -> float:
    """Wrap an angle to (-pi, pi]."""
    wrapped = math.atan2(math.sin(angle), math.cos(angle))
    return math.pi if wrapped == -math.pi else wrapped
