"""
Simulation configuration loaded from YAML.
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..errors import DeserializationError


logger = logging.getLogger(__name__)


@dataclass
class SimConfig:
    """Arena, robot and timing parameters of the simulation."""
    arena_width: float = 2.0
    arena_height: float = 2.0
    robot_radius: float = 0.15
    min_dist_between_sensors: float = 0.1
    resource_radius: float = 0.1
    min_resource_distance: float = 0.6
    max_wheel_speed: float = 0.3
    time_step: float = 0.1
    simulation_steps: int = 300
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "SimConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            logger.warning(f"Ignoring unknown simulation config keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in config_dict.items() if k in known})

    @classmethod
    def from_file(cls, config_file: Optional[Union[str, Path]]) -> "SimConfig":
        """
        Load a simulation config; a blank path gives the defaults.

        Raises:
            DeserializationError: If the file is missing, unreadable or not a
                YAML mapping
        """
        if config_file is None or not str(config_file).strip():
            return cls()

        path = Path(config_file)
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise DeserializationError(f"Could not load simulation config {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise DeserializationError(f"Simulation config {path} must be a mapping")

        # Allow the parameters to sit under a top-level 'simulation' section
        data = data.get('simulation', data)
        try:
            config = cls.from_dict(data)
        except TypeError as e:
            raise DeserializationError(f"Invalid simulation config {path}: {e}") from e

        logger.info(f"Loaded simulation config from {path}")
        return config
