"""
Resolution of the fixed sensor morphology used by the control case.

Outside the control case morphology evolves with the controller, so nothing
is resolved.
"""

import logging
from typing import Optional

from ..engine.networks import ControllerNetwork
from ..entities import SensorMorphology
from ..storage import read_object


logger = logging.getLogger(__name__)

# Khepera III infrared ring: front pair, front diagonals, sides, rear diagonals
KHEPERA_III_BEARINGS = (10.0, -10.0, 45.0, -45.0, 90.0, -90.0, 135.0, -135.0)


def khepera_iii_morphology() -> SensorMorphology:
    """The built-in default morphology."""
    return SensorMorphology.from_bearings(list(KHEPERA_III_BEARINGS), name="khepera_iii")


def resolve_morphology(control: bool,
                       morphology_path: Optional[str] = None) -> Optional[SensorMorphology]:
    """
    Resolve the sensor morphology for a run.

    Args:
        control: Whether the run is the control case (fixed morphology)
        morphology_path: Serialized evolved network whose morphology to reuse

    Returns:
        The morphology, or None outside the control case

    Raises:
        DeserializationError: If the file is missing, unreadable or not a network
    """
    if not control:
        return None

    if morphology_path:
        network = read_object(morphology_path, expected_type=ControllerNetwork)
        logger.info(f"Using {network.morphology.num_sensors}-sensor morphology "
                    f"'{network.morphology.name}' from {morphology_path}")
        return network.morphology

    morphology = khepera_iii_morphology()
    logger.info(f"Using default {morphology.name} morphology with {morphology.num_sensors} sensors")
    return morphology
