"""
Builds neat-python configurations for each genome class.
"""

import logging
import os
import tempfile
from typing import Optional

import neat

from ..entities import SensorMorphology
from .genomes import CPPNGenome
from .substrate import Substrate
from .templates import controller_activation, cppn_activation, neat_template


logger = logging.getLogger(__name__)


def build_neat_config(genome_type, num_inputs: int, num_outputs: int, pop_size: int,
                      connection_density: float = 0.5,
                      morphology: Optional[SensorMorphology] = None,
                      substrate: Optional[Substrate] = None) -> neat.Config:
    """
    Render the configuration template and load it with neat.Config.

    The fixed morphology (control case) or substrate (HyperNEATM) is attached
    to the genome configuration so that genomes record it when configured.

    Args:
        genome_type: One of the genome classes in ``morphevo.engine.genomes``
        num_inputs: Number of network inputs
        num_outputs: Number of network outputs
        pop_size: Population size
        connection_density: Fraction of input/output connections created
            for each new genome
        morphology: Fixed sensor morphology, if any
        substrate: Substrate the genomes are decoded onto, if any

    Returns:
        The loaded configuration
    """
    activation = cppn_activation if issubclass(genome_type, CPPNGenome) else controller_activation
    config_text = neat_template.format(
        genome_section=genome_type.__name__,
        pop_size=pop_size,
        num_inputs=num_inputs,
        num_outputs=num_outputs,
        connection_density=connection_density,
        **activation
    )

    # neat.Config only reads from a file
    with tempfile.NamedTemporaryFile(mode='w', suffix='.cfg', delete=False) as f:
        f.write(config_text)
        config_path = f.name

    try:
        config = neat.Config(genome_type, neat.DefaultReproduction, neat.DefaultSpeciesSet,
                             neat.DefaultStagnation, config_path)
    finally:
        try:
            os.unlink(config_path)
        except OSError as e:
            logger.warning(f"Could not remove temporary NEAT config {config_path}: {e}")

    config.genome_config.morphology = morphology
    config.genome_config.substrate = substrate
    return config
