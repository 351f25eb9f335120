"""
Population bootstrapping: resume a serialized population or build a fresh one
of the encoding the configuration selects.
"""

import logging
from typing import Optional

from ..engine.population import EvolvingPopulation, GENOME_TYPES
from ..engine.substrate import create_khepera_substrate
from ..entities import EncodingVariant, ExperimentConfig, SensorMorphology
from ..errors import CorruptStateError, PreconditionError
from ..sim.config import SimConfig
from ..storage import read_object


logger = logging.getLogger(__name__)

# Left and right wheel drive
NUM_OUTPUTS = 2


def bootstrap_population(config: ExperimentConfig,
                         morphology: Optional[SensorMorphology],
                         sim_config: SimConfig) -> EvolvingPopulation:
    """
    Produce the population a run trains.

    The first matching case wins:
    1. a population path is set: load it unchanged;
    2. HyperNEATM: CPPNs over the Khepera substrate;
    3. not the control case: NEATM;
    4. the control case: NEAT over the resolved morphology.

    Fresh populations get the configured connection density and are randomly
    initialized exactly once; resumed populations are never re-initialized.

    Args:
        config: Experiment configuration
        morphology: Resolved control-case morphology, if any
        sim_config: Simulation parameters (substrate geometry)

    Returns:
        The population

    Raises:
        DeserializationError: If a resumed population cannot be read
        CorruptStateError: If a resumed population is structurally invalid
        PreconditionError: If the configuration cannot produce a population
    """
    if config.population_path:
        population = read_object(config.population_path, expected_type=EvolvingPopulation)
        validate_population(population, config.population_path)
        logger.info(f"Resumed {population.variant.value} population of {len(population)} genomes "
                    f"at generation {population.generation} from {config.population_path}")
        return population

    if config.population_size < 2:
        raise PreconditionError(f"Population size must be at least 2, got {config.population_size}")
    if not 0.0 <= config.connection_density <= 1.0:
        raise PreconditionError(f"Connection density must be within [0, 1], "
                                f"got {config.connection_density}")

    if config.hyperneatm:
        if config.control:
            logger.warning("HyperNEATM takes precedence over the control case; "
                           "the control morphology is not used")
        substrate = create_khepera_substrate(sim_config.min_dist_between_sensors,
                                             sim_config.robot_radius)
        population = EvolvingPopulation.for_substrate(substrate, config.population_size)
    elif not config.control:
        population = EvolvingPopulation.for_neatm(NUM_OUTPUTS, config.population_size)
    else:
        if morphology is None:
            raise PreconditionError("Control case requested but no morphology could be resolved "
                                    f"(morphology path: {config.morphology_path})")
        if morphology.num_sensors == 0:
            raise PreconditionError(f"Control morphology '{morphology.name}' has no sensors")
        population = EvolvingPopulation.for_control(morphology, NUM_OUTPUTS, config.population_size)

    population.set_initial_connection_density(config.connection_density)
    population.reset()

    logger.debug("Population initialized")
    return population


def requested_variant(config: ExperimentConfig) -> EncodingVariant:
    """The encoding the configuration flags select for a fresh population."""
    if config.hyperneatm:
        return EncodingVariant.HYPERNEATM
    if not config.control:
        return EncodingVariant.NEATM
    return EncodingVariant.NEAT_CONTROL


def validate_population(population: EvolvingPopulation, source: str = "population"):
    """
    Check the invariants a resumed population must satisfy.

    Raises:
        CorruptStateError: On a missing/unknown variant, a missing or negative
            iteration counter, an empty or mistyped genome set, or genomes
            missing the shape, morphology or substrate they decode from
    """
    variant = getattr(population, 'variant', None)
    if not isinstance(variant, EncodingVariant):
        raise CorruptStateError(f"{source}: missing or unknown encoding variant {variant!r}")

    generation = getattr(population, 'generation', None)
    if not isinstance(generation, int) or isinstance(generation, bool) or generation < 0:
        raise CorruptStateError(f"{source}: missing or invalid iteration counter {generation!r}")

    genomes = getattr(population, 'genomes', None)
    if not isinstance(genomes, dict) or not genomes:
        raise CorruptStateError(f"{source}: population has no genomes")

    genome_type = GENOME_TYPES[variant]
    wrong = [gid for gid, genome in genomes.items() if not isinstance(genome, genome_type)]
    if wrong:
        raise CorruptStateError(f"{source}: {len(wrong)} genomes are not {genome_type.__name__} "
                                f"as required by the {variant.value} encoding")

    undecodable = [gid for gid, genome in genomes.items()
                   if _missing_decode_state(variant, genome)]
    if undecodable:
        raise CorruptStateError(f"{source}: genomes {sorted(undecodable)} lack the state "
                                f"the {variant.value} encoding needs to decode them")


def _missing_decode_state(variant: EncodingVariant, genome) -> bool:
    if not isinstance(getattr(genome, 'num_inputs', None), int):
        return True
    if not isinstance(getattr(genome, 'num_outputs', None), int):
        return True
    if variant is EncodingVariant.HYPERNEATM:
        return getattr(genome, 'substrate', None) is None
    return getattr(genome, 'morphology', None) is None
