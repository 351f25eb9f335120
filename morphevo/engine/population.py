"""
Evolving populations for the three encodings.

An EvolvingPopulation is the variant-tagged mapping of genome ids to genomes
plus its iteration counter and best genome so far. It drives a live
neat.Population for reproduction and speciation; only the genomes and
metadata are pickled, and the live engine is rebuilt from them after loading.
"""

import itertools
import logging
from typing import Callable, Dict, Optional

import neat
from neat.reporting import ReporterSet

from ..entities import EncodingVariant, SensorMorphology
from ..errors import CorruptStateError
from .genomes import ControllerGenome, CPPNGenome, DescribedGenome, MorphologyGenome
from .neat_config import build_neat_config
from .substrate import Substrate


logger = logging.getLogger(__name__)

GENOME_TYPES = {
    EncodingVariant.NEAT_CONTROL: ControllerGenome,
    EncodingVariant.NEATM: MorphologyGenome,
    EncodingVariant.HYPERNEATM: CPPNGenome,
}

# NEATM evolves the placement of a fixed number of sensors
NEATM_SENSOR_COUNT = 8

# CPPN inputs are (x1, y1, x2, y2); outputs are (weight, sensor expression)
CPPN_INPUTS = 4
CPPN_OUTPUTS = 2


class EvolvingPopulation:
    """A population of genomes of a single, fixed encoding variant."""

    def __init__(self, variant: EncodingVariant, population_size: int,
                 num_inputs: int, num_outputs: int,
                 morphology: Optional[SensorMorphology] = None,
                 substrate: Optional[Substrate] = None):
        self.variant = variant
        self.population_size = population_size
        self.num_inputs = num_inputs
        self.num_outputs = num_outputs
        self.morphology = morphology
        self.substrate = substrate
        self.initial_connection_density = 0.5

        self.generation = 0
        self.genomes: Dict[int, DescribedGenome] = {}
        self.best_genome: Optional[DescribedGenome] = None

        self._neat_config: Optional[neat.Config] = None
        self._engine: Optional[neat.Population] = None

    @classmethod
    def for_control(cls, morphology: SensorMorphology, num_outputs: int,
                    population_size: int) -> "EvolvingPopulation":
        """NEAT population for the control case: inputs follow the fixed morphology."""
        return cls(EncodingVariant.NEAT_CONTROL, population_size,
                   num_inputs=morphology.num_sensors, num_outputs=num_outputs,
                   morphology=morphology)

    @classmethod
    def for_neatm(cls, num_outputs: int, population_size: int,
                  num_sensors: int = NEATM_SENSOR_COUNT) -> "EvolvingPopulation":
        """NEATM population: each genome evolves its own sensor layout."""
        return cls(EncodingVariant.NEATM, population_size,
                   num_inputs=num_sensors, num_outputs=num_outputs)

    @classmethod
    def for_substrate(cls, substrate: Substrate, population_size: int) -> "EvolvingPopulation":
        """HyperNEATM population of CPPNs decoded onto the given substrate."""
        return cls(EncodingVariant.HYPERNEATM, population_size,
                   num_inputs=CPPN_INPUTS, num_outputs=CPPN_OUTPUTS,
                   substrate=substrate)

    @property
    def genome_type(self):
        return GENOME_TYPES[self.variant]

    @property
    def neat_config(self) -> neat.Config:
        if self._neat_config is None:
            self._neat_config = build_neat_config(
                self.genome_type, self.num_inputs, self.num_outputs,
                pop_size=self.population_size,
                connection_density=self.initial_connection_density,
                morphology=self.morphology,
                substrate=self.substrate
            )
        return self._neat_config

    def __len__(self) -> int:
        return len(self.genomes)

    def set_initial_connection_density(self, density: float):
        """Fraction of input/output connections each new genome starts with."""
        if not 0.0 <= density <= 1.0:
            raise ValueError(f"Connection density must be within [0, 1], got {density}")
        self.initial_connection_density = density
        self._neat_config = None

    def reset(self):
        """Create a fresh, randomly initialized set of genomes."""
        self._engine = neat.Population(self.neat_config)
        self.genomes = self._engine.population
        self.generation = self._engine.generation
        self.best_genome = None
        logger.debug(f"Initialized {self.variant.value} population with {len(self.genomes)} genomes")

    def advance(self, fitness_function: Callable):
        """
        Run exactly one generation: evaluation, then reproduction and speciation.

        Args:
            fitness_function: Called as ``fitness_function(genomes, config)`` with
                a list of (genome_id, genome) pairs; must set every genome's fitness
        """
        engine = self._ensure_engine()
        engine.run(fitness_function, 1)
        self.genomes = engine.population
        self.generation = engine.generation
        self.best_genome = engine.best_genome

    def _ensure_engine(self) -> neat.Population:
        if self._engine is not None:
            return self._engine
        if not self.genomes:
            raise CorruptStateError(f"{self.variant.value} population has no genomes")

        config = self.neat_config
        species = config.species_set_type(config.species_set_config, ReporterSet())
        species.speciate(config, self.genomes, self.generation)

        engine = neat.Population(config, initial_state=(self.genomes, species, self.generation))
        engine.best_genome = self.best_genome

        # Fresh indexers would hand out ids already used by the loaded genomes
        engine.reproduction.genome_indexer = itertools.count(max(self.genomes) + 1)
        node_keys = [k for g in self.genomes.values() for k in g.nodes]
        config.genome_config.node_indexer = itertools.count(max(node_keys, default=0) + 1)

        logger.debug(f"Rebuilt {self.variant.value} population at generation {self.generation} "
                     f"with {len(species.species)} species")
        self._engine = engine
        return engine

    def __getstate__(self):
        state = self.__dict__.copy()
        state['_neat_config'] = None
        state['_engine'] = None
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
