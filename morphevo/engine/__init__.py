"""
Evolutionary engine for morphevo, built on neat-python.

Provides the genomes, populations, codecs and training sessions for the
NEAT (control), NEATM and HyperNEATM encodings.
"""

from .genomes import ControllerGenome, CPPNGenome, MorphologyGenome
from .substrate import Substrate, create_khepera_substrate
from .networks import ControllerNetwork, NEATNetwork, SubstrateNetwork
from .codecs import (
    Codec,
    NEATCodec,
    NEATMCodec,
    HyperNEATMCodec,
    CODEC_BY_VARIANT,
    codec_for_genome
)
from .population import EvolvingPopulation, GENOME_TYPES
from .runtime import EngineRuntime, engine_runtime, get_runtime
from .session import TrainingSession

__all__ = [
    "ControllerGenome",
    "CPPNGenome",
    "MorphologyGenome",
    "Substrate",
    "create_khepera_substrate",
    "ControllerNetwork",
    "NEATNetwork",
    "SubstrateNetwork",
    "Codec",
    "NEATCodec",
    "NEATMCodec",
    "HyperNEATMCodec",
    "CODEC_BY_VARIANT",
    "codec_for_genome",
    "EvolvingPopulation",
    "GENOME_TYPES",
    "EngineRuntime",
    "engine_runtime",
    "get_runtime",
    "TrainingSession"
]
