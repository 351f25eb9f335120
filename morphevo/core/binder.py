"""
Binding of populations to training sessions.

The trainer and codec are chosen from the population's own encoding variant,
never from the configuration flags, so binding cannot disagree with how the
population was built.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional, Type

from ..engine.codecs import Codec, HyperNEATMCodec, NEATCodec, NEATMCodec
from ..engine.population import EvolvingPopulation, GENOME_TYPES
from ..engine.runtime import EngineRuntime, get_runtime
from ..engine.session import TrainingSession
from ..entities import EncodingVariant
from ..errors import EncodingMismatchError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariantBinding:
    """Trainer and codec used for one encoding variant."""
    codec_type: Type[Codec]
    session_type: Type[TrainingSession] = TrainingSession


BINDINGS: Dict[EncodingVariant, VariantBinding] = {
    EncodingVariant.HYPERNEATM: VariantBinding(HyperNEATMCodec),
    EncodingVariant.NEATM: VariantBinding(NEATMCodec),
    EncodingVariant.NEAT_CONTROL: VariantBinding(NEATCodec),
}


def check_bindings(bindings: Dict[EncodingVariant, VariantBinding] = BINDINGS):
    """
    Verify every encoding variant has a binding whose codec decodes that
    variant's genome class.

    Raises:
        EncodingMismatchError: If the table is incomplete or inconsistent
    """
    for variant in EncodingVariant:
        binding = bindings.get(variant)
        if binding is None:
            raise EncodingMismatchError(f"No trainer/codec bound for {variant.value}")
        codec_type = binding.codec_type
        if codec_type.variant is not variant or codec_type.genome_type is not GENOME_TYPES[variant]:
            raise EncodingMismatchError(
                f"{codec_type.__name__} is bound to {variant.value} but decodes "
                f"{codec_type.genome_type.__name__} ({codec_type.variant.value})"
            )


# Fail at import rather than mid-run
check_bindings()


def resolve_thread_count(threads: int) -> int:
    """Worker threads for evaluation: the requested count, or one per processor."""
    available = os.cpu_count() or 1
    logger.info(f"Available processors detected: {available}")
    return threads if threads > 0 else available


def bind_trainer(population: EvolvingPopulation, evaluator, threads: int = 0,
                 runtime: Optional[EngineRuntime] = None) -> TrainingSession:
    """
    Create the training session for a population.

    Args:
        population: Population to train
        evaluator: Score evaluator for individuals
        threads: Requested worker threads, 0 for one per processor
        runtime: Engine runtime owning the worker pool (process-wide by default)

    Returns:
        The bound session
    """
    binding = BINDINGS.get(population.variant)
    if binding is None:
        raise EncodingMismatchError(f"No trainer/codec bound for {population.variant!r}")

    codec = binding.codec_type(population.neat_config)
    thread_count = resolve_thread_count(threads)
    session = binding.session_type(population, evaluator, codec, thread_count,
                                   runtime or get_runtime())

    logger.info(f"Bound {population.variant.value} population to {type(codec).__name__} "
                f"with {thread_count} evaluation threads")
    return session
