"""
Codecs that decode genomes into executable controller networks.

Exactly one codec exists per encoding variant. Every codec checks the class
of the genome it is given and refuses genomes of any other encoding.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple, Type

import neat
import numpy as np

from ..entities import EncodingVariant, SensorMorphology, SensorSpec
from ..errors import CorruptStateError, DeserializationError, EncodingMismatchError
from .genomes import ControllerGenome, CPPNGenome, DescribedGenome, MorphologyGenome
from .neat_config import build_neat_config
from .networks import ControllerNetwork, NEATNetwork, SubstrateNetwork


logger = logging.getLogger(__name__)

# CPPN outputs below this magnitude leave a substrate connection unexpressed
WEIGHT_THRESHOLD = 0.2
MAX_SUBSTRATE_WEIGHT = 3.0


class Codec(ABC):
    """Decodes genomes of one encoding variant."""

    variant: EncodingVariant
    genome_type: Type[DescribedGenome]

    def __init__(self, neat_config: neat.Config):
        self.neat_config = neat_config

    def decode(self, genome) -> ControllerNetwork:
        if not isinstance(genome, self.genome_type):
            raise EncodingMismatchError(
                f"{type(self).__name__} decodes {self.genome_type.__name__}, "
                f"got {type(genome).__name__}"
            )
        return self._decode(genome)

    @abstractmethod
    def _decode(self, genome) -> ControllerNetwork:
        pass


class NEATCodec(Codec):
    """Direct encoding for the control case: the morphology is fixed."""

    variant = EncodingVariant.NEAT_CONTROL
    genome_type = ControllerGenome

    def _decode(self, genome):
        if genome.morphology is None:
            raise CorruptStateError(f"Control genome {genome.key} carries no sensor morphology")
        network = neat.nn.FeedForwardNetwork.create(genome, self.neat_config)
        return NEATNetwork(network, genome.morphology)


class NEATMCodec(Codec):
    """Direct encoding whose genomes carry their own evolved morphology."""

    variant = EncodingVariant.NEATM
    genome_type = MorphologyGenome

    def _decode(self, genome):
        if genome.morphology is None:
            raise CorruptStateError(f"NEATM genome {genome.key} carries no sensor morphology")
        network = neat.nn.FeedForwardNetwork.create(genome, self.neat_config)
        return NEATNetwork(network, genome.morphology)


class HyperNEATMCodec(Codec):
    """
    Indirect encoding: the genome is a CPPN queried over a substrate.

    The CPPN takes the coordinates of two substrate nodes (x1, y1, x2, y2).
    Its first output is the connection weight; its second output, queried
    with a slot's own coordinates and zeros, decides whether a sensor is
    mounted in that input slot.
    """

    variant = EncodingVariant.HYPERNEATM
    genome_type = CPPNGenome

    def _decode(self, genome):
        substrate = genome.substrate
        if substrate is None:
            raise CorruptStateError(f"CPPN genome {genome.key} carries no substrate")
        cppn = neat.nn.FeedForwardNetwork.create(genome, self.neat_config)

        slots = [i for i, (x, y) in enumerate(substrate.input_coordinates)
                 if cppn.activate([x, y, 0.0, 0.0])[1] > 0.0]
        inputs = [substrate.input_coordinates[i] for i in slots]

        input_hidden = self._weights(cppn, inputs, substrate.hidden_coordinates)
        hidden_output = self._weights(cppn, substrate.hidden_coordinates,
                                      substrate.output_coordinates)
        input_output = self._weights(cppn, inputs, substrate.output_coordinates)

        morphology = SensorMorphology(
            sensors=tuple(SensorSpec(bearing=substrate.input_bearings[i]) for i in slots),
            name="hyperneatm"
        )
        return SubstrateNetwork(substrate, morphology, slots, input_hidden,
                                hidden_output, input_output)

    @staticmethod
    def _weights(cppn, sources, targets) -> np.ndarray:
        weights = np.zeros((len(targets), len(sources)))
        for j, (x2, y2) in enumerate(targets):
            for i, (x1, y1) in enumerate(sources):
                value = float(np.clip(cppn.activate([x1, y1, x2, y2])[0], -1.0, 1.0))
                if abs(value) > WEIGHT_THRESHOLD:
                    scaled = (abs(value) - WEIGHT_THRESHOLD) / (1.0 - WEIGHT_THRESHOLD)
                    weights[j, i] = np.sign(value) * scaled * MAX_SUBSTRATE_WEIGHT
        return weights


CODECS: List[Type[Codec]] = [NEATCodec, NEATMCodec, HyperNEATMCodec]

CODEC_BY_VARIANT: Dict[EncodingVariant, Type[Codec]] = {c.variant: c for c in CODECS}


def codec_for_genome(genome) -> Tuple[EncodingVariant, Codec]:
    """
    Infer the codec for a deserialized genome from its class.

    Args:
        genome: A genome read back from disk

    Returns:
        Tuple of (encoding variant, codec ready to decode the genome)

    Raises:
        DeserializationError: If the object is not a genome of a known encoding
    """
    for codec_type in CODECS:
        if isinstance(genome, codec_type.genome_type):
            break
    else:
        raise DeserializationError(f"Not a genome of any known encoding: {type(genome).__name__}")

    if genome.num_inputs is None or genome.num_outputs is None:
        raise DeserializationError(f"Genome {genome.key} does not record its network shape")

    config = build_neat_config(codec_type.genome_type, genome.num_inputs, genome.num_outputs,
                               pop_size=2)
    logger.debug(f"Inferred {codec_type.variant.value} codec for genome {genome.key}")
    return codec_type.variant, codec_type(config)
