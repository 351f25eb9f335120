"""
Training sessions: one population bound to an evaluator, a codec and a
worker-pool size, advanced one generation at a time.
"""

import logging
import math
from concurrent.futures import as_completed
from typing import Dict, List, Optional

from ..entities import EncodingVariant
from ..errors import CorruptStateError, EncodingMismatchError, EvaluationFailure
from .codecs import Codec
from .population import EvolvingPopulation
from .runtime import EngineRuntime


logger = logging.getLogger(__name__)


class TrainingSession:
    """
    Advances a population generation by generation.

    Individuals of a generation are decoded and scored concurrently on the
    runtime's worker pool; ``run_iteration`` returns once all are scored and
    the next generation has been bred.
    """

    def __init__(self, population: EvolvingPopulation, evaluator, codec: Codec,
                 thread_count: int, runtime: EngineRuntime):
        self.population = population
        self.evaluator = evaluator
        self.codec = codec
        self.thread_count = thread_count
        self.runtime = runtime
        self.last_scores: List[float] = []
        self.last_failures = 0

    @property
    def variant(self) -> EncodingVariant:
        return self.population.variant

    @property
    def iteration(self) -> int:
        return self.population.generation

    @property
    def best_genome(self):
        return self.population.best_genome

    @property
    def best_score(self) -> Optional[float]:
        best = self.best_genome
        return None if best is None else best.fitness

    def run_iteration(self):
        """Run one generation; the iteration counter advances by one."""
        self.population.advance(self._evaluate_genomes)

    def _evaluate_genomes(self, genomes, config):
        executor = self.runtime.executor(self.thread_count)
        futures = {executor.submit(self._score_genome, genome): (genome_id, genome)
                   for genome_id, genome in genomes}

        scores: Dict[int, float] = {}
        failures = 0
        for future in as_completed(futures):
            genome_id, genome = futures[future]
            try:
                score = future.result()
            except (EncodingMismatchError, CorruptStateError):
                for pending in futures:
                    pending.cancel()
                raise
            except Exception as e:
                logger.warning(f"Evaluation of genome {genome_id} failed: {e}")
                failures += 1
                score = self.evaluator.min_score
            genome.fitness = score
            scores[genome_id] = score

        if failures == len(genomes):
            raise EvaluationFailure(
                f"All {len(genomes)} individuals of generation {self.iteration} failed evaluation"
            )
        if failures:
            logger.warning(f"{failures}/{len(genomes)} individuals of generation "
                           f"{self.iteration} could not be scored")

        self.last_scores = [scores[genome_id] for genome_id, _ in genomes]
        self.last_failures = failures

    def _score_genome(self, genome) -> float:
        network = self.codec.decode(genome)
        score = float(self.evaluator.score(network))
        if not math.isfinite(score):
            raise ValueError(f"non-finite score {score}")
        return score
