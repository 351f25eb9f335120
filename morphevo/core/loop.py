"""
The generation loop: advance a training session until the best score reaches
the convergence threshold or the generation budget is used up.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..engine.session import TrainingSession
from ..entities import IterationStats


logger = logging.getLogger(__name__)

# Matches the evaluator's score scale, see morphevo.sim.evaluator
CONVERGENCE_SCORE = 110.0


class LoopState(str, Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass
class LoopOutcome:
    """How a generation loop ended."""
    state: LoopState
    start_iteration: int
    end_iteration: int
    best_score: Optional[float]

    @property
    def iterations_run(self) -> int:
        return self.end_iteration - self.start_iteration


class GenerationLoop:
    """
    Runs generations of a session from its current iteration counter.

    Resumed sessions continue numbering where they left off; the loop never
    resets the counter. After every generation the statistics are handed to
    the stats sink and the convergence rule is checked.
    """

    def __init__(self, session: TrainingSession, generation_budget: int,
                 stats_sink=None, convergence_score: float = CONVERGENCE_SCORE,
                 verbose: bool = False, clock: Callable[[], float] = time.perf_counter):
        self.session = session
        self.generation_budget = generation_budget
        self.stats_sink = stats_sink
        self.convergence_score = convergence_score
        self.verbose = verbose
        self.clock = clock
        self.state = LoopState.RUNNING

    def run(self) -> LoopOutcome:
        start_iteration = self.session.iteration
        logger.info(f"Training from generation {start_iteration} to {self.generation_budget}")

        started = self.clock()
        iteration = start_iteration
        while iteration < self.generation_budget:
            iteration_started = self.clock()
            self.session.run_iteration()
            now = self.clock()

            stats = self._iteration_stats(iteration, now - iteration_started, now - started)
            if self.stats_sink is not None:
                self.stats_sink.record_iteration_stats(stats, self.session)
            if self.verbose:
                self._print_iteration(stats)

            iteration += 1
            best_score = self.session.best_score
            if best_score is not None and best_score >= self.convergence_score:
                self.state = LoopState.CONVERGED
                logger.info(f"Convergence reached at epoch {self.session.iteration}")
                if self.stats_sink is not None:
                    self.stats_sink.record_convergence(self.session.iteration, best_score)
                break
        else:
            self.state = LoopState.EXHAUSTED
            logger.info(f"Generation budget of {self.generation_budget} exhausted")

        logger.debug("Training complete")
        return LoopOutcome(
            state=self.state,
            start_iteration=start_iteration,
            end_iteration=self.session.iteration,
            best_score=self.session.best_score
        )

    def _iteration_stats(self, iteration: int, iteration_seconds: float,
                         elapsed_seconds: float) -> IterationStats:
        scores = self.session.last_scores
        best = self.session.best_score
        return IterationStats(
            iteration=iteration,
            best_score=best if best is not None else max(scores, default=0.0),
            mean_score=sum(scores) / len(scores) if scores else 0.0,
            min_score=min(scores, default=0.0),
            population_size=len(scores),
            iteration_seconds=iteration_seconds,
            elapsed_seconds=elapsed_seconds
        )

    @staticmethod
    def _print_iteration(stats: IterationStats):
        print(f"Gen {stats.iteration + 1:4d}: "
              f"best {stats.best_score:7.2f}  "
              f"mean {stats.mean_score:7.2f}  "
              f"min {stats.min_score:7.2f}  "
              f"({stats.iteration_seconds:.1f}s)")
