"""
Controller for morphevo experiment runs.

This module wires the stages of a run together:
- Morphology resolution (control case only)
- Population bootstrapping (resumed or fresh, of the selected encoding)
- Binding the population to its trainer and codec
- The generation loop with its convergence rule
- Finalization: decode the best genome and demo it

A run given a demo genome skips everything but the last step.
"""

import logging
from typing import Optional, Tuple

from .binder import bind_trainer
from .bootstrap import bootstrap_population, requested_variant
from .loop import GenerationLoop
from .morphology import resolve_morphology
from .stats import StatsRecorder
from ..engine.codecs import codec_for_genome
from ..engine.networks import ControllerNetwork
from ..engine.runtime import EngineRuntime, engine_runtime, get_runtime
from ..engine.session import TrainingSession
from ..entities import ExperimentConfig, ExperimentResult
from ..errors import PreconditionError
from ..sim.config import SimConfig
from ..sim.evaluator import ArenaScoreEvaluator, DemoResult
from ..storage import read_object


logger = logging.getLogger(__name__)


class ExperimentController:
    """
    Runs one experiment from configuration to demo.

    Follows the run protocol:
    1. morphology = resolve(control, morphology_path)
    2. population = bootstrap(config, morphology)
    3. session = bind(population, evaluator, threads)
    4. loop until converged or out of generations
    5. finalize: release the engine runtime, decode the best genome, demo it
    """

    def __init__(self,
                 config: ExperimentConfig,
                 evaluator,
                 sim_config: Optional[SimConfig] = None,
                 stats: Optional[StatsRecorder] = None,
                 runtime: Optional[EngineRuntime] = None):
        self.config = config
        self.evaluator = evaluator
        self.sim_config = sim_config or SimConfig()
        self.stats = stats
        self.runtime = runtime or get_runtime()
        self.session: Optional[TrainingSession] = None

    def run(self) -> ExperimentResult:
        """
        Run the experiment.

        The engine runtime is released on every exit path, including errors.

        Returns:
            The result of the run
        """
        with engine_runtime(self.runtime):
            if self.config.demo_only:
                return self.run_demo(self.config.demo_genome_path)

            self._check_convergence_scale()
            if self.stats is None:
                return self._run_training()
            with self.stats.start_run():
                return self._run_training()

    def _run_training(self) -> ExperimentResult:
        morphology = resolve_morphology(self.config.control, self.config.morphology_path)
        population = bootstrap_population(self.config, morphology, self.sim_config)

        if self.config.population_path and population.variant is not requested_variant(self.config):
            logger.warning(f"Resumed population uses the {population.variant.value} encoding; "
                           f"the flags select {requested_variant(self.config).value}. "
                           f"Training continues with {population.variant.value}")

        self.session = bind_trainer(population, self.evaluator, self.config.threads, self.runtime)

        loop = GenerationLoop(
            self.session,
            self.config.generations,
            stats_sink=self.stats,
            convergence_score=self.config.convergence_score,
            verbose=self.config.verbose
        )
        outcome = loop.run()

        genome, network, demo = self.finalize(self.session)

        artifacts = {}
        if self.stats is not None:
            artifacts = self.stats.save_best(genome, network)
            self.stats.record_outcome(outcome, demo.score)

        return ExperimentResult(
            variant=population.variant,
            loop_state=outcome.state.value,
            start_iteration=outcome.start_iteration,
            end_iteration=outcome.end_iteration,
            best_score=outcome.best_score,
            demo_score=demo.score,
            artifacts=artifacts
        )

    def finalize(self, session: TrainingSession) -> Tuple[object, object, DemoResult]:
        """
        Release the engine runtime, then decode and demo the best genome.

        Returns:
            Tuple of (best genome, decoded network, demo result)
        """
        self.runtime.shutdown()

        genome = session.best_genome
        if genome is None:
            raise PreconditionError("No genome has been evaluated; "
                                    "the generation budget did not allow a single generation")

        network = session.codec.decode(genome)
        logger.info(f"Best genome {genome.key} scored {genome.fitness:.2f}")
        demo = self.evaluator.demo(network)
        return genome, network, demo

    def run_demo(self, genome_path: str) -> ExperimentResult:
        """
        Decode a serialized genome with the codec of its own encoding and demo it.

        An already decoded network (``best_network.pkl``) is demoed as is.

        Args:
            genome_path: Path to a pickled genome or network

        Returns:
            The result of the demo

        Raises:
            DeserializationError: If the file is missing or holds neither
        """
        obj = read_object(genome_path)
        if isinstance(obj, ControllerNetwork):
            logger.info(f"Demoing decoded network from {genome_path}")
            variant, network, best_score = None, obj, None
        else:
            variant, codec = codec_for_genome(obj)
            logger.info(f"Demoing {variant.value} genome {obj.key} from {genome_path}")
            network = codec.decode(obj)
            best_score = obj.fitness

        demo = self.evaluator.demo(network)
        return ExperimentResult(
            variant=variant,
            loop_state=None,
            start_iteration=None,
            end_iteration=None,
            best_score=best_score,
            demo_score=demo.score
        )

    def _check_convergence_scale(self):
        max_score = getattr(self.evaluator, 'max_score', None)
        if max_score is not None and self.config.convergence_score > max_score:
            logger.warning(f"Convergence score {self.config.convergence_score} exceeds the "
                           f"evaluator's maximum score {max_score}; the run cannot converge")


def create_experiment_controller(config: ExperimentConfig,
                                 sim_config: Optional[SimConfig] = None,
                                 runtime: Optional[EngineRuntime] = None) -> ExperimentController:
    """
    Factory function to create a controller with all components.

    Args:
        config: Experiment configuration
        sim_config: Simulation config (loaded from ``config.config_file`` if None)
        runtime: Engine runtime (process-wide if None)

    Returns:
        Configured ExperimentController ready to run
    """
    if sim_config is None:
        sim_config = SimConfig.from_file(config.config_file)

    evaluator = ArenaScoreEvaluator(sim_config, trials=config.trials_per_individual)

    # Demo runs record nothing
    stats = None if config.demo_only else StatsRecorder(config)

    return ExperimentController(
        config=config,
        evaluator=evaluator,
        sim_config=sim_config,
        stats=stats,
        runtime=runtime
    )
