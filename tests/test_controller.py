"""
Tests for the experiment controller.

Training runs use real, tiny neat-python populations with a stub evaluator;
MLflow is replaced by a mock stats recorder.
"""

import logging

import pytest
from unittest.mock import MagicMock, Mock, patch
from morphevo.core.controller import ExperimentController, create_experiment_controller
from morphevo.core.loop import LoopState
from morphevo.core.morphology import khepera_iii_morphology
from morphevo.core.stats import StatsRecorder
from morphevo.engine import EngineRuntime, EvolvingPopulation, NEATCodec
from morphevo.entities import EncodingVariant, ExperimentConfig
from morphevo.errors import DeserializationError, PreconditionError
from morphevo.sim import ArenaScoreEvaluator, DemoResult, SimConfig
from morphevo.storage import write_object


class StubEvaluator:
    """Scores every network the same; records demos."""

    min_score = 0.0
    max_score = 120.0

    def __init__(self, score=50.0):
        self._score = score
        self.demo = Mock(return_value=DemoResult(score=score, reached=False, steps=10,
                                                 num_sensors=8))

    def score(self, network):
        return self._score


def evaluate_all(genomes, config):
    for _, genome in genomes:
        genome.fitness = 1.0


@pytest.fixture
def runtime():
    runtime = EngineRuntime()
    yield runtime
    runtime.shutdown()


@pytest.fixture
def stats():
    stats = MagicMock(spec=StatsRecorder)
    stats.save_best.return_value = {"best_genome": "results/best_genome.pkl"}
    return stats


@pytest.fixture
def saved_genome(tmp_path):
    """A NEATM genome written to disk."""
    population = EvolvingPopulation.for_neatm(2, 4)
    population.reset()
    population.advance(evaluate_all)
    return write_object(population.best_genome, tmp_path / "best_genome.pkl")


class TestTrainingRun:
    """Test full training runs."""

    def test_neatm_scenario(self, runtime, stats):
        """Test g=1, p=10, NEATM, 4 threads runs one generation and finalizes once."""
        config = ExperimentConfig(generations=1, population_size=10, control=False,
                                  hyperneatm=False, threads=4, verbose=False)
        evaluator = StubEvaluator(50.0)
        controller = ExperimentController(config, evaluator, stats=stats, runtime=runtime)

        with patch.object(controller, 'finalize', wraps=controller.finalize) as finalize:
            result = controller.run()

        finalize.assert_called_once()
        evaluator.demo.assert_called_once()
        assert result.variant is EncodingVariant.NEATM
        assert result.loop_state == LoopState.EXHAUSTED.value
        assert result.start_iteration == 0
        assert result.end_iteration == 1
        assert result.best_score == 50.0
        assert result.demo_score == 50.0
        assert result.artifacts == {"best_genome": "results/best_genome.pkl"}

        population = controller.session.population
        assert population.population_size == 10
        assert population.num_outputs == 2
        assert controller.session.thread_count == 4

    def test_converged_scenario(self, runtime, stats):
        """Test a run that converges on its only generation still finalizes once."""
        config = ExperimentConfig(generations=1, population_size=10, hyperneatm=False,
                                  threads=4, verbose=False)
        evaluator = StubEvaluator(115.0)
        controller = ExperimentController(config, evaluator, stats=stats, runtime=runtime)

        with patch.object(controller, 'finalize', wraps=controller.finalize) as finalize:
            result = controller.run()

        finalize.assert_called_once()
        assert result.loop_state == LoopState.CONVERGED.value
        assert result.end_iteration == 1

    def test_stats_recorded(self, runtime, stats):
        """Test iteration stats, best artifacts and the outcome are recorded."""
        config = ExperimentConfig(generations=2, population_size=4, hyperneatm=False,
                                  threads=1, verbose=False)
        controller = ExperimentController(config, StubEvaluator(50.0), stats=stats,
                                          runtime=runtime)

        controller.run()

        stats.start_run.assert_called_once()
        assert stats.record_iteration_stats.call_count == 2
        stats.save_best.assert_called_once()
        stats.record_outcome.assert_called_once()
        assert stats.record_outcome.call_args.args[1] == 50.0
        stats.record_convergence.assert_not_called()

    def test_runtime_released_after_run(self, runtime):
        """Test the engine runtime is shut down once the run completes."""
        config = ExperimentConfig(generations=1, population_size=4, hyperneatm=False,
                                  threads=1, verbose=False)

        ExperimentController(config, StubEvaluator(), runtime=runtime).run()

        assert runtime.is_shut_down

    def test_runtime_released_on_error(self, runtime):
        """Test the engine runtime is shut down when bootstrapping fails."""
        config = ExperimentConfig(population_size=1, verbose=False)
        controller = ExperimentController(config, StubEvaluator(), runtime=runtime)

        with pytest.raises(PreconditionError):
            controller.run()

        assert runtime.is_shut_down

    def test_resume_continues_from_saved_generation(self, runtime, tmp_path):
        """Test a resumed run starts at the saved iteration and warns about flags."""
        saved = EvolvingPopulation.for_control(khepera_iii_morphology(), 2, 4)
        saved.reset()
        saved.advance(evaluate_all)
        saved.advance(evaluate_all)
        path = write_object(saved, tmp_path / "population.pkl")
        config = ExperimentConfig(generations=3, population_path=str(path),
                                  threads=1, verbose=False)

        with patch('morphevo.core.controller.logger') as mock_logger:
            result = ExperimentController(config, StubEvaluator(), runtime=runtime).run()

        assert result.variant is EncodingVariant.NEAT_CONTROL
        assert result.start_iteration == 2
        assert result.end_iteration == 3
        mock_logger.warning.assert_called_once()

    def test_convergence_beyond_score_scale(self, runtime, caplog):
        """Test an unreachable convergence score is reported."""
        config = ExperimentConfig(convergence_score=500.0)
        controller = ExperimentController(config, StubEvaluator(), runtime=runtime)

        with caplog.at_level(logging.WARNING):
            controller._check_convergence_scale()

        assert "cannot converge" in caplog.text


class TestFinalize:
    """Test the finalizer."""

    def test_release_then_decode_then_demo(self):
        """Test the runtime is released before the best genome is decoded and demoed."""
        parent = Mock()
        genome = Mock(key=3, fitness=99.0)
        session = Mock(best_genome=genome, codec=parent.codec)
        controller = ExperimentController(ExperimentConfig(), parent.evaluator,
                                          runtime=parent.runtime)

        best, network, demo = controller.finalize(session)

        assert [c[0] for c in parent.method_calls] == [
            'runtime.shutdown', 'codec.decode', 'evaluator.demo'
        ]
        parent.codec.decode.assert_called_once_with(genome)
        parent.evaluator.demo.assert_called_once_with(network)
        assert best is genome

    def test_no_best_genome(self):
        """Test a session that never evaluated anything cannot be finalized."""
        controller = ExperimentController(ExperimentConfig(), Mock(), runtime=Mock())

        with pytest.raises(PreconditionError):
            controller.finalize(Mock(best_genome=None))


class TestDemo:
    """Test the demo-only path."""

    @patch('morphevo.core.controller.GenerationLoop')
    @patch('morphevo.core.controller.bind_trainer')
    @patch('morphevo.core.controller.bootstrap_population')
    def test_demo_skips_training(self, mock_bootstrap, mock_bind, mock_loop,
                                 saved_genome, runtime, stats):
        """Test a demo run never bootstraps, binds or loops."""
        config = ExperimentConfig(demo_genome_path=str(saved_genome))
        evaluator = StubEvaluator(42.0)
        controller = ExperimentController(config, evaluator, stats=stats, runtime=runtime)

        result = controller.run()

        mock_bootstrap.assert_not_called()
        mock_bind.assert_not_called()
        mock_loop.assert_not_called()
        stats.start_run.assert_not_called()
        evaluator.demo.assert_called_once()
        assert result.variant is EncodingVariant.NEATM
        assert result.loop_state is None
        assert result.demo_score == 42.0
        assert runtime.is_shut_down

    def test_demo_decodes_with_genome_codec(self, saved_genome, runtime):
        """Test the demoed network carries the genome's own morphology."""
        config = ExperimentConfig(demo_genome_path=str(saved_genome), hyperneatm=True)
        evaluator = StubEvaluator()

        ExperimentController(config, evaluator, runtime=runtime).run()

        network = evaluator.demo.call_args.args[0]
        assert network.morphology.name == "neatm"
        assert network.num_sensors == 8

    def test_demo_network(self, tmp_path, runtime):
        """Test an already decoded network is demoed as is."""
        population = EvolvingPopulation.for_control(khepera_iii_morphology(), 2, 4)
        population.reset()
        genome = next(iter(population.genomes.values()))
        network = NEATCodec(population.neat_config).decode(genome)
        path = write_object(network, tmp_path / "best_network.pkl")
        evaluator = StubEvaluator()

        result = ExperimentController(ExperimentConfig(demo_genome_path=str(path)),
                                      evaluator, runtime=runtime).run()

        assert result.variant is None
        assert evaluator.demo.call_args.args[0].morphology == khepera_iii_morphology()

    def test_demo_missing_file(self, tmp_path, runtime):
        """Test a missing demo genome is fatal and still releases the runtime."""
        config = ExperimentConfig(demo_genome_path=str(tmp_path / "missing.pkl"))

        with pytest.raises(DeserializationError):
            ExperimentController(config, StubEvaluator(), runtime=runtime).run()

        assert runtime.is_shut_down

    def test_demo_of_unknown_object(self, tmp_path, runtime):
        """Test a file holding neither a genome nor a network is fatal."""
        path = write_object({"not": "a genome"}, tmp_path / "obj.pkl")
        config = ExperimentConfig(demo_genome_path=str(path))

        with pytest.raises(DeserializationError):
            ExperimentController(config, StubEvaluator(), runtime=runtime).run()


class TestCreateExperimentController:
    """Test the controller factory."""

    @patch('morphevo.core.stats.mlflow')
    def test_training_controller(self, mock_mlflow, runtime):
        """Test a training controller gets an arena evaluator and a stats recorder."""
        mock_mlflow.get_experiment_by_name.return_value = None
        config = ExperimentConfig(trials_per_individual=5)

        controller = create_experiment_controller(config, sim_config=SimConfig(),
                                                  runtime=runtime)

        assert isinstance(controller.evaluator, ArenaScoreEvaluator)
        assert controller.evaluator.trials == 5
        assert isinstance(controller.stats, StatsRecorder)
        assert controller.runtime is runtime

    @patch('morphevo.core.stats.mlflow')
    def test_demo_controller_records_nothing(self, mock_mlflow, runtime):
        """Test a demo controller never touches MLflow."""
        config = ExperimentConfig(demo_genome_path="best_genome.pkl")

        controller = create_experiment_controller(config, sim_config=SimConfig(),
                                                  runtime=runtime)

        assert controller.stats is None
        mock_mlflow.set_experiment.assert_not_called()

    def test_sim_config_loaded_from_file(self, tmp_path, runtime):
        """Test the simulation config file is read when none is given."""
        config_file = tmp_path / "sim.yml"
        config_file.write_text("simulation:\n  robot_radius: 0.2\n")
        config = ExperimentConfig(config_file=str(config_file), demo_genome_path="x.pkl")

        controller = create_experiment_controller(config, runtime=runtime)

        assert controller.sim_config.robot_radius == 0.2
        assert controller.evaluator.sim_config is controller.sim_config
