import dataclasses
import math

import pytest
from morphevo.entities import (
    EncodingVariant,
    ExperimentConfig,
    ExperimentResult,
    IterationStats,
    SensorMorphology,
    SensorSpec
)


class TestExperimentConfig:
    """Test the experiment configuration record."""

    def test_default_config(self):
        """Test defaults match the command line defaults."""
        config = ExperimentConfig()

        assert config.config_file == "config/bossConfig.yml"
        assert config.generations == 50
        assert config.population_size == 75
        assert config.trials_per_individual == 3
        assert config.connection_density == 0.5
        assert config.demo_genome_path is None
        assert config.control is False
        assert config.morphology_path is None
        assert config.hyperneatm is True
        assert config.population_path is None
        assert config.threads == 0
        assert config.convergence_score == 110.0

    def test_config_is_immutable(self):
        """Test the configuration cannot be changed after creation."""
        config = ExperimentConfig()

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.generations = 10

    def test_demo_only(self):
        """Test a demo path switches the run to demo only."""
        assert ExperimentConfig().demo_only is False
        assert ExperimentConfig(demo_genome_path="").demo_only is False
        assert ExperimentConfig(demo_genome_path="best.pkl").demo_only is True

    def test_describe_lists_options(self):
        """Test the logged description names every run option."""
        text = ExperimentConfig(generations=7, population_path="pop.pkl").describe()

        assert text.startswith("Options:")
        assert "Number of generations: 7" in text
        assert "Population path: pop.pkl" in text
        assert "HyperNEATM: True" in text


class TestSensorMorphology:
    """Test sensor layouts."""

    def test_from_bearings_converts_to_radians(self):
        """Test bearings given in degrees are stored in radians."""
        morphology = SensorMorphology.from_bearings([90.0, -90.0], name="sides")

        assert morphology.name == "sides"
        assert morphology.num_sensors == 2
        assert morphology.sensors[0].bearing == pytest.approx(math.pi / 2)
        assert morphology.sensors[1].bearing == pytest.approx(-math.pi / 2)

    def test_from_bearings_passes_sensor_parameters(self):
        """Test sensor parameters apply to every sensor."""
        morphology = SensorMorphology.from_bearings([0.0, 45.0], range=0.5)

        assert all(s.range == 0.5 for s in morphology.sensors)

    def test_sensor_facing(self):
        """Test facing direction combines bearing and orientation."""
        sensor = SensorSpec(bearing=0.5, orientation=0.25)

        assert sensor.facing() == pytest.approx(0.75)

    def test_morphologies_compare_by_value(self):
        """Test equal layouts are equal."""
        assert SensorMorphology.from_bearings([10.0]) == SensorMorphology.from_bearings([10.0])


class TestIterationStats:
    """Test per-generation statistics."""

    def test_as_metrics(self):
        """Test metrics exclude the iteration number."""
        stats = IterationStats(
            iteration=3,
            best_score=100.0,
            mean_score=50.0,
            min_score=0.0,
            population_size=10,
            iteration_seconds=1.5,
            elapsed_seconds=6.0
        )

        metrics = stats.as_metrics()

        assert "iteration" not in metrics
        assert metrics["best_score"] == 100.0
        assert metrics["population_size"] == 10
        assert metrics["elapsed_seconds"] == 6.0


class TestExperimentResult:
    """Test run results."""

    def test_result_defaults(self):
        """Test artifacts and extras default to empty mappings."""
        result = ExperimentResult(
            variant=EncodingVariant.NEATM,
            loop_state="converged",
            start_iteration=0,
            end_iteration=4,
            best_score=111.0,
            demo_score=112.0
        )

        assert result.artifacts == {}
        assert result.extra == {}

    def test_variant_values(self):
        """Test encoding variants have stable string values."""
        assert EncodingVariant("neat_control") is EncodingVariant.NEAT_CONTROL
        assert EncodingVariant("neatm") is EncodingVariant.NEATM
        assert EncodingVariant("hyperneatm") is EncodingVariant.HYPERNEATM
