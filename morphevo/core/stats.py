"""
Statistics recording for experiment runs.

Per-generation metrics, the convergence event and the final outcome are
tracked with MLflow. Best genomes, best networks and population checkpoints
are written to a per-run directory and attached to the MLflow run.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Iterator, Optional

import mlflow

from ..entities import ExperimentConfig, IterationStats
from ..storage import write_object


logger = logging.getLogger(__name__)


class StatsRecorder:
    """MLflow-backed stats sink for one experiment run."""

    def __init__(self, config: ExperimentConfig):
        self.config = config
        self.run_dir: Optional[Path] = None
        self.iterations_recorded = 0
        self._setup_mlflow()

    def _setup_mlflow(self):
        """Set up MLflow experiment."""
        if self.config.tracking_uri:
            mlflow.set_tracking_uri(self.config.tracking_uri)

        experiment = mlflow.get_experiment_by_name(self.config.experiment_name)
        if experiment is None:
            experiment_id = mlflow.create_experiment(self.config.experiment_name)
            logger.info(f"Created new MLflow experiment: {self.config.experiment_name}")
        else:
            experiment_id = experiment.experiment_id
            logger.info(f"Using existing MLflow experiment: {self.config.experiment_name}")

        mlflow.set_experiment(experiment_id=experiment_id)

    @contextmanager
    def start_run(self) -> Iterator[None]:
        """Open an MLflow run and log the experiment configuration to it."""
        with mlflow.start_run():
            for key, value in asdict(self.config).items():
                if value is not None:
                    mlflow.log_param(key, value)
            yield

    def record_iteration_stats(self, stats: IterationStats, session):
        """Log the statistics of one generation, checkpointing when due."""
        mlflow.log_metrics(stats.as_metrics(), step=stats.iteration)
        self.iterations_recorded += 1
        logger.info(f"Generation {stats.iteration}: best={stats.best_score:.2f} "
                    f"mean={stats.mean_score:.2f} min={stats.min_score:.2f} "
                    f"({stats.iteration_seconds:.1f}s)")

        interval = self.config.checkpoint_interval
        if interval > 0 and session.iteration % interval == 0:
            self.save_population(session.population)

    def record_convergence(self, iteration: int, best_score: float):
        mlflow.log_param("converged", True)
        mlflow.log_metric("converged_at", iteration)
        mlflow.log_metric("converged_score", best_score)

    def record_outcome(self, outcome, demo_score: float):
        """Log final results of a training run."""
        mlflow.log_param("final_state", outcome.state.value)
        metrics = {
            "final_iteration": outcome.end_iteration,
            "iterations_run": outcome.iterations_run,
            "demo_score": demo_score,
        }
        if outcome.best_score is not None:
            metrics["final_best_score"] = outcome.best_score
        mlflow.log_metrics(metrics)

    def save_population(self, population) -> Optional[Path]:
        run_dir = self._run_directory()
        if run_dir is None:
            return None
        path = write_object(population, run_dir / f"population_gen{population.generation:04d}.pkl")
        mlflow.log_artifact(str(path), artifact_path="checkpoints")
        logger.info(f"Saved population checkpoint to {path}")
        return path

    def save_best(self, genome, network) -> Dict[str, str]:
        """Write the best genome (demo input) and network (morphology input)."""
        run_dir = self._run_directory()
        if run_dir is None:
            return {}

        artifacts = {}
        for name, obj in (("best_genome", genome), ("best_network", network)):
            try:
                path = write_object(obj, run_dir / f"{name}.pkl")
                mlflow.log_artifact(str(path), artifact_path="best")
                artifacts[name] = str(path)
            except Exception as e:
                logger.warning(f"Failed to save {name}: {e}")
        if artifacts:
            logger.info(f"Saved best genome and network to {run_dir}")
        return artifacts

    def _run_directory(self) -> Optional[Path]:
        if not self.config.output_dir:
            return None
        if self.run_dir is None:
            base = Path(self.config.output_dir) / f"run_{time.strftime('%Y%m%d_%H%M%S')}"
            run_dir = base
            suffix = 1
            while run_dir.exists():
                run_dir = base.with_name(f"{base.name}_{suffix}")
                suffix += 1
            run_dir.mkdir(parents=True)
            self.run_dir = run_dir
        return self.run_dir
