"""
morphevo command line - run an evolutionary-robotics experiment.

Usage:
    morphevo -g 100 -p 150
    morphevo --no-HyperNEATM --threads 4
    morphevo --control --morphology results/run_x/best_network.pkl
    morphevo --population results/run_x/population_gen0040.pkl -g 80
    morphevo --demo results/run_x/best_genome.pkl
    morphevo -c config/bossConfig.yml --dry-run
"""

import argparse
import logging
import sys
from typing import List, Optional

from .core import create_experiment_controller
from .entities import ExperimentConfig, ExperimentResult
from .errors import ExperimentError
from .sim import SimConfig


logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def setup_logging(level: str = "INFO"):
    """Setup basic logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    defaults = ExperimentConfig()
    parser = argparse.ArgumentParser(
        prog="morphevo",
        description="Evolve robot controllers and sensor morphologies",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  morphevo -g 100 -p 150
  morphevo --no-HyperNEATM --threads 4
  morphevo --control --morphology best_network.pkl
  morphevo --population population_gen0040.pkl -g 80
  morphevo --demo best_genome.pkl
        """
    )

    parser.add_argument('-c', dest='config_file', default=defaults.config_file,
                        help='Simulation config file path')
    parser.add_argument('-g', dest='generations', type=int, default=defaults.generations,
                        help='Number of generations')
    parser.add_argument('-p', dest='population_size', type=int,
                        default=defaults.population_size,
                        help='Initial population size')
    parser.add_argument('--trials', type=int, default=defaults.trials_per_individual,
                        help='Number of trials per individual')
    parser.add_argument('--conn-density', dest='connection_density', type=float,
                        default=defaults.connection_density,
                        help='Initial connection density')
    parser.add_argument('--demo', dest='demo_genome_path',
                        help='Genome (or network) to demo; training is skipped')
    parser.add_argument('--control', action='store_true',
                        help='Run the control case: fixed morphology, direct NEAT')
    parser.add_argument('--morphology', dest='morphology_path',
                        help='Network whose morphology the control case reuses')
    parser.add_argument('--HyperNEATM', dest='hyperneatm', default=defaults.hyperneatm,
                        action=argparse.BooleanOptionalAction,
                        help='Use the substrate-based HyperNEATM encoding')
    parser.add_argument('--population', dest='population_path',
                        help='Population to resume')
    parser.add_argument('--threads', type=int, default=defaults.threads,
                        help='Number of evaluation threads (0 = one per processor)')

    tracking = parser.add_argument_group('tracking and output')
    tracking.add_argument('--experiment-name', default=defaults.experiment_name,
                          help='MLflow experiment name')
    tracking.add_argument('--tracking-uri', default=defaults.tracking_uri,
                          help='MLflow tracking URI')
    tracking.add_argument('--output-dir', default=defaults.output_dir,
                          help='Directory for run artifacts (empty string disables export)')
    tracking.add_argument('--checkpoint-interval', type=int,
                          default=defaults.checkpoint_interval,
                          help='Save the population every N generations (0 = never)')
    tracking.add_argument('--convergence-score', type=float,
                          default=defaults.convergence_score,
                          help='Best score at which training stops')

    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    parser.add_argument('--quiet', action='store_true',
                        help='Do not print per-generation lines')
    parser.add_argument('--dry-run', action='store_true',
                        help='Validate configuration without running the experiment')
    return parser


def config_from_args(args: argparse.Namespace) -> ExperimentConfig:
    """Create ExperimentConfig from parsed arguments."""
    return ExperimentConfig(
        config_file=args.config_file,
        generations=args.generations,
        population_size=args.population_size,
        trials_per_individual=args.trials,
        connection_density=args.connection_density,
        demo_genome_path=args.demo_genome_path,
        control=args.control,
        morphology_path=args.morphology_path,
        hyperneatm=args.hyperneatm,
        population_path=args.population_path,
        threads=args.threads,
        convergence_score=args.convergence_score,
        experiment_name=args.experiment_name,
        tracking_uri=args.tracking_uri,
        output_dir=args.output_dir or None,
        checkpoint_interval=args.checkpoint_interval,
        verbose=not args.quiet
    )


def validate_config(config: ExperimentConfig) -> None:
    """Validate the numeric options of an experiment."""
    if config.generations < 0:
        raise ValueError(f"Number of generations must not be negative, got {config.generations}")
    if config.trials_per_individual < 1:
        raise ValueError(f"Number of trials must be at least 1, got {config.trials_per_individual}")
    if config.threads < 0:
        raise ValueError(f"Number of threads must not be negative, got {config.threads}")
    if config.checkpoint_interval < 0:
        raise ValueError(f"Checkpoint interval must not be negative, "
                         f"got {config.checkpoint_interval}")


def run_experiment(config: ExperimentConfig, dry_run: bool = False) -> int:
    """
    Run an experiment and report its result.

    Returns:
        Process exit status
    """
    logger.info(config.describe())

    try:
        validate_config(config)
        sim_config = SimConfig.from_file(config.config_file)
    except (ValueError, ExperimentError) as e:
        logger.error(f"Configuration error: {e}")
        print(f"Configuration error: {e}")
        return EXIT_FAILURE

    if dry_run:
        print("Dry run mode - configuration validated successfully!")
        return 0

    try:
        controller = create_experiment_controller(config, sim_config=sim_config)
        result = controller.run()
    except KeyboardInterrupt:
        logger.info("Experiment interrupted by user")
        print("\nExperiment interrupted!")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.error(f"Experiment failed: {e}", exc_info=True)
        print(f"Experiment failed: {e}")
        return EXIT_FAILURE

    print_result(result)
    return 0


def print_result(result: ExperimentResult):
    print("\n" + "=" * 60)
    print("Demo Complete!" if result.loop_state is None else "Experiment Complete!")
    print("=" * 60)

    if result.variant is not None:
        print(f"Encoding: {result.variant.value}")
    if result.loop_state is not None:
        print(f"Outcome: {result.loop_state} after generation {result.end_iteration} "
              f"({result.end_iteration - result.start_iteration} run)")
    if result.best_score is not None:
        print(f"Best score: {result.best_score:.2f}")
    print(f"Demo score: {result.demo_score:.2f}")

    for name, path in result.artifacts.items():
        print(f"  {name}: {path}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entrypoint."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    return run_experiment(config_from_args(args), dry_run=args.dry_run)


if __name__ == "__main__":
    sys.exit(main())
