#!/usr/bin/env python3
"""
morphevo Entrypoint - Run an evolutionary-robotics experiment from the command line.

Usage:
    python run_experiment.py -g 50 -p 75
    python run_experiment.py --no-HyperNEATM --threads 4
    python run_experiment.py --demo results/run_x/best_genome.pkl
    python run_experiment.py -c config/bossConfig.yml --dry-run
"""

import sys

from morphevo.cli import main


if __name__ == "__main__":
    sys.exit(main())
