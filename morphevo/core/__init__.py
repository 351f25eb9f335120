"""
Core components for morphevo - orchestration of evolutionary-robotics experiments.
"""

from .morphology import (
    KHEPERA_III_BEARINGS,
    khepera_iii_morphology,
    resolve_morphology
)

from .bootstrap import (
    NUM_OUTPUTS,
    bootstrap_population,
    requested_variant,
    validate_population
)

from .binder import (
    VariantBinding,
    BINDINGS,
    bind_trainer,
    check_bindings,
    resolve_thread_count
)

from .loop import (
    CONVERGENCE_SCORE,
    GenerationLoop,
    LoopOutcome,
    LoopState
)

from .stats import StatsRecorder

from .controller import (
    ExperimentController,
    create_experiment_controller
)

__all__ = [
    "KHEPERA_III_BEARINGS",
    "khepera_iii_morphology",
    "resolve_morphology",
    "NUM_OUTPUTS",
    "bootstrap_population",
    "requested_variant",
    "validate_population",
    "VariantBinding",
    "BINDINGS",
    "bind_trainer",
    "check_bindings",
    "resolve_thread_count",
    "CONVERGENCE_SCORE",
    "GenerationLoop",
    "LoopOutcome",
    "LoopState",
    "StatsRecorder",
    "ExperimentController",
    "create_experiment_controller"
]
