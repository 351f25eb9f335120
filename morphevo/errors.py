"""
Error taxonomy for experiment runs.

Every fatal condition of a run is one of these; the CLI logs them and exits
with a non-zero status.
"""


class ExperimentError(Exception):
    """Base class for fatal experiment errors."""
    pass


class DeserializationError(ExperimentError):
    """A required input file is missing, unreadable, or of the wrong type."""
    pass


class CorruptStateError(ExperimentError):
    """A deserialized population lacks required state."""
    pass


class PreconditionError(ExperimentError):
    """The requested configuration combination cannot be run."""
    pass


class EncodingMismatchError(ExperimentError):
    """A genome was paired with a codec for a different encoding."""
    pass


class EvaluationFailure(ExperimentError):
    """A generation produced no usable score."""
    pass
