class EquilibrationError(Exception):
    """Base class for all equilibration errors."""

    pass


class ValidationError(EquilibrationError, ValueError):
    """Raised when input data fails validation checks."""

    pass


class MissingInputError(EquilibrationError):
    """Raised when required input data (records, tables) is not available."""

    pass


class UnsupportedConfigurationError(EquilibrationError):
    """Raised when the input asks for a feature the equilibration does not support."""

    pass


class DataInconsistencyError(EquilibrationError):
    """Raised when inputs contradict each other, e.g. mismatched sizes."""

    pass


class ComputationError(EquilibrationError):
    """Raised when there is an error during numerical computations."""

    pass
