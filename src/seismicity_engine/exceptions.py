"""Exception types for Seismicity Engine.

Each pipeline stage raises one of these so that a run can be aborted with
a diagnostic that names the stage and the offending input.
"""


class SeismicityEngineError(Exception):
    """Base exception for all Seismicity Engine errors."""


class DataValidationError(SeismicityEngineError, ValueError):
    """Raised when input records fail column or row validation."""

    def __init__(self, message: str, column: str | None = None):
        self.column = column
        super().__init__(message)


class TuningFailure(SeismicityEngineError, RuntimeError):
    """Raised when a hyperparameter search finishes without a valid candidate."""


class FitFailure(SeismicityEngineError, RuntimeError):
    """Raised when the modeling library rejects the training data."""

    def __init__(self, message: str, family: str = ""):
        self.family = family
        super().__init__(message)


class IOFailure(SeismicityEngineError, OSError):
    """Raised when an input or output path cannot be read or written.

    The message is the one reported by the underlying ``OSError``.
    """

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(message)
