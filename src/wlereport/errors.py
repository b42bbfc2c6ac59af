"""
Error taxonomy for the report pipeline.

Every error also derives from the closest builtin so that callers
catching ``ValueError``/``OSError`` keep working.
"""


class WleReportError(Exception):
    """Base class for all pipeline errors."""


class SchemaError(WleReportError, ValueError):
    """An expected column is missing or holds values outside its domain."""


class InsufficientDataError(WleReportError, ValueError):
    """A label class has too few rows to stratify at the requested fraction."""


class ConfigurationError(WleReportError, ValueError):
    """A model configuration is invalid."""


class UnknownMethodError(ConfigurationError):
    """The training method name is not one of the supported methods."""


class TrainingError(WleReportError, RuntimeError):
    """The model-fitting backend failed."""


class StorageError(WleReportError, OSError):
    """A model artifact could not be read or written."""


class ShapeMismatchError(WleReportError, ValueError):
    """Evaluation or prediction input lacks required columns."""
