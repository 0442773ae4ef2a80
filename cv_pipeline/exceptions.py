"""
Custom exceptions for the cross-validation pipeline.
"""
from typing import Any, Optional


class PipelineError(Exception):
    """Base class for errors that abort a cross-validation run."""
    def __init__(self, message: str, fold_index: Optional[int] = None, row_id: Any = None):
        self.fold_index = fold_index
        self.row_id = row_id
        context = []
        if fold_index is not None:
            context.append(f"fold_index={fold_index}")
        if row_id is not None:
            context.append(f"row_id={row_id}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class ConfigurationError(PipelineError, ValueError):
    """Raised when the run configuration cannot produce a valid experiment."""
    pass


class MissingLabelError(PipelineError):
    """Raised when a training or validation row has no label."""
    pass


class ShapeMismatchError(PipelineError):
    """Raised when feature, importance or prediction vectors disagree in length or order."""
    pass


class ExternalAdapterError(PipelineError):
    """Wraps a failure raised by the model adapter or the feature extractor."""
    pass


class DataValidationError(PipelineError):
    """Raised when input data fails validation checks."""
    pass
