"""
Reproducible k-fold cross-validation for binary classification on tabular data.
"""

__version__ = "0.1"

from cv_pipeline.config import CVConfig, ExperimentConfig, ModelConfig, load_config, validate_config
from cv_pipeline.exceptions import (
    ConfigurationError,
    DataValidationError,
    ExternalAdapterError,
    MissingLabelError,
    PipelineError,
    ShapeMismatchError,
)
from cv_pipeline.kfold import KFold, StratifiedKFold, get_splitter
from cv_pipeline.runner import CrossValidationRunner, FoldResult
from cv_pipeline.aggregation import CVSummary, aggregate_results
from cv_pipeline.pipeline import ExperimentPipeline

__all__ = [
    "CVConfig",
    "ExperimentConfig",
    "ModelConfig",
    "load_config",
    "validate_config",
    "ConfigurationError",
    "DataValidationError",
    "ExternalAdapterError",
    "MissingLabelError",
    "PipelineError",
    "ShapeMismatchError",
    "KFold",
    "StratifiedKFold",
    "get_splitter",
    "CrossValidationRunner",
    "FoldResult",
    "CVSummary",
    "aggregate_results",
    "ExperimentPipeline",
]
