"""
Experiment configuration for the cross-validation pipeline.

Configuration is passed explicitly into the pipeline entry point; nothing here is
process-wide state, so tests can build an ``ExperimentConfig`` pointing at temporary paths.
"""
import os
import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from cv_pipeline.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ['train_data', 'test_data', 'target_column']

DEFAULT_PARAMS: Dict[str, Dict[str, Any]] = {
    'lightgbm': {
        'objective': 'binary',
        'metric': 'binary_logloss',
        'num_leaves': 31,
        'learning_rate': 0.05,
        'feature_fraction': 0.9,
        'bagging_fraction': 0.8,
        'bagging_freq': 5,
        'verbose': -1,
    },
    'sklearn': {
        'n_estimators': 100,
        'learning_rate': 0.05,
        'max_depth': 3,
        'subsample': 0.8,
        'random_state': 42,
    },
    'autogluon': {
        'GBM': {},
    },
}


def validate_config(config: Dict[str, Any]) -> None:
    if not isinstance(config, dict):
        raise ConfigurationError(f"Config must be a mapping, got {type(config).__name__}")
    missing = [k for k in REQUIRED_KEYS if k not in config]
    if missing:
        raise ConfigurationError(f"Missing required config keys: {missing}")
    for section in ('cv', 'model'):
        if section in config and not isinstance(config[section], dict):
            raise ConfigurationError(f"Config section '{section}' must be a mapping")


@dataclass
class CVConfig:
    n_splits: int = 5
    shuffle: bool = True
    random_state: Optional[int] = 42
    stratified: bool = True


@dataclass
class ModelConfig:
    backend: str = 'lightgbm'
    params: Optional[Dict[str, Any]] = None
    num_boost_round: int = 100
    importance_type: str = 'split'
    time_limit: Optional[int] = None
    presets: str = 'medium_quality'

    def resolved_params(self) -> Dict[str, Any]:
        """Backend hyperparameters, falling back to the backend defaults."""
        if self.params is not None:
            return copy.deepcopy(self.params)
        if self.backend not in DEFAULT_PARAMS:
            raise ConfigurationError(f"Unknown model backend: {self.backend}")
        return copy.deepcopy(DEFAULT_PARAMS[self.backend])


@dataclass
class ExperimentConfig:
    """Complete configuration for one cross-validation experiment."""
    train_data: str
    test_data: str
    target_column: str = 'Survived'
    id_column: str = 'PassengerId'
    sample_submission: Optional[str] = None
    submission_path: Optional[str] = None
    output_path: str = './output'
    plot_importance: bool = True
    impute_age: bool = False
    log_level: str = 'INFO'
    cv: CVConfig = field(default_factory=CVConfig)
    model: ModelConfig = field(default_factory=ModelConfig)

    @property
    def model_dir(self) -> str:
        return os.path.join(self.output_path, 'models')

    @property
    def resolved_submission_path(self) -> str:
        if self.submission_path:
            return self.submission_path
        return os.path.join(self.output_path, 'submissions', 'submission.csv')

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'ExperimentConfig':
        validate_config(config)
        values = dict(config)
        cv_values = values.pop('cv', None) or {}
        model_values = values.pop('model', None) or {}
        known = set(cls.__dataclass_fields__)
        unknown = [k for k in values if k not in known]
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {unknown}")
        try:
            return cls(
                cv=CVConfig(**cv_values),
                model=ModelConfig(**model_values),
                **{k: v for k, v in values.items() if k in known},
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid config: {e}") from e


def load_config(path: str) -> ExperimentConfig:
    if not os.path.exists(path):
        raise ConfigurationError(f"Config file {path} does not exist.")
    with open(path, 'r') as f:
        config = yaml.safe_load(f)
    return ExperimentConfig.from_dict(config)
