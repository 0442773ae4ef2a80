"""
Model adapters: training, prediction, persistence and feature importance for gradient-boosted
binary classifiers.

An adapter instance is reused across folds; each ``train`` call replaces the previous model.
"""
import os
import shutil
import tempfile
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import joblib
import lightgbm as lgb
import numpy as np
import pandas as pd
from sklearn.ensemble import GradientBoostingClassifier

from cv_pipeline.config import ModelConfig
from cv_pipeline.exceptions import ConfigurationError
from cv_pipeline.interpretation import shap_importance

logger = logging.getLogger(__name__)


class ModelAdapter(ABC):
    """Common interface over a concrete training/prediction backend."""
    file_suffix = ''

    def __init__(self, importance_type: str = 'split'):
        self.importance_type = importance_type
        self._feature_names: Optional[List[str]] = None
        self._train_features: Optional[np.ndarray] = None

    def _remember(self, features: np.ndarray, feature_names: Optional[Sequence[str]]) -> None:
        self._train_features = features
        if feature_names is None:
            feature_names = [f"f{i}" for i in range(features.shape[1])]
        self._feature_names = list(feature_names)

    def _require_trained(self) -> None:
        if self._feature_names is None:
            raise ValueError("Model not trained. Call train() method first.")

    @abstractmethod
    def train(self, features: np.ndarray, labels: np.ndarray, params: Dict[str, Any],
              feature_names: Optional[Sequence[str]] = None) -> 'ModelAdapter':
        pass

    @abstractmethod
    def predict(self, features: np.ndarray) -> np.ndarray:
        """Probability of class 1 for every row, in input order."""
        pass

    @abstractmethod
    def save(self, path: str) -> None:
        pass

    def feature_names(self) -> List[str]:
        self._require_trained()
        return list(self._feature_names)

    def feature_importances(self) -> np.ndarray:
        self._require_trained()
        if self.importance_type == 'shap':
            return shap_importance(self._explainable_model(), self._train_features)
        return self._native_importances()

    @abstractmethod
    def _native_importances(self) -> np.ndarray:
        pass

    def _explainable_model(self) -> Any:
        raise ConfigurationError(f"{type(self).__name__} does not support SHAP importances")


class LightGBMModel(ModelAdapter):
    """Native LightGBM booster trained with ``lgb.train``."""
    file_suffix = '.txt'

    def __init__(self, num_boost_round: int = 100, importance_type: str = 'split'):
        if importance_type not in ('split', 'gain', 'shap'):
            raise ConfigurationError(f"Unknown importance_type for LightGBM: {importance_type}")
        super().__init__(importance_type=importance_type)
        self.num_boost_round = num_boost_round
        self.booster: Optional[lgb.Booster] = None

    def train(self, features, labels, params, feature_names=None):
        features = np.asarray(features, dtype=float)
        self._remember(features, feature_names)
        dataset = lgb.Dataset(features, label=np.asarray(labels, dtype=float),
                              feature_name=self._feature_names, free_raw_data=False)
        self.booster = lgb.train(params, dataset, num_boost_round=self.num_boost_round)
        return self

    def predict(self, features):
        self._require_trained()
        return np.asarray(self.booster.predict(np.asarray(features, dtype=float)), dtype=float)

    def save(self, path):
        self._require_trained()
        self.booster.save_model(path)

    def _native_importances(self):
        return self.booster.feature_importance(importance_type=self.importance_type).astype(float)

    def _explainable_model(self):
        return self.booster


class SklearnGBDTModel(ModelAdapter):
    """scikit-learn ``GradientBoostingClassifier``, persisted with joblib."""
    file_suffix = '.joblib'

    def __init__(self, importance_type: str = 'impurity'):
        if importance_type == 'split':
            importance_type = 'impurity'
        if importance_type not in ('impurity', 'shap'):
            raise ConfigurationError(f"Unknown importance_type for scikit-learn: {importance_type}")
        super().__init__(importance_type=importance_type)
        self.model: Optional[GradientBoostingClassifier] = None

    def train(self, features, labels, params, feature_names=None):
        features = np.asarray(features, dtype=float)
        self._remember(features, feature_names)
        self.model = GradientBoostingClassifier(**params)
        self.model.fit(features, np.asarray(labels, dtype=int))
        return self

    def predict(self, features):
        self._require_trained()
        proba = self.model.predict_proba(np.asarray(features, dtype=float))
        return proba[:, list(self.model.classes_).index(1)]

    def save(self, path):
        self._require_trained()
        joblib.dump(self.model, path)

    def _native_importances(self):
        return np.asarray(self.model.feature_importances_, dtype=float)

    def _explainable_model(self):
        return self.model


class AutoGluonModel(ModelAdapter):
    """AutoGluon ``TabularPredictor`` limited to the hyperparameters given (LightGBM by default)."""
    label = '__label__'

    def __init__(self, output_path: str, time_limit: Optional[int] = None,
                 presets: str = 'medium_quality', importance_type: str = 'permutation'):
        if importance_type == 'split':
            importance_type = 'permutation'
        if importance_type != 'permutation':
            raise ConfigurationError(f"Unknown importance_type for AutoGluon: {importance_type}")
        super().__init__(importance_type=importance_type)
        self.output_path = output_path
        self.time_limit = time_limit
        self.presets = presets
        self.predictor = None
        self._train_frame: Optional[pd.DataFrame] = None

    def _frame(self, features: np.ndarray) -> pd.DataFrame:
        return pd.DataFrame(np.asarray(features, dtype=float), columns=self._feature_names)

    def train(self, features, labels, params, feature_names=None):
        from autogluon.tabular import TabularPredictor
        features = np.asarray(features, dtype=float)
        self._remember(features, feature_names)
        frame = self._frame(features)
        frame[self.label] = np.asarray(labels, dtype=int)
        os.makedirs(self.output_path, exist_ok=True)
        self.predictor = TabularPredictor(
            label=self.label,
            path=tempfile.mkdtemp(prefix='autogluon_', dir=self.output_path),
            problem_type='binary',
            eval_metric='accuracy',
            verbosity=0,
        )
        self.predictor.fit(
            train_data=frame,
            hyperparameters=params,
            presets=self.presets,
            time_limit=self.time_limit,
        )
        self._train_frame = frame
        return self

    def predict(self, features):
        self._require_trained()
        proba = self.predictor.predict_proba(self._frame(features))
        if 1 in proba.columns:
            return proba[1].to_numpy(dtype=float)
        return proba.iloc[:, -1].to_numpy(dtype=float)

    def save(self, path):
        self._require_trained()
        shutil.copytree(self.predictor.path, path, dirs_exist_ok=True)

    def _native_importances(self):
        importance = self.predictor.feature_importance(self._train_frame, silent=True)
        return importance['importance'].reindex(self._feature_names).fillna(0.0).to_numpy(dtype=float)


MODEL_BACKENDS = {
    'lightgbm': LightGBMModel,
    'sklearn': SklearnGBDTModel,
    'autogluon': AutoGluonModel,
}


def get_model_class(backend: str):
    if backend not in MODEL_BACKENDS:
        raise ConfigurationError(f"Unknown model backend: {backend}")
    return MODEL_BACKENDS[backend]


def build_model(model_config: ModelConfig, output_path: str) -> ModelAdapter:
    model_class = get_model_class(model_config.backend)
    if model_class is LightGBMModel:
        return LightGBMModel(num_boost_round=model_config.num_boost_round,
                             importance_type=model_config.importance_type)
    if model_class is AutoGluonModel:
        return AutoGluonModel(output_path=os.path.join(output_path, 'autogluon'),
                              time_limit=model_config.time_limit,
                              presets=model_config.presets,
                              importance_type=model_config.importance_type)
    return model_class(importance_type=model_config.importance_type)
