"""
Cross-validation runner: one train/evaluate/predict cycle per fold.

Folds run one after another and share a single model adapter, whose trained state is replaced at
the start of every fold. Any error aborts the run; only saving a fold's model may fail without
stopping it.
"""
import os
import time
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from cv_pipeline.config import ExperimentConfig
from cv_pipeline.data_loader import Row, labels_of
from cv_pipeline.exceptions import ExternalAdapterError, PipelineError, ShapeMismatchError
from cv_pipeline.feature_engineering import FeatureExtractor
from cv_pipeline.kfold import BaseKFold, StratifiedKFold, check_partition
from cv_pipeline.metrics import accuracy
from cv_pipeline.modeling import ModelAdapter

logger = logging.getLogger(__name__)


def _readonly(values: Sequence[Any], dtype=float) -> np.ndarray:
    arr = np.array(values, dtype=dtype)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True)
class FoldResult:
    """Everything one fold produced, in validation-position order."""
    fold_index: int
    score: float
    valid_indices: np.ndarray
    valid_label: np.ndarray
    pred_valid: np.ndarray
    pred_test: np.ndarray
    feature_names: Tuple[str, ...]
    feature_importances: np.ndarray


def split_rows(rows: Sequence[Row], valid_indices: Sequence[int]) -> Tuple[List[Row], List[Row]]:
    """Training rows (all positions not in ``valid_indices``) and validation rows, both in original order."""
    valid_set = set(int(i) for i in valid_indices)
    train_fold = [row for position, row in enumerate(rows) if position not in valid_set]
    valid_fold = [rows[i] for i in sorted(valid_set)]
    return train_fold, valid_fold


class CrossValidationRunner:
    """Runs k-fold cross-validation with a feature extractor, a splitter and a model adapter."""
    def __init__(self, config: ExperimentConfig, feature_extractor: FeatureExtractor,
                 kfold: BaseKFold, model: ModelAdapter, params: Optional[Dict[str, Any]] = None):
        self.config = config
        self.feature_extractor = feature_extractor
        self.kfold = kfold
        self.model = model
        self.params = params if params is not None else config.model.resolved_params()

    def model_path(self, fold_index: int) -> str:
        return os.path.join(self.config.model_dir, f"fold{fold_index + 1}{self.model.file_suffix}")

    def _extract(self, rows: Sequence[Row], fold_index: int) -> Tuple[List[str], np.ndarray]:
        names, vectors = self.feature_extractor.transform(rows)
        vectors = np.asarray(vectors, dtype=float)
        if vectors.size == 0 and len(rows) * len(names) == 0:
            vectors = vectors.reshape(len(rows), len(names))
        if vectors.ndim != 2 or vectors.shape != (len(rows), len(names)):
            raise ShapeMismatchError(
                f"Feature extractor returned shape {vectors.shape} for {len(rows)} rows and {len(names)} features",
                fold_index=fold_index,
            )
        return list(names), vectors

    def _save_model(self, fold_index: int) -> None:
        path = self.model_path(fold_index)
        try:
            os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
            self.model.save(path)
            logger.info(f"Saved fold {fold_index + 1} model to {path}")
        except Exception as e:
            logger.error(f"Could not save fold {fold_index + 1} model to {path}: {e}")

    def run_fold(self, fold_index: int, train_fold: Sequence[Row], valid_fold: Sequence[Row],
                 test: Sequence[Row], params: Optional[Dict[str, Any]] = None,
                 valid_indices: Optional[Sequence[int]] = None) -> FoldResult:
        params = self.params if params is None else params
        train_label = labels_of(train_fold, fold_index=fold_index)
        valid_label = labels_of(valid_fold, fold_index=fold_index).astype(float)
        try:
            self.feature_extractor.fit(train_fold)
            train_names, train_features = self._extract(train_fold, fold_index)
            valid_names, valid_features = self._extract(valid_fold, fold_index)
            test_names, test_features = self._extract(test, fold_index)
            if not (train_names == valid_names == test_names):
                raise ShapeMismatchError("Feature names differ between train, valid and test rows",
                                         fold_index=fold_index)

            self.model.train(train_features, train_label, params, feature_names=train_names)
            self._save_model(fold_index)

            pred_valid = np.asarray(self.model.predict(valid_features), dtype=float)
            pred_test = np.asarray(self.model.predict(test_features), dtype=float) if len(test) else np.empty(0)
            feature_names = self.model.feature_names()
            feature_importances = np.asarray(self.model.feature_importances(), dtype=float)
        except PipelineError:
            raise
        except Exception as e:
            logger.error(f"Fold {fold_index + 1} failed: {e}")
            raise ExternalAdapterError(f"{type(e).__name__}: {e}", fold_index=fold_index) from e

        if len(pred_valid) != len(valid_fold) or len(pred_test) != len(test):
            raise ShapeMismatchError(
                f"Model returned {len(pred_valid)}/{len(pred_test)} predictions for "
                f"{len(valid_fold)} valid and {len(test)} test rows",
                fold_index=fold_index,
            )
        if len(feature_importances) != len(feature_names):
            raise ShapeMismatchError(
                f"Got {len(feature_importances)} importances for {len(feature_names)} features",
                fold_index=fold_index,
            )

        score = accuracy(valid_label, pred_valid)
        logger.info(f"Fold {fold_index + 1} accuracy: {score:.4f}")
        if valid_indices is None:
            valid_indices = [row.index for row in valid_fold]
        return FoldResult(
            fold_index=fold_index,
            score=score,
            valid_indices=_readonly(valid_indices, dtype=np.int64),
            valid_label=_readonly(valid_label),
            pred_valid=_readonly(pred_valid),
            pred_test=_readonly(pred_test),
            feature_names=tuple(feature_names),
            feature_importances=_readonly(feature_importances),
        )

    def run_cv(self, train: Sequence[Row], test: Sequence[Row]) -> List[FoldResult]:
        start_time = time.time()
        labels = labels_of(train) if isinstance(self.kfold, StratifiedKFold) else [row.label for row in train]
        folds = self.kfold.split(len(train), labels)
        check_partition(folds, len(train))
        logger.info(f"[CrossValidationRunner] {self.kfold} over {len(train)} rows, {len(test)} test rows")

        prediction_results = []
        for n_fold, fold_index in enumerate(folds):
            logger.info(f"Fold {n_fold + 1}")
            fold_start = time.time()
            train_fold, valid_fold = split_rows(train, fold_index)
            logger.info(f"Fold {n_fold + 1}: train={len(train_fold)} rows, valid={len(valid_fold)} rows")
            prediction_result = self.run_fold(n_fold, train_fold, valid_fold, test,
                                              valid_indices=np.sort(fold_index))
            prediction_results.append(prediction_result)
            logger.info(f"Fold {n_fold + 1} complete. Time: {time.time() - fold_start:.2f}s")
        logger.info(f"[CrossValidationRunner] Cross-validation complete. Time: {time.time() - start_time:.2f}s")
        return prediction_results
