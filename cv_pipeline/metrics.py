"""
Scoring helpers for binary predictions.
"""
import logging
from typing import Optional, Sequence

import numpy as np
from sklearn.metrics import accuracy_score, roc_auc_score

from cv_pipeline.exceptions import ShapeMismatchError

logger = logging.getLogger(__name__)

THRESHOLD = 0.5


def to_labels(probabilities: Sequence[float]) -> np.ndarray:
    """Class 1 where the score is strictly above 0.5, else class 0."""
    return (np.asarray(probabilities, dtype=float) > THRESHOLD).astype(int)


def _check_lengths(labels: Sequence[float], predictions: Sequence[float]) -> None:
    if len(labels) != len(predictions):
        raise ShapeMismatchError(f"Got {len(labels)} labels and {len(predictions)} predictions")
    if len(labels) == 0:
        raise ShapeMismatchError("Cannot score an empty set of predictions")


def accuracy(labels: Sequence[float], predictions: Sequence[float]) -> float:
    _check_lengths(labels, predictions)
    y_true = np.asarray(labels, dtype=float).astype(int)
    return float(accuracy_score(y_true, to_labels(predictions)))


def mean_fold_accuracy(fold_scores: Sequence[float]) -> float:
    """Unweighted mean of per-fold accuracies; differs from pooled accuracy when folds differ in size."""
    return float(np.mean(fold_scores))


def pooled_roc_auc(labels: Sequence[float], predictions: Sequence[float]) -> Optional[float]:
    _check_lengths(labels, predictions)
    y_true = np.asarray(labels, dtype=float).astype(int)
    if len(np.unique(y_true)) < 2:
        logger.warning("ROC AUC is undefined when only one class is present")
        return None
    return float(roc_auc_score(y_true, np.asarray(predictions, dtype=float)))
