"""
Cross-fold aggregation of validation scores, feature importances and test predictions.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from cv_pipeline.exceptions import ShapeMismatchError
from cv_pipeline.metrics import accuracy, mean_fold_accuracy, pooled_roc_auc, to_labels
from cv_pipeline.runner import FoldResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CVSummary:
    accuracy: float
    mean_fold_accuracy: float
    roc_auc: Optional[float]
    fold_scores: Tuple[float, ...]
    feature_names: Tuple[str, ...]
    feature_importances: np.ndarray
    pred_test: np.ndarray
    test_labels: np.ndarray


def calc_vec_mean(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """Element-wise arithmetic mean of equal-length vectors."""
    if len(vectors) == 0:
        raise ShapeMismatchError("Cannot average an empty list of vectors")
    lengths = {len(v) for v in vectors}
    if len(lengths) != 1:
        raise ShapeMismatchError(f"Cannot average vectors of different lengths: {sorted(lengths)}")
    return np.mean(np.asarray(vectors, dtype=float), axis=0)


def convert_probability_to_label(probabilities: Sequence[float]) -> np.ndarray:
    return to_labels(probabilities)


def pool_validation(results: Sequence[FoldResult]) -> Tuple[np.ndarray, np.ndarray]:
    """Validation labels and predictions of every fold, concatenated in fold order."""
    valid_labels = np.concatenate([r.valid_label for r in results])
    pred_valids = np.concatenate([r.pred_valid for r in results])
    return valid_labels, pred_valids


def aggregate_results(results: Sequence[FoldResult]) -> CVSummary:
    if len(results) == 0:
        raise ShapeMismatchError("No fold results to aggregate")
    feature_names = results[0].feature_names
    for r in results[1:]:
        if r.feature_names != feature_names:
            raise ShapeMismatchError("Feature names differ between folds", fold_index=r.fold_index)

    valid_labels, pred_valids = pool_validation(results)
    fold_scores = [r.score for r in results]
    pred_test = calc_vec_mean([r.pred_test for r in results])
    summary = CVSummary(
        accuracy=accuracy(valid_labels, pred_valids),
        mean_fold_accuracy=mean_fold_accuracy(fold_scores),
        roc_auc=pooled_roc_auc(valid_labels, pred_valids),
        fold_scores=tuple(fold_scores),
        feature_names=tuple(feature_names),
        feature_importances=calc_vec_mean([r.feature_importances for r in results]),
        pred_test=pred_test,
        test_labels=convert_probability_to_label(pred_test),
    )
    logger.info(f"CV Accuracy: {summary.accuracy:.4f} (mean of folds: {summary.mean_fold_accuracy:.4f})")
    logger.info(f"Feature names: {list(summary.feature_names)}")
    logger.info(f"Feature importances: {summary.feature_importances.tolist()}")
    return summary
