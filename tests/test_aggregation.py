import numpy as np
import pytest
from cv_pipeline.aggregation import (
    aggregate_results,
    calc_vec_mean,
    convert_probability_to_label,
    pool_validation,
)
from cv_pipeline.exceptions import ShapeMismatchError
from cv_pipeline.metrics import accuracy, mean_fold_accuracy, pooled_roc_auc
from cv_pipeline.runner import FoldResult


def make_result(fold_index, valid_label, pred_valid, pred_test, importances=(1.0, 2.0),
                feature_names=('a', 'b')):
    return FoldResult(
        fold_index=fold_index,
        score=accuracy(valid_label, pred_valid),
        valid_indices=np.arange(len(valid_label)),
        valid_label=np.asarray(valid_label, dtype=float),
        pred_valid=np.asarray(pred_valid, dtype=float),
        pred_test=np.asarray(pred_test, dtype=float),
        feature_names=tuple(feature_names),
        feature_importances=np.asarray(importances, dtype=float),
    )


# --- Unit tests: metrics ---
def test_pooled_accuracy_example():
    assert accuracy([0, 0, 1, 1], [0.2, 0.6, 0.1, 0.9]) == 0.5

def test_accuracy_threshold_is_strict():
    assert accuracy([0.0, 1.0], [0.5, 0.5]) == 0.5

def test_accuracy_length_mismatch():
    with pytest.raises(ShapeMismatchError):
        accuracy([0, 1], [0.3])

def test_roc_auc_single_class_is_none():
    assert pooled_roc_auc([1, 1, 1], [0.2, 0.4, 0.9]) is None
    assert pooled_roc_auc([0, 1], [0.2, 0.9]) == 1.0

# --- Unit tests: aggregation ---
def test_mean_test_prediction_example():
    mean = calc_vec_mean([[0.2, 0.8], [0.4, 0.6]])
    assert mean.tolist() == pytest.approx([0.3, 0.7])
    assert convert_probability_to_label(mean).tolist() == [0, 1]

def test_calc_vec_mean_length_mismatch():
    with pytest.raises(ShapeMismatchError):
        calc_vec_mean([[0.1, 0.2], [0.3]])

def test_calc_vec_mean_empty():
    with pytest.raises(ShapeMismatchError):
        calc_vec_mean([])

def test_pool_validation_preserves_fold_order():
    results = [
        make_result(0, [0, 1], [0.1, 0.9], [0.5]),
        make_result(1, [1], [0.2], [0.5]),
    ]
    labels, preds = pool_validation(results)
    assert labels.tolist() == [0.0, 1.0, 1.0]
    assert preds.tolist() == [0.1, 0.9, 0.2]

def test_pooled_accuracy_differs_from_fold_mean():
    results = [
        make_result(0, [0, 1, 1], [0.1, 0.9, 0.8], [0.2, 0.8], importances=(2.0, 4.0)),
        make_result(1, [1], [0.3], [0.4, 0.6], importances=(4.0, 0.0)),
    ]
    summary = aggregate_results(results)
    assert summary.accuracy == 0.75
    assert summary.mean_fold_accuracy == 0.5
    assert summary.fold_scores == (1.0, 0.0)
    assert summary.feature_names == ('a', 'b')
    assert summary.feature_importances.tolist() == [3.0, 2.0]
    assert summary.pred_test.tolist() == pytest.approx([0.3, 0.7])
    assert summary.test_labels.tolist() == [0, 1]
    assert mean_fold_accuracy(summary.fold_scores) == 0.5

def test_aggregate_feature_names_mismatch():
    results = [
        make_result(0, [0, 1], [0.1, 0.9], [0.5]),
        make_result(1, [0, 1], [0.1, 0.9], [0.5], feature_names=('b', 'a')),
    ]
    with pytest.raises(ShapeMismatchError) as excinfo:
        aggregate_results(results)
    assert excinfo.value.fold_index == 1

def test_aggregate_importance_length_mismatch():
    results = [
        make_result(0, [0, 1], [0.1, 0.9], [0.5]),
        make_result(1, [0, 1], [0.1, 0.9], [0.5], importances=(1.0, 2.0, 3.0)),
    ]
    with pytest.raises(ShapeMismatchError):
        aggregate_results(results)

def test_aggregate_no_results():
    with pytest.raises(ShapeMismatchError):
        aggregate_results([])
