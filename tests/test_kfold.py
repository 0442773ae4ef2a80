import numpy as np
import pytest
from cv_pipeline.kfold import KFold, StratifiedKFold, get_splitter, check_partition
from cv_pipeline.exceptions import ConfigurationError


def _assert_partition(folds, n_rows):
    flat = np.concatenate(folds)
    assert sorted(flat.tolist()) == list(range(n_rows))
    assert all(len(fold) > 0 for fold in folds)


# --- Unit tests: KFold ---
@pytest.mark.parametrize('n_rows,n_splits', [(10, 2), (11, 3), (7, 7), (100, 5)])
@pytest.mark.parametrize('shuffle', [False, True])
def test_kfold_partition_complete(n_rows, n_splits, shuffle):
    folds = KFold(n_splits=n_splits, shuffle=shuffle, random_state=0).split(n_rows)
    assert len(folds) == n_splits
    _assert_partition(folds, n_rows)
    sizes = [len(f) for f in folds]
    assert max(sizes) - min(sizes) <= 1

def test_kfold_round_robin_without_shuffle():
    folds = KFold(n_splits=3).split(7)
    assert [f.tolist() for f in folds] == [[0, 3, 6], [1, 4], [2, 5]]

def test_kfold_accepts_rows():
    folds = KFold(n_splits=2).split(['a', 'b', 'c', 'd'])
    assert [f.tolist() for f in folds] == [[0, 2], [1, 3]]

def test_kfold_same_seed_same_folds():
    first = KFold(n_splits=5, shuffle=True, random_state=42).split(100)
    second = KFold(n_splits=5, shuffle=True, random_state=42).split(100)
    assert all(np.array_equal(a, b) for a, b in zip(first, second))

def test_kfold_different_seeds_differ():
    first = KFold(n_splits=5, shuffle=True, random_state=1).split(100)
    second = KFold(n_splits=5, shuffle=True, random_state=2).split(100)
    assert not all(np.array_equal(a, b) for a, b in zip(first, second))

def test_folds_are_sorted_and_readonly():
    folds = KFold(n_splits=3, shuffle=True, random_state=7).split(20)
    for fold in folds:
        assert fold.tolist() == sorted(fold.tolist())
        with pytest.raises(ValueError):
            fold[0] = 99

# --- Unit tests: StratifiedKFold ---
def test_stratified_alternating_labels_exact_assignment():
    labels = [1, 0, 1, 0, 1, 0, 1, 0, 1, 0]
    folds = StratifiedKFold(n_splits=2, shuffle=False).split(len(labels), labels)
    assert [f.tolist() for f in folds] == [[1, 2, 5, 6, 9], [0, 3, 4, 7, 8]]
    for fold in folds:
        fold_labels = [labels[i] for i in fold]
        assert len(fold) == 5
        assert fold_labels.count(0) in (2, 3)
        assert fold_labels.count(1) in (2, 3)
    total_ones = sum(labels[i] for fold in folds for i in fold)
    assert total_ones == 5

@pytest.mark.parametrize('n_splits', [2, 3, 4, 5])
@pytest.mark.parametrize('shuffle', [False, True])
def test_stratified_balance(n_splits, shuffle):
    rng = np.random.default_rng(123)
    labels = rng.integers(0, 2, size=97)
    folds = StratifiedKFold(n_splits=n_splits, shuffle=shuffle, random_state=3).split(len(labels), labels)
    _assert_partition(folds, len(labels))
    for label in (0, 1):
        class_count = int(np.sum(labels == label))
        for fold in folds:
            in_fold = int(np.sum(labels[fold] == label))
            assert abs(in_fold - class_count / n_splits) <= 1

def test_stratified_imbalanced_unseeded():
    for _ in range(10):
        labels = np.array([0] * 10 + [1] * 90)
        np.random.default_rng().shuffle(labels)
        folds = StratifiedKFold(n_splits=2, shuffle=True).split(100, labels)
        assert len(folds) == 2
        for fold in folds:
            assert len(fold) == 50
            assert int(np.sum(labels[fold] == 0)) == 5
            assert int(np.sum(labels[fold] == 1)) == 45

def test_stratified_same_seed_same_folds():
    labels = [0, 1] * 25
    first = StratifiedKFold(n_splits=5, shuffle=True, random_state=42).split(50, labels)
    second = StratifiedKFold(n_splits=5, shuffle=True, random_state=42).split(50, labels)
    assert all(np.array_equal(a, b) for a, b in zip(first, second))

def test_stratified_label_order_independent_of_first_seen():
    # Label 1 appears first, but label 0 is walked first.
    labels = [1, 1, 0, 0]
    folds = StratifiedKFold(n_splits=2).split(4, labels)
    assert [f.tolist() for f in folds] == [[0, 2], [1, 3]]

# --- Edge case tests ---
def test_stratified_minority_smaller_than_n_splits():
    labels = [0, 0, 1, 1, 1, 1, 1]
    with pytest.raises(ConfigurationError) as excinfo:
        StratifiedKFold(n_splits=3).split(len(labels), labels)
    assert 'label 0' in str(excinfo.value)

def test_n_splits_greater_than_rows():
    with pytest.raises(ConfigurationError):
        KFold(n_splits=5).split(3)

def test_n_splits_below_two():
    with pytest.raises(ConfigurationError):
        KFold(n_splits=1)

def test_stratified_requires_labels():
    with pytest.raises(ConfigurationError):
        StratifiedKFold(n_splits=2).split(10)

def test_stratified_label_length_mismatch():
    with pytest.raises(ConfigurationError):
        StratifiedKFold(n_splits=2).split(5, [0, 1, 0, 1])

def test_get_splitter():
    assert isinstance(get_splitter(stratified=True), StratifiedKFold)
    splitter = get_splitter(n_splits=3, shuffle=False, random_state=None, stratified=False)
    assert isinstance(splitter, KFold)
    assert splitter.n_splits == 3

def test_check_partition():
    check_partition([np.array([0, 2]), np.array([1])], 3)
    with pytest.raises(ConfigurationError):
        check_partition([np.array([0, 1]), np.array([1, 2])], 3)
    with pytest.raises(ConfigurationError):
        check_partition([np.array([0]), np.array([1])], 3)
    with pytest.raises(ConfigurationError):
        check_partition([np.array([0, 1, 2]), np.array([], dtype=int)], 3)
