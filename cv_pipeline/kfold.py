"""
Fold assignment for cross-validation.

``split`` returns one index array per fold. Each array holds the positions, in the original
row order, that form that fold's validation set; every other position is that fold's training
set. Arrays are sorted ascending and read-only.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Union

import numpy as np

from cv_pipeline.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _row_count(data: Union[int, Sequence[Any]]) -> int:
    if isinstance(data, (int, np.integer)):
        return int(data)
    return len(data)


def _freeze(folds: List[List[int]]) -> List[np.ndarray]:
    frozen = []
    for fold in folds:
        arr = np.sort(np.asarray(fold, dtype=np.int64))
        arr.flags.writeable = False
        frozen.append(arr)
    return frozen


def check_partition(folds: Sequence[np.ndarray], n_rows: int) -> None:
    """Raise unless ``folds`` are non-empty and cover ``0..n_rows-1`` exactly once."""
    if any(len(fold) == 0 for fold in folds):
        raise ConfigurationError("Fold assignment contains an empty fold")
    counts = np.bincount(np.concatenate(folds).astype(np.int64), minlength=n_rows) if folds else np.zeros(n_rows)
    if len(counts) != n_rows or not np.all(counts == 1):
        raise ConfigurationError(f"Fold assignment does not partition {n_rows} rows exactly once")


class BaseKFold(ABC):
    def __init__(self, n_splits: int = 5, shuffle: bool = False, random_state: Optional[int] = None):
        if n_splits < 2:
            raise ConfigurationError(f"n_splits must be at least 2, got {n_splits}")
        self.n_splits = n_splits
        self.shuffle = shuffle
        self.random_state = random_state

    def _positions(self, n_rows: int) -> np.ndarray:
        indices = np.arange(n_rows)
        if self.shuffle:
            # No seed draws from OS entropy, so unseeded runs are not reproducible.
            rng = np.random.default_rng(self.random_state)
            indices = rng.permutation(indices)
        return indices

    def _check_row_count(self, n_rows: int) -> None:
        if self.n_splits > n_rows:
            raise ConfigurationError(f"n_splits={self.n_splits} is greater than the number of rows={n_rows}")

    @abstractmethod
    def split(self, data: Union[int, Sequence[Any]], labels: Optional[Sequence[int]] = None) -> List[np.ndarray]:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_splits={self.n_splits}, shuffle={self.shuffle}, random_state={self.random_state})"


class KFold(BaseKFold):
    """Round-robin assignment of (optionally shuffled) positions to folds."""

    def split(self, data, labels=None):
        n_rows = _row_count(data)
        self._check_row_count(n_rows)
        folds = [[] for _ in range(self.n_splits)]
        for i, index in enumerate(self._positions(n_rows)):
            folds[i % self.n_splits].append(int(index))
        return _freeze(folds)


class StratifiedKFold(BaseKFold):
    """Round-robin assignment within each label value.

    Labels are visited in ascending order and the rotation carries on from one label to the
    next, so each fold receives floor or ceil of ``class_count / n_splits`` rows of every class
    and fold sizes differ by at most one.
    """

    def split(self, data, labels=None):
        if labels is None:
            raise ConfigurationError("StratifiedKFold requires labels")
        labels = np.asarray(labels)
        n_rows = _row_count(data)
        if len(labels) != n_rows:
            raise ConfigurationError(f"Got {len(labels)} labels for {n_rows} rows")
        self._check_row_count(n_rows)
        classes, counts = np.unique(labels, return_counts=True)
        if counts.min() < self.n_splits:
            minority = classes[np.argmin(counts)]
            raise ConfigurationError(
                f"n_splits={self.n_splits} is greater than the number of rows with label {minority} ({counts.min()})"
            )

        indices = self._positions(n_rows)
        shuffled_labels = labels[indices]
        folds = [[] for _ in range(self.n_splits)]
        count = 0
        for label in classes:
            for index in indices[shuffled_labels == label]:
                folds[count % self.n_splits].append(int(index))
                count += 1
        return _freeze(folds)


def get_splitter(n_splits: int = 5, shuffle: bool = True, random_state: Optional[int] = None,
                 stratified: bool = True) -> BaseKFold:
    splitter_class = StratifiedKFold if stratified else KFold
    return splitter_class(n_splits=n_splits, shuffle=shuffle, random_state=random_state)
