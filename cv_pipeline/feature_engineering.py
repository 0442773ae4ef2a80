"""
Feature engineering utilities for the cross-validation pipeline.

A feature extractor turns a list of rows into ``(feature_names, matrix)``: one numeric vector per
row, in input order, with the same ``feature_names`` on every call within a run. Extractors that
learn statistics must learn them in ``fit`` from the training rows of a fold only; the fold
runner calls ``fit`` on the training rows and ``transform`` separately on each row set.
"""
import time
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from cv_pipeline.data_loader import Row

logger = logging.getLogger(__name__)

TITANIC_FEATURES = [
    'pclass',
    'sex',
    'age',
    'sibsp',
    'parch',
    'fare',
    'embarked',
    'title',
    'family_size',
]

SEX_CODES = {'female': 0, 'male': 1}
EMBARKED_CODES = {'C': 0, 'Q': 1, 'S': 2}
# Checked in order; the first title found in the name wins.
TITLE_CODES = [('Mr.', 0), ('Mrs.', 1), ('Miss.', 2), ('Master.', 3)]
OTHER_TITLE = 4
MISSING = -1.0


class FeatureExtractor(ABC):
    """Turns rows into a fixed-length numeric vector per row."""

    def fit(self, rows: Sequence[Row]) -> 'FeatureExtractor':
        return self

    @abstractmethod
    def transform(self, rows: Sequence[Row]) -> Tuple[List[str], np.ndarray]:
        pass


class TitanicFeatureExtractor(FeatureExtractor):
    """Numeric features for the Titanic passenger schema.

    Missing values encode as -1. With ``impute_age`` the median age of the rows seen in
    ``fit`` replaces missing ages instead.
    """
    def __init__(self, impute_age: bool = False):
        self.impute_age = impute_age
        self.age_median: Optional[float] = None

    def fit(self, rows: Sequence[Row]) -> 'TitanicFeatureExtractor':
        if self.impute_age:
            ages = pd.to_numeric(self._frame(rows)['Age'], errors='coerce')
            self.age_median = float(ages.median()) if ages.notna().any() else None
            logger.info(f"[TitanicFeatureExtractor] Fitted age median={self.age_median} on {len(rows)} rows")
        return self

    def transform(self, rows: Sequence[Row]) -> Tuple[List[str], np.ndarray]:
        start_time = time.time()
        df = self._frame(rows)
        sibsp = self._numeric(df['SibSp'])
        parch = self._numeric(df['Parch'])
        age = self._numeric(df['Age'])
        if self.impute_age and self.age_median is not None:
            age = age.fillna(self.age_median)
        features = pd.DataFrame({
            'pclass': self._numeric(df['Pclass']),
            'sex': df['Sex'].map(SEX_CODES),
            'age': age,
            'sibsp': sibsp,
            'parch': parch,
            'fare': self._numeric(df['Fare']),
            'embarked': df['Embarked'].map(EMBARKED_CODES),
            'title': df['Name'].map(self._title_code),
            'family_size': sibsp.fillna(0) + parch.fillna(0) + 1,
        }, index=df.index)
        matrix = features[TITANIC_FEATURES].astype(float).fillna(MISSING).to_numpy()
        logger.debug(f"[TitanicFeatureExtractor] transform complete. Output shape: {matrix.shape}. Time: {time.time() - start_time:.2f}s")
        return list(TITANIC_FEATURES), matrix

    @staticmethod
    def _frame(rows: Sequence[Row]) -> pd.DataFrame:
        columns = ['Pclass', 'Name', 'Sex', 'Age', 'SibSp', 'Parch', 'Fare', 'Embarked']
        return pd.DataFrame([[row.get(c) for c in columns] for row in rows], columns=columns, dtype=object)

    @staticmethod
    def _numeric(series: pd.Series) -> pd.Series:
        return pd.to_numeric(series, errors='coerce')

    @staticmethod
    def _title_code(name) -> float:
        if not isinstance(name, str) or not name:
            return np.nan
        for title, code in TITLE_CODES:
            if title in name:
                return code
        return OTHER_TITLE
