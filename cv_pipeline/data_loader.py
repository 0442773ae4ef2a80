"""
Data loading utilities for the cross-validation pipeline.
"""
import os
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import boto3
import numpy as np
import pandas as pd

from cv_pipeline.exceptions import DataValidationError, MissingLabelError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Row:
    """One input record; ``index`` is its position in the loaded file."""
    index: int
    row_id: Any
    label: Optional[int] = None
    attributes: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)


def download_from_s3(s3_path: str, local_path: str) -> None:
    s3 = boto3.client('s3')
    bucket, key = s3_path.replace("s3://", "").split("/", 1)
    s3.download_file(bucket, key, local_path)


def load_csv(path: str) -> pd.DataFrame:
    if path.startswith("s3://"):
        local_path = os.path.basename(path)
        download_from_s3(path, local_path)
        logger.info(f"Downloaded {path} to {local_path}")
        path = local_path
    return pd.read_csv(path)


def summarize_missing(df: pd.DataFrame) -> pd.DataFrame:
    missing_count = df.isnull().sum()
    missing_percentage = missing_count / max(len(df), 1) * 100
    return pd.DataFrame({
        'Column': missing_count.index,
        'Missing Count': missing_count.values,
        'Missing Percentage': missing_percentage.values
    }).sort_values('Missing Percentage', ascending=False)


class DataLoader:
    """Loads a delimited file into an ordered list of ``Row`` records."""
    def __init__(self, filepath: str, id_column: str, label_column: Optional[str] = None,
                 require_label: bool = False):
        self.filepath = filepath
        self.id_column = id_column
        self.label_column = label_column
        self.require_label = require_label

    def load(self) -> List[Row]:
        df = load_csv(self.filepath)
        logger.info(f"[DataLoader] Loaded {self.filepath}. Shape: {df.shape}")
        return self.rows_from_frame(df)

    def rows_from_frame(self, df: pd.DataFrame) -> List[Row]:
        if self.id_column not in df.columns:
            raise DataValidationError(f"Id column '{self.id_column}' not found in {self.filepath}")
        has_label = self.label_column is not None and self.label_column in df.columns
        if self.require_label and not has_label:
            raise DataValidationError(f"Label column '{self.label_column}' not found in {self.filepath}")

        missing = summarize_missing(df)
        missing = missing[missing['Missing Count'] > 0]
        if len(missing):
            logger.info(f"Missing values per column: {dict(zip(missing['Column'], missing['Missing Count']))}")

        attribute_columns = [c for c in df.columns if c not in (self.id_column, self.label_column)]
        rows = []
        for position, raw in enumerate(df.astype(object).to_dict('records')):
            record = {k: (None if _is_missing(v) else v) for k, v in raw.items()}
            row_id = record[self.id_column]
            label = record[self.label_column] if has_label else None
            rows.append(Row(
                index=position,
                row_id=row_id,
                label=self._parse_label(label, row_id),
                attributes={c: record[c] for c in attribute_columns},
            ))
        return rows

    def _parse_label(self, value: Any, row_id: Any) -> Optional[int]:
        if value is None:
            return None
        try:
            label = int(value)
        except (TypeError, ValueError) as e:
            raise DataValidationError(f"Label {value!r} is not numeric", row_id=row_id) from e
        if label != value or label not in (0, 1):
            raise DataValidationError(f"Label {value!r} is not in {{0, 1}}", row_id=row_id)
        return label


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and np.isnan(value))


def labels_of(rows: Sequence[Row], fold_index: Optional[int] = None) -> np.ndarray:
    """Labels of ``rows`` in order; every row must carry one."""
    labels = np.empty(len(rows), dtype=np.int64)
    for i, row in enumerate(rows):
        if row.label is None:
            raise MissingLabelError("Row has no label", fold_index=fold_index, row_id=row.row_id)
        labels[i] = row.label
    return labels
