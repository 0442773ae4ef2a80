"""
Submission file writing.
"""
import os
import logging
from typing import Any, Optional, Sequence

import pandas as pd

from cv_pipeline.data_loader import load_csv
from cv_pipeline.exceptions import ShapeMismatchError

logger = logging.getLogger(__name__)


def generate_submission(pred_test: Sequence[int], output_path: str,
                        sample_submission_path: Optional[str] = None,
                        ids: Optional[Sequence[Any]] = None,
                        id_column: str = 'PassengerId', label_column: str = 'Survived') -> pd.DataFrame:
    """Write a two-column (id, label) CSV.

    With ``sample_submission_path`` the ids and both column names come from that file's first
    two columns; otherwise ``ids`` supplies the ids in test-row order.
    """
    if sample_submission_path is not None:
        sample = load_csv(sample_submission_path)
        id_column = sample.columns[0]
        if len(sample.columns) > 1:
            label_column = sample.columns[1]
        ids = sample[id_column].tolist()
    if ids is None:
        raise ValueError("Either sample_submission_path or ids is required")
    if len(ids) != len(pred_test):
        raise ShapeMismatchError(f"Got {len(pred_test)} predictions for {len(ids)} ids")

    submission = pd.DataFrame({id_column: list(ids), label_column: [int(p) for p in pred_test]})
    os.makedirs(os.path.dirname(output_path) or '.', exist_ok=True)
    submission.to_csv(output_path, index=False)
    logger.info(f"Wrote submission with {len(submission)} rows to {output_path}")
    return submission
