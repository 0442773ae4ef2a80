"""
Feature importance reporting (model-native and SHAP-based).
"""
import logging
from typing import Any, Sequence

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
import shap

logger = logging.getLogger(__name__)


def shap_importance(model: Any, features: np.ndarray) -> np.ndarray:
    """Mean absolute SHAP value per feature for a tree model, explaining the class-1 output."""
    explainer = shap.TreeExplainer(model)
    values = explainer.shap_values(features)
    if isinstance(values, list):
        values = values[-1]
    values = np.asarray(values)
    if values.ndim == 3:
        values = values[:, :, -1]
    return np.abs(values).mean(axis=0)


def importance_frame(feature_names: Sequence[str], importances: Sequence[float]) -> pd.DataFrame:
    return pd.DataFrame({
        'feature': list(feature_names),
        'importance': np.asarray(importances, dtype=float)
    }).sort_values('importance', ascending=False).reset_index(drop=True)


def plot_feature_importance(importance: pd.DataFrame, max_display: int = 20, title: str = 'Mean Feature Importance'):
    plt.figure(figsize=(10, 6))
    sns.barplot(x='importance', y='feature', data=importance.head(max_display))
    plt.title(f"Top {max_display} Features by {title}")
    plt.tight_layout()
    return plt.gcf()
