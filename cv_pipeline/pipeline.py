"""
Main pipeline orchestration: load rows, cross-validate, aggregate, report and write the submission.
"""
import os
import time
import logging
from typing import List, Optional

import matplotlib.pyplot as plt

from cv_pipeline.aggregation import CVSummary, aggregate_results
from cv_pipeline.config import ExperimentConfig
from cv_pipeline.data_loader import DataLoader, Row
from cv_pipeline.feature_engineering import FeatureExtractor, TitanicFeatureExtractor
from cv_pipeline.interpretation import importance_frame, plot_feature_importance
from cv_pipeline.kfold import BaseKFold, get_splitter
from cv_pipeline.modeling import ModelAdapter, build_model
from cv_pipeline.runner import CrossValidationRunner, FoldResult
from cv_pipeline.submission import generate_submission

logger = logging.getLogger(__name__)


class ExperimentPipeline:
    """End-to-end cross-validation experiment for a binary target."""
    def __init__(self, config: ExperimentConfig, feature_extractor: Optional[FeatureExtractor] = None,
                 model: Optional[ModelAdapter] = None, kfold: Optional[BaseKFold] = None):
        self.config = config
        self.feature_extractor = feature_extractor or TitanicFeatureExtractor(impute_age=config.impute_age)
        self.model = model or build_model(config.model, config.output_path)
        self.kfold = kfold or get_splitter(
            n_splits=config.cv.n_splits,
            shuffle=config.cv.shuffle,
            random_state=config.cv.random_state,
            stratified=config.cv.stratified,
        )
        self.fold_results: List[FoldResult] = []
        self.summary: Optional[CVSummary] = None
        logger.info(f"Pipeline: backend={config.model.backend}, splitter={self.kfold}, output={config.output_path}")

    def load_data(self):
        train = DataLoader(self.config.train_data, id_column=self.config.id_column,
                           label_column=self.config.target_column, require_label=True).load()
        test = DataLoader(self.config.test_data, id_column=self.config.id_column,
                          label_column=self.config.target_column).load()
        return train, test

    def cross_validate(self, train: List[Row], test: List[Row]) -> CVSummary:
        runner = CrossValidationRunner(self.config, self.feature_extractor, self.kfold, self.model)
        self.fold_results = runner.run_cv(train, test)
        self.summary = aggregate_results(self.fold_results)
        return self.summary

    def report(self, summary: CVSummary) -> None:
        os.makedirs(self.config.output_path, exist_ok=True)
        importance = importance_frame(summary.feature_names, summary.feature_importances)
        importance.to_csv(os.path.join(self.config.output_path, 'feature_importance.csv'), index=False)
        if self.config.plot_importance:
            fig = plot_feature_importance(importance)
            fig.savefig(os.path.join(self.config.output_path, 'feature_importance.png'))
            plt.close(fig)
        if summary.roc_auc is not None:
            logger.info(f"CV ROC AUC: {summary.roc_auc:.4f}")

    def run(self) -> CVSummary:
        logger.info("[Pipeline] Run started.")
        start_time = time.time()
        train, test = self.load_data()
        summary = self.cross_validate(train, test)
        self.report(summary)
        generate_submission(
            summary.test_labels,
            self.config.resolved_submission_path,
            sample_submission_path=self.config.sample_submission,
            ids=[row.row_id for row in test],
            id_column=self.config.id_column,
            label_column=self.config.target_column,
        )
        logger.info(f"[Pipeline] Run complete. Time: {time.time() - start_time:.2f}s")
        return summary
