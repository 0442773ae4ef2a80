import argparse
import logging
import sys

from cv_pipeline.config import ExperimentConfig, load_config
from cv_pipeline.exceptions import PipelineError
from cv_pipeline.pipeline import ExperimentPipeline

logger = logging.getLogger(__name__)


def run_from_config_main(config):
    if isinstance(config, dict):
        config = ExperimentConfig.from_dict(config)
    pipeline = ExperimentPipeline(config)
    try:
        summary = pipeline.run()
    except PipelineError as e:
        logger.error(f"Experiment aborted: {e}")
        raise
    print(f"CV Accuracy: {summary.accuracy}")
    print(f"Submission saved as {config.resolved_submission_path}")
    return summary


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", required=True, help="Path to YAML config file")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    try:
        run_from_config_main(load_config(args.config))
    except PipelineError:
        sys.exit(1)
