import argparse
import logging
import sys
import os
import yaml

from cv_pipeline.config import validate_config
from cv_pipeline.exceptions import ConfigurationError


def main():
    parser = argparse.ArgumentParser(description='Cross-validation experiment runner')
    parser.add_argument('--config', type=str, required=True, help='Path to YAML config file')
    args = parser.parse_args()

    if not os.path.exists(args.config):
        print(f"Config file {args.config} does not exist.")
        sys.exit(1)

    with open(args.config, 'r') as f:
        config = yaml.safe_load(f)

    try:
        validate_config(config)
    except ConfigurationError as e:
        print(f"Config validation error: {e}")
        sys.exit(1)

    logging.basicConfig(level=config.get('log_level', 'INFO'), format='%(asctime)s - %(levelname)s - %(message)s')

    print(f"\n[INFO] Running experiment: {config['train_data']} -> {config.get('output_path', './output')}\n")
    print(f"[INFO] Config summary:")
    for k, v in config.items():
        print(f"  {k}: {v}")
    print()

    import run_from_config
    run_from_config.run_from_config_main(config)

if __name__ == '__main__':
    main()
