import logging
import logging.config
from pathlib import Path
from typing import Optional, Union

import yaml

DEFAULT_LOGGING_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "logging_config.yaml"


def setup_logging(config_path: Optional[Union[str, Path]] = None) -> None:
    """
    Set up logging configuration from a YAML file.

    Falls back to ``basicConfig`` at INFO when the file is missing or cannot be applied.
    Meant to be called once from an application entry point, not on import.

    Args:
        config_path: Path to the logging configuration YAML file.
    """
    path = Path(config_path) if config_path else DEFAULT_LOGGING_CONFIG_PATH
    if path.exists():
        try:
            with open(path, "rt") as f:
                log_config = yaml.safe_load(f.read())
            logging.config.dictConfig(log_config)
            logging.getLogger(__name__).info(f"Logging configured successfully from {path}")
        except Exception as e:
            logging.basicConfig(level=logging.INFO)
            logging.getLogger(__name__).error(f"Error loading logging configuration from {path}: {e}. Using basicConfig.")
    else:
        logging.basicConfig(level=logging.INFO)
        logging.getLogger(__name__).warning(f"Logging configuration file not found at {path}. Using basicConfig.")