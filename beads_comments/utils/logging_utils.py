import logging
import logging.config
from pathlib import Path
from typing import Optional, Union

import yaml

from ..config.settings import get_settings

PACKAGE_LOGGER_NAME = "beads_comments"


def setup_logging(
    config_path: Optional[Union[str, Path]] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Set up logging configuration from a YAML file.

    Args:
        config_path: Path to the logging configuration YAML file. Defaults to the
            ``logging_config_path`` setting.
        log_level: Optional level forced onto the package logger after loading
            (DEBUG, INFO, WARNING, ERROR).
    """
    settings = get_settings()
    path = Path(config_path or settings.logging_config_path)

    if path.exists():
        try:
            with open(path, "rt", encoding="utf-8") as f:
                log_config = yaml.safe_load(f.read())
            logging.config.dictConfig(log_config)
            logging.getLogger(__name__).debug("Logging configured from %s", path)
        except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
            logging.basicConfig(level=logging.INFO)
            logging.error(f"Error loading logging configuration from {path}: {e}. Using basicConfig.")
    else:
        logging.basicConfig(level=logging.INFO)
        logging.warning(f"Logging configuration file not found at {path}. Using basicConfig.")

    level = (log_level or settings.log_level).upper()
    logging.getLogger(PACKAGE_LOGGER_NAME).setLevel(level)
