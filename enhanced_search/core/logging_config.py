"""
Centralized logging configuration for Enhanced Search

Library modules only create ``logging.getLogger(__name__)`` loggers. Handlers
are installed here, once, by the CLI or by an application embedding the pipeline.
"""

import os
import logging
import sys
from typing import Optional

from .config import Config

PACKAGE_LOGGER = "enhanced_search"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_logging_configured = False


def level_from_config(config: Config) -> str:
    """DEBUG when the debug flag is set, otherwise the configured log level"""
    return "DEBUG" if config.debug else config.log_level


def resolve_level(default_level: str = "INFO") -> str:
    # Package-specific variable wins over the generic one
    return (
        os.getenv("ENHANCED_SEARCH_LOG_LEVEL") or os.getenv("LOG_LEVEL") or default_level
    ).upper()


def configure_logging(default_level: str = "INFO", component_name: Optional[str] = None) -> logging.Logger:
    """Configure logging with centralized settings.

    Args:
        default_level: Level used when neither ENHANCED_SEARCH_LOG_LEVEL nor LOG_LEVEL is set
        component_name: Logger to configure; defaults to the package logger

    Returns:
        Logger instance for the component
    """
    global _logging_configured

    log_level = resolve_level(default_level)

    # Only configure root logger once
    if not _logging_configured:
        root = logging.getLogger()
        if not root.handlers:
            logging.basicConfig(
                level=log_level,
                format=LOG_FORMAT,
                handlers=[logging.StreamHandler(sys.stderr)]
            )
        else:
            # Respect existing handlers
            root.setLevel(log_level)
        _logging_configured = True

    logger = logging.getLogger(component_name or PACKAGE_LOGGER)
    logger.setLevel(log_level)
    return logger
