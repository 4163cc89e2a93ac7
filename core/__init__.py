"""
=========================================================
Core infrastructure package for the schema compiler.
=========================================================

Centralized configuration and logging shared by the annotation compiler,
the SQL builders and the command-line interface.

Modules:
    config: Configuration management from environment variables
    logger: Logging configuration and utilities

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Writing scripts to {config.output_dir}")
"""

__version__ = "0.1.0"
__all__ = ['get_logger', 'setup_logging', 'config', 'Config']

from core.config import Config, config
from core.logger import get_logger, setup_logging
