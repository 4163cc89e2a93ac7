"""
===============================================
Configuration management for the schema tools.
===============================================

Loads settings from environment variables (.env file) and exposes a
centralized Config singleton shared by the annotation compiler, the
schema writer and the command-line interface.

The configuration covers:
- Annotation parsing policy (lenient vs. strict handling of unknown tokens)
- The metadata key under which dataclass / SQLAlchemy fields carry annotations
- Output location for generated build scripts
- Logging defaults for the CLI

Example:
    >>> from core.config import config
    >>>
    >>> if config.strict_annotations:
    ...     print("Unknown annotation tokens are rejected")
    >>> print(config.annotation_key)
    sql
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

_TRUTHY = {'1', 'true', 'yes', 'on'}


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset or empty

    Returns:
        True if the variable holds one of 1/true/yes/on (case-insensitive)
    """
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass
class SchemaConfig:
    """Annotation compiler and schema output settings.

    Attributes:
        strict_annotations: Reject unrecognized annotation tokens instead of skipping them
        annotation_key: Metadata key holding the annotation string on model fields
        output_dir: Directory where generated build scripts are written
    """

    strict_annotations: bool
    annotation_key: str
    output_dir: Path

    def ensure_output_dir(self) -> Path:
        """Create the output directory if it doesn't exist.

        Returns:
            The output directory path
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir


@dataclass
class LoggingConfig:
    """Logging defaults used by the command-line interface.

    Attributes:
        level: Log level name (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        log_file: Optional log file name
        log_dir: Directory for the log file
        use_colors: Colored console output
    """

    level: str
    log_file: Optional[str]
    log_dir: Path
    use_colors: bool


class Config:
    """Centralized configuration manager.

    Attributes:
        schema: SchemaConfig with annotation and output settings
        logging: LoggingConfig with logging defaults
        project_root: Absolute path to the project root directory

    Properties:
        strict_annotations: Strict annotation parsing flag
        annotation_key: Field metadata key for annotations
        output_dir: Build script output directory
        log_level: Default log level name

    Example:
        >>> config = Config()
        >>> config.schema.strict_annotations = True
        >>> config.annotation_key
        'sql'
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.project_root = Path(__file__).parent.parent

        output_dir = Path(os.getenv('SCHEMA_OUTPUT_DIR', 'build'))
        if not output_dir.is_absolute():
            output_dir = self.project_root / output_dir

        self.schema = SchemaConfig(
            strict_annotations=_env_flag('SCHEMA_STRICT_ANNOTATIONS', False),
            annotation_key=os.getenv('SCHEMA_ANNOTATION_KEY', 'sql'),
            output_dir=output_dir
        )

        self.logging = LoggingConfig(
            level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            log_file=os.getenv('LOG_FILE') or None,
            log_dir=Path(os.getenv('LOG_DIR', 'logs')),
            use_colors=_env_flag('LOG_COLORS', True)
        )

    @property
    def strict_annotations(self) -> bool:
        """Whether unknown annotation tokens raise instead of being skipped."""
        return self.schema.strict_annotations

    @property
    def annotation_key(self) -> str:
        """Metadata key that carries the annotation string."""
        return self.schema.annotation_key

    @property
    def output_dir(self) -> Path:
        """Directory for generated build scripts."""
        return self.schema.output_dir

    @property
    def log_level(self) -> str:
        """Default log level name."""
        return self.logging.level


# Global configuration instance
config = Config()
