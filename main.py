"""
=========================================================
Command-line entry point for the SQLite schema compiler.
=========================================================

Loads a Schema object (or a callable returning one) from a
``module:attribute`` target, then prints or writes its build script.

The target module defines the data models and the Schema; importing it
compiles every model annotation, so annotation errors surface here with
every invalid field listed.

Usage:
    # Print the build script of shop/schema.py's SCHEMA object
    python main.py --target shop.schema:SCHEMA

    # Write it to a file, rejecting unknown annotation tokens
    python main.py --target shop.schema:build_schema --output build/shop.sql --strict

    # One statement per block, for feeding a driver
    python main.py --target shop.schema:SCHEMA --statements

Example:
    >>> from main import SchemaScriptGenerator
    >>>
    >>> generator = SchemaScriptGenerator('shop.schema:SCHEMA')
    >>> generator.write('build/shop.sql')
"""

import argparse
import importlib
import os
import sys
from pathlib import Path
from typing import List, Optional, Union

from core.config import config
from core.logger import get_logger, setup_logging
from sql.exceptions import SchemaError, TableDefinitionError
from sql.schema import Schema

logger = get_logger(__name__)


class GeneratorError(Exception):
    """Exception raised when a schema target cannot be loaded."""
    pass


class SchemaScriptGenerator:
    """
    Loads a Schema from a ``module:attribute`` target and renders it.

    Attributes:
        target: The ``module:attribute`` reference
        strict: Reject unknown annotation tokens while loading

    Example:
        >>> generator = SchemaScriptGenerator('shop.schema:SCHEMA', strict=True)
        >>> print(generator.render())
    """

    def __init__(self, target: str, strict: bool = False):
        self.target = target
        self.strict = strict
        self._schema: Optional[Schema] = None

    def load_schema(self) -> Schema:
        """
        Import the target and resolve it to a Schema.

        Returns:
            The loaded Schema

        Raises:
            GeneratorError: If the target is malformed, cannot be imported,
                or does not resolve to a Schema
            SchemaError: If building the schema fails
        """
        if self._schema is not None:
            return self._schema

        module_name, separator, attribute = self.target.partition(':')
        if not separator or not module_name or not attribute:
            raise GeneratorError(f"Target must look like 'module:attribute', got '{self.target}'")

        # Targets are resolved relative to the working directory
        cwd = os.getcwd()
        if cwd not in sys.path:
            sys.path.insert(0, cwd)

        previous_strict = config.schema.strict_annotations
        if self.strict:
            config.schema.strict_annotations = True
        try:
            obj = self._resolve(module_name, attribute)
        finally:
            config.schema.strict_annotations = previous_strict

        if not isinstance(obj, Schema):
            raise GeneratorError(f"Target '{self.target}' resolved to {type(obj).__name__}, expected Schema")

        logger.info(f"✅ Loaded {obj!r} from '{self.target}'")
        self._schema = obj
        return obj

    def _resolve(self, module_name: str, attribute: str) -> object:
        """Import the target module and evaluate the attribute (calling it if it is a factory)."""
        try:
            if self.strict and module_name in sys.modules:
                # Tables compiled at import time must be compiled again under strict parsing
                module = importlib.reload(sys.modules[module_name])
            else:
                module = importlib.import_module(module_name)
        except ImportError as e:
            logger.error(f"❌ Cannot import '{module_name}': {e}")
            raise GeneratorError(f"Cannot import '{module_name}': {e}") from e

        try:
            obj = getattr(module, attribute)
        except AttributeError as e:
            logger.error(f"❌ Module '{module_name}' has no attribute '{attribute}'")
            raise GeneratorError(f"Module '{module_name}' has no attribute '{attribute}'") from e

        if callable(obj) and not isinstance(obj, Schema):
            obj = obj()
        return obj

    def render(self, statements: bool = False) -> str:
        """
        Render the build script.

        Args:
            statements: Render one statement per block instead of the script

        Returns:
            SQL text
        """
        schema = self.load_schema()
        if statements:
            return "\n\n".join(schema.statements()) + "\n"
        return schema.build()

    def write(self, path: Union[str, Path]) -> Path:
        """
        Write the build script. Relative paths land in the configured output directory.

        Returns:
            The path written
        """
        target = Path(path)
        if not target.is_absolute() and target.parent == Path('.'):
            target = config.schema.ensure_output_dir() / target
        return self.load_schema().write(target)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line interface for the schema compiler.

    Exit Codes:
        0: Success
        1: Error
        130: User interrupt (Ctrl+C)
    """
    parser = argparse.ArgumentParser(
        description="SQLite schema compiler - render annotated models as a build script",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print the script
  python main.py --target shop.schema:SCHEMA

  # Write it to build/shop.sql
  python main.py --target shop.schema:SCHEMA --output shop.sql

  # Fail on unknown annotation tokens, with debug output
  python main.py --target shop.schema:SCHEMA --strict --log-level DEBUG
        """
    )

    parser.add_argument(
        '--target',
        required=True,
        help="Schema to render, as 'module:attribute' (a Schema or a callable returning one)"
    )
    parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='Write the script to this file instead of stdout (bare file names go to SCHEMA_OUTPUT_DIR)'
    )
    parser.add_argument(
        '--statements',
        action='store_true',
        help='Print each statement as its own block'
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Reject unknown annotation tokens'
    )

    # Logging options
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=config.log_level,
        help='Log level (default from LOG_LEVEL)'
    )
    parser.add_argument(
        '--log-file',
        default=config.logging.log_file,
        help='Also log to this file inside LOG_DIR'
    )
    parser.add_argument(
        '--no-color',
        action='store_true',
        help='Disable colored console output'
    )

    args = parser.parse_args(argv)

    setup_logging(
        log_level=args.log_level,
        log_file=args.log_file,
        log_dir=str(config.logging.log_dir),
        use_colors=config.logging.use_colors and not args.no_color
    )

    try:
        generator = SchemaScriptGenerator(args.target, strict=args.strict)

        if args.output:
            generator.write(args.output)
        else:
            sys.stdout.write(generator.render(statements=args.statements))
        return 0

    except TableDefinitionError as e:
        logger.error(f"❌ Model '{e.model_name}' has invalid fields:")
        for field_error in e.field_errors:
            logger.error(f"   - {field_error}")
        return 1
    except (GeneratorError, SchemaError) as e:
        logger.error(f"❌ Schema generation failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("⚠️  Operation interrupted by user")
        return 130


if __name__ == '__main__':
    sys.exit(main())
