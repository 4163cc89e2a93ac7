"""
=============================================
Comprehensive pytest suite for core/logger.py
=============================================

Sections:
---------
1. Unit tests - get_logger
2. Unit tests - setup_logging handlers
3. Unit tests - ColoredFormatter

Available markers:
------------------
unit, edge_case

How to Execute:
---------------
All tests:          pytest tests/tests_core/test_logger.py -v
"""

import logging

import pytest

from core.logger import ColoredFormatter, get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    """Put the root logger's handlers and level back after a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


# ====================
# get_logger
# ====================

@pytest.mark.unit
def test_get_logger_returns_named_logger():
    logger = get_logger('sql.test_component')

    assert logger is logging.getLogger('sql.test_component')


@pytest.mark.unit
def test_get_logger_applies_level():
    logger = get_logger('sql.test_level', level='warning')

    assert logger.level == logging.WARNING
    logger.setLevel(logging.NOTSET)


@pytest.mark.edge_case
def test_unknown_level_raises():
    with pytest.raises(ValueError, match="Unknown log level"):
        get_logger('sql.test_bad', level='LOUD')


# ====================
# setup_logging
# ====================

@pytest.mark.unit
def test_setup_logging_console_only(restore_root_logger):
    setup_logging(log_level='DEBUG', use_colors=False)

    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], logging.StreamHandler)
    assert not isinstance(root.handlers[0].formatter, ColoredFormatter)


@pytest.mark.unit
def test_setup_logging_replaces_handlers(restore_root_logger):
    setup_logging(use_colors=True)
    setup_logging(use_colors=True)

    assert len(restore_root_logger.handlers) == 1
    assert isinstance(restore_root_logger.handlers[0].formatter, ColoredFormatter)


@pytest.mark.unit
def test_setup_logging_writes_file(restore_root_logger, tmp_path):
    setup_logging(log_level='INFO', log_file='schema.log', log_dir=str(tmp_path / 'logs'), console_output=False)

    logging.getLogger('sql.test_file').info("Schema written")
    for handler in restore_root_logger.handlers:
        handler.flush()

    content = (tmp_path / 'logs' / 'schema.log').read_text(encoding='utf-8')
    assert "sql.test_file - INFO - Schema written" in content


# ====================
# ColoredFormatter
# ====================

@pytest.mark.unit
def test_colored_formatter_decorates_copy_only():
    formatter = ColoredFormatter('%(emoji)s %(levelname)s %(message)s')
    record = logging.LogRecord('sql', logging.ERROR, __file__, 1, 'boom', None, None)

    output = formatter.format(record)

    assert output.startswith('❌ \033[31mERROR\033[0m boom')
    assert record.levelname == 'ERROR'
    assert not hasattr(record, 'emoji')
