"""
===========================
PRAGMA statement builders.
===========================

Pragma renders ``PRAGMA [schema.]name[ = value | (argument)];``. A pragma
takes either a value or an argument, never both. Names outside the catalog
of known SQLite pragmas are rendered anyway, with a warning.

Factory helpers cover the common pragmas and validate enumerated values.

Example:
    >>> foreign_keys(True).build()
    'PRAGMA foreign_keys = ON;'
    >>> journal_mode('wal', schema='main').build()
    'PRAGMA main.journal_mode = WAL;'
    >>> table_info(Product).build()
    'PRAGMA table_info(product);'
"""

import enum
import logging
from typing import Any, Optional, Type, Union

from models.descriptors import model_name
from utils.naming import qualify, to_snake_case

from .exceptions import PragmaDefinitionError
from .types import quote_string

logger = logging.getLogger(__name__)

KNOWN_PRAGMAS = frozenset({
    'analysis_limit', 'application_id', 'auto_vacuum', 'automatic_index',
    'busy_timeout', 'cache_size', 'cache_spill', 'case_sensitive_like',
    'cell_size_check', 'checkpoint_fullfsync', 'collation_list',
    'compile_options', 'data_version', 'database_list', 'defer_foreign_keys',
    'encoding', 'foreign_key_check', 'foreign_key_list', 'foreign_keys',
    'freelist_count', 'fullfsync', 'function_list', 'hard_heap_limit',
    'ignore_check_constraints', 'incremental_vacuum', 'index_info',
    'index_list', 'index_xinfo', 'integrity_check', 'journal_mode',
    'journal_size_limit', 'legacy_alter_table', 'legacy_file_format',
    'locking_mode', 'max_page_count', 'mmap_size', 'module_list', 'optimize',
    'page_count', 'page_size', 'pragma_list', 'query_only', 'quick_check',
    'read_uncommitted', 'recursive_triggers', 'reverse_unordered_selects',
    'schema_version', 'secure_delete', 'shrink_memory', 'soft_heap_limit',
    'synchronous', 'table_info', 'table_list', 'table_xinfo', 'temp_store',
    'threads', 'trusted_schema', 'user_version', 'wal_autocheckpoint',
    'wal_checkpoint', 'writable_schema',
})


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return 'ON' if value else 'OFF'
    if isinstance(value, enum.Enum):
        return str(value.value)
    return str(value)


class Pragma:
    """A PRAGMA statement.

    Args:
        name: Pragma name
        schema: Optional schema qualifier (main, temp, attached name)
    """

    def __init__(self, name: str, schema: Optional[str] = None):
        if name.lower() not in KNOWN_PRAGMAS:
            logger.warning(f"⚠️ Unknown pragma '{name}', rendering it anyway")
        self.name = name
        self.schema = schema
        self._value: Optional[str] = None
        self._argument: Optional[str] = None

    def value(self, value: Any) -> 'Pragma':
        """``PRAGMA name = value``.

        Raises:
            PragmaDefinitionError: If an argument is already set
        """
        if self._argument is not None:
            logger.error(f"❌ Pragma '{self.name}' already has an argument")
            raise PragmaDefinitionError(f"Pragma '{self.name}' takes either a value or an argument, not both")
        self._value = _render(value)
        return self

    def argument(self, argument: Any) -> 'Pragma':
        """``PRAGMA name(argument)``.

        Raises:
            PragmaDefinitionError: If a value is already set
        """
        if self._value is not None:
            logger.error(f"❌ Pragma '{self.name}' already has a value")
            raise PragmaDefinitionError(f"Pragma '{self.name}' takes either a value or an argument, not both")
        self._argument = _render(argument)
        return self

    def build(self) -> str:
        text = f"PRAGMA {qualify(self.name, self.schema)}"
        if self._value is not None:
            text += f" = {self._value}"
        elif self._argument is not None:
            text += f"({self._argument})"
        return text + ";"

    def __repr__(self) -> str:
        return f"Pragma({self.build()!r})"


class JournalMode(str, enum.Enum):
    DELETE = 'DELETE'
    TRUNCATE = 'TRUNCATE'
    PERSIST = 'PERSIST'
    MEMORY = 'MEMORY'
    WAL = 'WAL'
    OFF = 'OFF'


class SynchronousMode(str, enum.Enum):
    OFF = 'OFF'
    NORMAL = 'NORMAL'
    FULL = 'FULL'
    EXTRA = 'EXTRA'


class TempStore(str, enum.Enum):
    DEFAULT = 'DEFAULT'
    FILE = 'FILE'
    MEMORY = 'MEMORY'


class AutoVacuum(str, enum.Enum):
    NONE = 'NONE'
    FULL = 'FULL'
    INCREMENTAL = 'INCREMENTAL'


class LockingMode(str, enum.Enum):
    NORMAL = 'NORMAL'
    EXCLUSIVE = 'EXCLUSIVE'


class Encoding(str, enum.Enum):
    UTF8 = 'UTF-8'
    UTF16 = 'UTF-16'
    UTF16LE = 'UTF-16le'
    UTF16BE = 'UTF-16be'


class CheckpointMode(str, enum.Enum):
    PASSIVE = 'PASSIVE'
    FULL = 'FULL'
    RESTART = 'RESTART'
    TRUNCATE = 'TRUNCATE'


def _choice(enum_type: Type[enum.Enum], value: Any, pragma: str) -> enum.Enum:
    if isinstance(value, enum_type):
        return value
    for member in enum_type:
        if str(value).lower() == member.value.lower():
            return member
    allowed = ', '.join(member.value for member in enum_type)
    logger.error(f"❌ Invalid value {value!r} for pragma '{pragma}'")
    raise PragmaDefinitionError(f"Invalid value {value!r} for pragma '{pragma}' (expected one of {allowed})")


def _flag(name: str, enabled: Optional[bool], schema: Optional[str] = None) -> Pragma:
    pragma = Pragma(name, schema)
    if enabled is not None:
        pragma.value(bool(enabled))
    return pragma


def _number(name: str, number: Optional[int], schema: Optional[str] = None) -> Pragma:
    pragma = Pragma(name, schema)
    if number is not None:
        if isinstance(number, bool) or not isinstance(number, int):
            raise PragmaDefinitionError(f"Pragma '{name}' expects an integer, got {number!r}")
        pragma.value(number)
    return pragma


def _table_argument(name: str, table: Any, schema: Optional[str] = None) -> Pragma:
    return Pragma(name, schema).argument(to_snake_case(model_name(table)))


def foreign_keys(enabled: Optional[bool] = None) -> Pragma:
    """Enable/disable foreign key enforcement; no argument queries it."""
    return _flag('foreign_keys', enabled)


def journal_mode(mode: Union[JournalMode, str, None] = None, schema: Optional[str] = None) -> Pragma:
    pragma = Pragma('journal_mode', schema)
    if mode is not None:
        pragma.value(_choice(JournalMode, mode, 'journal_mode'))
    return pragma


def synchronous(mode: Union[SynchronousMode, str, None] = None, schema: Optional[str] = None) -> Pragma:
    pragma = Pragma('synchronous', schema)
    if mode is not None:
        pragma.value(_choice(SynchronousMode, mode, 'synchronous'))
    return pragma


def encoding(value: Union[Encoding, str, None] = None) -> Pragma:
    pragma = Pragma('encoding')
    if value is not None:
        pragma.value(quote_string(_choice(Encoding, value, 'encoding').value))
    return pragma


def temp_store(mode: Union[TempStore, str, None] = None) -> Pragma:
    pragma = Pragma('temp_store')
    if mode is not None:
        pragma.value(_choice(TempStore, mode, 'temp_store'))
    return pragma


def auto_vacuum(mode: Union[AutoVacuum, str, None] = None, schema: Optional[str] = None) -> Pragma:
    pragma = Pragma('auto_vacuum', schema)
    if mode is not None:
        pragma.value(_choice(AutoVacuum, mode, 'auto_vacuum'))
    return pragma


def locking_mode(mode: Union[LockingMode, str, None] = None, schema: Optional[str] = None) -> Pragma:
    pragma = Pragma('locking_mode', schema)
    if mode is not None:
        pragma.value(_choice(LockingMode, mode, 'locking_mode'))
    return pragma


def secure_delete(mode: Union[bool, str, None] = None, schema: Optional[str] = None) -> Pragma:
    """ON, OFF or FAST."""
    pragma = Pragma('secure_delete', schema)
    if mode is None:
        return pragma
    if isinstance(mode, bool):
        return pragma.value(mode)
    if str(mode).upper() != 'FAST':
        raise PragmaDefinitionError(f"Invalid value {mode!r} for pragma 'secure_delete'")
    return pragma.value('FAST')


def busy_timeout(milliseconds: Optional[int] = None) -> Pragma:
    return _number('busy_timeout', milliseconds)


def cache_size(pages: Optional[int] = None, schema: Optional[str] = None) -> Pragma:
    """Positive values are pages, negative values are KiB."""
    return _number('cache_size', pages, schema)


def user_version(version: Optional[int] = None, schema: Optional[str] = None) -> Pragma:
    return _number('user_version', version, schema)


def application_id(identifier: Optional[int] = None, schema: Optional[str] = None) -> Pragma:
    return _number('application_id', identifier, schema)


def page_size(size: Optional[int] = None, schema: Optional[str] = None) -> Pragma:
    if size is not None and (size < 512 or size > 65536 or size & (size - 1)):
        raise PragmaDefinitionError(f"Page size must be a power of two between 512 and 65536, got {size}")
    return _number('page_size', size, schema)


def table_info(table: Any, schema: Optional[str] = None) -> Pragma:
    return _table_argument('table_info', table, schema)


def table_xinfo(table: Any, schema: Optional[str] = None) -> Pragma:
    return _table_argument('table_xinfo', table, schema)


def index_list(table: Any, schema: Optional[str] = None) -> Pragma:
    return _table_argument('index_list', table, schema)


def index_info(index_name: str, schema: Optional[str] = None) -> Pragma:
    return Pragma('index_info', schema).argument(index_name)


def index_xinfo(index_name: str, schema: Optional[str] = None) -> Pragma:
    return Pragma('index_xinfo', schema).argument(index_name)


def foreign_key_list(table: Any, schema: Optional[str] = None) -> Pragma:
    return _table_argument('foreign_key_list', table, schema)


def foreign_key_check(table: Any = None, schema: Optional[str] = None) -> Pragma:
    if table is None:
        return Pragma('foreign_key_check', schema)
    return _table_argument('foreign_key_check', table, schema)


def integrity_check(limit: Any = None, schema: Optional[str] = None) -> Pragma:
    """``limit`` is a row limit (int) or a table to check."""
    pragma = Pragma('integrity_check', schema)
    if limit is None:
        return pragma
    if isinstance(limit, int) and not isinstance(limit, bool):
        return pragma.argument(limit)
    return pragma.argument(to_snake_case(model_name(limit)))


def quick_check(limit: Any = None, schema: Optional[str] = None) -> Pragma:
    pragma = Pragma('quick_check', schema)
    if limit is None:
        return pragma
    if isinstance(limit, int) and not isinstance(limit, bool):
        return pragma.argument(limit)
    return pragma.argument(to_snake_case(model_name(limit)))


def optimize(mask: Optional[int] = None, schema: Optional[str] = None) -> Pragma:
    pragma = Pragma('optimize', schema)
    if mask is not None:
        pragma.argument(hex(mask) if isinstance(mask, int) else mask)
    return pragma


def wal_checkpoint(mode: Union[CheckpointMode, str, None] = None, schema: Optional[str] = None) -> Pragma:
    pragma = Pragma('wal_checkpoint', schema)
    if mode is not None:
        pragma.argument(_choice(CheckpointMode, mode, 'wal_checkpoint'))
    return pragma


def incremental_vacuum(pages: Optional[int] = None, schema: Optional[str] = None) -> Pragma:
    pragma = Pragma('incremental_vacuum', schema)
    if pages is not None:
        pragma.argument(pages)
    return pragma
