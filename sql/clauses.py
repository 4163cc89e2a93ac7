"""
================================================
Constraint clause builders for column and table.
================================================

Each builder renders exactly one constraint kind. Column-level builders are
appended to a Column's fragment list; table-level builders are appended to a
Table's constraint list after the column definitions.

Column level:
    NotNull, Unique, Check, Collate, Default, Generated, ColumnPrimaryKey

Table level:
    TablePrimaryKey, TableUnique, Check (shared with column level)

Shared pieces:
    ConflictAction / conflict_clause: ON CONFLICT <action>
    SortOrder: ASC / DESC / unsorted
    IndexedColumn: column name or expression with collation and sort order
    named: CONSTRAINT <name> prefix

Example:
    >>> from sql.clauses import ColumnPrimaryKey, ConflictAction, SortOrder
    >>>
    >>> ColumnPrimaryKey(SortOrder.DESC, ConflictAction.REPLACE, autoincrement=True).build()
    'PRIMARY KEY DESC ON CONFLICT REPLACE AUTOINCREMENT'
"""

import enum
import logging
import re
from typing import Any, Optional, Union

from utils.naming import to_snake_case

from .exceptions import QueryDefinitionError
from .expression import Expression, literal
from .types import LiteralValue, quote_string

logger = logging.getLogger(__name__)


class ConflictAction(str, enum.Enum):
    """Conflict resolution algorithms for ON CONFLICT clauses."""

    ROLLBACK = 'ROLLBACK'
    ABORT = 'ABORT'
    FAIL = 'FAIL'
    IGNORE = 'IGNORE'
    REPLACE = 'REPLACE'

    def __str__(self) -> str:
        return self.value

    @classmethod
    def lookup(cls, token: str) -> Optional['ConflictAction']:
        """Conflict action named by ``token``, or None when unknown."""
        try:
            return cls(token.upper())
        except ValueError:
            return None

    @classmethod
    def coerce(cls, value: Union['ConflictAction', str, None]) -> Optional['ConflictAction']:
        """Normalize a builder argument; unknown names raise QueryDefinitionError."""
        if value is None or isinstance(value, cls):
            return value
        action = cls.lookup(str(value))
        if action is None:
            raise QueryDefinitionError(f"Unknown conflict action '{value}'")
        return action


def conflict_clause(action: Optional[ConflictAction]) -> str:
    """' ON CONFLICT <action>' or '' when no action is set."""
    if action is None:
        return ''
    return f" ON CONFLICT {action.value}"


class SortOrder(str, enum.Enum):
    UNSORTED = ''
    ASC = 'ASC'
    DESC = 'DESC'

    def __str__(self) -> str:
        return self.value


def named(fragment: str, name: Optional[str] = None) -> str:
    """Prefix a rendered constraint with CONSTRAINT <name> when named."""
    if name:
        return f"CONSTRAINT {name} {fragment}"
    return fragment


def _expression_text(expression: Union[Expression, str]) -> str:
    if isinstance(expression, Expression):
        return expression.build()
    return str(expression)


class NotNull:
    def __init__(self, conflict: Union[ConflictAction, str, None] = None):
        self.conflict = ConflictAction.coerce(conflict)

    def build(self) -> str:
        return 'NOT NULL' + conflict_clause(self.conflict)


class Unique:
    """Column-level UNIQUE."""

    def __init__(self, conflict: Union[ConflictAction, str, None] = None):
        self.conflict = ConflictAction.coerce(conflict)

    def build(self) -> str:
        return 'UNIQUE' + conflict_clause(self.conflict)


class Check:
    """CHECK (<expression>), usable at column and table level."""

    def __init__(self, expression: Union[Expression, str]):
        self.expression = expression

    def build(self) -> str:
        return f"CHECK ({_expression_text(self.expression)})"


class Collate:
    def __init__(self, collation: str):
        if not collation:
            raise QueryDefinitionError("COLLATE needs a collation name")
        self.collation = collation

    def build(self) -> str:
        return f"COLLATE {self.collation}"


_NUMBER_PATTERN = re.compile(r'^[+-]?(?:0[xX][0-9a-fA-F]+|(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)$')
_QUOTES = ("'", '"')


class Default:
    """DEFAULT <value>.

    Expressions render in parentheses, literal keywords and numbers as is,
    Python strings as quoted SQL strings.

    Args:
        value: Expression, LiteralValue, number, str, bool or None
        verbatim: Render ``value`` (a str) exactly as given

    Example:
        >>> Default(Expression("datetime('now')")).build()
        "DEFAULT (datetime('now'))"
        >>> Default(LiteralValue.CURRENT_TIMESTAMP).build()
        'DEFAULT CURRENT_TIMESTAMP'
    """

    def __init__(self, value: Any, verbatim: bool = False):
        if verbatim:
            self.text = str(value)
        elif isinstance(value, Expression):
            self.text = f"({value.build()})"
        else:
            self.text = literal(value).build()

    def build(self) -> str:
        return f"DEFAULT {self.text}"


def parse_default(text: str) -> Default:
    """Classify annotation text following DEFAULT.

    Accepts a parenthesized expression, a quoted string (kept quoted),
    a signed number, a literal keyword (NULL, TRUE, FALSE, CURRENT_TIME,
    CURRENT_DATE, CURRENT_TIMESTAMP) or any other bare expression.

    Raises:
        QueryDefinitionError: If ``text`` is empty
    """
    content = text.strip()
    if not content:
        raise QueryDefinitionError("DEFAULT needs a value")

    if content.startswith('(') and content.endswith(')'):
        return Default(Expression(content[1:-1].strip()))

    if len(content) >= 2 and content[0] in _QUOTES and content[-1] == content[0]:
        quote = content[0]
        return Default(quote_string(content[1:-1].replace(quote * 2, quote)), verbatim=True)

    upper = content.upper()
    if upper in LiteralValue.__members__:
        return Default(LiteralValue[upper])

    if _NUMBER_PATTERN.match(content):
        return Default(content, verbatim=True)

    logger.debug(f"DEFAULT value {content!r} rendered as a bare expression")
    return Default(content, verbatim=True)


class StorageMode(str, enum.Enum):
    """Storage of a generated column."""

    VIRTUAL = 'VIRTUAL'
    STORED = 'STORED'

    def __str__(self) -> str:
        return self.value


class Generated:
    """[GENERATED ALWAYS ]AS (<expression>) STORED|VIRTUAL."""

    def __init__(
        self,
        expression: Union[Expression, str],
        storage: StorageMode = StorageMode.VIRTUAL,
        always: bool = True
    ):
        self.expression = expression
        self.storage = StorageMode(storage)
        self.always = always

    def build(self) -> str:
        prefix = 'GENERATED ALWAYS ' if self.always else ''
        return f"{prefix}AS ({_expression_text(self.expression)}) {self.storage.value}"


class ColumnPrimaryKey:
    """Column-level PRIMARY KEY[ ASC|DESC][ ON CONFLICT x][ AUTOINCREMENT]."""

    def __init__(
        self,
        sort_order: SortOrder = SortOrder.UNSORTED,
        conflict: Union[ConflictAction, str, None] = None,
        autoincrement: bool = False
    ):
        self.sort_order = SortOrder(sort_order)
        self.conflict = ConflictAction.coerce(conflict)
        self.autoincrement = autoincrement

    def build(self) -> str:
        text = 'PRIMARY KEY'
        if self.sort_order is not SortOrder.UNSORTED:
            text += f" {self.sort_order.value}"
        text += conflict_clause(self.conflict)
        if self.autoincrement:
            text += ' AUTOINCREMENT'
        return text


class IndexedColumn:
    """A column name or expression used by indexes and table constraints.

    Names are identifier-cased at render. ASC/DESC: the first call wins.

    Example:
        >>> IndexedColumn('CreatedAt').collate('NOCASE').desc().asc().build()
        'created_at COLLATE NOCASE DESC'
    """

    def __init__(self, column: Union[str, Expression]):
        self.column = column
        self.collation: Optional[str] = None
        self.sort_order = SortOrder.UNSORTED

    @classmethod
    def of(cls, column: Union['IndexedColumn', str, Expression]) -> 'IndexedColumn':
        if isinstance(column, IndexedColumn):
            return column
        return cls(column)

    def collate(self, collation: str) -> 'IndexedColumn':
        self.collation = collation
        return self

    def asc(self) -> 'IndexedColumn':
        if self.sort_order is SortOrder.UNSORTED:
            self.sort_order = SortOrder.ASC
        return self

    def desc(self) -> 'IndexedColumn':
        if self.sort_order is SortOrder.UNSORTED:
            self.sort_order = SortOrder.DESC
        return self

    def build(self) -> str:
        if isinstance(self.column, Expression):
            text = self.column.build()
        else:
            text = to_snake_case(self.column)
        if self.collation:
            text += f" COLLATE {self.collation}"
        if self.sort_order is not SortOrder.UNSORTED:
            text += f" {self.sort_order.value}"
        return text


class _TableKey:
    keyword = ''

    def __init__(self, *columns: Union[IndexedColumn, str, Expression]):
        if not columns:
            raise QueryDefinitionError(f"{self.keyword} needs at least one column")
        self.columns = [IndexedColumn.of(column) for column in columns]
        self.conflict: Optional[ConflictAction] = None

    def on_conflict(self, action: Union[ConflictAction, str]) -> '_TableKey':
        self.conflict = ConflictAction.coerce(action)
        return self

    def build(self) -> str:
        columns = ', '.join(column.build() for column in self.columns)
        return f"{self.keyword} ({columns}){conflict_clause(self.conflict)}"


class TablePrimaryKey(_TableKey):
    """Table-level PRIMARY KEY (cols)[ ON CONFLICT x]."""

    keyword = 'PRIMARY KEY'


class TableUnique(_TableKey):
    """Table-level UNIQUE (cols)[ ON CONFLICT x]."""

    keyword = 'UNIQUE'
