"""
==========================================
Column definitions with constraint checks.
==========================================

A Column holds an identifier-cased name, a storage type and the ordered list
of rendered constraint fragments. Invariant flags record which constraint
kinds were already attached; incompatible combinations raise
ConstraintConflictError when the second constraint is added:

    GENERATED      vs PRIMARY KEY, UNIQUE, DEFAULT, FOREIGN KEY
    PRIMARY KEY    vs DEFAULT
    AUTOINCREMENT  requires an INTEGER column

A PRIMARY KEY column is implicitly NOT NULL (``has_not_null``).

Example:
    >>> column = Column('Id', StorageType.INTEGER)
    >>> column.primary_key(autoincrement=True).build()
    'id INTEGER PRIMARY KEY AUTOINCREMENT'
"""

import logging
from typing import Any, Iterable, List, Optional, Union

from utils.naming import to_snake_case

from .clauses import (
    Check,
    Collate,
    ColumnPrimaryKey,
    ConflictAction,
    Default,
    Generated,
    NotNull,
    SortOrder,
    StorageMode,
    Unique,
    named,
)
from .exceptions import ConstraintConflictError
from .expression import Expression
from .foreign_key import ForeignKeyReference
from .types import StorageType

logger = logging.getLogger(__name__)


class Column:
    """One column definition of a table.

    Args:
        name: Field name as declared on the model
        storage_type: SQLite storage class of the column
        candidates: Models that REFERENCES clauses may target

    Attributes:
        field_name: Name as declared on the model
        name: Identifier-cased column name
        storage_type: StorageType of the column
        constraints: Rendered constraint fragments, in the order added
    """

    def __init__(
        self,
        name: str,
        storage_type: StorageType = StorageType.TEXT,
        candidates: Iterable[Any] = ()
    ):
        self.field_name = name
        self.name = to_snake_case(name)
        self.storage_type = StorageType(storage_type)
        self.candidates = list(candidates)
        self.constraints: List[str] = []

        self.has_primary_key = False
        self.has_not_null = False
        self.has_unique = False
        self.has_default = False
        self.has_check = False
        self.has_collate = False
        self.has_foreign_key = False
        self.has_generated = False
        self.has_autoincrement = False

    def _conflict(self, message: str) -> None:
        logger.error(f"❌ Column '{self.field_name}': {message}")
        raise ConstraintConflictError(f"Column '{self.field_name}': {message}")

    def _append(self, clause: Any, constraint_name: Optional[str]) -> 'Column':
        self.constraints.append(named(clause.build(), constraint_name))
        return self

    def primary_key(
        self,
        sort_order: SortOrder = SortOrder.UNSORTED,
        conflict: Union[ConflictAction, str, None] = None,
        autoincrement: bool = False,
        name: Optional[str] = None
    ) -> 'Column':
        """Attach PRIMARY KEY.

        Raises:
            ConstraintConflictError: On a GENERATED or DEFAULT column, a
                column that already has PRIMARY KEY, or AUTOINCREMENT on a
                non-INTEGER column
        """
        if self.has_primary_key:
            self._conflict("PRIMARY KEY declared more than once")
        if autoincrement and self.storage_type is not StorageType.INTEGER:
            self._conflict(
                f"AUTOINCREMENT is only allowed on INTEGER PRIMARY KEY columns, not {self.storage_type.value}"
            )
        if self.has_generated:
            self._conflict("GENERATED column cannot be PRIMARY KEY")
        if self.has_default:
            self._conflict("PRIMARY KEY column cannot have DEFAULT value")

        self.has_primary_key = True
        self.has_not_null = True
        self.has_autoincrement = autoincrement
        return self._append(ColumnPrimaryKey(sort_order, conflict, autoincrement), name)

    def not_null(self, conflict: Union[ConflictAction, str, None] = None, name: Optional[str] = None) -> 'Column':
        self.has_not_null = True
        return self._append(NotNull(conflict), name)

    def unique(self, conflict: Union[ConflictAction, str, None] = None, name: Optional[str] = None) -> 'Column':
        if self.has_generated:
            self._conflict("GENERATED column cannot be UNIQUE")
        self.has_unique = True
        return self._append(Unique(conflict), name)

    def check(self, expression: Union[Expression, str], name: Optional[str] = None) -> 'Column':
        self.has_check = True
        return self._append(Check(expression), name)

    def default(self, value: Any, name: Optional[str] = None) -> 'Column':
        """Attach DEFAULT; ``value`` is a Default clause or anything Default accepts."""
        if self.has_primary_key:
            self._conflict("PRIMARY KEY column cannot have DEFAULT value")
        if self.has_generated:
            self._conflict("GENERATED column cannot have DEFAULT value")
        self.has_default = True
        clause = value if isinstance(value, Default) else Default(value)
        return self._append(clause, name)

    def collate(self, collation: str, name: Optional[str] = None) -> 'Column':
        self.has_collate = True
        return self._append(Collate(collation), name)

    def foreign_key(self, reference: Union[ForeignKeyReference, str], name: Optional[str] = None) -> 'Column':
        """Attach a column-level REFERENCES clause.

        Args:
            reference: ForeignKeyReference, or raw 'REFERENCES ...' text
                resolved against this column's candidate models
            name: Optional constraint name

        Raises:
            ConstraintConflictError: On a GENERATED column
            ReferenceSyntaxError: Malformed raw clause
            ForeignKeyResolutionError: Unresolvable target or target column
        """
        if self.has_generated:
            self._conflict("GENERATED column cannot be FOREIGN KEY")
        if isinstance(reference, str):
            reference = ForeignKeyReference.parse(reference, self.field_name, self.candidates)
        fragment = reference.build()
        self.has_foreign_key = True
        self.constraints.append(named(fragment, name))
        return self

    def generated(
        self,
        expression: Union[Expression, str],
        storage: StorageMode = StorageMode.VIRTUAL,
        always: bool = True,
        name: Optional[str] = None
    ) -> 'Column':
        """Attach [GENERATED ALWAYS ]AS (expression) STORED|VIRTUAL.

        Raises:
            ConstraintConflictError: If the column already has PRIMARY KEY,
                UNIQUE, DEFAULT or FOREIGN KEY
        """
        if self.has_primary_key:
            self._conflict("GENERATED column cannot be PRIMARY KEY")
        if self.has_unique:
            self._conflict("GENERATED column cannot be UNIQUE")
        if self.has_default:
            self._conflict("GENERATED column cannot have DEFAULT value")
        if self.has_foreign_key:
            self._conflict("GENERATED column cannot be FOREIGN KEY")
        self.has_generated = True
        return self._append(Generated(expression, storage, always), name)

    def build(self) -> str:
        text = f"{self.name} {self.storage_type.value}"
        if self.constraints:
            text += ' ' + ' '.join(self.constraints)
        return text

    def __repr__(self) -> str:
        return f"Column({self.build()!r})"
