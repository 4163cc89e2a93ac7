"""
============================================================
Foreign-key references: parsing, resolution and rendering.
============================================================

A ForeignKeyReference links owning column(s) to a target model. It is built
either from a raw REFERENCES clause found in an annotation, or directly via
the builder API for table-level constraints.

Raw clause grammar:
    REFERENCES target [(col, ...)]
        [ON DELETE action] [ON UPDATE action] [MATCH name]
        [DEFERRABLE | NOT DEFERRABLE [INITIALLY DEFERRED | INITIALLY IMMEDIATE]]

Actions: CASCADE, SET NULL, SET DEFAULT, RESTRICT, NO ACTION

The target is resolved by exact model name against the candidate models
given to the Table. Referenced columns must be fields of the target.

Example:
    >>> ref = ForeignKeyReference.parse(
    ...     'REFERENCES Category (Id) ON DELETE SET NULL', 'CategoryId', [Category]
    ... )
    >>> ref.build()
    'REFERENCES category (id) ON DELETE SET NULL'
    >>>
    >>> ForeignKeyReference.table_level(Category, 'CategoryId').target_columns('Id').build()
    'FOREIGN KEY (category_id) REFERENCES category (id)'
"""

import enum
import logging
from typing import Any, Iterable, List, Optional, Sequence

from models.descriptors import ModelDescriptor, describe_model
from utils.naming import join_identifiers, to_snake_case

from .exceptions import AnnotationSyntaxError, ForeignKeyResolutionError, ReferenceSyntaxError
from .tokenizer import TokenKind, TokenStream

logger = logging.getLogger(__name__)


class RowAction(str, enum.Enum):
    """ON DELETE / ON UPDATE actions."""

    CASCADE = 'CASCADE'
    SET_NULL = 'SET NULL'
    SET_DEFAULT = 'SET DEFAULT'
    RESTRICT = 'RESTRICT'
    NO_ACTION = 'NO ACTION'

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> 'RowAction':
        """Row action from its SQL text, e.g. 'set null'.

        Raises:
            ReferenceSyntaxError: If ``text`` is not a row action
        """
        normalized = ' '.join(text.upper().split())
        try:
            return cls(normalized)
        except ValueError:
            raise ReferenceSyntaxError(f"Invalid row action '{text}'") from None


class DeferrableAction(str, enum.Enum):
    """INITIALLY qualifier of a DEFERRABLE / NOT DEFERRABLE clause."""

    NONE = ''
    INITIALLY_DEFERRED = 'INITIALLY DEFERRED'
    INITIALLY_IMMEDIATE = 'INITIALLY IMMEDIATE'

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> 'DeferrableAction':
        """Raises ReferenceSyntaxError for anything but the two qualifiers or ''."""
        normalized = ' '.join(text.upper().split())
        try:
            return cls(normalized)
        except ValueError:
            raise ReferenceSyntaxError(f"Invalid deferrable qualifier '{text}'") from None


# Clause starters of the tail, each as a tuple of words
_ON_DELETE = ('ON', 'DELETE')
_ON_UPDATE = ('ON', 'UPDATE')
_MATCH = ('MATCH',)
_DEFERRABLE = ('DEFERRABLE',)
_NOT_DEFERRABLE = ('NOT', 'DEFERRABLE')
_TAIL_CLAUSES = (_ON_DELETE, _ON_UPDATE, _MATCH, _NOT_DEFERRABLE, _DEFERRABLE)


class ForeignKeyReference:
    """A foreign-key reference from owning column(s) to a target model.

    Attributes:
        target: Target model as a ModelDescriptor
        columns: Owning column names, as declared on the model
        referenced_columns: Target column names, as declared on the target
        is_table_level: True for FOREIGN KEY (...) table constraints
    """

    def __init__(
        self,
        target: Any,
        columns: Sequence[str],
        referenced_columns: Sequence[str] = (),
        is_table_level: bool = False
    ):
        if not columns:
            raise ForeignKeyResolutionError("A foreign key needs at least one owning column")
        self.target: ModelDescriptor = describe_model(target)
        self.columns: List[str] = list(columns)
        self.referenced_columns: List[str] = []
        self.is_table_level = is_table_level

        self.on_delete_action: Optional[RowAction] = None
        self.on_update_action: Optional[RowAction] = None
        self.match_name: Optional[str] = None
        self._deferrable: Optional[str] = None
        self._initially = DeferrableAction.NONE

        if referenced_columns:
            self.target_columns(*referenced_columns)

    @classmethod
    def table_level(cls, target: Any, *columns: str) -> 'ForeignKeyReference':
        """Table-level ``FOREIGN KEY (columns) REFERENCES target`` builder."""
        return cls(target, columns, is_table_level=True)

    @classmethod
    def column_level(cls, column: str, target: Any, *target_columns: str) -> 'ForeignKeyReference':
        """Column-level ``REFERENCES target[ (col)]`` builder."""
        return cls(target, [column], target_columns)

    def target_columns(self, *columns: str) -> 'ForeignKeyReference':
        """Set the referenced columns; their count must match the owning columns.

        Raises:
            ForeignKeyResolutionError: On a column-count mismatch
        """
        if len(columns) != len(self.columns):
            logger.error(
                f"❌ Foreign key to '{self.target.name}' lists {len(columns)} target column(s) "
                f"for {len(self.columns)} owning column(s)"
            )
            raise ForeignKeyResolutionError(
                f"Foreign key to '{self.target.name}' has {len(self.columns)} owning column(s) "
                f"but {len(columns)} target column(s)"
            )
        self.referenced_columns = list(columns)
        return self

    def on_delete(self, action: Any) -> 'ForeignKeyReference':
        self.on_delete_action = action if isinstance(action, RowAction) else RowAction.parse(str(action))
        return self

    def on_update(self, action: Any) -> 'ForeignKeyReference':
        self.on_update_action = action if isinstance(action, RowAction) else RowAction.parse(str(action))
        return self

    def match(self, name: str) -> 'ForeignKeyReference':
        self.match_name = name
        return self

    def deferrable(self, action: Any = DeferrableAction.NONE) -> 'ForeignKeyReference':
        """DEFERRABLE[ INITIALLY ...]; no-op once NOT DEFERRABLE is set."""
        return self._set_deferrable('DEFERRABLE', action)

    def not_deferrable(self, action: Any = DeferrableAction.NONE) -> 'ForeignKeyReference':
        """NOT DEFERRABLE[ INITIALLY ...]; no-op once DEFERRABLE is set."""
        return self._set_deferrable('NOT DEFERRABLE', action)

    def _set_deferrable(self, keyword: str, action: Any) -> 'ForeignKeyReference':
        if self._deferrable is not None and self._deferrable != keyword:
            logger.debug(f"Ignoring {keyword} on foreign key to '{self.target.name}': {self._deferrable} already set")
            return self
        self._deferrable = keyword
        if isinstance(action, DeferrableAction):
            self._initially = action
        else:
            self._initially = DeferrableAction.parse(str(action))
        return self

    @property
    def deferrable_state(self) -> Optional[str]:
        """'DEFERRABLE', 'NOT DEFERRABLE' or None."""
        return self._deferrable

    def _check_target_columns(self) -> None:
        known = self.target.field_names
        for column in self.referenced_columns:
            if column not in known:
                logger.error(f"❌ Column '{column}' not found in foreign table '{self.target.name}'")
                raise ForeignKeyResolutionError(
                    f"Column '{column}' not found in foreign table '{self.target.name}'"
                )

    def build(self) -> str:
        """Render the reference.

        Raises:
            ForeignKeyResolutionError: If a referenced column is not a field of the target
        """
        self._check_target_columns()

        text = ''
        if self.is_table_level:
            text = f"FOREIGN KEY ({join_identifiers(self.columns)}) "
        text += f"REFERENCES {to_snake_case(self.target.name)}"
        if self.referenced_columns:
            text += f" ({join_identifiers(self.referenced_columns)})"
        if self.on_delete_action is not None:
            text += f" ON DELETE {self.on_delete_action.value}"
        if self.on_update_action is not None:
            text += f" ON UPDATE {self.on_update_action.value}"
        if self.match_name:
            text += f" MATCH {self.match_name}"
        if self._deferrable is not None:
            text += f" {self._deferrable}"
            if self._initially is not DeferrableAction.NONE:
                text += f" {self._initially.value}"
        return text

    def __repr__(self) -> str:
        return f"ForeignKeyReference({self.columns!r} -> {self.target.name!r})"

    @classmethod
    def parse(cls, text: str, column: str, candidates: Iterable[Any]) -> 'ForeignKeyReference':
        """Parse a raw REFERENCES clause for one owning column.

        Args:
            text: Clause text starting with REFERENCES
            column: Owning column name (as declared on the model)
            candidates: Models the target is resolved against

        Returns:
            Resolved column-level ForeignKeyReference

        Raises:
            ReferenceSyntaxError: Malformed clause or invalid action
            ForeignKeyResolutionError: Unknown target or column-count mismatch
        """
        try:
            stream = TokenStream(text.strip())
        except AnnotationSyntaxError as e:
            raise ReferenceSyntaxError(str(e)) from e

        if not stream.accept_word('REFERENCES'):
            first = stream.peek().text if not stream.at_end else 'nothing'
            raise ReferenceSyntaxError(f"Reference clause must start with REFERENCES, found {first!r}")

        target_token = stream.peek()
        if target_token is None or target_token.kind not in (TokenKind.WORD, TokenKind.STRING):
            raise ReferenceSyntaxError(f"Missing target table in {text!r}")
        stream.advance()
        target_name = target_token.value

        referenced = cls._parse_column_list(stream, text)
        reference = cls(_resolve_target(target_name, candidates), [column], referenced)
        reference._parse_tail(stream, text)
        return reference

    @staticmethod
    def _parse_column_list(stream: TokenStream, text: str) -> List[str]:
        token = stream.peek()
        if token is None or token.kind is not TokenKind.LPAREN:
            return []
        stream.advance()

        columns = []
        expect_name = True
        while True:
            token = stream.peek()
            if token is None:
                raise ReferenceSyntaxError(f"Unclosed column list in {text!r}")
            stream.advance()
            if token.kind is TokenKind.RPAREN and not expect_name:
                return columns
            if expect_name and token.kind in (TokenKind.WORD, TokenKind.STRING):
                columns.append(token.value)
                expect_name = False
            elif not expect_name and token.kind is TokenKind.COMMA:
                expect_name = True
            else:
                raise ReferenceSyntaxError(f"Unexpected {token.text!r} in column list of {text!r}")

    def _parse_tail(self, stream: TokenStream, text: str) -> None:
        while not stream.at_end:
            clause = _clause_at(stream)
            if clause is None:
                raise ReferenceSyntaxError(f"Unexpected {stream.peek().text!r} in {text!r}")
            stream.position += len(clause)

            body_start = stream.position
            while not stream.at_end and _clause_at(stream) is None:
                stream.advance()
            body = stream.span(body_start, stream.position)

            if clause == _ON_DELETE:
                self.on_delete(RowAction.parse(body))
            elif clause == _ON_UPDATE:
                self.on_update(RowAction.parse(body))
            elif clause == _MATCH:
                if not body or len(body.split()) != 1:
                    raise ReferenceSyntaxError(f"MATCH needs exactly one name in {text!r}")
                self.match(body)
            elif clause == _DEFERRABLE:
                self.deferrable(DeferrableAction.parse(body))
            else:
                self.not_deferrable(DeferrableAction.parse(body))


def _clause_at(stream: TokenStream) -> Optional[tuple]:
    for clause in _TAIL_CLAUSES:
        if all(stream.peek_word(word, offset=offset) for offset, word in enumerate(clause)):
            return clause
    return None


def _resolve_target(name: str, candidates: Iterable[Any]) -> ModelDescriptor:
    for candidate in candidates:
        descriptor = describe_model(candidate)
        if descriptor.name == name:
            return descriptor
    logger.error(f"❌ No candidate model matches foreign table '{name}'")
    raise ForeignKeyResolutionError(f"No candidate model matches foreign table '{name}'")
