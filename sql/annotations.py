"""
====================================================
Annotation compiler: field annotations into Columns.
====================================================

Each model field may carry one annotation string describing its column
constraints. The grammar is:

    tag            := (constraintSpec)*
    constraintSpec := ["CONSTRAINT" name] (primaryKeySpec | notNullSpec
                      | uniqueSpec | checkSpec | defaultSpec | collateSpec
                      | referencesSpec | generatedSpec)

An empty annotation or '-' means the field is not a column.

Keywords are matched case-insensitively against whole tokens; two-word
keywords (PRIMARY KEY, NOT NULL) use one token of lookahead. Tokens that
start no known constraint are skipped with a DEBUG log, or rejected when the
parser is strict (``strict=True`` or SCHEMA_STRICT_ANNOTATIONS=true).

Example:
    >>> from models import FieldDescriptor
    >>> field = FieldDescriptor('Price', float, 'NOT NULL CHECK(Price >= 0) DEFAULT 0')
    >>> parse_field(field).build()
    'price REAL NOT NULL CHECK (Price >= 0) DEFAULT 0'
"""

import enum
import logging
from typing import Any, Callable, Dict, Iterable, Optional

from core.config import config
from models.descriptors import FieldDescriptor

from .clauses import ConflictAction, SortOrder, StorageMode, parse_default
from .column import Column
from .exceptions import AnnotationSyntaxError
from .expression import Expression
from .foreign_key import ForeignKeyReference
from .tokenizer import Token, TokenKind, TokenStream, extract_balanced, strip_parentheses, tokenize
from .types import infer_storage_type

logger = logging.getLogger(__name__)

__all__ = [
    'AnnotationParser',
    'Keyword',
    'Token',
    'TokenKind',
    'extract_balanced',
    'keyword_at',
    'parse_field',
    'tokenize',
]


class Keyword(enum.Enum):
    """Constraint keywords, each as its sequence of words."""

    CONSTRAINT = ('CONSTRAINT',)
    PRIMARY_KEY = ('PRIMARY', 'KEY')
    NOT_NULL = ('NOT', 'NULL')
    UNIQUE = ('UNIQUE',)
    CHECK = ('CHECK',)
    DEFAULT = ('DEFAULT',)
    COLLATE = ('COLLATE',)
    REFERENCES = ('REFERENCES',)
    GENERATED = ('GENERATED',)
    AS = ('AS',)

    @property
    def text(self) -> str:
        return ' '.join(self.value)


def keyword_at(stream: TokenStream, offset: int = 0) -> Optional[Keyword]:
    """Keyword starting at the cursor (plus ``offset``), if any."""
    for keyword in Keyword:
        if all(stream.peek_word(word, offset=offset + index) for index, word in enumerate(keyword.value)):
            return keyword
    return None


class AnnotationParser:
    """Parses annotation strings into Column constraints.

    Args:
        candidates: Models that REFERENCES clauses may target
        strict: Reject unknown tokens instead of skipping them
            (defaults to ``config.strict_annotations``)

    Example:
        >>> parser = AnnotationParser(candidates=[Category])
        >>> column = parser.parse(FieldDescriptor('CategoryId', int,
        ...     'REFERENCES Category (Id) ON DELETE SET NULL'))
        >>> column.build()
        'category_id INTEGER REFERENCES category (id) ON DELETE SET NULL'
    """

    def __init__(self, candidates: Iterable[Any] = (), strict: Optional[bool] = None):
        self.candidates = list(candidates)
        self.strict = config.strict_annotations if strict is None else strict
        self._handlers: Dict[Keyword, Callable[[TokenStream, Column, Optional[str]], None]] = {
            Keyword.PRIMARY_KEY: self._primary_key,
            Keyword.NOT_NULL: self._not_null,
            Keyword.UNIQUE: self._unique,
            Keyword.CHECK: self._check,
            Keyword.DEFAULT: self._default,
            Keyword.COLLATE: self._collate,
            Keyword.REFERENCES: self._references,
            Keyword.GENERATED: self._generated_always,
            Keyword.AS: self._generated_shorthand,
        }

    def parse(self, field: FieldDescriptor) -> Optional[Column]:
        """Build the Column for one field, or None when the field is not a column.

        Raises:
            AnnotationSyntaxError: Malformed annotation text
            ReferenceSyntaxError: Malformed REFERENCES clause
            ConstraintConflictError: Incompatible constraints
            ForeignKeyResolutionError: Unresolvable REFERENCES target
        """
        if not field.is_column:
            return None
        column = Column(field.name, infer_storage_type(field.declared_type), self.candidates)
        self.apply(field.annotation, column)
        return column

    def apply(self, annotation: str, column: Column) -> Column:
        """Parse ``annotation`` and attach its constraints to ``column``."""
        stream = TokenStream(annotation)
        while not stream.at_end:
            keyword = keyword_at(stream)
            if keyword is None:
                self._skip(stream, column)
                continue

            constraint_name = None
            if keyword is Keyword.CONSTRAINT:
                constraint_name = self._constraint_name(stream)
                keyword = keyword_at(stream)
                if keyword is None or keyword is Keyword.CONSTRAINT:
                    found = stream.peek().text if not stream.at_end else 'end of text'
                    raise AnnotationSyntaxError(
                        f"CONSTRAINT {constraint_name} must be followed by a constraint, found {found!r}"
                    )

            stream.position += len(keyword.value)
            self._handlers[keyword](stream, column, constraint_name)
        return column

    def _skip(self, stream: TokenStream, column: Column) -> None:
        token = stream.advance()
        if self.strict:
            logger.error(f"❌ Unknown token {token.text!r} in annotation of '{column.field_name}'")
            raise AnnotationSyntaxError(
                f"Unknown token {token.text!r} at offset {token.start} in annotation of '{column.field_name}'"
            )
        logger.debug(f"Skipping unknown token {token.text!r} in annotation of '{column.field_name}'")

    def _constraint_name(self, stream: TokenStream) -> str:
        stream.advance()
        token = stream.peek()
        if token is None or token.kind not in (TokenKind.WORD, TokenKind.STRING) or keyword_at(stream):
            found = token.text if token else 'end of text'
            raise AnnotationSyntaxError(f"CONSTRAINT needs a name, found {found!r}")
        stream.advance()
        return token.text

    def _conflict_action(self, stream: TokenStream, require_conflict: bool = True) -> Optional[ConflictAction]:
        """Consume ``ON [CONFLICT] action``; unknown actions are ignored."""
        if not stream.peek_word('ON'):
            return None
        if stream.peek_word('CONFLICT', offset=1):
            stream.position += 2
        elif require_conflict:
            return None
        else:
            stream.position += 1

        token = stream.peek()
        if token is None or keyword_at(stream) is not None:
            logger.debug("ON CONFLICT without an action, ignored")
            return None
        stream.advance()
        action = ConflictAction.lookup(token.text)
        if action is None:
            logger.debug(f"Ignoring unknown conflict action {token.text!r}")
        return action

    def _primary_key(self, stream: TokenStream, column: Column, name: Optional[str]) -> None:
        sort_order = SortOrder.UNSORTED
        conflict = None
        autoincrement = False

        while not stream.at_end and keyword_at(stream) is None:
            if stream.accept_word('ASC'):
                sort_order = SortOrder.ASC
            elif stream.accept_word('DESC'):
                sort_order = SortOrder.DESC
            elif stream.accept_word('AUTOINCREMENT'):
                autoincrement = True
            elif stream.peek_word('ON'):
                conflict = self._conflict_action(stream, require_conflict=False) or conflict
            else:
                self._skip(stream, column)

        column.primary_key(sort_order, conflict, autoincrement, name=name)

    def _not_null(self, stream: TokenStream, column: Column, name: Optional[str]) -> None:
        column.not_null(self._conflict_action(stream), name=name)

    def _unique(self, stream: TokenStream, column: Column, name: Optional[str]) -> None:
        column.unique(self._conflict_action(stream), name=name)

    def _check(self, stream: TokenStream, column: Column, name: Optional[str]) -> None:
        group = stream.balanced()
        column.check(Expression(strip_parentheses(group)), name=name)

    def _default(self, stream: TokenStream, column: Column, name: Optional[str]) -> None:
        token = stream.peek()
        if token is None or keyword_at(stream) is not None:
            raise AnnotationSyntaxError(f"DEFAULT needs a value in annotation of '{column.field_name}'")
        if token.kind is TokenKind.LPAREN:
            text = stream.balanced()
        elif token.kind in (TokenKind.WORD, TokenKind.STRING):
            text = stream.advance().text
        else:
            raise AnnotationSyntaxError(f"Unexpected {token.text!r} after DEFAULT")
        column.default(parse_default(text), name=name)

    def _collate(self, stream: TokenStream, column: Column, name: Optional[str]) -> None:
        token = stream.peek()
        if token is None or token.kind is not TokenKind.WORD or keyword_at(stream) is not None:
            raise AnnotationSyntaxError(f"COLLATE needs a collation name in annotation of '{column.field_name}'")
        stream.advance()
        column.collate(token.text, name=name)

    def _references(self, stream: TokenStream, column: Column, name: Optional[str]) -> None:
        start = stream.position - 1
        depth = 0
        while not stream.at_end:
            token = stream.peek()
            if token.kind is TokenKind.LPAREN:
                depth += 1
            elif token.kind is TokenKind.RPAREN:
                depth -= 1
            elif depth == 0:
                keyword = keyword_at(stream)
                # SET DEFAULT is a row action
                set_default = keyword is Keyword.DEFAULT and stream.peek_word('SET', offset=-1)
                if keyword is not None and not set_default:
                    break
            stream.advance()

        text = stream.span(start, stream.position)
        reference = ForeignKeyReference.parse(text, column.field_name, column.candidates)
        column.foreign_key(reference, name=name)

    def _generated_always(self, stream: TokenStream, column: Column, name: Optional[str]) -> None:
        if not stream.accept_word('ALWAYS') or not stream.accept_word('AS'):
            raise AnnotationSyntaxError(
                f"GENERATED must be followed by ALWAYS AS in annotation of '{column.field_name}'"
            )
        self._generated(stream, column, name, always=True)

    def _generated_shorthand(self, stream: TokenStream, column: Column, name: Optional[str]) -> None:
        self._generated(stream, column, name, always=False)

    def _generated(self, stream: TokenStream, column: Column, name: Optional[str], always: bool) -> None:
        group = stream.balanced()
        storage = StorageMode.VIRTUAL
        token = stream.accept_word('STORED', 'VIRTUAL')
        if token is not None:
            storage = StorageMode(token.upper)
        column.generated(Expression(strip_parentheses(group)), storage, always=always, name=name)


def parse_field(
    field: FieldDescriptor,
    candidates: Iterable[Any] = (),
    strict: Optional[bool] = None
) -> Optional[Column]:
    """Compile one field's annotation into a Column (None for non-columns)."""
    return AnnotationParser(candidates, strict).parse(field)
