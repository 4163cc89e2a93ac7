"""
=====================================================
Exception hierarchy for schema construction errors.
=====================================================

Two tiers of failure exist when compiling annotations into a schema:

Fatal construction errors:
    ConstraintConflictError   - incompatible constraint combinations on a column
    ForeignKeyResolutionError - unknown target model or referenced column

Recoverable parse errors:
    AnnotationSyntaxError     - malformed annotation text
    ReferenceSyntaxError      - malformed REFERENCES clause

Both tiers derive from SchemaError, so a caller can recover from a single
invalid field without aborting an entire batch build. ``Table`` collects
one FieldError per failing field and raises TableDefinitionError once all
fields have been parsed.

Example:
    >>> from sql.exceptions import SchemaError, TableDefinitionError
    >>>
    >>> try:
    ...     table = Table(Product, Category)
    ... except TableDefinitionError as e:
    ...     for field_error in e.field_errors:
    ...         print(field_error.field_name, field_error.error)
"""

from dataclasses import dataclass
from typing import List


class SchemaError(Exception):
    """Base class for every schema construction and rendering error."""
    pass


class ConstraintConflictError(SchemaError):
    """Raised when a column receives incompatible constraints.

    Examples are GENERATED combined with DEFAULT, PRIMARY KEY combined with
    DEFAULT, or AUTOINCREMENT on a non-INTEGER column.
    """
    pass


class ForeignKeyResolutionError(SchemaError):
    """Raised when a foreign-key reference cannot be resolved.

    Either no candidate model matches the target entity name, or a
    referenced column is absent from the matched model.
    """
    pass


class AnnotationSyntaxError(SchemaError):
    """Raised for malformed annotation text."""
    pass


class ReferenceSyntaxError(AnnotationSyntaxError):
    """Raised for a malformed REFERENCES clause or action keyword."""
    pass


class PragmaDefinitionError(SchemaError):
    """Raised when a PRAGMA is given both a value and an argument."""
    pass


class QueryDefinitionError(SchemaError):
    """Raised for an ill-formed query or expression builder call."""
    pass


@dataclass(frozen=True)
class FieldError:
    """An error associated with one model field.

    Attributes:
        field_name: Name of the field whose annotation failed
        error: The underlying SchemaError
    """

    field_name: str
    error: SchemaError

    def __str__(self) -> str:
        return f"{self.field_name}: {self.error}"


class TableDefinitionError(SchemaError):
    """Raised when one or more fields of a model fail to compile.

    Attributes:
        model_name: Name of the model being turned into a table
        field_errors: One FieldError per failing field, in field order
    """

    def __init__(self, model_name: str, field_errors: List[FieldError]):
        self.model_name = model_name
        self.field_errors = list(field_errors)
        details = '; '.join(str(field_error) for field_error in self.field_errors)
        super().__init__(
            f"Table '{model_name}' has {len(self.field_errors)} invalid field(s): {details}"
        )
