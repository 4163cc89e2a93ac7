"""
=========================================
SQL expression node and helper operators.
=========================================

Expression is the opaque leaf used everywhere a boolean or scalar SQL
fragment is needed: CHECK constraints, DEFAULT values, generated columns,
WHERE/HAVING conditions, join conditions and partial-index predicates.
Helpers below compose expressions into larger ones; each helper returns a
new Expression and never mutates its operands.

Operators:
    literal, column, param, raw
    eq, ne, lt, le, gt, ge, and_, or_, not_
    cast, collate, like, not_like, glob, not_glob, regexp, not_regexp,
    match, not_match, isnull, notnull, not_null, is_, is_not,
    is_distinct_from, is_not_distinct_from, between, not_between,
    in_, not_in, exists, not_exists, subquery, case, raise_, row

Example:
    >>> from sql.expression import and_, column, gt, literal, like
    >>>
    >>> cond = and_(gt(column('Price'), literal(0)), like(column('Name'), literal('A%')))
    >>> cond.build()
    "(price > 0 AND name LIKE 'A%')"
"""

import decimal
from typing import Any, Iterable, Optional, Sequence, Tuple

from .exceptions import QueryDefinitionError
from .types import (
    BindingStyle,
    ColumnPath,
    LiteralValue,
    StorageType,
    binding_parameter,
    quote_string,
    signed_number,
)


class Expression:
    """Opaque textual SQL expression.

    Attributes:
        text: The expression text, rendered verbatim
    """

    def __init__(self, text: str):
        self.text = text

    def build(self) -> str:
        return self.text

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Expression({self.text!r})"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Expression) and other.text == self.text

    def __hash__(self) -> int:
        return hash(self.text)


def raw(text: str) -> Expression:
    """Wrap SQL text as an expression without any conversion."""
    return Expression(text)


def literal(value: Any) -> Expression:
    """Convert a Python value into a SQL literal expression.

    None -> NULL, bool -> TRUE/FALSE, numbers -> signed numbers,
    str -> quoted string, bytes -> blob literal X'..'.
    Expressions, column paths and statements with ``build()`` are passed
    through (statements as parenthesized subqueries).
    """
    if isinstance(value, Expression):
        return value
    if isinstance(value, ColumnPath):
        return Expression(value.render())
    if isinstance(value, (LiteralValue, StorageType)):
        return Expression(value.value)
    if value is None:
        return Expression(LiteralValue.NULL.value)
    if isinstance(value, bool):
        return Expression(LiteralValue.TRUE.value if value else LiteralValue.FALSE.value)
    if isinstance(value, (int, float, decimal.Decimal)):
        return Expression(signed_number(value))
    if isinstance(value, str):
        return Expression(quote_string(value))
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Expression(f"X'{bytes(value).hex().upper()}'")
    if hasattr(value, 'build'):
        return subquery(value)
    raise QueryDefinitionError(f"Cannot convert {type(value).__name__} to a SQL expression")


def _operand(value: Any) -> str:
    return literal(value).build()


def column(name: str, table: Any = None, schema: Optional[str] = None) -> Expression:
    """Column reference, identifier-cased and optionally qualified."""
    return Expression(ColumnPath(name, table=table, schema=schema).render())


def param(style: BindingStyle = BindingStyle.AUTO, name: Any = '') -> Expression:
    """Binding parameter placeholder."""
    return Expression(binding_parameter(style, name))


def _binary(left: Any, operator: str, right: Any) -> Expression:
    return Expression(f"{_operand(left)} {operator} {_operand(right)}")


def eq(left: Any, right: Any) -> Expression:
    return _binary(left, '=', right)


def ne(left: Any, right: Any) -> Expression:
    return _binary(left, '!=', right)


def lt(left: Any, right: Any) -> Expression:
    return _binary(left, '<', right)


def le(left: Any, right: Any) -> Expression:
    return _binary(left, '<=', right)


def gt(left: Any, right: Any) -> Expression:
    return _binary(left, '>', right)


def ge(left: Any, right: Any) -> Expression:
    return _binary(left, '>=', right)


def _junction(operator: str, operands: Sequence[Any]) -> Expression:
    if not operands:
        raise QueryDefinitionError(f"{operator} needs at least one operand")
    if len(operands) == 1:
        return literal(operands[0])
    return Expression('(' + f' {operator} '.join(_operand(op) for op in operands) + ')')


def and_(*operands: Any) -> Expression:
    """Conjunction, parenthesized when it has more than one operand."""
    return _junction('AND', operands)


def or_(*operands: Any) -> Expression:
    """Disjunction, parenthesized when it has more than one operand."""
    return _junction('OR', operands)


def not_(operand: Any) -> Expression:
    return Expression(f"NOT ({_operand(operand)})")


def cast(expression: Any, storage_type: StorageType) -> Expression:
    return Expression(f"CAST({_operand(expression)} AS {StorageType(storage_type).value})")


def collate(expression: Any, collation: str) -> Expression:
    return Expression(f"{_operand(expression)} COLLATE {collation}")


def _pattern(operator: str, expression: Any, pattern: Any, escape: Any = None) -> Expression:
    text = f"{_operand(expression)} {operator} {_operand(pattern)}"
    if escape is not None:
        text += f" ESCAPE {_operand(escape)}"
    return Expression(text)


def like(expression: Any, pattern: Any, escape: Any = None) -> Expression:
    return _pattern('LIKE', expression, pattern, escape)


def not_like(expression: Any, pattern: Any, escape: Any = None) -> Expression:
    return _pattern('NOT LIKE', expression, pattern, escape)


def glob(expression: Any, pattern: Any) -> Expression:
    return _pattern('GLOB', expression, pattern)


def not_glob(expression: Any, pattern: Any) -> Expression:
    return _pattern('NOT GLOB', expression, pattern)


def regexp(expression: Any, pattern: Any) -> Expression:
    return _pattern('REGEXP', expression, pattern)


def not_regexp(expression: Any, pattern: Any) -> Expression:
    return _pattern('NOT REGEXP', expression, pattern)


def match(expression: Any, pattern: Any) -> Expression:
    return _pattern('MATCH', expression, pattern)


def not_match(expression: Any, pattern: Any) -> Expression:
    return _pattern('NOT MATCH', expression, pattern)


def isnull(expression: Any) -> Expression:
    return Expression(f"{_operand(expression)} ISNULL")


def notnull(expression: Any) -> Expression:
    return Expression(f"{_operand(expression)} NOTNULL")


def not_null(expression: Any) -> Expression:
    return Expression(f"{_operand(expression)} NOT NULL")


def is_(left: Any, right: Any) -> Expression:
    return _binary(left, 'IS', right)


def is_not(left: Any, right: Any) -> Expression:
    return _binary(left, 'IS NOT', right)


def is_distinct_from(left: Any, right: Any) -> Expression:
    return _binary(left, 'IS DISTINCT FROM', right)


def is_not_distinct_from(left: Any, right: Any) -> Expression:
    return _binary(left, 'IS NOT DISTINCT FROM', right)


def between(expression: Any, lower: Any, upper: Any) -> Expression:
    return Expression(f"{_operand(expression)} BETWEEN {_operand(lower)} AND {_operand(upper)}")


def not_between(expression: Any, lower: Any, upper: Any) -> Expression:
    return Expression(f"{_operand(expression)} NOT BETWEEN {_operand(lower)} AND {_operand(upper)}")


def _membership(operator: str, expression: Any, values: Any) -> Expression:
    if hasattr(values, 'build') and not isinstance(values, Expression):
        body = f"({values.build()})"
    else:
        items = list(values)
        if not items:
            raise QueryDefinitionError(f"{operator} needs at least one value")
        body = '(' + ', '.join(_operand(item) for item in items) + ')'
    return Expression(f"{_operand(expression)} {operator} {body}")


def in_(expression: Any, values: Any) -> Expression:
    """``x IN (a, b, ...)`` for an iterable of values, or ``x IN (SELECT ...)``."""
    return _membership('IN', expression, values)


def not_in(expression: Any, values: Any) -> Expression:
    return _membership('NOT IN', expression, values)


def subquery(statement: Any) -> Expression:
    """Scalar subquery: the statement's text in parentheses."""
    return Expression(f"({statement.build()})")


def exists(statement: Any) -> Expression:
    return Expression(f"EXISTS ({statement.build()})")


def not_exists(statement: Any) -> Expression:
    return Expression(f"NOT EXISTS ({statement.build()})")


def row(*values: Any) -> Expression:
    """Row value ``(a, b, ...)``."""
    if not values:
        raise QueryDefinitionError("A row value needs at least one element")
    return Expression('(' + ', '.join(_operand(value) for value in values) + ')')


def case(
    whens: Iterable[Tuple[Any, Any]],
    operand: Any = None,
    else_: Any = None
) -> Expression:
    """CASE expression.

    Args:
        whens: (WHEN, THEN) pairs in order
        operand: Optional base expression (``CASE x WHEN ...``)
        else_: Optional ELSE result

    Raises:
        QueryDefinitionError: If no WHEN/THEN pair is given
    """
    branches = [f"WHEN {_operand(when)} THEN {_operand(then)}" for when, then in whens]
    if not branches:
        raise QueryDefinitionError("CASE needs at least one WHEN ... THEN branch")

    text = 'CASE'
    if operand is not None:
        text += f" {_operand(operand)}"
    text += ' ' + ' '.join(branches)
    if else_ is not None:
        text += f" ELSE {_operand(else_)}"
    return Expression(text + ' END')


_RAISE_ACTIONS = ('ROLLBACK', 'ABORT', 'FAIL', 'IGNORE')


def raise_(action: Any, message: Optional[str] = None) -> Expression:
    """RAISE() for trigger programs.

    Args:
        action: ROLLBACK, ABORT, FAIL or IGNORE (string or ConflictAction)
        message: Error message, required for every action except IGNORE

    Raises:
        QueryDefinitionError: On REPLACE, an unknown action, or a missing message
    """
    name = str(getattr(action, 'value', action)).upper()
    if name not in _RAISE_ACTIONS:
        raise QueryDefinitionError(f"RAISE does not accept action '{name}'")
    if name == 'IGNORE':
        return Expression('RAISE(IGNORE)')
    if message is None:
        raise QueryDefinitionError(f"RAISE({name}) needs an error message")
    return Expression(f"RAISE({name}, {quote_string(message)})")
