"""
============================
SQL Query Builder Utilities.
============================

Composable builders for SELECT statements. Every builder renders
deterministically and can be built any number of times; building never
mutates builder state.

Clause order of a rendered SELECT:
    [WITH ...] SELECT [ALL|DISTINCT] cols FROM ... WHERE ... GROUP BY ...
    HAVING ... [UNION|UNION ALL|INTERSECT|EXCEPT ...] ORDER BY ... LIMIT ... OFFSET ...

Builders:
- ResultColumn: expression [AS alias], * or table.*
- From: table or subquery source with joins
- Join / JoinType: JOIN clauses with ON or USING
- OrderBy / OrderDirection: ORDER BY terms
- CommonTableExpression: WITH clause entries
- Select: the statement itself

Strings passed where an expression is expected are used as raw SQL text;
table names (and models) are identifier-cased.

Usage:
    from sql.expression import column, eq, gt
    from sql.query_builder import From, Join, JoinType, OrderBy, OrderDirection, ResultColumn, Select

    query = (
        Select(ResultColumn(column('Name', 'Product')), ResultColumn(column('Name', 'Category'), 'category'))
        .from_(From('Product').join(
            Join(JoinType.LEFT, 'Category').on(eq(column('CategoryId', 'Product'), column('Id', 'Category')))
        ))
        .where(gt(column('Price'), 0))
        .order_by(OrderBy(column('Name'), OrderDirection.DESC))
        .limit(10)
    )
"""

import enum
import logging
from typing import Any, List, Optional, Tuple, Union

from models.descriptors import model_name
from utils.naming import join_identifiers, to_snake_case

from .exceptions import QueryDefinitionError
from .expression import Expression

logger = logging.getLogger(__name__)


def _expression(value: Union[Expression, str]) -> Expression:
    if isinstance(value, Expression):
        return value
    return Expression(str(value))


def _source(source: Any) -> str:
    """Render a FROM/JOIN source: subquery in parentheses, otherwise a table name."""
    if isinstance(source, Select):
        return f"({source.build()})"
    return to_snake_case(model_name(source))


class ResultColumn:
    """One entry of the SELECT column list."""

    def __init__(self, expression: Union[Expression, str, None] = None, alias: Optional[str] = None):
        self.expression = _expression(expression) if expression is not None else None
        self.table: Optional[str] = None
        self._alias = alias

    @classmethod
    def wildcard(cls) -> 'ResultColumn':
        """``*``"""
        return cls()

    @classmethod
    def table_wildcard(cls, table: Any) -> 'ResultColumn':
        """``table.*``"""
        column = cls()
        column.table = model_name(table)
        return column

    def alias(self, alias: str) -> 'ResultColumn':
        """Set the alias; wildcards ignore it."""
        if self.expression is None:
            logger.debug("Ignoring alias on a wildcard result column")
            return self
        self._alias = alias
        return self

    def build(self) -> str:
        if self.expression is None:
            if self.table is not None:
                return f"{to_snake_case(self.table)}.*"
            return "*"
        if self._alias:
            return f"{self.expression.build()} AS {self._alias}"
        return self.expression.build()


class JoinType(str, enum.Enum):
    JOIN = 'JOIN'
    INNER = 'INNER JOIN'
    LEFT = 'LEFT JOIN'
    LEFT_OUTER = 'LEFT OUTER JOIN'
    RIGHT = 'RIGHT JOIN'
    RIGHT_OUTER = 'RIGHT OUTER JOIN'
    FULL = 'FULL JOIN'
    FULL_OUTER = 'FULL OUTER JOIN'
    CROSS = 'CROSS JOIN'
    NATURAL = 'NATURAL JOIN'

    def __str__(self) -> str:
        return self.value


class Join:
    """A JOIN clause: ``<type> <table|(subquery)>[ AS alias][ ON expr| USING (cols)]``.

    Args:
        join_type: JoinType
        source: Model, table name or Select subquery
    """

    def __init__(self, join_type: JoinType, source: Any):
        self.join_type = JoinType(join_type)
        self.source = source
        self._alias: Optional[str] = None
        self._on: Optional[Expression] = None
        self._using: Tuple[str, ...] = ()

    def alias(self, alias: str) -> 'Join':
        self._alias = alias
        return self

    def on(self, condition: Union[Expression, str]) -> 'Join':
        self._on = _expression(condition)
        return self

    def using(self, *columns: str) -> 'Join':
        self._using = tuple(columns)
        return self

    def build(self) -> str:
        text = f"{self.join_type.value} {_source(self.source)}"
        if self._alias:
            text += f" AS {self._alias}"
        # ON takes precedence over USING
        if self._on is not None:
            text += f" ON {self._on.build()}"
        elif self._using:
            text += f" USING ({join_identifiers(self._using)})"
        return text


class From:
    """FROM source with its joins, rendered left to right."""

    def __init__(self, source: Any):
        self.source = source
        self._alias: Optional[str] = None
        self.joins: List[Join] = []

    def alias(self, alias: str) -> 'From':
        self._alias = alias
        return self

    def join(self, *joins: Join) -> 'From':
        self.joins.extend(joins)
        return self

    def build(self) -> str:
        parts = [_source(self.source)]
        if self._alias:
            parts[0] += f" AS {self._alias}"
        parts.extend(join.build() for join in self.joins)
        return " ".join(parts)


class OrderDirection(str, enum.Enum):
    NONE = ''
    ASC = 'ASC'
    DESC = 'DESC'

    def __str__(self) -> str:
        return self.value


class OrderBy:
    """ORDER BY term: ``expression[ ASC|DESC][ NULLS FIRST|NULLS LAST]``."""

    def __init__(
        self,
        expression: Union[Expression, str],
        direction: OrderDirection = OrderDirection.NONE,
        nulls_first: Optional[bool] = None
    ):
        self.expression = _expression(expression)
        self.direction = OrderDirection(direction)
        self.nulls_first = nulls_first

    def build(self) -> str:
        text = self.expression.build()
        if self.direction is not OrderDirection.NONE:
            text += f" {self.direction.value}"
        if self.nulls_first is not None:
            text += " NULLS FIRST" if self.nulls_first else " NULLS LAST"
        return text


class CommonTableExpression:
    """One WITH clause entry: ``name[(cols)] AS[ [NOT] MATERIALIZED] (select)``.

    Args:
        table: Model or name of the CTE
        *columns: Optional column names
    """

    def __init__(self, table: Any, *columns: str):
        self.name = model_name(table)
        self.columns = list(columns)
        self._materialized: Optional[bool] = None
        self._select: Optional['Select'] = None

    def materialized(self) -> 'CommonTableExpression':
        self._materialized = True
        return self

    def not_materialized(self) -> 'CommonTableExpression':
        self._materialized = False
        return self

    def as_select(self, statement: 'Select') -> 'CommonTableExpression':
        self._select = statement
        return self

    def build(self) -> str:
        if self._select is None:
            raise QueryDefinitionError(f"Common table expression '{self.name}' has no SELECT")

        text = to_snake_case(self.name)
        if self.columns:
            text += f"({join_identifiers(self.columns)})"
        text += " AS"
        if self._materialized is True:
            text += " MATERIALIZED"
        elif self._materialized is False:
            text += " NOT MATERIALIZED"
        return f"{text} ({self._select.build()})"


class CompoundOperator(str, enum.Enum):
    UNION = 'UNION'
    UNION_ALL = 'UNION ALL'
    INTERSECT = 'INTERSECT'
    EXCEPT = 'EXCEPT'

    def __str__(self) -> str:
        return self.value


class SelectType(str, enum.Enum):
    DEFAULT = ''
    ALL = 'ALL'
    DISTINCT = 'DISTINCT'


class Select:
    """SELECT statement builder.

    Args:
        *columns: ResultColumn objects, expressions or raw SQL strings;
            no columns renders ``*``

    Example:
        >>> Select(column('Name')).from_('Product').where(gt(column('Price'), 0)).limit(5).build()
        'SELECT name FROM product WHERE price > 0 LIMIT 5'
    """

    def __init__(self, *columns: Union[ResultColumn, Expression, str]):
        self.select_type = SelectType.DEFAULT
        self.result_columns: List[ResultColumn] = []
        self._ctes: List[CommonTableExpression] = []
        self._recursive = False
        self._from: Optional[From] = None
        self._where: Optional[Expression] = None
        self._group_by: List[Expression] = []
        self._having: Optional[Expression] = None
        self._compounds: List[Tuple[CompoundOperator, 'Select']] = []
        self._order_by: List[OrderBy] = []
        self._limit: Optional[Union[int, Expression]] = None
        self._offset: Optional[Union[int, Expression]] = None
        self.columns(*columns)

    def columns(self, *columns: Union[ResultColumn, Expression, str]) -> 'Select':
        for column in columns:
            if not isinstance(column, ResultColumn):
                column = ResultColumn(column)
            self.result_columns.append(column)
        return self

    def distinct(self) -> 'Select':
        self.select_type = SelectType.DISTINCT
        return self

    def all(self) -> 'Select':
        self.select_type = SelectType.ALL
        return self

    def with_(self, *ctes: CommonTableExpression, recursive: bool = False) -> 'Select':
        self._ctes.extend(ctes)
        self._recursive = self._recursive or recursive
        return self

    def from_(self, source: Any, alias: Optional[str] = None) -> 'Select':
        """Set the FROM source: a From, a model, a table name or a subquery."""
        self._from = source if isinstance(source, From) else From(source)
        if alias:
            self._from.alias(alias)
        return self

    def join(self, *joins: Join) -> 'Select':
        if self._from is None:
            raise QueryDefinitionError("JOIN needs a FROM source")
        self._from.join(*joins)
        return self

    def where(self, condition: Union[Expression, str]) -> 'Select':
        self._where = _expression(condition)
        return self

    def group_by(self, *expressions: Union[Expression, str]) -> 'Select':
        self._group_by = [_expression(expression) for expression in expressions]
        return self

    def having(self, condition: Union[Expression, str]) -> 'Select':
        self._having = _expression(condition)
        return self

    def union(self, statement: 'Select') -> 'Select':
        return self._compound(CompoundOperator.UNION, statement)

    def union_all(self, statement: 'Select') -> 'Select':
        return self._compound(CompoundOperator.UNION_ALL, statement)

    def intersect(self, statement: 'Select') -> 'Select':
        return self._compound(CompoundOperator.INTERSECT, statement)

    def except_(self, statement: 'Select') -> 'Select':
        return self._compound(CompoundOperator.EXCEPT, statement)

    def _compound(self, operator: CompoundOperator, statement: 'Select') -> 'Select':
        if statement is self:
            raise QueryDefinitionError(f"A SELECT cannot be combined with itself via {operator.value}")
        self._compounds.append((operator, statement))
        return self

    def order_by(self, *terms: Union[OrderBy, Expression, str]) -> 'Select':
        self._order_by = [term if isinstance(term, OrderBy) else OrderBy(term) for term in terms]
        return self

    def limit(self, limit: Union[int, Expression]) -> 'Select':
        self._limit = limit
        return self

    def offset(self, offset: Union[int, Expression]) -> 'Select':
        self._offset = offset
        return self

    def paginate(self, page: int, page_size: int) -> 'Select':
        """Set LIMIT and OFFSET for a 1-based page number.

        Example:
            >>> Select().from_('Product').paginate(3, 20).build()
            'SELECT * FROM product LIMIT 20 OFFSET 40'
        """
        if page < 1 or page_size < 1:
            raise QueryDefinitionError(f"Invalid page {page} / page size {page_size}")
        return self.limit(page_size).offset((page - 1) * page_size)

    def build(self) -> str:
        """Render the statement on one line, without a trailing ';'.

        Raises:
            QueryDefinitionError: OFFSET without LIMIT, or a CTE without SELECT
        """
        if self._offset is not None and self._limit is None:
            raise QueryDefinitionError("OFFSET requires LIMIT")

        parts = []

        # WITH clause
        if self._ctes:
            keyword = "WITH RECURSIVE" if self._recursive else "WITH"
            parts.append(f"{keyword} " + ", ".join(cte.build() for cte in self._ctes))

        parts.append("SELECT")
        if self.select_type is not SelectType.DEFAULT:
            parts.append(self.select_type.value)

        # Result columns default to the wildcard
        if self.result_columns:
            parts.append(", ".join(column.build() for column in self.result_columns))
        else:
            parts.append("*")

        if self._from is not None:
            parts.append(f"FROM {self._from.build()}")

        if self._where is not None:
            parts.append(f"WHERE {self._where.build()}")

        if self._group_by:
            parts.append("GROUP BY " + ", ".join(expression.build() for expression in self._group_by))

        if self._having is not None:
            parts.append(f"HAVING {self._having.build()}")

        for operator, statement in self._compounds:
            parts.append(f"{operator.value} {statement.build()}")

        if self._order_by:
            parts.append("ORDER BY " + ", ".join(term.build() for term in self._order_by))

        if self._limit is not None:
            parts.append(f"LIMIT {_bound(self._limit)}")

        if self._offset is not None:
            parts.append(f"OFFSET {_bound(self._offset)}")

        return " ".join(parts)

    def __str__(self) -> str:
        return self.build()


def _bound(value: Union[int, Expression]) -> str:
    if isinstance(value, Expression):
        return value.build()
    if isinstance(value, bool) or not isinstance(value, int):
        raise QueryDefinitionError(f"LIMIT/OFFSET must be an integer or expression, got {value!r}")
    return str(value)
