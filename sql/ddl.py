"""
=============================================================
Data Definition Language (DDL) builders for tables and indexes.
=============================================================

Table compiles every field annotation of a model into column definitions
when it is constructed, then collects table-level constraints in call order.
Index renders CREATE INDEX statements over a model's columns or arbitrary
expressions.

Key Features:
    - Eager annotation parsing with per-field error collection
    - TEMP, IF NOT EXISTS, schema qualifier, WITHOUT ROWID and STRICT options
    - Table-level PRIMARY KEY, UNIQUE, CHECK and FOREIGN KEY constraints
    - CREATE TABLE ... AS SELECT
    - Unique and partial indexes

Classes:
    Table: CREATE TABLE builder
    Index: CREATE INDEX builder

Example:
    >>> from sql.ddl import Index, Table
    >>>
    >>> table = Table(Product, Category).if_not_exists().strict()
    >>> print(table.build())
    CREATE TABLE IF NOT EXISTS product (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        category_id INTEGER REFERENCES category (id) ON DELETE SET NULL
    ) STRICT;
    >>>
    >>> Index(Product, 'idx_product_name', 'Name').unique().build()
    'CREATE UNIQUE INDEX idx_product_name ON product (name);'
"""

import logging
from typing import Any, List, Optional, Tuple, Union

from models.descriptors import describe_model, model_name
from utils.naming import qualify, to_snake_case

from .annotations import AnnotationParser
from .clauses import Check, ConflictAction, IndexedColumn, TablePrimaryKey, TableUnique, named
from .column import Column
from .exceptions import FieldError, QueryDefinitionError, SchemaError, TableDefinitionError
from .expression import Expression
from .foreign_key import ForeignKeyReference

logger = logging.getLogger(__name__)


class Table:
    """CREATE TABLE builder for one model.

    All field annotations are compiled on construction. Failures are
    collected per field and raised together as TableDefinitionError.

    Args:
        model: Model whose fields become the columns
        *foreign_models: Models that REFERENCES clauses may target
        strict_annotations: Reject unknown annotation tokens
            (defaults to config.strict_annotations)

    Attributes:
        name: Model name
        columns: Columns in field declaration order

    Raises:
        TableDefinitionError: If any field annotation fails to compile
    """

    def __init__(self, model: Any, *foreign_models: Any, strict_annotations: Optional[bool] = None):
        self.model = describe_model(model)
        self.name = self.model.name
        self.foreign_models = [describe_model(foreign) for foreign in foreign_models]

        self._temporary = False
        self._if_not_exists = False
        self._schema: Optional[str] = None
        self._without_rowid = False
        self._strict = False
        self._select: Any = None
        self._constraints: List[Tuple[Any, Optional[str]]] = []

        # the model itself is a candidate so self-references resolve
        parser = AnnotationParser([*self.foreign_models, self.model], strict=strict_annotations)
        self.columns: List[Column] = []
        field_errors = []
        for field in self.model.fields:
            try:
                column = parser.parse(field)
            except SchemaError as e:
                field_errors.append(FieldError(field.name, e))
                continue
            if column is not None:
                self.columns.append(column)

        if field_errors:
            logger.error(f"❌ Table '{self.name}': {len(field_errors)} invalid field(s)")
            raise TableDefinitionError(self.name, field_errors)

        logger.debug(f"Table '{self.name}' compiled with {len(self.columns)} column(s)")

    def column(self, name: str) -> Column:
        """Column by declared field name or by rendered name."""
        for column in self.columns:
            if name in (column.field_name, column.name):
                return column
        raise KeyError(f"Table '{self.name}' has no column '{name}'")

    def temporary(self) -> 'Table':
        self._temporary = True
        return self

    def if_not_exists(self) -> 'Table':
        self._if_not_exists = True
        return self

    def schema(self, schema_name: str) -> 'Table':
        self._schema = schema_name
        return self

    def without_rowid(self) -> 'Table':
        self._without_rowid = True
        return self

    def strict(self) -> 'Table':
        self._strict = True
        return self

    def as_select(self, statement: Any) -> 'Table':
        """Create the table from a SELECT instead of the column list."""
        self._select = statement
        return self

    def primary_key(
        self,
        *columns: Union[TablePrimaryKey, IndexedColumn, str, Expression],
        conflict: Union[ConflictAction, str, None] = None,
        name: Optional[str] = None
    ) -> 'Table':
        """Add a table-level PRIMARY KEY over ``columns`` (or a TablePrimaryKey)."""
        if len(columns) == 1 and isinstance(columns[0], TablePrimaryKey):
            key = columns[0]
        else:
            key = TablePrimaryKey(*columns)
        if conflict is not None:
            key.on_conflict(conflict)
        self._constraints.append((key, name))
        return self

    def unique(
        self,
        *columns: Union[TableUnique, IndexedColumn, str, Expression],
        conflict: Union[ConflictAction, str, None] = None,
        name: Optional[str] = None
    ) -> 'Table':
        """Add a table-level UNIQUE over ``columns`` (or a TableUnique)."""
        if len(columns) == 1 and isinstance(columns[0], TableUnique):
            key = columns[0]
        else:
            key = TableUnique(*columns)
        if conflict is not None:
            key.on_conflict(conflict)
        self._constraints.append((key, name))
        return self

    def check(self, expression: Union[Expression, str], name: Optional[str] = None) -> 'Table':
        self._constraints.append((Check(expression), name))
        return self

    def foreign_key(self, reference: ForeignKeyReference, name: Optional[str] = None) -> 'Table':
        """Add a table-level FOREIGN KEY.

        Example:
            >>> table.foreign_key(
            ...     ForeignKeyReference.table_level(Category, 'CategoryId').target_columns('Id'),
            ...     name='fk_category'
            ... )
        """
        if not reference.is_table_level:
            raise QueryDefinitionError(
                "Table.foreign_key expects ForeignKeyReference.table_level(...); "
                "use Column.foreign_key for column-level references"
            )
        self._constraints.append((reference, name))
        return self

    def build(self) -> str:
        """Render the CREATE TABLE statement, terminated by ';' and a newline.

        Raises:
            SchemaError: If the table has no columns and no backing SELECT
            ForeignKeyResolutionError: If a table-level reference names an unknown column
        """
        sql_parts = ["CREATE"]

        if self._temporary:
            sql_parts.append("TEMP")

        sql_parts.append("TABLE")

        if self._if_not_exists:
            sql_parts.append("IF NOT EXISTS")

        sql_parts.append(qualify(to_snake_case(self.name), self._schema))

        # CREATE TABLE ... AS SELECT ignores columns and constraints
        if self._select is not None:
            sql_parts.append(f"AS {self._select.build()}")
            return " ".join(sql_parts) + ";\n"

        if not self.columns:
            logger.error(f"❌ Table '{self.name}' has no columns")
            raise SchemaError(f"Table '{self.name}' has no columns")

        definitions = [column.build() for column in self.columns]
        definitions.extend(named(constraint.build(), name) for constraint, name in self._constraints)

        options = []
        if self._without_rowid:
            options.append("WITHOUT ROWID")
        if self._strict:
            options.append("STRICT")

        sql = " ".join(sql_parts) + " (\n\t" + ",\n\t".join(definitions) + "\n)"
        if options:
            sql += " " + ", ".join(options)
        return sql + ";\n"

    def __repr__(self) -> str:
        return f"Table({self.name!r}, columns={len(self.columns)})"


def _declares_column(descriptor: Any, name: str) -> bool:
    """True when name is a declared field name or its rendered column name."""
    return any(name in (field.name, to_snake_case(field.name)) for field in descriptor.fields)


class Index:
    """CREATE INDEX builder.

    Args:
        table: Indexed model (or its name)
        name: Index name
        *columns: Column names, IndexedColumn objects or expressions

    Raises:
        QueryDefinitionError: If no columns are given, or a column name is
            not a field of the indexed model
    """

    def __init__(self, table: Any, name: str, *columns: Union[IndexedColumn, str, Expression]):
        if not columns:
            raise QueryDefinitionError(f"Index '{name}' needs at least one column")

        if not isinstance(table, str):
            descriptor = describe_model(table)
            for column in columns:
                if isinstance(column, str) and not _declares_column(descriptor, column):
                    logger.error(f"❌ Index '{name}': column '{column}' not found in '{descriptor.name}'")
                    raise QueryDefinitionError(
                        f"Index '{name}': column '{column}' not found in table '{descriptor.name}'"
                    )

        self.table = model_name(table)
        self.name = name
        self.columns = [IndexedColumn.of(column) for column in columns]

        self._unique = False
        self._if_not_exists = False
        self._schema: Optional[str] = None
        self._where: Optional[Expression] = None

    def unique(self) -> 'Index':
        self._unique = True
        return self

    def if_not_exists(self) -> 'Index':
        self._if_not_exists = True
        return self

    def schema(self, schema_name: str) -> 'Index':
        self._schema = schema_name
        return self

    def where(self, expression: Union[Expression, str]) -> 'Index':
        """Make this a partial index."""
        self._where = expression if isinstance(expression, Expression) else Expression(expression)
        return self

    def build(self) -> str:
        sql_parts = ["CREATE"]

        if self._unique:
            sql_parts.append("UNIQUE")

        sql_parts.append("INDEX")

        if self._if_not_exists:
            sql_parts.append("IF NOT EXISTS")

        sql_parts.append(qualify(self.name, self._schema))
        sql_parts.append("ON")
        sql_parts.append(to_snake_case(self.table))
        sql_parts.append("(" + ", ".join(column.build() for column in self.columns) + ")")

        # Partial index
        if self._where is not None:
            sql_parts.append(f"WHERE {self._where.build()}")

        return " ".join(sql_parts) + ";"

    def __repr__(self) -> str:
        return f"Index({self.name!r} ON {self.table!r})"
