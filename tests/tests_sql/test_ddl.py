"""
===========================================
Comprehensive pytest suite for sql/ddl.py
===========================================

Sections:
---------
1. Smoke tests - Golden CREATE TABLE output
2. Unit tests - Table options and table-level constraints
3. Edge case tests - Per-field error collection
4. Unit tests - CREATE INDEX

Available markers:
------------------
unit, smoke, edge_case, regression, integration

Test Coverage:
--------------
- Table: eager parsing, column order, skipped fields, options,
  table-level PRIMARY KEY / UNIQUE / CHECK / FOREIGN KEY, AS SELECT
- TableDefinitionError: one FieldError per failing field
- Index: UNIQUE, IF NOT EXISTS, schema, partial indexes, validation

How to Execute:
---------------
All tests:          pytest tests/tests_sql/test_ddl.py -v
By category:        pytest tests/tests_sql/test_ddl.py -m smoke
Specific test:      pytest tests/tests_sql/test_ddl.py::test_minimal_table_golden
"""

from dataclasses import dataclass
from typing import Optional

import pytest

from models.descriptors import ModelDescriptor, sql_field
from sql.clauses import IndexedColumn, TablePrimaryKey, TableUnique
from sql.ddl import Index, Table
from sql.exceptions import (
    AnnotationSyntaxError,
    ConstraintConflictError,
    ForeignKeyResolutionError,
    QueryDefinitionError,
    SchemaError,
    TableDefinitionError,
)
from sql.expression import Expression, column, gt
from sql.foreign_key import ForeignKeyReference
from sql.query_builder import Select

# ====================
# Golden output
# ====================

@pytest.mark.smoke
def test_minimal_table_golden(t_model):
    assert Table(t_model).build() == (
        "CREATE TABLE t (\n"
        "\tid INTEGER PRIMARY KEY AUTOINCREMENT,\n"
        "\tname TEXT NOT NULL\n"
        ");\n"
    )


@pytest.mark.smoke
def test_category_table(category_model):
    assert Table(category_model).build() == (
        "CREATE TABLE category (\n"
        "\tid INTEGER PRIMARY KEY AUTOINCREMENT,\n"
        "\tname TEXT NOT NULL UNIQUE\n"
        ");\n"
    )


@pytest.mark.integration
def test_product_table_with_reference(product_model, category_model):
    table = Table(product_model, category_model)

    assert [column.name for column in table.columns] == ['id', 'name', 'price', 'category_id']
    assert table.build() == (
        "CREATE TABLE product (\n"
        "\tid INTEGER PRIMARY KEY AUTOINCREMENT,\n"
        "\tname TEXT NOT NULL CHECK (length(Name) > 0),\n"
        "\tprice REAL NOT NULL DEFAULT 0 CHECK (Price >= 0),\n"
        "\tcategory_id INTEGER REFERENCES category (id) ON DELETE SET NULL ON UPDATE CASCADE\n"
        ");\n"
    )


@pytest.mark.integration
def test_dataclass_model_table():
    @dataclass
    class UserAccount:
        Id: int = sql_field('PRIMARY KEY')
        Email: str = sql_field('NOT NULL UNIQUE COLLATE NOCASE')
        Nickname: Optional[str] = sql_field('')
        Cache: dict = sql_field('-', default_factory=dict)

    assert Table(UserAccount).build() == (
        "CREATE TABLE user_account (\n"
        "\tid INTEGER PRIMARY KEY,\n"
        "\temail TEXT NOT NULL UNIQUE COLLATE NOCASE\n"
        ");\n"
    )


@pytest.mark.regression
def test_build_is_idempotent(product_model, category_model):
    table = Table(product_model, category_model).unique('Name')

    assert table.build() == table.build()


@pytest.mark.unit
def test_self_reference_resolves():
    employee = ModelDescriptor.from_fields('Employee', [
        ('Id', int, 'PRIMARY KEY'),
        ('ManagerId', int, 'REFERENCES Employee (Id) ON DELETE SET NULL'),
    ])

    assert Table(employee).column('ManagerId').build() == (
        'manager_id INTEGER REFERENCES employee (id) ON DELETE SET NULL'
    )


@pytest.mark.unit
def test_column_lookup_by_field_or_rendered_name(product_model, category_model):
    table = Table(product_model, category_model)

    assert table.column('CategoryId') is table.column('category_id')
    with pytest.raises(KeyError):
        table.column('Notes')


# ====================
# Options and table-level constraints
# ====================

@pytest.mark.unit
def test_table_options(t_model):
    sql = Table(t_model).temporary().if_not_exists().schema('aux').without_rowid().strict().build()

    assert sql.startswith("CREATE TEMP TABLE IF NOT EXISTS aux.t (\n")
    assert sql.endswith("\n) WITHOUT ROWID, STRICT;\n")


@pytest.mark.unit
def test_table_level_constraints_follow_columns(order_item_model, product_model):
    table = (
        Table(order_item_model)
        .primary_key('OrderId', 'ProductId', conflict='replace', name='pk_order_item')
        .unique(TableUnique('OrderId', IndexedColumn('Quantity').desc()))
        .check(Expression('Quantity < 1000'))
        .foreign_key(ForeignKeyReference.table_level(product_model, 'ProductId').target_columns('Id'), name='fk_product')
    )

    assert table.build() == (
        "CREATE TABLE order_item (\n"
        "\torder_id INTEGER NOT NULL,\n"
        "\tproduct_id INTEGER NOT NULL,\n"
        "\tquantity INTEGER NOT NULL DEFAULT 1 CHECK (Quantity > 0),\n"
        "\tCONSTRAINT pk_order_item PRIMARY KEY (order_id, product_id) ON CONFLICT REPLACE,\n"
        "\tUNIQUE (order_id, quantity DESC),\n"
        "\tCHECK (Quantity < 1000),\n"
        "\tCONSTRAINT fk_product FOREIGN KEY (product_id) REFERENCES product (id)\n"
        ");\n"
    )


@pytest.mark.unit
def test_primary_key_accepts_key_instance(order_item_model):
    table = Table(order_item_model).primary_key(TablePrimaryKey('OrderId', 'ProductId').on_conflict('abort'))

    assert "\tPRIMARY KEY (order_id, product_id) ON CONFLICT ABORT\n" in table.build()


@pytest.mark.edge_case
def test_foreign_key_rejects_column_level_reference(order_item_model, product_model):
    reference = ForeignKeyReference.column_level('ProductId', product_model, 'Id')

    with pytest.raises(QueryDefinitionError, match="table_level"):
        Table(order_item_model).foreign_key(reference)


@pytest.mark.edge_case
def test_table_level_reference_checked_at_build(order_item_model, product_model):
    table = Table(order_item_model).foreign_key(
        ForeignKeyReference.table_level(product_model, 'ProductId').target_columns('Sku')
    )

    with pytest.raises(ForeignKeyResolutionError, match="Sku"):
        table.build()


@pytest.mark.unit
def test_create_table_as_select(t_model):
    select = Select('Id', 'Name').from_(t_model).where(gt(column('Id'), 10))

    assert Table(t_model).temporary().as_select(select).build() == (
        "CREATE TEMP TABLE t AS SELECT Id, Name FROM t WHERE id > 10;\n"
    )


@pytest.mark.edge_case
def test_table_without_columns_raises():
    empty = ModelDescriptor.from_fields('Empty', [('Scratch', str, '-')])

    with pytest.raises(SchemaError, match="no columns"):
        Table(empty).build()


# ====================
# Per-field errors
# ====================

@pytest.mark.edge_case
def test_unresolved_reference_names_the_field(product_model):
    with pytest.raises(TableDefinitionError) as exc_info:
        Table(product_model)

    error = exc_info.value
    assert error.model_name == 'Product'
    assert [field_error.field_name for field_error in error.field_errors] == ['CategoryId']
    assert isinstance(error.field_errors[0].error, ForeignKeyResolutionError)


@pytest.mark.edge_case
def test_every_invalid_field_is_reported():
    broken = ModelDescriptor.from_fields('Broken', [
        ('Id', str, 'PRIMARY KEY AUTOINCREMENT'),
        ('Ok', int, 'NOT NULL'),
        ('Score', int, 'CHECK (Score > 0'),
        ('Total', int, 'DEFAULT 0 AS (1)'),
    ])

    with pytest.raises(TableDefinitionError) as exc_info:
        Table(broken)

    errors = {field_error.field_name: field_error.error for field_error in exc_info.value.field_errors}
    assert list(errors) == ['Id', 'Score', 'Total']
    assert isinstance(errors['Id'], ConstraintConflictError)
    assert isinstance(errors['Score'], AnnotationSyntaxError)
    assert isinstance(errors['Total'], ConstraintConflictError)
    assert "3 invalid field(s)" in str(exc_info.value)


@pytest.mark.edge_case
def test_strict_table_rejects_unknown_tokens():
    noisy = ModelDescriptor.from_fields('Noisy', [('Id', int, 'PRIMARY KEY SHINY')])

    assert Table(noisy).build() == "CREATE TABLE noisy (\n\tid INTEGER PRIMARY KEY\n);\n"
    with pytest.raises(TableDefinitionError):
        Table(noisy, strict_annotations=True)


# ====================
# CREATE INDEX
# ====================

@pytest.mark.smoke
def test_index_basic(product_model):
    assert Index(product_model, 'idx_product_name', 'Name').build() == (
        'CREATE INDEX idx_product_name ON product (name);'
    )


@pytest.mark.unit
def test_index_full_options(product_model):
    index = (
        Index(product_model, 'idx_price', IndexedColumn('Price').desc(), Expression('lower(Name)'))
        .unique()
        .if_not_exists()
        .schema('main')
        .where('Price > 0')
    )

    assert index.build() == (
        'CREATE UNIQUE INDEX IF NOT EXISTS main.idx_price ON product (price DESC, lower(Name)) WHERE Price > 0;'
    )


@pytest.mark.regression
def test_index_multiple_columns_have_no_trailing_comma():
    assert Index('OrderItem', 'idx_items', 'OrderId', 'ProductId').build() == (
        'CREATE INDEX idx_items ON order_item (order_id, product_id);'
    )


@pytest.mark.edge_case
def test_index_requires_columns(product_model):
    with pytest.raises(QueryDefinitionError):
        Index(product_model, 'idx_nothing')


@pytest.mark.edge_case
def test_index_rejects_unknown_field(product_model):
    with pytest.raises(QueryDefinitionError, match="'Sku' not found"):
        Index(product_model, 'idx_sku', 'Sku')


@pytest.mark.regression
def test_index_accepts_declared_and_rendered_names(product_model):
    by_field = Index(product_model, 'idx_category', 'CategoryId').build()
    by_column = Index(product_model, 'idx_category', 'category_id').build()

    assert by_field == by_column == 'CREATE INDEX idx_category ON product (category_id);'
