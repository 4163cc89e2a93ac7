"""
===================================================
Comprehensive pytest suite for sql/foreign_key.py
===================================================

Sections:
---------
1. Unit tests - Row and deferrable actions
2. Unit tests - Builder API
3. Unit tests - Raw REFERENCES clause parsing
4. Edge case tests - Resolution failures and malformed clauses

Available markers:
------------------
unit, edge_case, regression, smoke

How to Execute:
---------------
All tests:          pytest tests/tests_sql/test_foreign_key.py -v
By category:        pytest tests/tests_sql/test_foreign_key.py -m edge_case
"""

import pytest

from sql.exceptions import ForeignKeyResolutionError, ReferenceSyntaxError
from sql.foreign_key import DeferrableAction, ForeignKeyReference, RowAction

# ====================
# Actions
# ====================

@pytest.mark.unit
@pytest.mark.parametrize("text, action", [
    ("cascade", RowAction.CASCADE),
    ("SET NULL", RowAction.SET_NULL),
    ("set   default", RowAction.SET_DEFAULT),
    ("Restrict", RowAction.RESTRICT),
    ("NO ACTION", RowAction.NO_ACTION),
])
def test_row_action_parse(text, action):
    assert RowAction.parse(text) is action


@pytest.mark.edge_case
@pytest.mark.parametrize("text", ["", "SET", "DELETE", "NOTHING"])
def test_row_action_parse_rejects_unknown(text):
    with pytest.raises(ReferenceSyntaxError):
        RowAction.parse(text)


@pytest.mark.unit
def test_deferrable_action_parse():
    assert DeferrableAction.parse('') is DeferrableAction.NONE
    assert DeferrableAction.parse('initially deferred') is DeferrableAction.INITIALLY_DEFERRED

    with pytest.raises(ReferenceSyntaxError):
        DeferrableAction.parse('INITIALLY LATER')


# ====================
# Builder API
# ====================

@pytest.mark.smoke
def test_column_level_builder(category_model):
    reference = ForeignKeyReference.column_level('CategoryId', category_model, 'Id')
    reference.on_delete(RowAction.CASCADE).on_update('set null')

    assert reference.build() == 'REFERENCES category (id) ON DELETE CASCADE ON UPDATE SET NULL'
    assert reference.is_table_level is False


@pytest.mark.unit
def test_table_level_builder(category_model):
    reference = ForeignKeyReference.table_level(category_model, 'CategoryId').target_columns('Id')

    assert reference.build() == 'FOREIGN KEY (category_id) REFERENCES category (id)'


@pytest.mark.unit
def test_builder_without_target_columns(category_model):
    assert ForeignKeyReference.column_level('CategoryId', category_model).build() == 'REFERENCES category'


@pytest.mark.unit
def test_match_and_deferrable(category_model):
    reference = ForeignKeyReference.column_level('CategoryId', category_model, 'Id')
    reference.match('SIMPLE').deferrable(DeferrableAction.INITIALLY_DEFERRED)

    assert reference.build() == 'REFERENCES category (id) MATCH SIMPLE DEFERRABLE INITIALLY DEFERRED'
    assert reference.deferrable_state == 'DEFERRABLE'


@pytest.mark.regression
def test_first_deferrable_keyword_wins(category_model):
    reference = ForeignKeyReference.column_level('CategoryId', category_model, 'Id')
    reference.not_deferrable().deferrable('INITIALLY DEFERRED')

    assert reference.deferrable_state == 'NOT DEFERRABLE'
    assert reference.build() == 'REFERENCES category (id) NOT DEFERRABLE'


@pytest.mark.edge_case
def test_target_column_count_mismatch(order_item_model):
    reference = ForeignKeyReference.table_level(order_item_model, 'OrderId', 'ProductId')

    with pytest.raises(ForeignKeyResolutionError, match="2 owning column"):
        reference.target_columns('OrderId')


@pytest.mark.edge_case
def test_unknown_target_column_fails_at_build(category_model):
    reference = ForeignKeyReference.column_level('CategoryId', category_model, 'Code')

    with pytest.raises(ForeignKeyResolutionError, match="'Code' not found"):
        reference.build()


@pytest.mark.edge_case
def test_reference_needs_owning_column(category_model):
    with pytest.raises(ForeignKeyResolutionError):
        ForeignKeyReference.table_level(category_model)


# ====================
# Raw clause parsing
# ====================

@pytest.mark.unit
def test_parse_full_clause(category_model):
    reference = ForeignKeyReference.parse(
        'REFERENCES Category (Id) ON UPDATE CASCADE ON DELETE SET DEFAULT MATCH FULL '
        'NOT DEFERRABLE INITIALLY IMMEDIATE',
        'CategoryId',
        [category_model],
    )

    assert reference.columns == ['CategoryId']
    assert reference.referenced_columns == ['Id']
    assert reference.build() == (
        'REFERENCES category (id) ON DELETE SET DEFAULT ON UPDATE CASCADE MATCH FULL '
        'NOT DEFERRABLE INITIALLY IMMEDIATE'
    )


@pytest.mark.unit
def test_parse_is_case_insensitive(category_model):
    reference = ForeignKeyReference.parse('references Category(Id) on delete restrict', 'CategoryId', [category_model])

    assert reference.build() == 'REFERENCES category (id) ON DELETE RESTRICT'


@pytest.mark.unit
def test_parse_picks_matching_candidate(category_model, product_model):
    reference = ForeignKeyReference.parse('REFERENCES Product (Id)', 'ProductId', [category_model, product_model])

    assert reference.target is product_model


@pytest.mark.edge_case
def test_parse_requires_references_keyword(category_model):
    with pytest.raises(ReferenceSyntaxError, match="must start with REFERENCES"):
        ForeignKeyReference.parse('Category (Id)', 'CategoryId', [category_model])


@pytest.mark.edge_case
def test_parse_requires_target(category_model):
    with pytest.raises(ReferenceSyntaxError, match="Missing target"):
        ForeignKeyReference.parse('REFERENCES', 'CategoryId', [category_model])


@pytest.mark.edge_case
def test_parse_unknown_target(category_model):
    with pytest.raises(ForeignKeyResolutionError, match="'Supplier'"):
        ForeignKeyReference.parse('REFERENCES Supplier (Id)', 'SupplierId', [category_model])


@pytest.mark.edge_case
def test_parse_target_is_matched_exactly(category_model):
    with pytest.raises(ForeignKeyResolutionError):
        ForeignKeyReference.parse('REFERENCES category (Id)', 'CategoryId', [category_model])


@pytest.mark.edge_case
@pytest.mark.parametrize("clause, message", [
    ('REFERENCES Category (Id ON DELETE CASCADE', "column list"),
    ('REFERENCES Category (Id,) ', "Unexpected"),
    ('REFERENCES Category (Id) CASCADE', "Unexpected 'CASCADE'"),
    ('REFERENCES Category (Id) ON DELETE BLOW UP', "Invalid row action"),
    ('REFERENCES Category (Id) MATCH', "MATCH needs exactly one name"),
    ("REFERENCES Category (Id) MATCH 'oops", "Unterminated"),
])
def test_parse_malformed_clauses(category_model, clause, message):
    with pytest.raises(ReferenceSyntaxError, match=message):
        ForeignKeyReference.parse(clause, 'CategoryId', [category_model])


@pytest.mark.edge_case
def test_parse_column_count_mismatch(category_model):
    with pytest.raises(ForeignKeyResolutionError):
        ForeignKeyReference.parse('REFERENCES Category (Id, Name)', 'CategoryId', [category_model])
