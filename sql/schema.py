"""
==========================================
Schema aggregator for full build scripts.
==========================================

A Schema collects pragmas, tables and indexes and renders them, in that
order, as one script:

    PRAGMA ...;
    PRAGMA ...;
    <blank line>
    CREATE TABLE ... ;
    <blank line>
    CREATE TABLE ... ;
    <blank line>
    CREATE INDEX ...;
    CREATE INDEX ...;

Example:
    >>> from sql import Index, Schema, Table, foreign_keys
    >>>
    >>> schema = (
    ...     Schema()
    ...     .pragma(foreign_keys(True))
    ...     .table(Table(Category), Table(Product, Category))
    ...     .index(Index(Product, 'idx_product_name', 'Name'))
    ... )
    >>> schema.write('build/schema.sql')
"""

import logging
from pathlib import Path
from typing import List, Union

from .ddl import Index, Table
from .pragma import Pragma

logger = logging.getLogger(__name__)


class Schema:
    """Ordered pragmas, tables and indexes of one database."""

    def __init__(self):
        self.pragmas: List[Pragma] = []
        self.tables: List[Table] = []
        self.indexes: List[Index] = []

    def pragma(self, *pragmas: Pragma) -> 'Schema':
        self.pragmas.extend(pragmas)
        return self

    def table(self, *tables: Table) -> 'Schema':
        self.tables.extend(tables)
        return self

    def index(self, *indexes: Index) -> 'Schema':
        self.indexes.extend(indexes)
        return self

    def statements(self) -> List[str]:
        """Each statement on its own, in script order, for one-by-one execution."""
        statements = [pragma.build() for pragma in self.pragmas]
        statements.extend(table.build().rstrip('\n') for table in self.tables)
        statements.extend(index.build() for index in self.indexes)
        return statements

    def build(self) -> str:
        """Render the full script."""
        script = ""
        for pragma in self.pragmas:
            script += pragma.build() + "\n"
        script += "\n"
        for table in self.tables:
            script += table.build() + "\n"
        for index in self.indexes:
            script += index.build() + "\n"
        return script

    def write(self, path: Union[str, Path]) -> Path:
        """Write the build script to ``path``, creating parent directories.

        Returns:
            The path written
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        script = self.build()
        target.write_text(script, encoding='utf-8')
        logger.info(
            f"✅ Schema written to {target} "
            f"({len(self.pragmas)} pragma(s), {len(self.tables)} table(s), {len(self.indexes)} index(es))"
        )
        return target

    def __repr__(self) -> str:
        return (
            f"Schema(pragmas={len(self.pragmas)}, tables={len(self.tables)}, "
            f"indexes={len(self.indexes)})"
        )
