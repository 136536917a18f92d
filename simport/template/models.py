"""
Template data model: columns, unique imports, dependency edges and prespecified values.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from simport.shared.exceptions import TemplateConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class UniqueImport:
    """One logical destination row of a table within a template."""

    table_name: str
    group: int = 0

    def __str__(self) -> str:
        return f"{self.table_name}[{self.group}]"


@dataclass(eq=False)
class Column:
    """A spreadsheet column mapped onto one column of a target table."""

    name: str
    table_name: str
    column_name: str
    group: int = 0
    position: int = 0
    import_idx: Optional[int] = None
    column_columns_import_before: list["ColumnColumn"] = field(default_factory=list)
    column_prespecified_values: list["ColumnPrespecifiedValue"] = field(default_factory=list)

    @property
    def unique_import(self) -> UniqueImport:
        return UniqueImport(self.table_name, self.group)

    @property
    def sort_key(self) -> tuple[int, str]:
        return (self.position, self.name)

    @property
    def table_dot_column(self) -> str:
        return f"{self.table_name}.{self.column_name}"

    def __repr__(self) -> str:
        return (
            f"Column(name={self.name!r}, target={self.table_dot_column!r}, "
            f"group={self.group}, import_idx={self.import_idx})"
        )


@dataclass(frozen=True)
class ColumnColumn:
    """Ordering edge: the row of column_import_first must exist before column_import_next.

    The generated key of the first row is written into column_name of the next row.
    """

    column_import_first: Column
    column_import_next: Column
    column_name: str


@dataclass(eq=False)
class PrespecifiedValue:
    """Placeholder for a foreign key whose parent table is not part of the import."""

    template: Optional["Template"]
    table_dot_column: str
    value: Any = None
    column_prespecified_values: list["ColumnPrespecifiedValue"] = field(default_factory=list)

    @property
    def table_name(self) -> str:
        return self.table_dot_column.split(".", 1)[0]

    def __repr__(self) -> str:
        return f"PrespecifiedValue({self.table_dot_column!r}, value={self.value!r})"


@dataclass(frozen=True)
class ColumnPrespecifiedValue:
    """Links a column to the prespecified value filling one of its foreign keys."""

    column: Column
    prespecified_value: PrespecifiedValue
    column_name: str


class Template:
    """Declarative mapping of spreadsheet columns onto relational tables.

    Columns keep the order they were added in; that order (position) is their
    natural ordering. Unique imports may also be declared up front, before any
    column targets them.
    """

    def __init__(
        self,
        name: str,
        columns: Optional[Iterable[Column]] = None,
        encounter: bool = False,
        unique_imports: Optional[Iterable[UniqueImport]] = None,
    ):
        self.name = name
        self.encounter = encounter
        self.columns: list[Column] = []
        self.declared_unique_imports: set[UniqueImport] = set(unique_imports or [])
        self._prespecified_values: dict[str, PrespecifiedValue] = {}
        self.resolved = False
        for column in columns or []:
            self.add_column(column)

    def add_column(self, column: Column) -> Column:
        """Append a column, giving it the next position unless one was set."""
        if not column.position:
            column.position = len(self.columns) + 1
        self.columns.append(column)
        return column

    def declare_unique_import(self, unique_import: UniqueImport) -> None:
        self.declared_unique_imports.add(unique_import)

    @property
    def prespecified_values(self) -> list[PrespecifiedValue]:
        """Prespecified values ordered by their table.column identifier."""
        return [self._prespecified_values[key] for key in sorted(self._prespecified_values)]

    def get_prespecified_value(self, table_dot_column: str) -> Optional[PrespecifiedValue]:
        return self._prespecified_values.get(table_dot_column)

    def add_prespecified_value(self, prespecified_value: PrespecifiedValue) -> PrespecifiedValue:
        """Add a prespecified value, returning the one already stored under its key if any."""
        existing = self._prespecified_values.get(prespecified_value.table_dot_column)
        if existing is not None:
            return existing
        prespecified_value.template = self
        self._prespecified_values[prespecified_value.table_dot_column] = prespecified_value
        return prespecified_value

    def get_map_of_unique_import_to_columns(self) -> dict[UniqueImport, list[Column]]:
        """Map every unique import to its columns, both in natural order."""
        for column in self.columns:
            if not column.table_name or not column.table_name.strip():
                raise TemplateConfigurationError(
                    f"Column '{column.name}' of template '{self.name}' has no target table"
                )

        columns = sorted(self.columns, key=lambda c: c.sort_key)

        # Tables rank by their first column; tables only declared come last
        table_rank: dict[str, int] = {}
        for column in columns:
            table_rank.setdefault(column.table_name, len(table_rank))
        for unique_import in sorted(self.declared_unique_imports):
            table_rank.setdefault(unique_import.table_name, len(table_rank))

        unique_imports = {column.unique_import for column in columns}
        unique_imports.update(self.declared_unique_imports)
        ordered = sorted(unique_imports, key=lambda ui: (table_rank[ui.table_name], ui))

        mapping: dict[UniqueImport, list[Column]] = {ui: [] for ui in ordered}
        for column in columns:
            mapping[column.unique_import].append(column)
        return mapping

    def get_map_of_tables_to_unique_imports(self) -> dict[str, list[UniqueImport]]:
        """Map every table name to the unique imports targeting it.

        Tables come in the order their first column appears, unique imports of a
        table in natural order.
        """
        mapping: dict[str, list[UniqueImport]] = {}
        for unique_import in self.get_map_of_unique_import_to_columns():
            mapping.setdefault(unique_import.table_name, []).append(unique_import)
        return mapping

    def column_names(self) -> list[str]:
        """Spreadsheet header names of the template's columns."""
        return [column.name for column in sorted(self.columns, key=lambda c: c.sort_key)]

    def columns_by_import_idx(self) -> list[Column]:
        """Resolved columns in the order the import engine must materialize them."""
        return sorted(
            (c for c in self.columns if c.import_idx is not None), key=lambda c: c.import_idx
        )

    def __repr__(self) -> str:
        return f"Template(name={self.name!r}, columns={len(self.columns)}, encounter={self.encounter})"
