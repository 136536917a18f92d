"""
Template dependency resolution.

Works out, from metadata only, the order in which a template's tables must be
imported, the column-to-column ordering edges between imported tables, and the
prespecified values standing in for parent tables the template does not import.
"""

import logging
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from typing import Iterable, Optional

from simport.schema.introspection import SchemaIntrospector
from simport.shared.exceptions import (
    DependencyCycleError,
    SelfReferenceError,
    TemplateAlreadyResolvedError,
    TemplateConfigurationError,
)
from simport.shared.types import ForeignKeyMap, GraphCycles, TableDependencies
from simport.template.models import (
    Column,
    ColumnColumn,
    ColumnPrespecifiedValue,
    PrespecifiedValue,
    Template,
    UniqueImport,
)

from .overrides import (
    DEFAULT_ALIASES,
    DEFAULT_RULES,
    ParentAlias,
    RequirementRule,
    apply_rules,
    resolve_alias,
)

logger = logging.getLogger(__name__)


@dataclass
class TemplateResolution:
    """Everything the import engine needs from a resolved template."""

    template: Template
    table_order: list[str]
    dependencies: TableDependencies
    edges: list[ColumnColumn] = field(default_factory=list)
    prespecified_values: list[PrespecifiedValue] = field(default_factory=list)
    import_indices: dict[Column, int] = field(default_factory=dict)

    @property
    def columns(self) -> list[Column]:
        """Columns in import order."""
        return sorted(self.import_indices, key=self.import_indices.__getitem__)


class DependencyResolver:
    """Resolves the table order, ordering edges and prespecified values of a template."""

    def __init__(
        self,
        introspector: SchemaIntrospector,
        rules: Optional[Iterable[RequirementRule]] = None,
        aliases: Optional[Iterable[ParentAlias]] = None,
    ):
        self.introspector = introspector
        self.rules = tuple(DEFAULT_RULES if rules is None else rules)
        self.aliases = tuple(DEFAULT_ALIASES if aliases is None else aliases)

    def resolve(self, template: Template) -> TemplateResolution:
        """
        Resolve a template in place.

        Nothing is written to the template until the whole resolution succeeded.

        Args:
            template: Template with its columns finalized

        Returns:
            TemplateResolution

        Raises:
            TemplateConfigurationError: If the template or the schema is inconsistent
            DependencyCycleError: If imported tables depend on each other
        """
        if template.resolved:
            raise TemplateAlreadyResolvedError(f"Template '{template.name}' is already resolved")

        unique_import_columns = template.get_map_of_unique_import_to_columns()
        for unique_import, columns in unique_import_columns.items():
            if not columns:
                raise TemplateConfigurationError(
                    f"Unique import {unique_import} of template '{template.name}' has no columns"
                )

        table_unique_imports = template.get_map_of_tables_to_unique_imports()
        imported_tables = set(table_unique_imports)

        dependencies: TableDependencies = {}
        edges: list[ColumnColumn] = []
        links: list[ColumnPrespecifiedValue] = []
        prespecified_values: dict[str, PrespecifiedValue] = {}

        for table_name, unique_imports in table_unique_imports.items():
            requirements = self._find_requirements(table_name, template)
            columns = [c for ui in unique_imports for c in unique_import_columns[ui]]
            parents: list[str] = []

            for necessary_table, necessary_column in requirements.items():
                necessary_table = resolve_alias(self.aliases, necessary_table, imported_tables)

                if necessary_table in imported_tables:
                    if necessary_table == table_name:
                        raise SelfReferenceError(
                            f"Table '{table_name}' requires itself through '{necessary_column}'"
                        )
                    if necessary_table not in parents:
                        parents.append(necessary_table)
                    anchors = self._anchor_columns(
                        table_unique_imports[necessary_table], unique_import_columns
                    )
                    for column_import_next in columns:
                        for column_import_first in anchors:
                            edges.append(
                                ColumnColumn(column_import_first, column_import_next, necessary_column)
                            )
                else:
                    table_dot_column = f"{necessary_table}.{necessary_table}_id"
                    value = prespecified_values.get(table_dot_column)
                    if value is None:
                        value = template.get_prespecified_value(table_dot_column) or PrespecifiedValue(
                            template=template, table_dot_column=table_dot_column
                        )
                        prespecified_values[table_dot_column] = value
                    for column in columns:
                        links.append(ColumnPrespecifiedValue(column, value, necessary_column))

            dependencies[table_name] = parents
            logger.debug(f"{table_name} is imported after {parents or 'no other table'}")

        cycles = self._detect_cycles_with_graphlib(dependencies)
        if cycles:
            raise DependencyCycleError(cycles[0])

        table_order = self._order_tables(dependencies)

        for edge in edges:
            edge.column_import_next.column_columns_import_before.append(edge)
        for link in links:
            link.column.column_prespecified_values.append(link)
            link.prespecified_value.column_prespecified_values.append(link)
        for table_dot_column in sorted(prespecified_values):
            template.add_prespecified_value(prespecified_values[table_dot_column])

        import_indices: dict[Column, int] = {}
        import_idx = 0
        for table_name in table_order:
            for unique_import in table_unique_imports[table_name]:
                for column in unique_import_columns[unique_import]:
                    column.import_idx = import_idx
                    import_indices[column] = import_idx
                    import_idx += 1
        template.resolved = True

        logger.info(
            f"Resolved template '{template.name}': {len(table_order)} tables, "
            f"{len(edges)} edges, {len(prespecified_values)} prespecified values"
        )

        return TemplateResolution(
            template=template,
            table_order=table_order,
            dependencies=dependencies,
            edges=edges,
            prespecified_values=[prespecified_values[k] for k in sorted(prespecified_values)],
            import_indices=import_indices,
        )

    def _find_requirements(self, table_name: str, template: Template) -> ForeignKeyMap:
        """Foreign key requirements of a table after the override rules."""
        foreign_keys = self.introspector.get_foreign_key_map(table_name)
        return apply_rules(self.rules, table_name, foreign_keys, template)

    @staticmethod
    def _anchor_columns(
        unique_imports: list[UniqueImport],
        unique_import_columns: dict[UniqueImport, list[Column]],
    ) -> list[Column]:
        # Table dependencies are expressed through the first column of each unique import
        return [unique_import_columns[ui][0] for ui in unique_imports]

    def _order_tables(self, dependencies: TableDependencies) -> list[str]:
        """
        Linearize the tables: each table after its parents, parents in requirement order.

        Args:
            dependencies: Acyclic dict mapping table -> imported parent tables

        Returns:
            List of tables in import order
        """
        order: list[str] = []
        placed: set[str] = set()

        def visit(table_name: str) -> None:
            if table_name in placed:
                return
            placed.add(table_name)
            for parent in dependencies.get(table_name, []):
                visit(parent)
            order.append(table_name)

        for table_name in dependencies:
            visit(table_name)
        return order

    def _detect_cycles(self, dependencies: TableDependencies) -> GraphCycles:
        """
        Detect circular dependencies using DFS.

        Args:
            dependencies: Dict mapping table -> list of parent tables

        Returns:
            List of cycles found (empty if no cycles)
        """
        visited = set()
        rec_stack = set()
        cycles = []

        def dfs(node, path):
            if node in rec_stack:
                cycle_start = path.index(node)
                cycles.append(path[cycle_start:] + [node])
                return

            if node in visited:
                return

            visited.add(node)
            rec_stack.add(node)

            for neighbor in dependencies.get(node, []):
                dfs(neighbor, path + [node])

            rec_stack.remove(node)

        for node in dependencies:
            if node not in visited:
                dfs(node, [])

        return cycles

    def _detect_cycles_with_graphlib(self, dependencies: TableDependencies) -> GraphCycles:
        """
        Detect cycles using graphlib.TopologicalSorter.

        Falls back to the DFS for the cycle paths.
        """
        ts = TopologicalSorter()
        for node, deps in dependencies.items():
            ts.add(node, *deps)

        try:
            ts.prepare()
            return []
        except CycleError:
            return self._detect_cycles(dependencies)


def resolve_template_dependencies(
    template: Template, introspector: SchemaIntrospector
) -> TemplateResolution:
    """Resolve a template with the default override rules."""
    return DependencyResolver(introspector).resolve(template)
