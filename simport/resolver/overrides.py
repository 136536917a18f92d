"""
Domain override rules applied to the foreign key requirements of a table.

Schema introspection alone does not capture every dependency the import needs:
some foreign keys are optional in the schema but mandatory for an import, some
point at tables that are never imported, and patient and person share one
identity. Each rule is a small record; the resolver applies them in order.
"""

from dataclasses import dataclass
from typing import Iterable, Protocol

from simport.shared.constants import (
    ENCOUNTER_TABLE,
    FORM_TABLE,
    LOCATION_TABLE,
    OBS_TABLE,
    PATIENT_IDENTIFIER_TABLE,
    PATIENT_TABLE,
    PERSON_TABLE,
    PROVIDER_COLUMN,
    USERS_TABLE,
)
from simport.shared.types import ForeignKeyMap
from simport.template.models import Template


class RequirementRule(Protocol):
    """Edits the requirements of one table in place."""

    def apply(self, table_name: str, requirements: ForeignKeyMap, template: Template) -> None: ...


@dataclass(frozen=True)
class ForceRequirement:
    """Require parent_table through column_name, whatever the schema says."""

    table: str
    parent_table: str
    column_name: str
    encounter_only: bool = False

    def apply(self, table_name: str, requirements: ForeignKeyMap, template: Template) -> None:
        if table_name != self.table:
            return
        if self.encounter_only and not template.encounter:
            return
        requirements[self.parent_table] = self.column_name


@dataclass(frozen=True)
class SuppressRequirement:
    """Remove the requirement carried by column_name of table."""

    table: str
    column_name: str

    def apply(self, table_name: str, requirements: ForeignKeyMap, template: Template) -> None:
        if table_name != self.table:
            return
        for parent_table, column_name in list(requirements.items()):
            if column_name == self.column_name:
                del requirements[parent_table]


@dataclass(frozen=True)
class DropRequirement:
    """Remove any requirement on parent_table, for every table."""

    parent_table: str

    def apply(self, table_name: str, requirements: ForeignKeyMap, template: Template) -> None:
        requirements.pop(self.parent_table, None)


@dataclass(frozen=True)
class ParentAlias:
    """Let substitute satisfy requirements on parent_table when only substitute is imported."""

    parent_table: str
    substitute: str

    def resolve(self, parent_table: str, imported_tables: set[str]) -> str:
        if (
            parent_table == self.parent_table
            and self.parent_table not in imported_tables
            and self.substitute in imported_tables
        ):
            return self.substitute
        return parent_table


DEFAULT_RULES: tuple[RequirementRule, ...] = (
    ForceRequirement(PATIENT_IDENTIFIER_TABLE, PATIENT_TABLE, "patient_id"),
    # encounter_id is optional on obs; an encounter import must still come first
    ForceRequirement(OBS_TABLE, ENCOUNTER_TABLE, "encounter_id", encounter_only=True),
    ForceRequirement(ENCOUNTER_TABLE, LOCATION_TABLE, "location_id"),
    ForceRequirement(ENCOUNTER_TABLE, FORM_TABLE, "form_id"),
    # provider_id refers to a practitioner, not to the imported person
    SuppressRequirement(ENCOUNTER_TABLE, PROVIDER_COLUMN),
    DropRequirement(USERS_TABLE),
)

DEFAULT_ALIASES: tuple[ParentAlias, ...] = (ParentAlias(PATIENT_TABLE, PERSON_TABLE),)


def apply_rules(
    rules: Iterable[RequirementRule],
    table_name: str,
    requirements: ForeignKeyMap,
    template: Template,
) -> ForeignKeyMap:
    """Apply rules in order to a copy of requirements and return it."""
    result = dict(requirements)
    for rule in rules:
        rule.apply(table_name, result, template)
    return result


def resolve_alias(aliases: Iterable[ParentAlias], parent_table: str, imported_tables: set[str]) -> str:
    for alias in aliases:
        parent_table = alias.resolve(parent_table, imported_tables)
    return parent_table
