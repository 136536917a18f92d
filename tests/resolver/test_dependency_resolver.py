"""
Unit tests for DependencyResolver.
"""

from unittest.mock import Mock

import pytest

from simport.resolver.dependency_resolver import DependencyResolver, resolve_template_dependencies
from simport.schema.introspection import SchemaIntrospector, StaticSchemaIntrospector
from simport.shared.exceptions import (
    DependencyCycleError,
    SelfReferenceError,
    TemplateAlreadyResolvedError,
    TemplateConfigurationError,
    UnknownTableError,
)
from simport.template.models import PrespecifiedValue, UniqueImport


def _column(template, name):
    return next(c for c in template.columns if c.name == name)


def _before(column):
    """(anchor name, foreign key) pairs a column is imported after."""
    return [(e.column_import_first.name, e.column_name) for e in column.column_columns_import_before]


class TestEncounterWithPerson:
    """An encounter imported together with the person it belongs to."""

    @pytest.fixture
    def introspector(self):
        return StaticSchemaIntrospector(
            {
                "person": {},
                "encounter": {"person": "provider_id"},
            }
        )

    @pytest.fixture
    def template(self, template_factory):
        return template_factory(
            [
                ("Gender", "person", "gender"),
                ("Visit date", "encounter", "encounter_datetime"),
            ]
        )

    def test_table_order(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        assert resolution.table_order == ["person", "encounter"]

    def test_location_and_form_become_prespecified_values(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        keys = [v.table_dot_column for v in resolution.prespecified_values]
        assert keys == ["form.form_id", "location.location_id"]

        visit = _column(template, "Visit date")
        links = {(l.prespecified_value.table_dot_column, l.column_name) for l in visit.column_prespecified_values}
        assert links == {("form.form_id", "form_id"), ("location.location_id", "location_id")}

    def test_provider_relationship_is_ignored(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        assert resolution.edges == []
        assert all(v.table_name != "person" for v in resolution.prespecified_values)
        assert resolution.dependencies["encounter"] == []

    def test_import_indices(self, introspector, template):
        DependencyResolver(introspector).resolve(template)

        assert _column(template, "Gender").import_idx == 0
        assert _column(template, "Visit date").import_idx == 1


class TestPatientIdentifier:
    """patient_identifier always follows the patient it identifies."""

    @pytest.fixture
    def introspector(self):
        return StaticSchemaIntrospector(
            {
                "patient_identifier": {"users": "creator"},
                "patient": {"person": "patient_id"},
            }
        )

    @pytest.fixture
    def template(self, template_factory):
        return template_factory(
            [
                ("Identifier", "patient_identifier", "identifier"),
                ("Identifier type", "patient_identifier", "identifier_type"),
                ("Registered", "patient", "date_created"),
            ]
        )

    def test_forced_patient_requirement_orders_patient_first(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        assert resolution.table_order == ["patient", "patient_identifier"]
        assert resolution.dependencies["patient_identifier"] == ["patient"]

    def test_every_identifier_column_depends_on_patient(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        assert len(resolution.edges) == 2
        assert _before(_column(template, "Identifier")) == [("Registered", "patient_id")]
        assert _before(_column(template, "Identifier type")) == [("Registered", "patient_id")]

    def test_missing_person_is_prespecified(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        assert [v.table_dot_column for v in resolution.prespecified_values] == ["person.person_id"]
        link = _column(template, "Registered").column_prespecified_values[0]
        assert link.column_name == "patient_id"

    def test_indices_follow_table_order(self, introspector, template):
        DependencyResolver(introspector).resolve(template)

        assert _column(template, "Registered").import_idx == 0
        assert _column(template, "Identifier").import_idx == 1
        assert _column(template, "Identifier type").import_idx == 2


class TestRegistrationTemplate:
    """A realistic encounter-based registration template."""

    @pytest.fixture
    def template(self, template_factory):
        return template_factory(
            [
                ("Gender", "person", "gender"),
                ("Birthdate", "person", "birthdate"),
                ("Given name", "person_name", "given_name"),
                ("Family name", "person_name", "family_name"),
                ("Visit date", "encounter", "encounter_datetime"),
                ("Height", "obs", "value_numeric", 2),
                ("Weight", "obs", "value_numeric", 1),
                ("Identifier", "patient_identifier", "identifier"),
            ],
            name="registration",
            encounter=True,
        )

    def test_table_order(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        assert resolution.table_order == [
            "person",
            "person_name",
            "encounter",
            "obs",
            "patient_identifier",
        ]

    def test_import_indices(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        assert [c.name for c in resolution.columns] == [
            "Gender",
            "Birthdate",
            "Given name",
            "Family name",
            "Visit date",
            "Weight",
            "Height",
            "Identifier",
        ]
        assert [c.import_idx for c in resolution.columns] == list(range(8))
        assert [c.name for c in template.columns_by_import_idx()] == [c.name for c in resolution.columns]

    def test_patient_requirement_resolves_onto_person(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        assert _before(_column(template, "Visit date")) == [("Gender", "patient_id")]
        assert _before(_column(template, "Identifier")) == [("Gender", "patient_id")]
        assert all(v.table_name != "patient" for v in resolution.prespecified_values)

    def test_obs_depends_on_encounter(self, introspector, template):
        DependencyResolver(introspector).resolve(template)

        for name in ("Weight", "Height"):
            assert _before(_column(template, name)) == [
                ("Gender", "person_id"),
                ("Visit date", "encounter_id"),
            ]

    def test_only_first_column_of_parent_is_anchor(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        assert _before(_column(template, "Given name")) == [("Gender", "person_id")]
        assert _before(_column(template, "Family name")) == [("Gender", "person_id")]
        assert len(resolution.edges) == 8
        assert all(e.column_import_first.name != "Birthdate" for e in resolution.edges)

    def test_prespecified_values_are_shared(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        assert [v.table_dot_column for v in resolution.prespecified_values] == [
            "concept.concept_id",
            "encounter_type.encounter_type_id",
            "form.form_id",
            "location.location_id",
        ]
        location = template.get_prespecified_value("location.location_id")
        assert sorted(l.column.name for l in location.column_prespecified_values) == [
            "Identifier",
            "Visit date",
        ]
        assert location.template is template
        assert template.prespecified_values == resolution.prespecified_values

    def test_users_are_never_required(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        assert all(e.column_name != "creator" for e in resolution.edges)
        assert all(v.table_name != "users" for v in resolution.prespecified_values)

    def test_edges_point_forward(self, introspector, template):
        resolution = DependencyResolver(introspector).resolve(template)

        indices = sorted(c.import_idx for c in template.columns)
        assert indices == list(range(len(template.columns)))
        for edge in resolution.edges:
            assert edge.column_import_first.import_idx < edge.column_import_next.import_idx

    def test_resolution_is_deterministic(self, introspector, template, template_factory):
        first = DependencyResolver(introspector).resolve(template)

        again = template_factory(
            [(c.name, c.table_name, c.column_name, c.group) for c in template.columns],
            name="registration",
            encounter=True,
        )
        second = DependencyResolver(introspector).resolve(again)

        assert first.table_order == second.table_order
        assert [(c.name, c.import_idx) for c in first.columns] == [
            (c.name, c.import_idx) for c in second.columns
        ]
        assert [_before(c) for c in first.columns] == [_before(c) for c in second.columns]


class TestObsWithoutEncounterImport:
    """Observations outside an encounter-based template."""

    def test_no_encounter_requirement(self, introspector, template_factory):
        template = template_factory(
            [
                ("Gender", "person", "gender"),
                ("Visit date", "encounter", "encounter_datetime"),
                ("Weight", "obs", "value_numeric"),
            ]
        )

        resolution = DependencyResolver(introspector).resolve(template)

        assert resolution.dependencies["obs"] == ["person"]
        assert _before(_column(template, "Weight")) == [("Gender", "person_id")]


class TestOrdering:
    """Table ordering beyond direct dependencies."""

    def test_transitive_chain(self, template_factory):
        introspector = StaticSchemaIntrospector({"a": {"b": "b_id"}, "b": {"c": "c_id"}, "c": {}})
        template = template_factory([("A", "a", "x"), ("B", "b", "x"), ("C", "c", "x")])

        resolution = DependencyResolver(introspector).resolve(template)

        assert resolution.table_order == ["c", "b", "a"]
        for edge in resolution.edges:
            assert edge.column_import_first.import_idx < edge.column_import_next.import_idx

    def test_parent_with_several_unique_imports(self, template_factory):
        introspector = StaticSchemaIntrospector({"encounter": {}, "obs": {"encounter": "encounter_id"}})
        template = template_factory(
            [
                ("First visit", "encounter", "encounter_datetime", 0),
                ("Second visit", "encounter", "encounter_datetime", 1),
                ("Weight", "obs", "value_numeric"),
            ]
        )

        resolution = DependencyResolver(introspector, rules=[]).resolve(template)

        assert _before(_column(template, "Weight")) == [
            ("First visit", "encounter_id"),
            ("Second visit", "encounter_id"),
        ]
        assert len(resolution.edges) == 2


class TestFailures:
    """Configuration faults and cycles abort resolution."""

    def test_cycle_is_reported(self, template_factory):
        introspector = StaticSchemaIntrospector({"a": {"b": "b_id"}, "b": {"a": "a_id", "z": "z_id"}})
        template = template_factory([("A", "a", "x"), ("B", "b", "x")])

        with pytest.raises(DependencyCycleError) as exc_info:
            DependencyResolver(introspector).resolve(template)

        assert exc_info.value.cycle == ["a", "b", "a"]

    def test_failed_resolution_leaves_template_untouched(self, template_factory):
        introspector = StaticSchemaIntrospector({"a": {"b": "b_id"}, "b": {"a": "a_id", "z": "z_id"}})
        template = template_factory([("A", "a", "x"), ("B", "b", "x")])

        with pytest.raises(DependencyCycleError):
            DependencyResolver(introspector).resolve(template)

        assert not template.resolved
        assert template.prespecified_values == []
        for column in template.columns:
            assert column.import_idx is None
            assert column.column_columns_import_before == []
            assert column.column_prespecified_values == []

    def test_self_reference(self, template_factory):
        introspector = StaticSchemaIntrospector({"obs": {"obs": "obs_group_id"}})
        template = template_factory([("Weight", "obs", "value_numeric")])

        with pytest.raises(SelfReferenceError):
            DependencyResolver(introspector).resolve(template)

    def test_unknown_table(self, introspector, template_factory):
        template = template_factory([("Drug", "drug_order", "dose")])

        with pytest.raises(TemplateConfigurationError) as exc_info:
            DependencyResolver(introspector).resolve(template)

        assert isinstance(exc_info.value, UnknownTableError)
        assert exc_info.value.table_name == "drug_order"

    def test_unique_import_without_columns(self, introspector, template_factory):
        template = template_factory([("Weight", "obs", "value_numeric", 1)])
        template.declare_unique_import(UniqueImport("obs", 2))

        with pytest.raises(TemplateConfigurationError, match=r"obs\[2\]"):
            DependencyResolver(introspector).resolve(template)

    def test_resolving_twice(self, introspector, template_factory):
        template = template_factory([("Gender", "person", "gender")])
        resolver = DependencyResolver(introspector)
        resolver.resolve(template)

        with pytest.raises(TemplateAlreadyResolvedError):
            resolver.resolve(template)


class TestConfiguredValues:
    """Interaction with values already configured on the template."""

    def test_configured_value_is_reused(self, template_factory):
        introspector = StaticSchemaIntrospector({"encounter": {}})
        template = template_factory([("Visit date", "encounter", "encounter_datetime")])
        configured = template.add_prespecified_value(
            PrespecifiedValue(template=template, table_dot_column="location.location_id", value=7)
        )

        resolution = resolve_template_dependencies(template, introspector)

        location = next(v for v in resolution.prespecified_values if v.table_name == "location")
        assert location is configured
        assert location.value == 7
        assert len(location.column_prespecified_values) == 1
        assert len(template.prespecified_values) == 2

    def test_custom_rules_replace_defaults(self, template_factory):
        introspector = StaticSchemaIntrospector({"encounter": {"users": "creator"}})
        template = template_factory([("Visit date", "encounter", "encounter_datetime")])

        resolution = DependencyResolver(introspector, rules=[], aliases=[]).resolve(template)

        assert [v.table_dot_column for v in resolution.prespecified_values] == ["users.users_id"]


class TestIntrospectorUsage:
    """How the resolver queries the schema."""

    def test_introspector_queried_once_per_table(self, schema_mapping, template_factory):
        introspector = Mock(spec=SchemaIntrospector)
        introspector.get_foreign_key_map.side_effect = lambda table: dict(schema_mapping[table])
        template = template_factory(
            [
                ("Gender", "person", "gender"),
                ("Weight", "obs", "value_numeric", 1),
                ("Birthdate", "person", "birthdate"),
                ("Height", "obs", "value_numeric", 2),
            ]
        )

        DependencyResolver(introspector).resolve(template)

        assert [c.args[0] for c in introspector.get_foreign_key_map.call_args_list] == ["person", "obs"]
