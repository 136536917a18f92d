"""
Pytest configuration and shared fixtures for simport tests.
"""

import pytest

from simport.resolver.dependency_resolver import DependencyResolver
from simport.schema.introspection import StaticSchemaIntrospector
from simport.template.models import Column, Template


@pytest.fixture
def schema_mapping():
    """Foreign keys of a small medical-records schema."""
    return {
        "users": {"person": "person_id"},
        "person": {"users": "creator"},
        "person_name": {"person": "person_id", "users": "creator"},
        "patient": {"person": "patient_id", "users": "creator"},
        "patient_identifier": {"location": "location_id", "users": "creator"},
        "encounter": {
            "patient": "patient_id",
            "person": "provider_id",
            "encounter_type": "encounter_type",
            "users": "creator",
        },
        "obs": {"person": "person_id", "concept": "concept", "users": "creator"},
        "location": {"users": "creator"},
        "form": {"users": "creator"},
    }


@pytest.fixture
def introspector(schema_mapping):
    """Static introspector over schema_mapping."""
    return StaticSchemaIntrospector(schema_mapping)


@pytest.fixture
def template_factory():
    """Build templates from (name, table, column[, group]) tuples."""

    def make_template(columns, name="test", encounter=False):
        template = Template(name=name, encounter=encounter)
        for spec in columns:
            name_, table, column = spec[:3]
            group = spec[3] if len(spec) > 3 else 0
            template.add_column(Column(name=name_, table_name=table, column_name=column, group=group))
        return template

    return make_template


@pytest.fixture
def resolution(introspector, template_factory):
    """Resolution of a small person and encounter template."""
    template = template_factory(
        [
            ("Gender", "person", "gender"),
            ("Visit date", "encounter", "encounter_datetime"),
        ],
        name="visits",
    )
    return DependencyResolver(introspector).resolve(template)
