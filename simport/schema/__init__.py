"""
Schema introspection layer.
"""

from .introspection import (
    DuckDBSchemaIntrospector,
    SchemaIntrospector,
    SqlSchemaIntrospector,
    StaticSchemaIntrospector,
)

__all__ = [
    "DuckDBSchemaIntrospector",
    "SchemaIntrospector",
    "SqlSchemaIntrospector",
    "StaticSchemaIntrospector",
]
