"""
simport

Resolves the order in which a spreadsheet import template fills its tables,
the dependencies between its columns, and the prespecified values standing in
for tables the spreadsheet does not provide.
"""

from .resolver import DependencyResolver, TemplateResolution, resolve_template_dependencies
from .schema import (
    DuckDBSchemaIntrospector,
    SchemaIntrospector,
    SqlSchemaIntrospector,
    StaticSchemaIntrospector,
)
from .template import Column, PrespecifiedValue, Template, TemplateReader, UniqueImport, check_header

__all__ = [
    "Column",
    "DependencyResolver",
    "DuckDBSchemaIntrospector",
    "PrespecifiedValue",
    "SchemaIntrospector",
    "SqlSchemaIntrospector",
    "StaticSchemaIntrospector",
    "Template",
    "TemplateReader",
    "TemplateResolution",
    "UniqueImport",
    "check_header",
    "resolve_template_dependencies",
]
