"""
Template layer: data model, definition file reader and header check.
"""

from .header_check import HeaderReport, check_header, join_names
from .loader import TemplateReader
from .models import (
    Column,
    ColumnColumn,
    ColumnPrespecifiedValue,
    PrespecifiedValue,
    Template,
    UniqueImport,
)

__all__ = [
    "Column",
    "ColumnColumn",
    "ColumnPrespecifiedValue",
    "HeaderReport",
    "PrespecifiedValue",
    "Template",
    "TemplateReader",
    "UniqueImport",
    "check_header",
    "join_names",
]
