"""
Common type definitions for the simport package.
"""

from pathlib import Path

# Parent table name -> foreign key column name
ForeignKeyMap = dict[str, str]

# Table name -> foreign key map
SchemaMapping = dict[str, ForeignKeyMap | None]

# Table name -> imported parent tables, in requirement order
TableDependencies = dict[str, list[str]]

GraphCycles = list[list[str]]

FilePath = str | Path
