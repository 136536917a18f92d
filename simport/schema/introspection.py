"""
Schema introspection: which tables does a table hold foreign keys into.

Every introspector answers one question through get_foreign_key_map(table_name):
a mapping of parent table name to the foreign key column referencing it. When a
table has several foreign keys into the same parent, the first one declared wins.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import duckdb
import sqlglot
import yaml
from sqlglot import exp
from sqlglot.errors import ParseError, TokenError

from simport.shared.exceptions import SchemaLoadError, UnknownTableError
from simport.shared.types import FilePath, ForeignKeyMap, SchemaMapping

logger = logging.getLogger(__name__)

_FOREIGN_KEY_PATTERN = re.compile(
    r"FOREIGN\s+KEY\s*\(([^)]*)\)\s*REFERENCES\s+([\w.\"]+)", re.IGNORECASE
)


def _unquote(identifier: str) -> str:
    """Strip quoting and any schema prefix from an identifier."""
    return identifier.strip().split(".")[-1].strip('"`')


class SchemaIntrospector(ABC):
    """Answers foreign key questions about a relational schema."""

    @abstractmethod
    def get_foreign_key_map(self, table_name: str) -> ForeignKeyMap:
        """
        Get the foreign keys of a table.

        Args:
            table_name: Table to inspect

        Returns:
            New dict mapping parent table name -> foreign key column name

        Raises:
            UnknownTableError: If the schema has no such table
        """


class StaticSchemaIntrospector(SchemaIntrospector):
    """Introspector backed by an in-memory {table: {parent: column}} mapping."""

    def __init__(self, mapping: SchemaMapping):
        self.mapping = {table: dict(fks or {}) for table, fks in mapping.items()}

    @classmethod
    def from_file(cls, file_path: FilePath) -> "StaticSchemaIntrospector":
        """
        Load the mapping from a YAML or JSON file.

        Raises:
            SchemaLoadError: If the file is missing or malformed
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise SchemaLoadError(f"Schema file not found: {file_path}")

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                if file_path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SchemaLoadError(f"Invalid schema file {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise SchemaLoadError(f"Schema file {file_path} must contain a mapping of tables")
        for table, fks in data.items():
            if fks is not None and not isinstance(fks, dict):
                raise SchemaLoadError(
                    f"Foreign keys of table '{table}' must be a mapping of parent table to column"
                )

        logger.debug(f"Loaded schema for {len(data)} tables from {file_path}")
        return cls(data)

    def get_foreign_key_map(self, table_name: str) -> ForeignKeyMap:
        if table_name not in self.mapping:
            raise UnknownTableError(table_name)
        return dict(self.mapping[table_name])


class SqlSchemaIntrospector(StaticSchemaIntrospector):
    """Introspector built from CREATE TABLE statements, parsed with sqlglot."""

    @classmethod
    def from_ddl(cls, sql: str, dialect: Optional[str] = None) -> "SqlSchemaIntrospector":
        """
        Parse DDL and collect column-level REFERENCES and table-level FOREIGN KEYs.

        Args:
            sql: One or more SQL statements
            dialect: sqlglot dialect to read with (e.g. "mysql")

        Raises:
            SchemaLoadError: If the SQL cannot be parsed
        """
        try:
            statements = sqlglot.parse(sql, read=dialect)
        except (ParseError, TokenError) as e:
            raise SchemaLoadError(f"Failed to parse schema DDL: {e}") from e

        mapping: dict[str, ForeignKeyMap] = {}
        for statement in statements:
            if not isinstance(statement, exp.Create):
                continue
            if str(statement.args.get("kind") or "").upper() != "TABLE":
                continue

            schema = statement.this
            if isinstance(schema, exp.Schema):
                table_name = schema.this.name
                foreign_keys = cls._collect_foreign_keys(schema)
            else:
                table_name = schema.name
                foreign_keys = {}

            mapping[table_name] = foreign_keys

        logger.debug(f"Parsed {len(mapping)} tables from schema DDL")
        return cls(mapping)

    @classmethod
    def from_ddl_file(cls, file_path: FilePath, dialect: Optional[str] = None) -> "SqlSchemaIntrospector":
        file_path = Path(file_path)
        if not file_path.exists():
            raise SchemaLoadError(f"DDL file not found: {file_path}")
        return cls.from_ddl(file_path.read_text(encoding="utf-8"), dialect=dialect)

    @staticmethod
    def _collect_foreign_keys(schema: exp.Schema) -> ForeignKeyMap:
        foreign_keys: ForeignKeyMap = {}
        for expression in schema.expressions:
            if isinstance(expression, exp.ColumnDef):
                for constraint in expression.args.get("constraints") or []:
                    kind = constraint.args.get("kind")
                    if isinstance(kind, exp.Reference):
                        parent = kind.find(exp.Table)
                        if parent is not None:
                            foreign_keys.setdefault(parent.name, expression.name)
                continue

            for foreign_key in expression.find_all(exp.ForeignKey):
                reference = foreign_key.args.get("reference")
                parent = reference.find(exp.Table) if reference is not None else None
                if parent is None or not foreign_key.expressions:
                    continue
                foreign_keys.setdefault(parent.name, foreign_key.expressions[0].name)
        return foreign_keys


class DuckDBSchemaIntrospector(SchemaIntrospector):
    """Introspector reading foreign key constraints from a DuckDB catalog."""

    def __init__(self, connection: Any):
        self.connection = connection

    @classmethod
    def from_path(cls, database_path: FilePath) -> "DuckDBSchemaIntrospector":
        if not Path(database_path).exists():
            raise SchemaLoadError(f"DuckDB database not found: {database_path}")
        try:
            return cls(duckdb.connect(str(database_path), read_only=True))
        except duckdb.Error as e:
            raise SchemaLoadError(f"Could not open DuckDB database {database_path}: {e}") from e

    def get_foreign_key_map(self, table_name: str) -> ForeignKeyMap:
        exists = self.connection.execute(
            "SELECT count(*) FROM duckdb_tables() WHERE table_name = ?", [table_name]
        ).fetchone()[0]
        if not exists:
            raise UnknownTableError(table_name)

        rows = self.connection.execute(
            """
            SELECT constraint_text
            FROM duckdb_constraints()
            WHERE table_name = ? AND constraint_type = 'FOREIGN KEY'
            ORDER BY constraint_index
            """,
            [table_name],
        ).fetchall()

        foreign_keys: ForeignKeyMap = {}
        for (constraint_text,) in rows:
            match = _FOREIGN_KEY_PATTERN.search(constraint_text or "")
            if not match:
                logger.warning(f"Could not read foreign key of {table_name}: {constraint_text}")
                continue
            column = _unquote(match.group(1).split(",")[0])
            parent = _unquote(match.group(2))
            foreign_keys.setdefault(parent, column)

        logger.debug(f"Foreign keys of {table_name}: {foreign_keys}")
        return foreign_keys

    def close(self) -> None:
        self.connection.close()
