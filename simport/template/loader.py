"""
Template Reader - Reads template definition files.

Template definitions describe which spreadsheet column feeds which table column.
They can be written in JSON (.json) or YAML (.yaml, .yml).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from simport.shared.constants import TEMPLATE_JSON_EXTENSIONS, TEMPLATE_YAML_EXTENSIONS
from simport.shared.exceptions import TemplateReaderError
from simport.shared.types import FilePath

from .models import Column, PrespecifiedValue, Template, UniqueImport

logger = logging.getLogger(__name__)


class TemplateReader:
    """Reads template definition files and builds Template objects."""

    def read_template(self, file_path: FilePath) -> Template:
        """
        Read a template definition from a file.

        Args:
            file_path: Path to the .json, .yaml or .yml file

        Returns:
            The template, not yet resolved

        Raises:
            TemplateReaderError: If the file cannot be read or is invalid
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise TemplateReaderError(f"Template file not found: {file_path}")

        suffix = file_path.suffix.lower()
        if suffix not in TEMPLATE_JSON_EXTENSIONS + TEMPLATE_YAML_EXTENSIONS:
            raise TemplateReaderError(
                f"Unsupported template file extension '{file_path.suffix}': {file_path}"
            )

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                if suffix in TEMPLATE_JSON_EXTENSIONS:
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except json.JSONDecodeError as e:
            raise TemplateReaderError(f"Invalid JSON in template file {file_path}: {e}") from e
        except yaml.YAMLError as e:
            raise TemplateReaderError(f"Invalid YAML in template file {file_path}: {e}") from e

        if data is None:
            raise TemplateReaderError(f"Empty template file: {file_path}")

        template = self.build_template(data, default_name=file_path.stem)
        logger.debug(f"Read template '{template.name}' with {len(template.columns)} columns")
        return template

    def build_template(self, data: Dict[str, Any], default_name: str = "template") -> Template:
        """
        Build a template from an already parsed definition.

        Raises:
            TemplateReaderError: If the definition is malformed
        """
        if not isinstance(data, dict):
            raise TemplateReaderError("Template definition must be a mapping")

        columns_data = data.get("columns")
        if not isinstance(columns_data, list) or not columns_data:
            raise TemplateReaderError("Template definition must contain a non-empty 'columns' list")

        template = Template(
            name=str(data.get("name") or default_name),
            encounter=bool(data.get("encounter", False)),
        )

        for index, column_data in enumerate(columns_data):
            template.add_column(self._build_column(column_data, index))

        for import_data in data.get("imports") or []:
            template.declare_unique_import(self._build_unique_import(import_data))

        prespecified = data.get("prespecified_values") or {}
        if not isinstance(prespecified, dict):
            raise TemplateReaderError("'prespecified_values' must be a mapping of table.column to value")
        for table_dot_column, value in prespecified.items():
            if "." not in str(table_dot_column):
                raise TemplateReaderError(
                    f"Prespecified value key '{table_dot_column}' must have the form table.column"
                )
            template.add_prespecified_value(
                PrespecifiedValue(template=template, table_dot_column=str(table_dot_column), value=value)
            )

        return template

    def _build_column(self, column_data: Any, index: int) -> Column:
        if not isinstance(column_data, dict):
            raise TemplateReaderError(f"Column #{index + 1} must be a mapping")

        missing = [key for key in ("name", "table", "column") if not column_data.get(key)]
        if missing:
            raise TemplateReaderError(
                f"Column #{index + 1} is missing required keys: {', '.join(missing)}"
            )

        try:
            group = int(column_data.get("group", 0))
        except (TypeError, ValueError) as e:
            raise TemplateReaderError(f"Column #{index + 1} has an invalid group: {e}") from e

        return Column(
            name=str(column_data["name"]),
            table_name=str(column_data["table"]),
            column_name=str(column_data["column"]),
            group=group,
            position=index + 1,
        )

    def _build_unique_import(self, import_data: Any) -> UniqueImport:
        if not isinstance(import_data, dict) or not import_data.get("table"):
            raise TemplateReaderError("Each entry of 'imports' must be a mapping with a 'table' key")
        try:
            return UniqueImport(str(import_data["table"]), int(import_data.get("group", 0)))
        except (TypeError, ValueError) as e:
            raise TemplateReaderError(f"Invalid group in imports entry {import_data}: {e}") from e
