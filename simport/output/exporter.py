"""
Export of template resolutions to JSON and YAML.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Literal

import yaml

from simport.resolver.dependency_resolver import TemplateResolution
from simport.shared.constants import OUTPUT_FILES
from simport.shared.exceptions import OutputGenerationError
from simport.shared.types import FilePath

logger = logging.getLogger(__name__)

OutputFormat = Literal["json", "yaml"]


def resolution_to_dict(resolution: TemplateResolution) -> Dict[str, Any]:
    """
    Convert a resolution into plain data.

    Columns are listed in import order; edges and prespecified links refer to
    columns by their spreadsheet name.
    """
    columns = []
    for column in resolution.columns:
        columns.append(
            {
                "name": column.name,
                "table": column.table_name,
                "column": column.column_name,
                "group": column.group,
                "import_idx": column.import_idx,
                "import_after": [
                    {"column": edge.column_import_first.name, "foreign_key": edge.column_name}
                    for edge in column.column_columns_import_before
                ],
                "prespecified_values": [
                    {
                        "table_dot_column": link.prespecified_value.table_dot_column,
                        "foreign_key": link.column_name,
                    }
                    for link in column.column_prespecified_values
                ],
            }
        )

    return {
        "template": resolution.template.name,
        "encounter": resolution.template.encounter,
        "table_order": list(resolution.table_order),
        "dependencies": {table: list(parents) for table, parents in resolution.dependencies.items()},
        "columns": columns,
        "prespecified_values": [
            {
                "table_dot_column": value.table_dot_column,
                "value": value.value,
                "columns": [link.column.name for link in value.column_prespecified_values],
            }
            for value in resolution.prespecified_values
        ],
    }


class ResolutionExporter:
    """Writes resolutions to an output folder."""

    def __init__(self, output_folder: FilePath):
        self.output_folder = Path(output_folder)

    def export(self, resolution: TemplateResolution, format: OutputFormat = "json") -> Path:
        """
        Export a resolution to resolution.json or resolution.yaml.

        Args:
            resolution: Resolved template
            format: Output format ("json" or "yaml")

        Returns:
            Path to the exported file

        Raises:
            OutputGenerationError: If export fails
        """
        if format not in ("json", "yaml"):
            raise OutputGenerationError(f"Unsupported output format '{format}'")

        output_file = self.output_folder / OUTPUT_FILES[format]
        data = resolution_to_dict(resolution)

        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(output_file, "w", encoding="utf-8") as f:
                if format == "yaml":
                    yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
                else:
                    json.dump(data, f, indent=2, ensure_ascii=False, default=str)
        except OSError as e:
            raise OutputGenerationError(f"Failed to export resolution: {e}") from e

        logger.info(f"Resolution saved to {output_file}")
        return output_file
