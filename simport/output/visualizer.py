"""
Visualization of the table dependency graph of a resolution.
"""

from pathlib import Path

from simport.resolver.dependency_resolver import TemplateResolution
from simport.shared.exceptions import OutputGenerationError
from simport.shared.types import FilePath


class ResolutionVisualizer:
    """Renders resolutions as Mermaid diagrams."""

    def generate_mermaid_diagram(self, resolution: TemplateResolution) -> str:
        """
        Generate a Mermaid diagram of the imported tables.

        Edges point from the parent table to the table importing after it.
        Prespecified values are drawn as dashed links from their table.

        Args:
            resolution: Resolved template

        Returns:
            Mermaid diagram as a string
        """
        mermaid_lines = ["graph LR"]
        mermaid_lines.append("    classDef prespecified fill:#fff3e0,stroke:#e65100,stroke-dasharray: 4 2")
        mermaid_lines.append("")

        for table in resolution.table_order:
            mermaid_lines.append(f'    {self._escape_mermaid_node(table)}["{table}"]')

        for value in resolution.prespecified_values:
            safe_value = self._escape_mermaid_node(value.table_dot_column)
            mermaid_lines.append(f'    {safe_value}(["{value.table_dot_column}"]):::prespecified')

        for table, parents in resolution.dependencies.items():
            for parent in parents:
                mermaid_lines.append(
                    f"    {self._escape_mermaid_node(parent)} --> {self._escape_mermaid_node(table)}"
                )

        for value in resolution.prespecified_values:
            safe_value = self._escape_mermaid_node(value.table_dot_column)
            tables = sorted({link.column.table_name for link in value.column_prespecified_values})
            for table in tables:
                mermaid_lines.append(f"    {safe_value} -.-> {self._escape_mermaid_node(table)}")

        if resolution.table_order:
            mermaid_lines.append("")
            mermaid_lines.append("    %% Import Order:")
            for i, table in enumerate(resolution.table_order, 1):
                mermaid_lines.append(f"    %% {i}. {table}")

        return "\n".join(mermaid_lines)

    def save_mermaid_diagram(self, resolution: TemplateResolution, output_file: FilePath) -> Path:
        """Save the diagram of a resolution to output_file."""
        output_path = Path(output_file)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(self.generate_mermaid_diagram(resolution), encoding="utf-8")
        except OSError as e:
            raise OutputGenerationError(f"Failed to save Mermaid diagram: {e}") from e
        return output_path

    def _escape_mermaid_node(self, node_name: str) -> str:
        """Make a node name safe for use as a Mermaid identifier."""
        escaped = node_name
        for char in ".- ()[]{}:;,'\"":
            escaped = escaped.replace(char, "_")

        if escaped and not escaped[0].isalpha() and escaped[0] != "_":
            escaped = "_" + escaped

        return escaped
