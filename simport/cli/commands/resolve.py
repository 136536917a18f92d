"""
Resolve command implementation.
"""

from pathlib import Path
from typing import Literal

import typer

from simport.cli.context import CommandContext
from simport.output.exporter import ResolutionExporter
from simport.output.visualizer import ResolutionVisualizer
from simport.resolver.dependency_resolver import DependencyResolver, TemplateResolution
from simport.shared.constants import OUTPUT_FILES
from simport.shared.exceptions import SimportError
from simport.template.loader import TemplateReader

OutputFormat = Literal["json", "yaml"]


def cmd_resolve(
    template_path: str,
    project_folder: str | None = None,
    schema_file: str | None = None,
    database: str | None = None,
    ddl_file: str | None = None,
    dialect: str | None = None,
    format: OutputFormat | None = None,
    output: str | None = None,
    mermaid: bool = False,
    verbose: bool = False,
) -> None:
    """
    Resolve the import order of a template.

    This command:
    1. Reads the template definition
    2. Builds the schema introspector from options or configuration
    3. Resolves table order, column edges and prespecified values
    4. Prints the result and optionally exports it

    Args:
        template_path: Path to the template definition file
        project_folder: Folder holding simport.toml or pyproject.toml
        schema_file: YAML/JSON file mapping tables to their foreign keys
        database: DuckDB database to introspect
        ddl_file: SQL file with CREATE TABLE statements
        dialect: SQL dialect of the DDL file
        format: Export format ("json" or "yaml")
        output: Folder to export the resolution to
        mermaid: Also export a Mermaid diagram of the table graph
        verbose: Enable verbose output
    """
    ctx = CommandContext(
        project_folder=project_folder,
        verbose=verbose,
        overrides={
            "schema_file": schema_file,
            "database": database,
            "ddl_file": ddl_file,
            "ddl_dialect": dialect,
            "format": format,
            "output_folder": output,
        },
    )

    try:
        typer.echo(f"Resolving template: {template_path}")
        template = TemplateReader().read_template(template_path)
        introspector = ctx.config.build_introspector()
        resolution = DependencyResolver(introspector).resolve(template)

        _print_resolution(resolution)

        if output:
            exporter = ResolutionExporter(ctx.config.output_folder)
            exported = exporter.export(resolution, format=ctx.config.format)
            typer.echo(f"\nResolution saved to {exported}")
            if mermaid:
                diagram = ResolutionVisualizer().save_mermaid_diagram(
                    resolution, Path(ctx.config.output_folder) / OUTPUT_FILES["mermaid_diagram"]
                )
                typer.echo(f"Mermaid diagram saved to {diagram}")

    except SimportError as e:
        typer.echo(f"\n❌ Resolution failed: {e}", err=True)
        ctx.handle_error(e)


def _print_resolution(resolution: TemplateResolution) -> None:
    typer.echo(f"\nTable order: {' -> '.join(resolution.table_order)}")

    typer.echo("\nColumns:")
    for column in resolution.columns:
        typer.echo(f"  {column.import_idx:>3}  {column.name} -> {column.table_dot_column}")

    if resolution.prespecified_values:
        typer.echo("\nPrespecified values:")
        for value in resolution.prespecified_values:
            shown = "<unset>" if value.value is None else value.value
            typer.echo(
                f"  {value.table_dot_column} = {shown} "
                f"({len(value.column_prespecified_values)} columns)"
            )
