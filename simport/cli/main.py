"""
simport CLI Main Module

Command-line interface for resolving spreadsheet import templates.
"""

from typing import Any, Literal

import typer

from simport.cli.commands import cmd_check, cmd_resolve

OutputFormat = Literal["json", "yaml"]


class AlphabeticalOrderGroup(typer.core.TyperGroup):
    """Custom Typer Group that lists commands in alphabetical order."""

    def list_commands(self, ctx: typer.Context) -> list[str]:
        return sorted(self.commands.keys())


def validate_format(value: str | None) -> OutputFormat | None:
    """Validate format option (json or yaml)."""
    if value is not None and value not in ["json", "yaml"]:
        raise typer.BadParameter(
            typer.style("Error: ", fg=typer.colors.RED, bold=True)
            + f"Invalid format '{value}'. Must be 'json' or 'yaml'."
        )
    return value  # type: ignore[return-value]


app = typer.Typer(
    name="simport",
    help="simport - resolve the import order of spreadsheet import templates",
    add_completion=False,
    rich_markup_mode="rich",
    cls=AlphabeticalOrderGroup,
    invoke_without_command=True,
)


@app.callback()
def main_callback(ctx: typer.Context) -> None:
    """Main CLI callback - shows help when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


TEMPLATE_ARG = typer.Argument(None, help="Path to the template definition (.yaml, .yml or .json)")
VERBOSE_OPTION = typer.Option(False, "-v", "--verbose", help="Enable verbose output")


def _check_required_argument(ctx: typer.Context, arg_name: str, arg_value: Any) -> None:
    """Check if a required argument is provided, show help if not."""
    if arg_value is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


@app.command()
def resolve(
    ctx: typer.Context,
    template: str | None = TEMPLATE_ARG,
    project_folder: str | None = typer.Option(
        None, "-p", "--project-folder", help="Folder containing simport.toml or pyproject.toml"
    ),
    schema: str | None = typer.Option(
        None, "--schema", help="YAML/JSON file mapping tables to their foreign keys"
    ),
    database: str | None = typer.Option(None, "--database", help="DuckDB database to introspect"),
    ddl: str | None = typer.Option(None, "--ddl", help="SQL file with CREATE TABLE statements"),
    dialect: str | None = typer.Option(None, "--dialect", help="SQL dialect of the DDL file"),
    format: str | None = typer.Option(
        None, "-f", "--format", callback=validate_format, help="Export format: json or yaml"
    ),
    output: str | None = typer.Option(None, "-o", "--output", help="Folder to export the resolution to"),
    mermaid: bool = typer.Option(False, "--mermaid", help="Also export a Mermaid diagram"),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Resolve table order, column dependencies and prespecified values."""
    _check_required_argument(ctx, "template", template)
    cmd_resolve(
        template_path=template,
        project_folder=project_folder,
        schema_file=schema,
        database=database,
        ddl_file=ddl,
        dialect=dialect,
        format=format,
        output=output,
        mermaid=mermaid,
        verbose=verbose,
    )


@app.command()
def check(
    ctx: typer.Context,
    template: str | None = TEMPLATE_ARG,
    header: str | None = typer.Option(
        None, "--header", help="Comma-separated header row of the spreadsheet"
    ),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Check a spreadsheet header row against a template."""
    _check_required_argument(ctx, "template", template)
    cmd_check(template_path=template, header=header, verbose=verbose)


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
