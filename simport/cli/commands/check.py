"""
Check command implementation.
"""

import typer

from simport.cli.context import CommandContext
from simport.cli.utils import parse_header
from simport.shared.exceptions import SimportError
from simport.template.header_check import check_header
from simport.template.loader import TemplateReader


def cmd_check(
    template_path: str,
    header: str | None = None,
    verbose: bool = False,
) -> None:
    """
    Check a spreadsheet header row against a template.

    Args:
        template_path: Path to the template definition file
        header: Comma-separated header names of the spreadsheet
        verbose: Enable verbose output
    """
    ctx = CommandContext(verbose=verbose)

    try:
        template = TemplateReader().read_template(template_path)
        report = check_header(template, parse_header(header))
    except SimportError as e:
        ctx.handle_error(e)
        return

    for message in report.messages:
        typer.echo(message)

    if not report.valid:
        raise typer.Exit(1)

    if not report.missing and not report.extra:
        typer.echo(f"✅ Header matches template '{template.name}'")
