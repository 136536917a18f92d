"""
Spreadsheet header check.

Compares the header row of a spreadsheet with the columns a template expects.
Reading the spreadsheet is the caller's job; only the header names are needed here.
"""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from .models import Template

logger = logging.getLogger(__name__)


@dataclass
class HeaderReport:
    """Result of comparing a header row with a template."""

    missing: list[str] = field(default_factory=list)
    extra: list[str] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    valid: bool = True


def join_names(names: Sequence[str]) -> str:
    """Join names as an English list: "a", "a and b", "a, b, and c"."""
    result = ""
    for i, name in enumerate(names):
        if len(names) == 2 and i == 1:
            result += " and "
        elif len(names) > 2 and i == len(names) - 1:
            result += ", and "
        elif i != 0:
            result += ", "
        result += name
    return result


def check_header(template: Template, header: Sequence[str]) -> HeaderReport:
    """
    Compare a spreadsheet header row against the template's column names.

    Missing template columns only produce a warning; extra sheet columns are
    reported as ignored. An empty header makes the report invalid.

    Args:
        template: Template the spreadsheet is imported with
        header: Header cell values, in sheet order

    Returns:
        HeaderReport
    """
    report = HeaderReport()

    if not header:
        report.valid = False
        report.messages.append("Spreadsheet header row must not be empty")
        return report

    logger.debug(f"Column names: {list(header)}")

    template_names = template.column_names()
    report.missing = [name for name in template_names if name not in header]
    report.extra = [name for name in header if name not in template_names]

    if report.missing:
        message = f"Required column names not present: {join_names(report.missing)}"
        logger.warning(message)
        report.messages.append(message)

    if report.extra:
        report.messages.append(
            f"Extra column names present, these will not be processed: {join_names(report.extra)}"
        )

    return report
