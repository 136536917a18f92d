"""
CLI utility functions.

Pure, stateless utility functions used across CLI commands.
"""

import logging


def parse_header(header_string: str | None) -> list[str]:
    """
    Parse a comma-separated header row into column names.

    Args:
        header_string: Header names separated by commas (None for empty)

    Returns:
        List of stripped, non-empty column names
    """
    if not header_string:
        return []
    return [name.strip() for name in header_string.split(",") if name.strip()]


def setup_logging(verbose: bool = False) -> None:
    """
    Set up logging configuration.

    Args:
        verbose: If True, set logging level to DEBUG, otherwise INFO
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s - %(name)s - %(message)s")
