"""
Command context for shared setup across CLI commands.
"""

import traceback
from typing import Any, Dict, Optional

import typer

from simport.config import ResolverConfig, load_resolver_config

from .utils import setup_logging


class CommandContext:
    """
    Shared context for CLI commands.

    Handles common setup: setting up logging and loading the resolver configuration.
    """

    def __init__(
        self,
        project_folder: Optional[str] = None,
        verbose: bool = False,
        overrides: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize command context from parameters.

        Args:
            project_folder: Folder holding simport.toml or pyproject.toml (default: cwd)
            verbose: Enable verbose output
            overrides: Configuration values given on the command line
        """
        self.verbose = verbose
        setup_logging(self.verbose)

        self.project_folder = project_folder
        self.overrides = overrides or {}
        self._config: Optional[ResolverConfig] = None

    @property
    def config(self) -> ResolverConfig:
        """Resolver configuration, loaded on first use."""
        if self._config is None:
            self._config = load_resolver_config(self.project_folder, self.overrides)
        return self._config

    def handle_error(self, error: Exception, show_traceback: Optional[bool] = None) -> None:
        """
        Handle errors consistently across commands.

        Args:
            error: The exception that occurred
            show_traceback: Whether to show traceback (defaults to verbose mode)
        """
        if show_traceback is None:
            show_traceback = self.verbose

        error_prefix = typer.style("Error: ", fg=typer.colors.RED, bold=True)
        typer.echo(f"{error_prefix}{error}", err=True)
        if show_traceback:
            traceback.print_exc()
        raise typer.Exit(1)
