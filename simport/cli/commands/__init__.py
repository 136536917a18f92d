"""
CLI command implementations.
"""

from simport.cli.commands.check import cmd_check
from simport.cli.commands.resolve import cmd_resolve

__all__ = ["cmd_check", "cmd_resolve"]
