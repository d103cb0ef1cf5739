"""CLI module - Command-line interface components."""

from objlock.cli.main import main
from objlock.cli.parser import build_parser, parse_arguments

__all__ = ["build_parser", "main", "parse_arguments"]
