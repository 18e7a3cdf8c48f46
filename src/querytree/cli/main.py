"""
Command-line interface for querytree.

This module provides a CLI for compiling and inspecting search queries.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from .. import __version__
from ..config.settings import get_condition_catalog, get_settings
from ..core.conditions import ConditionCatalog
from ..core.errors import QueryFormatError
from ..core.nodes import Group, Item, Node
from ..core.serializer import deserialize, serialize, to_json
from ..infrastructure.logging_config import setup_logging, get_logger


logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="querytree",
        description="Advanced search condition builder"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"querytree {__version__}"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    compile_parser = subparsers.add_parser("compile", help="Normalize a query into its canonical form")
    compile_parser.add_argument("query", help="Path to a query JSON file, or - for stdin")
    compile_parser.add_argument("--indent", type=int, default=None, help="Indent the JSON output")

    show_parser = subparsers.add_parser("show", help="Print a query as a condition tree")
    show_parser.add_argument("query", help="Path to a query JSON file, or - for stdin")

    subparsers.add_parser("conditions", help="List the available condition types")

    return parser


def read_query(source: str) -> Any:
    """
    Read a query from a file path or from stdin ('-').

    Raises:
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the content is not JSON.
    """
    if source == "-":
        return json.load(sys.stdin)
    with open(Path(source), 'r', encoding='utf-8') as f:
        return json.load(f)


def format_tree(node: Node, catalog: Optional[ConditionCatalog] = None, indent: str = "  ") -> list[str]:
    """
    Render a subtree as indented outline lines.

    Args:
        node: Subtree root.
        catalog: Used to show condition labels.
        indent: Indentation per level.

    Returns:
        One line per node.
    """
    lines = []
    for descendant in node.walk():
        prefix = indent * descendant.depth
        if isinstance(descendant, Group):
            name = "ROOT" if descendant.is_root else "GROUP"
            lines.append(f"{prefix}{name} {descendant.operator.value.upper()} ({len(descendant)})")
        elif isinstance(descendant, Item):
            label = catalog.label(descendant.condition_type) if catalog else descendant.condition_type
            lines.append(f"{prefix}{label}: {json.dumps(descendant.payload, ensure_ascii=False)}")
    return lines


def cmd_compile(args: argparse.Namespace) -> int:
    """
    Rebuild the tree for a query and print its canonical form.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    try:
        editor = deserialize(read_query(args.query))
    except (OSError, json.JSONDecodeError, QueryFormatError) as e:
        logger.error(f"Cannot compile query {args.query}: {e}")
        return 1

    print(to_json(serialize(editor.root), indent=args.indent))
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """
    Print the condition tree of a query.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    try:
        editor = deserialize(read_query(args.query))
    except (OSError, json.JSONDecodeError, QueryFormatError) as e:
        logger.error(f"Cannot read query {args.query}: {e}")
        return 1

    catalog = get_condition_catalog(get_settings())
    for line in format_tree(editor.root, catalog):
        print(line)
    return 0


def cmd_conditions(args: argparse.Namespace) -> int:
    """
    List the condition types of the configured catalog.

    Returns:
        Exit code (0 for success).
    """
    catalog = get_condition_catalog(get_settings())
    for definition in catalog:
        relation = "" if definition.supports_relation else "  (no relation)"
        print(f"{definition.condition_type:<28}{definition.label}{relation}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    setup_logging(level=log_level, log_to_file=False)

    if args.command == "compile":
        return cmd_compile(args)
    elif args.command == "show":
        return cmd_show(args)
    elif args.command == "conditions":
        return cmd_conditions(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
