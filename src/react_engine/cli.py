"""Command-line interface for the ReAct engine.

Provides small offline utilities around the engine: repairing a model
response into strict JSON, validating configuration files, and showing
version and default settings.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    react-engine = "react_engine.cli:main"

Usage examples::

    react-engine parse response.txt
    cat response.txt | react-engine parse --context synthesize
    react-engine config --input settings.json
    react-engine info
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="react-engine",
        description="ReAct engine -- utilities for LLM tool-using agents.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- parse -------------------------------------------------------------
    parse_parser = subparsers.add_parser(
        "parse",
        help="Repair a model response into strict JSON.",
        description=(
            "Extract the JSON object from a model response (fences, prose, "
            "trailing commas, single quotes...) and print it as strict JSON."
        ),
    )
    parse_parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="File holding the response text, or '-' for stdin. (default: -)",
    )
    parse_parser.add_argument(
        "--context",
        type=str,
        default="cli",
        help="Label used in error messages. (default: cli)",
    )

    # -- config ------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        help="Validate a JSON configuration file.",
        description=(
            "Load a JSON file with 'react' and/or 'cache' sections, validate "
            "it and print the effective values."
        ),
    )
    config_parser.add_argument(
        "--input",
        type=str,
        default=None,
        help="Path to the JSON config file.  Omit to print the defaults.",
    )

    # -- info --------------------------------------------------------------
    subparsers.add_parser(
        "info",
        help="Show version, defaults and dependency status.",
        description="Display version, default configuration and dependency status.",
    )

    return parser


# =========================================================================
# Subcommand handlers
# =========================================================================

def _cmd_parse(args: argparse.Namespace) -> int:
    """Handle the ``parse`` subcommand."""
    from react_engine.domain.exceptions import ParseError
    from react_engine.services.parsing import parse_json_response

    if args.input == "-":
        text = sys.stdin.read()
    else:
        text = Path(args.input).read_text(encoding="utf-8")

    try:
        data = parse_json_response(text, args.context)
    except ParseError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    """Handle the ``config`` subcommand."""
    from react_engine.infrastructure.config import (
        CacheConfig,
        ReActConfig,
        load_config_from_json,
    )

    sections: dict[str, Any] = {"react": ReActConfig(), "cache": CacheConfig()}
    if args.input is not None:
        try:
            loaded = load_config_from_json(Path(args.input).read_text(encoding="utf-8"))
        except (ValueError, TypeError) as exc:
            print(f"Invalid configuration: {exc}", file=sys.stderr)
            return 1
        sections.update(loaded)

    effective = {
        name: value.to_dict() if hasattr(value, "to_dict") else value
        for name, value in sections.items()
    }
    print(json.dumps(effective, indent=2))
    return 0


def _cmd_info(args: argparse.Namespace) -> int:
    """Handle the ``info`` subcommand."""
    from react_engine import __version__
    from react_engine.infrastructure.config import CacheConfig, ReActConfig

    print(f"ReAct engine v{__version__}")
    print()

    deps = {
        "langchain_core": "Chat model integration and prompt templates (required)",
        "pydantic": "Response schemas and output validation (required)",
        "numpy": "Confidence blending (required)",
    }
    print("Dependencies:")
    for pkg, desc in deps.items():
        try:
            mod = __import__(pkg)
            version = getattr(mod, "__version__", "unknown")
            print(f"  [installed] {pkg} {version} -- {desc}")
        except ImportError:
            print(f"  [missing]   {pkg} -- {desc}")
    print()

    print("Default engine configuration:")
    for key, value in ReActConfig().to_dict().items():
        print(f"  {key}: {value}")
    print()
    print("Default cache configuration:")
    for key, value in CacheConfig().to_dict().items():
        print(f"  {key}: {value}")
    return 0


# =========================================================================
# Entry point
# =========================================================================

def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.version:
        from react_engine import __version__
        print(f"react-engine {__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    handlers: dict[str, Any] = {
        "parse": _cmd_parse,
        "config": _cmd_config,
        "info": _cmd_info,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
