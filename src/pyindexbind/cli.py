#!/usr/bin/env python3
"""
pyindexbind CLI

Binds urlencoded or JSON form data to an importable dataclass and prints the
bound value together with the ErrorSink.

Usage:
    python -m pyindexbind.cli <module:Class> [options]
    pyindexbind <module:Class> [options]

Examples:
    pyindexbind shop.models:Order --form order.txt
    pyindexbind shop.models:Order --query "Id=4&Lines[0].Sku=A1&Lines[0].Qty=2"
    echo '{"Name": "x", "Tags": ["a", "b"]}' | pyindexbind app:Person --form - --verbose
"""

from __future__ import annotations

import argparse
import dataclasses
import importlib
import json
import logging
import sys
from typing import Any, List, Optional

from pyindexbind.binder import create_index_model_binder
from pyindexbind.error_sink import ErrorSink, FieldValidationState
from pyindexbind.errors import BindingError
from pyindexbind.options import BinderOptions
from pyindexbind.stores import (
    CompositeValueStore,
    DictValueStore,
    ValueStore,
    from_query_string,
)


#==============================================================================
# CLI Output Formatting
#==============================================================================

class Colors:
    """ANSI color codes for terminal output"""
    RESET = "\x1b[0m"
    BOLD = "\x1b[1m"
    DIM = "\x1b[2m"
    RED = "\x1b[31m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    CYAN = "\x1b[36m"


def print_msg(msg: str, color: str = Colors.RESET) -> None:
    """Print a message with optional color"""
    print(f"{color}{msg}{Colors.RESET}")


_STATE_COLORS = {
    FieldValidationState.VALID: Colors.GREEN,
    FieldValidationState.INVALID: Colors.RED,
    FieldValidationState.SKIPPED: Colors.YELLOW,
    FieldValidationState.UNVALIDATED: Colors.DIM,
}


def format_model(model: Any) -> str:
    """Format a bound value as indented JSON"""
    if dataclasses.is_dataclass(model) and not isinstance(model, type):
        model = dataclasses.asdict(model)
    elif isinstance(model, (set, frozenset)):
        model = sorted(model, key=str)
    return json.dumps(model, indent=2, default=str)


def print_error_sink(sink: ErrorSink) -> None:
    """Print one line per sink entry, followed by its errors"""
    print_msg(f"{Colors.BOLD}Fields:{Colors.RESET}")
    for key, entry in sink.items():
        color = _STATE_COLORS[entry.validation_state]
        shown = key or "<root>"
        print_msg(f"  {shown} = {entry.attempted_value!r} [{entry.validation_state.value}]", color)
        for error in entry.errors:
            print_msg(f"    - {error.message}", Colors.RED)


#==============================================================================
# Input Loading
#==============================================================================

def load_model_type(target: str) -> type:
    """
    Import a class given as ``module:Class``.

    Raises:
        ValueError: If the reference is malformed or does not resolve
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Expected module:Class, got '{target}'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Could not import module '{module_name}': {e}") from e

    obj: Any = module
    for part in attr.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            raise ValueError(f"'{attr}' not found in module '{module_name}'")
    if not isinstance(obj, type):
        raise ValueError(f"'{target}' is not a class")
    return obj


def parse_form_text(text: str) -> ValueStore:
    """
    Parse form data given as a JSON object or as urlencoded text.

    JSON values may be strings, numbers or lists of them.
    """
    stripped = text.strip()
    if stripped.startswith("{"):
        data = json.loads(stripped)
        if not isinstance(data, dict):
            raise ValueError("JSON form data must be an object")
        return DictValueStore({
            key: [str(v) for v in value] if isinstance(value, list) else str(value)
            for key, value in data.items()
        })
    return from_query_string(stripped)


def read_form(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def build_store(form: Optional[str], query: Optional[str]) -> CompositeValueStore:
    """Form values take precedence over query values"""
    stores: List[ValueStore] = []
    if form is not None:
        stores.append(parse_form_text(read_form(form)))
    if query is not None:
        stores.append(from_query_string(query))
    return CompositeValueStore(stores)


#==============================================================================
# Commands
#==============================================================================

def run_bind(
    target: str,
    form: Optional[str] = None,
    query: Optional[str] = None,
    prefix: str = "",
    max_errors: int = 200,
    verbose: bool = False,
) -> int:
    """
    Bind form data to a class and report the outcome.

    Returns:
        Exit code (0 when the bound model is valid, 1 otherwise)
    """
    try:
        model_type = load_model_type(target)
        store = build_store(form, query)
    except (OSError, ValueError) as e:
        print_msg(f"Error: {e}", Colors.RED)
        return 1

    binder = create_index_model_binder(BinderOptions(max_model_errors=max_errors))
    sink = binder.create_error_sink()

    print_msg(f"\n{Colors.BOLD}Binding {model_type.__name__}{Colors.RESET} {Colors.DIM}prefix='{prefix}'{Colors.RESET}\n")
    try:
        result = binder.bind_model_sync(store, sink, model_type, name=prefix)
    except BindingError as e:
        print_msg(f"Configuration error [{e.code.value}]: {e.message}", Colors.RED)
        return 1

    if result.is_model_set:
        print_msg(f"{Colors.BOLD}Model:{Colors.RESET}")
        print(format_model(result.model))
    else:
        print_msg("Nothing was bound", Colors.YELLOW)

    if verbose or not sink.is_valid:
        print()
        print_error_sink(sink)

    print()
    if sink.is_valid:
        print_msg(f"✓ Valid ({len(sink)} fields)", Colors.GREEN)
        return 0
    print_msg(f"✗ {sink.error_count} error(s)", Colors.RED)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        prog="pyindexbind",
        description="Bind flat form data to a typed model and validate it",
    )
    parser.add_argument("target", help="Class to bind, as module:Class")
    parser.add_argument("--form", help="File holding urlencoded or JSON form data ('-' for stdin)")
    parser.add_argument("--query", help="Urlencoded query string")
    parser.add_argument("--prefix", default="", help="Model name prefix")
    parser.add_argument(
        "--max-errors",
        type=int,
        default=200,
        dest="max_errors",
        help="Error ceiling (default: 200)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show every field and debug logging")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    return run_bind(
        args.target,
        form=args.form,
        query=args.query,
        prefix=args.prefix,
        max_errors=args.max_errors,
        verbose=args.verbose,
    )


if __name__ == "__main__":
    sys.exit(main())
