#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/cli.py
"""Command line interface for mail2md.

Conversion flags are generated from the ``ConversionOptions`` field
metadata. Values are resolved with the priority defaults < configuration
file < command line, and errors map to exit codes:

- 0: success
- 1: conversion error
- 2: usage, input, configuration or validation error
- 3: missing dependency

Examples
--------
Convert a saved email to Markdown on stdout::

    mail2md --email message.html

Convert several files into one JSON document::

    mail2md --format json a.html b.html -o out.json

"""

import argparse
import json
import logging
import os
import sys
from dataclasses import Field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from mail2md.batch import BatchItem, convert_batch
from mail2md.config import CONFIG_ENV_VAR, load_config_with_priority, merge_configs, options_from_config
from mail2md.constants import (
    EXIT_DEPENDENCY_ERROR,
    EXIT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
)
from mail2md.exceptions import DependencyError, Mail2MdError, ValidationError
from mail2md.logging_utils import configure_logging
from mail2md.options import ConversionOptions, CustomRule

logger = logging.getLogger(__name__)

STDIN_MARKER = "-"


def _get_version() -> str:
    """Get the installed package version."""
    try:
        from importlib.metadata import version

        return version("mail2md")
    except Exception:
        from mail2md import __version__

        return __version__


def infer_cli_name(f: Field) -> str:
    """Return the flag name of an options field.

    An explicit ``cli_name`` in the field metadata wins. Booleans that
    default to True get a ``--no-*`` form.
    """
    if "cli_name" in f.metadata:
        return f"--{f.metadata['cli_name']}"
    kebab = f.name.replace("_", "-")
    if f.default is True:
        kebab = f"no-{kebab}"
    return f"--{kebab}"


def get_argument_kwargs(f: Field) -> Dict[str, Any]:
    """Build ``add_argument`` keyword arguments from field metadata.

    Defaults are suppressed so that only flags given on the command line
    override configuration file values.
    """
    kwargs: Dict[str, Any] = {
        "help": f.metadata.get("help", f"Configure {f.name}"),
        "dest": f.name,
        "default": argparse.SUPPRESS,
    }
    if isinstance(f.default, bool):
        kwargs["action"] = "store_false" if f.default else "store_true"
    elif "choices" in f.metadata:
        kwargs["choices"] = f.metadata["choices"]
    return kwargs


def add_options_arguments(parser: argparse.ArgumentParser) -> None:
    """Add one flag per ``ConversionOptions`` field not excluded from the CLI."""
    group = parser.add_argument_group("conversion options")
    for f in fields(ConversionOptions):
        if f.metadata.get("exclude_from_cli", False):
            continue
        group.add_argument(infer_cli_name(f), **get_argument_kwargs(f))


def _parse_rule(value: str) -> CustomRule:
    selector, sep, template = value.partition("=")
    if not sep or not selector.strip():
        raise argparse.ArgumentTypeError(f"Custom rule must look like SELECTOR=TEMPLATE, got {value!r}")
    return CustomRule(selector=selector.strip(), replacement=template)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mail2md",
        description="Convert HTML and HTML email to Markdown.",
    )
    parser.add_argument("input", nargs="*", help="Input HTML files ('-' or nothing reads stdin)")
    parser.add_argument("-o", "--out", help="Write output to this file instead of stdout")
    parser.add_argument("--email", action="store_true", help="Treat the input as email regardless of detection")
    parser.add_argument(
        "--format", choices=["markdown", "json"], default="markdown", help="Output Markdown or a JSON result object"
    )
    parser.add_argument("--config", help=f"Configuration file (default: discovered, or ${CONFIG_ENV_VAR})")
    parser.add_argument("--no-config", action="store_true", help="Skip configuration file discovery")
    parser.add_argument(
        "--ignore", action="append", default=[], metavar="TAG", help="Drop TAG and its content (repeatable)"
    )
    parser.add_argument("--keep", action="append", default=[], metavar="TAG", help="Keep TAG as HTML (repeatable)")
    parser.add_argument(
        "--rule",
        action="append",
        default=[],
        type=_parse_rule,
        metavar="SELECTOR=TEMPLATE",
        help="Add a custom template rule, e.g. 'mark===${content}==' (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", help="Also write log output to this file")
    parser.add_argument("--trace", action="store_true", help="Verbose log format with timestamps and logger names")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_get_version()}")

    add_options_arguments(parser)
    return parser


def map_args_to_options(parsed_args: argparse.Namespace, config: Optional[Dict[str, Any]] = None) -> ConversionOptions:
    """Combine configuration file values and command line flags into options.

    Raises
    ------
    ValidationError
        If a configuration value or flag is rejected

    """
    cli_values: Dict[str, Any] = {
        f.name: getattr(parsed_args, f.name) for f in fields(ConversionOptions) if hasattr(parsed_args, f.name)
    }
    if parsed_args.email:
        cli_values["is_email"] = True
    if parsed_args.ignore:
        cli_values["ignore_elements"] = [tag.lower() for tag in parsed_args.ignore]
    if parsed_args.keep:
        cli_values["keep_elements"] = [tag.lower() for tag in parsed_args.keep]

    merged = merge_configs(config or {}, cli_values)
    if parsed_args.rule:
        merged["custom_rules"] = list(merged.get("custom_rules", [])) + list(parsed_args.rule)
    return options_from_config(merged)


def read_inputs(paths: List[str]) -> List[tuple[str, str]]:
    """Read the inputs as ``(name, html)`` pairs.

    Raises
    ------
    OSError
        If a file cannot be read

    """
    if not paths or paths == [STDIN_MARKER]:
        return [("<stdin>", sys.stdin.read())]
    return [(path, Path(path).read_text(encoding="utf-8")) for path in paths]


def exit_code_for(error: BaseException) -> int:
    if isinstance(error, DependencyError):
        return EXIT_DEPENDENCY_ERROR
    if isinstance(error, ValidationError):
        return EXIT_VALIDATION_ERROR
    return EXIT_ERROR


def format_output(names: List[str], items: List[BatchItem], output_format: str) -> str:
    """Render the successful conversions as Markdown or JSON.

    Several inputs produce one section per file.
    """
    converted = [(names[item.index], item.result) for item in items if item.result is not None]

    if output_format == "json":
        payload: Any = [{"file": name, **result.to_dict()} for name, result in converted]
        if len(names) == 1:
            payload = converted[0][1].to_dict() if converted else {}
        return json.dumps(payload, indent=2, ensure_ascii=False)

    if len(names) == 1:
        return converted[0][1].markdown if converted else ""
    return "\n\n".join(f"<!-- {name} -->\n\n{result.markdown}" for name, result in converted)


def write_output(text: str, out: Optional[str]) -> None:
    if out:
        output_path = Path(out)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %s", output_path)
    else:
        print(text)


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    configure_logging(parsed_args.log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)

    try:
        config = {} if parsed_args.no_config else load_config_with_priority(
            parsed_args.config, os.environ.get(CONFIG_ENV_VAR)
        )
        options = map_args_to_options(parsed_args, config)
    except Mail2MdError as e:
        print(f"Error: {e}", file=sys.stderr)
        return exit_code_for(e)

    try:
        inputs = read_inputs(parsed_args.input)
    except OSError as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    names = [name for name, _ in inputs]
    try:
        items = list(convert_batch([html for _, html in inputs], options))
    except DependencyError as e:
        print(f"Missing dependency: {e}", file=sys.stderr)
        return EXIT_DEPENDENCY_ERROR

    exit_code = EXIT_SUCCESS
    for item in items:
        if item.error is not None:
            print(f"Error: {names[item.index]}: {item.error}", file=sys.stderr)
            exit_code = max(exit_code, exit_code_for(item.error))
        elif item.result is not None:
            for message in item.result.metadata.errors:
                logger.warning("%s: %s", names[item.index], message)

    if any(item.result is not None for item in items):
        try:
            write_output(format_output(names, items, parsed_args.format), parsed_args.out)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return EXIT_ERROR

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
