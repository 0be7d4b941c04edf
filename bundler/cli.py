"""Command line interface for the bundle configuration assembler."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, List, Tuple
import json
import logging
import sys

import yaml

from .config import BuildConfiguration, assemble
from .environment import BuildEnvironment
from .rules import match_rule
from .settings import load_settings


def _parse_arguments(argv: Iterable[str]) -> Tuple[Namespace, List[str]]:
    parser = ArgumentParser(
        prog="bundler",
        description="Assemble bundler configurations for android and ios app bundles",
        epilog="Environment flags are passed as --env.<flag>[=<value>], e.g. --env.android --env.uglify",
    )
    parser.add_argument("--project", type=Path, default=None, help="Project root (defaults to the current directory)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    show_parser = subparsers.add_parser("show", help="Print the assembled configuration as JSON")
    show_parser.add_argument("--indent", type=int, default=2, help="JSON indentation (default: 2)")

    match_parser = subparsers.add_parser("match", help="Show which transform rule handles each path")
    match_parser.add_argument("paths", nargs="+", help="Paths relative to the application directory")

    return parser.parse_known_args(list(argv))


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _handle_show(args: Namespace, configuration: BuildConfiguration) -> int:
    print(json.dumps(configuration.to_mapping(), indent=args.indent))
    return 0


def _handle_match(args: Namespace, configuration: BuildConfiguration) -> int:
    for path in args.paths:
        rule = match_rule(configuration.rules, path, context_root=configuration.context)
        if rule is None:
            print(f"{path}: <no rule>")
            continue
        loaders = " <- ".join(step.loader for step in rule.chain)
        suffix = f" (extracted to {rule.extract})" if rule.extract else ""
        print(f"{path}: {rule.name} [{loaders}]{suffix}")
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    args, env_args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    _configure_logging(args.verbose)

    try:
        env = BuildEnvironment.from_env_args(env_args)
        settings = load_settings(args.project)
        configuration = assemble(env, settings)
    except (ValueError, TypeError, OSError, yaml.YAMLError) as exc:
        print(f"Error: {exc}")
        return 2

    if args.command == "show":
        return _handle_show(args, configuration)
    if args.command == "match":
        return _handle_match(args, configuration)
    raise ValueError(f"Unknown command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
