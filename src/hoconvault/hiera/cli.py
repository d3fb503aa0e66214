"""``hocon-hiera``: print the effective config of a hierarchy for given facts."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING, TextIO

from hoconvault.cli import (
    EXIT_OPTIONS_ERROR,
    EXIT_SUCCESS,
    EXIT_UNHANDLED_EXCEPTION,
    ToolArgumentParser,
    configure_logging,
    print_error,
)
from hoconvault.errors import ArgumentError, ConfigWrongTypeError, SettingsError
from hoconvault.hocon import Config, RenderOptions
from hoconvault.settings import resolve_settings

from .resolver import HoconHiera

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


def build_parser() -> ToolArgumentParser:
    parser = ToolArgumentParser(
        prog="hocon-hiera",
        description="Resolve a HOCON hierarchy against a set of facts.",
    )
    parser.add_argument("--root", required=True, help="directory holding hiera.conf")
    parser.add_argument(
        "--fact",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="a fact; repeat for more",
    )
    parser.add_argument("--facts", default=None, metavar="FILE", help="HOCON file of facts")
    parser.add_argument(
        "--json", action="store_true", default=None, help="print the config as JSON"
    )
    parser.add_argument(
        "--no-resolve",
        dest="resolve",
        action="store_false",
        help="leave substitutions in the folded config unresolved",
    )
    parser.add_argument(
        "--paths", action="store_true", help="print the hierarchy paths instead of the config"
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


def parse_fact(text: str) -> tuple[str, str]:
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise ArgumentError(f"Expected NAME=VALUE, got '{text}'")
    return name, value


def load_facts(path: str | None, flags: Sequence[str]) -> dict[str, str]:
    """Facts from ``path`` with ``--fact`` flags on top."""
    facts: dict[str, str] = {}
    if path is not None:
        config = Config.parse_file(path)
        try:
            facts.update({key: config.get_string(key) for key, _ in config.entries()})
        except ConfigWrongTypeError as exc:
            raise ArgumentError(f"Facts in {path} must be scalars: {exc}") from exc
    facts.update(parse_fact(flag) for flag in flags)
    return facts


def main(
    argv: Sequence[str] | None = None,
    *,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    out = out if out is not None else sys.stdout
    err = err if err is not None else sys.stderr
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
        if args.json and not args.resolve:
            raise ArgumentError(
                "--json cannot render unresolved substitutions",
                hint="Drop --no-resolve, or --json to print HOCON.",
            )
        settings = resolve_settings({"json_output": args.json})
        configure_logging(settings.log_level, args.verbose)
        json_output = settings.json_output
        if json_output and not args.resolve:
            logger.warning("Printing HOCON: JSON output needs a resolved config")
            json_output = False

        hiera = HoconHiera(args.root)
        facts = load_facts(args.facts, args.fact)
        logger.debug("Resolving %s with facts %s", hiera.root, sorted(facts))
        if args.paths:
            for relative in hiera.hierarchy(facts):
                out.write(relative + "\n")
        else:
            config = hiera.config(facts, resolve=args.resolve)
            out.write(config.render(RenderOptions.for_output(json=json_output)) + "\n")
    except (ArgumentError, SettingsError) as exc:
        print_error(exc, err)
        err.write("\n")
        parser.print_help(err)
        return EXIT_OPTIONS_ERROR
    except Exception as exc:
        logger.debug("Resolution failed", exc_info=True)
        print_error(exc, err)
        return EXIT_UNHANDLED_EXCEPTION
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
