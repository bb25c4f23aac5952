#!/usr/bin/env python3
"""Command-line interface: show what sgmlish makes of a document."""

from __future__ import annotations

import argparse
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from . import ParserConfig, parse
from .entities import html_entity_resolver
from .errors import SgmlishError
from .transforms import (
    expand_marked_sections,
    lowercase_identifiers,
    normalize_end_tags,
    reindent,
    trim_spaces,
)

# The predefined XML entities, enough for most SGML-ish data formats
BASIC_ENTITIES = {
    "lt": "<",
    "gt": ">",
    "amp": "&",
    "quot": '"',
    "apos": "'",
}


def _get_version() -> str:
    try:
        return version("sgmlish")
    except PackageNotFoundError:  # pragma: no cover
        return "dev"


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sgmlish",
        description="Parse SGML and print the events and the result of the standard transforms.",
        epilog=(
            "Examples:\n"
            "  python -m sgmlish statement.ofx\n"
            "  cat statement.ofx | python -m sgmlish - --lowercase\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "path",
        nargs="?",
        default="-",
        help="SGML file to parse, or '-' to read from stdin (default)",
    )
    parser.add_argument(
        "--lowercase",
        action="store_true",
        help="Lowercase tag and attribute names",
    )
    parser.add_argument(
        "--html-entities",
        action="store_true",
        help="Resolve entities with the HTML5 entity table instead of the five XML ones",
    )
    parser.add_argument(
        "--no-normalize",
        action="store_true",
        help="Stop before inferring omitted end tags",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug output to stderr",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"sgmlish {_get_version()}",
    )
    return parser.parse_args(argv)


def _read_input(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def _section(title: str, body: object) -> None:
    print(f"{title}:")
    print(body)
    print()


def run(argv: list[str]) -> int:
    args = _parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    resolver = html_entity_resolver if args.html_entities else BASIC_ENTITIES
    config = ParserConfig(lowercase_names=args.lowercase, entity_resolver=resolver)

    try:
        fragment = parse(_read_input(args.path), config)
        _section("Roundtrip", fragment)
        _section("Events", "\n".join(repr(event) for event in fragment))

        fragment = trim_spaces(expand_marked_sections(fragment, config))
        if args.lowercase:
            fragment = lowercase_identifiers(fragment)
        _section("Trimmed", fragment)

        if not args.no_normalize:
            fragment = normalize_end_tags(fragment)
            _section("End tags filled in", fragment)
            fragment.validate()
            _section("Pretty-printed", reindent(fragment))
    except SgmlishError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    raise SystemExit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
