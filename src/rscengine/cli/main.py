# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""rscengine CLI."""

from __future__ import annotations

import argparse
import asyncio
import importlib
import json
import sys
from typing import Any

from ..collector import collect_client_modules, get_build_config
from ..config import load_rsc_settings
from ..errors import RscError, status_for_exception
from ..http import FlightClient
from ..log import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rscengine", description="Flight rendering, module discovery and fetch tooling")
    parser.add_argument("--log-level", default=None, help="Logging level (default: RSCENGINE_LOG_LEVEL or WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    collect = sub.add_parser("collect", help="List the client modules referenced by entry inputs")
    collect.add_argument("entries", help="Entries object as module:attribute")
    collect.add_argument("inputs", nargs="+", help="Entry inputs to render")

    build = sub.add_parser("build-config", help="Run the entries' get_build_config hook")
    build.add_argument("entries", help="Entries object as module:attribute")

    fetch = sub.add_parser("fetch", help="Fetch a flight payload from a running server")
    fetch.add_argument("base_url", help="Server origin, e.g. http://localhost:8081")
    fetch.add_argument("input", nargs="?", default="", help="Entry input (default: index)")
    fetch.add_argument("--param", action="append", default=[], metavar="KEY=VALUE", help="Search parameter")
    return parser


def load_entries(target: str) -> Any:
    """Import ``module:attribute`` (attribute defaults to ``entries``)."""
    module_name, _, attribute = target.partition(":")
    module = importlib.import_module(module_name)
    return getattr(module, attribute or "entries")


def _encoder_for(entries: Any) -> Any:
    encoder = getattr(entries, "encoder", None)
    if encoder is None:
        raise SystemExit(f"Entries object {entries!r} does not provide an encoder")
    return encoder


def _parse_params(values: list[str]) -> dict[str, list[str]]:
    params: dict[str, list[str]] = {}
    for value in values:
        key, _, item = value.partition("=")
        params.setdefault(key, []).append(item)
    return params


def _print_json(data: Any) -> None:
    json.dump(data, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")


async def _run(args: argparse.Namespace) -> int:
    if args.command == "collect":
        entries = load_entries(args.entries)
        encoder = _encoder_for(entries)
        result = {input: await collect_client_modules(entries, input, encoder=encoder) for input in args.inputs}
        _print_json(result)
        return 0

    if args.command == "build-config":
        entries = load_entries(args.entries)
        _print_json(await get_build_config(entries, encoder=_encoder_for(entries)))
        return 0

    async with FlightClient(args.base_url, load_rsc_settings()) as client:
        response = await client.fetch(args.input, _parse_params(args.param))
    sys.stdout.buffer.write(response.content)
    sys.stdout.flush()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    try:
        return asyncio.run(_run(args))
    except RscError as exc:
        sys.stderr.write(f"[rscengine] {exc.__class__.__name__}: {exc}\n")
        return 1 if status_for_exception(exc) < 500 else 2


if __name__ == "__main__":
    raise SystemExit(main())
