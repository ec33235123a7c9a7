"""Command line entry point.

`moira-matrix run` starts the bot; `moira-matrix describe` lists the SOAP
operations the Moira endpoint offers, which is handy when adding commands.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

import anyio

from .bridge.runtime import build_bridge_config, run_bot
from .config import (
    DEFAULT_CONFIG_PATH,
    expand_path,
    load_moira_settings,
    load_settings,
)
from .errors import ConfigError
from .logging import setup_logging
from .moira import Moira


async def _run(config_path: str) -> int:
    settings = load_settings(expand_path(config_path))
    cfg = await build_bridge_config(settings)
    return await run_bot(cfg)


async def _describe(config_path: str) -> int:
    settings = load_moira_settings(expand_path(config_path))
    moira = await Moira.initialize(
        settings.key_file, settings.cert_file, wsdl_url=settings.wsdl_url
    )
    try:
        for name in moira.describe_operations():
            print(name)
    finally:
        await moira.aclose()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moira-matrix",
        description="Matrix bot backed by the MIT Moira directory.",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"path to the TOML config (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="start the bot")
    sub.add_parser("describe", help="list Moira SOAP operations")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug)
    handler = _run if args.command == "run" else _describe
    try:
        return anyio.run(handler, args.config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
