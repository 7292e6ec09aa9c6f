"""Command line interface: ``syntax-search path/to/file.rb``.

Exit status is ``0`` when the document is valid, ``1`` when a syntax error
was located and ``2`` when the input, the configuration or the checker could
not be used.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

from .annotate import build_report, pathname_from_message
from .config import LOG_LEVELS, ConfigError, load_config
from .oracle import LANGUAGES, OracleUnavailable

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="syntax-search",
        description="Locate the lines responsible for an unbalanced block in a source file",
    )
    parser.add_argument(
        "path",
        nargs="?",
        help="File to search, or '-' to read from standard input",
    )
    parser.add_argument(
        "--message",
        help="Runtime error message naming the failing file (used instead of PATH)",
    )
    parser.add_argument(
        "--language",
        choices=sorted(LANGUAGES),
        help="Delimiter rules to check with (default: ruby)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON or YAML file with default settings",
    )
    parser.add_argument(
        "--no-context",
        action="store_true",
        help="Only print the offending lines, without enclosing context",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable highlighting",
    )
    parser.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        help="Logging level for execution",
    )
    return parser


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def main(argv: list[str] | None = None, console: Optional[Console] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.path is None and args.message is None:
        parser.error("a PATH or --message is required")

    try:
        config = load_config(args.config).with_overrides(
            language=args.language,
            log_level=args.log_level,
            context=False if args.no_context else None,
            color=False if args.no_color else None,
        )
    except (ConfigError, OSError) as exc:
        logging.basicConfig(level=logging.WARNING)
        logger.error("Invalid configuration: %s", exc)
        return 2

    logging.basicConfig(level=getattr(logging, config.log_level, logging.WARNING))
    if console is None:
        console = Console(highlight=False, soft_wrap=True, no_color=not config.color)

    if args.message is not None:
        located = pathname_from_message(args.message)
        if located is None:
            logger.error("No readable file named in message")
            return 2
        filename = str(located)
    else:
        filename = "<stdin>" if args.path == "-" else args.path

    try:
        source = _read_source(filename if args.message is not None else args.path)
        report = build_report(
            source,
            language=config.language,
            filename=filename,
            context=config.context,
        )
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Could not read %s: %s", filename, exc)
        return 2
    except OracleUnavailable as exc:
        logger.error("Syntax check aborted: %s", exc)
        return 2

    if report is None:
        console.print(Text(f"No syntax error found in {filename}"))
        return 0

    rendered = report.render_rich() if config.color else Text(report.render())
    console.print(rendered, end="")
    return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
