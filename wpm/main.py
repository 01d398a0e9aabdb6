# main.py
from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from wpm.app.calculation import by_time, summarize
from wpm.app.config import Config, load_config
from wpm.app.errors import StorageError
from wpm.utils.archive import ResultArchive


def setup_logging(log_path: Optional[Path] = None) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_path is not None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
        except OSError as e:
            print(f"wpm: not logging to {log_path}: {e}", file=sys.stderr)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=handlers,
    )

    # Log any uncaught exceptions rather than silently dying
    def excepthook(exctype, value, tb):
        logging.exception("Unhandled exception", exc_info=(exctype, value, tb))
        sys.exit(1)

    sys.excepthook = excepthook


def print_results(config: Config, upgrade: bool = False) -> int:
    archive = ResultArchive(config.results_path)
    try:
        contents = archive.upgrade() if upgrade else archive.read_all()
    except StorageError as e:
        logging.error("Could not read %s: %s", config.results_path, e)
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        print(f"source: {e.cause!r}", file=sys.stderr)
        return 1

    for typing_result in reversed(by_time(contents.results)):
        print(typing_result)

    summary = summarize(contents.results)
    if summary.count:
        print(
            f"{summary.count} result(s): best {summary.best_wpm}wpm, "
            f"average {summary.average_wpm:.1f}wpm, trend {summary.trend_wpm:.1f}wpm"
        )
    else:
        print(f"No results in {config.results_path}")

    if contents.needs_upgrade:
        print("Some results use an older format; run `wpm upgrade` to rewrite them.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wpm", description="Typing-speed results archive")
    sub = parser.add_subparsers(dest="command")

    results = sub.add_parser("results", help="list archived typing results")
    results.add_argument("--upgrade", action="store_true", help="rewrite older records first")

    sub.add_parser("upgrade", help="rewrite older records in the current format")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()
    setup_logging(config.log_path)

    upgrade = args.command == "upgrade" or getattr(args, "upgrade", False)
    return print_results(config, upgrade=upgrade)


if __name__ == "__main__":
    sys.exit(main())
