from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from reqprof.config import DEFAULT_PORT, RunConfig, parse_target
from reqprof.probe import ProbeError
from reqprof.probe.runner import default_executor, run_experiment, run_profile, run_single
from reqprof.report import render_profile, render_single
from reqprof.storage import DEFAULT_DB_PATH, Storage

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reqprof",
        description="Send HTTP GET requests over raw TCP and report the response or latency statistics.",
    )
    parser.add_argument("--url", required=True, help="Host with optional /path, e.g. example.com/index.html")
    parser.add_argument(
        "--profile",
        type=_positive_int,
        metavar="N",
        help="Send N sequential requests and print statistics instead of the response",
    )
    parser.add_argument("--port", default=DEFAULT_PORT)
    parser.add_argument(
        "--store",
        nargs="?",
        const=DEFAULT_DB_PATH,
        type=Path,
        default=None,
        metavar="DB_PATH",
        help=f"Persist the profile to DuckDB (default path: {DEFAULT_DB_PATH})",
    )
    parser.add_argument("--notes", default="")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _build_config(parser: argparse.ArgumentParser, args: argparse.Namespace) -> RunConfig:
    try:
        spec = parse_target(args.url, port=args.port)
    except ValueError as exc:
        parser.error(str(exc))
    return RunConfig(
        spec=spec,
        count=args.profile or 1,
        profile=args.profile is not None,
        notes=args.notes,
    )


async def _run(config: RunConfig, store: Path | None) -> str:
    if not config.profile:
        result = await run_single(config.spec, default_executor(config.timeouts))
        return render_single(result)
    if store is not None:
        run = await run_experiment(config, Storage(store))
        logger.info("Stored run %s in %s", run.run_id, store)
        return render_profile(run.report)
    report = await run_profile(config.spec, config.count, default_executor(config.timeouts))
    return render_profile(report)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if args.store is not None and args.profile is None:
        parser.error("--store requires --profile")

    config = _build_config(parser, args)
    try:
        output = asyncio.run(_run(config, args.store))
    except ProbeError as exc:
        logger.debug("Run aborted", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    print(output)


if __name__ == "__main__":
    main()
