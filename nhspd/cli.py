"""CLI entrypoint for the NHS Postcode Directory importer."""

from __future__ import annotations

import argparse
import logging
import sys
from contextlib import ExitStack
from pathlib import Path

from nhspd.common.config_loader import ImportSettings, load_import_config
from nhspd.common.constants import (
    COORDINATE_POLICIES,
    EXIT_HARD_FAIL,
    EXIT_PARTIAL,
    EXIT_SUCCESS,
    SINK_TYPES,
)
from nhspd.common.errors import PipelineError
from nhspd.common.fs import open_source
from nhspd.common.http import HttpClient, RetryConfig, TimeoutConfig
from nhspd.common.ids import generate_run_id
from nhspd.common.logging import build_logger, close_logger, log_event
from nhspd.common.postcode import egif, normalise
from nhspd.pipeline.importer import ImportStats, Sink, import_postcodes
from nhspd.pipeline.reports import write_import_summary
from nhspd.pipeline.sinks import HttpBatchSink, JsonLinesSink


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="nhspd", description=__doc__)
    commands = parser.add_subparsers(dest="command", required=True)

    importer = commands.add_parser("import", help="stream an NHSPD extract into the configured sink")
    importer.add_argument("source", help="NHSPD CSV, or the zipped release as downloaded")
    importer.add_argument("--run-id", default=None)
    importer.add_argument("--config-dir", default="./config")
    importer.add_argument("--overlay-config-dir", default=None)
    importer.add_argument("--data-dir", default="./data")
    importer.add_argument("--batch-size", type=int, default=None)
    importer.add_argument("--coordinate-policy", default=None, choices=COORDINATE_POLICIES)
    importer.add_argument("--sink", default=None, choices=SINK_TYPES)
    importer.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    postcode = commands.add_parser("postcode", help="print the fixed and egif forms of postcodes")
    postcode.add_argument("postcodes", nargs="+")

    return parser.parse_args(argv)


def build_sink(settings: ImportSettings, data_dir: Path, stack: ExitStack) -> Sink:
    sink_cfg = settings.sink
    if sink_cfg.type == "jsonl":
        return stack.enter_context(JsonLinesSink(data_dir / sink_cfg.path))
    client = stack.enter_context(
        HttpClient(
            timeout=TimeoutConfig(**sink_cfg.timeout),
            retry=RetryConfig(**sink_cfg.retry),
        )
    )
    return HttpBatchSink(client, sink_cfg.url)


def run_import(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    data_dir = Path(args.data_dir)
    source = Path(args.source)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    stats = ImportStats()
    try:
        settings = load_import_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir).with_overrides(
            batch_size=args.batch_size,
            coordinate_policy=args.coordinate_policy,
            sink_type=args.sink,
        )
        with ExitStack() as stack:
            # Open the source first so a bad source leaves earlier sink output intact.
            stream = stack.enter_context(open_source(source, settings.source_member))
            sink = build_sink(settings, data_dir, stack)
            import_postcodes(
                stream,
                sink,
                batch_size=settings.batch_size,
                coordinate_policy=settings.coordinate_policy,
                encoding=settings.encoding,
                include_wgs84=settings.include_wgs84,
                logger=logger,
                run_id=run_id,
                stats=stats,
            )
    except PipelineError as exc:
        _report_failure(logger, exc, exc.error_code, run_id=run_id, source=source, data_dir=data_dir, stats=stats)
        return EXIT_HARD_FAIL
    except Exception as exc:
        _report_failure(logger, exc, "UNEXPECTED_ERROR", run_id=run_id, source=source, data_dir=data_dir, stats=stats)
        return EXIT_HARD_FAIL
    finally:
        close_logger(logger)

    write_import_summary(data_dir, run_id=run_id, source=str(source), stats=stats)
    if stats.partial:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def _report_failure(
    logger: logging.Logger,
    exc: Exception,
    error_code: str,
    *,
    run_id: str,
    source: Path,
    data_dir: Path,
    stats: ImportStats,
) -> None:
    row_index = getattr(exc, "row_index", None)
    log_event(
        logger,
        f"import failed: {exc}",
        level="error",
        run_id=run_id,
        stage="import",
        source=str(source),
        event="IMPORT_FAIL",
        status="error",
        row_index=row_index,
        rows_in=stats.rows_read,
        rows_out=stats.rows_emitted,
        error_code=error_code,
    )
    write_import_summary(
        data_dir,
        run_id=run_id,
        source=str(source),
        stats=stats,
        error_code=error_code,
        error_message=str(exc),
        row_index=row_index,
    )


def run_postcode(args: argparse.Namespace) -> int:
    for postcode in args.postcodes:
        print(f"{normalise(postcode)}\t{egif(postcode)}")
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace) -> int:
    if args.command == "import":
        return run_import(args)
    if args.command == "postcode":
        return run_postcode(args)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
