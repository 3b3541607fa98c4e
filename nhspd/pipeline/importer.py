"""Streaming NHSPD import: CSV rows to batched sink calls.

The import reads one row at a time and holds at most one batch of projected
rows. Each full batch is handed to the sink synchronously, so a slow sink
throttles reading rather than letting parsed rows queue up.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import time
import zipfile
import zlib
from dataclasses import asdict, dataclass
from typing import IO, Callable, Iterator, Sequence

from nhspd.common.constants import (
    COORDINATE_POLICY_ABSENT,
    COORDINATE_POLICY_SKIP,
    DEFAULT_BATCH_SIZE,
)
from nhspd.common.errors import MalformedCoordinate, SinkFailure, StreamFailure
from nhspd.common.logging import log_event
from nhspd.common.models import PostcodeRecord
from nhspd.common.schema import validate_batch_size, validate_coordinate_policy
from nhspd.common.time_utils import elapsed_ms
from nhspd.pipeline.coordinates import grid_to_wgs84
from nhspd.pipeline.parse import parse_row, parse_row_lenient

STAGE = "import"

SinkRow = tuple[str, str, str]
Sink = Callable[[list[SinkRow]], None]

_default_logger = logging.getLogger("nhspd.import")


@dataclass
class ImportStats:
    rows_read: int = 0
    rows_emitted: int = 0
    rows_skipped: int = 0
    blank_lines: int = 0
    malformed_coordinates: int = 0
    terminated: int = 0
    without_coordinates: int = 0
    batches: int = 0

    @property
    def partial(self) -> bool:
        return self.rows_skipped > 0 or self.malformed_coordinates > 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def serialise_record(record: PostcodeRecord, *, include_wgs84: bool = False) -> str:
    payload = record.to_dict()
    if include_wgs84:
        lat_lon = grid_to_wgs84(record.oseast1m, record.osnrth1m)
        payload["LAT"] = round(lat_lon[0], 6) if lat_lon else None
        payload["LONG"] = round(lat_lon[1], 6) if lat_lon else None
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def project_record(record: PostcodeRecord, *, include_wgs84: bool = False) -> SinkRow:
    """Sink tuple for a record: source spellings as-is, then the JSON payload."""
    return record.pcds, record.pcd2, serialise_record(record, include_wgs84=include_wgs84)


def _iter_rows(text: IO[str]) -> Iterator[tuple[int, list[str]]]:
    reader = csv.reader(text)
    row_index = 0
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except (OSError, ValueError, csv.Error, zipfile.BadZipFile, zlib.error) as exc:
            # ValueError covers decode errors and reads from a closed stream;
            # BadZipFile and zlib.error come from a corrupt member of a zipped release.
            raise StreamFailure(f"Failed reading source: {exc}", row_index=row_index + 1) from exc
        row_index += 1
        yield row_index, row


def _report_malformed(logger: logging.Logger, exc: MalformedCoordinate, *, run_id: str | None, skipped: bool) -> None:
    log_event(
        logger,
        f"{'skipping row' if skipped else 'treating coordinate as absent'}: {exc}",
        level="warning",
        run_id=run_id,
        stage=STAGE,
        event="ROW_SKIPPED" if skipped else "COORDINATE_MALFORMED",
        status="warning",
        row_index=exc.row_index,
        error_code=exc.error_code,
    )


def _flush(
    sink: Sink,
    batch: list[SinkRow],
    *,
    batch_index: int,
    row_index: int,
    logger: logging.Logger,
    run_id: str | None,
) -> None:
    started = time.monotonic()
    try:
        sink(batch)
    except SinkFailure:
        raise
    except Exception as exc:
        raise SinkFailure(
            f"Sink rejected batch {batch_index} of {len(batch)} rows: {exc}",
            batch_index=batch_index,
            row_index=row_index,
        ) from exc
    log_event(
        logger,
        "batch flushed",
        level="debug",
        run_id=run_id,
        stage=STAGE,
        event="BATCH_FLUSHED",
        status="ok",
        batch_index=batch_index,
        row_index=row_index,
        rows_out=len(batch),
        duration_ms=elapsed_ms(started),
    )


def _parse_with_policy(
    row: Sequence[str],
    *,
    row_index: int,
    coordinate_policy: str,
    stats: ImportStats,
    logger: logging.Logger,
    run_id: str | None,
) -> PostcodeRecord | None:
    if coordinate_policy == COORDINATE_POLICY_SKIP:
        try:
            return parse_row(row, row_index=row_index)
        except MalformedCoordinate as exc:
            stats.rows_skipped += 1
            _report_malformed(logger, exc, run_id=run_id, skipped=True)
            return None

    record, problems = parse_row_lenient(row, row_index=row_index)
    if problems:
        stats.malformed_coordinates += 1
    for problem in problems:
        _report_malformed(logger, problem, run_id=run_id, skipped=False)
    return record


def _text_stream(stream: IO, encoding: str) -> tuple[IO[str], bool]:
    if isinstance(stream, io.TextIOBase):
        return stream, False
    try:
        return io.TextIOWrapper(stream, encoding=encoding, newline=""), True
    except (OSError, ValueError) as exc:
        raise StreamFailure(f"Cannot read source: {exc}", row_index=0) from exc


def import_postcodes(
    stream: IO,
    sink: Sink,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    coordinate_policy: str = COORDINATE_POLICY_ABSENT,
    encoding: str = "utf-8",
    include_wgs84: bool = False,
    logger: logging.Logger | None = None,
    run_id: str | None = None,
    stats: ImportStats | None = None,
) -> ImportStats:
    """Stream NHSPD rows from ``stream`` into ``sink`` in batches of ``batch_size``.

    ``stream`` stays owned by the caller and is not closed here. Rows reach the
    sink in file order as ``(PCDS, PCD2, payload)`` tuples. A schema mismatch,
    stream failure or sink failure stops the import at once; batches already
    flushed stay flushed and the in-progress batch is dropped.

    Pass ``stats`` to keep the counters reachable when the import raises.
    """
    validate_batch_size(batch_size)
    validate_coordinate_policy(coordinate_policy)
    logger = logger or _default_logger
    stats = stats if stats is not None else ImportStats()
    started = time.monotonic()

    log_event(
        logger,
        "import start",
        run_id=run_id,
        stage=STAGE,
        event="IMPORT_START",
        status="ok",
    )

    text, owns_wrapper = _text_stream(stream, encoding)
    try:
        batch: list[SinkRow] = []
        row_index = 0
        for row_index, row in _iter_rows(text):
            if not row:
                stats.blank_lines += 1
                continue
            stats.rows_read += 1

            record = _parse_with_policy(
                row,
                row_index=row_index,
                coordinate_policy=coordinate_policy,
                stats=stats,
                logger=logger,
                run_id=run_id,
            )
            if record is None:
                continue

            if record.is_terminated:
                stats.terminated += 1
            if not record.has_coordinates:
                stats.without_coordinates += 1
            batch.append(project_record(record, include_wgs84=include_wgs84))

            if len(batch) >= batch_size:
                _flush(sink, batch, batch_index=stats.batches + 1, row_index=row_index, logger=logger, run_id=run_id)
                stats.rows_emitted += len(batch)
                stats.batches += 1
                batch = []

        if batch:
            _flush(sink, batch, batch_index=stats.batches + 1, row_index=row_index, logger=logger, run_id=run_id)
            stats.rows_emitted += len(batch)
            stats.batches += 1
    finally:
        if owns_wrapper and not stream.closed:
            # Leave the caller's stream open.
            text.detach()

    log_event(
        logger,
        "import end",
        run_id=run_id,
        stage=STAGE,
        event="IMPORT_END",
        status="partial" if stats.partial else "ok",
        rows_in=stats.rows_read,
        rows_out=stats.rows_emitted,
        duration_ms=elapsed_ms(started),
    )
    return stats
