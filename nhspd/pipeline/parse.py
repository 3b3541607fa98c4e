"""Positional parsing of NHSPD rows into typed records."""

from __future__ import annotations

import re
from typing import Sequence

from nhspd.common.errors import MalformedCoordinate, SchemaMismatch
from nhspd.common.models import PostcodeRecord
from nhspd.common.schema import COORDINATE_FIELDS, FIELD_NAMES

_INTEGER_RE = re.compile(r"^[+-]?[0-9]+$")


def coerce_coordinate(
    value: str,
    *,
    column: str,
    row_index: int | None = None,
    raw_row: Sequence[str] | None = None,
) -> int | None:
    """Blank means absent; anything other than a plain integer is malformed."""
    stripped = value.strip()
    if not stripped:
        return None
    if not _INTEGER_RE.match(stripped):
        raise MalformedCoordinate(
            f"Non-numeric {column} value {value!r}",
            column=column,
            value=value,
            row_index=row_index,
            raw_row=raw_row,
        )
    return int(stripped)


def _parse(
    row: Sequence[str],
    row_index: int | None,
    strict: bool,
) -> tuple[PostcodeRecord, list[MalformedCoordinate]]:
    if len(row) != len(FIELD_NAMES):
        raise SchemaMismatch(
            f"Expected {len(FIELD_NAMES)} columns, found {len(row)}",
            row_index=row_index,
            raw_row=row,
        )

    values: dict[str, str | int | None] = dict(zip(FIELD_NAMES, row))
    problems: list[MalformedCoordinate] = []
    for column in COORDINATE_FIELDS:
        try:
            values[column] = coerce_coordinate(row[FIELD_NAMES.index(column)], column=column, row_index=row_index, raw_row=row)
        except MalformedCoordinate as exc:
            if strict:
                raise
            problems.append(exc)
            values[column] = None

    return PostcodeRecord.from_values(values), problems


def parse_row(row: Sequence[str], *, row_index: int | None = None) -> PostcodeRecord:
    """Parse one row, raising on the first malformed coordinate."""
    record, _ = _parse(row, row_index, strict=True)
    return record


def parse_row_lenient(
    row: Sequence[str],
    *,
    row_index: int | None = None,
) -> tuple[PostcodeRecord, list[MalformedCoordinate]]:
    """Parse one row, treating malformed coordinates as absent.

    The collected errors are returned alongside the record so the caller can
    report them. A column-count mismatch is still raised.
    """
    return _parse(row, row_index, strict=False)
