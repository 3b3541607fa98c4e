"""Grid reference helpers."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from nhspd.common.models import PostcodeRecord


def _as_number(value: Any) -> float | int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def extract_grid_reference(record: PostcodeRecord | Mapping[str, Any] | None) -> tuple[float | int | None, float | int | None]:
    """Return ``(easting, northing)`` from a record or a decoded payload."""
    if record is None:
        return None, None
    if isinstance(record, Mapping):
        return _as_number(record.get("OSEAST1M")), _as_number(record.get("OSNRTH1M"))
    return _as_number(record.oseast1m), _as_number(record.osnrth1m)


def distance_between(
    first: PostcodeRecord | Mapping[str, Any] | None,
    second: PostcodeRecord | Mapping[str, Any] | None,
) -> float | None:
    """Straight-line distance in metres between two British National Grid references.

    Returns ``None`` when either side lacks a coordinate; a missing grid
    reference is never a zero distance.
    """
    e1, n1 = extract_grid_reference(first)
    e2, n2 = extract_grid_reference(second)
    if e1 is None or n1 is None or e2 is None or n2 is None:
        return None
    return math.sqrt((e1 - e2) ** 2 + (n1 - n2) ** 2)
