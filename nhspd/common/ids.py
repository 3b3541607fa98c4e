"""Run identifier helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def generate_run_id() -> str:
    now = datetime.now(tz=timezone.utc)
    # Sortable by construction: one import per microsecond at most.
    return now.strftime("import-%Y%m%dT%H%M%S%fZ")
