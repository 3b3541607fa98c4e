"""Import run summary."""

from __future__ import annotations

from pathlib import Path

from nhspd.common.fs import write_json
from nhspd.pipeline.importer import ImportStats


def import_status(stats: ImportStats | None, error_code: str | None = None) -> str:
    if error_code is not None or stats is None:
        return "error"
    if stats.partial:
        return "partial"
    return "success"


def write_import_summary(
    data_dir: Path,
    *,
    run_id: str,
    source: str,
    stats: ImportStats | None,
    error_code: str | None = None,
    error_message: str | None = None,
    row_index: int | None = None,
) -> Path:
    counts = stats.to_dict() if stats is not None else {}
    coordinate_coverage = 0.0
    if stats is not None and stats.rows_emitted:
        with_coordinates = stats.rows_emitted - stats.without_coordinates
        coordinate_coverage = round((with_coordinates / stats.rows_emitted) * 100, 2)

    payload = {
        "run_id": run_id,
        "source": source,
        "status": import_status(stats, error_code),
        "counts": counts,
        "quality": {
            "coordinate_coverage_percent": coordinate_coverage,
        },
        "error": None
        if error_code is None
        else {
            "error_code": error_code,
            "message": error_message,
            "row_index": row_index,
        },
    }
    summary_path = data_dir / "out" / "reports" / "import_summary.json"
    write_json(summary_path, payload)
    return summary_path
