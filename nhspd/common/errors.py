"""Domain errors and failure typing."""

from __future__ import annotations

from typing import Sequence


class PipelineError(Exception):
    """Base class for import failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class RowError(PipelineError):
    """A failure tied to one source row."""

    error_code = "ROW_ERROR"

    def __init__(self, message: str, *, row_index: int | None = None, raw_row: Sequence[str] | None = None) -> None:
        super().__init__(message)
        self.row_index = row_index
        self.raw_row = list(raw_row) if raw_row is not None else None

    def __str__(self) -> str:
        message = super().__str__()
        if self.row_index is None:
            return message
        return f"{message} (row {self.row_index})"


class SchemaMismatch(RowError):
    """Raised when a row's column count disagrees with the NHSPD field schema."""

    error_code = "SCHEMA_MISMATCH"


class MalformedCoordinate(RowError):
    """Raised when a grid coordinate column holds non-blank, non-integer text."""

    error_code = "MALFORMED_COORDINATE"

    def __init__(
        self,
        message: str,
        *,
        column: str,
        value: str,
        row_index: int | None = None,
        raw_row: Sequence[str] | None = None,
    ) -> None:
        super().__init__(message, row_index=row_index, raw_row=raw_row)
        self.column = column
        self.value = value


class SinkFailure(RowError):
    """Raised when the sink callback rejects a batch."""

    error_code = "SINK_ERROR"

    def __init__(self, message: str, *, batch_index: int, row_index: int | None = None) -> None:
        super().__init__(message, row_index=row_index)
        self.batch_index = batch_index


class StreamFailure(RowError):
    """Raised when the source byte stream fails mid-read."""

    error_code = "STREAM_ERROR"
