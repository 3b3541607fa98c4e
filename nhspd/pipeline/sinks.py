"""Batch sinks for the import pipeline."""

from __future__ import annotations

import json
from pathlib import Path
from types import TracebackType
from typing import Any, TextIO

from nhspd.common.fs import ensure_dir
from nhspd.common.http import HttpClient
from nhspd.pipeline.importer import SinkRow


def batch_documents(batch: list[SinkRow]) -> list[dict[str, Any]]:
    return [{"pcds": pcds, "pcd2": pcd2, "data": json.loads(payload)} for pcds, pcd2, payload in batch]


class JsonLinesSink:
    """Writes one JSON document per postcode to ``path``."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._handle: TextIO | None = None
        self.rows_written = 0

    def open(self) -> "JsonLinesSink":
        ensure_dir(self.path.parent)
        self._handle = self.path.open("w", encoding="utf-8")
        return self

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "JsonLinesSink":
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __call__(self, batch: list[SinkRow]) -> None:
        if self._handle is None:
            raise RuntimeError("JsonLinesSink is not open")
        for document in batch_documents(batch):
            self._handle.write(json.dumps(document, ensure_ascii=False, separators=(",", ":")))
            self._handle.write("\n")
        self._handle.flush()
        self.rows_written += len(batch)


class HttpBatchSink:
    """POSTs each batch as a JSON array to a bulk-load endpoint."""

    def __init__(self, client: HttpClient, url: str) -> None:
        self.client = client
        self.url = url

    def __call__(self, batch: list[SinkRow]) -> None:
        self.client.post_json(self.url, batch_documents(batch))


class DictRecordStore:
    """In-memory record store, filled by acting as an import sink.

    Each payload is reachable under both of its postcode spellings.
    """

    def __init__(self) -> None:
        self._records: dict[str, str] = {}

    def __call__(self, batch: list[SinkRow]) -> None:
        for pcds, pcd2, payload in batch:
            self._records[pcds] = payload
            self._records[pcd2] = payload

    def __len__(self) -> int:
        return len(self._records)

    def get(self, key: str) -> str | None:
        return self._records.get(key)
