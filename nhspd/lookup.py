"""Postcode lookups over an already imported record store."""

from __future__ import annotations

import json
from typing import Any, Protocol

from nhspd.common.geometry import distance_between
from nhspd.common.postcode import egif, normalise


class RecordStore(Protocol):
    def get(self, key: str) -> str | None:
        ...


class PostcodeLookup:
    """Resolves free-text postcodes against ``store``.

    The store is supplied by the caller, who owns its lifecycle.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def _candidate_keys(self, postcode: str) -> list[str]:
        keys: list[str] = []
        for key in (normalise(postcode), egif(postcode.strip()), postcode):
            if key not in keys:
                keys.append(key)
        return keys

    def fetch(self, postcode: str) -> dict[str, Any] | None:
        for key in self._candidate_keys(postcode):
            payload = self.store.get(key)
            if payload is not None:
                return json.loads(payload)
        return None

    def distance(self, first: str, second: str) -> float | None:
        """Metres between two postcodes, ``None`` if either is unknown or ungeocoded."""
        first_record = self.fetch(first)
        second_record = self.fetch(second)
        if first_record is None or second_record is None:
            return None
        return distance_between(first_record, second_record)
