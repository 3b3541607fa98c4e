"""Filesystem helpers."""

from __future__ import annotations

import json
import zipfile
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Iterator

from nhspd.common.errors import ConfigError


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_yaml(path: Path):
    import yaml

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_json(path: Path, payload) -> None:
    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, sort_keys=True)
        f.write("\n")


def _select_zip_member(archive: zipfile.ZipFile, member: str | None) -> zipfile.ZipInfo:
    infos = [info for info in archive.infolist() if not info.is_dir()]
    if member is not None:
        matches = [info for info in infos if info.filename == member or PurePosixPath(info.filename).name == member]
        if not matches:
            raise ConfigError(f"Member {member!r} not found in {archive.filename}")
        if len(matches) > 1:
            raise ConfigError(f"Member {member!r} is ambiguous in {archive.filename}")
        return matches[0]

    # Releases put the full extract under Data/ next to documentation CSVs.
    candidates = [
        info
        for info in infos
        if info.filename.lower().endswith(".csv") and "data" in (part.lower() for part in PurePosixPath(info.filename).parts[:-1])
    ]
    if not candidates:
        candidates = [info for info in infos if info.filename.lower().endswith(".csv")]
    if not candidates:
        raise ConfigError(f"No CSV member found in {archive.filename}")
    return max(candidates, key=lambda info: info.file_size)


@contextmanager
def open_source(path: Path, member: str | None = None) -> Iterator[BinaryIO]:
    """Open an NHSPD extract for binary reading.

    ``path`` may be the CSV itself or the zipped release as downloaded; for a
    zip the CSV member is streamed without extracting it to disk.
    """
    if not path.exists():
        raise ConfigError(f"Source file not found: {path}")

    if zipfile.is_zipfile(path):
        with zipfile.ZipFile(path) as archive:
            info = _select_zip_member(archive, member)
            with archive.open(info) as stream:
                yield stream
        return

    with path.open("rb") as stream:
        yield stream
