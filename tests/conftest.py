from __future__ import annotations

import csv
import io
from pathlib import Path

import pytest

from nhspd.common.schema import FIELD_NAMES

REPO_ROOT = Path(__file__).resolve().parent.parent
FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


def build_row(
    pcds: str = "AB1 2CD",
    *,
    pcd2: str | None = None,
    east: str = "385386",
    north: str = "801193",
    doterm: str = "",
) -> list[str]:
    values = {name: "" for name in FIELD_NAMES}
    values["PCDS"] = pcds
    values["PCD2"] = pcd2 if pcd2 is not None else pcds
    values["DOINTR"] = "198001"
    values["DOTERM"] = doterm
    values["CTRY"] = "S92000003"
    values["OSEAST1M"] = east
    values["OSNRTH1M"] = north
    return [values[name] for name in FIELD_NAMES]


def csv_bytes(rows: list[list[str]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


@pytest.fixture()
def make_row():
    return build_row


@pytest.fixture()
def sample_csv_path() -> Path:
    return FIXTURES_DIR / "nhspd_sample.csv"


@pytest.fixture()
def config_dir() -> Path:
    return REPO_ROOT / "config"


@pytest.fixture()
def make_csv():
    return csv_bytes
