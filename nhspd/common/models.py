"""Data models used across the import."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from nhspd.common.schema import FIELD_NAMES


@dataclass(frozen=True)
class PostcodeRecord:
    """One NHSPD row.

    Attributes mirror :data:`FIELD_NAMES` in lower case. Everything is text
    except the 1m grid reference, which is absent for many terminated and some
    rural postcodes.
    """

    pcd2: str
    pcds: str
    dointr: str
    doterm: str
    oseast100m: str
    osnrth100m: str
    oscty: str
    odslaua: str
    oslaua: str
    osward: str
    usertype: str
    osgrdind: str
    ctry: str
    oshlthau: str
    rgn: str
    oldha: str
    nhser: str
    ccg: str
    psed: str
    cened: str
    edind: str
    ward98: str
    oa01: str
    nhsrlo: str
    hro: str
    lsoa01: str
    ur01ind: str
    msoa01: str
    cannet: str
    scn: str
    oshaprev: str
    oldpct: str
    oldhro: str
    pcon: str
    canreg: str
    pct: str
    oseast1m: int | None
    osnrth1m: int | None
    oa11: str
    lsoa11: str
    msoa11: str
    calncv: str
    stp: str

    @classmethod
    def from_values(cls, values: dict[str, Any]) -> "PostcodeRecord":
        """Build from a mapping keyed by NHSPD column name."""
        return cls(**{name.lower(): values[name] for name in FIELD_NAMES})

    @property
    def is_terminated(self) -> bool:
        return bool(self.doterm.strip())

    @property
    def has_coordinates(self) -> bool:
        return self.oseast1m is not None and self.osnrth1m is not None

    def to_dict(self) -> dict[str, Any]:
        return {f.name.upper(): getattr(self, f.name) for f in fields(self)}
