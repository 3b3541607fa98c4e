"""NHSPD field schema and strict validation of the YAML import config."""

from __future__ import annotations

from nhspd.common.constants import COORDINATE_POLICIES, SINK_TYPES
from nhspd.common.errors import ConfigError

# Column order of the NHSPD full extract. The release files ship without a
# header row, so positional meaning comes from here alone.
FIELD_NAMES = (
    "PCD2", "PCDS", "DOINTR", "DOTERM", "OSEAST100M",
    "OSNRTH100M", "OSCTY", "ODSLAUA", "OSLAUA", "OSWARD",
    "USERTYPE", "OSGRDIND", "CTRY", "OSHLTHAU", "RGN",
    "OLDHA", "NHSER", "CCG", "PSED", "CENED",
    "EDIND", "WARD98", "OA01", "NHSRLO", "HRO",
    "LSOA01", "UR01IND", "MSOA01", "CANNET", "SCN",
    "OSHAPREV", "OLDPCT", "OLDHRO", "PCON", "CANREG",
    "PCT", "OSEAST1M", "OSNRTH1M", "OA11", "LSOA11",
    "MSOA11", "CALNCV", "STP",
)

COORDINATE_FIELDS = ("OSEAST1M", "OSNRTH1M")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_mapping(value: object, ctx: str) -> None:
    if not isinstance(value, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def validate_batch_size(value: object) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"batch_size must be a positive integer, got {value!r}")
    return value


def validate_coordinate_policy(value: object) -> str:
    if value not in COORDINATE_POLICIES:
        raise ConfigError(f"coordinate_policy must be one of {', '.join(COORDINATE_POLICIES)}, got {value!r}")
    return value


def validate_import_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    _assert_mapping(cfg, "import config")
    top_required = {"batch_size", "coordinate_policy", "encoding", "sink"}
    top_known = top_required | {"include_wgs84", "source"}
    _assert_required_keys(cfg, top_required, "import config")
    _assert_no_unknown_keys(cfg, top_known, "import config", allow_unknown)

    validate_batch_size(cfg["batch_size"])
    validate_coordinate_policy(cfg["coordinate_policy"])
    if not isinstance(cfg["encoding"], str) or not cfg["encoding"]:
        raise ConfigError("encoding must be a non-empty string")
    if not isinstance(cfg.get("include_wgs84", False), bool):
        raise ConfigError("include_wgs84 must be a boolean")

    source = cfg.get("source") or {}
    _assert_mapping(source, "source")
    _assert_no_unknown_keys(source, {"member"}, "source", allow_unknown)

    sink = cfg["sink"]
    _assert_mapping(sink, "sink")
    _assert_required_keys(sink, {"type"}, "sink")
    _assert_no_unknown_keys(sink, {"type", "path", "url", "timeout", "retry"}, "sink", allow_unknown)
    if sink["type"] not in SINK_TYPES:
        raise ConfigError(f"sink.type must be one of {', '.join(SINK_TYPES)}, got {sink['type']!r}")
    if sink["type"] == "jsonl":
        _assert_required_keys(sink, {"path"}, "sink")
    if sink["type"] == "http":
        _assert_required_keys(sink, {"url"}, "sink")
    if "timeout" in sink:
        _assert_mapping(sink["timeout"], "sink.timeout")
        _assert_no_unknown_keys(sink["timeout"], {"connect", "read"}, "sink.timeout", allow_unknown)
    if "retry" in sink:
        _assert_mapping(sink["retry"], "sink.retry")
        _assert_no_unknown_keys(
            sink["retry"],
            {"max_attempts", "multiplier", "max_wait"},
            "sink.retry",
            allow_unknown,
        )

    return cfg
