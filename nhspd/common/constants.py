"""Application constants."""

USER_AGENT = "nhspd-import/0.1 (+postcode directory loader)"
DEFAULT_BATCH_SIZE = 10_000
COORDINATE_POLICY_ABSENT = "absent"
COORDINATE_POLICY_SKIP = "skip"
COORDINATE_POLICIES = (COORDINATE_POLICY_ABSENT, COORDINATE_POLICY_SKIP)
SINK_TYPES = ("jsonl", "http")
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "source",
    "event",
    "status",
    "batch_index",
    "row_index",
    "rows_in",
    "rows_out",
    "duration_ms",
    "error_code",
    "message",
)
