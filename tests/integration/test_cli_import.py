from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from nhspd.cli import main, parse_args, run_command
from nhspd.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS


def _write_config(config_dir: Path, policy: str = "absent") -> Path:
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "import.yml").write_text(
        f"""batch_size: 2
coordinate_policy: {policy}
encoding: utf-8
sink:
  type: jsonl
  path: out/postcodes.jsonl
""",
        encoding="utf-8",
    )
    return config_dir


@pytest.mark.integration
def test_cli_import_generates_expected_artifacts(tmp_path: Path, sample_csv_path: Path, config_dir: Path):
    data_dir = tmp_path / "data"
    args = parse_args(
        [
            "import",
            str(sample_csv_path),
            "--config-dir",
            str(config_dir),
            "--data-dir",
            str(data_dir),
            "--run-id",
            "run-test",
            "--batch-size",
            "2",
        ]
    )

    exit_code = run_command(args)

    assert exit_code == EXIT_SUCCESS
    lines = (data_dir / "out" / "postcodes.jsonl").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 5
    summary = json.loads((data_dir / "out" / "reports" / "import_summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "success"
    assert summary["counts"]["batches"] == 3
    assert summary["counts"]["terminated"] == 2
    assert summary["counts"]["without_coordinates"] == 2
    events = [json.loads(line)["event"] for line in (data_dir / "run_meta" / "run-test.log.jsonl").read_text(encoding="utf-8").splitlines()]
    assert events[0] == "IMPORT_START"
    assert events[-1] == "IMPORT_END"


@pytest.mark.integration
def test_cli_import_reads_zipped_release(tmp_path: Path, sample_csv_path: Path, config_dir: Path):
    archive_path = tmp_path / "NHSPD_FEB_2020_UK_FULL.zip"
    with zipfile.ZipFile(archive_path, "w") as archive:
        archive.write(sample_csv_path, "Data/nhg20feb.csv")
    data_dir = tmp_path / "data"

    exit_code = run_command(parse_args(["import", str(archive_path), "--config-dir", str(config_dir), "--data-dir", str(data_dir)]))

    assert exit_code == EXIT_SUCCESS
    assert len((data_dir / "out" / "postcodes.jsonl").read_text(encoding="utf-8").splitlines()) == 5


@pytest.mark.integration
def test_cli_import_partial_when_rows_skipped(tmp_path: Path, make_row, make_csv):
    source = tmp_path / "nhg.csv"
    source.write_bytes(make_csv([make_row("AB1 001"), make_row("AB1 002", east="n/a"), make_row("AB1 003")]))
    config = _write_config(tmp_path / "config", policy="skip")
    data_dir = tmp_path / "data"

    exit_code = run_command(parse_args(["import", str(source), "--config-dir", str(config), "--data-dir", str(data_dir)]))

    assert exit_code == EXIT_PARTIAL
    summary = json.loads((data_dir / "out" / "reports" / "import_summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "partial"
    assert summary["counts"]["rows_skipped"] == 1
    assert summary["counts"]["rows_emitted"] == 2


@pytest.mark.integration
def test_cli_import_schema_mismatch_is_hard_failure(tmp_path: Path, make_row, make_csv):
    rows = [make_row("AB1 001"), make_row("AB1 002"), make_row("AB1 003"), make_row("AB1 004")[:5], make_row("AB1 005")]
    source = tmp_path / "nhg.csv"
    source.write_bytes(make_csv(rows))
    config = _write_config(tmp_path / "config")
    data_dir = tmp_path / "data"

    exit_code = run_command(parse_args(["import", str(source), "--config-dir", str(config), "--data-dir", str(data_dir), "--run-id", "run-bad"]))

    assert exit_code == EXIT_HARD_FAIL
    lines = (data_dir / "out" / "postcodes.jsonl").read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["pcds"] for line in lines] == ["AB1 001", "AB1 002"]
    summary = json.loads((data_dir / "out" / "reports" / "import_summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "error"
    assert summary["error"]["error_code"] == "SCHEMA_MISMATCH"
    assert summary["error"]["row_index"] == 4
    log_lines = (data_dir / "run_meta" / "run-bad.log.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(log_lines[-1])["event"] == "IMPORT_FAIL"


@pytest.mark.integration
def test_cli_import_missing_source_is_hard_failure(tmp_path: Path, config_dir: Path):
    exit_code = run_command(
        parse_args(["import", str(tmp_path / "nope.csv"), "--config-dir", str(config_dir), "--data-dir", str(tmp_path / "data")])
    )
    assert exit_code == EXIT_HARD_FAIL


@pytest.mark.integration
def test_cli_import_bad_source_keeps_previous_output(tmp_path: Path, config_dir: Path):
    data_dir = tmp_path / "data"
    output = data_dir / "out" / "postcodes.jsonl"
    output.parent.mkdir(parents=True)
    output.write_text('{"pcds":"AB1 0AA"}\n', encoding="utf-8")
    empty_release = tmp_path / "release.zip"
    with zipfile.ZipFile(empty_release, "w") as archive:
        archive.writestr("Documents/readme.txt", "no data here")

    for source in (tmp_path / "nope.csv", empty_release):
        exit_code = run_command(parse_args(["import", str(source), "--config-dir", str(config_dir), "--data-dir", str(data_dir)]))
        assert exit_code == EXIT_HARD_FAIL

    assert output.read_text(encoding="utf-8") == '{"pcds":"AB1 0AA"}\n'


@pytest.mark.integration
def test_cli_import_corrupt_zip_member_is_stream_failure(tmp_path: Path, make_row, make_csv):
    archive_path = tmp_path / "release.zip"
    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_STORED) as archive:
        archive.writestr("Data/nhg.csv", make_csv([make_row("AB1 001"), make_row("AB1 002")]))
    archive_path.write_bytes(archive_path.read_bytes().replace(b"AB1 002", b"AB1 00X", 1))
    config = _write_config(tmp_path / "config")
    data_dir = tmp_path / "data"

    exit_code = run_command(parse_args(["import", str(archive_path), "--config-dir", str(config), "--data-dir", str(data_dir), "--run-id", "run-crc"]))

    assert exit_code == EXIT_HARD_FAIL
    summary = json.loads((data_dir / "out" / "reports" / "import_summary.json").read_text(encoding="utf-8"))
    assert summary["status"] == "error"
    assert summary["error"]["error_code"] == "STREAM_ERROR"
    log_lines = (data_dir / "run_meta" / "run-crc.log.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(log_lines[-1])["event"] == "IMPORT_FAIL"


@pytest.mark.integration
def test_cli_import_unexpected_error_is_reported(tmp_path: Path, sample_csv_path: Path, config_dir: Path, monkeypatch):
    def broken_import(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("nhspd.cli.import_postcodes", broken_import)
    data_dir = tmp_path / "data"

    exit_code = main(["import", str(sample_csv_path), "--config-dir", str(config_dir), "--data-dir", str(data_dir), "--run-id", "run-boom"])

    assert exit_code == EXIT_HARD_FAIL
    summary = json.loads((data_dir / "out" / "reports" / "import_summary.json").read_text(encoding="utf-8"))
    assert summary["error"]["error_code"] == "UNEXPECTED_ERROR"
    assert summary["error"]["message"] == "boom"
    log_lines = (data_dir / "run_meta" / "run-boom.log.jsonl").read_text(encoding="utf-8").splitlines()
    last = json.loads(log_lines[-1])
    assert last["event"] == "IMPORT_FAIL"
    assert last["error_code"] == "UNEXPECTED_ERROR"
