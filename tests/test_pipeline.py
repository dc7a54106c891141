from __future__ import annotations

import csv
import json
import logging
from pathlib import Path

import pytest

from models.schemas import RunStatus
from services.clusterer import Clusterer, sequential_cluster_ids
from services.pipeline import ClusteringPipeline, build_default_pipeline, build_id_generator
from storage.csv_files import (
    CsvObservationSource,
    CsvSummarySink,
    build_default_sink,
    build_default_source,
)

CSV_BODY = """x_position,y_position,sensor_id,timestamp_id,unique_id
0,0,s1,2024-01-01T00:00:00.000Z,0
1,0,s2,2024-01-01T00:00:02.000Z,abc
10,10,s3,2024-01-01T00:00:00.000Z,0
"""


def _pipeline(tmp_path: Path, body: str = CSV_BODY, threshold: float = 2.0) -> ClusteringPipeline:
    source_path = tmp_path / "data.csv"
    source_path.write_text(body, encoding="utf-8")
    return ClusteringPipeline(
        source=CsvObservationSource(source_path),
        sink=CsvSummarySink(tmp_path / "clustered_data.csv"),
        clusterer=Clusterer(id_generator=sequential_cluster_ids()),
        threshold=threshold,
    )


def _read_rows(path: Path) -> list[dict[str, str]]:
    with path.open(newline="", encoding="utf-8") as handle:
        return list(csv.DictReader(handle))


def test_pipeline_successful_run(tmp_path: Path) -> None:
    pipeline = _pipeline(tmp_path)

    report = pipeline.run()

    assert report.status is RunStatus.processed
    assert report.error is None
    assert report.observation_count == 3
    assert report.cluster_count == 2
    assert report.processing_ms is not None

    rows = _read_rows(tmp_path / "clustered_data.csv")
    assert [row["F_ID"] for row in rows] == ["1", "2"]
    assert rows[0]["F_TIMESTAMP"] == "2024-01-01T00:00:01.000Z"
    assert rows[0]["F_U_ID"] == "abc"
    assert [member["sensor_id"] for member in json.loads(rows[0]["CLUSTER_DATA"])] == ["s1", "s2"]
    assert rows[1]["F_TIMESTAMP"] == "2024-01-01T00:00:00.000Z"
    assert rows[1]["F_U_ID"] == "0"


def test_pipeline_empty_input_writes_header_only(tmp_path: Path) -> None:
    pipeline = _pipeline(tmp_path, body="x_position,y_position,sensor_id,timestamp_id,unique_id\n")

    report = pipeline.run()

    assert report.status is RunStatus.processed
    assert report.cluster_count == 0
    assert _read_rows(tmp_path / "clustered_data.csv") == []


def test_pipeline_dry_run_skips_the_sink(tmp_path: Path) -> None:
    pipeline = _pipeline(tmp_path)

    report = pipeline.run(dry_run=True)

    assert report.status is RunStatus.processed
    assert report.output_path is None
    assert len(report.summaries) == 2
    assert not (tmp_path / "clustered_data.csv").exists()


def test_pipeline_missing_source_fails(tmp_path: Path) -> None:
    pipeline = ClusteringPipeline(
        source=CsvObservationSource(tmp_path / "missing.csv"),
        sink=CsvSummarySink(tmp_path / "clustered_data.csv"),
        clusterer=Clusterer(),
        threshold=2.0,
    )

    report = pipeline.run()

    assert report.status is RunStatus.failed
    assert report.error is not None
    assert "does not exist" in report.error
    assert not (tmp_path / "clustered_data.csv").exists()


def test_pipeline_bad_timestamp_writes_nothing(tmp_path: Path) -> None:
    body = """x_position,y_position,sensor_id,timestamp_id,unique_id
0,0,s1,2024-01-01T00:00:00.000Z,0
1,0,s2,not-a-timestamp,0
"""
    output = tmp_path / "clustered_data.csv"
    output.write_text("previous run\n", encoding="utf-8")
    pipeline = _pipeline(tmp_path, body=body)

    report = pipeline.run()

    assert report.status is RunStatus.failed
    assert report.observation_count == 2
    assert report.cluster_count == 0
    assert report.summaries == []
    assert "Invalid timestamp format" in (report.error or "")
    assert output.read_text(encoding="utf-8") == "previous run\n"


def test_pipeline_logs_failures(tmp_path: Path, caplog) -> None:
    pipeline = _pipeline(tmp_path, body="sensor,timestamp\ns1,2024-01-01T00:00:00Z\n")

    with caplog.at_level(logging.INFO):
        report = pipeline.run()

    assert report.status is RunStatus.failed
    records = [record for record in caplog.records if record.name == "services.pipeline"]
    assert any(record.levelno == logging.ERROR for record in records)
    assert any(getattr(record, "reason", None) == "SourceReadError" for record in records)
    assert any(getattr(record, "status", None) == "failed" for record in records)


def test_build_id_generator_rejects_unknown_strategy() -> None:
    with pytest.raises(ValueError, match="Unknown cluster id strategy"):
        build_id_generator("uuid")


def test_build_default_pipeline_applies_overrides(tmp_path: Path) -> None:
    input_path = tmp_path / "data.csv"
    input_path.write_text(CSV_BODY, encoding="utf-8")
    output_path = tmp_path / "clustered_data.csv"

    try:
        pipeline = build_default_pipeline(
            input_path=str(input_path),
            output_path=str(output_path),
            threshold=50.0,
            id_strategy="sequential",
        )
        report = pipeline.run()
    finally:
        build_default_source.cache_clear()
        build_default_sink.cache_clear()

    assert report.status is RunStatus.processed
    assert report.cluster_count == 1
    assert [row["F_ID"] for row in _read_rows(output_path)] == ["1"]


def test_pipeline_reports_invalid_threshold(tmp_path: Path) -> None:
    report = _pipeline(tmp_path, threshold=-1.0).run()

    assert report.status is RunStatus.failed
    assert "Threshold must be" in (report.error or "")
    assert not (tmp_path / "clustered_data.csv").exists()
