from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.pipeline",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Clustering run finished",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    message = formatter.format(_record(cluster_count=2, status="processed", unrelated="x"))

    assert message == "Clustering run finished | cluster_count=2 status=processed"


def test_formatter_skips_missing_and_none_values() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["threshold", "output_path"])

    message = formatter.format(_record(threshold=None))

    assert message == "Clustering run finished"


def test_formatter_defaults_cover_only_pipeline_context() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    message = formatter.format(_record(row_number=3, processing_ms=12, reason="SourceReadError"))

    assert message == "Clustering run finished | processing_ms=12 reason=SourceReadError"
