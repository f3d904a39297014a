import json
import logging

from coach_workers.logging import JSONFormatter


def _record(**extra):
    record = logging.LogRecord(
        name="coach_workers.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="checked %s",
        args=("joelho",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_carries_coach_extras():
    line = JSONFormatter().format(
        _record(coach_risk_level="high-risk", coach_client_id="c-1", other_field="dropped")
    )
    entry = json.loads(line)
    assert entry["level"] == "WARNING"
    assert entry["message"] == "checked joelho"
    assert entry["coach_risk_level"] == "high-risk"
    assert entry["coach_client_id"] == "c-1"
    assert "other_field" not in entry


def test_json_formatter_keeps_accents_readable():
    line = JSONFormatter().format(_record(coach_condition="hérnia"))
    assert "hérnia" in line
