from __future__ import annotations

import json
import logging

from docker_net_graph.logging import JsonFormatter, PlainFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("docker_net_graph.cli", logging.INFO, __file__, 1, "Graph assembled", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_plain_formatter_includes_step_phase_and_duration() -> None:
    line = PlainFormatter().format(_record(step="graph", phase="complete", duration_ms=12))
    assert line.endswith("INFO docker_net_graph.cli: [graph:complete] Graph assembled (duration_ms=12)")


def test_json_formatter_keeps_safe_extras() -> None:
    payload = json.loads(JsonFormatter().format(_record(nodes=5, config={"out": "g.svg"}, handle=object())))
    assert payload["message"] == "Graph assembled"
    assert payload["nodes"] == 5
    assert payload["config"] == {"out": "g.svg"}
    assert "handle" not in payload


def test_timestamps_are_utc_with_single_zone_suffix() -> None:
    record = _record()
    record.created = 0.0

    line = PlainFormatter().format(record)
    payload = json.loads(JsonFormatter().format(record))

    assert line.startswith("1970-01-01T00:00:00Z INFO ")
    assert payload["timestamp"] == "1970-01-01T00:00:00.000Z"
