"""Tests for the job stage timeline."""

import pytest

from brokerage_ledger.domain import StageTimeline


def test_timeline_records_events_in_order_with_details() -> None:
    """Keep insertion order and attach details only when provided."""

    timeline = StageTimeline()
    timeline.timeline_record("run", "started", period_kind="month")
    timeline.timeline_record(" client_read ", "completed")

    events = timeline.events

    assert [event["stage"] for event in events] == ["run", "client_read"]
    assert events[0]["details"] == {"period_kind": "month"}
    assert "details" not in events[1]
    assert events[0]["elapsed_ms"] <= events[1]["elapsed_ms"]


def test_timeline_events_returns_a_copy() -> None:
    """Mutating the returned list leaves the timeline untouched."""

    timeline = StageTimeline()
    timeline.timeline_record("run", "started")

    timeline.events.clear()

    assert len(timeline.events) == 1


@pytest.mark.parametrize(("stage", "status"), [("", "started"), ("run", "  ")])
def test_timeline_rejects_blank_stage_or_status(stage: str, status: str) -> None:
    """Reject blank stage names and status markers."""

    with pytest.raises(ValueError, match="must not be blank"):
        StageTimeline().timeline_record(stage, status)
