"""
Submission Pipeline Tests
=========================
Remote-first delivery, pending-queue fallback and the caller-facing
submit_bug_report() contract. The store is always an AsyncMock.
"""
import asyncio
import random
import threading
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from bugdesk.core.exceptions import PersistenceError, TransportError
from bugdesk.models.submission import BugReportForm, SubmissionContext
from bugdesk.services.pending_queue import PendingQueue
from bugdesk.services.report_composer import ReportComposer
from bugdesk.services.submission_pipeline import SubmissionPipeline, submit_bug_report
from bugdesk.state.submission_state import advance, is_terminal, new_attempt

SCENARIO_FIELDS = {"title": "Crash on load", "category": "bug", "description": "Page is blank"}


@pytest.fixture
def composer():
    return ReportComposer(
        clock=lambda: datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc),
        rng=random.Random(3),
    )


@pytest.fixture
def queue(tmp_path):
    return PendingQueue(str(tmp_path / "pending.json"))


def _store(reference="doc-001", error=None):
    store = MagicMock()
    store.add_document = AsyncMock(return_value=reference, side_effect=error)
    return store


def _broken_queue():
    queue = MagicMock(spec=PendingQueue)
    queue.enqueue.side_effect = PersistenceError("disk full")
    return queue


def _submit(pipeline, composer, fields=None, attempt=None):
    form = BugReportForm(**(fields or SCENARIO_FIELDS))
    return asyncio.run(submit_bug_report(
        form, SubmissionContext(), pipeline, composer=composer, attempt=attempt
    ))


# ===================================================================
# Pipeline.submit
# ===================================================================
class TestPipelineSubmit:

    def test_remote_delivery(self, composer, queue):
        store = _store("doc-xyz")
        pipeline = SubmissionPipeline(store, queue)
        report = composer.compose(BugReportForm(**SCENARIO_FIELDS), SubmissionContext())

        ack = asyncio.run(pipeline.submit(report))

        assert ack.delivery == "remote"
        assert ack.reference == "doc-xyz"
        assert ack.report_id == report.id
        store.add_document.assert_awaited_once_with("bugs", report.to_document())
        assert queue.load() == []

    @pytest.mark.parametrize("error", [
        TransportError("store unavailable"),
        httpx.ConnectError("offline"),
        RuntimeError("unexpected"),
    ])
    def test_any_remote_failure_falls_back(self, composer, queue, error):
        pipeline = SubmissionPipeline(_store(error=error), queue)
        report = composer.compose(BugReportForm(**SCENARIO_FIELDS), SubmissionContext())

        ack = asyncio.run(pipeline.submit(report))

        assert ack.delivery == "queued"
        assert ack.reference is None
        assert queue.load() == [report.to_document()]

    def test_both_paths_failing_raises(self, composer):
        pipeline = SubmissionPipeline(_store(error=TransportError("down")), _broken_queue())
        report = composer.compose(BugReportForm(**SCENARIO_FIELDS), SubmissionContext())

        with pytest.raises(PersistenceError):
            asyncio.run(pipeline.submit(report))

    def test_no_dedup_on_resubmit(self, composer, queue):
        store = _store()
        pipeline = SubmissionPipeline(store, queue)
        report = composer.compose(BugReportForm(**SCENARIO_FIELDS), SubmissionContext())

        asyncio.run(pipeline.submit(report))
        asyncio.run(pipeline.submit(report))

        assert store.add_document.await_count == 2

    def test_custom_collection(self, composer, queue):
        store = _store()
        pipeline = SubmissionPipeline(store, queue, collection="bugs_staging")
        report = composer.compose(BugReportForm(**SCENARIO_FIELDS), SubmissionContext())
        asyncio.run(pipeline.submit(report))
        assert store.add_document.await_args.args[0] == "bugs_staging"


# ===================================================================
# submit_bug_report — scenarios
# ===================================================================
def test_scenario_a_remote_available(composer, queue):
    result = _submit(SubmissionPipeline(_store("ref-A"), queue), composer)
    assert result.ok is True
    assert result.id == "ref-A"
    assert result.reason is None


def test_scenario_b_remote_throws_queue_gains_report(composer, queue):
    attempt = new_attempt()
    result = _submit(SubmissionPipeline(_store(error=TransportError("down")), queue), composer, attempt=attempt)

    assert result.ok is True
    pending = queue.load()
    assert len(pending) == 1
    assert pending[0]["id"] == attempt["report_id"]
    assert pending[0]["title"] == "Crash on load"
    assert attempt["states"][-1] == "acknowledged_queued"
    # Queued reports are acknowledged with their own id
    assert result.id == attempt["report_id"]


def test_scenario_c_both_fail(composer):
    attempt = new_attempt()
    pipeline = SubmissionPipeline(_store(error=TransportError("down")), _broken_queue())
    result = _submit(pipeline, composer, attempt=attempt)

    assert result.ok is False
    assert "disk full" in result.reason
    assert attempt["states"][-1] == "failed"


def test_scenario_d_description_1001_rejected_before_write(composer, queue):
    store = _store()
    attempt = new_attempt()
    fields = dict(SCENARIO_FIELDS, description="x" * 1001)
    result = _submit(SubmissionPipeline(store, queue), composer, fields, attempt=attempt)

    assert result.ok is False
    assert result.reason == "Description must be under 1000 characters"
    store.add_document.assert_not_called()
    assert queue.load() == []
    assert attempt["states"] == ["composed", "validating", "rejected"]
    assert attempt["report_id"] is None


@pytest.mark.parametrize("missing", ["title", "category", "description"])
def test_required_field_missing_never_writes(composer, queue, missing):
    store = _store()
    result = _submit(SubmissionPipeline(store, queue), composer, dict(SCENARIO_FIELDS, **{missing: ""}))
    assert result.ok is False
    store.add_document.assert_not_called()


def test_state_trail_for_remote_delivery(composer, queue):
    attempt = new_attempt()
    _submit(SubmissionPipeline(_store(), queue), composer, attempt=attempt)
    assert attempt["states"] == [
        "composed", "validating", "validated", "submitting", "acknowledged_remote",
    ]
    assert is_terminal(attempt)


def test_illegal_transition_rejected():
    attempt = new_attempt()
    with pytest.raises(ValueError):
        advance(attempt, "submitting")
    assert not is_terminal(attempt)


def test_success_emits_analytics_event(composer, queue, caplog):
    with caplog.at_level("INFO", logger="bugdesk.analytics"):
        _submit(SubmissionPipeline(_store(), queue), composer, dict(SCENARIO_FIELDS, severity="high"))
    events = [r.getMessage() for r in caplog.records if r.name == "bugdesk.analytics"]
    assert events == ["bug_report_submitted category=bug severity=high delivery=remote"]


def test_fallback_write_runs_off_the_event_loop_thread(composer):
    seen = {}
    queue = MagicMock(spec=PendingQueue)
    queue.enqueue.side_effect = lambda report: seen.setdefault("thread", threading.get_ident())
    pipeline = SubmissionPipeline(_store(error=TransportError("down")), queue)
    report = composer.compose(BugReportForm(**SCENARIO_FIELDS), SubmissionContext())

    async def run_test():
        seen["loop_thread"] = threading.get_ident()
        return await pipeline.submit(report)

    ack = asyncio.run(run_test())

    assert ack.delivery == "queued"
    queue.enqueue.assert_called_once_with(report)
    assert seen["thread"] != seen["loop_thread"]
