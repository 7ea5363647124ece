"""
Submission Pipeline
===================
Delivers composed reports to the remote store, with a local fallback.

Delivery Strategy:
    1. Write the report as a new document in the remote "bugs" collection
    2. On ANY remote failure → append the report to the local pending queue
       on a worker thread and acknowledge it as accepted (optimistic local
       acknowledgement)
    3. If the local queue also fails → PersistenceError to the caller

No retries beyond the single fallback, no background re-flush, no dedup key:
submitting the same report twice produces two store documents.

submit_bug_report() is the caller-facing operation. It composes, submits and
maps every outcome onto SubmitResult ({ok, id} or {ok, reason}).
"""
import asyncio
import logging
from typing import Optional

from bugdesk.core.constants import BUGS_COLLECTION
from bugdesk.core.exceptions import ValidationError, PersistenceError
from bugdesk.models.bug_report import BugReport
from bugdesk.models.submission import (
    Acknowledgement,
    BugReportForm,
    SubmissionContext,
    SubmitResult,
)
from bugdesk.services.pending_queue import PendingQueue
from bugdesk.services.record_store import RecordStore
from bugdesk.services.report_composer import ReportComposer
from bugdesk.state.submission_state import SubmissionAttempt, advance, new_attempt

logger = logging.getLogger(__name__)
analytics_logger = logging.getLogger("bugdesk.analytics")


class SubmissionPipeline:
    """Remote-first delivery with a pending-queue fallback."""

    def __init__(
        self,
        store: RecordStore,
        queue: PendingQueue,
        collection: str = BUGS_COLLECTION,
    ) -> None:
        self.store = store
        self.queue = queue
        self.collection = collection

    async def submit(self, report: BugReport) -> Acknowledgement:
        """
        Deliver one report.

        Returns
        -------
        Acknowledgement
            delivery="remote" with the store reference, or delivery="queued".

        Raises
        ------
        PersistenceError
            The remote write failed and the pending queue could not be written.
        """
        try:
            reference = await self.store.add_document(self.collection, report.to_document())
        except Exception as remote_err:
            logger.warning("Remote write failed for %s, falling back to pending queue: %s", report.id, remote_err)
            try:
                await asyncio.to_thread(self.queue.enqueue, report)
            except PersistenceError as local_err:
                logger.error("Failed to save bug report %s locally: %s", report.id, local_err)
                raise PersistenceError(
                    f"Bug report could not be delivered or saved locally: {local_err}"
                ) from local_err
            return Acknowledgement(report_id=report.id, delivery="queued")

        logger.info("Bug report %s saved to store: %s", report.id, reference)
        return Acknowledgement(report_id=report.id, delivery="remote", reference=reference)


async def submit_bug_report(
    form: BugReportForm,
    context: SubmissionContext,
    pipeline: SubmissionPipeline,
    composer: Optional[ReportComposer] = None,
    attempt: Optional[SubmissionAttempt] = None,
) -> SubmitResult:
    """
    Compose, validate and submit a bug report from raw form fields.

    Validation failures never reach the store or the queue. The optional
    attempt dict is filled in with every state the submission passes through.
    """
    composer = composer or ReportComposer()
    attempt = attempt if attempt is not None else new_attempt()

    advance(attempt, "validating")
    try:
        report = composer.compose(form, context)
    except ValidationError as e:
        advance(attempt, "rejected")
        attempt["reason"] = e.reason
        logger.info("Bug report rejected (%s): %s", e.field, e.reason)
        return SubmitResult.refused(e.reason)

    attempt["report_id"] = report.id
    advance(attempt, "validated")
    advance(attempt, "submitting")

    try:
        ack = await pipeline.submit(report)
    except PersistenceError as e:
        advance(attempt, "failed")
        attempt["reason"] = str(e)
        logger.error("Bug report %s failed: %s", report.id, e)
        return SubmitResult.refused(str(e))

    advance(attempt, "acknowledged_remote" if ack.delivery == "remote" else "acknowledged_queued")
    analytics_logger.info(
        "bug_report_submitted category=%s severity=%s delivery=%s",
        report.category, report.severity or "-", ack.delivery,
    )
    logger.info("Bug report submitted successfully: %s", report.id)
    return SubmitResult.accepted(ack)
