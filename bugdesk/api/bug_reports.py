"""
Bug Report Endpoints
====================
Browser-facing routes for the bug report form.

Routes:
    POST /api/bug-reports               — compose + submit a report
    GET  /api/bug-reports/environment   — browser/device labels used to
                                          pre-fill the form

Status codes for POST:
    200 — {ok: true, id}     delivered to the store, or queued locally
    422 — {ok: false, reason} a field failed validation (nothing written)
    503 — {ok: false, reason} neither the store nor the local queue took it

A body FastAPI cannot parse (wrong types) also gets the {ok: false, reason}
shape with 422, via submit_validation_handler.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from bugdesk.core.config import PENDING_QUEUE_PATH
from bugdesk.core.constants import ANONYMOUS
from bugdesk.models.submission import BugReportForm, SubmissionContext, SubmitResult
from bugdesk.parser.environment_detector import detect_browser, detect_device
from bugdesk.services.pending_queue import PendingQueue
from bugdesk.services.record_store import FirestoreRecordStore
from bugdesk.services.submission_pipeline import SubmissionPipeline, submit_bug_report
from bugdesk.state.submission_state import new_attempt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bug-reports", tags=["Bug Reports"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------
class BugReportRequest(BugReportForm):
    user_id: Optional[str] = ANONYMOUS
    user_email: Optional[str] = ANONYMOUS
    page_url: str = ""
    user_agent: str = ""
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None

    def to_form(self) -> BugReportForm:
        return BugReportForm(**self.model_dump(include=set(BugReportForm.model_fields)))

    def to_context(self, header_user_agent: str = "") -> SubmissionContext:
        return SubmissionContext(
            user_id=self.user_id,
            user_email=self.user_email,
            page_url=self.page_url,
            user_agent=self.user_agent or header_user_agent,
            screen_width=self.screen_width,
            screen_height=self.screen_height,
        )


class EnvironmentResponse(BaseModel):
    browser: str
    device: str


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_pipeline() -> SubmissionPipeline:
    """Pipeline wired from configuration; overridden in tests."""
    return SubmissionPipeline(
        store=FirestoreRecordStore(),
        queue=PendingQueue(PENDING_QUEUE_PATH),
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.post("", response_model=SubmitResult)
async def create_bug_report(
    request: BugReportRequest,
    user_agent: str = Header(default=""),
    pipeline: SubmissionPipeline = Depends(get_pipeline),
):
    """Submit a bug report from the site's report form."""
    attempt = new_attempt()
    result = await submit_bug_report(
        request.to_form(),
        request.to_context(user_agent),
        pipeline,
        attempt=attempt,
    )

    final_state = attempt["states"][-1]
    logger.info("[API] Bug report attempt %s ended in %s", attempt["report_id"] or "-", final_state)

    if result.ok:
        status_code = 200
    elif final_state == "rejected":
        status_code = 422
    else:
        status_code = 503
    return JSONResponse(status_code=status_code, content=result.model_dump())


@router.get("/environment", response_model=EnvironmentResponse)
async def get_environment(
    screen_width: Optional[int] = None,
    screen_height: Optional[int] = None,
    user_agent: str = Header(default=""),
):
    """Detected browser/device labels for the requesting client."""
    return EnvironmentResponse(
        browser=detect_browser(user_agent),
        device=detect_device(user_agent, screen_width, screen_height),
    )


# ---------------------------------------------------------------------------
# Exception handlers (registered in main.py)
# ---------------------------------------------------------------------------
async def submit_validation_handler(request: Request, exc: RequestValidationError):
    """Keep the {ok: false, reason} shape for malformed submissions."""
    if request.method != "POST" or request.url.path.rstrip("/") != router.prefix:
        return await request_validation_exception_handler(request, exc)

    errors = exc.errors()
    if errors:
        first = errors[0]
        field = first.get("loc", ("body",))[-1]
        reason = f"Invalid value for {field}: {first.get('msg', 'invalid')}"
    else:
        reason = "Invalid bug report"

    logger.info("[API] Malformed bug report rejected: %s", reason)
    return JSONResponse(status_code=422, content=SubmitResult.refused(reason).model_dump())
