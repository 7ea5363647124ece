"""
Submission Models
=================
Inputs and outputs around the composer and the submission pipeline.

    BugReportForm      — raw form values, trimmed, possibly empty
    SubmissionContext  — who is submitting and from where (replaces the
                         browser's global session lookup)
    Acknowledgement    — internal record of where a report ended up
    SubmitResult       — the caller-facing {ok, id} / {ok, reason} contract
"""
from typing import Literal, Optional
from pydantic import BaseModel, field_validator

from bugdesk.core.constants import ANONYMOUS


class BugReportForm(BaseModel):
    title: str = ""
    category: str = ""
    severity: str = ""
    description: str = ""
    steps: str = ""
    contact: str = ""
    # Pre-filled from environment detection; empty means "detect server side"
    browser: str = ""
    device: str = ""

    @field_validator(
        "title", "category", "severity", "description", "steps", "contact", "browser", "device",
        mode="before",
    )
    @classmethod
    def strip_value(cls, v):
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v


class SubmissionContext(BaseModel):
    user_id: str = ANONYMOUS
    user_email: str = ANONYMOUS
    page_url: str = ""
    user_agent: str = ""
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None

    @field_validator("user_id", "user_email", mode="before")
    @classmethod
    def default_anonymous(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return ANONYMOUS
        return v


class Acknowledgement(BaseModel):
    report_id: str
    delivery: Literal["remote", "queued"]
    reference: Optional[str] = None  # store document id, None when queued


class SubmitResult(BaseModel):
    ok: bool
    id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def accepted(cls, ack: Acknowledgement) -> "SubmitResult":
        return cls(ok=True, id=ack.reference or ack.report_id)

    @classmethod
    def refused(cls, reason: str) -> "SubmitResult":
        return cls(ok=False, reason=reason)
