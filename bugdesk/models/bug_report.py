"""
Bug Report Model
================
Pydantic model for a composed, validated bug report.
This is the document written to the remote "bugs" collection and, when that
write fails, appended to the local pending queue.

Fields:
    id              — BUG-<epoch-ms>-<6 char base36>, generated at composition
    title           — required, non-empty
    category        — required
    severity        — optional
    description     — required, at most 1000 characters
    steps           — optional, at most 500 characters
    browser/device  — detected from the user agent (informational only)
    contact         — optional reporter contact
    timestamp       — ISO-8601 UTC, set at composition
    user_agent      — raw agent string (stored as "userAgent")
    url             — page URL at submission time
    user_id         — session user id or "anonymous" (stored as "userId")
    user_email      — session email or "anonymous" (stored as "userEmail")
    status          — always "new"

Stored documents use the camelCase keys the website already reads:
    report.model_dump(by_alias=True)
"""
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field

from bugdesk.core.constants import ANONYMOUS


class BugReport(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    category: str
    severity: str = ""
    description: str
    steps: str = ""
    browser: str = ""
    device: str = ""
    contact: str = ""
    timestamp: str
    user_agent: str = Field(default="", alias="userAgent")
    url: str = ""
    user_id: str = Field(default=ANONYMOUS, alias="userId")
    user_email: str = Field(default=ANONYMOUS, alias="userEmail")
    status: Literal["new"] = "new"

    def to_document(self) -> dict:
        """Serialise with the stored (camelCase) keys."""
        return self.model_dump(by_alias=True)
