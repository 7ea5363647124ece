"""
Report Composer
===============
Turns raw form values plus submission context into an immutable BugReport.

Validation Order (first failure wins, nothing is produced on failure):
    1. title non-empty
    2. category selected
    3. description non-empty
    4. description <= 1000 characters
    5. steps <= 500 characters

Lengths are counted in UTF-16 code units so an emoji counts as two, matching
the limit the browser form enforces.

Derivation:
    - browser / device come from the form when pre-filled, otherwise from the
      user agent and screen metrics in the context
    - id is BUG-<epoch-ms>-<6 base36 chars>, upper-cased
    - timestamp is the same clock reading, ISO-8601 UTC with milliseconds

Ids are best-effort unique: epoch milliseconds plus ~31 bits of randomness.
No collision check is made against the store.
"""
import logging
import random
import string
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from bugdesk.core.constants import (
    BUG_ID_PREFIX,
    BUG_ID_SUFFIX_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_STEPS_LENGTH,
    REQUIRED_FIELDS_MESSAGE,
    DESCRIPTION_TOO_LONG_MESSAGE,
    STEPS_TOO_LONG_MESSAGE,
    STATUS_NEW,
)
from bugdesk.core.exceptions import ValidationError
from bugdesk.models.bug_report import BugReport
from bugdesk.models.submission import BugReportForm, SubmissionContext
from bugdesk.parser.environment_detector import detect_browser, detect_device

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    # naive clock readings are taken as UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _epoch_ms(moment: datetime) -> int:
    return (_as_utc(moment) - _EPOCH) // timedelta(milliseconds=1)


def text_length(text: str) -> int:
    """Length in UTF-16 code units, the way the browser counts characters."""
    return len(text.encode("utf-16-le", "surrogatepass")) // 2


def _iso_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a Z suffix."""
    moment = _as_utc(moment)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def generate_bug_report_id(epoch_ms: int, rng: Optional[random.Random] = None) -> str:
    """
    Build a report id from a millisecond timestamp and a random suffix.

    Parameters
    ----------
    epoch_ms : int
        Milliseconds since the Unix epoch.
    rng : random.Random, optional
        Source of randomness; the module-level generator when omitted.

    Returns
    -------
    str
        e.g. "BUG-1760870400000-K3F9ZQ"
    """
    rng = rng or random
    suffix = "".join(rng.choice(_BASE36) for _ in range(BUG_ID_SUFFIX_LENGTH))
    return f"{BUG_ID_PREFIX}-{epoch_ms}-{suffix.upper()}"


def validate_form(form: BugReportForm) -> None:
    """Raise ValidationError for the first rule the form breaks."""
    if not form.title:
        raise ValidationError("title", REQUIRED_FIELDS_MESSAGE)
    if not form.category:
        raise ValidationError("category", REQUIRED_FIELDS_MESSAGE)
    if not form.description:
        raise ValidationError("description", REQUIRED_FIELDS_MESSAGE)
    if text_length(form.description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError("description", DESCRIPTION_TOO_LONG_MESSAGE)
    if text_length(form.steps) > MAX_STEPS_LENGTH:
        raise ValidationError("steps", STEPS_TOO_LONG_MESSAGE)


class ReportComposer:
    """
    Validation + derivation stage producing BugReport instances.

    Clock and randomness are injected so tests can pin both.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _utc_now,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.clock = clock
        self.rng = rng or random.Random()

    def compose(self, form: BugReportForm, context: SubmissionContext) -> BugReport:
        validate_form(form)

        browser = form.browser or detect_browser(context.user_agent)
        device = form.device or detect_device(
            context.user_agent, context.screen_width, context.screen_height
        )

        now = self.clock()
        report = BugReport(
            id=generate_bug_report_id(_epoch_ms(now), self.rng),
            title=form.title,
            category=form.category,
            severity=form.severity,
            description=form.description,
            steps=form.steps,
            browser=browser,
            device=device,
            contact=form.contact,
            timestamp=_iso_timestamp(now),
            user_agent=context.user_agent,
            url=context.page_url,
            user_id=context.user_id,
            user_email=context.user_email,
            status=STATUS_NEW,
        )
        logger.debug("Composed bug report %s (%s)", report.id, report.category)
        return report


def compose(form: BugReportForm, context: SubmissionContext) -> BugReport:
    """Compose with the wall clock and a fresh random generator."""
    return ReportComposer().compose(form, context)
