"""
Constants
Centralised storage for bug-report identifiers, field limits and storage names.
"""
BUG_ID_PREFIX = "BUG"
BUG_ID_SUFFIX_LENGTH = 6
BUGS_COLLECTION = "bugs"
PENDING_QUEUE_KEY = "pendingBugReports"
ANONYMOUS = "anonymous"
STATUS_NEW = "new"
UNKNOWN = "Unknown"
DEFAULT_DEVICE = "Desktop"

MAX_DESCRIPTION_LENGTH = 1000
MAX_STEPS_LENGTH = 500

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"
DESCRIPTION_TOO_LONG_MESSAGE = f"Description must be under {MAX_DESCRIPTION_LENGTH} characters"
STEPS_TOO_LONG_MESSAGE = f"Steps to reproduce must be under {MAX_STEPS_LENGTH} characters"
