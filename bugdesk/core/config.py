"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    FIRESTORE_PROJECT_ID    — Firebase project that owns the "bugs" collection
    FIRESTORE_API_KEY       — Web API key sent with REST writes (optional)
    FIRESTORE_DATABASE      — Firestore database id (default: "(default)")
    FIRESTORE_BASE_URL      — REST endpoint root (default: Google production)
    REMOTE_TIMEOUT_SECONDS  — httpx timeout for a single remote write (default: 10)
    PENDING_QUEUE_PATH      — JSON file backing the local pending queue
    CORS_ORIGINS            — comma separated list of allowed browser origins
    LOG_DIR                 — directory for the daily log file (default: logs)

Remote Write Timeout:
    The pipeline itself never cancels a remote write. The only bound is the
    transport timeout configured here; a timeout counts as a transport failure
    and sends the report to the pending queue.
"""
import os
from dotenv import load_dotenv

load_dotenv()

FIRESTORE_PROJECT_ID = os.getenv("FIRESTORE_PROJECT_ID", "")
FIRESTORE_API_KEY = os.getenv("FIRESTORE_API_KEY", "")
FIRESTORE_DATABASE = os.getenv("FIRESTORE_DATABASE", "(default)")
FIRESTORE_BASE_URL = os.getenv("FIRESTORE_BASE_URL", "https://firestore.googleapis.com/v1")

REMOTE_TIMEOUT_SECONDS = float(os.getenv("REMOTE_TIMEOUT_SECONDS", 10))

# Local durable fallback
PENDING_QUEUE_PATH = os.getenv("PENDING_QUEUE_PATH", "pending_bug_reports.json")

# Browser origins allowed to post reports
CORS_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8000",
    ).split(",")
    if origin.strip()
]

LOG_DIR = os.getenv("LOG_DIR", "logs")
