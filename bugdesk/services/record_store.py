"""
Record Store
============
Adapter for the remote document database that holds the website's
"games", "users" and "bugs" collections.

Only one operation is needed here:

    await store.add_document("bugs", {...}) -> document id

Any store used by the pipeline just has to provide that coroutine
(see RecordStore). FirestoreRecordStore is the production implementation and
talks to the Firestore REST API with httpx:

    POST {base}/projects/{project}/databases/{db}/documents/{collection}
    body: {"fields": {<name>: <typed value>, ...}}
    resp: {"name": "projects/.../documents/bugs/<docId>", ...}

Failures of any kind (missing configuration, network, HTTP status, malformed
response) surface as TransportError so the pipeline can fall back.
"""
import logging
from typing import Any, Optional, Protocol

import httpx

from bugdesk.core.config import (
    FIRESTORE_PROJECT_ID,
    FIRESTORE_API_KEY,
    FIRESTORE_DATABASE,
    FIRESTORE_BASE_URL,
    REMOTE_TIMEOUT_SECONDS,
)
from bugdesk.core.exceptions import TransportError

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def add_document(self, collection: str, data: dict) -> str:
        ...


# ---------------------------------------------------------------------------
# Firestore value encoding
# ---------------------------------------------------------------------------
def encode_value(value: Any) -> dict:
    """Encode a plain Python value as a Firestore REST typed value."""
    if value is None:
        return {"nullValue": None}
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    raise TypeError(f"Unsupported Firestore value type: {type(value).__name__}")


def encode_fields(data: dict) -> dict:
    return {str(key): encode_value(val) for key, val in data.items()}


# ---------------------------------------------------------------------------
# Firestore REST store
# ---------------------------------------------------------------------------
class FirestoreRecordStore:
    """Writes documents through the Firestore REST API."""

    def __init__(
        self,
        project_id: str = FIRESTORE_PROJECT_ID,
        api_key: str = FIRESTORE_API_KEY,
        database: str = FIRESTORE_DATABASE,
        base_url: str = FIRESTORE_BASE_URL,
        timeout_seconds: float = REMOTE_TIMEOUT_SECONDS,
        id_token: Optional[str] = None,
    ) -> None:
        self.project_id = project_id
        self.api_key = api_key
        self.database = database
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.headers = {"Content-Type": "application/json"}
        if id_token:
            self.headers["Authorization"] = f"Bearer {id_token}"

    def collection_url(self, collection: str) -> str:
        return (
            f"{self.base_url}/projects/{self.project_id}"
            f"/databases/{self.database}/documents/{collection}"
        )

    async def add_document(self, collection: str, data: dict) -> str:
        """
        Create a new document with a store-assigned id.

        Returns
        -------
        str
            The document id (last segment of the returned resource name).

        Raises
        ------
        TransportError
            The store is not configured or the write did not succeed.
        """
        if not self.project_id:
            raise TransportError("Remote store not configured (FIRESTORE_PROJECT_ID is empty)")

        url = self.collection_url(collection)
        params = {"key": self.api_key} if self.api_key else None
        body = {"fields": encode_fields(data)}

        try:
            async with httpx.AsyncClient(headers=self.headers, timeout=self.timeout_seconds) as client:
                response = await client.post(url, params=params, json=body)
                response.raise_for_status()
                name = response.json().get("name", "")
        except httpx.HTTPStatusError as http_err:
            status_code = http_err.response.status_code
            raise TransportError(f"Store rejected write to '{collection}' (HTTP {status_code})") from http_err
        except httpx.HTTPError as e:
            raise TransportError(f"Store unreachable: {e}") from e
        except ValueError as e:
            raise TransportError(f"Malformed store response: {e}") from e

        if not name:
            raise TransportError("Store response did not include a document name")

        doc_id = name.rsplit("/", 1)[-1]
        logger.info("Document written to %s: %s", collection, doc_id)
        return doc_id
