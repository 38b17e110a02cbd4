"""
Google Sheets Document Store

DESIGN DECISION: The remote document service is a Google Sheets
worksheet, one row per user:

    user_id | document_json | updated_at

Users can open the sheet to inspect or back up their data, and a service
account is the only infrastructure needed.

TRADEOFFS:
- Sheets has no push notifications, so subscriptions poll
- No transactions: last write wins, which is the sync model anyway
- A cell holds at most 50k characters, plenty for one household
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budget_app.config import GoogleSheetsSettings, get_settings
from budget_app.log import get_logger
from budget_app.services.storage.interface import (
    DocumentEvent,
    DocumentStoreInterface,
    DocumentSubscription,
    NotFoundError,
    RemoteUnavailableError,
    StorageError,
)


DOCUMENT_COLUMNS = [
    "user_id",
    "document_json",
    "updated_at",
]

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

# Transient Sheets failures are retried three times with backoff
remote_retry = retry(
    retry=retry_if_exception_type(RemoteUnavailableError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)

_UNSEEN = object()


class GoogleSheetsClient:
    """
    Opens the documents worksheet with a service account.

    The gspread client and spreadsheet handle are created on first use and
    reused afterwards.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._settings = settings or get_settings().google_sheets
        self._gc: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None

    @remote_retry
    def connect(self) -> gspread.Client:
        """Authorize gspread, raising RemoteUnavailableError on failure."""
        if self._gc is not None:
            return self._gc

        key_file = self._settings.credentials_path
        try:
            credentials = Credentials.from_service_account_file(key_file, scopes=SCOPES)
            self._gc = gspread.authorize(credentials)
        except FileNotFoundError:
            raise RemoteUnavailableError(f"Service account key not found: {key_file}")
        except Exception as e:
            raise RemoteUnavailableError(f"Could not authorize with Google Sheets: {e}")
        return self._gc

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is not None:
            return self._spreadsheet

        spreadsheet_id = self._settings.spreadsheet_id
        try:
            self._spreadsheet = self.connect().open_by_key(spreadsheet_id)
        except gspread.SpreadsheetNotFound:
            raise NotFoundError(f"No spreadsheet with id {spreadsheet_id}")
        return self._spreadsheet

    def get_documents_sheet(self) -> gspread.Worksheet:
        """The documents worksheet, created with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        title = self._settings.documents_sheet_name
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)
            return sheet


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of the per-user document store.

    Reads and writes retry transient failures before giving up with
    RemoteUnavailableError. Subscriptions poll the sheet and emit an event
    whenever the stored JSON changes.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        poll_interval_seconds: Optional[float] = None,
    ):
        self._client = client or GoogleSheetsClient()
        if poll_interval_seconds is None:
            poll_interval_seconds = get_settings().sync.poll_interval_seconds
        self._poll_interval = poll_interval_seconds
        self._logger = get_logger(__name__)

    def _find_row(self, sheet: gspread.Worksheet, key: str) -> tuple[Optional[int], list]:
        """Return (sheet row number, row) for key, or (None, [])."""
        rows = sheet.get_all_values()
        # Row 1 holds the headers
        for number, row in enumerate(rows[1:], start=2):
            if row and row[0] == key:
                return number, row
        return None, []

    def _read_payload(self, key: str) -> Optional[str]:
        """Raw JSON text stored for key, None when there is no document."""
        sheet = self._client.get_documents_sheet()
        _, row = self._find_row(sheet, key)
        if len(row) < 2 or not row[1]:
            return None
        return row[1]

    def _event(self, key: str, payload: Optional[str]) -> DocumentEvent:
        if payload is None:
            return DocumentEvent(key=key)
        try:
            return DocumentEvent(key=key, document=json.loads(payload))
        except ValueError as e:
            return DocumentEvent(key=key, error=f"Stored document is not valid JSON: {e}")

    # gspread is blocking: the helpers below run in a worker thread, and the
    # retry backoff sleeps there too, never on the event loop.

    @remote_retry
    def _fetch_payload(self, key: str) -> Optional[str]:
        try:
            return self._read_payload(key)
        except StorageError:
            raise
        except Exception as e:
            raise RemoteUnavailableError(f"Failed to read document: {e}")

    @remote_retry
    def _store_payload(self, key: str, payload: str) -> None:
        updated_at = datetime.now(timezone.utc).isoformat()
        try:
            sheet = self._client.get_documents_sheet()
            row_idx, _ = self._find_row(sheet, key)
            if row_idx is None:
                sheet.append_row([key, payload, updated_at], value_input_option="RAW")
            else:
                sheet.update_cell(row_idx, 2, payload)
                sheet.update_cell(row_idx, 3, updated_at)
        except StorageError:
            raise
        except Exception as e:
            raise RemoteUnavailableError(f"Failed to write document: {e}")

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        """Read the document stored for key."""
        payload = await asyncio.to_thread(self._fetch_payload, key)
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except ValueError as e:
            raise StorageError(f"Stored document is not valid JSON: {e}")

    async def set(self, key: str, document: dict[str, Any]) -> bool:
        """Create or overwrite the document stored for key."""
        try:
            payload = json.dumps(document, sort_keys=True, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise StorageError(f"Document is not JSON-serializable: {e}")

        await asyncio.to_thread(self._store_payload, key, payload)
        return True

    def subscribe(self, key: str) -> DocumentSubscription:
        """Poll the document for key until the subscription is cancelled."""
        subscription = DocumentSubscription(key, on_cancel=lambda: task.cancel())
        task = asyncio.get_running_loop().create_task(self._poll(key, subscription))
        return subscription

    async def _poll(self, key: str, subscription: DocumentSubscription) -> None:
        last_payload = _UNSEEN
        while not subscription.cancelled:
            try:
                payload = await asyncio.to_thread(self._read_payload, key)
            except Exception as e:
                self._logger.warning("document_poll_failed", key=key, error=str(e))
                subscription.push(
                    DocumentEvent(key=key, error=f"Failed to read document: {e}")
                )
            else:
                if payload != last_payload:
                    last_payload = payload
                    subscription.push(self._event(key, payload))
            await asyncio.sleep(self._poll_interval)
