"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as an alternative backend because:
1. The user can see the balance and history directly in Sheets
2. The state follows the user across machines
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Each save is a network round trip (fine for a handful of keys)
- No transactions (three keys are written one after another)

Ledger state lives in a two-column worksheet (`key`, `value`), one row per
key. Audit events are appended to a second worksheet.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
import requests
import structlog
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from gspread.cell import Cell
from tenacity import retry, stop_after_attempt, wait_exponential

from debt_tracker.config import get_settings
from debt_tracker.config.settings import GoogleSheetsSettings
from debt_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from debt_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    KeyValueStoreInterface,
    PersistenceUnavailableError,
)


logger = structlog.get_logger(__name__)

STATE_COLUMNS = ["key", "value"]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

# Everything a Sheets call can raise when the API, the network or the
# credentials are unavailable.
SHEETS_ERRORS = (
    gspread.exceptions.GSpreadException,
    requests.exceptions.RequestException,
    GoogleAuthError,
    ConnectionError,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_state_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value State worksheet."""
        return self._get_or_create_sheet(
            self._settings.state_sheet_name, STATE_COLUMNS, rows=20
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsKeyValueStore(KeyValueStoreInterface):
    """
    Google Sheets implementation of the key/value store.

    Row 1 is the header; every later row is `key | value`.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _rows(self, sheet: gspread.Worksheet) -> list[list[str]]:
        # Unformatted, so a cell that Sheets stored as a number reads back
        # with full precision instead of its display string.
        values = sheet.get_all_values(value_render_option="UNFORMATTED_VALUE")
        return [[str(cell) for cell in row] for row in values[1:]]

    def get(self, key: str) -> Optional[str]:
        try:
            sheet = self._client.get_state_sheet()
            for row in self._rows(sheet):
                if row and row[0] == key:
                    return row[1] if len(row) > 1 else ""
            return None
        except SHEETS_ERRORS as e:
            raise PersistenceUnavailableError(f"Failed to read {key!r}: {e}")

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def set_many(self, values: dict[str, str]) -> None:
        """
        Update rows in place, appending keys seen for the first time.

        Values are written RAW so Sheets keeps them as the exact strings
        given rather than parsing them into numbers.
        """
        try:
            sheet = self._client.get_state_sheet()
            positions = {
                row[0]: index
                for index, row in enumerate(self._rows(sheet), start=2)
                if row
            }
            updates = [
                Cell(positions[key], 2, value)
                for key, value in values.items()
                if key in positions
            ]
            if updates:
                sheet.update_cells(updates, value_input_option="RAW")
            for key, value in values.items():
                if key not in positions:
                    sheet.append_row([key, value], value_input_option="RAW")
        except SHEETS_ERRORS as e:
            raise PersistenceUnavailableError(f"Failed to save state: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            correlation_id=UUID(safe_get(4)) if safe_get(4) else None,
            description=safe_get(5),
            details=json.loads(safe_get(6)) if safe_get(6) else {},
            error_message=safe_get(7) or None,
            is_user_action=safe_get(8).lower() == "true",
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append_row(self, row: list) -> None:
        sheet = self._client.get_audit_sheet()
        sheet.append_row(row, value_input_option="RAW")

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Failures are logged, never raised."""
        try:
            self._append_row(event.to_sheets_row())
            return True
        except Exception as e:
            logger.warning(
                "audit_sheet_write_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get recent events, newest first. Unparsable rows are skipped."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except SHEETS_ERRORS as e:
            raise PersistenceUnavailableError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except (ValueError, IndexError):
                    continue

        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
