"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the cloud sync backend because:
1. The user can view their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (a whole-ledger save is one range write plus a trim)
- Limited query capabilities (we aggregate in Python anyway)

Rows hold the same camelCase record the local file holds, one column
per field. Empty cells are treated as missing fields, so records go
through the same load-time migration as the local file.
"""

import json
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from smartspend.config import GoogleSheetsSettings, get_settings
from smartspend.models.audit import AuditEvent, AuditEventType, AuditSeverity
from smartspend.models.transaction import AccountId, Transaction, TransactionDraft
from smartspend.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    StorageConnectionError,
    StorageError,
    TransactionStorageInterface,
)
from smartspend.services.storage.migration import normalize_records


logger = structlog.get_logger(__name__)


# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "amount",
    "type",
    "category",
    "description",
    "date",
    "accountId",
    "targetAccountId",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


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
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

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
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            rows=2000,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


def transaction_to_row(transaction: Transaction) -> list[str]:
    """Convert a Transaction to a spreadsheet row. Missing fields become empty cells."""
    record = transaction.to_record()
    return [str(record.get(column, "")) for column in TRANSACTION_COLUMNS]


def row_to_record(row: list) -> dict:
    """Convert a spreadsheet row to a stored record. Empty cells are left out."""
    record = {}
    for index, column in enumerate(TRANSACTION_COLUMNS):
        if index < len(row) and row[index] != "":
            record[column] = row[index]
    return record


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    One transaction per row, newest first, under a header row.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        default_account: str = AccountId.SALARY.value,
    ):
        self._client = client or GoogleSheetsClient()
        self._default_account = default_account

    def _data_rows(self) -> list[list]:
        sheet = self._client.get_transactions_sheet()
        return sheet.get_all_values()[1:]  # Skip header

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def load(self) -> list[Transaction]:
        """Load the ledger from the sheet."""
        try:
            rows = self._data_rows()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load transactions: {e}")

        records = [row_to_record(row) for row in rows if any(row)]
        return normalize_records(records, self._default_account).transactions

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save(self, transactions: list[Transaction]) -> bool:
        """
        Replace the sheet contents with the given ledger.

        One write covers the header and every row, then leftover rows
        below are cut off. A failed write leaves the old copy in place.
        """
        try:
            sheet = self._client.get_transactions_sheet()
            values = [TRANSACTION_COLUMNS] + [transaction_to_row(t) for t in transactions]
            sheet.update(range_name="A1", values=values, value_input_option="RAW")
            if sheet.row_count > len(values):
                sheet.resize(rows=len(values))
            logger.info("sheets_ledger_saved", count=len(values) - 1)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save transactions: {e}")

    async def add(self, draft: TransactionDraft) -> Transaction:
        """Insert a new row directly under the header."""
        transaction = Transaction.from_draft(draft)
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.insert_row(transaction_to_row(transaction), index=2, value_input_option="RAW")
            return transaction
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to add transaction: {e}")

    async def update(self, transaction: Transaction) -> bool:
        """Rewrite the row holding this transaction."""
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()

            # Row 1 is the header
            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == transaction.id:
                    new_row = transaction_to_row(transaction)
                    for col_idx, value in enumerate(new_row, start=1):
                        sheet.update_cell(idx, col_idx, value)
                    return True

            raise NotFoundError(f"Transaction not found: {transaction.id}")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

    async def delete(self, transaction_id: str) -> bool:
        """Delete a row by transaction id."""
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == transaction_id:
                    sheet.delete_rows(idx)
                    return True

            return False
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")


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
            event_id=safe_get(0),
            timestamp=safe_get(1),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=safe_get(6) or None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Never raises; failures are logged."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_sheet_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    # Skip malformed rows
                    continue

        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
