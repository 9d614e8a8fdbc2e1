"""
Google Sheets Document Store

DESIGN DECISION: Google Sheets is used as the remote backend because:
1. Users can look at their counts directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

Every document is one row on a single worksheet:

    path | parent | doc_id | version | updated_at | data_json

TRADEOFFS:
- Sheets has no transactions. Within one process we serialize writes
  per document; across processes we use the version column as an
  optimistic check and retry on conflict. The check and the write are
  still two requests, so two devices writing the same day at the same
  instant can race. Multi-device conflict resolution is out of scope.
- Limited query capabilities (we filter in Python)

gspread is synchronous, so every sheet call runs in a worker thread.
"""

import asyncio
import copy
import json
from datetime import datetime
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    AsyncRetrying,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from daycounter.config import GoogleSheetsSettings, get_settings
from daycounter.services.storage.interface import (
    ConnectionError,
    DocumentStoreInterface,
    PathLocks,
    StorageError,
    TransactionConflictError,
    TransactionUpdate,
    split_path,
)


# Column mappings for the Documents sheet
DOCUMENT_COLUMNS = [
    "path",
    "parent",
    "doc_id",
    "version",
    "updated_at",
    "data_json",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._sheet: Optional[gspread.Worksheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

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

    def get_documents_sheet(self) -> gspread.Worksheet:
        """Get or create the Documents worksheet."""
        if self._sheet is None:
            spreadsheet = self.get_spreadsheet()
            try:
                sheet = spreadsheet.worksheet(self._settings.documents_sheet_name)
            except gspread.WorksheetNotFound:
                # Create the sheet with headers
                sheet = spreadsheet.add_worksheet(
                    title=self._settings.documents_sheet_name,
                    rows=1000,
                    cols=len(DOCUMENT_COLUMNS),
                )
                sheet.append_row(DOCUMENT_COLUMNS)
            self._sheet = sheet
        return self._sheet


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of the document store.

    One row per document; fields are JSON-serialized into data_json.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        max_attempts: Optional[int] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._locks = PathLocks()
        if max_attempts is None:
            max_attempts = self._client.settings.transaction_max_attempts
        self._max_attempts = max_attempts

    # -------------------------------------------------------------------------
    # Row helpers (run inside worker threads)
    # -------------------------------------------------------------------------

    def _read_rows(self) -> list[list[str]]:
        sheet = self._client.get_documents_sheet()
        return sheet.get_all_values()[1:]  # Skip header

    def _locate(
        self,
        rows: list[list[str]],
        path: str,
    ) -> tuple[Optional[int], int, Optional[dict[str, Any]]]:
        """
        Find a document's row.

        Returns:
            (sheet_row_number, version, fields); (None, 0, None) if absent
        """
        for idx, row in enumerate(rows, start=2):  # Row 1 is the header
            if row and row[0] == path:
                return idx, self._row_version(row), self._row_fields(row)
        return None, 0, None

    def _row_version(self, row: list[str]) -> int:
        try:
            return int(row[3])
        except (IndexError, ValueError):
            return 0

    def _row_fields(self, row: list[str]) -> dict[str, Any]:
        try:
            data = json.loads(row[5]) if row[5] else {}
        except (IndexError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    def _document_to_row(self, path: str, version: int, fields: dict[str, Any]) -> list:
        parent, doc_id = split_path(path)
        return [
            path,
            parent,
            doc_id,
            str(version),
            datetime.now().isoformat(),
            json.dumps(fields, ensure_ascii=False),
        ]

    def _write_row(
        self,
        row_number: Optional[int],
        path: str,
        version: int,
        fields: dict[str, Any],
    ) -> None:
        sheet = self._client.get_documents_sheet()
        row = self._document_to_row(path, version, fields)
        if row_number is None:
            sheet.append_row(row, value_input_option="RAW")
        else:
            sheet.update(
                range_name=f"A{row_number}:F{row_number}",
                values=[row],
                value_input_option="RAW",
            )

    def _attempt_transaction(
        self,
        path: str,
        update: TransactionUpdate,
    ) -> Optional[dict[str, Any]]:
        """One optimistic read-compute-verify-write pass."""
        _, version, current = self._locate(self._read_rows(), path)

        try:
            fields = update(copy.deepcopy(current))
        except Exception as e:
            raise StorageError(f"Transaction update failed for {path}: {e}") from e
        if fields is None:
            return None

        # Re-read just before writing; someone else may have committed
        row_number, latest_version, _ = self._locate(self._read_rows(), path)
        if latest_version != version:
            raise TransactionConflictError(
                f"{path} changed from version {version} to {latest_version}"
            )

        merged = dict(current or {})
        merged.update(fields)
        self._write_row(row_number, path, version + 1, merged)
        return copy.deepcopy(fields)

    # -------------------------------------------------------------------------
    # DocumentStoreInterface
    # -------------------------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ConnectionError),
        reraise=True,
    )
    async def get_document(self, path: str) -> Optional[dict[str, Any]]:
        """Read a document's fields."""
        split_path(path)
        try:
            rows = await asyncio.to_thread(self._read_rows)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read document {path}: {e}")
        _, _, fields = self._locate(rows, path)
        return fields

    async def merge_document(self, path: str, fields: dict[str, Any]) -> bool:
        """Merge fields into a document."""
        snapshot = copy.deepcopy(fields)
        await self.run_transaction(path, lambda current: snapshot)
        return True

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ConnectionError),
        reraise=True,
    )
    async def list_collection(self, path: str) -> list[tuple[str, dict[str, Any]]]:
        """List the documents whose parent is `path`."""
        parent = path.rstrip("/")
        try:
            rows = await asyncio.to_thread(self._read_rows)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list collection {path}: {e}")

        documents = []
        for row in rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            if len(row) > 2 and row[1] == parent:
                documents.append((row[2], self._row_fields(row)))
        return documents

    async def run_transaction(
        self,
        path: str,
        update: TransactionUpdate,
    ) -> Optional[dict[str, Any]]:
        """Read-modify-write with optimistic retries."""
        split_path(path)
        async with self._locks.for_path(path):
            try:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(self._max_attempts),
                    wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
                    retry=retry_if_exception_type(TransactionConflictError),
                    reraise=True,
                ):
                    with attempt:
                        return await asyncio.to_thread(
                            self._attempt_transaction, path, update
                        )
            except StorageError:
                raise
            except Exception as e:
                raise StorageError(f"Transaction failed for {path}: {e}")
