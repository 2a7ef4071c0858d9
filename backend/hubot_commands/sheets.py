from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Sequence
import logging

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiError

from .config import Settings
from .errors import BackendUnavailableError

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets.readonly",
]

# Header occupies row 1, so data rows start at 2
FIRST_DATA_ROW_INDEX = 2


@dataclass
class SheetRow:
    row_index: int
    values: Dict[str, str] = field(default_factory=dict)

    def get(self, column: str, default: str = "") -> str:
        return self.values.get(column, default)

    def __getitem__(self, column: str) -> str:
        return self.values.get(column, "")


class SheetSource(Protocol):
    def get_rows(self, title: str) -> List[SheetRow]:
        ...


def rows_from_values(values: Sequence[Sequence[Any]]) -> List[SheetRow]:
    """Turn a values.get payload (header row first) into SheetRows."""
    if not values:
        return []
    header = [str(cell).strip() for cell in values[0]]
    rows: List[SheetRow] = []
    for offset, raw in enumerate(values[1:]):
        cells = [str(cell) for cell in raw]
        cells += [""] * (len(header) - len(cells))
        rows.append(
            SheetRow(
                row_index=FIRST_DATA_ROW_INDEX + offset,
                values={name: cells[i] for i, name in enumerate(header) if name},
            )
        )
    return rows


def _a1_sheet_range(title: str) -> str:
    escaped = title.replace("'", "''")
    return f"'{escaped}'"


class SpreadsheetClient:
    """Reads whole sheets of one spreadsheet through the Sheets API v4.

    Every call builds its own authorized transport: httplib2 connections
    are not thread safe and calls run in worker threads.
    """

    def __init__(self, settings: Settings):
        self.spreadsheet_id = settings.spreadsheet_id
        self.service_account_info = settings.service_account_info()
        self.https_proxy = settings.https_proxy

    def _build_http(self) -> httplib2.Http:
        if self.https_proxy:
            return httplib2.Http(proxy_info=httplib2.proxy_info_from_url(self.https_proxy))
        return httplib2.Http()

    def _build_service(self):
        creds = service_account.Credentials.from_service_account_info(
            self.service_account_info, scopes=SCOPES
        )
        authed_http = AuthorizedHttp(creds, http=self._build_http())
        return build("sheets", "v4", http=authed_http, cache_discovery=False)

    def load_info(self, service) -> List[str]:
        """Return the titles of every sheet in the spreadsheet."""
        response = (
            service.spreadsheets()
            .get(spreadsheetId=self.spreadsheet_id, fields="sheets.properties.title")
            .execute()
        )
        return [sheet["properties"]["title"] for sheet in response.get("sheets", [])]

    def get_rows(self, title: str) -> List[SheetRow]:
        try:
            service = self._build_service()
            titles = self.load_info(service)
            if title not in titles:
                raise BackendUnavailableError(f"Sheet {title!r} not found in spreadsheet {self.spreadsheet_id}")
            response = (
                service.spreadsheets()
                .values()
                .get(
                    spreadsheetId=self.spreadsheet_id,
                    range=_a1_sheet_range(title),
                    majorDimension="ROWS",
                )
                .execute()
            )
        except (GoogleAuthError, GoogleApiError, httplib2.HttpLib2Error, OSError, ValueError) as exc:
            raise BackendUnavailableError(f"Failed to read sheet {title!r}", exc) from exc

        rows = rows_from_values(response.get("values", []))
        logger.debug("Loaded %s rows from sheet %s", len(rows), title)
        return rows
