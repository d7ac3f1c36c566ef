import logging
from typing import Any, Dict, List, Sequence

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from pldash.core.config import Settings, settings
from pldash.core.errors import UpstreamError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
SERVICE = "Google Sheets"

Values = List[List[Any]]


class SheetsClient:
    """
    Thin read-only wrapper over the Sheets v4 values API.

    Every call is blocking; async callers should run it in a threadpool.
    """

    def __init__(self, spreadsheet_id: str, service: Any):
        self.spreadsheet_id = spreadsheet_id
        self._service = service

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "SheetsClient":
        config.require("GOOGLE_SHEETS_ID", "GOOGLE_SHEETS_CLIENT_EMAIL", "GOOGLE_SHEETS_PRIVATE_KEY")
        credentials = service_account.Credentials.from_service_account_info(
            {
                "client_email": config.GOOGLE_SHEETS_CLIENT_EMAIL,
                "private_key": config.google_private_key,
                "token_uri": TOKEN_URI,
            },
            scopes=SCOPES,
        )
        service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return cls(config.GOOGLE_SHEETS_ID, service)

    def _execute(self, request: Any, what: str) -> Dict[str, Any]:
        try:
            return request.execute()
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            logger.error(f"Sheets request for {what} failed with status {status}: {e}")
            raise UpstreamError(SERVICE, str(e), int(status) if status else None) from e
        except (GoogleAuthError, httplib2.HttpLib2Error, OSError) as e:
            logger.error(f"Sheets request for {what} failed: {e}")
            raise UpstreamError(SERVICE, str(e)) from e

    def batch_get(self, ranges: Sequence[str]) -> Dict[str, Values]:
        """Fetch several ranges in one call. Ranges the API leaves out come back empty."""
        if not ranges:
            return {}
        request = self._service.spreadsheets().values().batchGet(
            spreadsheetId=self.spreadsheet_id,
            ranges=list(ranges),
        )
        response = self._execute(request, ", ".join(ranges))
        value_ranges = response.get("valueRanges") or []

        # valueRanges come back in request order, labelled with the resolved A1 range
        result: Dict[str, Values] = {name: [] for name in ranges}
        for name, value_range in zip(ranges, value_ranges):
            result[name] = value_range.get("values") or []
        logger.info(f"Fetched {len(ranges)} ranges from spreadsheet {self.spreadsheet_id}")
        return result

    def sheet_titles(self) -> List[str]:
        request = self._service.spreadsheets().get(
            spreadsheetId=self.spreadsheet_id,
            fields="sheets.properties.title",
        )
        response = self._execute(request, "sheet titles")
        return [
            sheet.get("properties", {}).get("title", "")
            for sheet in response.get("sheets") or []
        ]
