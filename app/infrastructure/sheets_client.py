import logging
from typing import List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiError

from app.core.config import SHEETS_CREDENTIALS, Settings
from app.core.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

# Failures the Google client raises for API, auth and transport errors.
# httplib2 transport errors are not OSErrors.
SHEETS_ERRORS = (GoogleApiError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


class SheetsRowStore:
    """
    Positional row access to one Google spreadsheet.

    The API client is built on first use so the app can boot without
    credentials; a request that needs the store then fails with
    ConfigurationError instead.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._service = None

    @property
    def spreadsheet_id(self) -> Optional[str]:
        return self.settings.GOOGLE_SPREADSHEET_ID

    def append(self, range_name: str, rows: List[List[str]]) -> None:
        self._execute(
            self._values().append(
                spreadsheetId=self.spreadsheet_id,
                range=range_name,
                valueInputOption="USER_ENTERED",
                body={"values": rows},
            ),
            f"append to {range_name}",
        )

    def read_all(self, range_name: str) -> List[List[str]]:
        response = self._execute(
            self._values().get(spreadsheetId=self.spreadsheet_id, range=range_name),
            f"read {range_name}",
        )
        return response.get("values", [])

    def delete_row(self, sheet_id: int, row_number: int) -> None:
        """Deletes one 1-based sheet row."""
        request = {
            "deleteDimension": {
                "range": {
                    "sheetId": sheet_id,
                    "dimension": "ROWS",
                    "startIndex": row_number - 1,
                    "endIndex": row_number,
                }
            }
        }
        self._execute(
            self._client().spreadsheets().batchUpdate(
                spreadsheetId=self.spreadsheet_id, body={"requests": [request]}
            ),
            f"delete row {row_number}",
        )

    def ensure_header(self, range_name: str, header: List[str]) -> None:
        """Creates the tab if needed and writes `header` at A1 when the tab is empty."""
        sheet_title = range_name.split("!")[0]
        self._ensure_sheet(sheet_title)

        existing = self.read_all(range_name)
        if existing and existing[0]:
            return

        self._execute(
            self._values().update(
                spreadsheetId=self.spreadsheet_id,
                range=f"{sheet_title}!A1",
                valueInputOption="RAW",
                body={"values": [header]},
            ),
            f"write header to {sheet_title}",
        )
        logger.info(f"✅ Header written to {sheet_title}")

    # --- internals ---

    def _ensure_sheet(self, title: str) -> None:
        metadata = self._execute(
            self._client().spreadsheets().get(
                spreadsheetId=self.spreadsheet_id, fields="sheets.properties.title"
            ),
            "read spreadsheet metadata",
        )
        titles = {sheet["properties"]["title"] for sheet in metadata.get("sheets", [])}
        if title in titles:
            return

        self._execute(
            self._client().spreadsheets().batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={"requests": [{"addSheet": {"properties": {"title": title}}}]},
            ),
            f"create sheet {title}",
        )
        logger.info(f"✅ Created sheet {title}")

    def _values(self):
        return self._client().spreadsheets().values()

    def _client(self):
        if self._service is None:
            self.settings.require(*SHEETS_CREDENTIALS)
            try:
                credentials = service_account.Credentials.from_service_account_info(
                    {
                        "type": "service_account",
                        "client_email": self.settings.GOOGLE_SERVICE_ACCOUNT_EMAIL,
                        "private_key": self.settings.formatted_private_key,
                        "token_uri": TOKEN_URI,
                    },
                    scopes=SCOPES,
                )
            except ValueError as e:
                logger.error(f"❌ Could not load Google service account key: {e}")
                raise ConfigurationError("Server configuration error: invalid private key") from e

            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
            logger.info("✅ SheetsRowStore: Google Sheets client initialized")
        return self._service

    def _execute(self, request, action: str) -> dict:
        try:
            return request.execute()
        except SHEETS_ERRORS as e:
            logger.error(f"❌ Sheets API failed to {action}: {e}")
            raise UpstreamError(f"Order store unavailable ({action})") from e
