"""Async wrapper over the Google Sheets values API.

The googleapiclient transport is blocking and not thread-safe, so every call runs in a
worker thread with its own authorized httplib2 connection.
"""

import asyncio
import logging

import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from sheetrelay.exceptions import UpstreamError

logger = logging.getLogger(__name__)


class SheetsClient:
    """Shared handle for one set of service-account credentials."""

    def __init__(self, credentials, timeout: float = 30.0):
        self._credentials = credentials
        self._timeout = timeout
        self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)

    def _authorized_http(self) -> google_auth_httplib2.AuthorizedHttp:
        return google_auth_httplib2.AuthorizedHttp(
            self._credentials, http=httplib2.Http(timeout=self._timeout)
        )

    def _execute(self, request, range: str, value_count: int | None = None) -> dict:
        try:
            return request.execute(http=self._authorized_http())
        except HttpError as e:
            logger.warning("Sheets API error %s for range %s: %s", e.resp.status, range, e)
            raise UpstreamError(
                "Sheets API request failed.",
                status=e.resp.status,
                range=range,
                value_count=value_count,
                detail=str(e),
            ) from e
        except GoogleAuthError as e:
            logger.warning("Sheets credentials rejected for range %s: %s", range, e)
            raise UpstreamError(
                "Sheets API authentication failed.", range=range, value_count=value_count, detail=str(e)
            ) from e
        except (OSError, httplib2.HttpLib2Error) as e:
            logger.warning("Sheets API unreachable for range %s: %r", range, e)
            raise UpstreamError(
                "Sheets API did not respond.", range=range, value_count=value_count, detail=repr(e)
            ) from e

    async def get_values(self, spreadsheet_id: str, range: str) -> list[list[str]]:
        """Read a range (e.g. 'Vinh!A5:P'). Returns [] when the range holds no data."""
        request = self._service.spreadsheets().values().get(spreadsheetId=spreadsheet_id, range=range)
        result = await asyncio.to_thread(self._execute, request, range)
        return result.get("values", [])

    async def update_values(
        self,
        spreadsheet_id: str,
        range: str,
        values: list[list[str]],
        input_option: str = "USER_ENTERED",
    ) -> dict:
        """Overwrite the cells of a range."""
        request = self._service.spreadsheets().values().update(
            spreadsheetId=spreadsheet_id,
            range=range,
            valueInputOption=input_option,
            body={"values": values},
        )
        return await asyncio.to_thread(self._execute, request, range, _count(values))

    async def append_values(
        self,
        spreadsheet_id: str,
        range: str,
        values: list[list[str]],
        input_option: str = "USER_ENTERED",
        insert_option: str = "INSERT_ROWS",
    ) -> dict:
        """Append rows after the last row with data in the range."""
        request = self._service.spreadsheets().values().append(
            spreadsheetId=spreadsheet_id,
            range=range,
            valueInputOption=input_option,
            insertDataOption=insert_option,
            body={"values": values},
        )
        return await asyncio.to_thread(self._execute, request, range, _count(values))


def _count(values: list[list[str]]) -> int:
    return sum(len(row) for row in values)
