import asyncio
import contextlib
import logging
import math
import re
import weakref
from typing import Any, Protocol

from sheetrelay.exceptions import InvalidInputError, NotFoundError
from sheetrelay.models.locations import AppendRequest, LocationSpec, WriteRequest

logger = logging.getLogger(__name__)

MIN_ROW_INDEX = 6
APPEND_COLUMN_START = "B"
APPEND_COLUMN_END = "P"
APPEND_WIDTH = 15
USER_ENTERED = "USER_ENTERED"
INSERT_ROWS = "INSERT_ROWS"

_PLAIN_TITLE = re.compile(r"^[A-Za-z0-9_]+$")


class RemoteSheetClient(Protocol):
    async def get_values(self, spreadsheet_id: str, range: str) -> list[list[str]]: ...

    async def update_values(
        self, spreadsheet_id: str, range: str, values: list[list[str]], input_option: str = ...
    ) -> dict: ...

    async def append_values(
        self,
        spreadsheet_id: str,
        range: str,
        values: list[list[str]],
        input_option: str = ...,
        insert_option: str = ...,
    ) -> dict: ...


# --- A1 notation ---

def sheet_prefix(sheet_title: str) -> str:
    """Return the 'Title!' prefix, quoting titles that contain spaces or punctuation."""
    if _PLAIN_TITLE.match(sheet_title):
        return f"{sheet_title}!"
    escaped = sheet_title.replace("'", "''")
    return f"'{escaped}'!"


def row_range(spec: LocationSpec, row_index: int) -> str:
    """Range covering the spec's write columns on one row, e.g. 'Vinh!B10:H10'."""
    return (
        f"{sheet_prefix(spec.sheet_title)}"
        f"{spec.write_column_start}{row_index}:{spec.write_column_end}{row_index}"
    )


def append_range(spec: LocationSpec) -> str:
    return f"{sheet_prefix(spec.sheet_title)}{APPEND_COLUMN_START}:{APPEND_COLUMN_END}"


# --- Request validation ---

def _cell_values(values: list) -> list[str]:
    cells = []
    for value in values:
        # bool is an int subclass but "True" is not what a caller means for a cell
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise InvalidInputError("values must contain only strings or numbers.")
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidInputError("values must not contain NaN or Infinity.")
        cells.append(value if isinstance(value, str) else str(value))
    return cells


def parse_write_request(payload: Any, spec: LocationSpec) -> WriteRequest:
    """Validate a row write body. Checks run in order and stop at the first failure."""
    if not isinstance(payload, dict) or not isinstance(payload.get("values"), list):
        raise InvalidInputError("values must be an array.")
    row_index = payload.get("rowIndex")
    if isinstance(row_index, bool) or not isinstance(row_index, int) or row_index < MIN_ROW_INDEX:
        raise InvalidInputError(f"rowIndex must be an integer >= {MIN_ROW_INDEX}.")
    values = payload["values"]
    if len(values) != spec.expected_write_width:
        raise InvalidInputError(
            f"Expected {spec.expected_write_width} values for {spec.name}, received {len(values)}."
        )
    return WriteRequest(row_index=row_index, values=_cell_values(values))


def parse_append_request(payload: Any) -> AppendRequest:
    if not isinstance(payload, dict) or not isinstance(payload.get("values"), list):
        raise InvalidInputError("values must be an array.")
    values = payload["values"]
    if len(values) != APPEND_WIDTH:
        raise InvalidInputError(
            f"Expected {APPEND_WIDTH} values (columns {APPEND_COLUMN_START}-{APPEND_COLUMN_END}), "
            f"received {len(values)}."
        )
    return AppendRequest(values=_cell_values(values))


# --- Service ---

class RangeLocks:
    """One asyncio.Lock per (spreadsheet, range), created on first use.

    Entries drop out once no writer holds or waits on the lock.
    """

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock] = weakref.WeakValueDictionary()

    def get(self, spreadsheet_id: str, range: str) -> asyncio.Lock:
        key = (spreadsheet_id, range)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


class LocationService:
    """Reads and writes location tabs of one spreadsheet through a shared client."""

    def __init__(self, client: RemoteSheetClient, spreadsheet_id: str, serialize_writes: bool = False):
        self.client = client
        self.spreadsheet_id = spreadsheet_id
        self.locks = RangeLocks() if serialize_writes else None

    def _guard(self, range: str):
        if self.locks is None:
            return contextlib.nullcontext()
        return self.locks.get(self.spreadsheet_id, range)

    async def read(self, spec: LocationSpec) -> list[list[str]]:
        rows = await self.client.get_values(self.spreadsheet_id, spec.read_range)
        if not rows:
            raise NotFoundError(f"No data found in {spec.read_range}.")
        return rows

    async def write_row(self, spec: LocationSpec, request: WriteRequest) -> str:
        """Overwrite the spec's write columns on request.row_index. Returns the range written."""
        range = row_range(spec, request.row_index)
        async with self._guard(range):
            await self.client.update_values(self.spreadsheet_id, range, [list(request.values)], USER_ENTERED)
        logger.info("Updated %s with %d values", range, len(request.values))
        return range

    async def append_row(self, spec: LocationSpec, request: AppendRequest) -> dict:
        range = append_range(spec)
        async with self._guard(range):
            result = await self.client.append_values(
                self.spreadsheet_id, range, [list(request.values)], USER_ENTERED, INSERT_ROWS
            )
        logger.info("Appended a row to %s", range)
        return result
