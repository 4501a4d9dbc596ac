import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from sheetrelay.config import Settings
from sheetrelay.models.locations import LocationSpec


# --- Canned API responses ---

SHEET_ID = "sheet123"

TRANGBOM_ROWS = [
    ["STT", "Ngay", "Ca", "Bat dau", "Ket thuc"],
    ["1", "2025-03-31", "Sang", "2025-03-31T12:00", "2025-03-31T14:00"],
    ["2", "2025-03-31", "Chieu", "2025-03-31T14:00", "2025-03-31T16:00"],
]

APPEND_API_RESPONSE = {
    "spreadsheetId": SHEET_ID,
    "tableRange": "TrangBom!B5:P40",
    "updates": {
        "spreadsheetId": SHEET_ID,
        "updatedRange": "TrangBom!B41:P41",
        "updatedRows": 1,
        "updatedColumns": 15,
        "updatedCells": 15,
    },
}

UPDATE_API_RESPONSE = {
    "spreadsheetId": SHEET_ID,
    "updatedRange": "TrangBom!E6:F6",
    "updatedRows": 1,
    "updatedColumns": 2,
    "updatedCells": 2,
}

TRANGBOM = LocationSpec(
    name="TrangBom",
    sheet_title="TrangBom",
    read_range="TrangBom!A5:P",
    write_column_start="E",
    write_column_end="F",
    expected_write_width=2,
)

VINH = LocationSpec(
    name="Vinh",
    sheet_title="Vinh",
    read_range="Vinh!A5:P",
    write_column_start="B",
    write_column_end="H",
    expected_write_width=7,
)

SUM = LocationSpec(
    name="sum",
    sheet_title="sum",
    read_range="sum!A5:P8",
    write_column_start="E",
    write_column_end="F",
    expected_write_width=2,
)


def make_settings(**overrides) -> Settings:
    values = {"GOOGLE_SHEET_ID": SHEET_ID}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def locations():
    return [SUM, TRANGBOM, VINH]


@pytest.fixture
def mock_client():
    """Stand-in for SheetsClient with awaitable values calls."""
    client = MagicMock()
    client.get_values = AsyncMock(return_value=TRANGBOM_ROWS)
    client.update_values = AsyncMock(return_value=UPDATE_API_RESPONSE)
    client.append_values = AsyncMock(return_value=APPEND_API_RESPONSE)
    return client


@pytest.fixture
def api_client(settings, mock_client, locations):
    """FastAPI TestClient for router tests."""
    from sheetrelay.main import create_app
    return TestClient(create_app(settings, client=mock_client, locations=locations))
