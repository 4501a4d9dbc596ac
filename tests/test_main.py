import json

import pytest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from sheetrelay import main
from sheetrelay.exceptions import ConfigurationError
from sheetrelay.locations import DEFAULT_LOCATIONS
from tests.conftest import SHEET_ID, make_settings


class TestCreateApp:
    def test_missing_sheet_id(self, mock_client):
        with pytest.raises(ConfigurationError, match="GOOGLE_SHEET_ID"):
            main.create_app(make_settings(GOOGLE_SHEET_ID=""), client=mock_client)

    def test_missing_credentials_fails_before_routes(self, mocker):
        registry = mocker.patch("sheetrelay.main.SheetEndpointRegistry")
        with pytest.raises(ConfigurationError):
            main.create_app(make_settings())
        registry.assert_not_called()

    def test_builds_sheets_client_from_credentials(self, mocker):
        creds = MagicMock()
        mocker.patch("sheetrelay.main.get_service_account_credentials", return_value=creds)
        sheets_client = mocker.patch("sheetrelay.main.SheetsClient")
        main.create_app(make_settings(request_timeout=12))
        sheets_client.assert_called_once_with(creds, timeout=12)

    def test_unknown_default_location(self, mock_client, locations):
        with pytest.raises(ConfigurationError, match="Default location"):
            main.create_app(make_settings(default_location="hanoi"), client=mock_client, locations=locations)

    def test_default_table_registers_every_location(self, mock_client):
        paths = set(main.create_app(make_settings(), client=mock_client).openapi()["paths"])
        for spec in DEFAULT_LOCATIONS:
            assert f"/{spec.slug}" in paths
            assert f"/{spec.slug}/write" in paths
            assert f"/{spec.slug}/add" in paths
        assert {"/data", "/write", "/api/status"} <= paths

    def test_locations_file(self, tmp_path, mock_client):
        path = tmp_path / "locations.json"
        path.write_text(json.dumps([{
            "name": "GiapBat",
            "sheet_title": "GiapBat",
            "read_range": "GiapBat!A5:P",
            "write_column_start": "B",
            "write_column_end": "C",
            "expected_write_width": 2,
        }]))
        settings = make_settings(locations_file=str(path), default_location="")
        resp = TestClient(main.create_app(settings, client=mock_client)).get("/api/status")
        assert [loc["slug"] for loc in resp.json()["locations"]] == ["giapbat"]

    def test_no_aliases_without_default(self, mock_client, locations):
        app = main.create_app(make_settings(default_location=""), client=mock_client, locations=locations)
        assert TestClient(app).get("/data").status_code == 404


class TestStatus:
    def test_lists_locations(self, api_client):
        resp = api_client.get("/api/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["spreadsheet_id"] == SHEET_ID
        assert data["default_location"] == "sum"
        vinh = next(loc for loc in data["locations"] if loc["name"] == "Vinh")
        assert vinh == {
            "name": "Vinh",
            "slug": "vinh",
            "read_range": "Vinh!A5:P",
            "write_columns": "B:H",
            "expected_write_width": 7,
        }


class TestDocs:
    def test_api_docs_served(self, api_client):
        assert api_client.get("/api-docs").status_code == 200

    def test_openapi_lists_location_routes(self, api_client):
        paths = api_client.get("/openapi.json").json()["paths"]
        assert "/trangbom/write" in paths
        assert "post" in paths["/vinh/add"]


class TestCors:
    def test_allows_any_origin_by_default(self, api_client):
        resp = api_client.get("/trangbom", headers={"Origin": "https://example.com"})
        assert resp.headers["access-control-allow-origin"] == "*"


class TestRun:
    def test_config_error_exits(self, mocker):
        mocker.patch("sheetrelay.main.get_settings", return_value=make_settings(GOOGLE_SHEET_ID=""))
        uvicorn_run = mocker.patch("sheetrelay.main.uvicorn.run")
        with pytest.raises(SystemExit) as exc_info:
            main.run()
        assert exc_info.value.code == 1
        uvicorn_run.assert_not_called()

    def test_starts_uvicorn(self, mocker, mock_client):
        settings = make_settings(port=8123)
        mocker.patch("sheetrelay.main.get_settings", return_value=settings)
        app = MagicMock()
        mocker.patch("sheetrelay.main.create_app", return_value=app)
        uvicorn_run = mocker.patch("sheetrelay.main.uvicorn.run")
        main.run()
        uvicorn_run.assert_called_once_with(app, host="127.0.0.1", port=8123, log_level="info")
