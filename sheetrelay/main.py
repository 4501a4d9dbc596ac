import logging
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from sheetrelay.auth import get_service_account_credentials
from sheetrelay.config import Settings, get_settings
from sheetrelay.exceptions import ConfigurationError, InvalidInputError, NotFoundError, UpstreamError
from sheetrelay.locations import DEFAULT_LOCATIONS, load_locations, resolve_default, validate_locations
from sheetrelay.models.locations import LocationInfo, LocationSpec, ServiceStatus
from sheetrelay.routers.locations import SheetEndpointRegistry
from sheetrelay.services.locations import LocationService, RemoteSheetClient
from sheetrelay.services.sheets import SheetsClient

logger = logging.getLogger(__name__)


# --- Request logging middleware ---

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


# --- Exception handlers ---

def _error(status_code: int, error_code: str, message: str, details: dict | None = None) -> JSONResponse:
    content = {"error_code": error_code, "message": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def install_exception_handlers(api: FastAPI, expose_details: bool = False) -> None:
    @api.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        return _error(400, "invalid_input", str(exc))

    @api.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = {"errors": jsonable_encoder(exc.errors())} if expose_details else None
        return _error(400, "invalid_input", "Request body is missing or malformed.", details)

    @api.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(404, "not_found", "No data found.")

    @api.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError):
        return _error(500, "upstream_failure", str(exc), exc.details() if expose_details else None)

    @api.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "internal_error", "Internal server error.")


# --- App factory ---

def _location_table(settings: Settings) -> list[LocationSpec]:
    if settings.locations_file:
        return load_locations(settings.locations_file)
    return list(DEFAULT_LOCATIONS)


def create_app(
    settings: Settings | None = None,
    client: RemoteSheetClient | None = None,
    locations: list[LocationSpec] | None = None,
) -> FastAPI:
    """Build the API. Raises ConfigurationError before any route exists if setup is incomplete."""
    settings = settings or get_settings()
    if not settings.google_sheet_id:
        raise ConfigurationError("Set GOOGLE_SHEET_ID before starting the server.")

    specs = list(locations) if locations is not None else _location_table(settings)
    validate_locations(specs)
    default = resolve_default(specs, settings.default_location)

    if client is None:
        credentials = get_service_account_credentials(settings)
        client = SheetsClient(credentials, timeout=settings.request_timeout)
    service = LocationService(client, settings.google_sheet_id, serialize_writes=settings.serialize_writes)

    api = FastAPI(
        title="Sheetrelay",
        version="0.1.0",
        description="Read and write location tabs of a Google Sheets spreadsheet.",
        docs_url="/api-docs",
    )
    api.add_middleware(RequestLoggingMiddleware)
    api.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_exception_handlers(api, expose_details=settings.expose_error_details)

    registry = SheetEndpointRegistry(service)
    api.include_router(registry.register(specs, default=default))

    @api.get("/api/status", tags=["status"])
    def api_status() -> ServiceStatus:
        return ServiceStatus(
            spreadsheet_id=settings.google_sheet_id,
            default_location=default.name if default else None,
            locations=[
                LocationInfo(
                    name=spec.name,
                    slug=spec.slug,
                    read_range=spec.read_range,
                    write_columns=spec.write_columns,
                    expected_write_width=spec.expected_write_width,
                )
                for spec in specs
            ],
        )

    logger.info("Serving %d locations from spreadsheet %s", len(specs), settings.google_sheet_id)
    return api


def run():
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        app = create_app(settings)
    except ConfigurationError as e:
        logger.error("Startup aborted: %s", e)
        raise SystemExit(1) from e
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
