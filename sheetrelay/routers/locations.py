import logging
from typing import Any

from fastapi import APIRouter, Body

from sheetrelay.models.common import ErrorResponse, MessageResponse
from sheetrelay.models.locations import AppendResponse, LocationData, LocationSpec
from sheetrelay.services.locations import (
    APPEND_WIDTH,
    MIN_ROW_INDEX,
    LocationService,
    parse_append_request,
    parse_write_request,
)

logger = logging.getLogger(__name__)

_READ_ERRORS = {404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
_WRITE_ERRORS = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


class SheetEndpointRegistry:
    """Registers read, row-write and append routes for each location on one router.

    Every route goes through the same LocationService, so validation and error
    translation are identical across locations.
    """

    def __init__(self, service: LocationService, router: APIRouter | None = None):
        self.service = service
        self.router = router or APIRouter(tags=["locations"])

    def register(self, specs: list[LocationSpec], default: LocationSpec | None = None) -> APIRouter:
        for spec in specs:
            self.register_read_route(spec)
            self.register_row_write_route(spec)
            self.register_append_route(spec)
            logger.info("Registered /%s for sheet %s", spec.slug, spec.sheet_title)
        if default is not None:
            self.register_read_route(default, path="/data")
            self.register_row_write_route(default, path="/write")
            logger.info("Registered /data and /write for sheet %s", default.sheet_title)
        return self.router

    def register_read_route(self, spec: LocationSpec, path: str | None = None) -> None:
        path = path or f"/{spec.slug}"

        async def read_location() -> LocationData:
            rows = await self.service.read(spec)
            return LocationData(data=rows)

        self.router.add_api_route(
            path,
            read_location,
            methods=["GET"],
            name=f"read_{path.strip('/').replace('/', '_')}",
            summary=f"Read {spec.read_range}",
            responses=_READ_ERRORS,
        )

    def register_row_write_route(self, spec: LocationSpec, path: str | None = None) -> None:
        path = path or f"/{spec.slug}/write"
        example = {"rowIndex": MIN_ROW_INDEX, "values": [""] * spec.expected_write_width}

        async def write_row(payload: Any = Body(..., examples=[example])) -> MessageResponse:
            request = parse_write_request(payload, spec)
            await self.service.write_row(spec, request)
            return MessageResponse(message=f"Updated row {request.row_index} in {spec.sheet_title}.")

        self.router.add_api_route(
            path,
            write_row,
            methods=["POST"],
            name=f"write_{path.strip('/').replace('/', '_')}",
            summary=f"Overwrite columns {spec.write_columns} of one row in {spec.sheet_title}",
            responses=_WRITE_ERRORS,
        )

    def register_append_route(self, spec: LocationSpec, path: str | None = None) -> None:
        path = path or f"/{spec.slug}/add"
        example = {"values": [""] * APPEND_WIDTH}

        async def append_row(payload: Any = Body(..., examples=[example])) -> AppendResponse:
            request = parse_append_request(payload)
            result = await self.service.append_row(spec, request)
            return AppendResponse(message=f"Appended a row to {spec.sheet_title}.", details=result)

        self.router.add_api_route(
            path,
            append_row,
            methods=["POST"],
            name=f"append_{path.strip('/').replace('/', '_')}",
            summary=f"Append a row (columns B-P) to {spec.sheet_title}",
            responses=_WRITE_ERRORS,
        )
