import json
import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from sheetrelay.exceptions import ConfigurationError
from sheetrelay.models.locations import LocationSpec, column_number

logger = logging.getLogger(__name__)

RESERVED_SLUGS = {"data", "write", "api", "api-docs", "openapi.json", "docs", "redoc"}


def _branch(title: str) -> LocationSpec:
    """Standard branch tab: rows from 5 down, seven editable columns B-H."""
    return LocationSpec(
        name=title,
        sheet_title=title,
        read_range=f"{title}!A5:P",
        write_column_start="B",
        write_column_end="H",
        expected_write_width=7,
    )


DEFAULT_LOCATIONS: tuple[LocationSpec, ...] = (
    LocationSpec(
        name="sum",
        sheet_title="sum",
        read_range="sum!A5:P8",
        write_column_start="E",
        write_column_end="F",
        expected_write_width=2,
    ),
    _branch("TrangBom"),
    _branch("SongThan"),
    _branch("DieuTri"),
    _branch("DaNang"),
    _branch("KimLien"),
    _branch("DongAnh"),
    _branch("GiapBat"),
    _branch("Vinh"),
    _branch("QuangNgai"),
    _branch("NhaTrang"),
    _branch("BinhThuan"),
)

_spec_list = TypeAdapter(list[LocationSpec])


def load_locations(path: Path) -> list[LocationSpec]:
    """Load a location table from a JSON list of objects (camelCase or snake_case keys)."""
    if not path.exists():
        raise ConfigurationError(f"Locations file not found at {path}.")
    try:
        return _spec_list.validate_json(path.read_bytes())
    except ValidationError as e:
        raise ConfigurationError(f"Invalid locations file {path}: {e}") from e


def _read_range_title(read_range: str) -> str:
    title, sep, _ = read_range.rpartition("!")
    if not sep:
        return ""
    if len(title) >= 2 and title[0] == title[-1] == "'":
        title = title[1:-1].replace("''", "'")
    return title


def validate_locations(specs: list[LocationSpec]) -> None:
    """Check the table as a whole before any route is registered."""
    if not specs:
        raise ConfigurationError("No locations configured.")

    seen: dict[str, LocationSpec] = {}
    for spec in specs:
        if spec.slug in RESERVED_SLUGS:
            raise ConfigurationError(f"Location name '{spec.name}' collides with a built-in route.")
        if spec.slug in seen:
            raise ConfigurationError(f"Duplicate location name '{spec.name}'.")
        seen[spec.slug] = spec

        if _read_range_title(spec.read_range) != spec.sheet_title:
            raise ConfigurationError(
                f"{spec.name}: read range {spec.read_range} does not target sheet '{spec.sheet_title}'."
            )
        if spec.write_span <= 0:
            raise ConfigurationError(f"{spec.name}: write columns {spec.write_columns} are reversed.")
        if spec.write_span != spec.expected_write_width:
            raise ConfigurationError(
                f"{spec.name}: write columns {spec.write_columns} span {spec.write_span} cells "
                f"but expected_write_width is {spec.expected_write_width}."
            )

    by_title: dict[str, list[LocationSpec]] = {}
    for spec in specs:
        by_title.setdefault(spec.sheet_title, []).append(spec)
    for title, group in by_title.items():
        bands = sorted(
            (column_number(s.write_column_start), column_number(s.write_column_end), s.name) for s in group
        )
        for (_, prev_end, prev_name), (start, _, name) in zip(bands, bands[1:]):
            if start <= prev_end:
                raise ConfigurationError(f"Write columns of {prev_name} and {name} overlap on sheet '{title}'.")


def resolve_default(specs: list[LocationSpec], name: str) -> LocationSpec | None:
    """Find the location served by /data and /write. An empty name disables the aliases."""
    if not name:
        return None
    for spec in specs:
        if spec.slug == name.lower():
            return spec
    raise ConfigurationError(f"Default location '{name}' is not in the location table.")
