import re

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

COLUMN_PATTERN = re.compile(r"^[A-Z]{1,3}$")


def column_number(letters: str) -> int:
    """Convert a column label to its 1-based index: A -> 1, P -> 16, AA -> 27."""
    number = 0
    for char in letters:
        number = number * 26 + (ord(char) - ord("A") + 1)
    return number


class LocationSpec(BaseModel):
    """One spreadsheet tab served by the API, with its read range and write column band."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    name: str = Field(min_length=1)
    sheet_title: str = Field(min_length=1)
    read_range: str
    write_column_start: str
    write_column_end: str
    expected_write_width: int = Field(gt=0)

    @field_validator("name")
    @classmethod
    def _name_is_path_safe(cls, value: str) -> str:
        if not re.fullmatch(r"[A-Za-z0-9_-]+", value):
            raise ValueError(f"location name '{value}' may only contain letters, digits, '_' and '-'")
        return value

    @field_validator("write_column_start", "write_column_end")
    @classmethod
    def _column_letters(cls, value: str) -> str:
        value = value.upper()
        if not COLUMN_PATTERN.match(value):
            raise ValueError(f"'{value}' is not a column label")
        return value

    @property
    def slug(self) -> str:
        return self.name.lower()

    @property
    def write_columns(self) -> str:
        return f"{self.write_column_start}:{self.write_column_end}"

    @property
    def write_span(self) -> int:
        return column_number(self.write_column_end) - column_number(self.write_column_start) + 1


class WriteRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    row_index: int = Field(alias="rowIndex", ge=6)
    values: list[str]


class AppendRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    values: list[str] = Field(min_length=15, max_length=15)


class LocationData(BaseModel):
    data: list[list[str]]


class AppendResponse(BaseModel):
    message: str
    details: dict


class LocationInfo(BaseModel):
    name: str
    slug: str
    read_range: str
    write_columns: str
    expected_write_width: int


class ServiceStatus(BaseModel):
    spreadsheet_id: str
    default_location: str | None
    locations: list[LocationInfo]
