import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from gspread.utils import Dimension

from sheets_proxy.config import REQUESTED_MAJOR_DIMENSION
from sheets_proxy.services.errors import NoDataError, SheetDataError

app_logger = logging.getLogger(__name__)

RowObject = Dict[str, Optional[Any]]


# Define dataclasses to represent the batchGet response
@dataclass
class ValueRange:
    """Represents one requested range's data block as returned by values:batchGet."""
    range: str
    major_dimension: str = field(default=REQUESTED_MAJOR_DIMENSION)
    values: Optional[List[List[Any]]] = field(default=None)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'ValueRange':
        """Creates a ValueRange instance from a valueRanges entry."""
        if not isinstance(data, dict) or not isinstance(data.get("range"), str):
            raise SheetDataError(f"Malformed value range in Google Sheets response: {data!r}")
        return ValueRange(
            range=data["range"],
            major_dimension=data.get("majorDimension") or REQUESTED_MAJOR_DIMENSION,
            values=data.get("values"),
        )

    @property
    def sheet_name(self) -> str:
        return sheet_name_from_range(self.range)


@dataclass
class BatchGetResult:
    """Represents the raw values:batchGet response body."""
    spreadsheet_id: Optional[str] = field(default=None)
    value_ranges: List[ValueRange] = field(default_factory=list)

    @staticmethod
    def from_dict(data: Any) -> 'BatchGetResult':
        """Creates a BatchGetResult from parsed JSON. Raises SheetDataError on an unexpected shape."""
        if not isinstance(data, dict):
            raise SheetDataError("Google Sheets response is not a JSON object")
        value_ranges = data.get("valueRanges")
        if not isinstance(value_ranges, list):
            raise SheetDataError("Google Sheets response has no valueRanges")
        return BatchGetResult(
            spreadsheet_id=data.get("spreadsheetId"),
            value_ranges=[ValueRange.from_dict(item) for item in value_ranges],
        )


# ─── Helper Functions ────────────────────────────────────────────────────────────

def sheet_name_from_range(range_name: str) -> str:
    """'Sheet1!A1:C10' -> 'Sheet1'. A range without '!' is its own sheet name."""
    return range_name.split("!", 1)[0]


def rows_to_objects(rows: List[List[Any]]) -> List[RowObject]:
    """
    Treats the first row as column headers and zips every following row onto them.
    Cells missing at the end of a short row become None.
    """
    headers = rows[0]
    objects: List[RowObject] = []
    for row in rows[1:]:
        objects.append({
            header: row[index] if index < len(row) else None
            for index, header in enumerate(headers)
        })
    return objects


def columns_to_rows(columns: List[List[Any]]) -> List[List[Any]]:
    """
    Transposes column-major values into row-major ones.
    A column shorter than the longest one is padded with None; an empty
    column gets an empty header.
    """
    depth = max(len(column) for column in columns)
    rows: List[List[Any]] = []
    for index in range(depth):
        padding = "" if index == 0 else None
        rows.append([column[index] if index < len(column) else padding for column in columns])
    return rows


def value_range_to_row_objects(value_range: ValueRange) -> List[RowObject]:
    """
    Converts one value range into row objects keyed by header.
    Raises NoDataError for an absent or empty values array and SheetDataError
    for an unknown major dimension.
    """
    if not value_range.values:
        app_logger.warning(f"No data returned for range '{value_range.range}'.")
        raise NoDataError(f"No data available for range '{value_range.range}'")

    if value_range.major_dimension == Dimension.rows:
        return rows_to_objects(value_range.values)

    if value_range.major_dimension == Dimension.cols:
        rows = columns_to_rows(value_range.values)
        if not rows:
            app_logger.warning(f"Only empty columns returned for range '{value_range.range}'.")
            raise NoDataError(f"No data available for range '{value_range.range}'")
        app_logger.debug(f"Transposed {len(value_range.values)} columns for range '{value_range.range}'.")
        return rows_to_objects(rows)

    msg = f"Unsupported majorDimension '{value_range.major_dimension}' for range '{value_range.range}'"
    app_logger.error(msg)
    raise SheetDataError(msg)


def value_ranges_to_object(result: BatchGetResult) -> Dict[str, List[RowObject]]:
    """Builds the response body: sheet name -> row objects, in upstream order."""
    body: Dict[str, List[RowObject]] = {}
    for value_range in result.value_ranges:
        body[value_range.sheet_name] = value_range_to_row_objects(value_range)
    return body
