"""
A1 notation helpers: column conversion, range parsing, sheet-name
extraction and sheet ID resolution.
"""

import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from .errors import InvalidRangeFormat, NoSheetsInSpreadsheet, SheetNotFound

# Uppercase only, row numbers start at 1
_CELL_RANGE_PATTERN = re.compile(r'^([A-Z]+)([1-9][0-9]*)(?::([A-Z]+)([1-9][0-9]*))?$')
_BARE_SHEET_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_]+$')


@dataclass(frozen=True)
class GridRange:
    """Zero-based, end-exclusive rectangle on a sheet."""
    sheet_id: Optional[int]
    start_row_index: int
    end_row_index: int
    start_column_index: int
    end_column_index: int

    def to_dict(self) -> Dict[str, Any]:
        """Return the Sheets API GridRange representation."""
        grid_range = {
            'startRowIndex': self.start_row_index,
            'endRowIndex': self.end_row_index,
            'startColumnIndex': self.start_column_index,
            'endColumnIndex': self.end_column_index,
        }
        if self.sheet_id is not None:
            grid_range['sheetId'] = self.sheet_id
        return grid_range


@dataclass(frozen=True)
class SheetRange:
    """A range string split into its sheet qualifier and the bare cell range."""
    range: str
    sheet_name: Optional[str] = None


def column_to_index(letters: str) -> int:
    """Convert column letters to a 0-based index ('A'=0, 'Z'=25, 'AA'=26)."""
    result = 0
    for letter in letters:
        result = result * 26 + (ord(letter) - ord('A') + 1)
    return result - 1


def index_to_column(index: int) -> str:
    """Convert 0-based column index to A1 notation letter (0='A', 25='Z', 26='AA', etc.)"""
    result = ""
    while index >= 0:
        result = chr(index % 26 + ord('A')) + result
        index = index // 26 - 1
    return result


def _find_qualifier_separators(range_str: str):
    """
    Yield positions of every '!' that sits outside a quoted sheet name.

    Only a leading quote opens a quoted name. Inside it '' is a literal
    apostrophe and the name closes at the first lone quote followed by '!'.
    Apostrophes in a bare name are ordinary characters.
    """
    position = 0
    if range_str.startswith("'"):
        position = 1
        while position < len(range_str):
            if range_str.startswith("''", position):
                position += 2
            elif range_str.startswith("'!", position):
                position += 1
                break
            else:
                position += 1
        else:
            # unterminated quoted name
            return

    for i in range(position, len(range_str)):
        if range_str[i] == '!':
            yield i


def extract_sheet_name(range_str: str) -> SheetRange:
    """
    Split a possibly sheet-qualified range into sheet name and cell range.

    The sheet name is returned exactly as written, including surrounding
    quotes and doubled inner quotes. Whatever follows the separator is
    returned verbatim, even when it is empty.

    Args:
        range_str: Range such as "Sheet1!A1:B10", "'My Sheet'!A1" or "A1:B10"

    Returns:
        SheetRange with sheet_name set to None when there is no qualifier
    """
    for position in _find_qualifier_separators(range_str):
        return SheetRange(range=range_str[position + 1:], sheet_name=range_str[:position])
    return SheetRange(range=range_str)


def unquote_sheet_name(sheet_name: str) -> str:
    """Turn "'Tom''s Data'" into "Tom's Data"; bare names are returned as-is."""
    if len(sheet_name) >= 2 and sheet_name.startswith("'") and sheet_name.endswith("'"):
        return sheet_name[1:-1].replace("''", "'")
    return sheet_name


def quote_sheet_name(title: str) -> str:
    """Quote a sheet title for use in A1 notation when it needs it."""
    if _BARE_SHEET_NAME_PATTERN.fullmatch(title):
        return title
    return "'" + title.replace("'", "''") + "'"


def parse_range(range_str: str, sheet_id: Optional[int] = None) -> GridRange:
    """
    Parse an A1 cell or cell range into a GridRange.

    Only "A1" and "A1:B10" forms are understood; full-column and full-row
    ranges such as "A:A" or "1:1" are rejected. A sheet qualifier, if any,
    is dropped and never resolved here.

    Args:
        range_str: A1 notation, optionally prefixed with "Sheet!"
        sheet_id: Sheet ID to tag the result with. None means unresolved.

    Returns:
        GridRange with 0-based start and exclusive end indices

    Raises:
        InvalidRangeFormat: if the string is not a supported A1 range
    """
    cell_range = range_str
    separators = list(_find_qualifier_separators(range_str))
    if separators:
        cell_range = range_str[separators[-1] + 1:]

    match = _CELL_RANGE_PATTERN.fullmatch(cell_range)
    if not match:
        raise InvalidRangeFormat(range_str)

    start_col, start_row, end_col, end_row = match.groups()
    if end_col is None:
        end_col, end_row = start_col, start_row

    grid_range = GridRange(
        sheet_id=sheet_id,
        start_row_index=int(start_row) - 1,
        end_row_index=int(end_row),
        start_column_index=column_to_index(start_col),
        end_column_index=column_to_index(end_col) + 1,
    )

    if (grid_range.start_row_index >= grid_range.end_row_index
            or grid_range.start_column_index >= grid_range.end_column_index):
        raise InvalidRangeFormat(range_str)

    return grid_range


def get_sheet_id(sheets_service, spreadsheet_id: str, sheet_name: Optional[str] = None) -> int:
    """
    Resolve a sheet title to its numeric sheet ID.

    Metadata is fetched on every call so renamed or deleted sheets are
    never served from a stale copy.

    Args:
        sheets_service: Sheets v4 resource from googleapiclient
        spreadsheet_id: The ID of the spreadsheet
        sheet_name: Exact, case-sensitive sheet title. If omitted, the first sheet is used.

    Returns:
        The sheetId of the matching sheet

    Raises:
        SheetNotFound: if no sheet has the requested title
        NoSheetsInSpreadsheet: if no title was given and the spreadsheet has no sheets
    """
    spreadsheet = sheets_service.spreadsheets().get(
        spreadsheetId=spreadsheet_id,
        fields='sheets.properties'
    ).execute()
    sheets = spreadsheet.get('sheets') or []

    if sheet_name is not None:
        for sheet in sheets:
            properties = sheet.get('properties', {})
            if properties.get('title') == sheet_name:
                return properties['sheetId']
        raise SheetNotFound(sheet_name)

    if not sheets:
        raise NoSheetsInSpreadsheet(spreadsheet_id)
    return sheets[0]['properties']['sheetId']


def resolve_grid_range(sheets_service, spreadsheet_id: str, range_str: str) -> GridRange:
    """
    Turn "'My Sheet'!A1:B10" into a GridRange on the resolved sheet.

    The cell range is parsed before any metadata is fetched, so malformed
    input fails without a round trip.
    """
    sheet_range = extract_sheet_name(range_str)
    if sheet_range.sheet_name is not None and '!' in sheet_range.range:
        raise InvalidRangeFormat(range_str)
    try:
        grid_range = parse_range(sheet_range.range)
    except InvalidRangeFormat:
        raise InvalidRangeFormat(range_str) from None

    sheet_name = None
    if sheet_range.sheet_name is not None:
        sheet_name = unquote_sheet_name(sheet_range.sheet_name)
    sheet_id = get_sheet_id(sheets_service, spreadsheet_id, sheet_name)
    return replace(grid_range, sheet_id=sheet_id)


def grid_range_to_a1(grid_range: Dict[str, Any], sheet_title: Optional[str] = None) -> str:
    """Convert a GridRange dict to A1 notation like 'Sheet1!A1:C10'."""
    start_col = grid_range.get('startColumnIndex', 0)
    end_col = grid_range.get('endColumnIndex')
    start_row = grid_range.get('startRowIndex', 0)
    end_row = grid_range.get('endRowIndex')

    prefix = f"{quote_sheet_name(sheet_title)}!" if sheet_title else ""
    start = f"{index_to_column(start_col)}{start_row + 1}"
    if end_col is not None and end_row is not None:
        end = f"{index_to_column(end_col - 1)}{end_row}"
        if end != start:
            return f"{prefix}{start}:{end}"
    return f"{prefix}{start}"
