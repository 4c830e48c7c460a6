"""
Pre-flight checks for tool arguments.

The range grammar here is broader than the one in ranges.parse_range: it
accepts full-column and full-row forms because these ranges are handed to the
values API verbatim rather than converted to grid coordinates.
"""

import re
from typing import Any, List

from .errors import ValidationError
from .ranges import extract_sheet_name

_SPREADSHEET_ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')

_CELL_RANGE_PATTERNS = [
    re.compile(r'^[A-Z]+[0-9]+(?::[A-Z]+[0-9]+)?$', re.IGNORECASE),  # A1 or A1:B10
    re.compile(r'^[A-Z]+:[A-Z]+$', re.IGNORECASE),  # A:A or A:Z
    re.compile(r'^[0-9]+:[0-9]+$'),  # 1:1 or 1:100
    re.compile(r'^[A-Z]+[0-9]+:[A-Z]+$', re.IGNORECASE),  # A1:B
    re.compile(r'^[A-Z]+:[A-Z]+[0-9]+$', re.IGNORECASE),  # A:B10
]

_BOUNDED_ROWS_PATTERN = re.compile(r'([A-Z]+)(\d+):([A-Z]+)(\d+)$', re.IGNORECASE)

RANGE_FORMAT_HINT = 'Use A1 notation (e.g., "Sheet1!A1:B10")'


def validate_spreadsheet_id(spreadsheet_id: str) -> bool:
    return bool(_SPREADSHEET_ID_PATTERN.fullmatch(spreadsheet_id or ''))


def _is_valid_cell_range(cell_range: str) -> bool:
    return any(pattern.fullmatch(cell_range) for pattern in _CELL_RANGE_PATTERNS)


def validate_range(range_str: str) -> bool:
    """Check that a range is A1 notation, optionally prefixed by a sheet name."""
    sheet_range = extract_sheet_name(range_str or '')
    if sheet_range.sheet_name is not None:
        if not sheet_range.sheet_name.strip():
            return False
        if '!' in sheet_range.range:
            return False
    return bool(sheet_range.range) and _is_valid_cell_range(sheet_range.range)


def require_string(value: Any, field_name: str) -> str:
    if not value or not isinstance(value, str):
        raise ValidationError(f"{field_name} is required and must be a string")
    return value


def require_spreadsheet_id(value: Any, field_name: str = 'spreadsheet_id') -> str:
    require_string(value, field_name)
    if not validate_spreadsheet_id(value):
        raise ValidationError(f"Invalid {field_name.replace('_', ' ')} format")
    return value


def require_range(value: Any) -> str:
    require_string(value, 'range')
    if not validate_range(value):
        raise ValidationError(f"Invalid range format: {value}. {RANGE_FORMAT_HINT}")
    return value


def require_non_empty_list(value: Any, field_name: str) -> List[Any]:
    if not value or not isinstance(value, list):
        raise ValidationError(f"{field_name} is required and must be a non-empty array")
    return value


def check_range_row_count(range_str: str, values: List[List[Any]]) -> None:
    """
    Make sure a bounded range like "A1:C3" gets exactly as many rows as it spans.

    Ranges without an end row (e.g. "Sheet1!A1") expand to fit the data and
    are not checked.

    Raises:
        ValidationError: if the row counts differ
    """
    match = _BOUNDED_ROWS_PATTERN.search(range_str)
    if not match:
        return

    expected_rows = int(match.group(4)) - int(match.group(2)) + 1
    actual_rows = len(values)
    if expected_rows != actual_rows:
        flexible_range = range_str.split(':')[0]
        raise ValidationError(
            f'Range mismatch: The range "{range_str}" expects exactly {expected_rows} rows, '
            f'but you provided {actual_rows} rows. To fix this, either:\n'
            f'1. Provide exactly {expected_rows} rows of data\n'
            f'2. Use a flexible range (e.g., "{flexible_range}") to auto-expand based on your data'
        )
