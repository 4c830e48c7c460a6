"""
Exceptions and the error envelope returned to the model.
"""

import logging
from typing import Any, Optional

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

RETRIABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class GoogleSheetsError(Exception):
    """Base error for spreadsheet operations."""

    def __init__(self, message: str, code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class ValidationError(GoogleSheetsError):
    """Tool input failed validation."""


class InvalidRangeFormat(GoogleSheetsError, ValueError):
    """A range string is not a supported A1 cell or cell range."""

    def __init__(self, range_str: str):
        super().__init__(f"Invalid range format: {range_str}", details={'range': range_str})
        self.range = range_str


class SheetNotFound(GoogleSheetsError, LookupError):
    """No sheet in the spreadsheet carries the requested title."""

    def __init__(self, sheet_name: str):
        super().__init__(f'Sheet "{sheet_name}" not found', details={'sheetName': sheet_name})
        self.sheet_name = sheet_name


class NoSheetsInSpreadsheet(GoogleSheetsError, LookupError):
    """The spreadsheet has no sheets to default to."""

    def __init__(self, spreadsheet_id: Optional[str] = None):
        super().__init__("No sheets found in spreadsheet", details={'spreadsheetId': spreadsheet_id})
        self.spreadsheet_id = spreadsheet_id


def error_status(error: Any) -> Optional[int]:
    """Return the HTTP status carried by an error, if there is one."""
    if isinstance(error, HttpError):
        try:
            return int(error.resp.status)
        except (AttributeError, TypeError, ValueError):
            return None
    code = getattr(error, 'code', None)
    # bool is an int subclass
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    return None


def _error_message(error: Any) -> Optional[str]:
    if isinstance(error, HttpError):
        return error.reason or None
    if isinstance(error, GoogleSheetsError):
        return error.message or None
    if isinstance(error, BaseException):
        return str(error) or None
    return None


def is_retriable_error(error: Any) -> bool:
    """Whether the error is a transient API failure (rate limit or 5xx)."""
    return error_status(error) in RETRIABLE_STATUS_CODES


def handle_error(error: Any) -> str:
    """
    Convert an exception into the "Error: ..." text returned by a tool.

    Args:
        error: The exception raised while serving the tool call

    Returns:
        A single human-readable message starting with "Error: "
    """
    logger.error("Error in Google Sheets operation: %r", error)

    if error is None:
        return "Error: An unknown error occurred"

    status = error_status(error)
    message = _error_message(error)

    if status == 401:
        return ("Error: Authentication failed. "
                "Please check that your service account credentials are valid and not expired.")
    if status == 403:
        return ("Error: Permission denied. "
                "Please ensure the service account has access to this spreadsheet. "
                "Share the spreadsheet with the service account email address.")
    if status == 404:
        return ("Error: Spreadsheet or range not found. "
                "Please check that the spreadsheet ID and range are correct. "
                "The spreadsheet ID can be found in the URL: "
                "https://docs.google.com/spreadsheets/d/[SPREADSHEET_ID]/edit")
    if status == 429:
        return "Error: Rate limit exceeded. Too many requests. Please wait a moment and try again."
    if status == 400:
        return f"Error: Invalid request. {message or 'Please check your input parameters.'}"
    if is_retriable_error(error):
        return (f"Error: {message or 'The Google Sheets service is temporarily unavailable.'} "
                "This is usually temporary. Please try again in a few moments.")

    if message:
        return f"Error: {message}"
    return "Error: An unexpected error occurred"
