from unittest.mock import MagicMock

import pytest


def make_sheets_service(sheets=None):
    """A Sheets v4 resource mock whose spreadsheets().get() returns the given sheet properties."""
    service = MagicMock()
    spreadsheets = service.spreadsheets.return_value
    spreadsheets.get.return_value.execute.return_value = {
        'sheets': [{'properties': properties} for properties in (sheets or [])]
    }
    spreadsheets.batchUpdate.return_value.execute.return_value = {
        'spreadsheetId': 'mock-spreadsheet',
        'replies': [],
    }
    return service


@pytest.fixture
def sheets_service():
    return make_sheets_service([
        {'title': 'Sheet1', 'sheetId': 0},
        {'title': 'My Sheet', 'sheetId': 42},
        {'title': "Tom's Data", 'sheetId': 7},
    ])
