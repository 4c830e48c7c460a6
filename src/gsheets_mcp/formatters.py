"""
Text envelopes returned by the tools.
"""

import json
from typing import Any, Dict, List, Optional


def format_success_response(data: Any, message: Optional[str] = None) -> str:
    content = json.dumps(data, indent=2)
    if message:
        return f"{message}\n\n{content}"
    return content


def format_tool_response(message: str, data: Any = None) -> str:
    if data:
        return format_success_response(data, message)
    return message


def format_values_response(values: List[List[Any]], range: Optional[str] = None) -> str:
    """Describe a block of cell values with its dimensions."""
    if not values:
        return f"No data found in range: {range}" if range else "No data found"

    return format_success_response({
        'range': range,
        'rowCount': len(values),
        'columnCount': len(values[0]) if values[0] else 0,
        'values': values,
    })


def format_batch_values_response(value_ranges: List[Dict[str, Any]]) -> str:
    formatted = []
    for value_range in value_ranges:
        values = value_range.get('values') or []
        formatted.append({
            'range': value_range.get('range'),
            'rowCount': len(values),
            'columnCount': len(values[0]) if values and values[0] else 0,
            'values': values,
        })

    return format_success_response({
        'totalRanges': len(value_ranges),
        'valueRanges': formatted,
    })


def format_spreadsheet_metadata(metadata: Dict[str, Any]) -> str:
    """Summarise spreadsheet properties and the sheets it contains."""
    properties = metadata.get('properties', {})
    sheets = []
    for sheet in metadata.get('sheets', []):
        sheet_properties = sheet.get('properties', {})
        grid_properties = sheet_properties.get('gridProperties', {})
        sheets.append({
            'sheetId': sheet_properties.get('sheetId'),
            'title': sheet_properties.get('title'),
            'index': sheet_properties.get('index'),
            'rowCount': grid_properties.get('rowCount'),
            'columnCount': grid_properties.get('columnCount'),
            'tabColor': sheet_properties.get('tabColor'),
            'charts': [chart.get('chartId') for chart in sheet.get('charts', [])],
        })

    return format_success_response({
        'spreadsheetId': metadata.get('spreadsheetId'),
        'title': properties.get('title'),
        'locale': properties.get('locale'),
        'timeZone': properties.get('timeZone'),
        'sheets': sheets,
    })


def format_update_response(updated_cells: int, updated_range: Optional[str] = None) -> str:
    if updated_range:
        return f"Successfully updated {updated_cells} cells in range: {updated_range}"
    return f"Successfully updated {updated_cells} cells"


def format_append_response(updates: Dict[str, Any]) -> str:
    return (f"Successfully appended {updates.get('updatedCells') or 0} cells "
            f"to range: {updates.get('updatedRange')}")


def format_clear_response(cleared_range: str) -> str:
    return f"Successfully cleared range: {cleared_range}"


def format_sheet_operation_response(operation: str, details: Any = None) -> str:
    if details:
        return f"{operation} completed successfully: {json.dumps(details, indent=2)}"
    return f"{operation} completed successfully"
