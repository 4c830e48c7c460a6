#!/usr/bin/env python
"""
Google Sheets MCP Server
A Model Context Protocol (MCP) server built with FastMCP that exposes Google Sheets
value, sheet, formatting and chart operations as tools.
"""

import json
import logging
from typing import List, Dict, Any, Optional, Literal
from dataclasses import dataclass
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

# MCP imports
from mcp.server.fastmcp import FastMCP, Context
from mcp.types import ToolAnnotations

from .auth import build_services
from .charts import build_chart_position, build_chart_spec, default_domain
from .config import configure_logging, load_settings
from .errors import ValidationError, handle_error
from .formatters import (
    format_append_response,
    format_batch_values_response,
    format_clear_response,
    format_sheet_operation_response,
    format_spreadsheet_metadata,
    format_success_response,
    format_tool_response,
    format_update_response,
    format_values_response,
)
from .ranges import extract_sheet_name, grid_range_to_a1, resolve_grid_range, unquote_sheet_name
from .validators import (
    check_range_row_count,
    require_non_empty_list,
    require_range,
    require_spreadsheet_id,
    require_string,
)

logger = logging.getLogger(__name__)

settings = load_settings()

MergeType = Literal['MERGE_ALL', 'MERGE_COLUMNS', 'MERGE_ROWS']
ValueInputOption = Literal['RAW', 'USER_ENTERED']
ValueRenderOption = Literal['FORMATTED_VALUE', 'UNFORMATTED_VALUE', 'FORMULA']
MajorDimension = Literal['ROWS', 'COLUMNS']
ChartType = Literal['COLUMN', 'BAR', 'LINE', 'AREA', 'SCATTER', 'COMBO', 'STEPPED_AREA', 'PIE']

BORDER_SIDES = ('top', 'bottom', 'left', 'right', 'innerHorizontal', 'innerVertical')


@dataclass
class SpreadsheetContext:
    """Context for Google Spreadsheet service"""
    sheets_service: Any
    drive_service: Any
    folder_id: Optional[str] = None


@asynccontextmanager
async def spreadsheet_lifespan(server: FastMCP) -> AsyncIterator[SpreadsheetContext]:
    """Manage Google Spreadsheet API connection lifecycle"""
    sheets_service, drive_service = build_services(settings)
    logger.info("Working with Google Drive folder ID: %s", settings.drive_folder_id or 'Not specified')

    try:
        yield SpreadsheetContext(
            sheets_service=sheets_service,
            drive_service=drive_service,
            folder_id=settings.drive_folder_id
        )
    finally:
        # No explicit cleanup needed for Google APIs
        pass


mcp = FastMCP("Google Sheets",
              dependencies=["google-auth", "google-auth-oauthlib", "google-api-python-client"],
              lifespan=spreadsheet_lifespan,
              host=settings.host,
              port=settings.port)


def tool(annotations: Optional[ToolAnnotations] = None):
    """
    Conditional tool decorator that only registers tools if they're enabled.

    If settings.enabled_tools is None (default), all tools are enabled.
    Otherwise only functions whose name is in the set are registered.

    Args:
        annotations: Optional ToolAnnotations for the tool

    Returns:
        Decorator function
    """
    def decorator(func):
        tool_name = func.__name__

        if settings.enabled_tools is None or tool_name in settings.enabled_tools:
            if annotations:
                return mcp.tool(annotations=annotations)(func)
            return mcp.tool()(func)
        # Don't register this tool - return the function undecorated
        return func

    return decorator


def _services(ctx: Context) -> SpreadsheetContext:
    return ctx.request_context.lifespan_context


# ---------------------------------------------------------------------------
# Value Tools
# ---------------------------------------------------------------------------


@tool(
    annotations=ToolAnnotations(
        title="Check Access",
        readOnlyHint=True,
    ),
)
def sheets_check_access(spreadsheet_id: str, ctx: Context = None) -> str:
    """
    Check that the server can open a spreadsheet.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)

    Returns:
        The spreadsheet title when access works, otherwise an error message
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        result = _services(ctx).sheets_service.spreadsheets().get(
            spreadsheetId=spreadsheet_id,
            fields='spreadsheetId,properties.title'
        ).execute()

        return format_tool_response("Access confirmed", {
            'spreadsheetId': result.get('spreadsheetId'),
            'title': result.get('properties', {}).get('title'),
        })
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Get Values",
        readOnlyHint=True,
    ),
)
def sheets_get_values(spreadsheet_id: str,
                      range: str,
                      major_dimension: MajorDimension = 'ROWS',
                      value_render_option: ValueRenderOption = 'FORMATTED_VALUE',
                      ctx: Context = None) -> str:
    """
    Get values from a range in a Google Spreadsheet.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        range: The A1 notation range to retrieve (e.g., 'Sheet1!A1:B10')
        major_dimension: ROWS or COLUMNS (default: ROWS)
        value_render_option: FORMATTED_VALUE, UNFORMATTED_VALUE or FORMULA

    Returns:
        The values with their range and dimensions
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        require_range(range)

        result = _services(ctx).sheets_service.spreadsheets().values().get(
            spreadsheetId=spreadsheet_id,
            range=range,
            majorDimension=major_dimension,
            valueRenderOption=value_render_option
        ).execute()

        return format_values_response(result.get('values', []), result.get('range'))
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Batch Get Values",
        readOnlyHint=True,
    ),
)
def sheets_batch_get_values(spreadsheet_id: str,
                            ranges: List[str],
                            major_dimension: MajorDimension = 'ROWS',
                            value_render_option: ValueRenderOption = 'FORMATTED_VALUE',
                            ctx: Context = None) -> str:
    """
    Get values from several ranges of one spreadsheet in a single request.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        ranges: List of A1 notation ranges (e.g., ['Sheet1!A1:B5', 'Data!C1:C10'])
        major_dimension: ROWS or COLUMNS (default: ROWS)
        value_render_option: FORMATTED_VALUE, UNFORMATTED_VALUE or FORMULA

    Returns:
        Values for every requested range
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        require_non_empty_list(ranges, 'ranges')
        for range_str in ranges:
            require_range(range_str)

        result = _services(ctx).sheets_service.spreadsheets().values().batchGet(
            spreadsheetId=spreadsheet_id,
            ranges=ranges,
            majorDimension=major_dimension,
            valueRenderOption=value_render_option
        ).execute()

        return format_batch_values_response(result.get('valueRanges', []))
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Get Metadata",
        readOnlyHint=True,
    ),
)
def sheets_get_metadata(spreadsheet_id: str, ctx: Context = None) -> str:
    """
    Get metadata about a Google Spreadsheet including sheet names, IDs, sizes and charts.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)

    Returns:
        Spreadsheet title, locale, time zone and a summary of every sheet
    """
    try:
        require_spreadsheet_id(spreadsheet_id)

        result = _services(ctx).sheets_service.spreadsheets().get(
            spreadsheetId=spreadsheet_id,
            includeGridData=False
        ).execute()

        return format_spreadsheet_metadata(result)
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Update Values",
        destructiveHint=True,
    ),
)
def sheets_update_values(spreadsheet_id: str,
                         range: str,
                         values: List[List[Any]],
                         value_input_option: ValueInputOption = 'USER_ENTERED',
                         ctx: Context = None) -> str:
    """
    Update cells in a Google Spreadsheet.

    When an exact range is given (e.g., 'Sheet1!A1:C3') the number of rows in
    values must match it. Give only the starting cell (e.g., 'Sheet1!A1') to
    let the range grow with the data.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        range: A1 notation range to update
        values: 2D array of values to write
        value_input_option: RAW or USER_ENTERED (default: USER_ENTERED)

    Returns:
        Number of updated cells and the updated range
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        require_range(range)
        check_range_row_count(range, values)

        result = _services(ctx).sheets_service.spreadsheets().values().update(
            spreadsheetId=spreadsheet_id,
            range=range,
            valueInputOption=value_input_option,
            body={'values': values}
        ).execute()

        return format_update_response(result.get('updatedCells') or 0, result.get('updatedRange'))
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Batch Update Values",
        destructiveHint=True,
    ),
)
def sheets_batch_update_values(spreadsheet_id: str,
                               data: List[Dict[str, Any]],
                               value_input_option: ValueInputOption = 'USER_ENTERED',
                               ctx: Context = None) -> str:
    """
    Update several ranges of a Google Spreadsheet in one request.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        data: List of {'range': 'Sheet1!A1:B2', 'values': [[1, 2], [3, 4]]} items
        value_input_option: RAW or USER_ENTERED (default: USER_ENTERED)

    Returns:
        Totals of updated cells, rows, columns and sheets
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        require_non_empty_list(data, 'data')
        for item in data:
            if not item.get('range') or item.get('values') is None:
                raise ValidationError("Each data item must have range and values properties")
            require_range(item['range'])

        result = _services(ctx).sheets_service.spreadsheets().values().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={
                'valueInputOption': value_input_option,
                'data': [{'range': item['range'], 'values': item['values']} for item in data]
            }
        ).execute()

        return format_tool_response(f"Successfully updated {len(data)} ranges", {
            'totalUpdatedCells': result.get('totalUpdatedCells', 0),
            'totalUpdatedRows': result.get('totalUpdatedRows', 0),
            'totalUpdatedColumns': result.get('totalUpdatedColumns', 0),
            'totalUpdatedSheets': result.get('totalUpdatedSheets', 0),
        })
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Append Values",
        destructiveHint=True,
    ),
)
def sheets_append_values(spreadsheet_id: str,
                         range: str,
                         values: List[List[Any]],
                         value_input_option: ValueInputOption = 'USER_ENTERED',
                         insert_data_option: Literal['OVERWRITE', 'INSERT_ROWS'] = 'OVERWRITE',
                         ctx: Context = None) -> str:
    """
    Append rows after the last row of data in a table.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        range: A1 notation range of the table to append to (e.g., 'Sheet1!A:C')
        values: 2D array of rows to append
        value_input_option: RAW or USER_ENTERED (default: USER_ENTERED)
        insert_data_option: OVERWRITE or INSERT_ROWS (default: OVERWRITE)

    Returns:
        Number of appended cells and where they landed
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        require_range(range)

        result = _services(ctx).sheets_service.spreadsheets().values().append(
            spreadsheetId=spreadsheet_id,
            range=range,
            valueInputOption=value_input_option,
            insertDataOption=insert_data_option,
            body={'values': values}
        ).execute()

        return format_append_response(result.get('updates', {}))
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Clear Values",
        destructiveHint=True,
    ),
)
def sheets_clear_values(spreadsheet_id: str, range: str, ctx: Context = None) -> str:
    """
    Clear the values in a range, keeping formatting.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        range: A1 notation range to clear

    Returns:
        The cleared range
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        require_range(range)

        result = _services(ctx).sheets_service.spreadsheets().values().clear(
            spreadsheetId=spreadsheet_id,
            range=range,
            body={}
        ).execute()

        return format_clear_response(result.get('clearedRange') or range)
    except Exception as e:
        return handle_error(e)


# ---------------------------------------------------------------------------
# Spreadsheet and Sheet Tools
# ---------------------------------------------------------------------------


@tool(
    annotations=ToolAnnotations(
        title="Create Spreadsheet",
        destructiveHint=True,
    ),
)
def sheets_create_spreadsheet(title: str, folder_id: Optional[str] = None, ctx: Context = None) -> str:
    """
    Create a new Google Spreadsheet.

    Args:
        title: The title of the new spreadsheet
        folder_id: Optional Google Drive folder ID where the spreadsheet should be created.
                  If not provided, uses the configured default folder or creates in root.

    Returns:
        Information about the newly created spreadsheet including its ID
    """
    try:
        require_string(title, 'title')
        context = _services(ctx)
        target_folder_id = folder_id or context.folder_id

        file_body = {
            'name': title,
            'mimeType': 'application/vnd.google-apps.spreadsheet',
        }
        if target_folder_id:
            file_body['parents'] = [target_folder_id]

        spreadsheet = context.drive_service.files().create(
            supportsAllDrives=True,
            body=file_body,
            fields='id, name, parents'
        ).execute()

        spreadsheet_id = spreadsheet.get('id')
        parents = spreadsheet.get('parents')
        logger.info("Spreadsheet created with ID: %s in %s", spreadsheet_id, target_folder_id or 'root')

        return format_success_response({
            'spreadsheetId': spreadsheet_id,
            'spreadsheetUrl': f"https://docs.google.com/spreadsheets/d/{spreadsheet_id}/edit",
            'title': spreadsheet.get('name', title),
            'folder': parents[0] if parents else 'root',
        }, "Spreadsheet created successfully")
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Insert Sheet",
        destructiveHint=True,
    ),
)
def sheets_insert_sheet(spreadsheet_id: str,
                        title: str,
                        index: Optional[int] = None,
                        row_count: int = 1000,
                        column_count: int = 26,
                        ctx: Context = None) -> str:
    """
    Add a new sheet tab to an existing Google Spreadsheet.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        title: The title for the new sheet
        index: Optional 0-based position of the new tab
        row_count: Number of rows (default: 1000)
        column_count: Number of columns (default: 26)

    Returns:
        ID, title and index of the new sheet
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        require_string(title, 'title')

        properties = {
            'title': title,
            'gridProperties': {
                'rowCount': row_count,
                'columnCount': column_count
            }
        }
        if index is not None:
            properties['index'] = index

        result = _services(ctx).sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={'requests': [{'addSheet': {'properties': properties}}]}
        ).execute()

        new_sheet_props = result['replies'][0]['addSheet']['properties']
        return format_sheet_operation_response('Sheet inserted', {
            'sheetId': new_sheet_props.get('sheetId'),
            'title': new_sheet_props.get('title'),
            'index': new_sheet_props.get('index'),
        })
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Delete Sheet",
        destructiveHint=True,
    ),
)
def sheets_delete_sheet(spreadsheet_id: str, sheet_id: int, ctx: Context = None) -> str:
    """
    Delete a sheet tab.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        sheet_id: ID of the sheet to delete (use sheets_get_metadata to find sheet IDs)

    Returns:
        Confirmation of the deletion
    """
    try:
        require_spreadsheet_id(spreadsheet_id)

        _services(ctx).sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={'requests': [{'deleteSheet': {'sheetId': sheet_id}}]}
        ).execute()

        return format_sheet_operation_response('Sheet deleted', {'sheetId': sheet_id})
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Batch Delete Sheets",
        destructiveHint=True,
    ),
)
def sheets_batch_delete_sheets(spreadsheet_id: str, sheet_ids: List[int], ctx: Context = None) -> str:
    """
    Delete several sheet tabs in a single request.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        sheet_ids: IDs of the sheets to delete (use sheets_get_metadata to find sheet IDs)

    Returns:
        The deleted sheet IDs
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        require_non_empty_list(sheet_ids, 'sheet_ids')

        result = _services(ctx).sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={'requests': [{'deleteSheet': {'sheetId': sid}} for sid in sheet_ids]}
        ).execute()

        return format_tool_response(f"Successfully deleted {len(sheet_ids)} sheets", {
            'spreadsheetId': result.get('spreadsheetId'),
            'deletedSheetIds': sheet_ids,
        })
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Duplicate Sheet",
        destructiveHint=True,
    ),
)
def sheets_duplicate_sheet(spreadsheet_id: str,
                           sheet_id: int,
                           insert_sheet_index: Optional[int] = None,
                           new_sheet_name: Optional[str] = None,
                           ctx: Context = None) -> str:
    """
    Duplicate a sheet within the same spreadsheet.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        sheet_id: ID of the sheet to duplicate
        insert_sheet_index: Optional 0-based position of the copy
        new_sheet_name: Optional title for the copy

    Returns:
        ID, title and index of the new sheet
    """
    try:
        require_spreadsheet_id(spreadsheet_id)

        request = {'sourceSheetId': sheet_id}
        if insert_sheet_index is not None:
            request['insertSheetIndex'] = insert_sheet_index
        if new_sheet_name:
            request['newSheetName'] = new_sheet_name

        result = _services(ctx).sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={'requests': [{'duplicateSheet': request}]}
        ).execute()

        properties = result['replies'][0]['duplicateSheet']['properties']
        return format_sheet_operation_response('Sheet duplicated', {
            'newSheetId': properties.get('sheetId'),
            'title': properties.get('title'),
            'index': properties.get('index'),
        })
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Update Sheet Properties",
        destructiveHint=True,
    ),
)
def sheets_update_sheet_properties(spreadsheet_id: str,
                                   sheet_id: int,
                                   title: Optional[str] = None,
                                   grid_properties: Optional[Dict[str, int]] = None,
                                   tab_color: Optional[Dict[str, float]] = None,
                                   ctx: Context = None) -> str:
    """
    Rename a sheet, resize it, freeze rows/columns or change its tab colour.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        sheet_id: ID of the sheet to update
        title: Optional new title
        grid_properties: Optional {'rowCount', 'columnCount', 'frozenRowCount', 'frozenColumnCount'}
        tab_color: Optional {'red', 'green', 'blue'} with values between 0 and 1

    Returns:
        The fields that were updated
    """
    try:
        require_spreadsheet_id(spreadsheet_id)

        properties: Dict[str, Any] = {'sheetId': sheet_id}
        fields = []
        if title is not None:
            properties['title'] = title
            fields.append('title')
        if grid_properties:
            properties['gridProperties'] = grid_properties
            fields.extend(f"gridProperties.{key}" for key in grid_properties)
        if tab_color:
            properties['tabColor'] = tab_color
            fields.append('tabColor')
        if not fields:
            raise ValidationError("At least one of title, grid_properties or tab_color must be provided")

        _services(ctx).sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={
                'requests': [{
                    'updateSheetProperties': {
                        'properties': properties,
                        'fields': ','.join(fields)
                    }
                }]
            }
        ).execute()

        return format_sheet_operation_response('Sheet properties updated', {
            'sheetId': sheet_id,
            'updatedFields': fields,
        })
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Copy Sheet To Spreadsheet",
        destructiveHint=True,
    ),
)
def sheets_copy_to(spreadsheet_id: str,
                   sheet_id: int,
                   destination_spreadsheet_id: str,
                   ctx: Context = None) -> str:
    """
    Copy a sheet to another spreadsheet.

    Args:
        spreadsheet_id: The ID of the source spreadsheet
        sheet_id: ID of the sheet to copy (use sheets_get_metadata to find sheet IDs)
        destination_spreadsheet_id: The ID of the destination spreadsheet

    Returns:
        ID and title of the copy in the destination spreadsheet
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        require_spreadsheet_id(destination_spreadsheet_id, 'destination_spreadsheet_id')

        result = _services(ctx).sheets_service.spreadsheets().sheets().copyTo(
            spreadsheetId=spreadsheet_id,
            sheetId=sheet_id,
            body={'destinationSpreadsheetId': destination_spreadsheet_id}
        ).execute()

        return format_sheet_operation_response('Sheet copied', {
            'destinationSheetId': result.get('sheetId'),
            'title': result.get('title'),
        })
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Insert Rows",
        destructiveHint=True,
    ),
)
def sheets_insert_rows(spreadsheet_id: str,
                       range: str,
                       rows: int = 1,
                       position: Literal['BEFORE', 'AFTER'] = 'BEFORE',
                       inherit_formatting: bool = False,
                       values: Optional[List[List[Any]]] = None,
                       value_input_option: ValueInputOption = 'USER_ENTERED',
                       ctx: Context = None) -> str:
    """
    Insert empty rows next to a cell or range, optionally filling them with values.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        range: Anchor cell or range in A1 notation (e.g., 'Sheet1!A5')
        rows: Number of rows to insert (default: 1)
        position: BEFORE the anchor's first row or AFTER its last row
        inherit_formatting: Copy formatting from the row above the insertion point (default: False)
        values: Optional 2D array written into the new rows, starting at the anchor column
        value_input_option: RAW or USER_ENTERED (default: USER_ENTERED)

    Returns:
        Where the rows were inserted and how many cells were filled
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        if rows < 1:
            raise ValidationError("rows must be a positive integer")
        sheets_service = _services(ctx).sheets_service

        anchor = resolve_grid_range(sheets_service, spreadsheet_id, range)
        start_index = anchor.start_row_index if position == 'BEFORE' else anchor.end_row_index

        sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={
                'requests': [{
                    'insertDimension': {
                        'range': {
                            'sheetId': anchor.sheet_id,
                            'dimension': 'ROWS',
                            'startIndex': start_index,
                            'endIndex': start_index + rows
                        },
                        'inheritFromBefore': inherit_formatting and start_index > 0
                    }
                }]
            }
        ).execute()

        details = {
            'sheetId': anchor.sheet_id,
            'startRowIndex': start_index,
            'insertedRows': rows,
        }

        if values:
            sheet_name = extract_sheet_name(range).sheet_name
            width = max((len(row) for row in values), default=0) or 1
            target = grid_range_to_a1(
                {
                    'startRowIndex': start_index,
                    'endRowIndex': start_index + len(values),
                    'startColumnIndex': anchor.start_column_index,
                    'endColumnIndex': anchor.start_column_index + width,
                },
                unquote_sheet_name(sheet_name) if sheet_name else None,
            )
            update = sheets_service.spreadsheets().values().update(
                spreadsheetId=spreadsheet_id,
                range=target,
                valueInputOption=value_input_option,
                body={'values': values}
            ).execute()
            details['updatedCells'] = update.get('updatedCells', 0)
            details['updatedRange'] = update.get('updatedRange')

        return format_tool_response(f"Successfully inserted {rows} rows {position.lower()} {range}", details)
    except Exception as e:
        return handle_error(e)


# ---------------------------------------------------------------------------
# Formatting Tools
# ---------------------------------------------------------------------------


@tool(
    annotations=ToolAnnotations(
        title="Format Cells",
        destructiveHint=True,
    ),
)
def sheets_format_cells(spreadsheet_id: str,
                        range: str,
                        format: Dict[str, Any],
                        ctx: Context = None) -> str:
    """
    Apply a cell format to every cell in a range.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        range: A1 notation range (e.g., "'My Sheet'!A1:C1")
        format: CellFormat object, e.g. {'textFormat': {'bold': True},
                'backgroundColor': {'red': 0.9, 'green': 0.9, 'blue': 0.9},
                'horizontalAlignment': 'CENTER', 'numberFormat': {'type': 'CURRENCY'}}

    Returns:
        Confirmation with the formatted range
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        if not isinstance(format, dict):
            raise ValidationError("format is required and must be an object")
        sheets_service = _services(ctx).sheets_service

        grid_range = resolve_grid_range(sheets_service, spreadsheet_id, range)
        fields = ','.join(format.keys()) if format else '*'

        result = sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={
                'requests': [{
                    'repeatCell': {
                        'range': grid_range.to_dict(),
                        'cell': {'userEnteredFormat': format},
                        'fields': f"userEnteredFormat({fields})"
                    }
                }]
            }
        ).execute()

        return format_tool_response(f"Successfully formatted cells in range {range}", {
            'spreadsheetId': result.get('spreadsheetId'),
        })
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Update Borders",
        destructiveHint=True,
    ),
)
def sheets_update_borders(spreadsheet_id: str,
                          range: str,
                          borders: Dict[str, Dict[str, Any]],
                          ctx: Context = None) -> str:
    """
    Set the borders of a range.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        range: A1 notation range (e.g., 'Sheet1!A1:D10')
        borders: Any of top, bottom, left, right, innerHorizontal, innerVertical, each
                 {'style': 'SOLID'|'DASHED'|'DOTTED'|'SOLID_MEDIUM'|'SOLID_THICK'|'DOUBLE'|'NONE',
                  'color': {'red': 0, 'green': 0, 'blue': 0}, 'width': 1}

    Returns:
        Confirmation with the updated range
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        if isinstance(borders, str):
            try:
                borders = json.loads(borders)
            except json.JSONDecodeError:
                raise ValidationError("Invalid borders: Expected object or valid JSON string") from None
        if not isinstance(borders, dict):
            raise ValidationError("borders is required and must be an object")
        sheets_service = _services(ctx).sheets_service

        grid_range = resolve_grid_range(sheets_service, spreadsheet_id, range)

        update_borders: Dict[str, Any] = {'range': grid_range.to_dict()}
        for side in BORDER_SIDES:
            border = borders.get(side)
            if border:
                update_borders[side] = {
                    key: border[key] for key in ('style', 'color', 'width') if border.get(key) is not None
                }

        result = sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={'requests': [{'updateBorders': update_borders}]}
        ).execute()

        return format_tool_response(f"Successfully updated borders for range {range}", {
            'spreadsheetId': result.get('spreadsheetId'),
        })
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Merge Cells",
        destructiveHint=True,
    ),
)
def sheets_merge_cells(spreadsheet_id: str,
                       range: str,
                       merge_type: MergeType = 'MERGE_ALL',
                       ctx: Context = None) -> str:
    """
    Merge the cells of a range.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        range: A1 notation range (e.g., "'My Sheet'!A1:C1")
        merge_type: MERGE_ALL, MERGE_COLUMNS or MERGE_ROWS (default: MERGE_ALL)

    Returns:
        Confirmation with the merged range
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        sheets_service = _services(ctx).sheets_service

        grid_range = resolve_grid_range(sheets_service, spreadsheet_id, range)

        result = sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={
                'requests': [{
                    'mergeCells': {
                        'range': grid_range.to_dict(),
                        'mergeType': merge_type
                    }
                }]
            }
        ).execute()

        return format_tool_response(
            f"Successfully merged cells in range {range} with merge type {merge_type}",
            {'spreadsheetId': result.get('spreadsheetId')}
        )
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Unmerge Cells",
        destructiveHint=True,
    ),
)
def sheets_unmerge_cells(spreadsheet_id: str, range: str, ctx: Context = None) -> str:
    """
    Unmerge every merged cell inside a range.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        range: A1 notation range (e.g., 'Sheet1!A1:C1')

    Returns:
        Confirmation with the unmerged range
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        sheets_service = _services(ctx).sheets_service

        grid_range = resolve_grid_range(sheets_service, spreadsheet_id, range)

        result = sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={'requests': [{'unmergeCells': {'range': grid_range.to_dict()}}]}
        ).execute()

        return format_tool_response(f"Successfully unmerged cells in range {range}", {
            'spreadsheetId': result.get('spreadsheetId'),
        })
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Add Conditional Formatting",
        destructiveHint=True,
    ),
)
def sheets_add_conditional_formatting(spreadsheet_id: str,
                                      rules: List[Dict[str, Any]],
                                      ctx: Context = None) -> str:
    """
    Add conditional formatting rules.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        rules: List of rules. Each rule has 'ranges' (A1 notation strings) and either
               a 'booleanRule', e.g.
               {'condition': {'type': 'NUMBER_GREATER', 'values': [{'userEnteredValue': '100'}]},
                'format': {'backgroundColor': {'red': 1, 'green': 0.8, 'blue': 0.8}}}
               or a 'gradientRule' with minpoint/midpoint/maxpoint.

    Returns:
        Number of rules added
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        require_non_empty_list(rules, 'rules')
        sheets_service = _services(ctx).sheets_service

        requests = []
        for index, rule in enumerate(rules):
            ranges = rule.get('ranges')
            if not ranges or not isinstance(ranges, list):
                raise ValidationError("Each rule must have a non-empty ranges array")
            if not rule.get('booleanRule') and not rule.get('gradientRule'):
                raise ValidationError("Each rule must have either booleanRule or gradientRule")

            api_rule: Dict[str, Any] = {
                'ranges': [resolve_grid_range(sheets_service, spreadsheet_id, r).to_dict() for r in ranges]
            }
            if rule.get('booleanRule'):
                api_rule['booleanRule'] = rule['booleanRule']
            else:
                api_rule['gradientRule'] = rule['gradientRule']

            requests.append({'addConditionalFormatRule': {'rule': api_rule, 'index': index}})

        result = sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={'requests': requests}
        ).execute()

        return format_tool_response(f"Successfully added {len(requests)} conditional formatting rules", {
            'spreadsheetId': result.get('spreadsheetId'),
        })
    except Exception as e:
        return handle_error(e)


# ---------------------------------------------------------------------------
# Chart Tools
# ---------------------------------------------------------------------------


@tool(
    annotations=ToolAnnotations(
        title="Create Chart",
        destructiveHint=True,
    ),
)
def sheets_create_chart(spreadsheet_id: str,
                        chart_type: ChartType,
                        series: List[Dict[str, str]],
                        title: Optional[str] = None,
                        subtitle: Optional[str] = None,
                        domain_range: Optional[str] = None,
                        anchor_cell: Optional[str] = None,
                        legend_position: str = 'BOTTOM_LEGEND',
                        x_axis_title: Optional[str] = None,
                        y_axis_title: Optional[str] = None,
                        ctx: Context = None) -> str:
    """
    Create an embedded chart.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        chart_type: COLUMN, BAR, LINE, AREA, SCATTER, COMBO, STEPPED_AREA or PIE
        series: List of {'source_range': 'Sheet1!B1:B10', 'target_axis': 'LEFT_AXIS'} items.
                target_axis is optional. A PIE chart uses only the first series.
        title: Optional chart title
        subtitle: Optional chart subtitle
        domain_range: Range with the labels / x values (e.g., 'Sheet1!A1:A10').
                      Defaults to the column left of the first series.
        anchor_cell: Cell where the chart's top-left corner goes (e.g., 'Sheet1!E2').
                     If omitted the chart is placed on a new sheet.
        legend_position: BOTTOM, TOP, LEFT, RIGHT or NO, with or without the _LEGEND suffix
        x_axis_title: Optional bottom axis title
        y_axis_title: Optional left axis title

    Returns:
        The new chart ID
    """
    try:
        require_spreadsheet_id(spreadsheet_id)
        require_non_empty_list(series, 'series')
        sheets_service = _services(ctx).sheets_service

        series_ranges = []
        target_axes = []
        for item in series:
            source_range = item.get('source_range') or item.get('sourceRange')
            require_string(source_range, 'source_range')
            series_ranges.append(resolve_grid_range(sheets_service, spreadsheet_id, source_range))
            target_axes.append(item.get('target_axis') or item.get('targetAxis'))

        if domain_range:
            domain = resolve_grid_range(sheets_service, spreadsheet_id, domain_range)
        else:
            domain = default_domain(series_ranges[0])

        anchor = resolve_grid_range(sheets_service, spreadsheet_id, anchor_cell) if anchor_cell else None

        spec = build_chart_spec(
            chart_type,
            series_ranges,
            domain=domain,
            title=title,
            subtitle=subtitle,
            legend_position=legend_position,
            target_axes=target_axes,
            x_axis_title=x_axis_title,
            y_axis_title=y_axis_title,
        )

        result = sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={
                'requests': [{
                    'addChart': {
                        'chart': {
                            'spec': spec,
                            'position': build_chart_position(anchor)
                        }
                    }
                }]
            }
        ).execute()

        chart = (result.get('replies') or [{}])[0].get('addChart', {}).get('chart', {})
        return format_tool_response(f"Successfully created {chart_type} chart", {
            'spreadsheetId': result.get('spreadsheetId'),
            'chartId': chart.get('chartId'),
        })
    except Exception as e:
        return handle_error(e)


@tool(
    annotations=ToolAnnotations(
        title="Delete Chart",
        destructiveHint=True,
    ),
)
def sheets_delete_chart(spreadsheet_id: str, chart_id: int, ctx: Context = None) -> str:
    """
    Delete an embedded chart.

    Args:
        spreadsheet_id: The ID of the spreadsheet (found in the URL after /d/)
        chart_id: ID of the chart (use sheets_get_metadata to find chart IDs)

    Returns:
        Confirmation of the deletion
    """
    try:
        require_spreadsheet_id(spreadsheet_id)

        result = _services(ctx).sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={'requests': [{'deleteEmbeddedObject': {'objectId': chart_id}}]}
        ).execute()

        return format_tool_response(f"Successfully deleted chart {chart_id}", {
            'spreadsheetId': result.get('spreadsheetId'),
            'deletedChartId': chart_id,
        })
    except Exception as e:
        return handle_error(e)


@mcp.resource("spreadsheet://{spreadsheet_id}/info")
def get_spreadsheet_info(spreadsheet_id: str) -> str:
    """
    Get basic information about a Google Spreadsheet.

    Args:
        spreadsheet_id: The ID of the spreadsheet

    Returns:
        JSON string with spreadsheet information
    """
    sheets_service = _services(mcp.get_context()).sheets_service

    spreadsheet = sheets_service.spreadsheets().get(
        spreadsheetId=spreadsheet_id,
        fields='spreadsheetId,spreadsheetUrl,properties(title,locale,timeZone),sheets(properties(sheetId,title,gridProperties))'
    ).execute()

    info = {
        "spreadsheetId": spreadsheet.get('spreadsheetId'),
        "title": spreadsheet.get('properties', {}).get('title', 'Unknown'),
        "locale": spreadsheet.get('properties', {}).get('locale'),
        "timeZone": spreadsheet.get('properties', {}).get('timeZone'),
        "url": spreadsheet.get('spreadsheetUrl'),
        "sheets": [
            {
                "title": sheet['properties']['title'],
                "sheetId": sheet['properties']['sheetId'],
                "gridProperties": sheet['properties'].get('gridProperties', {})
            }
            for sheet in spreadsheet.get('sheets', [])
        ]
    }

    return json.dumps(info, indent=2)


def main():
    configure_logging(settings.log_level)

    if settings.enabled_tools is not None:
        logger.info("Tool filtering enabled. Active tools: %s", ', '.join(sorted(settings.enabled_tools)))
    else:
        logger.info("Tool filtering disabled. All tools are enabled.")

    mcp.run(transport=settings.transport)
