"""
Tool-level tests. Tool functions are plain callables after registration, so
they are called directly with a stand-in Context carrying mocked services.
"""

import json
from unittest.mock import MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError

from gsheets_mcp import server
from gsheets_mcp.config import Settings
from gsheets_mcp.server import SpreadsheetContext

from conftest import make_sheets_service

SPREADSHEET_ID = "1BxiMVs0XRA5nFMdKvBdBZjgmUUqptlbs74OgvE2upms"


@pytest.fixture
def services(sheets_service):
    return SpreadsheetContext(sheets_service=sheets_service, drive_service=MagicMock(), folder_id="default-folder")


@pytest.fixture
def ctx(services):
    context = MagicMock()
    context.request_context.lifespan_context = services
    return context


def batch_update_body(sheets_service):
    return sheets_service.spreadsheets.return_value.batchUpdate.call_args.kwargs['body']


class TestValueTools:

    def test_get_values(self, ctx, sheets_service):
        values_api = sheets_service.spreadsheets.return_value.values.return_value
        values_api.get.return_value.execute.return_value = {
            'range': "Sheet1!A1:B2",
            'values': [["a", "b"], ["c", "d"]],
        }

        data = json.loads(server.sheets_get_values(SPREADSHEET_ID, "Sheet1!A1:B2", ctx=ctx))

        assert data['rowCount'] == 2
        values_api.get.assert_called_once_with(
            spreadsheetId=SPREADSHEET_ID,
            range="Sheet1!A1:B2",
            majorDimension='ROWS',
            valueRenderOption='FORMATTED_VALUE',
        )

    def test_get_values_rejects_bad_range_before_calling_api(self, ctx, sheets_service):
        result = server.sheets_get_values(SPREADSHEET_ID, "Sheet1!", ctx=ctx)
        assert result.startswith("Error: Invalid range format: Sheet1!.")
        sheets_service.spreadsheets.return_value.values.assert_not_called()

    def test_get_values_rejects_bad_spreadsheet_id(self, ctx):
        assert server.sheets_get_values("not an id", "A1", ctx=ctx) == "Error: Invalid spreadsheet id format"

    def test_batch_get_values(self, ctx, sheets_service):
        values_api = sheets_service.spreadsheets.return_value.values.return_value
        values_api.batchGet.return_value.execute.return_value = {
            'valueRanges': [{'range': "A!A1", 'values': [[1]]}]
        }
        data = json.loads(server.sheets_batch_get_values(SPREADSHEET_ID, ["A!A1"], ctx=ctx))
        assert data['totalRanges'] == 1

    def test_update_values(self, ctx, sheets_service):
        values_api = sheets_service.spreadsheets.return_value.values.return_value
        values_api.update.return_value.execute.return_value = {
            'updatedCells': 4, 'updatedRange': "Sheet1!A1:B2"
        }

        result = server.sheets_update_values(SPREADSHEET_ID, "Sheet1!A1:B2", [[1, 2], [3, 4]], ctx=ctx)

        assert result == "Successfully updated 4 cells in range: Sheet1!A1:B2"
        assert values_api.update.call_args.kwargs['valueInputOption'] == 'USER_ENTERED'
        assert values_api.update.call_args.kwargs['body'] == {'values': [[1, 2], [3, 4]]}

    def test_update_values_row_mismatch(self, ctx, sheets_service):
        result = server.sheets_update_values(SPREADSHEET_ID, "Sheet1!A1:B3", [[1, 2]], ctx=ctx)
        assert result.startswith('Error: Range mismatch: The range "Sheet1!A1:B3" expects exactly 3 rows')
        sheets_service.spreadsheets.return_value.values.return_value.update.assert_not_called()

    def test_batch_update_values_requires_range_and_values(self, ctx):
        result = server.sheets_batch_update_values(SPREADSHEET_ID, [{'range': "A1"}], ctx=ctx)
        assert result == "Error: Each data item must have range and values properties"

    def test_append_values(self, ctx, sheets_service):
        values_api = sheets_service.spreadsheets.return_value.values.return_value
        values_api.append.return_value.execute.return_value = {
            'updates': {'updatedCells': 2, 'updatedRange': "Sheet1!A7:B7"}
        }
        result = server.sheets_append_values(SPREADSHEET_ID, "Sheet1!A:B", [["x", "y"]], ctx=ctx)
        assert result == "Successfully appended 2 cells to range: Sheet1!A7:B7"
        assert values_api.append.call_args.kwargs['insertDataOption'] == 'OVERWRITE'

    def test_clear_values(self, ctx, sheets_service):
        values_api = sheets_service.spreadsheets.return_value.values.return_value
        values_api.clear.return_value.execute.return_value = {'clearedRange': "Sheet1!A1:Z1000"}
        assert server.sheets_clear_values(SPREADSHEET_ID, "Sheet1!A:Z", ctx=ctx) == (
            "Successfully cleared range: Sheet1!A1:Z1000"
        )

    def test_api_errors_become_error_text(self, ctx, sheets_service):
        values_api = sheets_service.spreadsheets.return_value.values.return_value
        values_api.get.return_value.execute.side_effect = HttpError(httplib2.Response({'status': 403}), b'{}')
        assert server.sheets_get_values(SPREADSHEET_ID, "A1", ctx=ctx).startswith("Error: Permission denied.")


class TestSpreadsheetTools:

    def test_check_access(self, ctx, sheets_service):
        sheets_service.spreadsheets.return_value.get.return_value.execute.return_value = {
            'spreadsheetId': SPREADSHEET_ID, 'properties': {'title': 'Budget'}
        }
        result = server.sheets_check_access(SPREADSHEET_ID, ctx=ctx)
        assert result.startswith("Access confirmed")
        assert '"Budget"' in result

    def test_get_metadata(self, ctx, sheets_service):
        data = json.loads(server.sheets_get_metadata(SPREADSHEET_ID, ctx=ctx))
        assert [sheet['sheetId'] for sheet in data['sheets']] == [0, 42, 7]

    def test_create_spreadsheet_uses_default_folder(self, ctx, services):
        files_api = services.drive_service.files.return_value
        files_api.create.return_value.execute.return_value = {
            'id': 'new-id', 'name': 'Report', 'parents': ['default-folder']
        }

        result = server.sheets_create_spreadsheet("Report", ctx=ctx)

        body = files_api.create.call_args.kwargs['body']
        assert body == {
            'name': 'Report',
            'mimeType': 'application/vnd.google-apps.spreadsheet',
            'parents': ['default-folder'],
        }
        assert files_api.create.call_args.kwargs['supportsAllDrives'] is True
        assert "https://docs.google.com/spreadsheets/d/new-id/edit" in result

    def test_create_spreadsheet_explicit_folder(self, ctx, services):
        files_api = services.drive_service.files.return_value
        files_api.create.return_value.execute.return_value = {'id': 'new-id', 'name': 'Report'}
        server.sheets_create_spreadsheet("Report", folder_id="other", ctx=ctx)
        assert files_api.create.call_args.kwargs['body']['parents'] == ['other']

    def test_insert_sheet(self, ctx, sheets_service):
        sheets_service.spreadsheets.return_value.batchUpdate.return_value.execute.return_value = {
            'replies': [{'addSheet': {'properties': {'sheetId': 99, 'title': 'New', 'index': 3}}}]
        }
        result = server.sheets_insert_sheet(SPREADSHEET_ID, "New", ctx=ctx)
        assert result.startswith("Sheet inserted completed successfully")
        properties = batch_update_body(sheets_service)['requests'][0]['addSheet']['properties']
        assert properties == {'title': 'New', 'gridProperties': {'rowCount': 1000, 'columnCount': 26}}

    def test_batch_delete_sheets(self, ctx, sheets_service):
        server.sheets_batch_delete_sheets(SPREADSHEET_ID, [1, 2], ctx=ctx)
        assert batch_update_body(sheets_service)['requests'] == [
            {'deleteSheet': {'sheetId': 1}},
            {'deleteSheet': {'sheetId': 2}},
        ]

    def test_update_sheet_properties_fields(self, ctx, sheets_service):
        server.sheets_update_sheet_properties(
            SPREADSHEET_ID, 42, title="Renamed", grid_properties={'frozenRowCount': 1}, ctx=ctx
        )
        request = batch_update_body(sheets_service)['requests'][0]['updateSheetProperties']
        assert request['fields'] == "title,gridProperties.frozenRowCount"
        assert request['properties']['sheetId'] == 42

    def test_update_sheet_properties_requires_a_change(self, ctx, sheets_service):
        result = server.sheets_update_sheet_properties(SPREADSHEET_ID, 42, ctx=ctx)
        assert result.startswith("Error: At least one of title")
        sheets_service.spreadsheets.return_value.batchUpdate.assert_not_called()

    def test_copy_to(self, ctx, sheets_service):
        sheets_api = sheets_service.spreadsheets.return_value.sheets.return_value
        sheets_api.copyTo.return_value.execute.return_value = {'sheetId': 5, 'title': 'Copy of Sheet1'}
        result = server.sheets_copy_to(SPREADSHEET_ID, 0, "dest_id", ctx=ctx)
        assert '"destinationSheetId": 5' in result
        assert sheets_api.copyTo.call_args.kwargs['body'] == {'destinationSpreadsheetId': 'dest_id'}

    def test_insert_rows_after_with_values(self, ctx, sheets_service):
        values_api = sheets_service.spreadsheets.return_value.values.return_value
        values_api.update.return_value.execute.return_value = {'updatedCells': 2}

        server.sheets_insert_rows(
            SPREADSHEET_ID, "'My Sheet'!B5:C10", rows=1, position='AFTER', values=[["x", "y"]],
            inherit_formatting=True, ctx=ctx
        )

        insert = batch_update_body(sheets_service)['requests'][0]['insertDimension']
        assert insert['range'] == {'sheetId': 42, 'dimension': 'ROWS', 'startIndex': 10, 'endIndex': 11}
        assert insert['inheritFromBefore'] is True
        assert values_api.update.call_args.kwargs['range'] == "'My Sheet'!B11:C11"

    def test_insert_rows_defaults(self, ctx, sheets_service):
        server.sheets_insert_rows(SPREADSHEET_ID, "Sheet1!A5", ctx=ctx)
        insert = batch_update_body(sheets_service)['requests'][0]['insertDimension']
        assert insert == {
            'range': {'sheetId': 0, 'dimension': 'ROWS', 'startIndex': 4, 'endIndex': 5},
            'inheritFromBefore': False,
        }
        sheets_service.spreadsheets.return_value.values.return_value.update.assert_not_called()

    def test_insert_rows_writes_values_over_new_rows(self, ctx, sheets_service):
        values_api = sheets_service.spreadsheets.return_value.values.return_value
        values_api.update.return_value.execute.return_value = {'updatedCells': 6}

        server.sheets_insert_rows(
            SPREADSHEET_ID, "Sheet1!A5", rows=2, values=[[1, 2, 3], [4, 5]], ctx=ctx
        )

        assert values_api.update.call_args.kwargs['range'] == "Sheet1!A5:C6"
        assert values_api.update.call_args.kwargs['body'] == {'values': [[1, 2, 3], [4, 5]]}

    def test_insert_rows_at_top_cannot_inherit(self, ctx, sheets_service):
        server.sheets_insert_rows(SPREADSHEET_ID, "A1", rows=2, inherit_formatting=True, ctx=ctx)
        insert = batch_update_body(sheets_service)['requests'][0]['insertDimension']
        assert insert['range']['startIndex'] == 0
        assert insert['range']['endIndex'] == 2
        assert insert['inheritFromBefore'] is False


class TestFormattingTools:

    def test_merge_cells_resolves_sheet(self, ctx, sheets_service):
        server.sheets_merge_cells(SPREADSHEET_ID, "'My Sheet'!A1:C1", ctx=ctx)
        assert batch_update_body(sheets_service)['requests'] == [{
            'mergeCells': {
                'range': {
                    'sheetId': 42,
                    'startRowIndex': 0,
                    'endRowIndex': 1,
                    'startColumnIndex': 0,
                    'endColumnIndex': 3,
                },
                'mergeType': 'MERGE_ALL',
            }
        }]

    def test_merge_cells_unknown_sheet(self, ctx):
        assert server.sheets_merge_cells(SPREADSHEET_ID, "Nope!A1:B2", ctx=ctx) == 'Error: Sheet "Nope" not found'

    def test_merge_cells_full_column_rejected(self, ctx):
        assert server.sheets_merge_cells(SPREADSHEET_ID, "Sheet1!A:A", ctx=ctx) == (
            "Error: Invalid range format: Sheet1!A:A"
        )

    def test_unmerge_cells(self, ctx, sheets_service):
        server.sheets_unmerge_cells(SPREADSHEET_ID, "Sheet1!A1:B2", ctx=ctx)
        request = batch_update_body(sheets_service)['requests'][0]
        assert request['unmergeCells']['range']['sheetId'] == 0

    def test_format_cells(self, ctx, sheets_service):
        cell_format = {'textFormat': {'bold': True}, 'horizontalAlignment': 'CENTER'}
        server.sheets_format_cells(SPREADSHEET_ID, "Sheet1!A1:D1", cell_format, ctx=ctx)
        repeat_cell = batch_update_body(sheets_service)['requests'][0]['repeatCell']
        assert repeat_cell['cell'] == {'userEnteredFormat': cell_format}
        assert repeat_cell['fields'] == "userEnteredFormat(textFormat,horizontalAlignment)"

    def test_update_borders_accepts_json_string(self, ctx, sheets_service):
        borders = json.dumps({'top': {'style': 'SOLID', 'width': 2}, 'diagonal': {'style': 'SOLID'}})
        server.sheets_update_borders(SPREADSHEET_ID, "Sheet1!A1:B2", borders, ctx=ctx)
        request = batch_update_body(sheets_service)['requests'][0]['updateBorders']
        assert request['top'] == {'style': 'SOLID', 'width': 2}
        assert 'diagonal' not in request

    def test_conditional_formatting(self, ctx, sheets_service):
        rule = {
            'ranges': ["Sheet1!B2:B20"],
            'booleanRule': {
                'condition': {'type': 'NUMBER_GREATER', 'values': [{'userEnteredValue': '100'}]},
                'format': {'backgroundColor': {'red': 1, 'green': 0.8, 'blue': 0.8}},
            },
        }
        server.sheets_add_conditional_formatting(SPREADSHEET_ID, [rule], ctx=ctx)
        request = batch_update_body(sheets_service)['requests'][0]['addConditionalFormatRule']
        assert request['index'] == 0
        assert request['rule']['ranges'][0]['startRowIndex'] == 1
        assert request['rule']['booleanRule'] == rule['booleanRule']

    def test_conditional_formatting_needs_a_rule_kind(self, ctx):
        result = server.sheets_add_conditional_formatting(SPREADSHEET_ID, [{'ranges': ["A1"]}], ctx=ctx)
        assert result == "Error: Each rule must have either booleanRule or gradientRule"


class TestChartTools:

    def test_create_chart_with_default_domain(self, ctx, sheets_service):
        sheets_service.spreadsheets.return_value.batchUpdate.return_value.execute.return_value = {
            'spreadsheetId': SPREADSHEET_ID,
            'replies': [{'addChart': {'chart': {'chartId': 1234}}}],
        }

        result = server.sheets_create_chart(
            SPREADSHEET_ID, 'COLUMN',
            [{'source_range': "'My Sheet'!B1:B10"}],
            anchor_cell="'My Sheet'!E2",
            ctx=ctx,
        )

        assert '"chartId": 1234' in result
        chart = batch_update_body(sheets_service)['requests'][0]['addChart']['chart']
        domain = chart['spec']['basicChart']['domains'][0]['domain']['sourceRange']['sources'][0]
        assert (domain['sheetId'], domain['startColumnIndex'], domain['endColumnIndex']) == (42, 0, 1)
        assert chart['position']['overlayPosition']['anchorCell'] == {'sheetId': 42, 'rowIndex': 1, 'columnIndex': 4}

    def test_create_chart_on_new_sheet(self, ctx, sheets_service):
        server.sheets_create_chart(SPREADSHEET_ID, 'PIE', [{'source_range': "Sheet1!B1:B5"}],
                                   domain_range="Sheet1!A1:A5", ctx=ctx)
        chart = batch_update_body(sheets_service)['requests'][0]['addChart']['chart']
        assert chart['position'] == {'newSheet': True}
        assert 'domain' in chart['spec']['pieChart']

    def test_create_chart_subtitle_and_short_legend(self, ctx, sheets_service):
        server.sheets_create_chart(
            SPREADSHEET_ID, 'COLUMN', [{'source_range': "Sheet1!B1:B5"}],
            title="Chart Title", subtitle="Chart Subtitle", legend_position='TOP', ctx=ctx,
        )
        spec = batch_update_body(sheets_service)['requests'][0]['addChart']['chart']['spec']
        assert spec['title'] == "Chart Title"
        assert spec['subtitle'] == "Chart Subtitle"
        assert spec['basicChart']['legendPosition'] == 'TOP_LEGEND'

    def test_create_chart_requires_series(self, ctx):
        assert server.sheets_create_chart(SPREADSHEET_ID, 'LINE', [], ctx=ctx) == (
            "Error: series is required and must be a non-empty array"
        )

    def test_delete_chart(self, ctx, sheets_service):
        server.sheets_delete_chart(SPREADSHEET_ID, 1234, ctx=ctx)
        assert batch_update_body(sheets_service)['requests'] == [{'deleteEmbeddedObject': {'objectId': 1234}}]


def test_spreadsheet_info_resource(monkeypatch, ctx, sheets_service):
    sheets_service.spreadsheets.return_value.get.return_value.execute.return_value = {
        'spreadsheetId': SPREADSHEET_ID,
        'properties': {'title': 'Budget'},
        'sheets': [{'properties': {'sheetId': 0, 'title': 'Sheet1'}}],
    }
    monkeypatch.setattr(server.mcp, 'get_context', lambda: ctx)

    info = json.loads(server.get_spreadsheet_info(SPREADSHEET_ID))

    assert info['title'] == 'Budget'
    assert info['sheets'] == [{'title': 'Sheet1', 'sheetId': 0, 'gridProperties': {}}]


class TestToolFiltering:

    def test_disabled_tool_is_not_registered(self, monkeypatch):
        fake_mcp = MagicMock()
        monkeypatch.setattr(server, 'mcp', fake_mcp)
        monkeypatch.setattr(server, 'settings', Settings(enabled_tools=frozenset({'sheets_get_values'})))

        def sheets_clear_values():
            pass

        assert server.tool()(sheets_clear_values) is sheets_clear_values
        fake_mcp.tool.assert_not_called()

    def test_enabled_tool_is_registered(self, monkeypatch):
        fake_mcp = MagicMock()
        monkeypatch.setattr(server, 'mcp', fake_mcp)
        monkeypatch.setattr(server, 'settings', Settings(enabled_tools=frozenset({'sheets_get_values'})))

        def sheets_get_values():
            pass

        server.tool()(sheets_get_values)
        fake_mcp.tool.assert_called_once_with()
