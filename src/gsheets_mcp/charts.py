"""
Request bodies for embedded charts.
"""

from typing import Any, Dict, List, Optional

from .ranges import GridRange

BASIC_CHART_TYPES = ('COLUMN', 'BAR', 'LINE', 'AREA', 'SCATTER', 'COMBO', 'STEPPED_AREA')


def _source(grid_range: GridRange) -> Dict[str, Any]:
    return {'sourceRange': {'sources': [grid_range.to_dict()]}}


def default_domain(first_series: GridRange) -> Optional[GridRange]:
    """The column just left of the first series, over the same rows."""
    if first_series.start_column_index == 0:
        return None
    return GridRange(
        sheet_id=first_series.sheet_id,
        start_row_index=first_series.start_row_index,
        end_row_index=first_series.end_row_index,
        start_column_index=first_series.start_column_index - 1,
        end_column_index=first_series.start_column_index,
    )


def build_chart_spec(chart_type: str,
                     series: List[GridRange],
                     domain: Optional[GridRange] = None,
                     title: Optional[str] = None,
                     subtitle: Optional[str] = None,
                     legend_position: str = 'BOTTOM_LEGEND',
                     target_axes: Optional[List[Optional[str]]] = None,
                     x_axis_title: Optional[str] = None,
                     y_axis_title: Optional[str] = None,
                     header_count: int = 1) -> Dict[str, Any]:
    """
    Build a ChartSpec for a basic chart or a pie chart.

    Args:
        chart_type: One of BASIC_CHART_TYPES or 'PIE'
        series: Resolved ranges, one per data series. A pie chart uses only the first.
        domain: Range holding the category labels / x values
        title: Optional chart title
        subtitle: Optional chart subtitle
        legend_position: Legend placement, e.g. 'BOTTOM_LEGEND' or 'RIGHT'; the _LEGEND suffix is optional
        target_axes: Per-series axis ('LEFT_AXIS' or 'RIGHT_AXIS'), aligned with series
        x_axis_title: Optional bottom axis title (basic charts only)
        y_axis_title: Optional left axis title (basic charts only)
        header_count: Number of header rows in the data

    Returns:
        ChartSpec dictionary for an addChart request
    """
    if not series:
        raise ValueError("At least one series is required")

    spec: Dict[str, Any] = {}
    if title:
        spec['title'] = title
    if subtitle:
        spec['subtitle'] = subtitle

    if not legend_position.endswith('_LEGEND'):
        legend_position = f"{legend_position}_LEGEND"

    if chart_type == 'PIE':
        pie_chart: Dict[str, Any] = {
            'legendPosition': legend_position,
            'series': _source(series[0]),
        }
        if domain is not None:
            pie_chart['domain'] = _source(domain)
        spec['pieChart'] = pie_chart
        return spec

    if chart_type not in BASIC_CHART_TYPES:
        raise ValueError(f"Unsupported chart type: {chart_type}")

    chart_series = []
    for i, grid_range in enumerate(series):
        entry = {'series': _source(grid_range)}
        axis = target_axes[i] if target_axes and i < len(target_axes) else None
        if axis:
            entry['targetAxis'] = axis
        chart_series.append(entry)

    basic_chart: Dict[str, Any] = {
        'chartType': chart_type,
        'legendPosition': legend_position,
        'headerCount': header_count,
        'series': chart_series,
    }
    if domain is not None:
        basic_chart['domains'] = [{'domain': _source(domain)}]

    axes = []
    if x_axis_title:
        axes.append({'position': 'BOTTOM_AXIS', 'title': x_axis_title})
    if y_axis_title:
        axes.append({'position': 'LEFT_AXIS', 'title': y_axis_title})
    if axes:
        basic_chart['axis'] = axes

    spec['basicChart'] = basic_chart
    return spec


def build_chart_position(anchor: Optional[GridRange]) -> Dict[str, Any]:
    """Overlay the chart at the anchor cell, or put it on a new sheet."""
    if anchor is None:
        return {'newSheet': True}
    return {
        'overlayPosition': {
            'anchorCell': {
                'sheetId': anchor.sheet_id,
                'rowIndex': anchor.start_row_index,
                'columnIndex': anchor.start_column_index,
            }
        }
    }
