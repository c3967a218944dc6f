"""Trend chart geometry."""

from pesopro.chart.curve import (
    ChartGeometry,
    ChartStats,
    CurveBuilder,
    Viewport,
    active_index,
    merge_live_rate,
    smooth_path,
)

__all__ = [
    "ChartGeometry",
    "ChartStats",
    "CurveBuilder",
    "Viewport",
    "active_index",
    "merge_live_rate",
    "smooth_path",
]
