"""Trend chart geometry: normalization, smooth curve and interaction mapping.

Pure functions of the series and the viewport. The series always ends at
"now": the last historical point's rate is replaced by the live rate, and
an empty series becomes a single live point.

Curve construction (per pair of consecutive points P[i-1] -> P[i]):
    start control = cp(P[i-1], prev=P[i-2], next=P[i])
    end control   = cp(P[i],   prev=P[i-1], next=P[i+1], reversed)
    cp(c, p, n)   = c + smoothing * |n - p| * (cos a, sin a),  a = atan2(n - p)
A missing neighbor is replaced by the point itself. Because each interior
point's two control points lie on one line through it, the joined cubic
segments have no corners.
"""

import math
from dataclasses import dataclass, field
from datetime import date

from pesopro.models import HistoryPoint, PlotPoint

DEFAULT_SMOOTHING = 0.2
DEFAULT_INTERACTION_PADDING = 10.0
#: Share of the plot band kept empty above the max and below the min
VERTICAL_MARGIN_RATIO = 0.15
GRID_RATIOS = (0.2, 0.4, 0.6, 0.8)
LIVE_LABEL = "Live Rate"


@dataclass(frozen=True)
class Viewport:
    """Chart drawing area in pixels."""

    width: float = 300.0
    height: float = 180.0
    padding: float = 15.0


@dataclass(frozen=True)
class ChartStats:
    low: float
    high: float
    trend: float  # Percent change first -> last, sign preserved

    @property
    def is_up(self) -> bool:
        return self.trend >= 0


@dataclass(frozen=True)
class CubicSegment:
    """One cubic Bezier segment ending at ``end``."""

    control_start: PlotPoint
    control_end: PlotPoint
    end: PlotPoint


@dataclass(frozen=True)
class ChartGeometry:
    """Everything needed to draw the chart and its summary."""

    series: list[HistoryPoint]
    points: list[PlotPoint]
    line_path: str
    area_path: str
    stats: ChartStats
    active_index: int
    active_point: PlotPoint
    active_rate: float
    active_label: str
    grid_lines: list[float] = field(default_factory=list)
    viewport: Viewport = field(default_factory=Viewport)


def merge_live_rate(
    points: list[HistoryPoint], current_rate: float, today: date
) -> list[HistoryPoint]:
    """Override the last point with the live rate, or synthesize one point."""
    if not points:
        return [HistoryPoint(date=today.isoformat(), rate=current_rate)]
    return [*points[:-1], HistoryPoint(date=points[-1].date, rate=current_rate)]


def trend_percent(points: list[HistoryPoint]) -> float:
    """Percentage change from the first to the last rate."""
    if not points:
        return 0.0
    first, last = points[0].rate, points[-1].rate
    if first == 0:
        return 0.0
    return (last - first) / first * 100


def compute_stats(points: list[HistoryPoint]) -> ChartStats:
    if not points:
        return ChartStats(low=0.0, high=0.0, trend=0.0)
    rates = [p.rate for p in points]
    return ChartStats(low=min(rates), high=max(rates), trend=trend_percent(points))


def normalize_x(index: int, count: int, viewport: Viewport) -> float:
    """Spread indices evenly across the padded width; one point sits centered."""
    if count <= 1:
        return viewport.width / 2
    span = viewport.width - viewport.padding * 2
    return viewport.padding + (index / (count - 1)) * span


def normalize_y(value: float, low: float, high: float, viewport: Viewport) -> float:
    """Map a rate into the plot band, inverted so higher rates sit higher."""
    value_range = (high - low) or 1
    display_height = viewport.height - viewport.padding * 2
    vertical_margin = display_height * VERTICAL_MARGIN_RATIO
    available = display_height - vertical_margin * 2
    baseline = viewport.height - viewport.padding - vertical_margin
    return baseline - ((value - low) / value_range) * available


def to_plot_points(points: list[HistoryPoint], viewport: Viewport) -> list[PlotPoint]:
    stats = compute_stats(points)
    return [
        PlotPoint(
            x=normalize_x(i, len(points), viewport),
            y=normalize_y(p.rate, stats.low, stats.high, viewport),
        )
        for i, p in enumerate(points)
    ]


def control_point(
    current: PlotPoint,
    previous: PlotPoint | None,
    following: PlotPoint | None,
    reverse: bool = False,
    smoothing: float = DEFAULT_SMOOTHING,
) -> PlotPoint:
    """Control point for ``current`` along the direction previous -> following."""
    p = previous if previous is not None else current
    n = following if following is not None else current
    dx, dy = n.x - p.x, n.y - p.y
    angle = math.atan2(dy, dx) + (math.pi if reverse else 0.0)
    length = math.hypot(dx, dy) * smoothing
    return PlotPoint(
        x=current.x + math.cos(angle) * length,
        y=current.y + math.sin(angle) * length,
    )


def smooth_segments(
    points: list[PlotPoint], smoothing: float = DEFAULT_SMOOTHING
) -> list[CubicSegment]:
    """Cubic segments joining consecutive points."""
    segments = []
    for i in range(1, len(points)):
        before_previous = points[i - 2] if i >= 2 else None
        following = points[i + 1] if i + 1 < len(points) else None
        segments.append(
            CubicSegment(
                control_start=control_point(
                    points[i - 1], before_previous, points[i], smoothing=smoothing
                ),
                control_end=control_point(
                    points[i], points[i - 1], following, reverse=True, smoothing=smoothing
                ),
                end=points[i],
            )
        )
    return segments


def _fmt(value: float) -> str:
    return f"{round(value, 3):g}"


def _pair(point: PlotPoint) -> str:
    return f"{_fmt(point.x)},{_fmt(point.y)}"


def smooth_path(points: list[PlotPoint], smoothing: float = DEFAULT_SMOOTHING) -> str:
    """SVG path data for the open curve through ``points``."""
    if not points:
        return ""
    parts = [f"M {_pair(points[0])}"]
    for segment in smooth_segments(points, smoothing):
        parts.append(
            f"C {_pair(segment.control_start)} {_pair(segment.control_end)} {_pair(segment.end)}"
        )
    return " ".join(parts)


def area_path(line_path: str, viewport: Viewport) -> str:
    """Close the curve along the bottom edge for the area fill."""
    right = _fmt(viewport.width - viewport.padding)
    left = _fmt(viewport.padding)
    bottom = _fmt(viewport.height)
    return f"{line_path} L {right},{bottom} L {left},{bottom} Z"


def active_index(
    client_x: float,
    rect_left: float,
    rect_width: float,
    count: int,
    padding: float = DEFAULT_INTERACTION_PADDING,
) -> int:
    """Map a horizontal pointer position to the nearest sample index."""
    if count <= 1:
        return 0
    effective_width = rect_width - padding * 2
    if effective_width <= 0:
        return 0
    relative = max(0.0, min(client_x - rect_left - padding, effective_width))
    # Half rounds up, not to even
    index = math.floor((relative / effective_width) * (count - 1) + 0.5)
    return max(0, min(index, count - 1))


def grid_lines(viewport: Viewport) -> list[float]:
    """y positions of the dashed horizontal guides."""
    band = viewport.height - viewport.padding * 2
    return [viewport.padding + ratio * band for ratio in GRID_RATIOS]


def format_point_label(iso_date: str) -> str:
    """``"2024-10-05"`` -> ``"Oct 5"``."""
    try:
        day = date.fromisoformat(iso_date[:10])
    except ValueError:
        return iso_date
    return f"{day:%b} {day.day}"


class CurveBuilder:
    """Builds ChartGeometry for a viewport and smoothing factor."""

    def __init__(
        self,
        viewport: Viewport | None = None,
        smoothing: float = DEFAULT_SMOOTHING,
        interaction_padding: float = DEFAULT_INTERACTION_PADDING,
    ) -> None:
        self._viewport = viewport or Viewport()
        self._smoothing = smoothing
        self._interaction_padding = interaction_padding

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    def build(
        self,
        history: list[HistoryPoint],
        current_rate: float,
        today: date,
        selected_index: int | None = None,
    ) -> ChartGeometry:
        """Geometry for ``history`` ending at the live rate.

        ``selected_index`` is the hovered sample; None means no hover, in
        which case the last (live) point is highlighted.
        """
        series = merge_live_rate(history, current_rate, today)
        stats = compute_stats(series)
        points = to_plot_points(series, self._viewport)
        line = smooth_path(points, self._smoothing)

        last = len(series) - 1
        index = last if selected_index is None else max(0, min(selected_index, last))
        label = LIVE_LABEL if selected_index is None else format_point_label(series[index].date)

        return ChartGeometry(
            series=series,
            points=points,
            line_path=line,
            area_path=area_path(line, self._viewport),
            stats=stats,
            active_index=index,
            active_point=points[index],
            active_rate=series[index].rate,
            active_label=label,
            grid_lines=grid_lines(self._viewport),
            viewport=self._viewport,
        )

    def index_at(self, client_x: float, rect_left: float, rect_width: float, count: int) -> int:
        return active_index(
            client_x, rect_left, rect_width, count, padding=self._interaction_padding
        )
