"""Catmull-Rom to cubic Bezier path smoothing.

Operates purely on already-mapped pixel coordinates, so the same smoother
serves price lines, sparklines and portfolio aggregates.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from catalyst_chart.types import BezierSegment, Point, SmoothPath

DEFAULT_TENSION = 0.4


def catmull_rom_to_bezier(
    p0: Point,
    p1: Point,
    p2: Point,
    p3: Point,
    tension: float = DEFAULT_TENSION,
) -> tuple[Point, Point]:
    """Convert a Catmull-Rom span to cubic Bezier control points.

    :param p0: Point before the segment.
    :param p1: Segment start.
    :param p2: Segment end.
    :param p3: Point after the segment.
    :param tension: 0 gives straight segments, larger values curve more.
    :returns: Control point leaving ``p1`` and control point arriving at ``p2``.
    """
    k = tension / 6.0
    cp1 = Point(x=p1.x + (p2.x - p0.x) * k, y=p1.y + (p2.y - p0.y) * k)
    cp2 = Point(x=p2.x - (p3.x - p1.x) * k, y=p2.y - (p3.y - p1.y) * k)
    return cp1, cp2


class PathSmoother:
    """Turns an ordered point sequence into a C1-continuous Bezier path.

    Every anchor gets one tangent, derived from its neighbours (the first and
    last anchors reuse themselves as the missing neighbour). The outgoing and
    incoming control points at an anchor are that tangent added and
    subtracted, so adjacent segments always share tangent direction. When
    ``bounds`` is set, a tangent is shortened just enough for both of its
    control points to stay inside the rectangle, which keeps continuity
    intact where plain clamping would not.

    :param tension: Catmull-Rom tension.
    :param bounds: Optional ``(width, height)`` rectangle control points must stay in.
    :param dedupe_tolerance: Consecutive points closer than this on both axes collapse.
    """

    def __init__(
        self,
        tension: float = DEFAULT_TENSION,
        bounds: tuple[float, float] | None = None,
        dedupe_tolerance: float = 0.01,
    ) -> None:
        self.tension = tension
        self.bounds = bounds
        self.dedupe_tolerance = dedupe_tolerance

    def smooth(self, points: Sequence[Point]) -> SmoothPath:
        """Smooth a sequence of pixel points.

        :param points: Ordered points, typically ascending in x.
        :returns: Empty path for no points, a bare start for one point,
            otherwise one Bezier segment per consecutive pair.
        """
        anchors = self._collapse(points)
        if anchors.shape[0] == 0:
            return SmoothPath()

        start = Point(x=float(anchors[0, 0]), y=float(anchors[0, 1]))
        if anchors.shape[0] == 1:
            return SmoothPath(start=start, segments=(), svg=f"M {_fmt(start)}")

        tangents = self._tangents(anchors)
        segments = []
        for i in range(anchors.shape[0] - 1):
            cp1 = anchors[i] + tangents[i]
            cp2 = anchors[i + 1] - tangents[i + 1]
            segments.append(
                BezierSegment(
                    cp1=Point(x=float(cp1[0]), y=float(cp1[1])),
                    cp2=Point(x=float(cp2[0]), y=float(cp2[1])),
                    end=Point(x=float(anchors[i + 1, 0]), y=float(anchors[i + 1, 1])),
                )
            )
        return SmoothPath(start=start, segments=tuple(segments), svg=to_svg(start, segments))

    def _collapse(self, points: Sequence[Point]) -> NDArray[np.float64]:
        """Drop points that repeat their predecessor within tolerance."""
        kept: list[tuple[float, float]] = []
        for point in points:
            if kept:
                last_x, last_y = kept[-1]
                if (
                    abs(point.x - last_x) <= self.dedupe_tolerance
                    and abs(point.y - last_y) <= self.dedupe_tolerance
                ):
                    continue
            kept.append((point.x, point.y))
        return np.array(kept, dtype=np.float64).reshape(-1, 2)

    def _tangents(self, anchors: NDArray[np.float64]) -> NDArray[np.float64]:
        previous = np.vstack([anchors[:1], anchors[:-1]])
        following = np.vstack([anchors[1:], anchors[-1:]])
        tangents = (following - previous) * (self.tension / 6.0)
        if self.bounds is None:
            return tangents

        upper = np.array(self.bounds, dtype=np.float64)
        magnitude = np.abs(tangents)
        room = np.minimum(upper - anchors, anchors)
        with np.errstate(divide="ignore", invalid="ignore"):
            limits = np.where(magnitude > 0, room / magnitude, np.inf)
        scale = np.clip(np.min(limits, axis=1), 0.0, 1.0)
        return tangents * scale[:, None]


def to_svg(start: Point, segments: Sequence[BezierSegment]) -> str:
    """Render a path as SVG path data.

    A single segment is written as a straight line, since its control points
    lie on the chord.
    """
    parts = [f"M {_fmt(start)}"]
    if len(segments) == 1:
        parts.append(f"L {_fmt(segments[0].end)}")
        return " ".join(parts)
    for segment in segments:
        parts.append(f"C {_fmt(segment.cp1)} {_fmt(segment.cp2)} {_fmt(segment.end)}")
    return " ".join(parts)


def _fmt(point: Point) -> str:
    return f"{point.x:.2f},{point.y:.2f}"


# ---------------------------------------------------------------------------
# Curve Evaluation
# ---------------------------------------------------------------------------


def _bezier(t: float, a: float, b: float, c: float, d: float) -> float:
    u = 1.0 - t
    return u * u * u * a + 3 * u * u * t * b + 3 * u * t * t * c + t * t * t * d


def y_on_cubic_bezier(
    x: float,
    p1: Point,
    cp1: Point,
    cp2: Point,
    p2: Point,
    tolerance: float = 0.01,
    max_iterations: int = 50,
) -> float | None:
    """Y of a cubic Bezier segment at a given x, by bisection on t.

    :returns: Y at ``x``, or None when ``x`` lies outside the segment.
    """
    if x < min(p1.x, p2.x) or x > max(p1.x, p2.x):
        return None
    if p1.x == p2.x:
        return p1.y

    increasing = p2.x > p1.x
    lo, hi = 0.0, 1.0
    for _ in range(max_iterations):
        t = (lo + hi) / 2.0
        curve_x = _bezier(t, p1.x, cp1.x, cp2.x, p2.x)
        if abs(curve_x - x) < tolerance:
            return _bezier(t, p1.y, cp1.y, cp2.y, p2.y)
        if (curve_x < x) == increasing:
            lo = t
        else:
            hi = t

    # Fall back to the chord
    ratio = (x - p1.x) / (p2.x - p1.x)
    return p1.y + ratio * (p2.y - p1.y)


def y_on_path(path: SmoothPath, x: float) -> float | None:
    """Y of a smoothed path at a given x.

    :returns: Y at ``x``, or None if no segment spans ``x``.
    """
    if path.start is None:
        return None
    if not path.segments:
        return path.start.y if x == path.start.x else None

    segment_start = path.start
    for segment in path.segments:
        y = y_on_cubic_bezier(x, segment_start, segment.cp1, segment.cp2, segment.end)
        if y is not None:
            return y
        segment_start = segment.end
    return None


def y_on_smooth_curve(
    x: float,
    points: Sequence[Point],
    tension: float = DEFAULT_TENSION,
) -> float | None:
    """Y on the smooth curve through ``points`` at a given x."""
    if len(points) == 1:
        return points[0].y
    return y_on_path(PathSmoother(tension=tension).smooth(points), x)


__all__ = [
    "DEFAULT_TENSION",
    "catmull_rom_to_bezier",
    "PathSmoother",
    "to_svg",
    "y_on_cubic_bezier",
    "y_on_path",
    "y_on_smooth_curve",
]
