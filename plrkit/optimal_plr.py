"""Optimal piecewise linear regression over two-dimensional points.

Points are fitted by a sequence of segments, each one a line that keeps every
point it covers within ``epsilon`` of its prediction.  A segment is opened on
two points and grown with the convex hulls of the upper and lower error
bounds until a point falls outside the feasible slope range.
"""

from __future__ import annotations

import math
import sys
from collections import deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

__all__ = [
    "Point",
    "Segment",
    "OptimalPLR",
    "translate",
    "make_segmentation",
    "make_segmentation_par",
    "check_for_epsilon",
]

# Inputs smaller than this are never split into chunks.
_PARALLEL_THRESHOLD = 1 << 15
# Smallest chunk handed to one worker.
_MIN_CHUNK = 1000


@dataclass(frozen=True)
class Point:
    """A point in the plane."""

    x: float = 0.0
    y: float = 0.0


@dataclass
class Segment:
    """A linear model covering the points from ``first_x`` onwards.

    ``first_x`` holds the integral part of the first key the segment covers.
    Segments order by that key and compare against plain numbers.
    """

    slope: float = 0.0
    intercept: float = 0.0
    first_x: float = 0.0
    seg_id: int = 0

    def key(self) -> int:
        """The integral first key of the segment."""
        return int(self.first_x)

    def __call__(self, k: float) -> float:
        """Approximate position of key ``k``."""
        return self.slope * k + self.intercept

    def __lt__(self, other: object) -> bool:
        if isinstance(other, Segment):
            return self.key() < other.key()
        if isinstance(other, (int, float)):
            return self.key() < other
        return NotImplemented

    def __gt__(self, other: object) -> bool:
        if isinstance(other, Segment):
            return self.key() > other.key()
        if isinstance(other, (int, float)):
            return self.key() > other
        return NotImplemented


def _div(numerator: float, denominator: float) -> float:
    """Floating division that yields inf or nan instead of raising."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def _slope(p1: Point, p2: Point) -> float:
    if p2.x == p1.x:
        return math.inf
    return (p2.y - p1.y) / (p2.x - p1.x)


def _intercept(p: Point, slope: float) -> float:
    return p.y - slope * p.x


def _intersection(sa: Point, sc: Point, sb: Point, sd: Point) -> Point:
    """Crossing point of line sa-sc with line sb-sd; the origin if parallel."""
    a1 = _slope(sa, sc)
    b1 = _intercept(sa, a1)
    a2 = _slope(sb, sd)
    b2 = _intercept(sb, a2)
    if a1 == a2:
        return Point(0.0, 0.0)
    x = _div(b2 - b1, a1 - a2)
    return Point(x, a1 * x + b1)


def _is_redundant(p1: Point, p2: Point, p3: Point, upper: bool) -> bool:
    slope1 = _div(p2.y - p1.y, p2.x - p1.x)
    slope2 = _div(p3.y - p2.y, p3.x - p2.x)
    return slope1 >= slope2 if upper else slope1 <= slope2


def _push_hull(hull: deque[Point], s: Point, upper: bool) -> None:
    while len(hull) >= 2 and _is_redundant(hull[-2], hull[-1], s, upper):
        hull.pop()
    hull.append(s)


def _drop_before(hull: deque[Point], x: float) -> None:
    while hull and hull[0].x < x:
        hull.popleft()


def _integral(x: float) -> float:
    return float(int(x))


class _Window:
    """The feasible slope range of the segment being grown."""

    def __init__(self, epsilon: float, first: Point, second: Point) -> None:
        self.epsilon = epsilon
        self.sa = Point(first.x, first.y + epsilon)
        self.sc = Point(second.x, second.y - epsilon)
        self.sb = Point(first.x, first.y - epsilon)
        self.sd = Point(second.x, second.y + epsilon)
        self.rho_max = _slope(self.sb, self.sd)
        self.rho_min = _slope(self.sa, self.sc)
        self.upper: deque[Point] = deque([self.sa, self.sd])
        self.lower: deque[Point] = deque([self.sb, self.sc])

    def admits(self, s: Point) -> bool:
        eps = self.epsilon
        return (
            s.y + eps >= self.rho_min * (s.x - self.sc.x) + self.sc.y
            and s.y - eps <= self.rho_max * (s.x - self.sd.x) + self.sd.y
        )

    def extend(self, s: Point) -> None:
        s_upper = Point(s.x, s.y + self.epsilon)
        s_lower = Point(s.x, s.y - self.epsilon)
        tighten_min = _slope(s_lower, self.sa) > self.rho_min
        tighten_max = _slope(s_upper, self.sb) < self.rho_max

        if tighten_min:
            self.sa = max(self.upper, key=lambda p: _slope(p, s_lower))
            self.sc = s_lower
            _drop_before(self.upper, self.sa.x)
            self.rho_min = _slope(self.sa, self.sc)

        if tighten_max:
            self.sb = min(self.lower, key=lambda p: _slope(p, s_upper))
            self.sd = s_upper
            _drop_before(self.lower, self.sb.x)
            self.rho_max = _slope(self.sb, self.sd)

        if tighten_max:
            _push_hull(self.upper, s_upper, upper=True)
            self.sd = self.upper[-1]
        if tighten_min:
            _push_hull(self.lower, s_lower, upper=False)
            self.sc = self.lower[-1]

    def segment(self, first_x: float, seg_id: int) -> Segment:
        origin = _intersection(self.sa, self.sc, self.sb, self.sd)
        slope = (self.rho_min + self.rho_max) / 2
        return Segment(slope, _intercept(origin, slope), _integral(first_x), seg_id)


class OptimalPLR:
    """Splits a point sequence into segments with error bound ``epsilon``."""

    def __init__(self, epsilon: float) -> None:
        self.epsilon = float(epsilon)

    def segment_data(self, points: Iterable[Point]) -> list[Segment]:
        """Fit the points, ordered by x, and return the segments in order."""
        segments: list[Segment] = []
        it = iter(points)
        first = next(it, None)
        if first is None:
            return segments

        while True:
            second = next(it, None)
            if second is None:
                # A segment holding a single point predicts that point exactly.
                segments.append(Segment(0.0, first.y, _integral(first.x), len(segments)))
                return segments
            window = _Window(self.epsilon, first, second)
            for s in it:
                if not window.admits(s):
                    segments.append(window.segment(first.x, len(segments)))
                    first = s
                    break
                window.extend(s)
            else:
                segments.append(window.segment(first.x, len(segments)))
                return segments


def translate(segments: Sequence[Segment], first: int, last: int) -> list[Point]:
    """Turn ``segments[first:last]`` into points (first_x, seg_id)."""
    return [Point(seg.first_x, seg.seg_id) for seg in segments[first:last]]


def make_segmentation(n: int, epsilon: float, points: Sequence[Point]) -> list[Segment]:
    """Segment all of ``points``; ``n`` is their count."""
    return OptimalPLR(epsilon).segment_data(points)


def make_segmentation_par(
    n: int, epsilon: float, points: Sequence[Point], parallelism: int = 16
) -> list[Segment]:
    """Segment the first ``n`` points chunk by chunk and join the results.

    Small inputs, or a parallelism of one, are segmented in a single pass.
    Each chunk is fitted on its own, so segment ids restart in every chunk.
    """
    chunk_size = max(n // parallelism, _MIN_CHUNK)
    if parallelism == 1 or n < _PARALLEL_THRESHOLD:
        return make_segmentation(n, epsilon, points)

    plr = OptimalPLR(epsilon)
    segments: list[Segment] = []
    for i in range(parallelism):
        start = i * chunk_size
        end = n if i == parallelism - 1 else (i + 1) * chunk_size
        if start < n:
            segments.extend(plr.segment_data(points[start:end]))
    return segments


def _next_first_x(segments: Sequence[Segment], index: int) -> float:
    return segments[index + 1].first_x if index + 1 < len(segments) else math.inf


def check_for_epsilon(
    data: Sequence[Point], segments: Sequence[Segment], first: int = 0, last: int = 5
) -> list[tuple[int, float]]:
    """Print the prediction of each point and the worst residual per segment.

    Residuals are measured against the point's index in ``data``.  Returns
    ``(segment index, max residual)`` for every segment that was closed.
    """
    end = segments[last].first_x
    index = first
    seg = segments[index]
    last_x = _next_first_x(segments, index)
    max_residual = sys.float_info.min
    report: list[tuple[int, float]] = []

    for i, p in enumerate(data):
        if p.x > end:
            break
        if p.x == last_x:
            print(f"The {index}th segment is ({seg.first_x:f},{last_x:f}) ")
            print(f"The slope is {seg.slope:f} and the intercept is {seg.intercept:f}")
            print(f"The max_residual for Segment {index} is {max_residual:f}")
            report.append((index, max_residual))
            max_residual = sys.float_info.min
            index += 1
            if index >= len(segments):
                break
            seg = segments[index]
            last_x = _next_first_x(segments, index)
        approx = seg(p.x)
        residual = abs(i - approx)
        print(f"The real position is {p.y:f} and the approximate position is {approx:f}")
        print(f"The residual is {residual:f} for {i}th element")
        max_residual = max(max_residual, residual)
    return report