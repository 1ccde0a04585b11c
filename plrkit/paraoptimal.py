"""Piecewise linear regression in the dual (slope, intercept) plane.

Every point ``(x, y)`` with error bound ``epsilon`` constrains a line
``y = slope * x + intercept`` to a strip of the dual plane.  The strips of
the points seen so far intersect in a convex feasible region.  It is kept
as its leftmost vertex ``pl``, its rightmost vertex ``pr`` and the vertex
chains above and below.  A point that leaves the region empty closes the
current segment, and a new one starts at that point.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from plrkit.optimal_plr import Point, _div

__all__ = [
    "Line",
    "FeasibleRegion",
    "Segment",
    "CanonicalSegment",
    "ParaoptimalPLR",
    "make_segmentation",
    "make_segmentation_par",
    "check_for_epsilon",
]

RPoint = tuple[float, float]

# Inputs smaller than this are never split into chunks.
_PARALLEL_THRESHOLD = 1 << 15


@dataclass
class Line:
    """A line ``y = slope * x + intercept`` in the dual plane."""

    slope: float
    intercept: float

    def __post_init__(self) -> None:
        if self.slope == 0 and self.intercept == 0:
            raise ValueError("Line cannot be zero")

    @classmethod
    def from_point(cls, p: Point, lower: bool, epsilon: float) -> Line:
        """The dual line of the lower or upper error bound of ``p``."""
        line = cls.__new__(cls)
        line.slope = float(-p.x)
        line.intercept = float(p.y - epsilon if lower else p.y + epsilon)
        return line


class FeasibleRegion:
    """The convex set of (slope, intercept) pairs that fit every point so far.

    Built without points it is the degenerate region of a single point,
    with both extreme vertices at the origin.
    """

    def __init__(self, p1: Point | None = None, p2: Point | None = None, epsilon: float = 0) -> None:
        self.epsilon = epsilon
        self.pl: RPoint = (0.0, 0.0)
        self.pr: RPoint = (0.0, 0.0)
        self.points_upper: list[RPoint] = []
        self.points_lower: list[RPoint] = []
        if p1 is None and p2 is None:
            return
        if p1 is None or p2 is None:
            raise TypeError("a feasible region needs both points or neither")
        if p2.x == p1.x:
            raise ValueError("can not handle two same points")

        denom = float(p2.x) - float(p1.x)
        dy = p2.y - p1.y
        cross = p2.x * p1.y - p1.x * p2.y
        self.pl = (
            _div(dy - 2 * epsilon, denom),
            _div(cross + epsilon * (p2.x + p1.x), denom),
        )
        self.pr = (
            _div(dy + 2 * epsilon, denom),
            _div(cross - epsilon * (p2.x + p1.x), denom),
        )
        self.points_upper.append((_div(dy, denom), _div(cross + epsilon * (p2.x - p1.x), denom)))
        self.points_lower.append((_div(dy, denom), _div(cross - epsilon * (p2.x - p1.x), denom)))

    def _snapshot(self) -> FeasibleRegion:
        clone = FeasibleRegion(epsilon=self.epsilon)
        clone.pl = self.pl
        clone.pr = self.pr
        clone.points_upper = list(self.points_upper)
        clone.points_lower = list(self.points_lower)
        return clone

    def position(self, p: RPoint, line: Line) -> bool:
        """Whether ``p`` lies strictly above ``line``."""
        return p[1] > line.slope * p[0] + line.intercept

    def intersection(self, p1: RPoint, p2: RPoint, line: Line) -> RPoint:
        """Where the line through ``p1`` and ``p2`` is cut by ``line``."""
        a = _div(p2[1] - p1[1], p2[0] - p1[0])
        b = p1[1] - a * p1[0]
        x = _div(line.intercept - b, line.slope - a)
        return (x, line.slope * x + line.intercept)

    def intersect(self, p: Point, p_lower: bool = False, h_lower: bool = False) -> RPoint | None:
        """Clip one vertex chain with a bound of ``p``.

        ``p_lower`` picks the lower or upper bound line of the point and
        ``h_lower`` the lower or upper chain.  When they differ the vertices
        before the cut are dropped and the matching extreme vertex moves to
        the cut; when they agree the cut ends the chain.  Returns the last
        cut found, or None if the line missed the chain.
        """
        line = Line.from_point(p, p_lower, self.epsilon)
        remove_before = p_lower != h_lower
        if h_lower:
            return self._clip_lower(line, remove_before)
        return self._clip_upper(line, remove_before)

    def _clip_lower(self, line: Line, remove_before: bool) -> RPoint | None:
        result: RPoint | None = None
        pre = self.pr
        pos_pre = self.position(pre, line)
        pos_cur = pos_pre
        for i, cur in enumerate(self.points_lower):
            pos_cur = self.position(cur, line)
            if pos_cur == pos_pre:
                pre = cur
                continue
            result = self.intersection(pre, cur, line)
            if remove_before:
                del self.points_lower[:i]
                self.pr = result
            else:
                del self.points_lower[i:]
                self.points_lower.append(result)
            break

        if self.position(self.pl, line) != pos_cur:
            result = self.intersection(pre, self.pl, line)
            if remove_before:
                self.points_lower.clear()
                self.pr = result
            else:
                self.points_lower.append(result)
        return result

    def _clip_upper(self, line: Line, remove_before: bool) -> RPoint | None:
        result: RPoint | None = None
        pre = self.pl
        pos_pre = self.position(pre, line)
        # The chain is edited in place while it is walked, so the walk
        # follows the index against the current length.
        i = 0
        while i < len(self.points_upper):
            cur = self.points_upper[i]
            if self.position(cur, line) == pos_pre:
                pre = cur
            else:
                result = self.intersection(pre, cur, line)
                if remove_before:
                    del self.points_upper[:i]
                    self.pl = result
                else:
                    del self.points_upper[i:]
                    self.points_upper.append(result)
            i += 1

        if self.position(self.pr, line) != pos_pre:
            result = self.intersection(pre, self.pr, line)
            if remove_before:
                self.points_upper.clear()
                self.pl = result
            else:
                self.points_upper.append(result)
        return result

    def add_point(self, p: Point) -> bool:
        """Narrow the region by ``p``; False if ``p`` lies outside of it."""
        eps = self.epsilon
        if (
            self.pl[0] * p.x + self.pl[1] > p.y + eps
            or self.pr[0] * p.x + self.pr[1] < p.y - eps
        ):
            return False
        if self.pr[0] * p.x + self.pr[1] > p.y + eps:
            self.intersect(p, False, True)
            self.intersect(p, False, False)
        if self.pl[0] * p.x + self.pl[1] < p.y - eps:
            self.intersect(p, True, False)
            self.intersect(p, True, True)
        return True

    def feasible_point(self) -> RPoint:
        """The midpoint of the leftmost and rightmost vertices."""
        return ((self.pl[0] + self.pr[0]) / 2, (self.pl[1] + self.pr[1]) / 2)


@dataclass
class Segment:
    """A fitted line over the keys from ``first_x`` to ``last_x``."""

    slope: float
    intercept: float
    first_x: Any
    last_x: Any


@dataclass
class CanonicalSegment:
    """The feasible region of a closed segment with its key range."""

    region: FeasibleRegion
    first_x: Any
    last_x: Any

    def one_point(self) -> bool:
        """Whether the segment was built on a single point."""
        return self.region.pl == (0, 0) and self.region.pr == (0, 0)

    def canonical_segment(self) -> Segment:
        """A line taken from inside the feasible region."""
        if self.one_point():
            return Segment(0.0, 0.0, self.first_x, self.last_x)
        slope, intercept = self.region.feasible_point()
        return Segment(slope, intercept, self.first_x, self.last_x)


class ParaoptimalPLR:
    """Grows one segment at a time from points given in order of x."""

    def __init__(self, epsilon: float) -> None:
        if epsilon < 0:
            raise ValueError("epsilon cannot be negative")
        self.epsilon = epsilon
        self._first_x: Any = 0
        self._first_y: Any = 0
        self._last_x: Any = 0
        self._points = 0
        self._region = FeasibleRegion()

    def add_point(self, x: Any, y: Any) -> bool:
        """Add a point to the segment; False if it does not fit.

        After a refusal the model is empty and the next point starts a new
        segment.
        """
        self._last_x = x
        p = Point(x, y)
        if self._points == 0:
            self._first_x = x
            self._first_y = y
            self._points = 1
            self._region = FeasibleRegion()
            return True
        if self._points == 1:
            self._points = 2
            self._region = FeasibleRegion(Point(self._first_x, self._first_y), p, self.epsilon)
            return True
        if self._region.add_point(p):
            self._points += 1
            return True
        self._points = 0
        return False

    def get_segment(self) -> CanonicalSegment:
        """A snapshot of the current segment."""
        return CanonicalSegment(self._region._snapshot(), self._first_x, self._last_x)

    def reset(self) -> None:
        """Forget the current segment."""
        self._points = 0


def _successor(key: Any) -> Any:
    if isinstance(key, float):
        return math.nextafter(key, math.inf)
    return key + 1


def make_segmentation(
    n: int, epsilon: float, keys: Sequence[Any], start: int = 0, end: int | None = None
) -> list[CanonicalSegment]:
    """Segment ``keys[start:end]`` against their positions.

    ``n`` is the length of the whole key sequence.  At the end of a run of
    equal keys the next key up is mapped to the run's last position.  The
    chunk that reaches ``n`` also maps the key after the last one to ``n``.
    """
    if end is None:
        end = n
    if end <= start:
        return []

    plr = ParaoptimalPLR(int(epsilon))
    segments: list[CanonicalSegment] = []

    def add(x: Any, y: int) -> None:
        if not plr.add_point(x, y):
            segments.append(plr.get_segment())
            plr.add_point(x, y)

    add(keys[start], start)
    triples = zip(keys[start:end - 2], keys[start + 1:end - 1], keys[start + 2:end])
    for i, (previous, key, following) in enumerate(triples, start + 1):
        if key == previous:
            successor = _successor(key)
            if successor < following:
                add(successor, i)
        else:
            add(key, i)
    if end >= start + 2 and keys[end - 1] != keys[end - 2]:
        add(keys[end - 1], end - 1)
    if end == n:
        add(keys[n - 1] + 1, n)

    segments.append(plr.get_segment())
    return segments


def make_segmentation_par(
    n: int, epsilon: float, keys: Sequence[Any], parallelism: int = 16
) -> list[CanonicalSegment]:
    """Segment the keys in ``parallelism`` chunks and join the results.

    Small inputs, or a parallelism of one, are segmented in a single pass.
    A chunk starting inside a run of equal keys skips past the run.
    """
    chunk_size = n // parallelism
    if parallelism == 1 or n < _PARALLEL_THRESHOLD:
        return make_segmentation(n, epsilon, keys)

    segments: list[CanonicalSegment] = []
    for i in range(parallelism):
        first = i * chunk_size
        last = n if i == parallelism - 1 else first + chunk_size
        if first > 0:
            while first < last and keys[first] == keys[first - 1]:
                first += 1
            if first == last:
                continue
        segments.extend(make_segmentation(n, epsilon, keys, first, last))
    return segments


def check_for_epsilon(
    data: Sequence[Any],
    segments: Sequence[Segment],
    begin: int = 0,
    end: int = 5,
    epsilon: float = 0.1,
) -> list[tuple[int, float]]:
    """Print the prediction for each key and report residuals per segment.

    Residuals are measured against each key's index in ``data``.  Returns
    ``(segment index, max residual)`` for every segment that was closed.
    """
    end_x = segments[end].last_x
    index = begin
    seg = segments[index]
    max_residual = sys.float_info.min
    report: list[tuple[int, float]] = []

    for i, key in enumerate(data):
        if key > end_x:
            break
        if key == seg.last_x:
            if i <= 1000:
                print(f"The slope is {seg.slope:f} and the intercept is {seg.intercept:f}")
                print(f"The first_x is {float(seg.first_x):f} and the last_x is {float(seg.last_x):f}")
            if max_residual > epsilon + 1:
                print(f"The max_residual for Segment {index} is {max_residual:f}")
            report.append((index, max_residual))
            max_residual = sys.float_info.min
            index += 1
            if index >= len(segments):
                break
            seg = segments[index]
        predicted = seg.slope * key + seg.intercept
        max_residual = max(max_residual, abs(i - predicted))
        print(f"The predicted value is {predicted:f} and the actual value is {i}")
    print()
    return report