"""Optimal piecewise linear regression from sorted keys to their positions.

Each key is paired with its rank in the input, so a fitted segment maps a key
to an approximate position within ``epsilon`` of the true one.  The fitting
itself is the hull-based procedure of :mod:`plrkit.optimal_plr`.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from plrkit.optimal_plr import Point, _intercept, _intersection, _Window

__all__ = [
    "KeySegment",
    "KeyedOptimalPLR",
    "make_segmentation",
    "translate",
    "make_segmentation_par",
    "check_for_epsilon",
]

# Inputs smaller than this are never split into chunks.
_PARALLEL_THRESHOLD = 1 << 15
# Smallest chunk handed to one worker.
_MIN_CHUNK = 1000


@dataclass
class KeySegment:
    """A linear model mapping keys from ``first_x`` onwards to positions.

    Segments order by their first key and compare against plain numbers.
    """

    slope: float = 0.0
    intercept: float = 0.0
    first_x: Any = 0

    def key(self) -> Any:
        """The first key covered by the segment."""
        return self.first_x

    def __call__(self, k: float) -> float:
        """Approximate position of key ``k``."""
        return self.slope * k + self.intercept

    def __lt__(self, other: object) -> bool:
        if isinstance(other, KeySegment):
            return self.key() < other.key()
        if isinstance(other, (int, float)):
            return self.key() < other
        return NotImplemented

    def __gt__(self, other: object) -> bool:
        if isinstance(other, KeySegment):
            return self.key() > other.key()
        if isinstance(other, (int, float)):
            return self.key() > other
        return NotImplemented


def _close(window: _Window, first_x: Any) -> KeySegment:
    origin = _intersection(window.sa, window.sc, window.sb, window.sd)
    slope = (window.rho_min + window.rho_max) / 2
    return KeySegment(slope, _intercept(origin, slope), first_x)


class KeyedOptimalPLR:
    """Splits a sorted key sequence into segments with error bound ``epsilon``."""

    def __init__(self, epsilon: int) -> None:
        self.epsilon = int(epsilon)

    def segment_data(self, data: Sequence[Any]) -> list[KeySegment]:
        """Fit each key against its index and return the segments in order."""
        segments: list[KeySegment] = []
        points = (Point(x, i) for i, x in enumerate(data))
        first = next(points, None)
        if first is None:
            return segments

        while True:
            second = next(points, None)
            if second is None:
                # A lone trailing key maps exactly onto its own position.
                segments.append(KeySegment(0.0, float(first.y), first.x))
                return segments
            window = _Window(self.epsilon, first, second)
            for s in points:
                if not window.admits(s):
                    segments.append(_close(window, first.x))
                    first = s
                    break
                window.extend(s)
            else:
                segments.append(_close(window, first.x))
                return segments


def make_segmentation(n: int, epsilon: int, data: Sequence[Any]) -> list[KeySegment]:
    """Segment all of ``data``; ``n`` is its length."""
    return KeyedOptimalPLR(epsilon).segment_data(data)


def translate(segments: Sequence[KeySegment], first: int, last: int) -> list[Any]:
    """The first keys of ``segments[first:last]``."""
    return [seg.first_x for seg in segments[first:last]]


def make_segmentation_par(
    n: int, epsilon: int, data: Sequence[Any], parallelism: int = 16
) -> list[KeySegment]:
    """Segment the first ``n`` keys chunk by chunk and join the results.

    Small inputs, or a parallelism of one, are segmented in a single pass.
    Each chunk is fitted on its own, so positions restart at zero in every
    chunk.
    """
    chunk_size = max(n // parallelism, _MIN_CHUNK)
    if parallelism == 1 or n < _PARALLEL_THRESHOLD:
        return make_segmentation(n, epsilon, data)

    plr = KeyedOptimalPLR(epsilon)
    segments: list[KeySegment] = []
    for i in range(parallelism):
        start = i * chunk_size
        end = n if i == parallelism - 1 else (i + 1) * chunk_size
        if start < n:
            segments.extend(plr.segment_data(data[start:end]))
    return segments


def _next_first_x(segments: Sequence[KeySegment], index: int) -> Any:
    return segments[index + 1].first_x if index + 1 < len(segments) else math.inf


def check_for_epsilon(
    data: Sequence[Any],
    segments: Sequence[KeySegment],
    first: int = 0,
    last: int = 5,
    epsilon: float = 2,
) -> list[tuple[int, float]]:
    """Measure the worst residual of each segment against key positions.

    Segments whose worst residual exceeds ``epsilon + 1`` are printed.
    Returns ``(segment index, max residual)`` for every segment closed.
    """
    end = segments[last].first_x
    index = first
    seg = segments[index]
    last_x = _next_first_x(segments, index)
    max_residual = sys.float_info.min
    report: list[tuple[int, float]] = []

    for i, key in enumerate(data):
        if key > end:
            break
        if key == last_x:
            if max_residual > epsilon + 1:
                print(f"The max_residual for Segment {index} is {max_residual:f}")
                print(f"The {index}th segment is ({float(seg.first_x):f},{float(last_x):f}) ")
                print(f"The slope is {seg.slope:f} and the intercept is {seg.intercept:f}")
            report.append((index, max_residual))
            max_residual = sys.float_info.min
            index += 1
            if index >= len(segments):
                break
            seg = segments[index]
            last_x = _next_first_x(segments, index)
        max_residual = max(max_residual, abs(i - seg(key)))
    return report