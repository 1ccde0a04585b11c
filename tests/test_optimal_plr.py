import bisect
import sys

import pytest

from plrkit.optimal_plr import (
    OptimalPLR,
    Point,
    Segment,
    check_for_epsilon,
    make_segmentation,
    make_segmentation_par,
    translate,
)


def line_points(count, slope=1.0, intercept=0.0):
    return [Point(float(i), slope * i + intercept) for i in range(count)]


def test_empty_input_gives_no_segments():
    assert OptimalPLR(1.0).segment_data([]) == []


def test_collinear_points_fit_one_segment():
    points = line_points(10, slope=2.0, intercept=1.0)
    segments = OptimalPLR(1.0).segment_data(points)
    assert len(segments) == 1
    seg = segments[0]
    assert seg.slope == pytest.approx(2.0)
    assert seg.intercept == pytest.approx(1.0)
    assert seg.first_x == 0.0
    assert seg.seg_id == 0


def test_collinear_points_within_epsilon():
    epsilon = 1.0
    points = line_points(50, slope=0.5, intercept=3.0)
    (seg,) = OptimalPLR(epsilon).segment_data(points)
    assert all(abs(seg(p.x) - p.y) <= epsilon for p in points)


def test_point_out_of_bounds_opens_new_segment():
    points = [Point(0, 0), Point(1, 1), Point(2, 5), Point(3, 6)]
    segments = OptimalPLR(0.0).segment_data(points)
    assert [s.first_x for s in segments] == [0.0, 2.0]
    assert [s.seg_id for s in segments] == [0, 1]
    assert segments[0].slope == pytest.approx(1.0)
    assert segments[0](1.0) == pytest.approx(1.0)


def test_break_on_last_point_gives_single_point_segment():
    points = [Point(0, 0), Point(1, 1), Point(2, 5)]
    segments = OptimalPLR(0.0).segment_data(points)
    assert len(segments) == 2
    assert segments[1].first_x == 2.0
    assert segments[1](2.0) == pytest.approx(5.0)


def test_single_point_input():
    segments = OptimalPLR(1.0).segment_data([Point(4.0, 7.0)])
    assert len(segments) == 1
    assert segments[0](4.0) == pytest.approx(7.0)


def test_first_x_keeps_integral_part():
    points = [Point(2.7, 0.0), Point(3.5, 1.0), Point(4.2, 2.0)]
    segments = OptimalPLR(1.0).segment_data(points)
    assert segments[0].first_x == 2.0
    assert segments[0].key() == 2


def test_segment_ordering_against_numbers_and_segments():
    segments = [Segment(first_x=float(x)) for x in (0, 5, 10)]
    assert segments[1] < 6
    assert 6 < segments[2]
    assert segments[0] < segments[1]
    assert sorted(reversed(segments)) == segments
    assert bisect.bisect_right(segments, 7) == 2


def test_segment_call_is_linear():
    seg = Segment(slope=3.0, intercept=-1.0, first_x=0.0)
    assert seg(0.0) == -1.0
    assert seg(2.0) - seg(1.0) == pytest.approx(seg.slope)


def test_translate_maps_first_x_and_id():
    segments = [Segment(1.0, 0.0, float(x), i) for i, x in enumerate((0, 4, 9, 15))]
    points = translate(segments, 1, 3)
    assert points == [Point(4.0, 1), Point(9.0, 2)]
    assert translate(segments, 2, 2) == []


def test_make_segmentation_matches_class():
    points = [Point(0, 0), Point(1, 1), Point(2, 5), Point(3, 6)]
    assert make_segmentation(len(points), 0.0, points) == OptimalPLR(0.0).segment_data(points)


def test_par_on_small_input_is_sequential():
    points = line_points(500)
    assert make_segmentation_par(500, 1.0, points, 16) == make_segmentation(500, 1.0, points)


def test_par_with_single_worker_is_sequential():
    points = line_points(1 << 15)
    result = make_segmentation_par(len(points), 1.0, points, 1)
    assert len(result) == 1


def test_par_fits_each_chunk_separately():
    n = 1 << 15
    points = line_points(n)
    parallelism = 16
    result = make_segmentation_par(n, 1.0, points, parallelism)
    chunk = n // parallelism
    assert [s.first_x for s in result] == [float(i * chunk) for i in range(parallelism)]
    assert all(s.seg_id == 0 for s in result)


def test_check_for_epsilon_reports_closed_segments(capsys):
    segments = [Segment(1.0, 0.0, float(x), i) for i, x in enumerate((0, 2, 4, 6))]
    data = [Point(float(i), float(i)) for i in range(10)]
    report = check_for_epsilon(data, segments, 0, 2)
    assert report == [(0, sys.float_info.min), (1, sys.float_info.min)]
    out = capsys.readouterr().out
    assert "The max_residual for Segment 0" in out
    assert "The max_residual for Segment 2" not in out


def test_check_for_epsilon_needs_enough_segments():
    segments = [Segment(1.0, 0.0, 0.0, 0)]
    with pytest.raises(IndexError):
        check_for_epsilon([Point(0.0, 0.0)], segments, 0, 5)