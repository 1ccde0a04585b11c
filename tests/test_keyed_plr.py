import pytest

from plrkit.keyed_plr import (
    KeyedOptimalPLR,
    KeySegment,
    check_for_epsilon,
    make_segmentation,
    make_segmentation_par,
    translate,
)


def _segment_for(segments, key):
    chosen = segments[0]
    for seg in segments:
        if seg.first_x <= key:
            chosen = seg
    return chosen


def _max_residual(data, segments):
    return max(abs(_segment_for(segments, k)(k) - i) for i, k in enumerate(data))


def test_empty_input_gives_no_segments():
    assert KeyedOptimalPLR(2).segment_data([]) == []


def test_single_key_maps_to_position_zero():
    segments = KeyedOptimalPLR(2).segment_data([42])
    assert len(segments) == 1
    assert segments[0].first_x == 42
    assert segments[0](42) == pytest.approx(0)


def test_two_keys_are_fitted_exactly():
    segments = KeyedOptimalPLR(1).segment_data([10, 20])
    assert len(segments) == 1
    seg = segments[0]
    assert seg.first_x == 10
    assert seg(10) == pytest.approx(0)
    assert seg(20) == pytest.approx(1)


def test_linear_keys_fit_in_one_segment():
    data = list(range(0, 400, 2))
    segments = make_segmentation(len(data), 2, data)
    assert len(segments) == 1
    assert segments[0].key() == 0
    assert _max_residual(data, segments) <= 2 + 1


def test_jump_in_keys_splits_segments():
    data = list(range(100)) + list(range(100000, 100100))
    segments = KeyedOptimalPLR(2).segment_data(data)
    assert len(segments) >= 2
    keys = [seg.first_x for seg in segments]
    assert keys == sorted(keys)
    assert keys[0] == data[0]
    assert set(keys) <= set(data)
    assert _max_residual(data, segments) <= 2 + 1


def test_segments_order_by_first_key():
    a = KeySegment(1.0, 0.0, 5)
    b = KeySegment(0.5, 3.0, 9)
    assert a < b
    assert b > a
    assert a < 6
    assert b > 6
    assert sorted([b, a]) == [a, b]


def test_segment_call_is_linear():
    seg = KeySegment(0.5, 2.0, 0)
    assert seg(4) == pytest.approx(seg.slope * 4 + seg.intercept)


def test_translate_returns_first_keys_of_slice():
    segments = [KeySegment(0, 0, k) for k in (3, 7, 11, 15)]
    assert translate(segments, 1, 3) == [7, 11]
    assert translate(segments, 2, 2) == []


def test_par_on_small_input_matches_sequential():
    data = list(range(0, 3000, 3))
    assert make_segmentation_par(len(data), 4, data, 8) == make_segmentation(
        len(data), 4, data
    )


def test_par_with_one_worker_matches_sequential():
    data = [k * k for k in range(500)]
    assert make_segmentation_par(len(data), 4, data, 1) == make_segmentation(
        len(data), 4, data
    )


def test_par_chunks_restart_at_chunk_boundaries():
    n = 1 << 15
    data = list(range(n))
    segments = make_segmentation_par(n, 4, data, 2)
    keys = [seg.first_x for seg in segments]
    assert 0 in keys
    assert n // 2 in keys
    assert keys == sorted(keys)


def test_check_for_epsilon_reports_and_prints_bad_segment(capsys):
    data = list(range(20))
    segments = [KeySegment(0.0, 0.0, 0), KeySegment(0.0, 0.0, 10)]
    report = check_for_epsilon(data, segments, 0, 1, 2)
    assert report == [(0, pytest.approx(9.0))]
    out = capsys.readouterr().out
    assert "The max_residual for Segment 0 is 9.000000" in out


def test_check_for_epsilon_silent_for_good_fit(capsys):
    data = list(range(0, 200, 2)) + list(range(100000, 100200, 2))
    segments = make_segmentation(len(data), 2, data)
    assert len(segments) >= 2
    report = check_for_epsilon(data, segments, 0, len(segments) - 1, 2)
    assert all(residual <= 3 for _, residual in report)
    assert "max_residual" not in capsys.readouterr().out