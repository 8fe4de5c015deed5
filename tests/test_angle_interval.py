import math

import pytest

from radioflexsim.medium.angle_interval import TWO_PI, AngleInterval
from radioflexsim.medium.geometry import Line, Rect


def _measure(intervals):
    return sum(iv.size for iv in intervals)


def test_normalisation():
    iv = AngleInterval(-0.5, 0.5)
    assert iv.start == pytest.approx(TWO_PI - 0.5)
    assert iv.size == pytest.approx(1.0)
    assert AngleInterval(0, 10).is_full()
    assert AngleInterval(1.0, 1.0 + 1e-6).is_empty()


def test_contains_across_zero():
    outer = AngleInterval(-1.0, 1.0)
    assert outer.contains(AngleInterval(-0.5, 0.2))
    assert outer.contains_angle(0.0)
    assert not outer.contains(AngleInterval(0.5, 1.5))


@pytest.mark.parametrize(
    "base, other",
    [
        ((0.0, 2.0), (1.0, 3.0)),
        ((0.0, 2.0), (0.5, 1.0)),
        ((-1.0, 1.0), (0.5, 4.0)),
        ((0.0, 1.0), (2.0, 3.0)),
    ],
)
def test_subtract_plus_intersection_is_measure(base, other):
    a = AngleInterval(*base)
    b = AngleInterval(*other)
    total = _measure(a.subtract(b)) + _measure(a.intersection(b))
    assert total == pytest.approx(a.size, abs=1e-9)


def test_intersect_with_returns_none_when_disjoint():
    assert AngleInterval(0, 1).intersect_with(AngleInterval(2, 3)) is None
    assert not AngleInterval(0, 1).intersects(AngleInterval(2, 3))


def test_subtract_middle_leaves_two_arcs():
    pieces = AngleInterval(0, 3).subtract(AngleInterval(1, 2))
    assert len(pieces) == 2
    assert _measure(pieces) == pytest.approx(2.0)


def test_of_line_takes_the_short_arc():
    iv = AngleInterval.of_line((0, 0), Line(4, -5, 4, 5))
    assert iv.size == pytest.approx(2 * math.atan2(5, 4))
    assert iv.contains_angle(0.0)


def test_of_rectangle_full_from_inside():
    rect = Rect(-1, -1, 2, 2)
    assert AngleInterval.of_rectangle((0, 0), rect).is_full()
    outside = AngleInterval.of_rectangle((-5, 0), rect)
    assert outside.contains_angle(0.0)
    assert outside.size < math.pi


def test_intersect_all_and_subtract_all():
    intervals = [AngleInterval(0, 1), AngleInterval(2, 3)]
    window = AngleInterval(0.5, 2.5)
    assert _measure(AngleInterval.intersect_all(intervals, window)) == pytest.approx(1.0)
    assert _measure(AngleInterval.subtract_all(intervals, window)) == pytest.approx(1.0)
