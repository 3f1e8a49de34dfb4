"""Tests for ticks.py: nice tick sizes and axis layout."""
import math

import pytest
from shapely.geometry import box

from data_sculpture.contracts import AxisRange, DegenerateRangeError
from data_sculpture.ticks import (
    AxisStrip,
    axis_ticks,
    format_tick,
    layout_axis,
    major_ticks,
    minor_ticks,
    nice_tick_size,
    snap_to_nice,
    title_alignment,
)

NICE_MANTISSAS = (1.0, 2.0, 2.5, 5.0, 10.0)


def _is_nice(size):
    exponent = math.floor(math.log10(size))
    mantissa = size / 10.0 ** exponent
    return any(math.isclose(mantissa, m) for m in NICE_MANTISSAS)


def _fake_text(value, size, font=None, halign="left"):
    width = max(len(value), 1) * size * 0.6
    return box(0.0, 0.0, width, size)


class TestNiceTickSize:
    def test_hundred_on_160mm_board(self):
        scale = nice_tick_size(100.0, 160.0)
        assert scale.size == pytest.approx(25.0)
        assert scale.precision == 0

    def test_unit_span(self):
        scale = nice_tick_size(1.0, 100.0)
        assert scale.size == pytest.approx(0.5)
        assert scale.precision == 1

    def test_two_and_a_half_gets_extra_digit(self):
        scale = nice_tick_size(0.07, 100.0)
        assert scale.size == pytest.approx(0.025)
        assert scale.precision == 3

    @pytest.mark.parametrize("span", [0.003, 0.9, 7.0, 42.0, 365.0, 12000.0])
    def test_sizes_are_nice(self, span):
        assert _is_nice(nice_tick_size(span, 160.0).size)

    def test_rejects_empty_span(self):
        with pytest.raises(ValueError):
            nice_tick_size(0.0, 160.0)

    def test_snap_thresholds(self):
        assert snap_to_nice(1.2) == 1.0
        assert snap_to_nice(2.0) == 2.0
        assert snap_to_nice(2.6) == 2.5
        assert snap_to_nice(4.0) == 5.0
        assert snap_to_nice(8.0) == 10.0


class TestTickValues:
    def test_majors_are_multiples_inside_range(self):
        majors = major_ticks(AxisRange(-12.0, 88.0), 25.0)
        assert majors == [0.0, 25.0, 50.0, 75.0]

    def test_majors_include_range_ends(self):
        assert major_ticks(AxisRange(0.0, 100.0), 25.0) == [0.0, 25.0, 50.0, 75.0, 100.0]

    def test_four_minors_between_majors(self):
        majors = [0.0, 25.0, 50.0]
        minors = minor_ticks(majors, 25.0)
        assert len(minors) == 8
        assert minors[:4] == pytest.approx([5.0, 10.0, 15.0, 20.0])
        assert all(0.0 < m < 50.0 for m in minors)

    def test_format(self):
        assert format_tick(25.0, 0) == "25"
        assert format_tick(0.025, 3) == "0.025"
        assert format_tick(-0.0001, 2) == "0.00"

    @pytest.mark.parametrize(
        "low, high, dim",
        [(0.0, 100.0, 160.0), (-3.2, 7.9, 120.0), (1000.0, 1003.0, 60.0), (0.001, 0.0042, 300.0)],
    )
    def test_major_count_tracks_target(self, low, high, dim):
        scale, majors, minors = axis_ticks(AxisRange(low, high), dim)
        assert scale.target_count / 4.0 <= len(majors) <= scale.target_count * 4.0 + 1
        assert len(minors) == 4 * (len(majors) - 1)
        assert all(low - 1e-9 <= m <= high + 1e-9 for m in majors)

    def test_title_alignment(self):
        assert title_alignment(1) == "right"
        assert title_alignment(-1) == "left"


class TestLayoutAxis:
    def _layout(self, axis_range=AxisRange(0.0, 100.0)):
        strip = AxisStrip(start=(0.0, 0.0), angle=0.0, normal=(0.0, -1.0), sign=1)
        return layout_axis(
            axis_range,
            board_dimension=160.0,
            padding=(10.0, 10.0),
            strip=strip,
            title="X",
            tick_length=3.0,
            tick_width=0.4,
            label_size=3.0,
            text=_fake_text,
        )

    def test_mark_and_label_counts(self):
        layout = self._layout()
        assert len(layout.majors) == 5
        assert len(layout.labels) == 5
        assert len(layout.marks) == 5 + 16
        assert layout.title is not None

    def test_marks_sit_on_strip(self):
        layout = self._layout()
        first = layout.marks[0]
        minx, miny, maxx, maxy = first.bounds
        assert (minx + maxx) / 2 == pytest.approx(10.0)
        assert miny == pytest.approx(-3.0)
        assert maxy == pytest.approx(0.0, abs=1e-9)
        last_major = layout.marks[4]
        assert (last_major.bounds[0] + last_major.bounds[2]) / 2 == pytest.approx(150.0)

    def test_geometries_collects_everything(self):
        layout = self._layout()
        assert len(layout.geometries()) == len(layout.marks) + len(layout.labels) + 1

    def test_empty_range(self):
        with pytest.raises(DegenerateRangeError):
            self._layout(AxisRange(5.0, 5.0))
