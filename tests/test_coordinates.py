"""Tests for coordinates module."""
import math

import pytest

from data_sculpture.contracts import (
    AxisMapping,
    BoardSpec,
    DegenerateRangeError,
    RangeSpec,
    SculptureConfig,
)
from data_sculpture.coordinates import (
    map_ranges,
    radius_for_magnitude,
    scale_samples,
    to_scaled_point,
)

SCENARIO_SAMPLES = [
    (0.0, 1.0, 0.5, 1.0),
    (1.0, 5.0, 0.2, 1.0),
    (2.0, 1.0, 0.8, 1.0),
]


def _scenario_config():
    return SculptureConfig(
        mapping=AxisMapping(x=0, y=1, z=3, magnitude=2),
        z_range=RangeSpec(0.0, 2.0),
        board=BoardSpec(width=160.0, padding_left=10.0, padding_right=10.0),
    )


class TestMapRanges:
    def test_auto_ranges_follow_data(self):
        ranges = map_ranges(SCENARIO_SAMPLES, _scenario_config())
        assert (ranges[0].minimum, ranges[0].maximum) == (0.0, 2.0)
        assert (ranges[1].minimum, ranges[1].maximum) == (1.0, 5.0)
        assert (ranges[2].minimum, ranges[2].maximum) == (0.0, 2.0)

    def test_explicit_bounds_override_data(self):
        config = SculptureConfig(
            mapping=AxisMapping(x=0, y=1, z=3, magnitude=2),
            x_range=RangeSpec(-1.0, "auto"),
            z_range=RangeSpec(0.0, 2.0),
        )
        ranges = map_ranges(SCENARIO_SAMPLES, config)
        assert ranges[0].minimum == -1.0
        assert ranges[0].maximum == 2.0

    def test_constant_field_is_degenerate(self):
        config = SculptureConfig(mapping=AxisMapping(x=0, y=1, z=3, magnitude=2))
        with pytest.raises(DegenerateRangeError) as info:
            map_ranges(SCENARIO_SAMPLES, config)
        assert info.value.axis == "z"

    def test_inverted_explicit_range_is_degenerate(self):
        config = SculptureConfig(
            mapping=AxisMapping(x=0, y=1, z=3, magnitude=2),
            x_range=RangeSpec(5.0, 1.0),
            z_range=RangeSpec(0.0, 2.0),
        )
        with pytest.raises(DegenerateRangeError):
            map_ranges(SCENARIO_SAMPLES, config)


class TestScaledPoints:
    def test_scenario_x_positions(self):
        _, points = scale_samples(SCENARIO_SAMPLES, _scenario_config())
        assert [p.x for p in points] == pytest.approx([10.0, 80.0, 150.0])

    def test_range_ends_map_exactly_to_padding(self):
        config = _scenario_config()
        ranges = map_ranges(SCENARIO_SAMPLES, config)
        low = to_scaled_point(SCENARIO_SAMPLES[0], ranges, config)
        high = to_scaled_point(SCENARIO_SAMPLES[2], ranges, config)
        assert low.x == 10.0
        assert high.x == 150.0
        assert low.y == config.board.padding_front
        assert to_scaled_point(SCENARIO_SAMPLES[1], ranges, config).y == (
            config.board.depth - config.board.padding_back
        )

    def test_points_stay_inside_padded_board(self, wave_samples):
        config = SculptureConfig()
        _, points = scale_samples(wave_samples, config)
        board = config.board
        for p in points:
            assert board.padding_left <= p.x <= board.width - board.padding_right
            assert board.padding_front <= p.y <= board.depth - board.padding_back
            assert board.padding_bottom <= p.z <= board.height - board.padding_top

    def test_radius_uses_magnitude_field(self):
        config = _scenario_config()
        _, points = scale_samples(SCENARIO_SAMPLES, config)
        expected = radius_for_magnitude(0.5, config.area_scale)
        assert points[0].radius == pytest.approx(expected)


class TestRadius:
    def test_area_law(self):
        for magnitude in (0.1, 1.0, 7.5, 300.0):
            assert radius_for_magnitude(4 * magnitude, 20.0) == pytest.approx(
                2 * radius_for_magnitude(magnitude, 20.0)
            )

    def test_monotonic(self):
        values = [radius_for_magnitude(m, 5.0) for m in (0.0, 0.5, 1.0, 2.0, 10.0)]
        assert values == sorted(values)

    def test_formula(self):
        assert radius_for_magnitude(math.pi, 1.0) == pytest.approx(1.0)

    def test_negative_magnitude_clamps_to_zero(self):
        assert radius_for_magnitude(-3.0, 20.0) == 0.0
