"""Tests for smoothing.py."""
import numpy as np
import pytest

from data_sculpture.smoothing import smooth, smoothed_index


def test_zero_subdivisions_is_identity():
    rows = [[0, 0, 0, 1], [1, 2, 3, 1], [4, 4, 4, 2]]
    np.testing.assert_allclose(smooth(rows, 0), np.asarray(rows, dtype=float))


def test_open_path_growth():
    rows = np.arange(20, dtype=float).reshape(5, 4)
    assert len(smooth(rows, 1)) == 9
    assert len(smooth(rows, 2)) == 17


def test_closed_path_growth():
    rows = np.arange(20, dtype=float).reshape(5, 4)
    assert len(smooth(rows, 1, closed=True)) == 10
    assert len(smooth(rows, 3, closed=True)) == 40


@pytest.mark.parametrize("subdivisions", [1, 2, 3])
def test_original_rows_are_kept(subdivisions):
    rng = np.random.default_rng(7)
    rows = rng.uniform(0, 100, size=(6, 4))
    out = smooth(rows, subdivisions)
    for i, row in enumerate(rows):
        np.testing.assert_allclose(out[smoothed_index(i, subdivisions)], row)


def test_straight_line_stays_straight():
    rows = np.column_stack([np.linspace(0, 30, 4), np.zeros(4), np.zeros(4), np.full(4, 2.0)])
    out = smooth(rows, 2)
    np.testing.assert_allclose(out[:, 1:], np.tile([0.0, 0.0, 2.0], (len(out), 1)), atol=1e-12)
    assert np.all(np.diff(out[:, 0]) > 0)


def test_short_input_passthrough():
    out = smooth([[1.0, 2.0, 3.0, 4.0]], 3)
    np.testing.assert_allclose(out, [[1.0, 2.0, 3.0, 4.0]])


def test_rejects_flat_input():
    with pytest.raises(ValueError):
        smooth([1.0, 2.0, 3.0], 1)
