import numpy as np
import pytest

from specz.infrastructure.processing.filters import (
    box_car_smooth,
    broaden_error,
    fast_smooth,
    max_median_adjust,
    median_filter,
    rolling_point_mean,
)


class TestMedianFilter:

    def test_constant_is_unchanged(self):
        np.testing.assert_allclose(median_filter(np.full(50, 3.0), 11), 3.0)

    def test_removes_isolated_spike(self):
        data = np.zeros(100)
        data[50] = 10.0
        assert median_filter(data, 5)[50] == 0.0

    def test_edges_are_padded_asymmetrically(self):
        result = median_filter(np.arange(10, dtype=float), 5)
        np.testing.assert_allclose(result, [0, 0, 2, 3, 4, 5, 6, 7, 8, 9])

    def test_input_is_not_modified(self):
        data = np.arange(10, dtype=float)
        median_filter(data, 3)
        np.testing.assert_array_equal(data, np.arange(10))

    def test_empty(self):
        assert len(median_filter(np.array([]), 5)) == 0


class TestBoxCarSmooth:

    def test_constant_is_unchanged(self):
        np.testing.assert_allclose(box_car_smooth(np.full(40, 2.5), 7), 2.5)

    def test_interior_is_window_mean(self):
        result = box_car_smooth(np.arange(20, dtype=float), 5)
        np.testing.assert_allclose(result[4:16], np.arange(4, 16))


class TestFastSmooth:

    def test_constant_interior(self):
        y = np.full(30, 4.0)
        result = fast_smooth(y, 2)
        np.testing.assert_allclose(result[2:-2], 4.0)

    def test_nans_take_previous_value(self):
        y = np.array([np.nan, 1.0, np.nan, 3.0])
        fast_smooth(y, 1)
        np.testing.assert_array_equal(y, [0.0, 1.0, 1.0, 3.0])

    def test_edges_divide_by_full_window(self):
        result = fast_smooth(np.ones(10), 2)
        assert result[0] == pytest.approx(0.6)
        assert result[2] == pytest.approx(1.0)

    def test_zero_width_is_identity(self):
        y = np.arange(5, dtype=float)
        assert fast_smooth(y, 0) is y


class TestRollingPointMean:

    def test_falloff_weights(self):
        intensity = np.zeros(7)
        intensity[3] = 1.0
        rolling_point_mean(intensity, 1, 0.5)
        np.testing.assert_allclose(intensity[2:5], [0.25, 0.5, 0.25])
        assert intensity[0] == 0.0

    def test_first_sample_contributes_with_aligned_weight(self):
        intensity = np.array([1.0, 0.0, 0.0, 0.0])
        rolling_point_mean(intensity, 1, 0.5)
        np.testing.assert_allclose(intensity, [0.5, 0.25, 0.0, 0.0])


class TestBroadenError:

    def test_widens_to_local_maximum(self):
        data = np.array([1.0, 1.0, 5.0, 1.0, 1.0, 1.0])
        broaden_error(data, 3, 1e10)
        np.testing.assert_array_equal(data, [1, 5, 5, 5, 1, 1])

    def test_sentinels_pass_through(self):
        data = np.array([1.0, 1e10, 1.0, 1.0])
        broaden_error(data, 3, 1e10)
        assert data[1] == 1e10
        assert np.all(data[[0, 2, 3]] == 1.0)

    def test_all_sentinels(self):
        data = np.full(4, 1e10)
        broaden_error(data, 3, 1e10)
        np.testing.assert_array_equal(data, 1e10)


class TestMaxMedianAdjust:

    def test_raises_low_values_to_weighted_median(self):
        data = np.array([1.0, 1.0, 1.0, 0.01, 1.0, 1.0, 1.0])
        max_median_adjust(data, 3, 0.6, 1e10)
        assert data[3] == pytest.approx(0.6)
        np.testing.assert_array_equal(np.delete(data, 3), 1.0)

    def test_never_lowers(self):
        rng = np.random.default_rng(3)
        data = rng.uniform(0.1, 10.0, 200)
        before = data.copy()
        max_median_adjust(data, 21, 0.6, 1e10)
        assert np.all(data >= before)
