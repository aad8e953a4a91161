"""
Tests for the OLS regression slope utility.

Run: pytest debiasing_module/src/tests/test_regression.py -v
"""

import pytest
import numpy as np

from debiasing_module.src.regression import fit_ols, regression_slope, slope_significance
from debiasing_module.src.exceptions import DegenerateInputError


@pytest.fixture
def noisy_line():
    """Heights and BMIs with a mild positive association."""
    np.random.seed(42)
    x = np.random.normal(170, 8, 200)
    y = 22 + 0.05 * (x - 170) + np.random.normal(0, 1.5, 200)
    return x, y


class TestFitOLS:
    """Test ordinary least squares fit."""

    def test_exact_line(self):
        x = np.array([1.0, 2.0, 3.0, 4.0])
        y = 2.0 * x + 1.0

        result = fit_ols(x, y)

        assert result.slope == pytest.approx(2.0)
        assert result.intercept == pytest.approx(1.0)
        assert result.n_samples == 4

    def test_height_bmi_scenario(self):
        """Slope of the five-record height/BMI example is -0.12."""
        x = [150, 160, 170, 180, 190]
        y = [20, 22, 19, 18, 16]

        result = fit_ols(x, y)

        assert result.slope == pytest.approx(-0.12)
        assert result.slope_magnitude == pytest.approx(0.12)

    def test_matches_numpy_polyfit(self, noisy_line):
        x, y = noisy_line

        result = fit_ols(x, y)
        slope, intercept = np.polyfit(x, y, 1)

        assert result.slope == pytest.approx(slope, rel=1e-9)
        assert result.intercept == pytest.approx(intercept, rel=1e-9)

    def test_two_points_allowed(self):
        result = fit_ols([1.0, 3.0], [2.0, 6.0])
        assert result.slope == pytest.approx(2.0)

    def test_predict(self):
        result = fit_ols([0.0, 1.0, 2.0], [1.0, 3.0, 5.0])
        assert result.predict(10.0) == pytest.approx(21.0)

    def test_deterministic(self, noisy_line):
        x, y = noisy_line
        assert fit_ols(x, y) == fit_ols(x.copy(), y.copy())

    def test_regression_slope_shortcut(self, noisy_line):
        x, y = noisy_line
        assert regression_slope(x, y) == fit_ols(x, y).slope


class TestDegenerateInputs:
    """Test that undefined slopes raise DegenerateInputError."""

    def test_single_record(self):
        with pytest.raises(DegenerateInputError, match="at least 2"):
            fit_ols([170.0], [22.0])

    def test_empty(self):
        with pytest.raises(DegenerateInputError):
            fit_ols([], [])

    def test_identical_x(self):
        with pytest.raises(DegenerateInputError, match="zero variance"):
            fit_ols([170.0, 170.0, 170.0], [20.0, 22.0, 24.0])

    def test_length_mismatch(self):
        with pytest.raises(DegenerateInputError, match="different lengths"):
            fit_ols([1.0, 2.0, 3.0], [1.0, 2.0])

    def test_nan_values(self):
        with pytest.raises(DegenerateInputError, match="finite"):
            fit_ols([1.0, 2.0, np.nan], [1.0, 2.0, 3.0])

    def test_two_dimensional(self):
        with pytest.raises(DegenerateInputError, match="1-D"):
            fit_ols(np.ones((3, 2)), np.ones(3))


class TestSlopeSignificance:
    """Test scipy-backed significance used in reports."""

    def test_strong_association_is_significant(self):
        np.random.seed(0)
        x = np.linspace(150, 190, 100)
        y = 0.2 * x + np.random.normal(0, 0.5, 100)

        result = slope_significance(x, y)

        assert result["p_value"] < 1e-6
        assert result["r_value"] > 0.9
        assert result["slope"] == pytest.approx(fit_ols(x, y).slope)

    def test_no_association(self):
        x = np.array([1.0, 2.0, 3.0, 4.0])
        y = np.array([1.0, 2.0, 2.0, 1.0])

        result = slope_significance(x, y)

        assert result["slope"] == pytest.approx(0.0, abs=1e-12)
        assert result["p_value"] == pytest.approx(1.0)

    def test_degenerate_raises(self):
        with pytest.raises(DegenerateInputError):
            slope_significance([5.0, 5.0, 5.0], [1.0, 2.0, 3.0])


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
