"""Pytest configuration and fixtures for thermokit tests."""

import numpy as np
import pytest

from thermokit import keys
from thermokit.curves import Curve
from thermokit.descriptors import register_default_descriptors


@pytest.fixture
def tg_step():
    """Generate a clean sigmoidal mass-loss step (TG curve)."""
    x = np.linspace(30.0, 630.0, 601)  # temperature, 1 K spacing
    y = 100.0 - 40.0 / (1.0 + np.exp(-(x - 330.0) / 15.0))
    return x, y


@pytest.fixture
def noisy_tg_step(tg_step):
    """TG step with reproducible white noise."""
    x, clean_y = tg_step
    rng = np.random.default_rng(42)
    noisy_y = clean_y + 0.5 * rng.standard_normal(clean_y.size)
    return x, noisy_y, clean_y


@pytest.fixture
def linear_ramp():
    """Straight line y = 3x + 2 on a uniform grid."""
    x = np.linspace(0.0, 10.0, 201)
    y = 3.0 * x + 2.0
    return x, y


@pytest.fixture
def cubic_samples():
    """Cubic polynomial on a uniform grid (five-point stencil is exact)."""
    x = np.linspace(-2.0, 2.0, 41)
    y = x ** 3 - 2.0 * x ** 2 + x - 1.0
    dy = 3.0 * x ** 2 - 4.0 * x + 1.0
    return x, y, dy


@pytest.fixture
def derivative_bump():
    """Derivative-like curve with one positive and one negative bump."""
    x = np.linspace(0.0, 100.0, 201)
    d = 2.0 * np.exp(-((x - 30.0) / 5.0) ** 2) - 1.0 * np.exp(-((x - 70.0) / 5.0) ** 2)
    return x, d


@pytest.fixture
def sloped_peak():
    """Gaussian peak (area 15*sqrt(pi)) sitting on a sloped baseline."""
    x = np.linspace(0.0, 100.0, 1001)
    baseline = 0.05 * x + 1.0
    y = baseline + 3.0 * np.exp(-((x - 50.0) / 5.0) ** 2)
    return x, y, baseline


@pytest.fixture
def ramp_step():
    """Flat at 10, linear drop of slope -2 from x=50 to 60, flat at -10 after."""
    x = np.arange(0.0, 101.0)
    y = np.clip(10.0 - 2.0 * (x - 50.0), -10.0, 10.0)
    return x, y


@pytest.fixture
def small_dataset():
    """Small dataset for edge case testing."""
    x = np.array([1.0, 2.0])
    y = np.array([1.0, 4.0])
    return x, y


@pytest.fixture
def empty_dataset():
    """Empty dataset for error testing."""
    return np.array([]), np.array([])


@pytest.fixture
def unsorted_data():
    """Unsorted data for error testing."""
    x = np.array([1.0, 3.0, 2.0, 4.0, 5.0, 6.0])
    y = np.array([1.0, 9.0, 4.0, 16.0, 25.0, 36.0])
    return x, y


@pytest.fixture
def registry():
    """Registry holding every built-in descriptor."""
    return register_default_descriptors()


@pytest.fixture
def active_curve(tg_step):
    x, y = tg_step
    return Curve(x, y, "sample-1", "TG sample")


@pytest.fixture
def inbound(active_curve):
    """Inbound context values as a host application would supply them."""
    blank = Curve(active_curve.x, np.full(len(active_curve), 1.5), "blank", "Blank run")
    return {
        keys.ACTIVE_CURVE: active_curve,
        keys.CURVES: {"sample-1": active_curve, "blank": blank},
    }


@pytest.fixture(params=[1, 5, 10, 25, 50])
def half_windows(request):
    """Parametrized DTG half windows."""
    return request.param


@pytest.fixture(autouse=True)
def reset_random_seed():
    """Reset random seed before each test for reproducibility."""
    np.random.seed(42)
