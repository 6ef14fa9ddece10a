"""
Pytest configuration and shared fixtures for estimator tests.

This module provides common fixtures and configuration used across
all filter tests.
"""

import pytest
import numpy as np
from typing import List, Tuple

from ...config_loader import NoiseParameters
from ..kalman_filters import UnscentedKalmanFilter
from ..measurement import MeasurementPackage
from ..motion_models import cartesian_to_polar, normalize_angle


@pytest.fixture
def random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
    return 42


@pytest.fixture
def noise_params():
    """Default sensor and process noise."""
    return NoiseParameters()


@pytest.fixture
def ukf(noise_params):
    """Fresh, uninitialized filter."""
    return UnscentedKalmanFilter(noise_params)


@pytest.fixture
def sample_state():
    """Sample CTRV state [px, py, v, yaw, yaw_rate]."""
    return np.array([5.0, 3.0, 2.0, 0.4, 0.1])


@pytest.fixture
def sample_covariance():
    """Sample 5x5 covariance with some correlation."""
    return np.array([
        [0.0225, 0.0010, 0.0020, 0.0005, 0.0002],
        [0.0010, 0.0225, 0.0010, 0.0005, 0.0002],
        [0.0020, 0.0010, 0.5000, 0.0100, 0.0050],
        [0.0005, 0.0005, 0.0100, 0.1000, 0.0200],
        [0.0002, 0.0002, 0.0050, 0.0200, 0.1000],
    ])


def ctrv_truth(px: float, py: float, v: float, yaw: float, yawd: float, t: float) -> np.ndarray:
    """Noise-free CTRV state after t seconds."""
    if abs(yawd) > 1e-9:
        x = px + v / yawd * (np.sin(yaw + yawd * t) - np.sin(yaw))
        y = py + v / yawd * (np.cos(yaw) - np.cos(yaw + yawd * t))
    else:
        x = px + v * t * np.cos(yaw)
        y = py + v * t * np.sin(yaw)
    return np.array([x, y, v, normalize_angle(yaw + yawd * t), yawd])


@pytest.fixture
def turning_trajectory():
    """Generate a turning target observed by alternating lidar and radar."""
    def _generate_trajectory(num_points: int = 100, dt_us: int = 50000,
                             initial_state: Tuple[float, ...] = (10.0, 5.0, 4.0, 0.3, 0.2),
                             noise: NoiseParameters = NoiseParameters()
                             ) -> Tuple[List[np.ndarray], List[MeasurementPackage]]:
        """
        Generate a CTRV trajectory with noisy measurements.

        Args:
            num_points: Number of measurements
            dt_us: Time between measurements in microseconds
            initial_state: Initial [px, py, v, yaw, yaw_rate]
            noise: Sensor noise used to corrupt the readings

        Returns:
            Tuple of (true_states, measurements); the first measurement is lidar
        """
        true_states = []
        measurements = []

        for i in range(num_points):
            timestamp = i * dt_us
            truth = ctrv_truth(*initial_state, t=timestamp / 1e6)
            true_states.append(truth)

            if i % 2 == 0:
                z = truth[:2] + np.random.normal(0, [noise.std_laspx, noise.std_laspy])
                measurements.append(MeasurementPackage.lidar(z[0], z[1], timestamp))
            else:
                vx = truth[2] * np.cos(truth[3])
                vy = truth[2] * np.sin(truth[3])
                rho, phi, rho_dot = cartesian_to_polar(truth[0], truth[1], vx, vy)
                rho += np.random.normal(0, noise.std_radr)
                phi = normalize_angle(phi + np.random.normal(0, noise.std_radphi))
                rho_dot += np.random.normal(0, noise.std_radrd)
                measurements.append(MeasurementPackage.radar(rho, phi, rho_dot, timestamp))

        return true_states, measurements

    return _generate_trajectory


def assert_valid_covariance(P: np.ndarray, tol: float = 1e-9) -> None:
    """Covariance must be symmetric positive semi-definite."""
    np.testing.assert_allclose(P, P.T, atol=tol)
    assert np.min(np.linalg.eigvalsh(P)) >= -tol
