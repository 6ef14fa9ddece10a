"""
Unscented Kalman Filter for lidar/radar fusion with a CTRV motion model.

This module provides the complete estimator:
- Filter state container and sigma point weights
- Augmented sigma point generation
- Prediction through the CTRV model and weighted recombination
- Linear (lidar) and unscented (radar) measurement updates
- Normalized Innovation Squared (NIS) consistency helpers

The state is [px, py, v, yaw, yaw_rate]. Every difference involving heading
or radar bearing is wrapped into (-pi, pi] before it enters a covariance.

Author: fusion-ukf project
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, NamedTuple, Optional, Sequence, Tuple

import numpy as np
from scipy.stats import chi2

from ..config_loader import FilterConfig, NoiseParameters
from ..constants import (
    AUGMENTED_DIM, BEARING_INDEX, LIDAR_DIM, MIN_RADAR_RANGE, N_SIGMA_POINTS,
    SPREADING_PARAMETER, STATE_DIM, WEIGHT_SUM_TOLERANCE, YAW_INDEX,
    microseconds_to_seconds
)
from ..validators import NoiseParameterValidator, ValidationError, validate_range
from .measurement import MeasurementPackage, SensorType
from .motion_models import normalize_angle, polar_to_cartesian, predict_sigma_points

logger = logging.getLogger(__name__)


# ============================================================================
# ERRORS
# ============================================================================

class FilterError(RuntimeError):
    """Base exception for a filter cycle that cannot produce a valid update."""


class CovarianceError(FilterError):
    """Raised when a covariance cannot be factorized or inverted."""


class DegenerateGeometryError(FilterError):
    """Raised when a radar sigma point sits at the sensor origin."""


# ============================================================================
# STATE
# ============================================================================

@dataclass
class FilterState:
    """
    Mean, covariance and time of the last update.

    Attributes:
        x: State mean [px, py, v, yaw, yaw_rate]
        P: State covariance (5x5)
        timestamp: Time of the last processed measurement in microseconds
        is_initialized: False until the first measurement has been seen
    """

    x: np.ndarray = field(default_factory=lambda: np.zeros(STATE_DIM))
    P: np.ndarray = field(default_factory=lambda: np.eye(STATE_DIM))
    timestamp: int = 0
    is_initialized: bool = False

    def copy(self) -> "FilterState":
        return FilterState(self.x.copy(), self.P.copy(), self.timestamp, self.is_initialized)


class UpdateResult(NamedTuple):
    """Outcome of a measurement update."""
    x: np.ndarray
    P: np.ndarray
    innovation: np.ndarray
    innovation_cov: np.ndarray
    nis: float


# Lidar observes position only
LIDAR_OBSERVATION_MATRIX = np.eye(LIDAR_DIM, STATE_DIM)


def _symmetrize(P: np.ndarray) -> np.ndarray:
    return 0.5 * (P + P.T)


def _invert(S: np.ndarray, context: str) -> np.ndarray:
    try:
        return np.linalg.inv(S)
    except np.linalg.LinAlgError as exc:
        raise CovarianceError(f"{context}: singular innovation covariance") from exc


# ============================================================================
# SIGMA POINTS
# ============================================================================

def compute_sigma_weights(n_aug: int = AUGMENTED_DIM,
                          lambda_: Optional[float] = None) -> np.ndarray:
    """
    Compute sigma point weights.

    Args:
        n_aug: Augmented state dimension
        lambda_: Spreading parameter (default 3 - n_aug)

    Returns:
        Weights of the 2 * n_aug + 1 sigma points

    Raises:
        ValidationError: If lambda_ + n_aug is not positive or the weights
            do not sum to one
    """
    if lambda_ is None:
        lambda_ = 3 - n_aug

    spread = lambda_ + n_aug
    if spread <= 0:
        raise ValidationError(f"lambda + n_aug must be positive, got {spread}")

    weights = np.full(2 * n_aug + 1, 0.5 / spread)
    weights[0] = lambda_ / spread

    if abs(weights.sum() - 1.0) > WEIGHT_SUM_TOLERANCE:
        raise ValidationError(f"Sigma point weights sum to {weights.sum()}, expected 1")

    return weights


def generate_augmented_sigma_points(x: np.ndarray, P: np.ndarray,
                                    noise: NoiseParameters,
                                    lambda_: float = SPREADING_PARAMETER) -> np.ndarray:
    """
    Generate augmented sigma points from the state and process noise.

    Args:
        x: State mean (5)
        P: State covariance (5x5)
        noise: Noise parameters supplying std_a and std_yawdd
        lambda_: Spreading parameter

    Returns:
        Sigma points, shape (AUGMENTED_DIM, 2 * AUGMENTED_DIM + 1)

    Raises:
        CovarianceError: If the augmented covariance is not positive definite
    """
    n_aug = AUGMENTED_DIM

    x_aug = np.zeros(n_aug)
    x_aug[:STATE_DIM] = x

    P_aug = np.zeros((n_aug, n_aug))
    P_aug[:STATE_DIM, :STATE_DIM] = P
    P_aug[STATE_DIM:, STATE_DIM:] = noise.process_noise_covariance

    if not np.all(np.isfinite(P_aug)):
        raise CovarianceError("Augmented covariance contains NaN or Inf")

    try:
        L = np.linalg.cholesky(P_aug)
    except np.linalg.LinAlgError as exc:
        raise CovarianceError("Augmented covariance is not positive definite") from exc

    scaled = np.sqrt(lambda_ + n_aug) * L

    sigma_points = np.zeros((n_aug, 2 * n_aug + 1))
    sigma_points[:, 0] = x_aug
    sigma_points[:, 1:n_aug + 1] = x_aug[:, np.newaxis] + scaled
    sigma_points[:, n_aug + 1:] = x_aug[:, np.newaxis] - scaled

    return sigma_points


def predict_mean_and_covariance(sigma_points_pred: np.ndarray,
                                weights: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Recombine predicted sigma points into a mean and covariance.

    Args:
        sigma_points_pred: Predicted sigma points, shape (STATE_DIM, n_sigma)
        weights: Sigma point weights

    Returns:
        Predicted state mean and covariance
    """
    x = sigma_points_pred @ weights

    P = np.zeros((STATE_DIM, STATE_DIM))
    for i in range(sigma_points_pred.shape[1]):
        x_diff = sigma_points_pred[:, i] - x
        x_diff[YAW_INDEX] = normalize_angle(x_diff[YAW_INDEX])
        P += weights[i] * np.outer(x_diff, x_diff)

    x[YAW_INDEX] = normalize_angle(x[YAW_INDEX])

    return x, _symmetrize(P)


# ============================================================================
# MEASUREMENT UPDATES
# ============================================================================

def lidar_update(x: np.ndarray, P: np.ndarray, z: np.ndarray,
                 noise: NoiseParameters) -> UpdateResult:
    """
    Standard linear Kalman update with a lidar position fix.

    Args:
        x: Predicted state mean
        P: Predicted state covariance
        z: Measurement [px, py]
        noise: Noise parameters supplying the lidar covariance

    Returns:
        Corrected state with innovation statistics
    """
    H = LIDAR_OBSERVATION_MATRIX
    R = noise.lidar_noise_covariance

    y = z - H @ x
    S = H @ P @ H.T + R
    S_inv = _invert(S, "lidar update")
    K = P @ H.T @ S_inv

    x_new = x + K @ y
    x_new[YAW_INDEX] = normalize_angle(x_new[YAW_INDEX])
    P_new = _symmetrize((np.eye(STATE_DIM) - K @ H) @ P)

    return UpdateResult(x_new, P_new, y, S, compute_nis(y, S))


def state_to_radar_measurement(sigma_points: np.ndarray) -> np.ndarray:
    """
    Map state sigma points into radar measurement space.

    Args:
        sigma_points: State sigma points, shape (STATE_DIM, n_sigma)

    Returns:
        Measurement sigma points [rho, phi, rho_dot], shape (3, n_sigma)

    Raises:
        DegenerateGeometryError: If any point lies within MIN_RADAR_RANGE of the sensor
    """
    p_x, p_y, v, yaw = sigma_points[0], sigma_points[1], sigma_points[2], sigma_points[3]

    rho = np.hypot(p_x, p_y)
    if np.any(rho < MIN_RADAR_RANGE):
        raise DegenerateGeometryError(
            f"Sigma point range {rho.min():.3g} m is below {MIN_RADAR_RANGE} m; "
            "bearing and range rate are undefined"
        )

    phi = np.arctan2(p_y, p_x)
    rho_dot = (p_x * np.cos(yaw) * v + p_y * np.sin(yaw) * v) / rho

    return np.vstack([rho, phi, rho_dot])


def _weighted_bearing_mean(bearings: np.ndarray, weights: np.ndarray) -> float:
    """Weighted mean of bearings taken about the first one, so points straddling +-pi average correctly."""
    reference = bearings[0]
    offsets = normalize_angle(bearings - reference)
    return normalize_angle(reference + offsets @ weights)


def radar_update(x: np.ndarray, P: np.ndarray, sigma_points_pred: np.ndarray,
                 weights: np.ndarray, z: np.ndarray,
                 noise: NoiseParameters) -> UpdateResult:
    """
    Unscented Kalman update with a radar range/bearing/range-rate reading.

    The predicted sigma points are mapped through the nonlinear radar model
    and recombined into a predicted measurement, innovation covariance and
    state/measurement cross-covariance.

    Args:
        x: Predicted state mean
        P: Predicted state covariance
        sigma_points_pred: Predicted sigma points the mean/covariance came from
        weights: Sigma point weights
        z: Measurement [rho, phi, rho_dot]
        noise: Noise parameters supplying the radar covariance

    Returns:
        Corrected state with innovation statistics

    Raises:
        DegenerateGeometryError: If a sigma point is at the radar origin
        CovarianceError: If the innovation covariance is singular
    """
    z_sigma = state_to_radar_measurement(sigma_points_pred)
    n_z = z_sigma.shape[0]

    z_pred = z_sigma @ weights
    z_pred[BEARING_INDEX] = _weighted_bearing_mean(z_sigma[BEARING_INDEX], weights)

    S = np.zeros((n_z, n_z))
    Tc = np.zeros((STATE_DIM, n_z))
    for i in range(z_sigma.shape[1]):
        z_diff = z_sigma[:, i] - z_pred
        z_diff[BEARING_INDEX] = normalize_angle(z_diff[BEARING_INDEX])

        x_diff = sigma_points_pred[:, i] - x
        x_diff[YAW_INDEX] = normalize_angle(x_diff[YAW_INDEX])

        S += weights[i] * np.outer(z_diff, z_diff)
        Tc += weights[i] * np.outer(x_diff, z_diff)

    S = _symmetrize(S + noise.radar_noise_covariance)
    S_inv = _invert(S, "radar update")
    K = Tc @ S_inv

    y = z - z_pred
    y[BEARING_INDEX] = normalize_angle(y[BEARING_INDEX])

    x_new = x + K @ y
    x_new[YAW_INDEX] = normalize_angle(x_new[YAW_INDEX])
    P_new = _symmetrize(P - K @ S @ K.T)

    return UpdateResult(x_new, P_new, y, S, compute_nis(y, S))


# ============================================================================
# FILTER
# ============================================================================

class UnscentedKalmanFilter:
    """
    CTRV Unscented Kalman Filter fusing lidar and radar measurements.

    The first measurement seeds the state; every later measurement runs a
    prediction to its timestamp followed by the matching sensor update.

    Example:
        >>> ukf = UnscentedKalmanFilter()
        >>> ukf.process_measurement(MeasurementPackage.lidar(1.0, 1.0, 0))
        >>> ukf.process_measurement(MeasurementPackage.lidar(1.1, 1.05, 100000))
        >>> ukf.x[:2]
    """

    def __init__(self, noise: Optional[NoiseParameters] = None,
                 use_lidar: bool = True, use_radar: bool = True,
                 nis_window: int = 1000):
        """
        Initialize the filter.

        Args:
            noise: Process and measurement noise (defaults to NoiseParameters())
            use_lidar: If False, lidar measurements are ignored after initialization
            use_radar: If False, radar measurements are ignored after initialization
            nis_window: Number of NIS values kept per sensor

        Raises:
            ValidationError: If any noise standard deviation is not strictly positive
        """
        self.noise = noise if noise is not None else NoiseParameters()
        NoiseParameterValidator.validate_noise_parameters(self.noise, strict=True)

        self.use_lidar = use_lidar
        self.use_radar = use_radar

        self.dim_x = STATE_DIM
        self.dim_aug = AUGMENTED_DIM
        self.lambda_ = SPREADING_PARAMETER
        self.n_sigma = N_SIGMA_POINTS
        self.weights = compute_sigma_weights(self.dim_aug, self.lambda_)
        self.weights.flags.writeable = False

        self._state = FilterState()

        # Quantities from the most recent predict/update cycle
        self.sigma_points_pred = np.zeros((self.dim_x, self.n_sigma))
        self.x_prior = self._state.x.copy()
        self.P_prior = self._state.P.copy()
        self.y: Optional[np.ndarray] = None
        self.S: Optional[np.ndarray] = None
        self.nis: Optional[float] = None
        self.nis_history: Dict[SensorType, deque] = {
            sensor: deque(maxlen=nis_window) for sensor in SensorType
        }

    @classmethod
    def from_config(cls, config: FilterConfig) -> "UnscentedKalmanFilter":
        """Build a filter from a loaded FilterConfig."""
        return cls(noise=config.noise, use_lidar=config.use_lidar, use_radar=config.use_radar)

    # -- Properties ---------------------------------------------------------

    @property
    def state(self) -> FilterState:
        """Copy of the current filter state."""
        return self._state.copy()

    @property
    def x(self) -> np.ndarray:
        """Current state mean [px, py, v, yaw, yaw_rate]."""
        return self._state.x.copy()

    @property
    def P(self) -> np.ndarray:
        """Current state covariance."""
        return self._state.P.copy()

    @property
    def timestamp(self) -> int:
        return self._state.timestamp

    @property
    def is_initialized(self) -> bool:
        return self._state.is_initialized

    # -- Processing ---------------------------------------------------------

    def process_measurement(self, meas_package: MeasurementPackage) -> FilterState:
        """
        Ingest one measurement.

        Initializes the state on the first call; afterwards predicts to the
        measurement time and applies the lidar or radar update. State is only
        replaced once the whole cycle has succeeded.

        Args:
            meas_package: Lidar or radar measurement

        Returns:
            Copy of the updated filter state

        Raises:
            CovarianceError: If a covariance cannot be factorized or inverted
            DegenerateGeometryError: If the radar model is evaluated at the origin
        """
        if not self._state.is_initialized:
            self._initialize(meas_package)
            return self.state

        sensor = meas_package.sensor_type
        if not self._sensor_enabled(sensor):
            logger.warning(f"Ignoring {sensor.value} measurement at t={meas_package.timestamp}: sensor disabled")
            return self.state

        dt = microseconds_to_seconds(meas_package.timestamp - self._state.timestamp)
        if dt <= 0:
            logger.warning(
                f"Non-positive time step {dt:.6f}s at t={meas_package.timestamp}; predicting without motion"
            )

        x_pred, P_pred, sigma_points_pred = self._predict(dt)

        if sensor is SensorType.LIDAR:
            result = lidar_update(x_pred, P_pred, meas_package.raw_measurements, self.noise)
        elif sensor is SensorType.RADAR:
            result = radar_update(x_pred, P_pred, sigma_points_pred, self.weights,
                                  meas_package.raw_measurements, self.noise)
        else:
            raise ValueError(f"Unsupported sensor type: {sensor}")

        # Commit
        self.sigma_points_pred = sigma_points_pred
        self.x_prior = x_pred
        self.P_prior = P_pred
        self.y = result.innovation
        self.S = result.innovation_cov
        self.nis = result.nis
        self.nis_history[sensor].append(result.nis)
        self._state = FilterState(
            x=result.x,
            P=result.P,
            timestamp=max(self._state.timestamp, meas_package.timestamp),
            is_initialized=True
        )

        logger.debug(f"{sensor.value} update dt={dt:.4f}s NIS={result.nis:.3f}")

        return self.state

    def reset(self) -> None:
        """Return to the uninitialized state."""
        self._state = FilterState()
        self.sigma_points_pred = np.zeros((self.dim_x, self.n_sigma))
        self.x_prior = self._state.x.copy()
        self.P_prior = self._state.P.copy()
        self.y = None
        self.S = None
        self.nis = None
        for history in self.nis_history.values():
            history.clear()

    def _sensor_enabled(self, sensor: SensorType) -> bool:
        if sensor is SensorType.LIDAR:
            return self.use_lidar
        if sensor is SensorType.RADAR:
            return self.use_radar
        raise ValueError(f"Unsupported sensor type: {sensor}")

    def _initialize(self, meas_package: MeasurementPackage) -> None:
        """Seed the state from the first measurement."""
        z = meas_package.raw_measurements
        noise = self.noise

        if meas_package.sensor_type is SensorType.LIDAR:
            x = np.array([z[0], z[1], 0.0, 0.0, 0.0])
            P = np.diag([noise.std_laspx**2, noise.std_laspy**2, 1.0, 1.0, 1.0])
        elif meas_package.sensor_type is SensorType.RADAR:
            rho, phi, rho_dot = z
            p_x, p_y = polar_to_cartesian(rho, phi)
            # Approximation: range rate stands in for speed and the bearing
            # for both heading and turn rate.
            x = np.array([p_x, p_y, rho_dot, phi, phi])
            P = np.diag([
                noise.std_radr**2, noise.std_radr**2, noise.std_radrd**2,
                noise.std_radphi**2, noise.std_radphi**2
            ])
        else:
            raise ValueError(f"Unsupported sensor type: {meas_package.sensor_type}")

        x[YAW_INDEX] = normalize_angle(x[YAW_INDEX])

        self._state = FilterState(x=x, P=P, timestamp=meas_package.timestamp, is_initialized=True)
        self.x_prior = x.copy()
        self.P_prior = P.copy()

        logger.info(
            f"Initialized from {meas_package.sensor_type.value} at t={meas_package.timestamp}: "
            f"px={x[0]:.3f}, py={x[1]:.3f}"
        )

    def _predict(self, dt: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Time update; returns predicted mean, covariance and sigma points without mutating state."""
        sigma_points_aug = generate_augmented_sigma_points(
            self._state.x, self._state.P, self.noise, self.lambda_
        )
        sigma_points_pred = predict_sigma_points(sigma_points_aug, dt)
        x_pred, P_pred = predict_mean_and_covariance(sigma_points_pred, self.weights)
        return x_pred, P_pred, sigma_points_pred

    # -- Representation -----------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"UnscentedKalmanFilter(initialized={self._state.is_initialized}, "
            f"use_lidar={self.use_lidar}, use_radar={self.use_radar})"
        )


# Utility functions for filter evaluation

def compute_nis(innovation: np.ndarray, innovation_cov: np.ndarray) -> float:
    """
    Compute Normalized Innovation Squared (NIS) for filter evaluation.

    Args:
        innovation: Innovation vector
        innovation_cov: Innovation covariance matrix

    Returns:
        NIS value
    """
    try:
        inv_cov = np.linalg.inv(innovation_cov)
        nis = innovation.T @ inv_cov @ innovation
        return float(nis)
    except np.linalg.LinAlgError:
        return np.inf


def nis_consistency(nis_values: Sequence[float], dof: int,
                    confidence: float = 0.95) -> float:
    """
    Fraction of NIS values below the chi-squared bound.

    A consistent filter keeps roughly `confidence` of its NIS values under
    chi2.ppf(confidence, dof); 2 DOF for lidar, 3 for radar.

    Args:
        nis_values: NIS samples
        dof: Measurement dimension
        confidence: Chi-squared confidence level in (0, 1)

    Returns:
        Fraction in [0, 1] (nan for an empty sequence)
    """
    validate_range("confidence", confidence, 0.0, 1.0)
    values = np.asarray(list(nis_values), dtype=np.float64)
    if values.size == 0:
        return float('nan')

    threshold = chi2.ppf(confidence, dof)
    return float(np.mean(values <= threshold))
