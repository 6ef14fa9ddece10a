"""
Lidar/radar state estimation module

This module provides an Unscented Kalman Filter that fuses lidar position fixes
and radar range/bearing/range-rate readings into a single estimate of a moving
object's position, speed, heading and turn rate.

Motion model:
- Constant Turn Rate and Velocity (CTRV) with augmented acceleration noise

Sensors supported:
- Lidar (Cartesian position, linear update)
- Radar (range, bearing, range rate; unscented update)
"""

from .measurement import (
    SensorType,
    MeasurementPackage,
)

from .motion_models import (
    normalize_angle,
    predict_sigma_point,
    predict_sigma_points,
    cartesian_to_polar,
    polar_to_cartesian,
)

from .kalman_filters import (
    # Errors
    FilterError,
    CovarianceError,
    DegenerateGeometryError,

    # State and filter
    FilterState,
    UpdateResult,
    UnscentedKalmanFilter,

    # Building blocks
    compute_sigma_weights,
    generate_augmented_sigma_points,
    predict_mean_and_covariance,
    lidar_update,
    radar_update,
    state_to_radar_measurement,

    # Evaluation
    compute_nis,
    nis_consistency,
)

__all__ = [
    # Measurements
    'SensorType',
    'MeasurementPackage',

    # Motion model and coordinate utilities
    'normalize_angle',
    'predict_sigma_point',
    'predict_sigma_points',
    'cartesian_to_polar',
    'polar_to_cartesian',

    # Errors
    'FilterError',
    'CovarianceError',
    'DegenerateGeometryError',

    # State and filter
    'FilterState',
    'UpdateResult',
    'UnscentedKalmanFilter',

    # Building blocks
    'compute_sigma_weights',
    'generate_augmented_sigma_points',
    'predict_mean_and_covariance',
    'lidar_update',
    'radar_update',
    'state_to_radar_measurement',

    # Evaluation
    'compute_nis',
    'nis_consistency',
]
