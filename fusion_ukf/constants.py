"""
Dimensional and Numerical Constants for the CTRV Unscented Kalman Filter

This module contains the fixed dimensions, sigma point parameters and
numerical thresholds used throughout the estimator.
"""

import numpy as np
from dataclasses import dataclass


# ============================================================================
# STATE DIMENSIONS
# ============================================================================

# State vector [px, py, v, yaw, yaw_rate]
STATE_DIM = 5

# Augmented with longitudinal and yaw acceleration noise [.., nu_a, nu_yawdd]
AUGMENTED_DIM = 7

# Sigma point spreading parameter
SPREADING_PARAMETER = 3 - AUGMENTED_DIM

# Number of sigma points
N_SIGMA_POINTS = 2 * AUGMENTED_DIM + 1

# Measurement dimensions
LIDAR_DIM = 2  # [px, py]
RADAR_DIM = 3  # [rho, phi, rho_dot]

# Index of the heading component in the state vector
YAW_INDEX = 3

# Index of the bearing component in the radar measurement vector
BEARING_INDEX = 1


# ============================================================================
# NUMERICAL THRESHOLDS
# ============================================================================

# Below this |yaw_rate| (rad/s) the straight-line CTRV update is used
TURN_RATE_THRESHOLD = 0.001

# Radar ranges below this (m) have no defined bearing or range rate
MIN_RADAR_RANGE = 1e-4

# Tolerance for the sigma weight normalization check
WEIGHT_SUM_TOLERANCE = 1e-9

# Timestamps are integer microseconds
MICROSECONDS_PER_SECOND = 1e6


# ============================================================================
# NOISE PARAMETER LIMITS
# ============================================================================

@dataclass
class FilterLimits:
    """Plausibility limits for noise standard deviations"""
    # Process noise
    MAX_STD_A: float = 30.0           # m/s^2
    MAX_STD_YAWDD: float = 2 * np.pi  # rad/s^2

    # Lidar
    MAX_STD_LIDAR: float = 5.0        # m

    # Radar
    MAX_STD_RANGE: float = 10.0       # m
    MAX_STD_BEARING: float = 0.5      # rad
    MAX_STD_RANGE_RATE: float = 10.0  # m/s


def microseconds_to_seconds(delta_us: float) -> float:
    """Convert a timestamp difference in microseconds to seconds"""
    return delta_us / MICROSECONDS_PER_SECOND
