"""
Motion model for the unscented Kalman filter

This module provides the Constant Turn Rate and Velocity (CTRV) process model
used to propagate augmented sigma points, together with the angle and
coordinate utilities the filter needs on both sides of the update.

State vector: [px, py, v, yaw, yaw_rate]
Augmented sigma point: [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]

Author: fusion-ukf project
"""

import numpy as np
from typing import Tuple, Union

from ..constants import STATE_DIM, AUGMENTED_DIM, TURN_RATE_THRESHOLD


TWO_PI = 2.0 * np.pi


def normalize_angle(angle: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Wrap an angle (or array of angles) into (-pi, pi]

    Args:
        angle: Angle in radians

    Returns:
        Angle congruent to the input modulo 2*pi, in (-pi, pi]
    """
    angle = np.asarray(angle, dtype=np.float64)
    wrapped = angle - TWO_PI * np.ceil((angle - np.pi) / TWO_PI)
    # Rounding can land exactly on the excluded endpoint
    wrapped = np.where(wrapped <= -np.pi, wrapped + TWO_PI, wrapped)
    wrapped = np.where(wrapped > np.pi, wrapped - TWO_PI, wrapped)

    if wrapped.ndim == 0:
        return float(wrapped)
    return wrapped


def predict_sigma_point(sigma_point: np.ndarray, dt: float) -> np.ndarray:
    """
    Propagate one augmented sigma point through the CTRV model

    Args:
        sigma_point: Augmented sigma point [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]
        dt: Elapsed time in seconds

    Returns:
        Predicted state [px, py, v, yaw, yaw_rate]
    """
    if dt <= 0:
        # Duplicate or out-of-order timestamp: no motion
        return np.array(sigma_point[:STATE_DIM], dtype=np.float64)

    p_x, p_y, v, yaw, yawd, nu_a, nu_yawdd = sigma_point

    if abs(yawd) > TURN_RATE_THRESHOLD:
        px_p = p_x + v / yawd * (np.sin(yaw + yawd * dt) - np.sin(yaw))
        py_p = p_y + v / yawd * (np.cos(yaw) - np.cos(yaw + yawd * dt))
    else:
        # Straight line motion
        px_p = p_x + v * dt * np.cos(yaw)
        py_p = p_y + v * dt * np.sin(yaw)

    v_p = v
    yaw_p = yaw + yawd * dt
    yawd_p = yawd

    # Process noise
    dt2 = dt * dt
    px_p += 0.5 * nu_a * dt2 * np.cos(yaw)
    py_p += 0.5 * nu_a * dt2 * np.sin(yaw)
    v_p += nu_a * dt
    yaw_p += 0.5 * nu_yawdd * dt2
    yawd_p += nu_yawdd * dt

    return np.array([px_p, py_p, v_p, yaw_p, yawd_p])


def predict_sigma_points(sigma_points_aug: np.ndarray, dt: float) -> np.ndarray:
    """
    Propagate every augmented sigma point column

    Args:
        sigma_points_aug: Augmented sigma points, shape (AUGMENTED_DIM, n_sigma)
        dt: Elapsed time in seconds

    Returns:
        Predicted sigma points, shape (STATE_DIM, n_sigma)
    """
    if sigma_points_aug.shape[0] != AUGMENTED_DIM:
        raise ValueError(
            f"Expected {AUGMENTED_DIM} rows of augmented sigma points, "
            f"got {sigma_points_aug.shape[0]}"
        )

    return np.column_stack([
        predict_sigma_point(sigma_points_aug[:, i], dt)
        for i in range(sigma_points_aug.shape[1])
    ])


# Utility functions for coordinate transformations

def cartesian_to_polar(x: float, y: float, vx: float = 0, vy: float = 0) -> Tuple[float, float, float]:
    """
    Convert 2D Cartesian position/velocity to a radar reading

    Args:
        x, y: Cartesian position
        vx, vy: Cartesian velocity (optional)

    Returns:
        (range, bearing, range_rate) in (m, rad, m/s)
    """
    range_val = np.sqrt(x**2 + y**2)
    bearing = np.arctan2(y, x)

    if range_val > 0:
        range_rate = (x * vx + y * vy) / range_val
    else:
        range_rate = 0.0

    return float(range_val), float(bearing), float(range_rate)


def polar_to_cartesian(range_val: float, bearing: float) -> Tuple[float, float]:
    """
    Convert a radar range/bearing pair to 2D Cartesian position

    Args:
        range_val: Range in meters
        bearing: Bearing in radians

    Returns:
        (x, y) in meters
    """
    x = range_val * np.cos(bearing)
    y = range_val * np.sin(bearing)

    return float(x), float(y)
