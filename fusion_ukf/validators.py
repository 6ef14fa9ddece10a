"""
Input Validation Module for the Unscented Kalman Filter

This module validates process and sensor noise parameters before they reach
the estimator. A zero or negative standard deviation would make the augmented
covariance non positive-definite or the innovation covariance singular, so it
is rejected here rather than surfacing mid-cycle.
"""

import numpy as np
from typing import List
from dataclasses import dataclass

from .constants import FilterLimits


# ============================================================================
# CUSTOM EXCEPTIONS
# ============================================================================

class ValidationError(Exception):
    """Base exception for validation errors"""
    pass

class ParameterOutOfRangeError(ValidationError):
    """Raised when a parameter is outside acceptable range"""
    def __init__(self, param_name: str, value: float, min_val: float, max_val: float):
        self.param_name = param_name
        self.value = value
        self.min_val = min_val
        self.max_val = max_val
        super().__init__(
            f"{param_name} = {value} is outside valid range ({min_val}, {max_val}]"
        )


# ============================================================================
# VALIDATION RESULTS
# ============================================================================

@dataclass
class ValidationResult:
    """Container for validation results"""
    is_valid: bool
    errors: List[str]
    warnings: List[str]

    def add_error(self, message: str):
        """Add an error message"""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str):
        """Add a warning message"""
        self.warnings.append(message)

    def merge(self, other: "ValidationResult"):
        """Fold another result into this one"""
        for message in other.errors:
            self.add_error(message)
        self.warnings.extend(other.warnings)

    def raise_if_invalid(self):
        """Raise exception if validation failed"""
        if not self.is_valid:
            raise ValidationError("\n".join(self.errors))


# ============================================================================
# PARAMETER VALIDATORS
# ============================================================================

def _check_std(result: ValidationResult, name: str, value: float, max_val: float):
    """Standard deviations must be finite and strictly positive"""
    if value is None or not np.isfinite(value):
        result.add_error(f"{name} must be a finite number, got {value}")
    elif value <= 0:
        result.add_error(f"{name} must be strictly positive, got {value}")
    elif value > max_val:
        result.add_warning(f"{name} = {value} exceeds typical maximum {max_val}")


class NoiseParameterValidator:
    """Validates process and measurement noise standard deviations"""

    @staticmethod
    def validate_process_noise(std_a: float, std_yawdd: float,
                               strict: bool = True) -> ValidationResult:
        """
        Validate process noise standard deviations

        Args:
            std_a: Longitudinal acceleration noise in m/s^2
            std_yawdd: Yaw acceleration noise in rad/s^2
            strict: If True, raise exception on failure

        Returns:
            ValidationResult
        """
        result = ValidationResult(is_valid=True, errors=[], warnings=[])

        _check_std(result, "std_a", std_a, FilterLimits.MAX_STD_A)
        _check_std(result, "std_yawdd", std_yawdd, FilterLimits.MAX_STD_YAWDD)

        if strict and not result.is_valid:
            result.raise_if_invalid()

        return result

    @staticmethod
    def validate_lidar_noise(std_px: float, std_py: float,
                             strict: bool = True) -> ValidationResult:
        """Validate lidar position noise"""
        result = ValidationResult(is_valid=True, errors=[], warnings=[])

        _check_std(result, "std_laspx", std_px, FilterLimits.MAX_STD_LIDAR)
        _check_std(result, "std_laspy", std_py, FilterLimits.MAX_STD_LIDAR)

        if strict and not result.is_valid:
            result.raise_if_invalid()

        return result

    @staticmethod
    def validate_radar_noise(std_r: float, std_phi: float, std_rd: float,
                             strict: bool = True) -> ValidationResult:
        """Validate radar range, bearing and range-rate noise"""
        result = ValidationResult(is_valid=True, errors=[], warnings=[])

        _check_std(result, "std_radr", std_r, FilterLimits.MAX_STD_RANGE)
        _check_std(result, "std_radphi", std_phi, FilterLimits.MAX_STD_BEARING)
        _check_std(result, "std_radrd", std_rd, FilterLimits.MAX_STD_RANGE_RATE)

        if strict and not result.is_valid:
            result.raise_if_invalid()

        return result

    @staticmethod
    def validate_noise_parameters(params, strict: bool = True) -> ValidationResult:
        """
        Validate a complete set of noise parameters

        Args:
            params: NoiseParameters instance
            strict: If True, raise exception on failure

        Returns:
            Combined ValidationResult
        """
        result = ValidationResult(is_valid=True, errors=[], warnings=[])

        result.merge(NoiseParameterValidator.validate_process_noise(
            params.std_a, params.std_yawdd, strict=False))
        result.merge(NoiseParameterValidator.validate_lidar_noise(
            params.std_laspx, params.std_laspy, strict=False))
        result.merge(NoiseParameterValidator.validate_radar_noise(
            params.std_radr, params.std_radphi, params.std_radrd, strict=False))

        if strict and not result.is_valid:
            result.raise_if_invalid()

        return result


def validate_range(param_name: str, value: float, min_val: float, max_val: float) -> float:
    """
    Check a scalar lies in (min_val, max_val]

    Raises:
        ParameterOutOfRangeError: if it does not
    """
    if not (min_val < value <= max_val):
        raise ParameterOutOfRangeError(param_name, value, min_val, max_val)
    return value
