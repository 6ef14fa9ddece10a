"""
fusion-ukf: CTRV Unscented Kalman Filter for lidar/radar fusion
"""

from .config_loader import NoiseParameters, FilterConfig, ConfigLoader
from .validators import ValidationError, ParameterOutOfRangeError
from .tracking import (
    SensorType,
    MeasurementPackage,
    FilterState,
    UnscentedKalmanFilter,
    FilterError,
    CovarianceError,
    DegenerateGeometryError,
)

__version__ = "1.0.0"

__all__ = [
    "NoiseParameters",
    "FilterConfig",
    "ConfigLoader",
    "ValidationError",
    "ParameterOutOfRangeError",
    "SensorType",
    "MeasurementPackage",
    "FilterState",
    "UnscentedKalmanFilter",
    "FilterError",
    "CovarianceError",
    "DegenerateGeometryError",
]
