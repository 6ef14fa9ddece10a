"""
Sensor measurements consumed by the unscented Kalman filter.

A measurement is either a lidar position fix [px, py] or a radar polar
reading [rho, phi, rho_dot]; the sensor tag decides which update runs.
"""

from dataclasses import dataclass
from enum import Enum
import numpy as np
import numpy.typing as npt

from ..constants import LIDAR_DIM, RADAR_DIM


class SensorType(Enum):
    """Enumeration of supported sensor types."""
    LIDAR = "lidar"
    RADAR = "radar"


_EXPECTED_DIM = {
    SensorType.LIDAR: LIDAR_DIM,
    SensorType.RADAR: RADAR_DIM,
}


@dataclass
class MeasurementPackage:
    """
    A single timestamped sensor reading.

    Attributes:
        sensor_type: Which sensor produced the reading
        raw_measurements: [px, py] for lidar, [rho, phi, rho_dot] for radar
        timestamp: Time of measurement in integer microseconds
    """

    sensor_type: SensorType
    raw_measurements: npt.NDArray[np.float64]
    timestamp: int

    def __post_init__(self):
        """Validate measurement data after initialization."""
        if not isinstance(self.sensor_type, SensorType):
            raise ValueError(f"Unknown sensor type: {self.sensor_type!r}")

        self.raw_measurements = np.asarray(self.raw_measurements, dtype=np.float64)
        self.timestamp = int(self.timestamp)

        expected = _EXPECTED_DIM[self.sensor_type]
        if self.raw_measurements.shape != (expected,):
            raise ValueError(
                f"{self.sensor_type.value} measurement must have shape ({expected},), "
                f"got {self.raw_measurements.shape}"
            )
        if not np.all(np.isfinite(self.raw_measurements)):
            raise ValueError("Measurement contains NaN or Inf")

    @classmethod
    def lidar(cls, px: float, py: float, timestamp: int) -> "MeasurementPackage":
        """Build a lidar position measurement."""
        return cls(SensorType.LIDAR, np.array([px, py]), timestamp)

    @classmethod
    def radar(cls, rho: float, phi: float, rho_dot: float, timestamp: int) -> "MeasurementPackage":
        """Build a radar range/bearing/range-rate measurement."""
        return cls(SensorType.RADAR, np.array([rho, phi, rho_dot]), timestamp)
