"""
Test suite for the estimator.

Test Structure:
- test_kalman_filters.py: Sigma points, prediction, lidar/radar updates, the filter loop, NIS
- test_motion_models.py: CTRV propagation, angle normalization and coordinate transforms
- test_measurement.py: Measurement packages and sensor tags

To run all tests:
    pytest fusion_ukf/tracking/tests/

To run specific test modules:
    pytest fusion_ukf/tracking/tests/test_kalman_filters.py
    pytest fusion_ukf/tracking/tests/test_motion_models.py -v

To run with coverage:
    pytest fusion_ukf/tracking/tests/ --cov=fusion_ukf.tracking --cov-report=html

Author: fusion-ukf project
"""

__all__ = [
    'test_kalman_filters',
    'test_motion_models',
    'test_measurement',
]
