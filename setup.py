#!/usr/bin/env python3
"""
fusion-ukf Setup Script
CTRV Unscented Kalman Filter for lidar/radar fusion
"""

from setuptools import setup, find_packages


setup(
    name='fusion-ukf',
    version='1.0.0',
    description='CTRV Unscented Kalman Filter fusing lidar and radar measurements',
    packages=find_packages(where='.', exclude=['tests']),
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.21.0',
        'scipy>=1.7.0',
        'pyyaml>=5.4.0',
    ],
    extras_require={
        'test': ['pytest>=7.0.0'],
        'dev': ['pytest>=7.0.0', 'pytest-cov>=4.0.0'],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    keywords=['kalman-filter', 'ukf', 'sensor-fusion', 'lidar', 'radar', 'tracking'],
)
