#!/usr/bin/env python3
"""
Configuration loader for filter noise settings
Handles YAML parsing, validation, and filter configuration setup
"""

import yaml
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Any
from pathlib import Path
import logging

from .validators import NoiseParameterValidator

# Set up logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoiseParameters:
    """Process and measurement noise standard deviations"""
    # Process noise (tunable)
    std_a: float = 0.3          # longitudinal acceleration, m/s^2
    std_yawdd: float = 0.3      # yaw acceleration, rad/s^2

    # Lidar noise (sensor specification)
    std_laspx: float = 0.15     # m
    std_laspy: float = 0.15     # m

    # Radar noise (sensor specification)
    std_radr: float = 0.3       # range, m
    std_radphi: float = 0.03    # bearing, rad
    std_radrd: float = 0.3      # range rate, m/s

    @property
    def lidar_noise_covariance(self) -> np.ndarray:
        """R for the lidar update"""
        return np.diag([self.std_laspx**2, self.std_laspy**2])

    @property
    def radar_noise_covariance(self) -> np.ndarray:
        """R for the radar update"""
        return np.diag([self.std_radr**2, self.std_radphi**2, self.std_radrd**2])

    @property
    def process_noise_covariance(self) -> np.ndarray:
        """Noise block of the augmented covariance"""
        return np.diag([self.std_a**2, self.std_yawdd**2])


@dataclass
class FilterConfig:
    """Complete filter configuration"""
    name: str = "default"
    description: str = ""
    noise: NoiseParameters = field(default_factory=NoiseParameters)
    use_lidar: bool = True
    use_radar: bool = True


class ConfigLoader:
    """Load and validate filter configurations"""

    def __init__(self, config_dir: str = "configs"):
        """
        Initialize configuration loader

        Args:
            config_dir: Directory containing configuration files
        """
        self.config_dir = Path(config_dir)
        self.filters_dir = self.config_dir / "filters"

    def load_config(self, config_name: str) -> FilterConfig:
        """
        Load a filter configuration from YAML

        Args:
            config_name: Name of config file (with or without .yaml) or a path

        Returns:
            FilterConfig object
        """
        filepath = Path(config_name)
        if not filepath.exists():
            if not config_name.endswith('.yaml'):
                config_name += '.yaml'
            filepath = self.filters_dir / config_name

        if not filepath.exists():
            raise FileNotFoundError(f"Filter config file not found: {filepath}")

        logger.info(f"Loading filter config: {filepath}")

        with open(filepath, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        return self.parse_config(config_dict)

    def parse_config(self, config_dict: Dict[str, Any]) -> FilterConfig:
        """Parse configuration dictionary into configuration objects"""
        defaults = NoiseParameters()

        header = config_dict.get('filter', {})
        process_cfg = config_dict.get('process_noise', {})
        lidar_cfg = config_dict.get('lidar', {})
        radar_cfg = config_dict.get('radar', {})

        noise = NoiseParameters(
            std_a=float(process_cfg.get('std_a', defaults.std_a)),
            std_yawdd=float(process_cfg.get('std_yawdd', defaults.std_yawdd)),
            std_laspx=float(lidar_cfg.get('std_px', defaults.std_laspx)),
            std_laspy=float(lidar_cfg.get('std_py', defaults.std_laspy)),
            std_radr=float(radar_cfg.get('std_r', defaults.std_radr)),
            std_radphi=float(radar_cfg.get('std_phi', defaults.std_radphi)),
            std_radrd=float(radar_cfg.get('std_rd', defaults.std_radrd))
        )

        return FilterConfig(
            name=header.get('name', 'default'),
            description=header.get('description', ''),
            noise=noise,
            use_lidar=bool(lidar_cfg.get('enabled', True)),
            use_radar=bool(radar_cfg.get('enabled', True))
        )

    def list_configs(self) -> List[str]:
        """List available filter config files"""
        return sorted(file.stem for file in self.filters_dir.glob("*.yaml"))

    def validate_config(self, config: FilterConfig) -> List[str]:
        """
        Validate filter configuration

        Returns:
            List of validation warnings/errors
        """
        result = NoiseParameterValidator.validate_noise_parameters(config.noise, strict=False)
        warnings = result.errors + result.warnings

        if not config.use_lidar and not config.use_radar:
            warnings.append("Both sensors are disabled; only the first measurement will be used")

        return warnings

    def save_config(self, config: FilterConfig, filename: str):
        """Save filter configuration to YAML file"""

        if not filename.endswith('.yaml'):
            filename += '.yaml'

        self.filters_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.filters_dir / filename

        with open(filepath, 'w') as f:
            yaml.dump(self.config_to_dict(config), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved filter config to {filepath}")

    def config_to_dict(self, config: FilterConfig) -> Dict:
        """Convert filter config to dictionary"""
        noise = config.noise
        return {
            'filter': {
                'name': config.name,
                'description': config.description
            },
            'process_noise': {
                'std_a': noise.std_a,
                'std_yawdd': noise.std_yawdd
            },
            'lidar': {
                'enabled': config.use_lidar,
                'std_px': noise.std_laspx,
                'std_py': noise.std_laspy
            },
            'radar': {
                'enabled': config.use_radar,
                'std_r': noise.std_radr,
                'std_phi': noise.std_radphi,
                'std_rd': noise.std_radrd
            }
        }
