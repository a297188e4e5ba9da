"""
Core module initialization.
"""

from .config import (
    Config,
    get_config,
    init_config,
    reload_config,
    DatabaseConfig,
    APIConfig,
    ScanConfig,
    DeliveryConfig,
    SiteResolutionConfig,
    MonitoringConfig,
    YAMLConfigLoader
)

__all__ = [
    'Config',
    'get_config',
    'init_config',
    'reload_config',
    'DatabaseConfig',
    'APIConfig',
    'ScanConfig',
    'DeliveryConfig',
    'SiteResolutionConfig',
    'MonitoringConfig',
    'YAMLConfigLoader',
]
