"""
Utility modules for the back-office
"""
from .config_loader import UpstreamConfig, license_gate_enabled, load_upstream_config

__all__ = [
    'UpstreamConfig',
    'license_gate_enabled',
    'load_upstream_config',
]
