"""
SMPP Configuration Management

This module provides the client configuration: defaults, validation, and loading
from dictionaries, environment variables and JSON files.
"""

from .base import BaseConfig
from .settings import LoggingConfig, SMPPClientConfig, create_client_config

__all__ = [
    'BaseConfig',
    'LoggingConfig',
    'SMPPClientConfig',
    'create_client_config',
]
