"""
SMPP Configuration Settings

This module defines the client and logging configuration, including the option
spellings used by load-test scripts (``systemID``, ``bindTimeoutMs`` ...).
"""

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional

from ..protocol.constants import (
    DEFAULT_INTERFACE_VERSION,
    DEFAULT_PORT,
    DEFAULT_SUBMIT_NPI,
    DEFAULT_SUBMIT_TON,
    MAX_ADDRESS_RANGE_LENGTH,
    MAX_PASSWORD_LENGTH,
    MAX_SYSTEM_ID_LENGTH,
    MAX_SYSTEM_TYPE_LENGTH,
    BindMode,
    InterfaceVersion,
)
from .base import BaseConfig

_VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class LoggingConfig(BaseConfig):
    """Logging configuration settings"""

    level: str = 'INFO'
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_file: Optional[str] = None
    enable_console: bool = True

    def validate(self) -> None:
        """Validate logging configuration"""
        if self.level.upper() not in _VALID_LOG_LEVELS:
            raise self._invalid('level', f'{self.level} is not a log level')

    @property
    def numeric_level(self) -> int:
        return getattr(logging, self.level.upper())


@dataclass
class SMPPClientConfig(BaseConfig):
    """
    Complete SMPP client configuration

    Timeouts and intervals are in seconds. Script options ending in ``Ms`` are
    converted from milliseconds when loaded through ``from_dict``.
    """

    aliases: ClassVar[Dict[str, str]] = {
        'systemID': 'system_id',
        'systemId': 'system_id',
        'systemType': 'system_type',
        'bind': 'bind_mode',
        'bindMode': 'bind_mode',
        'interfaceVersion': 'interface_version',
        'addrTon': 'addr_ton',
        'addrNpi': 'addr_npi',
        'addressRange': 'address_range',
        'windowSize': 'window_size',
        'writeTimeout': 'write_timeout',
        'connectTimeout': 'connect_timeout',
        'sourceAddrTon': 'source_addr_ton',
        'sourceAddrNpi': 'source_addr_npi',
        'destAddrTon': 'dest_addr_ton',
        'destAddrNpi': 'dest_addr_npi',
        'registeredDelivery': 'registered_delivery',
    }

    millisecond_aliases: ClassVar[Dict[str, str]] = {
        'bindTimeoutMs': 'bind_timeout',
        'submitTimeoutMs': 'submit_timeout',
        'enquireIntervalMs': 'enquire_link_interval',
        'enquireTimeoutMs': 'enquire_link_timeout',
        'unbindTimeoutMs': 'unbind_timeout',
    }

    # Connection details
    host: str = ''
    port: int = DEFAULT_PORT

    # Authentication
    system_id: str = ''
    password: str = ''
    system_type: str = ''

    # Bind settings
    bind_mode: str = BindMode.TRANSCEIVER.value
    interface_version: int = DEFAULT_INTERFACE_VERSION
    addr_ton: int = 0
    addr_npi: int = 0
    address_range: str = ''

    # Timeouts
    connect_timeout: float = 10.0
    write_timeout: float = 10.0
    bind_timeout: float = 10.0
    submit_timeout: float = 30.0
    unbind_timeout: float = 5.0

    # Keep-alive; an interval of 0 disables enquire_link
    enquire_link_interval: float = 30.0
    enquire_link_timeout: float = 10.0
    enquire_link_max_misses: int = 2

    # Flow control and robustness
    window_size: int = 10
    max_decode_errors: int = 3

    # submit_sm defaults
    source_addr_ton: int = DEFAULT_SUBMIT_TON
    source_addr_npi: int = DEFAULT_SUBMIT_NPI
    dest_addr_ton: int = DEFAULT_SUBMIT_TON
    dest_addr_npi: int = DEFAULT_SUBMIT_NPI
    registered_delivery: int = 0

    @classmethod
    def normalize(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        converted: Dict[str, Any] = {}
        for key, value in data.items():
            if key in cls.millisecond_aliases:
                try:
                    converted[cls.millisecond_aliases[key]] = float(value) / 1000.0
                except (TypeError, ValueError):
                    converted[cls.millisecond_aliases[key]] = value
            else:
                converted[key] = value
        # Explicit second-based options take precedence over millisecond ones
        for key, value in data.items():
            if key not in cls.millisecond_aliases:
                converted[key] = value
        return super().normalize(converted)

    @property
    def mode(self) -> BindMode:
        return BindMode.parse(self.bind_mode)

    def validate(self) -> None:
        """Validate complete client configuration"""
        if not self.host:
            raise self._invalid('host', 'host is required')
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise self._invalid('port', 'must be between 1 and 65535')
        if not self.system_id:
            raise self._invalid('system_id', 'system_id is required')
        if len(self.system_id) >= MAX_SYSTEM_ID_LENGTH:
            raise self._invalid(
                'system_id', f'too long (max {MAX_SYSTEM_ID_LENGTH - 1} chars)'
            )
        if len(self.password) >= MAX_PASSWORD_LENGTH:
            # Never echo the password back
            raise self._invalid_secret(
                'password', f'too long (max {MAX_PASSWORD_LENGTH - 1} chars)'
            )
        if len(self.system_type) >= MAX_SYSTEM_TYPE_LENGTH:
            raise self._invalid(
                'system_type', f'too long (max {MAX_SYSTEM_TYPE_LENGTH - 1} chars)'
            )
        if len(self.address_range) >= MAX_ADDRESS_RANGE_LENGTH:
            raise self._invalid(
                'address_range',
                f'too long (max {MAX_ADDRESS_RANGE_LENGTH - 1} chars)',
            )

        try:
            self.bind_mode = BindMode.parse(self.bind_mode).value
        except ValueError:
            raise self._invalid(
                'bind_mode', 'must be transmitter, receiver or transceiver'
            ) from None

        if self.interface_version not in (
            InterfaceVersion.VERSION_3_3,
            InterfaceVersion.VERSION_3_4,
        ):
            raise self._invalid('interface_version', 'unsupported interface version')

        for name in (
            'addr_ton',
            'addr_npi',
            'source_addr_ton',
            'source_addr_npi',
            'dest_addr_ton',
            'dest_addr_npi',
            'registered_delivery',
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or not (0 <= value <= 255):
                raise self._invalid(name, 'must be 0-255')

        for name in (
            'connect_timeout',
            'write_timeout',
            'bind_timeout',
            'submit_timeout',
            'unbind_timeout',
            'enquire_link_timeout',
        ):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value <= 0:
                raise self._invalid(name, 'must be positive')

        if self.enquire_link_interval < 0:
            raise self._invalid('enquire_link_interval', 'must not be negative')
        if self.enquire_link_max_misses < 1:
            raise self._invalid('enquire_link_max_misses', 'must be at least 1')
        if self.window_size < 1:
            raise self._invalid('window_size', 'must be at least 1')
        if self.max_decode_errors < 1:
            raise self._invalid('max_decode_errors', 'must be at least 1')

    def _invalid_secret(self, field_name: str, message: str):
        error = self._invalid(field_name, message)
        error.config_value = None
        error.context.pop('config_value', None)
        return error

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['password'] = '***' if self.password else ''
        return result


def create_client_config(**kwargs: Any) -> SMPPClientConfig:
    """
    Create a validated SMPP client configuration.

    Accepts field names as well as the script option spellings.

    Raises:
        SMPPConfigurationException: If configuration is invalid
    """
    return SMPPClientConfig.from_dict(kwargs)
