"""
SMPP Utilities Module

This module provides helper functions shared by the client: masking secrets for
logs, logging setup for scripts, and SMPP time string formatting.
"""

import calendar
import logging
import time
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

if TYPE_CHECKING:
    from .config import LoggingConfig

_SENSITIVE_FIELDS = ('password', 'passwd', 'secret')


def mask_sensitive_data(text: str, field_name: str = '') -> str:
    """Mask sensitive data for logging."""
    if any(name in field_name.lower() for name in _SENSITIVE_FIELDS):
        return '*' * min(len(text), 8) if text else ''
    return text


def mask_options(options: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of an options mapping with sensitive values masked."""
    return {
        key: mask_sensitive_data(str(value), key)
        if any(name in key.lower() for name in _SENSITIVE_FIELDS)
        else value
        for key, value in options.items()
    }


def setup_logging(config: Union['LoggingConfig', int, None] = None) -> None:
    """
    Set up logging for scripts and examples.

    Args:
        config: A LoggingConfig, a numeric level, or None for INFO to the console
    """
    if config is None or isinstance(config, int):
        logging.basicConfig(
            level=config or logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        )
        return

    config.validate()
    handlers = []
    if config.enable_console:
        handlers.append(logging.StreamHandler())
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, encoding='utf-8'))
    logging.basicConfig(
        level=config.numeric_level,
        format=config.format,
        handlers=handlers or [logging.NullHandler()],
        force=True,
    )


def format_smpp_time(timestamp: Optional[float] = None) -> str:
    """Format an absolute UTC time for SMPP protocol (YYMMDDhhmmsstnnp)."""
    if timestamp is None:
        timestamp = time.time()
    return time.strftime('%y%m%d%H%M%S000+', time.gmtime(timestamp))


def format_relative_time(seconds: Union[int, float]) -> str:
    """Format a duration as an SMPP relative time (YYMMDDhhmmss000R)."""
    total = int(seconds)
    if total < 0:
        raise ValueError(f'Relative time cannot be negative: {seconds}')

    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    # Years and months are not normalised; days carry the remainder
    if days > 99:
        raise ValueError(f'Relative time too long: {seconds}s')
    return f'0000{days:02d}{hours:02d}{minutes:02d}{secs:02d}000R'


def parse_smpp_time(smpp_time: str) -> Optional[float]:
    """Parse the date part of an SMPP time string to a UTC timestamp."""
    if not smpp_time or len(smpp_time) < 10:
        return None
    try:
        # Delivery receipts carry YYMMDDhhmm, absolute times YYMMDDhhmmss
        digits = smpp_time[:12] if smpp_time[10:12].isdigit() else smpp_time[:10] + '00'
        parsed = time.strptime(f'20{digits}', '%Y%m%d%H%M%S')
        return float(calendar.timegm(parsed))
    except ValueError:
        return None


__all__ = [
    # Security
    'mask_sensitive_data',
    'mask_options',
    # Logging
    'setup_logging',
    # Time handling
    'format_smpp_time',
    'format_relative_time',
    'parse_smpp_time',
]
