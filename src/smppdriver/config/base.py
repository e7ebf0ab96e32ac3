"""
SMPP Configuration Base Classes

This module provides the base configuration class with validation and loading from
dictionaries, environment variables and JSON files.
"""

from __future__ import annotations

import json
import os
import typing
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, ClassVar, Dict, Type, TypeVar, Union

from ..exceptions import SMPPConfigurationException

T = TypeVar('T', bound='BaseConfig')

_TRUE_VALUES = ('true', '1', 'yes', 'on')


def _convert_env_value(field_type: Any, value: str) -> Any:
    """Convert an environment string to the field's declared type."""
    if field_type in (bool, 'bool'):
        return value.lower() in _TRUE_VALUES
    if field_type in (int, 'int'):
        return int(value, 16) if value.lower().startswith('0x') else int(value)
    if field_type in (float, 'float'):
        return float(value)
    return value


@dataclass
class BaseConfig:
    """Base configuration class with validation and serialization."""

    # Alternative spellings accepted by from_dict, mapped to field names
    aliases: ClassVar[Dict[str, str]] = {}

    def validate(self) -> None:
        """Validate configuration values. Override in subclasses."""
        pass

    @classmethod
    def normalize(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Map aliases onto field names; explicit field names win."""
        result: Dict[str, Any] = {}
        for key, value in data.items():
            name = cls.aliases.get(key, key)
            if name in result and key != name:
                continue
            result[name] = value
        return result

    @classmethod
    def from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
        """Create config from dictionary; unknown keys are ignored."""
        field_names = {f.name for f in fields(cls)}
        filtered_data = {
            k: v for k, v in cls.normalize(data).items() if k in field_names
        }

        try:
            instance = cls(**filtered_data)
        except (TypeError, ValueError) as e:
            raise SMPPConfigurationException(
                f'Invalid configuration data for {cls.__name__}: {e}',
                original_error=e,
            ) from e

        instance.validate()
        return instance

    @classmethod
    def from_env(cls: Type[T], prefix: str = '') -> T:
        """Create config from environment variables named ``<PREFIX><FIELD>``."""
        env_data: Dict[str, Any] = {}
        prefix = prefix.upper()
        hints = typing.get_type_hints(cls)

        for f in fields(cls):
            env_key = f'{prefix}{f.name.upper()}'
            env_value = os.getenv(env_key)
            if env_value is None:
                continue

            field_type = hints.get(f.name, f.type)
            if field_type == typing.Optional[float]:
                field_type = float
            try:
                env_data[f.name] = _convert_env_value(field_type, env_value)
            except (ValueError, TypeError) as e:
                raise SMPPConfigurationException(
                    f'Invalid environment value for {env_key}: {env_value}',
                    config_key=env_key,
                    config_value=env_value,
                    original_error=e,
                ) from e

        return cls.from_dict(env_data)

    @classmethod
    def from_file(cls: Type[T], file_path: Union[str, Path]) -> T:
        """Create config from JSON file."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise SMPPConfigurationException(
                f'Configuration file not found: {file_path}',
                config_key='config_file',
                config_value=str(file_path),
            )

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise SMPPConfigurationException(
                f'Invalid JSON in configuration file: {file_path}',
                config_key='config_file',
                config_value=str(file_path),
                original_error=e,
            ) from e
        except OSError as e:
            raise SMPPConfigurationException(
                f'Error reading configuration file: {file_path}',
                config_key='config_file',
                config_value=str(file_path),
                original_error=e,
            ) from e

        if not isinstance(data, dict):
            raise SMPPConfigurationException(
                f'Configuration file must contain a JSON object: {file_path}',
                config_key='config_file',
                config_value=str(file_path),
            )
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, BaseConfig):
                value = value.to_dict()
            result[f.name] = value
        return result

    def _invalid(self, field_name: str, message: str) -> SMPPConfigurationException:
        return SMPPConfigurationException(
            f'Invalid {field_name}: {message}',
            config_key=field_name,
            config_value=str(getattr(self, field_name, '')),
        )
