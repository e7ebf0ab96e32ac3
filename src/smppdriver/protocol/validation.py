"""
SMPP Protocol Validation

Field-level checks applied before a PDU is built, so that callers get a
``SMPPValidationException`` naming the offending field instead of an encoder error.
"""

from ..exceptions import SMPPValidationException
from .constants import (
    MAX_ADDRESS_LENGTH,
    MAX_ADDRESS_RANGE_LENGTH,
    MAX_PASSWORD_LENGTH,
    MAX_SERVICE_TYPE_LENGTH,
    MAX_SHORT_MESSAGE_LENGTH,
    MAX_SYSTEM_ID_LENGTH,
    MAX_SYSTEM_TYPE_LENGTH,
    MAX_TIME_LENGTH,
    InterfaceVersion,
)


def validate_system_id(system_id: str) -> None:
    """
    Validate SMPP system ID field.

    Raises:
        SMPPValidationException: If system ID is empty or too long
    """
    if not system_id:
        raise SMPPValidationException(
            'System ID cannot be empty',
            field_name='system_id',
            validation_rule='non_empty',
        )

    if len(system_id) >= MAX_SYSTEM_ID_LENGTH:
        raise SMPPValidationException(
            f'System ID too long: {len(system_id)} >= {MAX_SYSTEM_ID_LENGTH}',
            field_name='system_id',
            field_value=system_id,
            validation_rule='max_length',
        )


def validate_password(password: str) -> None:
    """
    Validate SMPP password field.

    Raises:
        SMPPValidationException: If password is too long
    """
    # Password can be empty for some configurations
    if len(password) >= MAX_PASSWORD_LENGTH:
        raise SMPPValidationException(
            f'Password too long: {len(password)} >= {MAX_PASSWORD_LENGTH}',
            field_name='password',
            validation_rule='max_length',
        )


def validate_cstring_field(field_name: str, value: str, max_length: int) -> None:
    if len(value) >= max_length:
        raise SMPPValidationException(
            f'{field_name} too long: {len(value)} >= {max_length}',
            field_name=field_name,
            field_value=value,
            validation_rule='max_length',
        )


def validate_octet(field_name: str, value: int) -> None:
    if not (0 <= value <= 0xFF):
        raise SMPPValidationException(
            f'Invalid {field_name}: {value}',
            field_name=field_name,
            field_value=str(value),
            validation_rule='octet_range',
        )


def validate_address(address: str, field_name: str = 'address', required: bool = True) -> None:
    """
    Validate a source or destination address.

    Addresses are free-form (alphanumeric senders, '+'-prefixed numbers), so only
    presence and length are enforced.

    Raises:
        SMPPValidationException: If address is missing or too long
    """
    if required and not address:
        raise SMPPValidationException(
            f'{field_name} is required',
            field_name=field_name,
            validation_rule='non_empty',
        )
    validate_cstring_field(field_name, address, MAX_ADDRESS_LENGTH)


def validate_message_length(message: bytes) -> None:
    """
    Reject short messages that do not fit the short_message field.

    Raises:
        SMPPValidationException: If message is longer than 254 octets
    """
    if len(message) > MAX_SHORT_MESSAGE_LENGTH:
        raise SMPPValidationException(
            f'Message too long: {len(message)} > {MAX_SHORT_MESSAGE_LENGTH} bytes',
            field_name='short_message',
            validation_rule='max_length',
        )


def validate_bind_parameters(
    system_id: str,
    password: str,
    system_type: str = '',
    interface_version: int = InterfaceVersion.VERSION_3_4,
    addr_ton: int = 0,
    addr_npi: int = 0,
    address_range: str = '',
) -> None:
    """
    Validate all bind operation parameters.

    Raises:
        SMPPValidationException: If any parameter is invalid
    """
    validate_system_id(system_id)
    validate_password(password)
    validate_cstring_field('system_type', system_type, MAX_SYSTEM_TYPE_LENGTH)
    validate_octet('interface_version', interface_version)
    validate_octet('addr_ton', addr_ton)
    validate_octet('addr_npi', addr_npi)
    validate_cstring_field('address_range', address_range, MAX_ADDRESS_RANGE_LENGTH)


def validate_submit_sm_parameters(
    source_addr: str,
    destination_addr: str,
    short_message: bytes,
    source_addr_ton: int = 0,
    source_addr_npi: int = 0,
    dest_addr_ton: int = 0,
    dest_addr_npi: int = 0,
    data_coding: int = 0,
    esm_class: int = 0,
    protocol_id: int = 0,
    priority_flag: int = 0,
    registered_delivery: int = 0,
    service_type: str = '',
    schedule_delivery_time: str = '',
    validity_period: str = '',
) -> None:
    """
    Validate all submit_sm operation parameters.

    Raises:
        SMPPValidationException: If any parameter is invalid
    """
    validate_address(source_addr, 'source_addr', required=False)
    validate_address(destination_addr, 'destination_addr')
    validate_message_length(short_message)
    validate_cstring_field('service_type', service_type, MAX_SERVICE_TYPE_LENGTH)
    validate_cstring_field('schedule_delivery_time', schedule_delivery_time, MAX_TIME_LENGTH)
    validate_cstring_field('validity_period', validity_period, MAX_TIME_LENGTH)
    for name, value in (
        ('source_addr_ton', source_addr_ton),
        ('source_addr_npi', source_addr_npi),
        ('dest_addr_ton', dest_addr_ton),
        ('dest_addr_npi', dest_addr_npi),
        ('data_coding', data_coding),
        ('esm_class', esm_class),
        ('protocol_id', protocol_id),
        ('registered_delivery', registered_delivery),
    ):
        validate_octet(name, value)

    if not (0 <= priority_flag <= 3):
        raise SMPPValidationException(
            f'Invalid priority_flag: {priority_flag}',
            field_name='priority_flag',
            field_value=str(priority_flag),
            validation_rule='priority_range',
        )
