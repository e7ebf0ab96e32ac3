"""
SMPP PDU Factory

This module maps command IDs to PDU classes and provides the constructors the
session uses for binds, responses and negative acknowledgements.
"""

from typing import Any, Dict, Optional, Type, Union

from ...exceptions import SMPPPDUException
from ..constants import (
    DEFAULT_INTERFACE_VERSION,
    BindMode,
    CommandId,
    CommandStatus,
    get_response_command_id,
    is_response_command,
)
from .base import PDU
from .bind import (
    BindReceiver,
    BindReceiverResp,
    BindRequestPDU,
    BindTransceiver,
    BindTransceiverResp,
    BindTransmitter,
    BindTransmitterResp,
    Unbind,
    UnbindResp,
)
from .message import DeliverSm, DeliverSmResp, SubmitSm, SubmitSmResp
from .session import EnquireLink, EnquireLinkResp, GenericNack

# Mapping of command IDs to PDU classes
PDU_CLASSES: Dict[int, Type[PDU]] = {
    # Bind operations
    CommandId.BIND_TRANSMITTER: BindTransmitter,
    CommandId.BIND_TRANSMITTER_RESP: BindTransmitterResp,
    CommandId.BIND_RECEIVER: BindReceiver,
    CommandId.BIND_RECEIVER_RESP: BindReceiverResp,
    CommandId.BIND_TRANSCEIVER: BindTransceiver,
    CommandId.BIND_TRANSCEIVER_RESP: BindTransceiverResp,
    CommandId.UNBIND: Unbind,
    CommandId.UNBIND_RESP: UnbindResp,
    # Message operations
    CommandId.SUBMIT_SM: SubmitSm,
    CommandId.SUBMIT_SM_RESP: SubmitSmResp,
    CommandId.DELIVER_SM: DeliverSm,
    CommandId.DELIVER_SM_RESP: DeliverSmResp,
    # Session management
    CommandId.ENQUIRE_LINK: EnquireLink,
    CommandId.ENQUIRE_LINK_RESP: EnquireLinkResp,
    CommandId.GENERIC_NACK: GenericNack,
}


def get_pdu_class(command_id: int) -> Optional[Type[PDU]]:
    """Get PDU class for a given command ID, or None if it is not supported."""
    return PDU_CLASSES.get(command_id)


def is_command_supported(command_id: int) -> bool:
    return command_id in PDU_CLASSES


def create_pdu(command_id: int, **kwargs: Any) -> PDU:
    """Factory function to create PDU instances.

    Args:
        command_id: SMPP command ID
        **kwargs: PDU-specific parameters

    Returns:
        PDU: PDU instance

    Raises:
        SMPPPDUException: If command ID is not supported or creation fails
    """
    pdu_class = get_pdu_class(command_id)
    if pdu_class is None:
        raise SMPPPDUException(
            f'Unknown command ID: 0x{command_id:08X}', command_id=command_id
        )
    try:
        return pdu_class(command_id=command_id, **kwargs)
    except TypeError as e:
        raise SMPPPDUException(
            f'Failed to create PDU: {e}',
            command_id=command_id,
            pdu_type=pdu_class.__name__,
        ) from e


def create_response_pdu(
    request_command_id: int, sequence_number: int, command_status: int = 0, **kwargs
) -> PDU:
    """Create a response PDU for a given request command ID.

    Raises:
        SMPPPDUException: If the command ID is already a response or has no response class
    """
    if is_response_command(request_command_id):
        raise SMPPPDUException(
            f'Command ID 0x{request_command_id:08X} is already a response'
        )

    return create_pdu(
        get_response_command_id(request_command_id),
        sequence_number=sequence_number,
        command_status=command_status,
        **kwargs,
    )


def create_generic_nack_pdu(
    sequence_number: int, command_status: int = CommandStatus.ESME_RINVCMDID
) -> GenericNack:
    """Create a generic_nack echoing the offending PDU's sequence number"""
    return GenericNack(sequence_number=sequence_number, command_status=command_status)


def create_bind_pdu(
    bind_mode: Union[BindMode, str],
    system_id: str,
    password: str,
    system_type: str = '',
    interface_version: int = DEFAULT_INTERFACE_VERSION,
    addr_ton: int = 0,
    addr_npi: int = 0,
    address_range: str = '',
) -> BindRequestPDU:
    """
    Create a bind PDU of the specified mode.

    Args:
        bind_mode: 'transmitter', 'receiver', 'transceiver' or a BindMode
        system_id: System identifier
        password: Authentication password
        system_type: System type
        interface_version: SMPP interface version
        addr_ton: Address Type of Number
        addr_npi: Address Numbering Plan Indicator
        address_range: Address range

    Returns:
        Bind PDU instance

    Raises:
        SMPPPDUException: If bind mode is invalid
    """
    try:
        mode = BindMode.parse(bind_mode)
    except ValueError as e:
        raise SMPPPDUException(str(e)) from e

    pdu = create_pdu(
        mode.command_id,
        system_id=system_id,
        password=password,
        system_type=system_type,
        interface_version=interface_version,
        addr_ton=addr_ton,
        addr_npi=addr_npi,
        address_range=address_range,
    )
    assert isinstance(pdu, BindRequestPDU)
    return pdu
