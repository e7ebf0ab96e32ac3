"""
SMPP PDU Module

This module provides the PDU (Protocol Data Unit) implementations the client engine
speaks, TLV parameter handling, and factory functions.

The module is organized into:
- base: Base PDU classes and TLV parameters
- bind: Bind and unbind PDUs (transmitter, receiver, transceiver)
- message: Message PDUs (submit_sm, deliver_sm)
- session: Link management PDUs (enquire_link, generic_nack)
- factory: PDU lookup and construction functions
"""

from .base import PDU, EmptyBodyPDU, RequestPDU, ResponsePDU, TLVParameter
from .bind import (
    BindReceiver,
    BindReceiverResp,
    BindRequestPDU,
    BindResponsePDU,
    BindTransceiver,
    BindTransceiverResp,
    BindTransmitter,
    BindTransmitterResp,
    Unbind,
    UnbindResp,
)
from .factory import (
    PDU_CLASSES,
    create_bind_pdu,
    create_generic_nack_pdu,
    create_pdu,
    create_response_pdu,
    get_pdu_class,
    is_command_supported,
)
from .message import (
    DeliverSm,
    DeliverSmResp,
    MessageResponsePDU,
    ShortMessagePDU,
    SubmitSm,
    SubmitSmResp,
)
from .session import EnquireLink, EnquireLinkResp, GenericNack

__all__ = [
    # Base classes
    'PDU',
    'TLVParameter',
    'RequestPDU',
    'ResponsePDU',
    'EmptyBodyPDU',
    'BindRequestPDU',
    'BindResponsePDU',
    'ShortMessagePDU',
    'MessageResponsePDU',
    # Bind PDUs
    'BindTransmitter',
    'BindTransmitterResp',
    'BindReceiver',
    'BindReceiverResp',
    'BindTransceiver',
    'BindTransceiverResp',
    'Unbind',
    'UnbindResp',
    # Message PDUs
    'SubmitSm',
    'SubmitSmResp',
    'DeliverSm',
    'DeliverSmResp',
    # Session PDUs
    'EnquireLink',
    'EnquireLinkResp',
    'GenericNack',
    # Factory functions
    'create_pdu',
    'create_response_pdu',
    'create_bind_pdu',
    'create_generic_nack_pdu',
    'get_pdu_class',
    'is_command_supported',
    'PDU_CLASSES',
]
