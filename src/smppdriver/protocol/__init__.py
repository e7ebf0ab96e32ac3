"""
SMPP Protocol Module

Wire format for SMPP v3.4: constants, the codec, PDU classes and field validation.
Nothing in this package performs I/O.
"""

from .codec import (
    PDUHeader,
    decode_header,
    decode_pdu,
    decode_short_message,
    encode_pdu,
    encode_short_message,
)
from .constants import (
    BindMode,
    CommandId,
    CommandStatus,
    DataCoding,
    EsmClass,
    NpiType,
    OptionalTag,
    RegisteredDelivery,
    TonType,
    get_command_name,
    get_error_message,
)
from .pdu import PDU, TLVParameter

__all__ = [
    'PDUHeader',
    'encode_pdu',
    'decode_pdu',
    'decode_header',
    'encode_short_message',
    'decode_short_message',
    'BindMode',
    'CommandId',
    'CommandStatus',
    'DataCoding',
    'EsmClass',
    'NpiType',
    'OptionalTag',
    'RegisteredDelivery',
    'TonType',
    'get_command_name',
    'get_error_message',
    'PDU',
    'TLVParameter',
]
