"""
SMPP Message PDU Implementations

This module contains the message PDUs: submit_sm and deliver_sm, which share one
body layout, and their responses carrying the SMSC message_id.
"""

import re
from dataclasses import dataclass
from typing import Dict

from ...exceptions import (
    SMPPMalformedPDUException,
    SMPPPDUException,
    SMPPValidationException,
)
from ..codec import (
    decode_cstring,
    decode_octets,
    decode_short_message,
    encode_cstring,
)
from ..constants import (
    MAX_ADDRESS_LENGTH,
    MAX_MESSAGE_ID_LENGTH,
    MAX_SERVICE_TYPE_LENGTH,
    MAX_TIME_LENGTH,
    CommandId,
    EsmClass,
    OptionalTag,
)
from ..validation import validate_submit_sm_parameters
from .base import RequestPDU, ResponsePDU

# id:XXXX sub:SSS dlvrd:DDD submit date:YYMMDDhhmm done date:YYMMDDhhmm stat:DDDDDDD err:EEE text:...
_RECEIPT_PATTERNS = {
    'id': r'id:(\S+)',
    'sub': r'sub:(\d+)',
    'dlvrd': r'dlvrd:(\d+)',
    'submit_date': r'submit date:(\d+)',
    'done_date': r'done date:(\d+)',
    'stat': r'stat:(\w+)',
    'err': r'err:(\w+)',
    'text': r'text:(.*)$',
}


@dataclass
class ShortMessagePDU(RequestPDU):
    """Shared body of submit_sm and deliver_sm"""

    service_type: str = ''
    source_addr_ton: int = 0
    source_addr_npi: int = 0
    source_addr: str = ''
    dest_addr_ton: int = 0
    dest_addr_npi: int = 0
    destination_addr: str = ''
    esm_class: int = 0
    protocol_id: int = 0
    priority_flag: int = 0
    schedule_delivery_time: str = ''
    validity_period: str = ''
    registered_delivery: int = 0
    replace_if_present_flag: int = 0
    data_coding: int = 0
    sm_default_msg_id: int = 0
    short_message: bytes = b''

    def encode_body(self) -> bytes:
        """Encode message PDU body

        Raises:
            SMPPPDUException: If a field is out of range or short message is too long
        """
        try:
            validate_submit_sm_parameters(
                self.source_addr,
                self.destination_addr,
                self.short_message,
                source_addr_ton=self.source_addr_ton,
                source_addr_npi=self.source_addr_npi,
                dest_addr_ton=self.dest_addr_ton,
                dest_addr_npi=self.dest_addr_npi,
                data_coding=self.data_coding,
                esm_class=self.esm_class,
                protocol_id=self.protocol_id,
                priority_flag=self.priority_flag,
                registered_delivery=self.registered_delivery,
                service_type=self.service_type,
                schedule_delivery_time=self.schedule_delivery_time,
                validity_period=self.validity_period,
            )
        except SMPPValidationException as e:
            raise SMPPPDUException(f'Invalid message parameters: {e}') from e

        return (
            encode_cstring(self.service_type, MAX_SERVICE_TYPE_LENGTH)
            + bytes((self.source_addr_ton, self.source_addr_npi))
            + encode_cstring(self.source_addr, MAX_ADDRESS_LENGTH)
            + bytes((self.dest_addr_ton, self.dest_addr_npi))
            + encode_cstring(self.destination_addr, MAX_ADDRESS_LENGTH)
            + bytes(
                (
                    self.esm_class,
                    self.protocol_id,
                    self.priority_flag,
                )
            )
            + encode_cstring(self.schedule_delivery_time, MAX_TIME_LENGTH)
            + encode_cstring(self.validity_period, MAX_TIME_LENGTH)
            + bytes(
                (
                    self.registered_delivery,
                    self.replace_if_present_flag,
                    self.data_coding,
                    self.sm_default_msg_id,
                    len(self.short_message),
                )
            )
            + self.short_message
        )

    def decode_body(self, data: bytes, offset: int = 0) -> int:
        self.service_type, offset = decode_cstring(data, offset, MAX_SERVICE_TYPE_LENGTH)
        (self.source_addr_ton, self.source_addr_npi), offset = decode_octets(
            data, offset, 2, 'source address fields'
        )
        self.source_addr, offset = decode_cstring(data, offset, MAX_ADDRESS_LENGTH)
        (self.dest_addr_ton, self.dest_addr_npi), offset = decode_octets(
            data, offset, 2, 'destination address fields'
        )
        self.destination_addr, offset = decode_cstring(data, offset, MAX_ADDRESS_LENGTH)
        (self.esm_class, self.protocol_id, self.priority_flag), offset = decode_octets(
            data, offset, 3, 'message fields'
        )
        self.schedule_delivery_time, offset = decode_cstring(data, offset, MAX_TIME_LENGTH)
        self.validity_period, offset = decode_cstring(data, offset, MAX_TIME_LENGTH)
        (
            self.registered_delivery,
            self.replace_if_present_flag,
            self.data_coding,
            self.sm_default_msg_id,
            sm_length,
        ), offset = decode_octets(data, offset, 5, 'message fields')

        if offset + sm_length > len(data):
            raise SMPPMalformedPDUException('Insufficient data for short message')

        self.short_message = bytes(data[offset : offset + sm_length])
        return offset + sm_length

    @property
    def payload(self) -> bytes:
        """Message octets: short_message, or the message_payload TLV when it is empty"""
        if self.short_message:
            return self.short_message
        return self.get_optional_parameter_value(OptionalTag.MESSAGE_PAYLOAD) or b''

    def get_message_text(self) -> str:
        """Message text decoded according to data_coding"""
        return decode_short_message(self.payload, self.data_coding)

    def is_delivery_receipt_requested(self) -> bool:
        return bool(self.registered_delivery & 0x01)


@dataclass
class SubmitSm(ShortMessagePDU):
    """SUBMIT_SM PDU - Request to submit a short message"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.SUBMIT_SM
        super().__post_init__()


@dataclass
class DeliverSm(ShortMessagePDU):
    """DELIVER_SM PDU - Mobile originated message or delivery receipt"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.DELIVER_SM
        super().__post_init__()

    def is_delivery_receipt(self) -> bool:
        return bool(self.esm_class & EsmClass.DELIVERY_RECEIPT)

    def parse_delivery_receipt(self) -> Dict[str, str]:
        """Parse delivery receipt text into its fields

        Returns:
            dict: Fields present in the receipt (id, stat, err, ...)

        Raises:
            SMPPPDUException: If PDU is not a delivery receipt
        """
        if not self.is_delivery_receipt():
            raise SMPPPDUException('PDU is not a delivery receipt')

        receipt_text = self.get_message_text()
        receipt_data = {}
        for key, pattern in _RECEIPT_PATTERNS.items():
            match = re.search(pattern, receipt_text, re.IGNORECASE)
            if match:
                receipt_data[key] = match.group(1).strip()

        receipted_id = self.get_optional_parameter_value(OptionalTag.RECEIPTED_MESSAGE_ID)
        if receipted_id and 'id' not in receipt_data:
            receipt_data['id'] = receipted_id.rstrip(b'\x00').decode('latin-1')
        return receipt_data


@dataclass
class MessageResponsePDU(ResponsePDU):
    """Response carrying an SMSC message_id"""

    message_id: str = ''

    def encode_body(self) -> bytes:
        return encode_cstring(self.message_id, MAX_MESSAGE_ID_LENGTH)

    def decode_body(self, data: bytes, offset: int = 0) -> int:
        self.message_id, offset = decode_cstring(data, offset, MAX_MESSAGE_ID_LENGTH)
        return offset


@dataclass
class SubmitSmResp(MessageResponsePDU):
    """SUBMIT_SM_RESP PDU - Response to submit_sm"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.SUBMIT_SM_RESP
        super().__post_init__()


@dataclass
class DeliverSmResp(MessageResponsePDU):
    """DELIVER_SM_RESP PDU - Response to deliver_sm; message_id is unused and empty"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.DELIVER_SM_RESP
        super().__post_init__()
