"""
SMPP Bind PDU Implementations

This module contains the bind requests and responses for transmitter, receiver and
transceiver modes, plus unbind and unbind_resp.
"""

from dataclasses import dataclass, field

from ...exceptions import SMPPPDUException, SMPPValidationException
from ..codec import decode_cstring, decode_octets, encode_cstring
from ..constants import (
    DEFAULT_INTERFACE_VERSION,
    MAX_ADDRESS_RANGE_LENGTH,
    MAX_PASSWORD_LENGTH,
    MAX_SYSTEM_ID_LENGTH,
    MAX_SYSTEM_TYPE_LENGTH,
    CommandId,
    OptionalTag,
)
from ..validation import validate_bind_parameters
from .base import EmptyBodyPDU, RequestPDU, ResponsePDU


@dataclass
class BindRequestPDU(RequestPDU):
    """Base class for bind requests (transmitter, receiver, transceiver)"""

    system_id: str = ''
    password: str = field(default='', repr=False)
    system_type: str = ''
    interface_version: int = DEFAULT_INTERFACE_VERSION
    addr_ton: int = 0
    addr_npi: int = 0
    address_range: str = ''

    def encode_body(self) -> bytes:
        """Encode bind request body with all fields"""
        # Convert validation errors for compatibility with the encoder contract
        try:
            validate_bind_parameters(
                self.system_id,
                self.password,
                self.system_type,
                self.interface_version,
                self.addr_ton,
                self.addr_npi,
                self.address_range,
            )
        except SMPPValidationException as e:
            raise SMPPPDUException(f'Invalid bind parameters: {e}') from e

        return (
            encode_cstring(self.system_id, MAX_SYSTEM_ID_LENGTH)
            + encode_cstring(self.password, MAX_PASSWORD_LENGTH)
            + encode_cstring(self.system_type, MAX_SYSTEM_TYPE_LENGTH)
            + bytes((self.interface_version, self.addr_ton, self.addr_npi))
            + encode_cstring(self.address_range, MAX_ADDRESS_RANGE_LENGTH)
        )

    def decode_body(self, data: bytes, offset: int = 0) -> int:
        """Decode bind request body with all fields"""
        self.system_id, offset = decode_cstring(data, offset, MAX_SYSTEM_ID_LENGTH)
        self.password, offset = decode_cstring(data, offset, MAX_PASSWORD_LENGTH)
        self.system_type, offset = decode_cstring(data, offset, MAX_SYSTEM_TYPE_LENGTH)
        (
            self.interface_version,
            self.addr_ton,
            self.addr_npi,
        ), offset = decode_octets(data, offset, 3, 'bind fields')
        self.address_range, offset = decode_cstring(
            data, offset, MAX_ADDRESS_RANGE_LENGTH
        )
        return offset


@dataclass
class BindResponsePDU(ResponsePDU):
    """Base class for bind responses; body is the SMSC system_id"""

    system_id: str = ''

    def encode_body(self) -> bytes:
        return encode_cstring(self.system_id, MAX_SYSTEM_ID_LENGTH)

    def decode_body(self, data: bytes, offset: int = 0) -> int:
        self.system_id, offset = decode_cstring(data, offset, MAX_SYSTEM_ID_LENGTH)
        return offset

    @property
    def sc_interface_version(self):
        """Interface version the SMSC advertised, if it sent the TLV"""
        value = self.get_optional_parameter_value(OptionalTag.SC_INTERFACE_VERSION)
        return value[0] if value else None


@dataclass
class BindTransmitter(BindRequestPDU):
    """BIND_TRANSMITTER PDU - Request to bind as transmitter"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.BIND_TRANSMITTER
        super().__post_init__()


@dataclass
class BindTransmitterResp(BindResponsePDU):
    """BIND_TRANSMITTER_RESP PDU - Response to bind_transmitter"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.BIND_TRANSMITTER_RESP
        super().__post_init__()


@dataclass
class BindReceiver(BindRequestPDU):
    """BIND_RECEIVER PDU - Request to bind as receiver"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.BIND_RECEIVER
        super().__post_init__()


@dataclass
class BindReceiverResp(BindResponsePDU):
    """BIND_RECEIVER_RESP PDU - Response to bind_receiver"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.BIND_RECEIVER_RESP
        super().__post_init__()


@dataclass
class BindTransceiver(BindRequestPDU):
    """BIND_TRANSCEIVER PDU - Request to bind as transceiver"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.BIND_TRANSCEIVER
        super().__post_init__()


@dataclass
class BindTransceiverResp(BindResponsePDU):
    """BIND_TRANSCEIVER_RESP PDU - Response to bind_transceiver"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.BIND_TRANSCEIVER_RESP
        super().__post_init__()


@dataclass
class Unbind(EmptyBodyPDU, RequestPDU):
    """UNBIND PDU - Request to end the session"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.UNBIND
        super().__post_init__()


@dataclass
class UnbindResp(EmptyBodyPDU, ResponsePDU):
    """UNBIND_RESP PDU - Response to unbind"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.UNBIND_RESP
        super().__post_init__()
