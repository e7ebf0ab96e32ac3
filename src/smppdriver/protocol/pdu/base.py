"""
SMPP PDU Base Classes

This module contains the base PDU class and the shared body layouts used by the
concrete PDUs, according to the SMPP v3.4 specification.

The module provides:
- PDU: Abstract base class for all SMPP PDUs (header, TLV trailer, framing)
- TLVParameter: Tag-Length-Value optional parameter
- RequestPDU / ResponsePDU / EmptyBodyPDU: specialised bases
"""

import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ...exceptions import (
    SMPPMalformedPDUException,
    SMPPPDUException,
    SMPPUnknownCommandException,
)
from ..codec import check_command_length, decode_header, encode_header
from ..constants import MAX_PDU_SIZE, PDU_HEADER_SIZE, CommandStatus, get_command_name


class TLVParameter:
    """
    Tag-Length-Value parameter for optional parameters.

    Each parameter consists of a 16-bit tag, 16-bit length, and variable-length value.
    """

    def __init__(self, tag: int, value: bytes) -> None:
        if not (0 <= tag <= 0xFFFF):
            raise SMPPPDUException(f'Invalid TLV tag: {tag}')
        if len(value) > 0xFFFF:
            raise SMPPPDUException(f'TLV value too long: {len(value)} bytes')

        self.tag = tag
        self.length = len(value)
        self.value = value

    def encode(self) -> bytes:
        return struct.pack('>HH', self.tag, self.length) + self.value

    @classmethod
    def decode(cls, data: bytes, offset: int = 0) -> Tuple['TLVParameter', int]:
        """
        Decode TLV parameter from bytes.

        Returns:
            Tuple of (TLVParameter instance, new offset)

        Raises:
            SMPPMalformedPDUException: If the trailer is truncated
        """
        if len(data) - offset < 4:
            raise SMPPMalformedPDUException('Insufficient data for TLV header')

        tag, length = struct.unpack_from('>HH', data, offset)
        if len(data) - offset < 4 + length:
            raise SMPPMalformedPDUException('Insufficient data for TLV value')

        value = data[offset + 4 : offset + 4 + length]
        return cls(tag, value), offset + 4 + length

    def __repr__(self) -> str:
        return f'TLVParameter(tag=0x{self.tag:04X}, length={self.length}, value={self.value!r})'

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TLVParameter):
            return False
        return self.tag == other.tag and self.value == other.value

    def __hash__(self) -> int:
        return hash((self.tag, self.value))


@dataclass
class PDU(ABC):
    """
    Abstract base class for all SMPP PDUs.

    Attributes:
        command_id: The SMPP command identifier
        command_status: Status code (0 for requests, error code for responses)
        sequence_number: Correlation key; 0 means not yet assigned by a session
        optional_parameters: List of TLV optional parameters
    """

    command_id: int = 0
    command_status: int = CommandStatus.ESME_ROK
    sequence_number: int = 0
    optional_parameters: List[TLVParameter] = field(default_factory=list)

    def __post_init__(self) -> None:
        pass

    @abstractmethod
    def encode_body(self) -> bytes:
        """Encode the PDU-specific mandatory fields."""

    @abstractmethod
    def decode_body(self, data: bytes, offset: int = 0) -> int:
        """Decode the PDU-specific mandatory fields, returning the new offset."""

    @property
    def name(self) -> str:
        return get_command_name(self.command_id)

    def encode(self) -> bytes:
        """
        Encode complete PDU to bytes.

        Raises:
            SMPPPDUException: If a field is invalid or the PDU is too large
        """
        body = self.encode_body()
        optional_data = b''.join(param.encode() for param in self.optional_parameters)

        total_length = PDU_HEADER_SIZE + len(body) + len(optional_data)
        if total_length > MAX_PDU_SIZE:
            raise SMPPPDUException(
                f'PDU too large: {total_length} bytes exceeds maximum {MAX_PDU_SIZE}'
            )

        header = encode_header(
            total_length, self.command_id, self.command_status, self.sequence_number
        )
        return header + body + optional_data

    @classmethod
    def decode(cls, data: bytes) -> 'PDU':
        """
        Decode one complete PDU frame.

        Raises:
            SMPPMalformedPDUException: Length mismatch or truncated fields
            SMPPUnknownCommandException: The command_id is not supported
        """
        header = decode_header(data)
        check_command_length(header.command_length)

        if header.command_length != len(data):
            raise SMPPMalformedPDUException(
                f'PDU length mismatch: header says {header.command_length}, '
                f'got {len(data)} bytes',
                command_id=header.command_id,
                sequence_number=header.sequence_number,
            )

        from .factory import get_pdu_class

        pdu_class = get_pdu_class(header.command_id)
        if pdu_class is None:
            raise SMPPUnknownCommandException(
                f'Unknown command ID: 0x{header.command_id:08X}', header=header
            )

        pdu = pdu_class(
            command_id=header.command_id,
            command_status=header.command_status,
            sequence_number=header.sequence_number,
        )

        # Failed responses may omit the body entirely
        if header.command_status != CommandStatus.ESME_ROK and len(data) == PDU_HEADER_SIZE:
            return pdu

        try:
            offset = pdu.decode_body(data, PDU_HEADER_SIZE)
        except SMPPMalformedPDUException as e:
            e.command_id = header.command_id
            e.sequence_number = header.sequence_number
            e.context['command_id'] = f'0x{header.command_id:08X}'
            e.context['sequence_number'] = str(header.sequence_number)
            raise

        while offset < header.command_length:
            param, offset = TLVParameter.decode(data, offset)
            pdu.optional_parameters.append(param)

        return pdu

    def get_optional_parameter(self, tag: int) -> Optional[TLVParameter]:
        for param in self.optional_parameters:
            if param.tag == tag:
                return param
        return None

    def get_optional_parameter_value(self, tag: int) -> Optional[bytes]:
        param = self.get_optional_parameter(tag)
        return param.value if param else None

    def add_optional_parameter(self, tag: int, value: bytes) -> None:
        """Add optional parameter, replacing an existing one with the same tag."""
        self.optional_parameters = [
            p for p in self.optional_parameters if p.tag != tag
        ]
        self.optional_parameters.append(TLVParameter(tag, value))

    def is_response(self) -> bool:
        return bool(self.command_id & 0x80000000)

    def is_request(self) -> bool:
        return not self.is_response()


class RequestPDU(PDU):
    """
    Base class for request PDUs.

    Request PDUs always carry command_status 0.
    """

    def __post_init__(self) -> None:
        super().__post_init__()
        self.command_status = CommandStatus.ESME_ROK


class ResponsePDU(PDU):
    """
    Base class for response PDUs.

    Response PDUs reuse the sequence number of the request they answer and report
    success or failure through command_status.
    """

    @property
    def is_success(self) -> bool:
        return self.command_status == CommandStatus.ESME_ROK


class EmptyBodyPDU(PDU):
    """Base class for PDUs without mandatory body fields."""

    def encode_body(self) -> bytes:
        return b''

    def decode_body(self, data: bytes, offset: int = 0) -> int:
        return offset
