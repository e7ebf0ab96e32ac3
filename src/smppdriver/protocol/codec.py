"""
SMPP Protocol Codec

This module provides the wire-level encode/decode entry points for SMPP PDUs and
the field helpers they are built from: C-string handling, the generic 16-byte
header, and short message text encoding.

Decoding is pure: it never consults session state, so frames captured off the wire
can be decoded in isolation.
"""

import struct
from typing import TYPE_CHECKING, NamedTuple, Optional, Tuple

from ..exceptions import SMPPMalformedPDUException, SMPPPDUException
from .constants import MAX_PDU_SIZE, PDU_HEADER_SIZE, DataCoding

if TYPE_CHECKING:
    from .pdu.base import PDU

_HEADER = struct.Struct('>LLLL')


class PDUHeader(NamedTuple):
    """The generic SMPP header shared by every PDU"""

    command_length: int
    command_id: int
    command_status: int
    sequence_number: int

    def is_response(self) -> bool:
        return bool(self.command_id & 0x80000000)


def encode_cstring(s: str, max_length: int, encoding: str = 'latin-1') -> bytes:
    """
    Encode a string as a C-style null-terminated string with length validation.

    Args:
        s: String to encode
        max_length: Maximum allowed length including null terminator
        encoding: Character encoding to use

    Returns:
        Encoded bytes with null terminator

    Raises:
        SMPPPDUException: If string is too long or encoding fails
    """
    if len(s) >= max_length:
        raise SMPPPDUException(
            f'String too long: {len(s)} chars, max {max_length - 1} allowed'
        )

    try:
        encoded = s.encode(encoding)
    except UnicodeEncodeError as e:
        raise SMPPPDUException(f'String encoding error: {e}') from e

    if len(encoded) >= max_length:
        raise SMPPPDUException(
            f'Encoded string too long: {len(encoded)} bytes, max {max_length - 1} allowed'
        )
    return encoded + b'\x00'


def decode_cstring(
    data: bytes, offset: int, max_length: int, encoding: str = 'latin-1'
) -> Tuple[str, int]:
    """
    Decode a C-style null-terminated string from bytes.

    Args:
        data: Byte data to decode from
        offset: Starting offset in data
        max_length: Maximum field length to search, terminator included
        encoding: Character encoding to use

    Returns:
        Tuple of (decoded_string, new_offset)

    Raises:
        SMPPMalformedPDUException: If string is not properly terminated or decoding fails
    """
    if offset >= len(data):
        raise SMPPMalformedPDUException('Insufficient data for string field')

    search_limit = min(len(data), offset + max_length)
    end_offset = data.find(b'\x00', offset, search_limit)

    if end_offset < 0:
        raise SMPPMalformedPDUException(
            f'String not null-terminated within {max_length} bytes'
        )

    try:
        decoded = data[offset:end_offset].decode(encoding)
    except UnicodeDecodeError as e:
        raise SMPPMalformedPDUException(f'String decoding error: {e}') from e
    return decoded, end_offset + 1


def decode_octets(data: bytes, offset: int, count: int, field: str) -> Tuple[Tuple[int, ...], int]:
    """Read ``count`` single-octet integer fields starting at ``offset``."""
    if offset + count > len(data):
        raise SMPPMalformedPDUException(f'Insufficient data for {field}')
    return tuple(data[offset : offset + count]), offset + count


def encode_header(
    command_length: int, command_id: int, command_status: int, sequence_number: int
) -> bytes:
    return _HEADER.pack(command_length, command_id, command_status, sequence_number)


def decode_header(data: bytes) -> PDUHeader:
    """
    Decode the generic PDU header.

    Raises:
        SMPPMalformedPDUException: If fewer than 16 bytes are available
    """
    if len(data) < PDU_HEADER_SIZE:
        raise SMPPMalformedPDUException(
            f'Insufficient data for PDU header: {len(data)} < {PDU_HEADER_SIZE}'
        )
    return PDUHeader(*_HEADER.unpack_from(data))


def check_command_length(command_length: int) -> None:
    """Reject length prefixes no real PDU can carry."""
    if command_length < PDU_HEADER_SIZE:
        raise SMPPMalformedPDUException(
            f'Invalid PDU length: {command_length} < {PDU_HEADER_SIZE}'
        )
    if command_length > MAX_PDU_SIZE:
        raise SMPPMalformedPDUException(
            f'PDU length exceeds maximum: {command_length} > {MAX_PDU_SIZE}'
        )


def encode_pdu(pdu: 'PDU') -> bytes:
    """Encode a PDU to its complete wire representation."""
    return pdu.encode()


def decode_pdu(data: bytes) -> 'PDU':
    """
    Decode one complete PDU frame.

    Raises:
        SMPPMalformedPDUException: Length prefix mismatch, truncated body or TLV trailer
        SMPPUnknownCommandException: Unrecognized command_id; carries the header
    """
    from .pdu.base import PDU

    return PDU.decode(data)


def encode_short_message(
    text: str, data_coding: Optional[int] = None
) -> Tuple[bytes, int]:
    """
    Encode message text for the short_message field.

    When ``data_coding`` is not given, ASCII text goes out with the SMSC default
    alphabet and anything else as UCS2.

    Returns:
        Tuple of (encoded bytes, data_coding used)

    Raises:
        SMPPPDUException: If the text cannot be represented in ``data_coding``
    """
    if data_coding is None:
        try:
            return text.encode('ascii'), DataCoding.DEFAULT
        except UnicodeEncodeError:
            return text.encode('utf-16-be'), DataCoding.UCS2

    try:
        return text.encode(_codec_for(data_coding)), data_coding
    except UnicodeEncodeError as e:
        raise SMPPPDUException(f'Message encoding error: {e}') from e


def decode_short_message(message_bytes: bytes, data_coding: int) -> str:
    """Decode short_message bytes; undecodable octets are replaced."""
    return message_bytes.decode(_codec_for(data_coding), errors='replace')


def _codec_for(data_coding: int) -> str:
    if data_coding == DataCoding.IA5_ASCII:
        return 'ascii'
    elif data_coding == DataCoding.UCS2:
        return 'utf-16-be'
    elif data_coding == DataCoding.CYRILLIC:
        return 'iso-8859-5'
    elif data_coding == DataCoding.LATIN_HEBREW:
        return 'iso-8859-8'
    elif data_coding in (
        DataCoding.OCTET_UNSPECIFIED_1,
        DataCoding.OCTET_UNSPECIFIED_2,
    ):
        return 'utf-8'
    # GSM 7-bit default alphabet - use latin-1 as approximation
    return 'latin-1'
