"""
Unit tests for SMPP Protocol Codec utilities.

Tests C-string handling, header framing, length-prefix checks and short message
text encoding in smppdriver/protocol/codec.py.
"""

import struct

import pytest

from smppdriver.exceptions import (
    SMPPMalformedPDUException,
    SMPPPDUException,
    SMPPUnknownCommandException,
)
from smppdriver.protocol import codec
from smppdriver.protocol.constants import CommandId, DataCoding
from smppdriver.protocol.pdu import EnquireLink, SubmitSmResp


class TestCStringEncoding:
    """Tests for encode_cstring function."""

    def test_encode_simple_string(self):
        assert codec.encode_cstring('hello', 10) == b'hello\x00'

    def test_encode_empty_string(self):
        assert codec.encode_cstring('', 5) == b'\x00'

    def test_encode_max_length_string(self):
        """A string one shorter than the field size fits with its terminator."""
        assert codec.encode_cstring('test', 5) == b'test\x00'

    def test_encode_string_too_long(self):
        with pytest.raises(SMPPPDUException, match='String too long'):
            codec.encode_cstring('toolong', 5)

    def test_encode_encoding_error(self):
        with pytest.raises(SMPPPDUException, match='String encoding error'):
            codec.encode_cstring('café', 10, encoding='ascii')

    def test_encode_multibyte_too_long(self):
        with pytest.raises(SMPPPDUException, match='Encoded string too long'):
            codec.encode_cstring('café', 5, encoding='utf-8')


class TestCStringDecoding:
    """Tests for decode_cstring function."""

    def test_decode_simple_string(self):
        result, offset = codec.decode_cstring(b'hello\x00world', 0, 10)
        assert result == 'hello'
        assert offset == 6

    def test_decode_empty_string(self):
        result, offset = codec.decode_cstring(b'\x00rest', 0, 5)
        assert result == ''
        assert offset == 1

    def test_decode_at_offset(self):
        result, offset = codec.decode_cstring(b'prefixtest\x00suffix', 6, 10)
        assert result == 'test'
        assert offset == 11

    def test_decode_insufficient_data(self):
        with pytest.raises(SMPPMalformedPDUException, match='Insufficient data'):
            codec.decode_cstring(b'abc', 3, 10)

    def test_decode_missing_terminator(self):
        with pytest.raises(SMPPMalformedPDUException, match='not null-terminated'):
            codec.decode_cstring(b'abcdefgh', 0, 4)

    def test_decode_terminator_beyond_field_size(self):
        """The terminator must fall inside the field's maximum size."""
        with pytest.raises(SMPPMalformedPDUException):
            codec.decode_cstring(b'abcdef\x00', 0, 5)


class TestHeader:
    def test_decode_header(self):
        data = struct.pack('>LLLL', 16, 0x80000004, 0, 7)
        header = codec.decode_header(data)
        assert header == codec.PDUHeader(16, 0x80000004, 0, 7)
        assert header.is_response()

    def test_decode_header_short(self):
        with pytest.raises(SMPPMalformedPDUException, match='PDU header'):
            codec.decode_header(b'\x00' * 15)

    def test_encode_header(self):
        assert codec.encode_header(16, 0x15, 0, 1) == struct.pack('>LLLL', 16, 0x15, 0, 1)

    @pytest.mark.parametrize('length', [0, 15, 65537, 0xFFFFFFFF])
    def test_check_command_length_rejects(self, length):
        with pytest.raises(SMPPMalformedPDUException):
            codec.check_command_length(length)

    @pytest.mark.parametrize('length', [16, 17, 65536])
    def test_check_command_length_accepts(self, length):
        codec.check_command_length(length)


class TestPDUEntryPoints:
    def test_encode_enquire_link_bytes(self):
        pdu = EnquireLink(sequence_number=1)
        assert codec.encode_pdu(pdu) == bytes.fromhex(
            '00000010' '00000015' '00000000' '00000001'
        )

    def test_decode_submit_sm_resp(self):
        data = bytes.fromhex('00000017' '80000004' '00000000' '00000002') + b'abc123\x00'
        pdu = codec.decode_pdu(data)
        assert isinstance(pdu, SubmitSmResp)
        assert pdu.message_id == 'abc123'
        assert pdu.sequence_number == 2

    def test_decode_length_mismatch(self):
        data = struct.pack('>LLLL', 20, CommandId.ENQUIRE_LINK, 0, 1)
        with pytest.raises(SMPPMalformedPDUException, match='length mismatch'):
            codec.decode_pdu(data)

    def test_decode_unknown_command_keeps_header(self):
        data = struct.pack('>LLLL', 16, 0x00000103, 0, 9)
        with pytest.raises(SMPPUnknownCommandException) as exc_info:
            codec.decode_pdu(data)
        assert exc_info.value.header.command_id == 0x00000103
        assert exc_info.value.header.sequence_number == 9
        assert not exc_info.value.header.is_response()


class TestShortMessageEncoding:
    def test_ascii_uses_default_alphabet(self):
        data, data_coding = codec.encode_short_message('Hello SMPP 1')
        assert data == b'Hello SMPP 1'
        assert data_coding == DataCoding.DEFAULT

    def test_non_ascii_uses_ucs2(self):
        data, data_coding = codec.encode_short_message('Grüße')
        assert data == 'Grüße'.encode('utf-16-be')
        assert data_coding == DataCoding.UCS2

    def test_explicit_latin1(self):
        data, data_coding = codec.encode_short_message('café', DataCoding.LATIN_1)
        assert data == b'caf\xe9'
        assert data_coding == DataCoding.LATIN_1

    def test_explicit_coding_encoding_error(self):
        with pytest.raises(SMPPPDUException, match='Message encoding error'):
            codec.encode_short_message('日本', DataCoding.IA5_ASCII)

    def test_decode_ucs2(self):
        assert codec.decode_short_message('Привет'.encode('utf-16-be'), DataCoding.UCS2) == 'Привет'

    def test_decode_replaces_bad_bytes(self):
        assert codec.decode_short_message(b'\xff', DataCoding.IA5_ASCII) == '�'
