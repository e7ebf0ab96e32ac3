"""
Unit tests for bind and unbind PDUs.
"""

import struct

import pytest

from smppdriver.exceptions import SMPPMalformedPDUException, SMPPPDUException
from smppdriver.protocol.constants import CommandId, OptionalTag
from smppdriver.protocol.pdu import (
    PDU,
    BindReceiver,
    BindTransceiver,
    BindTransceiverResp,
    BindTransmitter,
    Unbind,
    UnbindResp,
)


class TestBindRequest:
    def test_transceiver_wire_format(self):
        pdu = BindTransceiver(
            sequence_number=1, system_id='test', password='secret', system_type=''
        )
        body = b'test\x00' + b'secret\x00' + b'\x00' + b'\x34\x00\x00' + b'\x00'
        expected = struct.pack('>LLLL', 16 + len(body), CommandId.BIND_TRANSCEIVER, 0, 1)
        assert pdu.encode() == expected + body

    @pytest.mark.parametrize(
        'cls, command_id',
        [
            (BindTransmitter, CommandId.BIND_TRANSMITTER),
            (BindReceiver, CommandId.BIND_RECEIVER),
            (BindTransceiver, CommandId.BIND_TRANSCEIVER),
        ],
    )
    def test_command_ids(self, cls, command_id):
        assert cls().command_id == command_id

    def test_roundtrip(self):
        pdu = BindReceiver(
            sequence_number=9,
            system_id='a' * 15,
            password='p' * 8,
            system_type='LOAD',
            addr_ton=1,
            addr_npi=1,
            address_range='^49',
        )
        decoded = PDU.decode(pdu.encode())
        assert decoded == pdu

    def test_system_id_too_long(self):
        pdu = BindTransmitter(system_id='a' * 16, password='x')
        with pytest.raises(SMPPPDUException, match='Invalid bind parameters'):
            pdu.encode()

    def test_password_hidden_from_repr(self):
        assert 'secret' not in repr(BindTransceiver(system_id='test', password='secret'))

    def test_truncated_body(self):
        data = struct.pack('>LLLL', 21, CommandId.BIND_TRANSMITTER, 0, 1) + b'test\x00'
        with pytest.raises(SMPPMalformedPDUException):
            PDU.decode(data)


class TestBindResponse:
    def test_decode_with_interface_version(self):
        body = b'SMSC\x00' + b'\x02\x10\x00\x01\x34'
        data = struct.pack('>LLLL', 16 + len(body), CommandId.BIND_TRANSCEIVER_RESP, 0, 1)
        pdu = PDU.decode(data + body)
        assert isinstance(pdu, BindTransceiverResp)
        assert pdu.system_id == 'SMSC'
        assert pdu.sc_interface_version == 0x34
        assert pdu.get_optional_parameter(OptionalTag.SC_INTERFACE_VERSION) is not None

    def test_rejected_without_body(self):
        data = struct.pack('>LLLL', 16, CommandId.BIND_TRANSCEIVER_RESP, 0x0E, 1)
        pdu = PDU.decode(data)
        assert pdu.command_status == 0x0E
        assert pdu.system_id == ''
        assert pdu.sc_interface_version is None


class TestUnbind:
    def test_unbind_encode(self):
        assert Unbind(sequence_number=4).encode() == struct.pack(
            '>LLLL', 16, CommandId.UNBIND, 0, 4
        )

    def test_unbind_resp_decode(self):
        data = struct.pack('>LLLL', 16, CommandId.UNBIND_RESP, 0, 4)
        pdu = PDU.decode(data)
        assert isinstance(pdu, UnbindResp)
        assert pdu.is_success
