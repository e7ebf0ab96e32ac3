"""
Unit tests for session management PDUs.
"""

import struct

from smppdriver.protocol.constants import CommandId, CommandStatus
from smppdriver.protocol.pdu import PDU, EnquireLink, EnquireLinkResp, GenericNack


def test_enquire_link_roundtrip():
    decoded = PDU.decode(EnquireLink(sequence_number=11).encode())
    assert isinstance(decoded, EnquireLink)
    assert decoded.is_request()


def test_enquire_link_resp():
    pdu = EnquireLinkResp(sequence_number=11)
    assert pdu.command_id == CommandId.ENQUIRE_LINK_RESP
    assert pdu.is_response()
    assert pdu.encode() == struct.pack('>LLLL', 16, CommandId.ENQUIRE_LINK_RESP, 0, 11)


def test_generic_nack_decode():
    data = struct.pack('>LLLL', 16, CommandId.GENERIC_NACK, CommandStatus.ESME_RINVCMDLEN, 3)
    pdu = PDU.decode(data)
    assert isinstance(pdu, GenericNack)
    assert pdu.command_status == CommandStatus.ESME_RINVCMDLEN
    assert not pdu.is_success
