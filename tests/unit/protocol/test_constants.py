"""
Unit tests for SMPP protocol constants and helpers.
"""

import pytest

from smppdriver.protocol.constants import (
    BindMode,
    CommandId,
    CommandStatus,
    get_command_name,
    get_error_message,
    get_response_command_id,
    is_response_command,
)


class TestBindMode:
    @pytest.mark.parametrize(
        'value, expected',
        [
            ('transmitter', BindMode.TRANSMITTER),
            ('Receiver', BindMode.RECEIVER),
            (' TRANSCEIVER ', BindMode.TRANSCEIVER),
            (BindMode.RECEIVER, BindMode.RECEIVER),
        ],
    )
    def test_parse(self, value, expected):
        assert BindMode.parse(value) is expected

    def test_parse_invalid(self):
        with pytest.raises(ValueError, match='Invalid bind mode'):
            BindMode.parse('sender')

    def test_can_submit(self):
        assert BindMode.TRANSMITTER.can_submit
        assert BindMode.TRANSCEIVER.can_submit
        assert not BindMode.RECEIVER.can_submit

    def test_command_id(self):
        assert BindMode.TRANSMITTER.command_id == CommandId.BIND_TRANSMITTER
        assert BindMode.RECEIVER.command_id == CommandId.BIND_RECEIVER
        assert BindMode.TRANSCEIVER.command_id == CommandId.BIND_TRANSCEIVER


class TestCommandHelpers:
    def test_response_ids(self):
        assert get_response_command_id(CommandId.SUBMIT_SM) == CommandId.SUBMIT_SM_RESP
        assert is_response_command(CommandId.GENERIC_NACK)
        assert not is_response_command(CommandId.ENQUIRE_LINK)

    def test_command_names(self):
        assert get_command_name(CommandId.SUBMIT_SM_RESP) == 'submit_sm_resp'
        assert get_command_name(0x00000103) == 'unknown(0x00000103)'

    def test_error_messages(self):
        assert get_error_message(CommandStatus.ESME_RTHROTTLED) == 'Throttling error'
        assert get_error_message(0x1234) == 'Unknown error code: 0x00001234'
