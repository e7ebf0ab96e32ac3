"""
Unit tests for the SMPP session state machine.

The SMSC side is simulated by feeding frames into the transport's StreamReader
and reading what the session wrote from the recording writer.
"""

import asyncio
import struct

import pytest

from smppdriver.exceptions import (
    SMPPBindRejectedException,
    SMPPConnectionClosedException,
    SMPPInvalidStateException,
    SMPPMalformedPDUException,
    SMPPPDUException,
    SMPPRequestTimeoutException,
    SMPPSubmitRejectedException,
    SMPPWriteException,
)
from smppdriver.protocol.constants import BindMode, CommandId, CommandStatus
from smppdriver.protocol.pdu import (
    BindTransceiver,
    BindTransceiverResp,
    DeliverSm,
    DeliverSmResp,
    EnquireLink,
    EnquireLinkResp,
    GenericNack,
    SubmitSm,
    SubmitSmResp,
    Unbind,
    UnbindResp,
)
from smppdriver.session import SessionState, SMPPSession


def make_submit(text=b'Hello SMPP'):
    return SubmitSm(source_addr='TEST', destination_addr='+491701234567', short_message=text)


def bad_frame(sequence_number=6):
    # message_id is missing its terminator
    return struct.pack('>LLLL', 19, CommandId.SUBMIT_SM_RESP, 0, sequence_number) + b'abc'


async def submit_and_answer(session, stream_reader, fake_writer, status=0, message_id='abc123'):
    task = asyncio.create_task(session.submit(make_submit(), timeout=1.0))
    request = await fake_writer.next_pdu()
    assert isinstance(request, SubmitSm)
    stream_reader.feed_data(
        SubmitSmResp(
            sequence_number=request.sequence_number,
            command_status=status,
            message_id=message_id,
        ).encode()
    )
    return await task


class TestBind:
    @pytest.mark.asyncio
    async def test_bind_success(self, session, stream_reader, fake_writer):
        states = []
        session.on_state_change = lambda old, new: states.append((old, new))

        task = asyncio.create_task(session.bind('transceiver', 'test', 'secret'))
        request = await fake_writer.next_pdu()
        assert isinstance(request, BindTransceiver)
        assert request.system_id == 'test'
        assert request.password == 'secret'
        assert session.state is SessionState.BINDING

        stream_reader.feed_data(
            BindTransceiverResp(
                sequence_number=request.sequence_number, system_id='SMSC'
            ).encode()
        )
        response = await task

        assert response.system_id == 'SMSC'
        assert session.state is SessionState.BOUND
        assert session.bind_mode is BindMode.TRANSCEIVER
        assert states == [
            (SessionState.UNBOUND, SessionState.BINDING),
            (SessionState.BINDING, SessionState.BOUND),
        ]

    @pytest.mark.asyncio
    async def test_bind_rejected(self, session, stream_reader, fake_writer):
        task = asyncio.create_task(session.bind('transmitter', 'test', 'wrong'))
        request = await fake_writer.next_pdu()
        stream_reader.feed_data(
            struct.pack(
                '>LLLL',
                16,
                CommandId.BIND_TRANSMITTER_RESP,
                CommandStatus.ESME_RINVPASWD,
                request.sequence_number,
            )
        )
        with pytest.raises(SMPPBindRejectedException) as exc_info:
            await task
        assert exc_info.value.status == CommandStatus.ESME_RINVPASWD
        assert session.state is SessionState.UNBOUND

    @pytest.mark.asyncio
    async def test_bind_timeout_returns_to_unbound(self, session, fake_writer):
        with pytest.raises(SMPPRequestTimeoutException):
            await session.bind('transceiver', 'test', 'secret', timeout=0.05)
        assert session.state is SessionState.UNBOUND
        assert session.pending_count == 0

    @pytest.mark.asyncio
    async def test_bind_twice(self, session, bind_session):
        await bind_session(session)
        with pytest.raises(SMPPInvalidStateException, match='Cannot send bind_transceiver'):
            await session.bind('transceiver', 'test', 'secret')

    @pytest.mark.asyncio
    async def test_bind_invalid_system_id_stays_unbound(self, session):
        with pytest.raises(SMPPPDUException, match='Invalid bind parameters'):
            await session.bind('transceiver', 'a' * 16, 'secret')
        assert session.state is SessionState.UNBOUND


class TestSubmit:
    @pytest.mark.asyncio
    async def test_submit_before_bind(self, session):
        with pytest.raises(SMPPInvalidStateException) as exc_info:
            await session.submit(make_submit())
        assert exc_info.value.current_state == 'UNBOUND'

    @pytest.mark.asyncio
    async def test_submit_success(self, session, bind_session, stream_reader, fake_writer):
        await bind_session(session)
        response = await submit_and_answer(session, stream_reader, fake_writer)
        assert response.message_id == 'abc123'
        assert session.stats['submitted'] == 1
        assert session.stats['accepted'] == 1

    @pytest.mark.asyncio
    async def test_submit_rejected(self, session, bind_session, stream_reader, fake_writer):
        await bind_session(session)
        with pytest.raises(SMPPSubmitRejectedException) as exc_info:
            await submit_and_answer(
                session, stream_reader, fake_writer, status=CommandStatus.ESME_RSYSERR
            )
        assert exc_info.value.status == 0x08
        assert session.is_bound
        assert session.stats['rejected'] == 1

    @pytest.mark.asyncio
    async def test_submit_answered_with_ok_generic_nack(self, session, bind_session, stream_reader, fake_writer):
        await bind_session(session)
        task = asyncio.create_task(session.submit(make_submit(), timeout=1.0))
        request = await fake_writer.next_pdu()
        stream_reader.feed_data(GenericNack(sequence_number=request.sequence_number).encode())

        with pytest.raises(SMPPPDUException, match='Unexpected generic_nack'):
            await task
        assert session.is_bound
        assert session.stats['accepted'] == 0

    @pytest.mark.asyncio
    async def test_bind_answered_with_ok_generic_nack(self, session, stream_reader, fake_writer):
        task = asyncio.create_task(session.bind('transceiver', 'test', 'secret'))
        request = await fake_writer.next_pdu()
        stream_reader.feed_data(GenericNack(sequence_number=request.sequence_number).encode())

        with pytest.raises(SMPPPDUException, match='Unexpected generic_nack'):
            await task
        assert session.state is SessionState.UNBOUND

    @pytest.mark.asyncio
    async def test_submit_timeout_keeps_session(self, session, bind_session, stream_reader, fake_writer):
        await bind_session(session)
        with pytest.raises(SMPPRequestTimeoutException):
            await session.submit(make_submit(), timeout=0.1)
        assert session.is_bound
        assert session.stats['timeouts'] == 1

        # The late response is dropped and the session keeps working
        late = await fake_writer.next_pdu()
        stream_reader.feed_data(
            SubmitSmResp(sequence_number=late.sequence_number, message_id='late').encode()
        )
        response = await submit_and_answer(session, stream_reader, fake_writer)
        assert response.message_id == 'abc123'

    @pytest.mark.asyncio
    async def test_receiver_cannot_submit(self, session, bind_session):
        await bind_session(session, 'receiver')
        with pytest.raises(SMPPInvalidStateException, match='bound as receiver'):
            await session.submit(make_submit())

    @pytest.mark.asyncio
    async def test_concurrent_submits_correlated(self, session, bind_session, stream_reader, fake_writer):
        await bind_session(session)
        tasks = [
            asyncio.create_task(session.submit(make_submit(), timeout=1.0)) for _ in range(5)
        ]
        requests = [await fake_writer.next_pdu() for _ in range(5)]
        assert len({r.sequence_number for r in requests}) == 5

        # Answer in reverse order
        for request in reversed(requests):
            stream_reader.feed_data(
                SubmitSmResp(
                    sequence_number=request.sequence_number,
                    message_id=f'id{request.sequence_number}',
                ).encode()
            )
        responses = await asyncio.gather(*tasks)
        for response in responses:
            assert response.message_id == f'id{response.sequence_number}'


class TestInbound:
    @pytest.mark.asyncio
    async def test_enquire_link_answered(self, session, stream_reader, fake_writer):
        stream_reader.feed_data(EnquireLink(sequence_number=500).encode())
        response = await fake_writer.next_pdu()
        assert isinstance(response, EnquireLinkResp)
        assert response.sequence_number == 500

    @pytest.mark.asyncio
    async def test_deliver_sm_acknowledged(self, session, bind_session, stream_reader, fake_writer):
        received = []
        session.set_deliver_handler(received.append)
        await bind_session(session)

        stream_reader.feed_data(
            DeliverSm(
                sequence_number=77,
                source_addr='+491701234567',
                destination_addr='TEST',
                short_message=b'mo',
            ).encode()
        )
        response = await fake_writer.next_pdu()
        assert isinstance(response, DeliverSmResp)
        assert response.sequence_number == 77
        assert response.command_status == CommandStatus.ESME_ROK
        assert received[0].short_message == b'mo'
        assert session.stats['delivered'] == 1

    @pytest.mark.asyncio
    async def test_async_deliver_handler(self, session, bind_session, stream_reader, fake_writer):
        received = []

        async def handler(pdu):
            await asyncio.sleep(0)
            received.append(pdu.sequence_number)

        session.set_deliver_handler(handler)
        await bind_session(session)
        stream_reader.feed_data(
            DeliverSm(sequence_number=78, destination_addr='TEST').encode()
        )
        response = await fake_writer.next_pdu()
        assert response.sequence_number == 78
        assert received == [78]

    @pytest.mark.asyncio
    async def test_failing_deliver_handler(self, session, bind_session, stream_reader, fake_writer):
        def handler(pdu):
            raise RuntimeError('handler broke')

        session.set_deliver_handler(handler)
        await bind_session(session)
        stream_reader.feed_data(
            DeliverSm(sequence_number=79, destination_addr='TEST').encode()
        )
        response = await fake_writer.next_pdu()
        assert isinstance(response, DeliverSmResp)
        assert response.command_status == CommandStatus.ESME_RX_T_APPN
        assert session.is_bound

    @pytest.mark.asyncio
    async def test_deliver_sm_while_unbound(self, session, stream_reader, fake_writer):
        stream_reader.feed_data(
            DeliverSm(sequence_number=80, destination_addr='TEST').encode()
        )
        response = await fake_writer.next_pdu()
        assert isinstance(response, GenericNack)
        assert response.command_status == CommandStatus.ESME_RINVBNDSTS
        assert response.sequence_number == 80

    @pytest.mark.asyncio
    async def test_unknown_request_nacked(self, session, stream_reader, fake_writer):
        stream_reader.feed_data(struct.pack('>LLLL', 16, 0x00000103, 0, 81))
        response = await fake_writer.next_pdu()
        assert isinstance(response, GenericNack)
        assert response.command_status == CommandStatus.ESME_RINVCMDID
        assert response.sequence_number == 81
        assert not session.is_closed

    @pytest.mark.asyncio
    async def test_unknown_response_ignored(self, session, stream_reader, fake_writer):
        stream_reader.feed_data(struct.pack('>LLLL', 16, 0x80000103, 0, 82))
        stream_reader.feed_data(EnquireLink(sequence_number=83).encode())
        response = await fake_writer.next_pdu()
        # Only the enquire_link is answered
        assert response.sequence_number == 83

    @pytest.mark.asyncio
    async def test_malformed_frames_tolerated_then_fatal(self, session, stream_reader, fake_writer):
        stream_reader.feed_data(bad_frame() + bad_frame())
        stream_reader.feed_data(EnquireLink(sequence_number=84).encode())
        assert (await fake_writer.next_pdu()).sequence_number == 84
        assert not session.is_closed

        stream_reader.feed_data(bad_frame() + bad_frame() + bad_frame())
        await asyncio.wait_for(session.wait_closed(), 1.0)
        assert isinstance(session.close_reason, SMPPMalformedPDUException)

    @pytest.mark.asyncio
    async def test_peer_unbind(self, session, bind_session, stream_reader, fake_writer):
        await bind_session(session)
        stream_reader.feed_data(Unbind(sequence_number=90).encode())
        response = await fake_writer.next_pdu()
        assert isinstance(response, UnbindResp)
        assert response.sequence_number == 90
        await asyncio.wait_for(session.wait_closed(), 1.0)
        assert session.state is SessionState.CLOSED

    @pytest.mark.asyncio
    async def test_peer_unbind_ends_read_task(self, session, bind_session, stream_reader, fake_writer):
        await bind_session(session)
        stream_reader.feed_data(Unbind(sequence_number=91).encode())
        await fake_writer.next_pdu()
        await asyncio.wait_for(asyncio.shield(session._read_task), 1.0)
        assert session._read_task.done()
        assert session.transport.is_closed


class TestTeardown:
    @pytest.mark.asyncio
    async def test_peer_close_fails_pending(self, session, bind_session, stream_reader, fake_writer):
        reasons = []
        session.on_closed = reasons.append
        await bind_session(session)

        tasks = [
            asyncio.create_task(session.submit(make_submit(), timeout=5.0)) for _ in range(2)
        ]
        await fake_writer.next_pdu()
        await fake_writer.next_pdu()
        stream_reader.feed_eof()

        for task in tasks:
            with pytest.raises(SMPPConnectionClosedException):
                await task
        assert session.state is SessionState.CLOSED
        assert session.pending_count == 0
        assert len(reasons) == 1

    @pytest.mark.asyncio
    async def test_unbind(self, session, bind_session, stream_reader, fake_writer):
        await bind_session(session)
        task = asyncio.create_task(session.unbind())
        request = await fake_writer.next_pdu()
        assert isinstance(request, Unbind)
        assert session.state is SessionState.UNBINDING

        stream_reader.feed_data(UnbindResp(sequence_number=request.sequence_number).encode())
        await task
        assert session.state is SessionState.CLOSED
        assert session.transport.is_closed

    @pytest.mark.asyncio
    async def test_close_without_unbind_resp(self, session, bind_session):
        await bind_session(session)
        await session.close()
        assert session.state is SessionState.CLOSED
        await session.close()

    @pytest.mark.asyncio
    async def test_submit_after_close(self, session):
        await session.close()
        with pytest.raises(SMPPInvalidStateException):
            await session.submit(make_submit())

    @pytest.mark.asyncio
    async def test_write_failure_closes_session(self, session, bind_session, fake_writer):
        await bind_session(session)
        fake_writer.fail_with = ConnectionResetError('reset')
        with pytest.raises(SMPPWriteException):
            await session.submit(make_submit())
        assert session.is_closed
        assert isinstance(session.close_reason, SMPPWriteException)

    @pytest.mark.asyncio
    async def test_start_twice(self, session):
        with pytest.raises(SMPPInvalidStateException, match='already started'):
            session.start()


class TestKeepAlive:
    @pytest.mark.asyncio
    async def test_answered_keepalive(self, transport, stream_reader, fake_writer, bind_session):
        session = SMPPSession(transport, enquire_link_interval=0.05, enquire_link_timeout=0.5)
        session.start()
        await bind_session(session)

        for _ in range(2):
            request = await fake_writer.next_pdu()
            assert isinstance(request, EnquireLink)
            stream_reader.feed_data(
                EnquireLinkResp(sequence_number=request.sequence_number).encode()
            )
        await asyncio.sleep(0.01)
        assert session.is_bound
        assert session.stats['enquire_links'] >= 2
        await session._shutdown(SMPPConnectionClosedException('done'))
        await asyncio.gather(session._read_task, return_exceptions=True)

    @pytest.mark.asyncio
    async def test_dead_link_closes_session(self, transport, bind_session):
        session = SMPPSession(
            transport,
            enquire_link_interval=0.05,
            enquire_link_timeout=0.05,
            enquire_link_max_misses=2,
        )
        session.start()
        await bind_session(session)

        await asyncio.wait_for(session.wait_closed(), 2.0)
        assert 'Link dead' in str(session.close_reason)
        await asyncio.gather(session._read_task, return_exceptions=True)

    @pytest.mark.asyncio
    async def test_nacked_keepalives_close_session(self, transport, stream_reader, fake_writer, bind_session):
        session = SMPPSession(
            transport,
            enquire_link_interval=0.05,
            enquire_link_timeout=0.5,
            enquire_link_max_misses=2,
        )
        session.start()
        await bind_session(session)

        for _ in range(2):
            request = await fake_writer.next_pdu()
            assert isinstance(request, EnquireLink)
            stream_reader.feed_data(
                GenericNack(
                    sequence_number=request.sequence_number,
                    command_status=CommandStatus.ESME_RSYSERR,
                ).encode()
            )

        await asyncio.wait_for(session.wait_closed(), 1.0)
        assert 'Link dead' in str(session.close_reason)
        await asyncio.gather(session._read_task, return_exceptions=True)

    @pytest.mark.asyncio
    async def test_enquire_link_error_status_returns_false(self, session, bind_session, stream_reader, fake_writer):
        await bind_session(session)
        task = asyncio.create_task(session.enquire_link(timeout=1.0))
        request = await fake_writer.next_pdu()
        stream_reader.feed_data(
            EnquireLinkResp(
                sequence_number=request.sequence_number,
                command_status=CommandStatus.ESME_RSYSERR,
            ).encode()
        )
        assert await task is False
        assert session.is_bound

    @pytest.mark.asyncio
    async def test_enquire_link_timeout_returns_false(self, session, bind_session):
        await bind_session(session)
        assert await session.enquire_link(timeout=0.05) is False
        assert session.is_bound
