"""
Shared test fixtures and configuration for SMPP tests.
"""

import asyncio
import struct

import pytest
import pytest_asyncio

from smppdriver.exceptions import SMPPConnectionClosedException
from smppdriver.protocol import decode_pdu
from smppdriver.protocol.constants import CommandStatus
from smppdriver.protocol.pdu import (
    BindRequestPDU,
    EnquireLink,
    SubmitSm,
    SubmitSmResp,
    Unbind,
    create_response_pdu,
)
from smppdriver.session import SMPPSession
from smppdriver.transport import SMPPTransport


class FakeWriter:
    """Stand-in for asyncio.StreamWriter that records written bytes"""

    def __init__(self):
        self.data = bytearray()
        self.closed = False
        self.fail_with = None

    def write(self, data: bytes) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.data.extend(data)

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass

    def get_extra_info(self, name, default=None):
        if name == 'peername':
            return ('127.0.0.1', 2775)
        return default

    def take(self) -> bytes:
        data = bytes(self.data)
        self.data.clear()
        return data

    async def next_pdu(self, timeout: float = 1.0):
        """Wait until a complete frame was written and decode it."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            if len(self.data) >= 4:
                (length,) = struct.unpack_from('>L', self.data)
                if len(self.data) >= length:
                    frame = bytes(self.data[:length])
                    del self.data[:length]
                    return decode_pdu(frame)
            if loop.time() > deadline:
                raise AssertionError('No PDU written in time')
            await asyncio.sleep(0.001)


@pytest.fixture
def fake_writer():
    return FakeWriter()


@pytest_asyncio.fixture
async def stream_reader():
    """A StreamReader bound to the running test loop."""
    return asyncio.StreamReader()


@pytest_asyncio.fixture
async def transport(stream_reader, fake_writer):
    """Transport over an in-memory reader and a recording writer."""
    t = SMPPTransport(stream_reader, fake_writer, write_timeout=1.0)
    yield t
    await t.close()


@pytest_asyncio.fixture
async def session(transport):
    """Started, unbound session with keep-alive disabled."""
    s = SMPPSession(transport, bind_timeout=1.0, enquire_link_interval=0, unbind_timeout=0.2)
    s.start()
    yield s
    if not s.is_closed:
        await s._shutdown(SMPPConnectionClosedException('test teardown'))
    await asyncio.gather(s._read_task, return_exceptions=True)


@pytest.fixture
def bind_session(stream_reader, fake_writer):
    """Bind a session, answering the bind request with success."""

    async def _bind(session, mode='transceiver'):
        task = asyncio.create_task(session.bind(mode, 'test', 'secret'))
        request = await fake_writer.next_pdu()
        response = create_response_pdu(
            request.command_id, request.sequence_number, system_id='SMSC'
        )
        stream_reader.feed_data(response.encode())
        return await task

    return _bind


class MockSMSC:
    """
    Minimal SMSC for client tests.

    Accepts binds for one system_id/password, answers submit_sm with
    ``submit_status`` (or not at all when ``respond_to_submit`` is False) and
    records every PDU it receives.
    """

    def __init__(self, system_id='test', password='secret'):
        self.system_id = system_id
        self.password = password
        self.submit_status = 0
        self.respond_to_submit = True
        self.message_ids = None
        self.received = []
        self.host = '127.0.0.1'
        self.port = None

        self._server = None
        self._writers = []
        self._counter = 0

    async def start(self):
        self._server = await asyncio.start_server(self._handle, self.host, 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self):
        await self.drop_clients()
        self._server.close()
        await self._server.wait_closed()

    async def drop_clients(self):
        for writer in list(self._writers):
            writer.close()
        self._writers.clear()

    async def send(self, pdu):
        for writer in self._writers:
            writer.write(pdu.encode())
            await writer.drain()

    def submits(self):
        return [p for p in self.received if isinstance(p, SubmitSm)]

    async def wait_for(self, predicate, timeout=2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError('Condition not met in time')
            await asyncio.sleep(0.005)

    def _next_message_id(self):
        if self.message_ids:
            return self.message_ids.pop(0)
        self._counter += 1
        return f'msg{self._counter}'

    async def _handle(self, reader, writer):
        self._writers.append(writer)
        try:
            while True:
                header = await reader.readexactly(16)
                (length,) = struct.unpack_from('>L', header)
                body = await reader.readexactly(length - 16)
                pdu = decode_pdu(header + body)
                self.received.append(pdu)
                response = self._respond(pdu)
                if response is not None:
                    writer.write(response.encode())
                    await writer.drain()
                if isinstance(pdu, Unbind):
                    break
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            if writer in self._writers:
                self._writers.remove(writer)
            writer.close()

    def _respond(self, pdu):
        seq = pdu.sequence_number
        if isinstance(pdu, BindRequestPDU):
            if pdu.system_id == self.system_id and pdu.password == self.password:
                return create_response_pdu(pdu.command_id, seq, system_id='MockSMSC')
            return create_response_pdu(
                pdu.command_id, seq, command_status=CommandStatus.ESME_RBINDFAIL
            )
        if isinstance(pdu, SubmitSm):
            if not self.respond_to_submit:
                return None
            if self.submit_status:
                return SubmitSmResp(sequence_number=seq, command_status=self.submit_status)
            return SubmitSmResp(sequence_number=seq, message_id=self._next_message_id())
        if isinstance(pdu, (EnquireLink, Unbind)):
            return create_response_pdu(pdu.command_id, seq)
        return None


@pytest_asyncio.fixture
async def smsc():
    server = MockSMSC()
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def client_options(smsc):
    return {
        'host': smsc.host,
        'port': smsc.port,
        'system_id': 'test',
        'password': 'secret',
        'bind': 'transceiver',
        'enquire_link_interval': 0,
        'unbind_timeout': 0.5,
    }
