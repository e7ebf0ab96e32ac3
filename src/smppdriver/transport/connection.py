"""
SMPP Connection Transport

This module owns the TCP stream of one SMPP session: it frames inbound bytes into
complete PDUs using the length prefix and serializes outbound writes.
"""

import asyncio
import logging
import struct
from typing import Any, Awaitable, Callable, Optional

from ..exceptions import (
    SMPPConnectionClosedException,
    SMPPConnectionException,
    SMPPInvalidStateException,
    SMPPWriteException,
)
from ..protocol.codec import check_command_length
from ..protocol.constants import PDU_HEADER_SIZE

logger = logging.getLogger(__name__)

FrameHandler = Callable[[bytes], Awaitable[None]]


class SMPPTransport:
    """
    Async SMPP Connection Transport

    Reads length-prefixed frames from a StreamReader and writes encoded PDUs to a
    StreamWriter. Writes are serialized so that concurrent callers never interleave
    bytes of different PDUs; only one read loop may consume the stream.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        write_timeout: Optional[float] = 10.0,
    ):
        """
        Initialize transport over an established stream pair

        Args:
            reader: Stream to read frames from
            writer: Stream to write PDUs to
            write_timeout: Seconds to wait for a write to drain, None for no limit
        """
        self.write_timeout = write_timeout

        self._reader = reader
        self._writer = writer
        self._write_lock = asyncio.Lock()
        self._reading = False
        self._closed = False

        self.bytes_sent = 0
        self.bytes_received = 0

    @classmethod
    async def open(
        cls,
        host: str,
        port: int,
        connect_timeout: Optional[float] = 10.0,
        write_timeout: Optional[float] = 10.0,
    ) -> 'SMPPTransport':
        """
        Open a TCP connection to an SMSC

        Raises:
            SMPPConnectionException: If the connection fails or times out
        """
        logger.info(f'Connecting to {host}:{port}')
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout=connect_timeout
            )
        except asyncio.TimeoutError as e:
            raise SMPPConnectionException(
                f'Connection timeout to {host}:{port} after {connect_timeout}s',
                host=host,
                port=port,
                original_error=e,
            ) from e
        except OSError as e:
            raise SMPPConnectionException(
                f'Failed to connect to {host}:{port}: {e}',
                host=host,
                port=port,
                original_error=e,
            ) from e

        logger.info(f'Connected to {host}:{port}')
        return cls(reader, writer, write_timeout=write_timeout)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def peername(self) -> Any:
        return self._writer.get_extra_info('peername')

    async def write(self, data: bytes) -> None:
        """
        Write one encoded PDU and wait for it to drain

        Raises:
            SMPPConnectionClosedException: If the transport is already closed
            SMPPWriteException: If the write fails or does not drain in time
        """
        async with self._write_lock:
            if self._closed:
                raise SMPPConnectionClosedException('Cannot write to a closed connection')

            try:
                self._writer.write(data)
                await asyncio.wait_for(self._writer.drain(), timeout=self.write_timeout)
            except asyncio.TimeoutError as e:
                raise SMPPWriteException(
                    f'Write did not complete within {self.write_timeout}s',
                    original_error=e,
                ) from e
            except (OSError, RuntimeError) as e:
                raise SMPPWriteException(f'Write failed: {e}', original_error=e) from e

            self.bytes_sent += len(data)

    async def read_frame(self) -> Optional[bytes]:
        """
        Read exactly one complete PDU frame

        Returns:
            The raw frame, or None on a clean end of stream between frames

        Raises:
            SMPPConnectionException: Stream ended mid-frame or the read failed
            SMPPMalformedPDUException: The length prefix cannot belong to a PDU
        """
        try:
            header = await self._reader.readexactly(PDU_HEADER_SIZE)
        except asyncio.IncompleteReadError as e:
            if not e.partial:
                return None
            raise SMPPConnectionException(
                f'Connection closed mid-frame: got {len(e.partial)} of '
                f'{PDU_HEADER_SIZE} header bytes'
            ) from e
        except OSError as e:
            raise SMPPConnectionException(f'Read failed: {e}', original_error=e) from e

        (command_length,) = struct.unpack_from('>L', header)
        # Framing is lost once the length prefix is wrong
        check_command_length(command_length)

        body = b''
        if command_length > PDU_HEADER_SIZE:
            try:
                body = await self._reader.readexactly(command_length - PDU_HEADER_SIZE)
            except asyncio.IncompleteReadError as e:
                raise SMPPConnectionException(
                    f'Connection closed mid-frame: got {len(e.partial)} of '
                    f'{command_length - PDU_HEADER_SIZE} body bytes'
                ) from e
            except OSError as e:
                raise SMPPConnectionException(f'Read failed: {e}', original_error=e) from e

        self.bytes_received += command_length
        return header + body

    async def read_loop(self, on_frame: FrameHandler) -> None:
        """
        Feed every inbound frame to ``on_frame`` until the stream ends

        Exceptions from reading or from ``on_frame`` end the loop and propagate.
        The loop also ends when ``on_frame`` closed the connection. The
        connection is closed on every exit path.

        Raises:
            SMPPInvalidStateException: If a read loop is already running
        """
        if self._reading:
            raise SMPPInvalidStateException(
                'Read loop already running', operation='read_loop'
            )

        self._reading = True
        logger.debug('Starting read loop')
        try:
            while True:
                frame = await self.read_frame()
                if frame is None:
                    logger.info('Connection closed by peer')
                    return
                await on_frame(frame)
                if self._closed:
                    logger.debug('Connection closed while handling frame')
                    return
        finally:
            self._reading = False
            logger.debug('Read loop ended')
            await self.close()

    async def close(self) -> None:
        """Close the connection; safe to call more than once"""
        if self._closed:
            return
        self._closed = True

        logger.debug(
            f'Closing connection (sent={self.bytes_sent} bytes, '
            f'received={self.bytes_received} bytes)'
        )
        try:
            self._writer.close()
            await self._writer.wait_closed()
        except (OSError, RuntimeError) as e:
            logger.debug(f'Error closing writer: {e}')

    def __repr__(self) -> str:
        state = 'closed' if self._closed else 'open'
        return f'SMPPTransport(peer={self.peername}, {state})'
