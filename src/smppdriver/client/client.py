"""
SMPP Client (ESME) Implementation

This module provides the async client facade: it opens a transport, binds a session
according to an ``SMPPClientConfig`` and submits messages within a bounded window.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Union

from ..config import SMPPClientConfig
from ..exceptions import (
    SMPPInvalidStateException,
    SMPPRequestTimeoutException,
    SMPPValidationException,
)
from ..protocol import DataCoding, encode_short_message
from ..protocol.pdu import BindResponsePDU, DeliverSm, SubmitSm
from ..protocol.validation import validate_address, validate_submit_sm_parameters
from ..session import SessionState, SMPPSession
from ..transport import SMPPTransport
from ..utils import format_relative_time, mask_options

logger = logging.getLogger(__name__)


class SMPPClient:
    """
    Async SMPP Client (ESME) Implementation

    Provides a high-level interface for connecting to an SMSC, binding, sending SMS
    messages and receiving deliver_sm. Many tasks may call ``send_sms`` at once; at
    most ``window_size`` submits are outstanding on the wire.
    """

    def __init__(
        self,
        config: SMPPClientConfig,
        deliver_handler: Optional[Callable[[DeliverSm], Any]] = None,
    ):
        """
        Initialize SMPP Client

        Args:
            config: Validated client configuration
            deliver_handler: Called with every deliver_sm; may be a coroutine function
        """
        self.config = config
        self._deliver_handler = deliver_handler
        self._session: Optional[SMPPSession] = None
        self._window: Optional[asyncio.Semaphore] = None

        # Event handlers
        self.on_state_change: Optional[Callable[[SessionState, SessionState], None]] = None
        self.on_closed: Optional[Callable[[Optional[Exception]], None]] = None

    @classmethod
    async def connect(
        cls,
        config: Union[SMPPClientConfig, Dict[str, Any]],
        bind: bool = True,
        deliver_handler: Optional[Callable[[DeliverSm], Any]] = None,
    ) -> 'SMPPClient':
        """
        Connect to the SMSC and, unless ``bind`` is False, bind

        Raises:
            SMPPConfigurationException: If the configuration is invalid
            SMPPConnectionException: If the TCP connection fails
            SMPPBindRejectedException: If the SMSC rejects the bind
        """
        if isinstance(config, dict):
            logger.debug(f'Connecting with options {mask_options(config)}')
            config = SMPPClientConfig.from_dict(config)
        else:
            config.validate()

        client = cls(config, deliver_handler=deliver_handler)
        await client.open()
        if bind:
            try:
                await client.bind()
            except BaseException:
                await client.close()
                raise
        return client

    @property
    def session(self) -> Optional[SMPPSession]:
        return self._session

    @property
    def state(self) -> SessionState:
        """Session state; CLOSED before ``open``"""
        return self._session.state if self._session else SessionState.CLOSED

    @property
    def is_connected(self) -> bool:
        return self._session is not None and not self._session.is_closed

    @property
    def is_bound(self) -> bool:
        return self._session is not None and self._session.is_bound

    @property
    def stats(self) -> Dict[str, int]:
        if self._session is None:
            return {}
        stats = self._session.stats
        stats['pending'] = self._session.pending_count
        stats['bytes_sent'] = self._session.transport.bytes_sent
        stats['bytes_received'] = self._session.transport.bytes_received
        return stats

    def set_deliver_handler(self, handler: Optional[Callable[[DeliverSm], Any]]) -> None:
        self._deliver_handler = handler
        if self._session is not None:
            self._session.set_deliver_handler(handler)

    async def open(self) -> None:
        """Open the TCP connection and start the session"""
        if self._session is not None:
            raise SMPPInvalidStateException(
                'Client already connected', current_state=self.state.value
            )

        config = self.config
        transport = await SMPPTransport.open(
            config.host,
            config.port,
            connect_timeout=config.connect_timeout,
            write_timeout=config.write_timeout,
        )
        self._session = SMPPSession(
            transport,
            bind_timeout=config.bind_timeout,
            enquire_link_interval=config.enquire_link_interval,
            enquire_link_timeout=config.enquire_link_timeout,
            enquire_link_max_misses=config.enquire_link_max_misses,
            unbind_timeout=config.unbind_timeout,
            max_decode_errors=config.max_decode_errors,
            deliver_handler=self._deliver_handler,
            on_state_change=self._handle_state_change,
            on_closed=self._handle_closed,
        )
        self._window = asyncio.Semaphore(config.window_size)
        self._session.start()

    async def bind(self) -> BindResponsePDU:
        """
        Bind using the configured mode and credentials

        Raises:
            SMPPBindRejectedException: If the SMSC answered with a non-zero status
            SMPPRequestTimeoutException: If no response arrived within ``bind_timeout``
        """
        session = self._require_session()
        config = self.config
        return await session.bind(
            config.mode,
            system_id=config.system_id,
            password=config.password,
            system_type=config.system_type,
            interface_version=config.interface_version,
            addr_ton=config.addr_ton,
            addr_npi=config.addr_npi,
            address_range=config.address_range,
            timeout=config.bind_timeout,
        )

    async def send_sms(
        self,
        sender: str,
        destination: str,
        text: str,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Send a text message

        Args:
            sender: Source address, 1 to 20 characters
            destination: Destination address, 1 to 20 characters
            text: Message text; sent as default alphabet if ASCII, UCS2 otherwise
            timeout: Seconds for window wait plus response; defaults to ``submit_timeout``

        Returns:
            Message ID assigned by SMSC

        Raises:
            SMPPValidationException: Address or encoded text out of bounds
            SMPPSubmitRejectedException: The SMSC answered with a non-zero status
            SMPPRequestTimeoutException: No response within the deadline
            SMPPConnectionClosedException: The session died while waiting
        """
        validate_address(sender, 'source_addr')
        validate_address(destination, 'destination_addr')
        return await self.submit_sm(sender, destination, text, timeout=timeout)

    async def submit_sm(
        self,
        source_addr: str,
        destination_addr: str,
        short_message: Union[str, bytes],
        source_addr_ton: Optional[int] = None,
        source_addr_npi: Optional[int] = None,
        dest_addr_ton: Optional[int] = None,
        dest_addr_npi: Optional[int] = None,
        service_type: str = '',
        esm_class: int = 0,
        protocol_id: int = 0,
        priority_flag: int = 0,
        schedule_delivery_time: str = '',
        validity_period: Union[str, int, float] = '',
        registered_delivery: Optional[int] = None,
        data_coding: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Submit a message with the full submit_sm option set

        TON/NPI and registered_delivery default to the configured values.
        ``validity_period`` may be an SMPP time string or a number of seconds.

        Returns:
            Message ID assigned by SMSC
        """
        config = self.config
        if isinstance(short_message, str):
            message_bytes, data_coding = encode_short_message(short_message, data_coding)
        else:
            message_bytes = bytes(short_message)
            if data_coding is None:
                data_coding = DataCoding.OCTET_UNSPECIFIED_2

        if isinstance(validity_period, (int, float)):
            try:
                validity_period = format_relative_time(validity_period)
            except ValueError as e:
                raise SMPPValidationException(
                    str(e), field_name='validity_period', validation_rule='relative_time'
                ) from e

        pdu = SubmitSm(
            service_type=service_type,
            source_addr_ton=_default(source_addr_ton, config.source_addr_ton),
            source_addr_npi=_default(source_addr_npi, config.source_addr_npi),
            source_addr=source_addr,
            dest_addr_ton=_default(dest_addr_ton, config.dest_addr_ton),
            dest_addr_npi=_default(dest_addr_npi, config.dest_addr_npi),
            destination_addr=destination_addr,
            esm_class=esm_class,
            protocol_id=protocol_id,
            priority_flag=priority_flag,
            schedule_delivery_time=schedule_delivery_time,
            validity_period=validity_period,
            registered_delivery=_default(registered_delivery, config.registered_delivery),
            data_coding=data_coding,
            short_message=message_bytes,
        )
        validate_submit_sm_parameters(
            pdu.source_addr,
            pdu.destination_addr,
            pdu.short_message,
            source_addr_ton=pdu.source_addr_ton,
            source_addr_npi=pdu.source_addr_npi,
            dest_addr_ton=pdu.dest_addr_ton,
            dest_addr_npi=pdu.dest_addr_npi,
            data_coding=pdu.data_coding,
            esm_class=pdu.esm_class,
            protocol_id=pdu.protocol_id,
            priority_flag=pdu.priority_flag,
            registered_delivery=pdu.registered_delivery,
            service_type=pdu.service_type,
            schedule_delivery_time=pdu.schedule_delivery_time,
            validity_period=pdu.validity_period,
        )

        return await self._submit(pdu, timeout)

    async def _submit(self, pdu: SubmitSm, timeout: Optional[float]) -> str:
        session = self._require_session()
        assert self._window is not None
        if timeout is None:
            timeout = self.config.submit_timeout

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        try:
            await asyncio.wait_for(self._window.acquire(), timeout=timeout)
        except asyncio.TimeoutError:
            raise SMPPRequestTimeoutException(
                f'No submit window slot free within {timeout}s',
                timeout_duration=timeout,
                operation='submit_sm',
            ) from None

        try:
            logger.debug(
                f'Submitting SMS from {pdu.source_addr} to {pdu.destination_addr}'
            )
            response = await session.submit(pdu, max(deadline - loop.time(), 0.0))
        finally:
            self._window.release()

        logger.debug(f'SMS submitted, message_id: {response.message_id}')
        return response.message_id

    async def enquire_link(self, timeout: Optional[float] = None) -> bool:
        """Probe the link; True if the SMSC answered in time"""
        session = self._require_session()
        return await session.enquire_link(
            self.config.enquire_link_timeout if timeout is None else timeout
        )

    async def unbind(self) -> None:
        """Unbind and close the session"""
        await self._require_session().unbind(self.config.unbind_timeout)

    async def close(self) -> None:
        """Unbind if bound and close the connection; safe to call more than once"""
        if self._session is None or self._session.is_closed:
            return
        logger.info(f'Closing session to {self.config.host}:{self.config.port}')
        await self._session.close()

    def _require_session(self) -> SMPPSession:
        if self._session is None:
            raise SMPPInvalidStateException(
                'Client is not connected', current_state=SessionState.CLOSED.value
            )
        return self._session

    def _handle_state_change(self, old: SessionState, new: SessionState) -> None:
        if self.on_state_change:
            self.on_state_change(old, new)

    def _handle_closed(self, reason: Optional[Exception]) -> None:
        if self.on_closed:
            self.on_closed(reason)

    async def __aenter__(self) -> 'SMPPClient':
        """Async context manager entry - connect and bind if not done yet."""
        if self._session is None:
            await self.open()
            try:
                await self.bind()
            except BaseException:
                await self.close()
                raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - unbind and disconnect."""
        await self.close()

    def __repr__(self) -> str:
        return (
            f'SMPPClient(host={self.config.host}, port={self.config.port}, '
            f'system_id={self.config.system_id}, state={self.state.value})'
        )


def _default(value: Optional[int], fallback: int) -> int:
    return fallback if value is None else value
