"""
SMPP Session State Machine

This module drives one binding over one transport: it gates outbound PDUs on the
session state, correlates requests with responses, answers unsolicited PDUs from
the SMSC and keeps the link alive with enquire_link.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Optional, Set, Union

from ..exceptions import (
    SMPPBindRejectedException,
    SMPPConnectionClosedException,
    SMPPException,
    SMPPInvalidStateException,
    SMPPMalformedPDUException,
    SMPPPDUException,
    SMPPRequestTimeoutException,
    SMPPSubmitRejectedException,
    SMPPUnknownCommandException,
    SMPPValidationException,
)
from ..protocol.codec import decode_pdu, encode_pdu
from ..protocol.constants import (
    DEFAULT_INTERFACE_VERSION,
    BindMode,
    CommandId,
    CommandStatus,
    get_command_name,
    get_error_message,
)
from ..protocol.pdu import (
    PDU,
    BindResponsePDU,
    DeliverSm,
    DeliverSmResp,
    EnquireLink,
    EnquireLinkResp,
    SubmitSm,
    SubmitSmResp,
    Unbind,
    UnbindResp,
    create_bind_pdu,
    create_generic_nack_pdu,
)
from ..transport import SMPPTransport
from .correlator import SequenceCorrelator

logger = logging.getLogger(__name__)

DeliverHandler = Callable[[DeliverSm], Any]


class SessionState(Enum):
    """SMPP session lifecycle states"""

    UNBOUND = 'UNBOUND'
    BINDING = 'BINDING'
    BOUND = 'BOUND'
    UNBINDING = 'UNBINDING'
    CLOSED = 'CLOSED'


_OPEN_STATES: FrozenSet[SessionState] = frozenset(
    {
        SessionState.UNBOUND,
        SessionState.BINDING,
        SessionState.BOUND,
        SessionState.UNBINDING,
    }
)

# States from which each outbound command may be sent
_ALLOWED_STATES: Dict[int, FrozenSet[SessionState]] = {
    CommandId.BIND_TRANSMITTER: frozenset({SessionState.UNBOUND}),
    CommandId.BIND_RECEIVER: frozenset({SessionState.UNBOUND}),
    CommandId.BIND_TRANSCEIVER: frozenset({SessionState.UNBOUND}),
    CommandId.SUBMIT_SM: frozenset({SessionState.BOUND}),
    CommandId.ENQUIRE_LINK: frozenset({SessionState.BOUND}),
    CommandId.UNBIND: frozenset({SessionState.BOUND}),
    CommandId.DELIVER_SM_RESP: frozenset({SessionState.BOUND}),
    CommandId.ENQUIRE_LINK_RESP: _OPEN_STATES,
    CommandId.UNBIND_RESP: _OPEN_STATES,
    CommandId.GENERIC_NACK: _OPEN_STATES,
}


class SMPPSession:
    """
    One SMPP binding over one transport

    The session owns its transport and correlator. Callers run ``bind``,
    ``submit``, ``enquire_link`` and ``unbind`` concurrently; the read loop task
    dispatches inbound PDUs, and a keep-alive task runs while the session is bound.
    A transport failure closes the session and fails every pending caller with
    ``SMPPConnectionClosedException``.
    """

    def __init__(
        self,
        transport: SMPPTransport,
        bind_timeout: Optional[float] = 10.0,
        enquire_link_interval: Optional[float] = 30.0,
        enquire_link_timeout: Optional[float] = 10.0,
        enquire_link_max_misses: int = 2,
        unbind_timeout: Optional[float] = 5.0,
        max_decode_errors: int = 3,
        max_pending: Optional[int] = None,
        deliver_handler: Optional[DeliverHandler] = None,
        on_state_change: Optional[Callable[[SessionState, SessionState], None]] = None,
        on_closed: Optional[Callable[[Optional[Exception]], None]] = None,
    ):
        """
        Initialize an unbound session

        Args:
            transport: Open transport; the session closes it
            bind_timeout: Seconds to wait for a bind response
            enquire_link_interval: Seconds between keep-alives, None or 0 disables them
            enquire_link_timeout: Seconds to wait for an enquire_link_resp
            enquire_link_max_misses: Consecutive failed or unanswered keep-alives before closing
            unbind_timeout: Seconds to wait for unbind_resp
            max_decode_errors: Consecutive undecodable frames before closing
            max_pending: Upper bound on outstanding requests
            deliver_handler: Called with every deliver_sm; may be a coroutine function
            on_state_change: Called with (old, new) on every state transition
            on_closed: Called once with the reason when the session closes
        """
        self.bind_timeout = bind_timeout
        self.enquire_link_interval = enquire_link_interval
        self.enquire_link_timeout = enquire_link_timeout
        self.enquire_link_max_misses = enquire_link_max_misses
        self.unbind_timeout = unbind_timeout
        self.max_decode_errors = max_decode_errors

        self.on_state_change = on_state_change
        self.on_closed = on_closed

        self._transport = transport
        self._correlator = SequenceCorrelator(max_pending=max_pending)
        self._deliver_handler = deliver_handler
        self._state = SessionState.UNBOUND
        self._bind_mode: Optional[BindMode] = None
        self._close_reason: Optional[Exception] = None
        self._decode_errors = 0

        self._read_task: Optional[asyncio.Task] = None
        self._keepalive_task: Optional[asyncio.Task] = None
        self._deliver_tasks: Set[asyncio.Task] = set()
        self._closed_event = asyncio.Event()

        self._stats: Dict[str, int] = {
            'submitted': 0,
            'accepted': 0,
            'rejected': 0,
            'timeouts': 0,
            'delivered': 0,
            'enquire_links': 0,
        }

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def bind_mode(self) -> Optional[BindMode]:
        return self._bind_mode

    @property
    def is_bound(self) -> bool:
        return self._state is SessionState.BOUND

    @property
    def is_closed(self) -> bool:
        return self._state is SessionState.CLOSED

    @property
    def close_reason(self) -> Optional[Exception]:
        return self._close_reason

    @property
    def pending_count(self) -> int:
        return self._correlator.pending_count

    @property
    def transport(self) -> SMPPTransport:
        return self._transport

    @property
    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    def set_deliver_handler(self, handler: Optional[DeliverHandler]) -> None:
        self._deliver_handler = handler

    def start(self) -> None:
        """Start dispatching inbound PDUs"""
        if self._read_task is not None:
            raise SMPPInvalidStateException(
                'Session already started', current_state=self._state.value
            )
        self._read_task = asyncio.create_task(self._run_reader())

    async def wait_closed(self) -> None:
        await self._closed_event.wait()

    def _set_state(self, new_state: SessionState) -> None:
        """Set session state and trigger state change event"""
        old_state = self._state
        if old_state is new_state:
            return
        self._state = new_state
        logger.info(f'Session state changed: {old_state.value} -> {new_state.value}')
        if self.on_state_change:
            try:
                self.on_state_change(old_state, new_state)
            except Exception as e:
                logger.exception(f'Error in state change handler: {e}')

    def _check_outbound(self, command_id: int) -> None:
        allowed = _ALLOWED_STATES.get(command_id, _OPEN_STATES)
        if self._state not in allowed:
            raise SMPPInvalidStateException(
                f'Cannot send {get_command_name(command_id)} in state {self._state.value}',
                current_state=self._state.value,
                expected_state='|'.join(sorted(s.value for s in allowed)),
                operation=get_command_name(command_id),
            )

    # Outbound

    async def bind(
        self,
        bind_mode: Union[BindMode, str],
        system_id: str,
        password: str = '',
        system_type: str = '',
        interface_version: int = DEFAULT_INTERFACE_VERSION,
        addr_ton: int = 0,
        addr_npi: int = 0,
        address_range: str = '',
        timeout: Optional[float] = None,
    ) -> BindResponsePDU:
        """
        Bind to the SMSC

        Args:
            bind_mode: transmitter, receiver or transceiver
            system_id: ESME system identifier
            password: ESME password
            system_type: ESME system type
            interface_version: SMPP version advertised in the bind
            addr_ton: TON of the address range
            addr_npi: NPI of the address range
            address_range: Addresses served when bound as receiver
            timeout: Seconds to wait for the response; defaults to ``bind_timeout``

        Returns:
            The bind response

        Raises:
            SMPPInvalidStateException: If the session is not UNBOUND
            SMPPBindRejectedException: If the SMSC answered with a non-zero status
            SMPPRequestTimeoutException: If no response arrived in time
        """
        try:
            mode = BindMode.parse(bind_mode)
        except ValueError as e:
            raise SMPPValidationException(
                str(e), field_name='bind_mode', validation_rule='bind_mode'
            ) from e

        self._check_outbound(mode.command_id)
        pdu = create_bind_pdu(
            mode,
            system_id=system_id,
            password=password,
            system_type=system_type,
            interface_version=interface_version,
            addr_ton=addr_ton,
            addr_npi=addr_npi,
            address_range=address_range,
        )

        logger.info(f'Binding as {mode.value} with system_id={system_id}')
        self._set_state(SessionState.BINDING)
        try:
            response = await self._send_request(
                pdu, self.bind_timeout if timeout is None else timeout
            )
        except BaseException:
            if self._state is SessionState.BINDING:
                self._set_state(SessionState.UNBOUND)
            raise

        if response.command_status != CommandStatus.ESME_ROK:
            if self._state is SessionState.BINDING:
                self._set_state(SessionState.UNBOUND)
            raise SMPPBindRejectedException(
                f'Bind failed: {get_error_message(response.command_status)}',
                status=response.command_status,
                bind_type=mode.value,
                system_id=system_id,
            )

        if not isinstance(response, BindResponsePDU):
            if self._state is SessionState.BINDING:
                self._set_state(SessionState.UNBOUND)
            raise SMPPPDUException(
                f'Unexpected {response.name} in reply to {pdu.name}',
                pdu_type=response.name,
                command_id=response.command_id,
                sequence_number=response.sequence_number,
            )

        if self._state is not SessionState.BINDING:
            raise SMPPInvalidStateException(
                'Session left BINDING while waiting for the bind response',
                current_state=self._state.value,
                operation='bind',
            )

        self._bind_mode = mode
        self._set_state(SessionState.BOUND)
        self._start_keepalive()
        logger.info(f'Bound as {mode.value} to {getattr(response, "system_id", "")!r}')
        return response

    async def submit(self, pdu: SubmitSm, timeout: Optional[float] = None) -> SubmitSmResp:
        """
        Send a submit_sm and wait for its response

        Raises:
            SMPPInvalidStateException: Not bound, or bound as receiver
            SMPPSubmitRejectedException: The SMSC answered with a non-zero status
            SMPPRequestTimeoutException: No response within ``timeout``
            SMPPPDUException: The SMSC answered with something other than submit_sm_resp
        """
        self._check_outbound(CommandId.SUBMIT_SM)
        if self._bind_mode is None or not self._bind_mode.can_submit:
            raise SMPPInvalidStateException(
                f'Cannot send submit_sm when bound as {self._bind_mode.value if self._bind_mode else None}',
                current_state=self._state.value,
                operation='submit_sm',
            )

        self._stats['submitted'] += 1
        try:
            response = await self._send_request(pdu, timeout)
        except SMPPRequestTimeoutException:
            self._stats['timeouts'] += 1
            raise

        if response.command_status != CommandStatus.ESME_ROK:
            self._stats['rejected'] += 1
            raise SMPPSubmitRejectedException(
                f'submit_sm rejected: {get_error_message(response.command_status)}',
                status=response.command_status,
                destination=pdu.destination_addr,
            )

        if not isinstance(response, SubmitSmResp):
            self._stats['rejected'] += 1
            raise SMPPPDUException(
                f'Unexpected {response.name} in reply to submit_sm',
                pdu_type=response.name,
                command_id=response.command_id,
                sequence_number=response.sequence_number,
            )

        self._stats['accepted'] += 1
        return response

    async def enquire_link(self, timeout: Optional[float] = None) -> bool:
        """
        Probe the link

        Returns:
            True if the SMSC answered with ESME_ROK, False if it answered with an
            error status or did not answer in time
        """
        self._check_outbound(CommandId.ENQUIRE_LINK)
        self._stats['enquire_links'] += 1
        try:
            response = await self._send_request(
                EnquireLink(), self.enquire_link_timeout if timeout is None else timeout
            )
        except SMPPRequestTimeoutException:
            logger.warning('enquire_link timed out')
            return False

        if response.command_status != CommandStatus.ESME_ROK:
            logger.warning(
                f'enquire_link answered with {response.name} status '
                f'0x{response.command_status:08X}'
            )
            return False
        return True

    async def unbind(self, timeout: Optional[float] = None) -> None:
        """
        Unbind from the SMSC and close the session

        The session ends up CLOSED whether or not unbind_resp arrives.
        """
        self._check_outbound(CommandId.UNBIND)
        self._set_state(SessionState.UNBINDING)
        self._cancel_keepalive()
        try:
            response = await self._send_request(
                Unbind(), self.unbind_timeout if timeout is None else timeout
            )
            if response.command_status != CommandStatus.ESME_ROK:
                logger.warning(
                    f'unbind answered with status 0x{response.command_status:08X}'
                )
            else:
                logger.info('Unbound')
        finally:
            await self._shutdown(SMPPConnectionClosedException('Session unbound'))

    async def close(self) -> None:
        """Unbind if bound, then close the transport; safe to call more than once"""
        if self._state is SessionState.CLOSED:
            return

        if self._state is SessionState.BOUND:
            try:
                await self.unbind()
            except SMPPException as e:
                logger.warning(f'Unbind failed, closing anyway: {e}')

        await self._shutdown(SMPPConnectionClosedException('Session closed'))

    async def _send_request(self, pdu: PDU, timeout: Optional[float]) -> PDU:
        pdu.sequence_number = self._correlator.register(pdu.command_id)
        try:
            await self._write_pdu(pdu)
        except BaseException:
            self._correlator.discard(pdu.sequence_number)
            raise
        return await self._correlator.wait(pdu.sequence_number, timeout)

    async def _reply(self, pdu: PDU) -> None:
        self._check_outbound(pdu.command_id)
        await self._write_pdu(pdu)

    async def _write_pdu(self, pdu: PDU) -> None:
        data = encode_pdu(pdu)
        logger.debug(
            f'Sending {pdu.name} (seq={pdu.sequence_number}, '
            f'status=0x{pdu.command_status:08X}, len={len(data)})'
        )
        try:
            await self._transport.write(data)
        except SMPPConnectionClosedException:
            raise
        except SMPPException as e:
            logger.error(f'Write failed, closing session: {e}')
            await self._shutdown(e)
            raise

    # Inbound

    async def _run_reader(self) -> None:
        reason: Optional[Exception] = None
        try:
            await self._transport.read_loop(self._handle_frame)
        except SMPPException as e:
            logger.error(f'Connection lost: {e}')
            reason = e
        except Exception as e:
            logger.exception(f'Error in read loop: {e}')
            reason = e
        finally:
            if self._state is not SessionState.CLOSED:
                await self._shutdown(
                    reason or SMPPConnectionClosedException('Connection closed by peer')
                )

    async def _handle_frame(self, data: bytes) -> None:
        try:
            pdu = decode_pdu(data)
        except SMPPUnknownCommandException as e:
            self._decode_errors = 0
            header = e.header
            logger.warning(
                f'Unknown command 0x{header.command_id:08X} (seq={header.sequence_number})'
            )
            if not header.is_response():
                await self._send_generic_nack(
                    header.sequence_number, CommandStatus.ESME_RINVCMDID
                )
            return
        except SMPPMalformedPDUException as e:
            self._decode_errors += 1
            logger.warning(
                f'Dropping malformed PDU '
                f'({self._decode_errors}/{self.max_decode_errors}): {e}'
            )
            if self._decode_errors >= self.max_decode_errors:
                raise SMPPMalformedPDUException(
                    f'{self._decode_errors} consecutive malformed PDUs'
                ) from e
            return

        self._decode_errors = 0
        logger.debug(
            f'Received {pdu.name} (seq={pdu.sequence_number}, '
            f'status=0x{pdu.command_status:08X})'
        )

        if pdu.is_response():
            self._correlator.resolve(pdu)
        elif pdu.command_id == CommandId.ENQUIRE_LINK:
            await self._reply(EnquireLinkResp(sequence_number=pdu.sequence_number))
        elif pdu.command_id == CommandId.DELIVER_SM:
            await self._accept_deliver_sm(pdu)
        elif pdu.command_id == CommandId.UNBIND:
            await self._handle_peer_unbind(pdu)
        else:
            logger.warning(f'Unexpected {pdu.name} from SMSC (seq={pdu.sequence_number})')
            await self._send_generic_nack(pdu.sequence_number, CommandStatus.ESME_RINVCMDID)

    async def _send_generic_nack(self, sequence_number: int, status: int) -> None:
        if self._state is SessionState.CLOSED:
            return
        await self._reply(create_generic_nack_pdu(sequence_number, status))

    async def _accept_deliver_sm(self, pdu: DeliverSm) -> None:
        if self._state is not SessionState.BOUND:
            logger.warning(
                f'deliver_sm in state {self._state.value} (seq={pdu.sequence_number})'
            )
            await self._send_generic_nack(
                pdu.sequence_number, CommandStatus.ESME_RINVBNDSTS
            )
            return

        task = asyncio.create_task(self._process_deliver_sm(pdu))
        self._deliver_tasks.add(task)
        task.add_done_callback(self._deliver_tasks.discard)

    async def _process_deliver_sm(self, pdu: DeliverSm) -> None:
        status = CommandStatus.ESME_ROK
        if self._deliver_handler is not None:
            try:
                result = self._deliver_handler(pdu)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.exception(f'deliver_sm handler failed: {e}')
                status = CommandStatus.ESME_RX_T_APPN

        self._stats['delivered'] += 1
        try:
            await self._reply(
                DeliverSmResp(sequence_number=pdu.sequence_number, command_status=status)
            )
        except SMPPException as e:
            logger.warning(
                f'Could not acknowledge deliver_sm (seq={pdu.sequence_number}): {e}'
            )

    async def _handle_peer_unbind(self, pdu: Unbind) -> None:
        logger.info('SMSC requested unbind')
        try:
            await self._reply(UnbindResp(sequence_number=pdu.sequence_number))
        finally:
            await self._shutdown(SMPPConnectionClosedException('Unbound by SMSC'))

    # Keep-alive

    def _start_keepalive(self) -> None:
        if not self.enquire_link_interval:
            return
        self._keepalive_task = asyncio.create_task(self._keepalive_loop())

    def _cancel_keepalive(self) -> None:
        task = self._keepalive_task
        self._keepalive_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _keepalive_loop(self) -> None:
        logger.debug('Starting enquire_link loop')
        misses = 0
        try:
            while self._state is SessionState.BOUND:
                await asyncio.sleep(self.enquire_link_interval)
                if self._state is not SessionState.BOUND:
                    break

                if await self.enquire_link():
                    misses = 0
                    continue

                misses += 1
                if misses >= self.enquire_link_max_misses:
                    logger.error(f'{misses} enquire_link requests failed, closing session')
                    await self._shutdown(
                        SMPPConnectionClosedException(
                            f'Link dead: {misses} enquire_link requests failed'
                        )
                    )
                    break
        except SMPPException as e:
            logger.debug(f'enquire_link loop stopped: {e}')
        finally:
            logger.debug('Enquire_link loop ended')

    # Teardown

    async def _shutdown(self, reason: Exception) -> None:
        if self._state is SessionState.CLOSED:
            return

        self._close_reason = reason
        self._set_state(SessionState.CLOSED)

        if isinstance(reason, SMPPConnectionClosedException):
            closed = reason
        else:
            closed = SMPPConnectionClosedException(
                f'Session closed: {reason}', original_error=reason
            )
        self._correlator.fail_all(closed)

        self._cancel_keepalive()
        current = asyncio.current_task()
        for task in list(self._deliver_tasks):
            if task is not current:
                task.cancel()

        await self._transport.close()

        if self._read_task is not None and self._read_task is not current:
            self._read_task.cancel()

        if self.on_closed:
            try:
                self.on_closed(reason)
            except Exception as e:
                logger.exception(f'Error in closed handler: {e}')

        self._closed_event.set()
        logger.info(f'Session closed: {reason}')

    def __repr__(self) -> str:
        mode = self._bind_mode.value if self._bind_mode else None
        return f'SMPPSession(state={self._state.value}, bind_mode={mode})'
