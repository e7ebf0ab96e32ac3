"""
SMPP Sequence Correlator

Allocates outbound sequence numbers and matches inbound responses to the caller
waiting for them. One correlator belongs to one session.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..exceptions import (
    SMPPConnectionClosedException,
    SMPPException,
    SMPPInvalidStateException,
    SMPPRequestTimeoutException,
)
from ..protocol.constants import MAX_SEQUENCE_NUMBER, get_command_name
from ..protocol.pdu import PDU

logger = logging.getLogger(__name__)


@dataclass
class PendingRequest:
    """An outbound request awaiting its response"""

    sequence_number: int
    command_id: int
    future: 'asyncio.Future[PDU]'
    sent_at: float = field(default_factory=time.monotonic)


class SequenceCorrelator:
    """
    Sequence number allocation and response matching.

    Sequence numbers run from 1 to 0x7FFFFFFF (``MAX_SEQUENCE_NUMBER``) and wrap
    back to 1; numbers still pending are skipped. SMPP 3.4 allows only this range
    in the 32-bit sequence_number field, so the top bit is never set and 0 is
    never issued. Every entry is resolved at most once: by its response, by
    its waiter timing out or being cancelled, or by ``fail_all``.

    The registry lock only guards dict access; futures are completed on the event
    loop that created them.
    """

    def __init__(self, max_pending: Optional[int] = None, first_sequence: int = 1):
        if not (1 <= first_sequence <= MAX_SEQUENCE_NUMBER):
            raise ValueError(f'Invalid first sequence number: {first_sequence}')

        self.max_pending = max_pending
        self._next_sequence = first_sequence
        self._pending: Dict[int, PendingRequest] = {}
        self._lock = threading.Lock()
        self._failure: Optional[SMPPException] = None

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def is_failed(self) -> bool:
        return self._failure is not None

    def is_pending(self, sequence_number: int) -> bool:
        with self._lock:
            return sequence_number in self._pending

    def register(self, command_id: int = 0) -> int:
        """
        Allocate a sequence number and register a pending entry for it.

        Must be called from the event loop that will await the response.

        Returns:
            The allocated sequence number

        Raises:
            SMPPConnectionClosedException: If the correlator has been failed
            SMPPInvalidStateException: If ``max_pending`` entries are outstanding
        """
        future = asyncio.get_running_loop().create_future()

        with self._lock:
            if self._failure is not None:
                raise self._closed_error()

            limit = MAX_SEQUENCE_NUMBER
            if self.max_pending is not None:
                limit = min(limit, self.max_pending)
            if len(self._pending) >= limit:
                raise SMPPInvalidStateException(
                    f'Too many pending requests: {len(self._pending)}',
                    operation=get_command_name(command_id),
                )

            sequence_number = self._next_sequence
            while sequence_number in self._pending:
                sequence_number = self._advance(sequence_number)
            self._next_sequence = self._advance(sequence_number)

            self._pending[sequence_number] = PendingRequest(
                sequence_number, command_id, future
            )

        return sequence_number

    @staticmethod
    def _advance(sequence_number: int) -> int:
        return 1 if sequence_number >= MAX_SEQUENCE_NUMBER else sequence_number + 1

    async def wait(self, sequence_number: int, timeout: Optional[float] = None) -> PDU:
        """
        Wait for the response to a registered request.

        The entry is removed on every exit path: response, timeout, cancellation.

        Raises:
            SMPPRequestTimeoutException: No response within ``timeout`` seconds
            SMPPConnectionClosedException: The session died while waiting
            SMPPInvalidStateException: Nothing is registered under ``sequence_number``
        """
        with self._lock:
            entry = self._pending.get(sequence_number)
            failure = self._failure

        if entry is None:
            if failure is not None:
                raise self._closed_error()
            raise SMPPInvalidStateException(
                f'No pending request with sequence number {sequence_number}',
                operation='wait',
            )

        try:
            return await asyncio.wait_for(entry.future, timeout=timeout)
        except asyncio.TimeoutError:
            raise SMPPRequestTimeoutException(
                f'No response to {get_command_name(entry.command_id)} '
                f'within {timeout}s',
                sequence_number=sequence_number,
                timeout_duration=timeout,
                operation=get_command_name(entry.command_id),
            ) from None
        finally:
            self._remove(entry)

    def resolve(self, pdu: PDU) -> bool:
        """
        Deliver a response to its waiter.

        Returns:
            True if a pending request took the response, False if it was dropped
        """
        with self._lock:
            entry = self._pending.get(pdu.sequence_number)
            if entry is not None and not entry.future.done():
                entry.future.set_result(pdu)
                return True

        logger.warning(
            f'Dropping {pdu.name} with no pending request (seq={pdu.sequence_number})'
        )
        return False

    def discard(self, sequence_number: int) -> None:
        """Release an entry whose request never made it onto the wire"""
        with self._lock:
            entry = self._pending.pop(sequence_number, None)
        if entry is not None and not entry.future.done():
            entry.future.cancel()

    def fail_all(self, exc: Optional[SMPPException] = None) -> int:
        """
        Fail every pending request and refuse new registrations.

        Returns:
            Number of waiters that were failed
        """
        if exc is None:
            exc = SMPPConnectionClosedException()

        with self._lock:
            if self._failure is None:
                self._failure = exc
            entries = list(self._pending.values())
            self._pending.clear()

        failed = 0
        for entry in entries:
            if not entry.future.done():
                entry.future.set_exception(self._closed_error(exc))
                failed += 1

        if failed:
            logger.debug(f'Failed {failed} pending request(s): {exc}')
        return failed

    def _closed_error(
        self, cause: Optional[SMPPException] = None
    ) -> SMPPConnectionClosedException:
        # A new instance for every waiter and caller
        cause = cause or self._failure
        message = cause.args[0] if cause is not None and cause.args else 'Connection closed'
        return SMPPConnectionClosedException(message, original_error=cause)

    def _remove(self, entry: PendingRequest) -> None:
        with self._lock:
            if self._pending.get(entry.sequence_number) is entry:
                del self._pending[entry.sequence_number]
