"""
Blocking SMPP Bridge

This module exposes the async client to synchronous load-test scripts. All
sessions share one background event loop thread; calls from script threads are
submitted to it and block until the coroutine finishes.

Example:
    session = bridge.connect({'host': 'smsc', 'port': 2775, 'system_id': 'test',
                              'password': 'secret', 'bind': 'transceiver'})
    message_id = session.sendSMS('TEST', '+491701234567', 'Hello SMPP')
    session.close()
"""

import asyncio
import logging
import threading
from typing import Any, Coroutine, Dict, Optional, TypeVar

from .client import SMPPClient
from .config import SMPPClientConfig
from .exceptions import SMPPInvalidStateException, SMPPValidationException
from .session import SessionState
from .utils import mask_options

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Script spellings for submitSM options
_SUBMIT_OPTION_ALIASES = {
    'sourceAddr': 'source_addr',
    'destAddr': 'destination_addr',
    'destinationAddr': 'destination_addr',
    'shortMessage': 'short_message',
    'sourceAddrTon': 'source_addr_ton',
    'sourceAddrNpi': 'source_addr_npi',
    'destAddrTon': 'dest_addr_ton',
    'destAddrNpi': 'dest_addr_npi',
    'serviceType': 'service_type',
    'esmClass': 'esm_class',
    'protocolId': 'protocol_id',
    'protocolID': 'protocol_id',
    'priorityFlag': 'priority_flag',
    'scheduleDeliveryTime': 'schedule_delivery_time',
    'validityPeriod': 'validity_period',
    'registeredDelivery': 'registered_delivery',
    'dataCoding': 'data_coding',
}

_SUBMIT_OPTIONS = frozenset(_SUBMIT_OPTION_ALIASES.values()) | {'timeout'}


class EventLoopThread:
    """An asyncio event loop running forever in a daemon thread"""

    def __init__(self, name: str = 'smpp-loop'):
        self.name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the loop thread if it is not running yet"""
        with self._lock:
            if self.is_running:
                return
            started = threading.Event()
            self._loop = asyncio.new_event_loop()
            self._thread = threading.Thread(
                target=self._run, args=(self._loop, started), name=self.name, daemon=True
            )
            self._thread.start()
            started.wait()
            logger.debug(f'Event loop thread {self.name} started')

    @staticmethod
    def _run(loop: asyncio.AbstractEventLoop, started: threading.Event) -> None:
        asyncio.set_event_loop(loop)
        loop.call_soon(started.set)
        try:
            loop.run_forever()
        finally:
            loop.close()

    def run(self, coro: Coroutine[Any, Any, T], timeout: Optional[float] = None) -> T:
        """
        Run a coroutine on the loop and block for its result

        Raises:
            SMPPInvalidStateException: If called from the loop thread itself
            concurrent.futures.TimeoutError: If ``timeout`` elapses first
        """
        self.start()
        if threading.current_thread() is self._thread:
            coro.close()
            raise SMPPInvalidStateException(
                'Blocking call made from the event loop thread', operation='run'
            )
        assert self._loop is not None
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        try:
            return future.result(timeout)
        except BaseException:
            future.cancel()
            raise

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the loop and join the thread"""
        with self._lock:
            if not self.is_running:
                return
            assert self._loop is not None and self._thread is not None
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout)
            self._thread = None
            logger.debug(f'Event loop thread {self.name} stopped')


_default_loop = EventLoopThread()


class SessionHandle:
    """Blocking handle to one bound SMPP client"""

    def __init__(self, client: SMPPClient, loop: EventLoopThread):
        self._client = client
        self._loop = loop

    @property
    def client(self) -> SMPPClient:
        return self._client

    @property
    def state(self) -> SessionState:
        return self._client.state

    @property
    def stats(self) -> Dict[str, int]:
        return self._client.stats

    def sendSMS(self, from_: str, to: str, text: str) -> str:  # noqa: N802
        """Send a text message and return the SMSC message ID"""
        return self._loop.run(self._client.send_sms(from_, to, text))

    def submitSM(self, options: Dict[str, Any]) -> str:  # noqa: N802
        """
        Submit a message from a script options mapping

        Accepts ``sourceAddr``, ``destAddr``, ``shortMessage`` and the other
        submit_sm options in script or snake_case spelling.

        Raises:
            SMPPValidationException: Unknown option or missing destination
        """
        kwargs = normalize_submit_options(options)
        if 'destination_addr' not in kwargs:
            raise SMPPValidationException(
                'destAddr is required', field_name='destination_addr'
            )
        source_addr = kwargs.pop('source_addr', '')
        destination_addr = kwargs.pop('destination_addr')
        short_message = kwargs.pop('short_message', '')
        return self._loop.run(
            self._client.submit_sm(source_addr, destination_addr, short_message, **kwargs)
        )

    def enquireLink(self) -> bool:  # noqa: N802
        return self._loop.run(self._client.enquire_link())

    def close(self) -> None:
        """Unbind and close; safe to call more than once"""
        self._loop.run(self._client.close())

    def __enter__(self) -> 'SessionHandle':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f'SessionHandle({self._client!r})'


def normalize_submit_options(options: Dict[str, Any]) -> Dict[str, Any]:
    """Map script spellings of submit_sm options onto keyword arguments."""
    kwargs: Dict[str, Any] = {}
    for key, value in options.items():
        name = _SUBMIT_OPTION_ALIASES.get(key, key)
        if name not in _SUBMIT_OPTIONS:
            raise SMPPValidationException(
                f'Unknown submit_sm option: {key}',
                field_name=key,
                validation_rule='known_option',
            )
        kwargs[name] = value
    return kwargs


def connect(
    options: Dict[str, Any], loop: Optional[EventLoopThread] = None
) -> SessionHandle:
    """
    Connect and bind a session from a script options mapping

    Args:
        options: Client options, see ``SMPPClientConfig`` for keys and aliases
        loop: Loop thread to run on; defaults to the shared module loop

    Raises:
        SMPPConfigurationException: If the options are invalid
        SMPPConnectionException: If the TCP connection fails
        SMPPBindRejectedException: If the SMSC rejects the bind
    """
    loop = loop or _default_loop
    logger.info(f'Connecting with options {mask_options(options)}')
    config = SMPPClientConfig.from_dict(options)
    client = loop.run(SMPPClient.connect(config))
    return SessionHandle(client, loop)


__all__ = ['EventLoopThread', 'SessionHandle', 'connect', 'normalize_submit_options']
