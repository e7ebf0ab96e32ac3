"""
smppdriver - Async SMPP v3.4 Client Engine

An asyncio implementation of the client (ESME) side of the SMPP v3.4 protocol,
built to drive load tests against an SMSC.

This package provides:
- Binary PDU framing and codecs for the bind, submit, deliver, keep-alive and unbind PDUs
- A session state machine with sequence correlation and keep-alive
- An async client with a bounded submit window
- A blocking bridge for synchronous load-test scripts

Quick Start:
    from smppdriver import SMPPClient, create_client_config

    config = create_client_config(
        host="localhost",
        port=2775,
        system_id="test",
        password="secret",
    )

    async with SMPPClient(config) as client:
        message_id = await client.send_sms("TEST", "+491701234567", "Hello SMPP")
"""

import logging

from . import bridge
from .client import SMPPClient
from .config import LoggingConfig, SMPPClientConfig, create_client_config
from .exceptions import (
    SMPPBindRejectedException,
    SMPPConfigurationException,
    SMPPConnectionClosedException,
    SMPPConnectionException,
    SMPPException,
    SMPPInvalidStateException,
    SMPPMalformedPDUException,
    SMPPPDUException,
    SMPPRequestTimeoutException,
    SMPPSubmitRejectedException,
    SMPPTimeoutException,
    SMPPUnknownCommandException,
    SMPPValidationException,
    SMPPWriteException,
)
from .protocol import (
    BindMode,
    CommandId,
    CommandStatus,
    DataCoding,
    EsmClass,
    NpiType,
    RegisteredDelivery,
    TonType,
    decode_pdu,
    encode_pdu,
    get_error_message,
)
from .protocol.pdu import DeliverSm, SubmitSm, SubmitSmResp
from .session import SessionState, SMPPSession
from .transport import SMPPTransport
from .utils import setup_logging

__version__ = '0.1.0'

__all__ = [
    # Main classes
    'SMPPClient',
    'SMPPSession',
    'SMPPTransport',
    'SessionState',
    'bridge',
    # Protocol
    'BindMode',
    'CommandId',
    'CommandStatus',
    'DataCoding',
    'EsmClass',
    'NpiType',
    'RegisteredDelivery',
    'TonType',
    'DeliverSm',
    'SubmitSm',
    'SubmitSmResp',
    'encode_pdu',
    'decode_pdu',
    'get_error_message',
    # Configuration
    'SMPPClientConfig',
    'LoggingConfig',
    'create_client_config',
    'setup_logging',
    # Exceptions
    'SMPPException',
    'SMPPConnectionException',
    'SMPPWriteException',
    'SMPPConnectionClosedException',
    'SMPPPDUException',
    'SMPPMalformedPDUException',
    'SMPPUnknownCommandException',
    'SMPPTimeoutException',
    'SMPPRequestTimeoutException',
    'SMPPBindRejectedException',
    'SMPPSubmitRejectedException',
    'SMPPInvalidStateException',
    'SMPPValidationException',
    'SMPPConfigurationException',
]

# Set up default logging to reduce noise unless explicitly configured
logging.getLogger(__name__).addHandler(logging.NullHandler())
