"""
SMPP Exception Classes

This module defines all exception classes raised by the SMPP client engine.

Transport-fatal errors (``SMPPConnectionException`` and its subclasses) terminate
the session and are broadcast to every pending caller. Per-request errors
(rejects, timeouts) are raised only to the issuing caller.
"""

from enum import IntEnum
from typing import Any, Dict, Optional, Union


class SMPPErrorCode(IntEnum):
    """SMPP-specific error codes for better error categorization."""

    UNKNOWN = 0
    CONNECTION_FAILED = 1000
    BIND_FAILED = 1001
    INVALID_PDU = 1002
    TIMEOUT = 1003
    UNKNOWN_COMMAND = 1004
    VALIDATION_ERROR = 1005
    CONNECTION_CLOSED = 1006
    WRITE_FAILED = 1007
    SUBMIT_FAILED = 1008
    INVALID_STATE = 1009
    CONFIGURATION_ERROR = 1010


class SMPPException(Exception):
    """Base exception for all SMPP-related errors."""

    def __init__(
        self,
        message: str,
        command_status: Optional[int] = None,
        pdu: Optional[Any] = None,
        error_code: Optional[Union[str, SMPPErrorCode]] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
        **kwargs,
    ):
        super().__init__(message)
        self.command_status = command_status
        self.pdu = pdu
        self.error_code = error_code
        self.context = context or {}
        self.original_error = original_error
        self.details = kwargs

    def __str__(self) -> str:
        """Enhanced string representation with context."""
        parts = [super().__str__()]

        if self.error_code:
            if isinstance(self.error_code, SMPPErrorCode):
                parts.append(
                    f'Error Code: {self.error_code.name} ({self.error_code.value})'
                )
            else:
                parts.append(f'Error Code: {self.error_code}')

        if self.command_status is not None:
            parts.append(f'Command Status: 0x{self.command_status:08X}')

        if self.context:
            context_str = ', '.join(f'{k}={v}' for k, v in self.context.items())
            parts.append(f'Context: {context_str}')

        return ' | '.join(parts)


class SMPPConnectionException(SMPPException):
    """TCP-level failure; fatal to the session."""

    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        original_error: Optional[Exception] = None,
        **kwargs,
    ):
        context = {}
        if host:
            context['host'] = host
        if port:
            context['port'] = str(port)

        kwargs.setdefault('error_code', SMPPErrorCode.CONNECTION_FAILED)
        super().__init__(
            message,
            context=context,
            original_error=original_error,
            **kwargs,
        )
        self.host = host
        self.port = port


class SMPPWriteException(SMPPConnectionException):
    """Writing to the transport failed."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('error_code', SMPPErrorCode.WRITE_FAILED)
        super().__init__(message, **kwargs)


class SMPPConnectionClosedException(SMPPConnectionException):
    """Delivered to every pending caller when the transport dies."""

    def __init__(self, message: str = 'Connection closed', **kwargs):
        kwargs.setdefault('error_code', SMPPErrorCode.CONNECTION_CLOSED)
        super().__init__(message, **kwargs)


class SMPPPDUException(SMPPException):
    """Exception raised for PDU-related errors."""

    def __init__(
        self,
        message: str,
        pdu_type: Optional[str] = None,
        command_id: Optional[int] = None,
        sequence_number: Optional[int] = None,
        original_error: Optional[Exception] = None,
        **kwargs,
    ):
        context = {}
        if pdu_type:
            context['pdu_type'] = pdu_type
        if command_id is not None:
            context['command_id'] = f'0x{command_id:08X}'
        if sequence_number is not None:
            context['sequence_number'] = str(sequence_number)

        kwargs.setdefault('error_code', SMPPErrorCode.INVALID_PDU)
        super().__init__(
            message,
            context=context,
            original_error=original_error,
            **kwargs,
        )
        self.pdu_type = pdu_type
        self.command_id = command_id
        self.sequence_number = sequence_number


class SMPPMalformedPDUException(SMPPPDUException):
    """A frame that cannot be decoded: bad length prefix, truncated body or TLV."""


class SMPPUnknownCommandException(SMPPPDUException):
    """
    Frame carries a command_id this engine does not implement.

    The decoded generic header is kept on ``header`` so the caller can decide
    whether to answer with generic_nack or ignore the frame.
    """

    def __init__(self, message: str, header: Any = None, **kwargs):
        kwargs.setdefault('error_code', SMPPErrorCode.UNKNOWN_COMMAND)
        if header is not None:
            kwargs.setdefault('command_id', header.command_id)
            kwargs.setdefault('sequence_number', header.sequence_number)
        super().__init__(message, **kwargs)
        self.header = header


class SMPPTimeoutException(SMPPException):
    """Exception raised when operations timeout."""

    def __init__(
        self,
        message: str,
        timeout_duration: Optional[float] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
        **kwargs,
    ):
        context = {}
        if timeout_duration is not None:
            context['timeout_duration'] = str(timeout_duration)
        if operation:
            context['operation'] = operation

        super().__init__(
            message,
            error_code=SMPPErrorCode.TIMEOUT,
            context=context,
            original_error=original_error,
            **kwargs,
        )
        self.timeout_duration = timeout_duration
        self.operation = operation


class SMPPRequestTimeoutException(SMPPTimeoutException):
    """No response arrived for a request within its deadline."""

    def __init__(
        self,
        message: str,
        sequence_number: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.sequence_number = sequence_number
        if sequence_number is not None:
            self.context['sequence_number'] = str(sequence_number)


class SMPPBindRejectedException(SMPPException):
    """The SMSC answered the bind request with a non-zero command_status."""

    def __init__(
        self,
        message: str,
        status: int,
        bind_type: Optional[str] = None,
        system_id: Optional[str] = None,
        **kwargs,
    ):
        context = {}
        if bind_type:
            context['bind_type'] = bind_type
        if system_id:
            context['system_id'] = system_id

        super().__init__(
            message,
            command_status=status,
            error_code=SMPPErrorCode.BIND_FAILED,
            context=context,
            **kwargs,
        )
        self.status = status
        self.bind_type = bind_type
        self.system_id = system_id


class SMPPSubmitRejectedException(SMPPException):
    """The SMSC answered submit_sm with a non-zero command_status."""

    def __init__(
        self,
        message: str,
        status: int,
        destination: Optional[str] = None,
        **kwargs,
    ):
        context = {}
        if destination:
            context['destination'] = destination

        super().__init__(
            message,
            command_status=status,
            error_code=SMPPErrorCode.SUBMIT_FAILED,
            context=context,
            **kwargs,
        )
        self.status = status
        self.destination = destination


class SMPPInvalidStateException(SMPPException):
    """Exception raised when operation is attempted in invalid state."""

    def __init__(
        self,
        message: str,
        current_state: Optional[str] = None,
        expected_state: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
        **kwargs,
    ):
        context = {}
        if current_state:
            context['current_state'] = current_state
        if expected_state:
            context['expected_state'] = expected_state
        if operation:
            context['operation'] = operation

        super().__init__(
            message,
            error_code=SMPPErrorCode.INVALID_STATE,
            context=context,
            original_error=original_error,
            **kwargs,
        )
        self.current_state = current_state
        self.expected_state = expected_state
        self.operation = operation


class SMPPValidationException(SMPPException):
    """Exception raised for validation errors."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Optional[str] = None,
        validation_rule: Optional[str] = None,
        original_error: Optional[Exception] = None,
        **kwargs,
    ):
        context = {}
        if field_name:
            context['field_name'] = field_name
        if field_value:
            context['field_value'] = field_value
        if validation_rule:
            context['validation_rule'] = validation_rule

        super().__init__(
            message,
            error_code=SMPPErrorCode.VALIDATION_ERROR,
            context=context,
            original_error=original_error,
            **kwargs,
        )
        self.field_name = field_name
        self.field_value = field_value
        self.validation_rule = validation_rule


class SMPPConfigurationException(SMPPException):
    """Exception raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[str] = None,
        original_error: Optional[Exception] = None,
        **kwargs,
    ):
        context = {}
        if config_key:
            context['config_key'] = config_key
        if config_value:
            context['config_value'] = config_value

        super().__init__(
            message,
            error_code=SMPPErrorCode.CONFIGURATION_ERROR,
            context=context,
            original_error=original_error,
            **kwargs,
        )
        self.config_key = config_key
        self.config_value = config_value
