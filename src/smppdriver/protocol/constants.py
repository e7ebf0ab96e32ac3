"""
SMPP v3.4 Protocol Constants and Enumerations

This module contains the command IDs, status codes, field limits and enumerations
used by the client engine, as defined in the SMPP v3.4 specification.
"""

from enum import Enum, IntEnum
from typing import Dict


class CommandId(IntEnum):
    """SMPP Command IDs supported by the client engine"""

    BIND_RECEIVER = 0x00000001
    BIND_RECEIVER_RESP = 0x80000001
    BIND_TRANSMITTER = 0x00000002
    BIND_TRANSMITTER_RESP = 0x80000002
    SUBMIT_SM = 0x00000004
    SUBMIT_SM_RESP = 0x80000004
    DELIVER_SM = 0x00000005
    DELIVER_SM_RESP = 0x80000005
    UNBIND = 0x00000006
    UNBIND_RESP = 0x80000006
    BIND_TRANSCEIVER = 0x00000009
    BIND_TRANSCEIVER_RESP = 0x80000009
    ENQUIRE_LINK = 0x00000015
    ENQUIRE_LINK_RESP = 0x80000015
    GENERIC_NACK = 0x80000000


class CommandStatus(IntEnum):
    """SMPP Command Status codes (SMPP v3.4 section 5.1.3)"""

    ESME_ROK = 0x00000000  # No Error
    ESME_RINVMSGLEN = 0x00000001  # Message Length is invalid
    ESME_RINVCMDLEN = 0x00000002  # Command Length is invalid
    ESME_RINVCMDID = 0x00000003  # Invalid Command ID
    ESME_RINVBNDSTS = 0x00000004  # Incorrect BIND Status for given command
    ESME_RALYBND = 0x00000005  # ESME Already in Bound State
    ESME_RINVPRTFLG = 0x00000006  # Invalid Priority Flag
    ESME_RINVREGDLVFLG = 0x00000007  # Invalid Registered Delivery Flag
    ESME_RSYSERR = 0x00000008  # System Error
    ESME_RINVSRCADR = 0x0000000A  # Invalid Source Address
    ESME_RINVDSTADR = 0x0000000B  # Invalid Dest Addr
    ESME_RINVMSGID = 0x0000000C  # Message ID is invalid
    ESME_RBINDFAIL = 0x0000000D  # Bind Failed
    ESME_RINVPASWD = 0x0000000E  # Invalid Password
    ESME_RINVSYSID = 0x0000000F  # Invalid System ID
    ESME_RCANCELFAIL = 0x00000011  # Cancel SM Failed
    ESME_RREPLACEFAIL = 0x00000013  # Replace SM Failed
    ESME_RMSGQFUL = 0x00000014  # Message Queue Full
    ESME_RINVSERTYP = 0x00000015  # Invalid Service Type
    ESME_RINVNUMDESTS = 0x00000033  # Invalid number of destinations
    ESME_RINVDLNAME = 0x00000034  # Invalid Distribution List name
    ESME_RINVDESTFLAG = 0x00000040  # Destination flag is invalid
    ESME_RINVSUBREP = 0x00000042  # Invalid 'submit with replace' request
    ESME_RINVESMCLASS = 0x00000043  # Invalid esm_class field data
    ESME_RCNTSUBDL = 0x00000044  # Cannot Submit to Distribution List
    ESME_RSUBMITFAIL = 0x00000045  # submit_sm or submit_multi failed
    ESME_RINVSRCTON = 0x00000048  # Invalid Source address TON
    ESME_RINVSRCNPI = 0x00000049  # Invalid Source address NPI
    ESME_RINVDSTTON = 0x00000050  # Invalid Destination address TON
    ESME_RINVDSTNPI = 0x00000051  # Invalid Destination address NPI
    ESME_RINVSYSTYP = 0x00000053  # Invalid system_type field
    ESME_RINVREPFLAG = 0x00000054  # Invalid replace_if_present flag
    ESME_RINVNUMMSGS = 0x00000055  # Invalid number of messages
    ESME_RTHROTTLED = 0x00000058  # Throttling error
    ESME_RINVSCHED = 0x00000061  # Invalid Scheduled Delivery Time
    ESME_RINVEXPIRY = 0x00000062  # Invalid message validity period
    ESME_RINVDFTMSGID = 0x00000063  # Predefined Message Invalid or Not Found
    ESME_RX_T_APPN = 0x00000064  # ESME Receiver Temporary App Error Code
    ESME_RX_P_APPN = 0x00000065  # ESME Receiver Permanent App Error Code
    ESME_RX_R_APPN = 0x00000066  # ESME Receiver Reject Message Error Code
    ESME_RQUERYFAIL = 0x00000067  # query_sm request failed
    ESME_RINVOPTPARSTREAM = 0x000000C0  # Error in the optional part of the PDU Body
    ESME_ROPTPARNOTALLWD = 0x000000C1  # Optional Parameter not allowed
    ESME_RINVPARLEN = 0x000000C2  # Invalid Parameter Length
    ESME_RMISSINGOPTPARAM = 0x000000C3  # Expected Optional Parameter missing
    ESME_RINVOPTPARAMVAL = 0x000000C4  # Invalid Optional Parameter Value
    ESME_RDELIVERYFAILURE = 0x000000FE  # Delivery Failure
    ESME_RUNKNOWNERR = 0x000000FF  # Unknown Error


class BindMode(Enum):
    """SMPP bind modes; fixed for the lifetime of a session"""

    TRANSMITTER = 'transmitter'
    RECEIVER = 'receiver'
    TRANSCEIVER = 'transceiver'

    @property
    def can_submit(self) -> bool:
        return self in (BindMode.TRANSMITTER, BindMode.TRANSCEIVER)

    @property
    def command_id(self) -> 'CommandId':
        return _BIND_COMMANDS[self]

    @classmethod
    def parse(cls, value) -> 'BindMode':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f'Invalid bind mode: {value!r}') from None


_BIND_COMMANDS = {
    BindMode.TRANSMITTER: CommandId.BIND_TRANSMITTER,
    BindMode.RECEIVER: CommandId.BIND_RECEIVER,
    BindMode.TRANSCEIVER: CommandId.BIND_TRANSCEIVER,
}


class TonType(IntEnum):
    """Type of Number (TON) values"""

    UNKNOWN = 0x00
    INTERNATIONAL = 0x01
    NATIONAL = 0x02
    NETWORK_SPECIFIC = 0x03
    SUBSCRIBER = 0x04
    ALPHANUMERIC = 0x05
    ABBREVIATED = 0x06


class NpiType(IntEnum):
    """Numbering Plan Indicator (NPI) values"""

    UNKNOWN = 0x00
    ISDN = 0x01  # ISDN (E163/E164)
    DATA = 0x03  # Data (X.121)
    TELEX = 0x04  # Telex (F.69)
    LAND_MOBILE = 0x06  # Land Mobile (E.212)
    NATIONAL = 0x08
    PRIVATE = 0x09
    ERMES = 0x0A
    INTERNET = 0x0E  # Internet (IP)
    WAP_CLIENT_ID = 0x12


class DataCoding(IntEnum):
    """Data Coding Scheme values"""

    DEFAULT = 0x00  # SMSC Default Alphabet
    IA5_ASCII = 0x01  # IA5 (CCITT T.50)/ASCII (ANSI X3.4)
    OCTET_UNSPECIFIED_1 = 0x02  # Octet unspecified (8-bit binary)
    LATIN_1 = 0x03  # Latin 1 (ISO-8859-1)
    OCTET_UNSPECIFIED_2 = 0x04  # Octet unspecified (8-bit binary)
    CYRILLIC = 0x06  # Cyrillic (ISO-8859-5)
    LATIN_HEBREW = 0x07  # Latin/Hebrew (ISO-8859-8)
    UCS2 = 0x08  # UCS2 (ISO/IEC-10646)


class EsmClass(IntEnum):
    """ESM Class bits used by the client"""

    DEFAULT = 0x00
    DELIVERY_RECEIPT = 0x04  # Message Type: SMSC Delivery Receipt
    UDHI = 0x40  # UDH Indicator


class RegisteredDelivery(IntEnum):
    """Registered Delivery values"""

    NO_RECEIPT = 0x00
    SUCCESS_FAILURE = 0x01
    FAILURE_ONLY = 0x02


class InterfaceVersion(IntEnum):
    """Interface Version values"""

    VERSION_3_3 = 0x33
    VERSION_3_4 = 0x34


class OptionalTag(IntEnum):
    """Optional parameter tags the client reads from responses and receipts"""

    RECEIPTED_MESSAGE_ID = 0x001E
    SC_INTERFACE_VERSION = 0x0210
    NETWORK_ERROR_CODE = 0x0423
    MESSAGE_PAYLOAD = 0x0424
    MESSAGE_STATE = 0x0427


# Default Values
DEFAULT_INTERFACE_VERSION = InterfaceVersion.VERSION_3_4
DEFAULT_PORT = 2775
DEFAULT_SUBMIT_TON = TonType.INTERNATIONAL
DEFAULT_SUBMIT_NPI = NpiType.ISDN

# PDU Structure Constants
PDU_HEADER_SIZE = 16
MAX_PDU_SIZE = 65536
MAX_SEQUENCE_NUMBER = 0x7FFFFFFF
RESPONSE_MASK = 0x80000000

# Field sizes including the null terminator
MAX_SYSTEM_ID_LENGTH = 16
MAX_PASSWORD_LENGTH = 9
MAX_SYSTEM_TYPE_LENGTH = 13
MAX_ADDRESS_RANGE_LENGTH = 41
MAX_ADDRESS_LENGTH = 21
MAX_SERVICE_TYPE_LENGTH = 6
MAX_TIME_LENGTH = 17
MAX_MESSAGE_ID_LENGTH = 65

MAX_SHORT_MESSAGE_LENGTH = 254

ERROR_MESSAGES: Dict[int, str] = {
    CommandStatus.ESME_ROK: 'No Error',
    CommandStatus.ESME_RINVMSGLEN: 'Message Length is invalid',
    CommandStatus.ESME_RINVCMDLEN: 'Command Length is invalid',
    CommandStatus.ESME_RINVCMDID: 'Invalid Command ID',
    CommandStatus.ESME_RINVBNDSTS: 'Incorrect BIND Status for given command',
    CommandStatus.ESME_RALYBND: 'ESME Already in Bound State',
    CommandStatus.ESME_RINVPRTFLG: 'Invalid Priority Flag',
    CommandStatus.ESME_RINVREGDLVFLG: 'Invalid Registered Delivery Flag',
    CommandStatus.ESME_RSYSERR: 'System Error',
    CommandStatus.ESME_RINVSRCADR: 'Invalid Source Address',
    CommandStatus.ESME_RINVDSTADR: 'Invalid Dest Addr',
    CommandStatus.ESME_RINVMSGID: 'Message ID is invalid',
    CommandStatus.ESME_RBINDFAIL: 'Bind Failed',
    CommandStatus.ESME_RINVPASWD: 'Invalid Password',
    CommandStatus.ESME_RINVSYSID: 'Invalid System ID',
    CommandStatus.ESME_RCANCELFAIL: 'Cancel SM Failed',
    CommandStatus.ESME_RREPLACEFAIL: 'Replace SM Failed',
    CommandStatus.ESME_RMSGQFUL: 'Message Queue Full',
    CommandStatus.ESME_RINVSERTYP: 'Invalid Service Type',
    CommandStatus.ESME_RINVNUMDESTS: 'Invalid number of destinations',
    CommandStatus.ESME_RINVDLNAME: 'Invalid Distribution List name',
    CommandStatus.ESME_RINVDESTFLAG: 'Destination flag is invalid',
    CommandStatus.ESME_RINVSUBREP: "Invalid 'submit with replace' request",
    CommandStatus.ESME_RINVESMCLASS: 'Invalid esm_class field data',
    CommandStatus.ESME_RCNTSUBDL: 'Cannot Submit to Distribution List',
    CommandStatus.ESME_RSUBMITFAIL: 'submit_sm or submit_multi failed',
    CommandStatus.ESME_RINVSRCTON: 'Invalid Source address TON',
    CommandStatus.ESME_RINVSRCNPI: 'Invalid Source address NPI',
    CommandStatus.ESME_RINVDSTTON: 'Invalid Destination address TON',
    CommandStatus.ESME_RINVDSTNPI: 'Invalid Destination address NPI',
    CommandStatus.ESME_RINVSYSTYP: 'Invalid system_type field',
    CommandStatus.ESME_RINVREPFLAG: 'Invalid replace_if_present flag',
    CommandStatus.ESME_RINVNUMMSGS: 'Invalid number of messages',
    CommandStatus.ESME_RTHROTTLED: 'Throttling error',
    CommandStatus.ESME_RINVSCHED: 'Invalid Scheduled Delivery Time',
    CommandStatus.ESME_RINVEXPIRY: 'Invalid message validity period',
    CommandStatus.ESME_RINVDFTMSGID: 'Predefined Message Invalid or Not Found',
    CommandStatus.ESME_RX_T_APPN: 'ESME Receiver Temporary App Error Code',
    CommandStatus.ESME_RX_P_APPN: 'ESME Receiver Permanent App Error Code',
    CommandStatus.ESME_RX_R_APPN: 'ESME Receiver Reject Message Error Code',
    CommandStatus.ESME_RQUERYFAIL: 'query_sm request failed',
    CommandStatus.ESME_RINVOPTPARSTREAM: 'Error in the optional part of the PDU Body',
    CommandStatus.ESME_ROPTPARNOTALLWD: 'Optional Parameter not allowed',
    CommandStatus.ESME_RINVPARLEN: 'Invalid Parameter Length',
    CommandStatus.ESME_RMISSINGOPTPARAM: 'Expected Optional Parameter missing',
    CommandStatus.ESME_RINVOPTPARAMVAL: 'Invalid Optional Parameter Value',
    CommandStatus.ESME_RDELIVERYFAILURE: 'Delivery Failure',
    CommandStatus.ESME_RUNKNOWNERR: 'Unknown Error',
}


def get_error_message(status_code: int) -> str:
    """Get human-readable error message for a status code"""
    return ERROR_MESSAGES.get(status_code, f'Unknown error code: 0x{status_code:08X}')


def is_response_command(command_id: int) -> bool:
    """Check if a command ID represents a response PDU"""
    return bool(command_id & RESPONSE_MASK)


def get_response_command_id(command_id: int) -> int:
    """Get the response command ID for a given request command ID"""
    return command_id | RESPONSE_MASK


def get_command_name(command_id: int) -> str:
    """Lower-case SMPP name of a command id, e.g. ``submit_sm_resp``"""
    try:
        return CommandId(command_id).name.lower()
    except ValueError:
        return f'unknown(0x{command_id:08X})'
