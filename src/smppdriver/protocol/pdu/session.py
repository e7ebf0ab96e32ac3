"""
SMPP Session PDU Implementations

This module contains the link management PDUs: enquire_link, enquire_link_resp and
generic_nack. None of them carries a body.
"""

from dataclasses import dataclass

from ..constants import CommandId
from .base import EmptyBodyPDU, RequestPDU, ResponsePDU


@dataclass
class EnquireLink(EmptyBodyPDU, RequestPDU):
    """ENQUIRE_LINK PDU - Keepalive request to test connection"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.ENQUIRE_LINK
        super().__post_init__()


@dataclass
class EnquireLinkResp(EmptyBodyPDU, ResponsePDU):
    """ENQUIRE_LINK_RESP PDU - Response to enquire_link"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.ENQUIRE_LINK_RESP
        super().__post_init__()


@dataclass
class GenericNack(EmptyBodyPDU, ResponsePDU):
    """GENERIC_NACK PDU - Negative acknowledgment for a PDU that could not be handled"""

    def __post_init__(self) -> None:
        if self.command_id == 0:
            self.command_id = CommandId.GENERIC_NACK
        super().__post_init__()
