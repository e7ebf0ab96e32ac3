"""
SMPP Session Module

Session state machine and request/response correlation for one SMPP binding.
"""

from .correlator import PendingRequest, SequenceCorrelator
from .session import SessionState, SMPPSession

__all__ = ['PendingRequest', 'SequenceCorrelator', 'SessionState', 'SMPPSession']
