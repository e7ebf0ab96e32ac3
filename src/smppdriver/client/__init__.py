"""
SMPP Client Module

Async client facade over one SMPP session.
"""

from .client import SMPPClient

__all__ = ['SMPPClient']
