"""
SMPP Transport Module

TCP stream framing and serialized writes for one SMPP session.
"""

from .connection import SMPPTransport

__all__ = ['SMPPTransport']
