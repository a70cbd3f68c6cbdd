"""
Protocol Module
===============

Turns complete text messages into printer effects and responses.

Components:
    - decode_message: JSON text -> InboundRequest
    - validate_print_request: Enforces the print request invariant
    - PrintDispatcher: Executes requests and builds responses
"""

from printsocket.protocol.decoder import (
    MalformedSyntax,
    ValidationFailure,
    decode_message,
    validate_print_request,
)
from printsocket.protocol.dispatcher import DispatcherMetrics, PrintDispatcher

__all__ = [
    "MalformedSyntax",
    "ValidationFailure",
    "decode_message",
    "validate_print_request",
    "DispatcherMetrics",
    "PrintDispatcher",
]
