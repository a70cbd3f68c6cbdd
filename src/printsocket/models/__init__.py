"""
Data Models
===========

Pydantic models for messages exchanged with print clients.

Models:
    - InboundRequest: Request received from a client
    - OutboundResponse: Response sent back to the client
    - ResponseAction: Response tags (printSuccess, error)
"""

from printsocket.models.messages import (
    PRINT_ACTION,
    InboundRequest,
    OutboundResponse,
    ResponseAction,
)

__all__ = [
    "PRINT_ACTION",
    "InboundRequest",
    "OutboundResponse",
    "ResponseAction",
]
