"""
Message Decoder
===============

Parses complete text messages into InboundRequest objects.

Design Rules:
    - Absent fields are NOT an error at decode time
    - Non-string values are rendered to text rather than rejected
    - Syntax errors carry the offending prefix and position for logging
    - The "print" invariant is checked separately by validate_print_request
"""

import json
import logging
from typing import Any, Optional

from printsocket.models.messages import PRINT_ACTION, InboundRequest


logger = logging.getLogger(__name__)

PREFIX_LENGTH = 100


class MalformedSyntax(Exception):
    """
    Raised when a message is not a well-formed JSON object.

    Attributes:
        prefix: First characters of the offending message
        line: 1-based line of the error (0 when not applicable)
        column: 1-based column of the error (0 when not applicable)
    """

    def __init__(self, reason: str, message: str, line: int = 0, column: int = 0) -> None:
        super().__init__(reason)
        self.prefix = message[:PREFIX_LENGTH]
        self.line = line
        self.column = column


class ValidationFailure(Exception):
    """Raised when a decoded request cannot be served."""


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def decode_message(message: str) -> InboundRequest:
    """
    Decode one complete message.

    Args:
        message: Full text of a WebSocket message

    Returns:
        InboundRequest with whatever fields were present

    Raises:
        MalformedSyntax: If the text is not a JSON object
    """
    try:
        data = json.loads(message)
    except json.JSONDecodeError as e:
        raise MalformedSyntax(e.msg, message, line=e.lineno, column=e.colno) from e

    if not isinstance(data, dict):
        raise MalformedSyntax(
            f"Expected a JSON object, got {type(data).__name__}",
            message,
        )

    return InboundRequest(
        action=_as_text(data.get("action")),
        image_data=_as_text(data.get("imageData")),
        file_name=_as_text(data.get("fileName")),
    )


def validate_print_request(request: InboundRequest) -> None:
    """
    Check that a request is a complete print request.

    Raises:
        ValidationFailure: If the action is not "print" or a required
            field is missing or empty
    """
    if request.action != PRINT_ACTION:
        raise ValidationFailure(f"Unsupported action: {request.action!r}")

    missing = [
        name
        for name, value in (("imageData", request.image_data), ("fileName", request.file_name))
        if not value
    ]
    if missing:
        raise ValidationFailure(f"Print request missing {', '.join(missing)}")
