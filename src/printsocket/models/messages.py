"""
Message Schema
==============

This module defines the Pydantic models for messages exchanged with print
clients over the WebSocket connection.

Input Contract (from clients):
    {
        "action": "print",
        "imageData": "<base64 PNG/JPEG>",
        "fileName": "label.png"
    }

Output Contract (to clients):
    {
        "Action": "printSuccess",
        "ImageData": "print succeeded",
        "FileName": null
    }

Design Rules:
    - Outbound field names are fixed (capitalized, FileName always null)
    - Inbound fields are all optional at the schema level; the
      "print" invariant is enforced by the decoder's validation step
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


PRINT_ACTION = "print"


class ResponseAction(str, Enum):
    """
    Action tags carried by responses.

    Attributes:
        PRINT_SUCCESS: The image was handed to the printer
        ERROR: The request could not be served; detail holds the reason
    """

    PRINT_SUCCESS = "printSuccess"
    ERROR = "error"


class InboundRequest(BaseModel):
    """
    Schema for requests received from print clients.

    Attributes:
        action: Action tag selecting the operation
        image_data: Base64-encoded image (JSON key "imageData")
        file_name: Display name of the image (JSON key "fileName")
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    action: Optional[str] = Field(
        default=None,
        description="Action tag (expected: 'print')",
    )

    image_data: Optional[str] = Field(
        default=None,
        alias="imageData",
        description="Base64-encoded PNG or JPEG bytes",
    )

    file_name: Optional[str] = Field(
        default=None,
        alias="fileName",
        description="Display name, used only for logs and the print job title",
    )

    @property
    def is_print(self) -> bool:
        """Whether this request asks for a print."""
        return self.action == PRINT_ACTION

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full image."""
        size = len(self.image_data) if self.image_data else 0
        return (
            f"InboundRequest(action={self.action!r}, "
            f"file_name={self.file_name!r}, "
            f"image_data=<{size} chars>)"
        )


class OutboundResponse(BaseModel):
    """
    Response sent back to the client for a handled request.

    Attributes:
        action: Response tag (printSuccess or error)
        detail: Human-readable status or error text
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    action: ResponseAction = Field(
        ...,
        serialization_alias="Action",
        description="Response tag",
    )

    detail: str = Field(
        ...,
        serialization_alias="ImageData",
        description="Status or error text",
    )

    file_name: None = Field(
        default=None,
        serialization_alias="FileName",
        description="Unused in responses, always null",
    )

    @classmethod
    def success(cls, detail: str = "print succeeded") -> "OutboundResponse":
        """Build a printSuccess response."""
        return cls(action=ResponseAction.PRINT_SUCCESS, detail=detail)

    @classmethod
    def error(cls, detail: str) -> "OutboundResponse":
        """Build an error response."""
        return cls(action=ResponseAction.ERROR, detail=detail)

    def to_json(self) -> str:
        """Serialize with the wire field names."""
        return self.model_dump_json(by_alias=True)
