"""
Printing Module
===============

Image decoding and printer access.

Printing is treated as a pluggable black box. The dispatcher hands over a
decoded image and never deals with devices or drivers.

Components:
    - decode_image: base64 PNG/JPEG -> DecodedImage
    - PrinterSink: Protocol for printer backends
    - CupsPrinterSink: Default printer via lp/lpstat
    - MockPrinterSink: In-memory printer for tests and dry runs
    - SerializedPrinter: One-job-at-a-time guard with timeout
"""

from printsocket.printing.imaging import (
    Base64DecodeError,
    DecodedImage,
    ImageDecodeError,
    PageBounds,
    decode_image,
)
from printsocket.printing.sink import (
    MockPrinterSink,
    PrintError,
    PrinterSink,
    PrintJob,
    SerializedPrinter,
)
from printsocket.printing.cups import CupsPrinterSink

__all__ = [
    "Base64DecodeError",
    "DecodedImage",
    "ImageDecodeError",
    "PageBounds",
    "decode_image",
    "MockPrinterSink",
    "PrintError",
    "PrinterSink",
    "PrintJob",
    "SerializedPrinter",
    "CupsPrinterSink",
]
