"""
Print Dispatcher
================

Maps decoded requests to their effect and response.

Response Policy:
    - Valid print, printer accepted the job   -> printSuccess
    - Base64 or image decode failure          -> error (exception text)
    - Unsupported action / incomplete request -> logged, no response
    - Printer failure                         -> logged, no response

The two silent cases can be switched to typed error responses with
report_rejections and report_print_errors.
"""

import asyncio
import logging
from typing import Optional

from printsocket.models.messages import InboundRequest, OutboundResponse
from printsocket.printing.imaging import Base64DecodeError, ImageDecodeError, decode_image
from printsocket.printing.sink import PrintError, SerializedPrinter
from printsocket.protocol.decoder import ValidationFailure, validate_print_request


logger = logging.getLogger(__name__)


class DispatcherMetrics:
    """Metrics for PrintDispatcher observability."""

    __slots__ = (
        "requests",
        "rejected",
        "decode_errors",
        "printed",
        "print_failures",
    )

    def __init__(self) -> None:
        self.requests: int = 0
        self.rejected: int = 0
        self.decode_errors: int = 0
        self.printed: int = 0
        self.print_failures: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "requests": self.requests,
            "rejected": self.rejected,
            "decode_errors": self.decode_errors,
            "printed": self.printed,
            "print_failures": self.print_failures,
        }


class PrintDispatcher:
    """
    Executes print requests against a shared printer.

    Attributes:
        printer: Serialized printer shared by all sessions
        report_rejections: Answer invalid requests with an error response
        report_print_errors: Answer printer failures with an error response
        metrics: Operational metrics

    Example:
        printer = SerializedPrinter(MockPrinterSink(), PageBounds(800, 600))
        dispatcher = PrintDispatcher(printer)

        response = await dispatcher.dispatch(request)
        if response is not None:
            await connection.send(response.to_json())
    """

    def __init__(
        self,
        printer: SerializedPrinter,
        report_rejections: bool = False,
        report_print_errors: bool = False,
    ) -> None:
        self.printer = printer
        self.report_rejections = report_rejections
        self.report_print_errors = report_print_errors
        self.metrics = DispatcherMetrics()

    async def dispatch(self, request: InboundRequest) -> Optional[OutboundResponse]:
        """
        Handle one decoded request.

        Args:
            request: Request produced by decode_message

        Returns:
            Response to send, or None when the client gets no answer
        """
        self.metrics.requests += 1

        try:
            validate_print_request(request)
        except ValidationFailure as e:
            self.metrics.rejected += 1
            logger.warning(f"Invalid or unhandled request {request!r}: {e}")
            return OutboundResponse.error(str(e)) if self.report_rejections else None

        try:
            image = await asyncio.to_thread(decode_image, request.image_data, request.file_name)
        except (Base64DecodeError, ImageDecodeError) as e:
            self.metrics.decode_errors += 1
            logger.error(f"Message processing error for {request.file_name}: {e}")
            return OutboundResponse.error(str(e))
        except Exception as e:
            self.metrics.decode_errors += 1
            logger.exception(f"Unexpected error decoding {request.file_name}: {e}")
            return OutboundResponse.error(f"Failed to decode image: {e}")

        try:
            await self.printer.print_image(image)
        except PrintError as e:
            self.metrics.print_failures += 1
            logger.error(f"Print error for {request.file_name}: {e}")
            return OutboundResponse.error(str(e)) if self.report_print_errors else None

        self.metrics.printed += 1
        logger.info(f"{request.file_name} print completed")
        return OutboundResponse.success()
