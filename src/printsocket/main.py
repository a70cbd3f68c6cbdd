"""
printsocket Main Application
============================

Entry point for the WebSocket print server.

Starts listening on process start and stops on SIGINT/SIGTERM, closing the
listener and every open session.

Usage:
    printsocket
    printsocket --config config.yaml --port 9000
    PRINTSOCKET_PRINTER_BACKEND=mock printsocket --log-level DEBUG
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from printsocket import __version__
from printsocket.config import Settings, load_config, setup_logging
from printsocket.printing.cups import CupsPrinterSink
from printsocket.printing.imaging import PageBounds
from printsocket.printing.sink import MockPrinterSink, PrinterSink, SerializedPrinter
from printsocket.protocol.dispatcher import PrintDispatcher
from printsocket.server.server import PrintServer


logger = logging.getLogger(__name__)


# =============================================================================
# Component Factories
# =============================================================================

def create_printer_sink(settings: Settings) -> PrinterSink:
    """
    Create printer sink based on config.

    Fails fast on an unknown backend.
    """
    backend = settings.printer.backend

    if backend == "cups":
        logger.info("Using CupsPrinterSink")
        return CupsPrinterSink(
            fit=settings.printer.fit,
            timeout=settings.printer.print_timeout_seconds,
            lp_command=settings.printer.lp_command,
            lpstat_command=settings.printer.lpstat_command,
        )

    elif backend == "mock":
        logger.info("Using MockPrinterSink")
        return MockPrinterSink(
            output_dir=settings.printer.mock_output_dir,
            fit=settings.printer.fit,
        )

    else:
        raise ValueError(f"Unknown printer backend: {backend}")


def create_server(settings: Settings, sink: Optional[PrinterSink] = None) -> PrintServer:
    """Wire sink, dispatcher and server from settings."""
    bounds = PageBounds.from_paper(
        settings.printer.paper_width_mm,
        settings.printer.paper_height_mm,
        settings.printer.dpi,
    )
    printer = SerializedPrinter(
        sink if sink is not None else create_printer_sink(settings),
        bounds=bounds,
        timeout=settings.printer.print_timeout_seconds,
    )
    dispatcher = PrintDispatcher(
        printer,
        report_rejections=settings.feedback.report_rejections,
        report_print_errors=settings.feedback.report_print_errors,
    )

    ping_interval = settings.server.ping_interval_seconds or None
    return PrintServer(
        dispatcher,
        host=settings.server.host,
        port=settings.server.port,
        max_sessions=settings.server.max_sessions,
        max_message_bytes=settings.session.max_message_bytes,
        receive_timeout=settings.session.receive_timeout_seconds,
        ping_interval=ping_interval,
        ping_timeout=settings.server.ping_timeout_seconds,
        close_timeout=settings.server.close_timeout_seconds,
    )


# =============================================================================
# Lifecycle
# =============================================================================

async def serve(settings: Settings) -> None:
    """Run the server until SIGINT or SIGTERM."""
    server = create_server(settings)
    await server.start()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(
                signum,
                lambda name=signal.Signals(signum).name: _request_stop(server, name),
            )
        except NotImplementedError:
            # Windows event loops: KeyboardInterrupt still ends asyncio.run
            pass

    logger.info(f"printsocket {__version__} started. Press CTRL+C to stop.")
    await server.run()
    logger.info("Shutdown complete")


def _request_stop(server: PrintServer, signal_name: str) -> None:
    logger.info(f"Received {signal_name}, initiating graceful shutdown...")
    asyncio.ensure_future(server.stop())


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="printsocket",
        description="WebSocket server that prints base64-encoded images",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--host", default=None, help="Bind host (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (overrides config)")
    parser.add_argument("--log-level", default=None, help="Log level (overrides config)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point."""
    args = parse_args(argv)

    settings = load_config(args.config)
    if args.host is not None:
        settings.server.host = args.host
    if args.port is not None:
        settings.server.port = args.port
    if args.log_level is not None:
        settings.logging.level = args.log_level

    setup_logging(settings)

    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except OSError as e:
        logger.error(f"Server error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
