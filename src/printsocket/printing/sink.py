"""
Printer Sink
============

Clean printing abstraction for the print dispatcher.

This module provides the PrinterSink protocol, the MockPrinterSink
implementation, and the SerializedPrinter guard that every sink is
used through.

Design Rules:
    - Sinks take an already decoded image plus page bounds
    - Sinks own device selection, page geometry and driver invocation
    - Printing is fire-and-forget once the driver call returns
    - Only one job reaches the hardware at a time (SerializedPrinter)
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol

import cv2

from printsocket.printing.imaging import DecodedImage, PageBounds, render_to_page


logger = logging.getLogger(__name__)


class PrintError(Exception):
    """Raised when a printer sink fails to submit a job."""


class PrinterSink(Protocol):
    """
    Protocol for printer backends.

    All implementations must provide a blocking `print_image` method.
    It runs in a worker thread, never on the event loop.

    This interface is implemented by:
        - CupsPrinterSink (production, via lp/lpstat)
        - MockPrinterSink (tests and dry runs)
    """

    def print_image(self, image: DecodedImage, bounds: PageBounds) -> None:
        """
        Print one image.

        Args:
            image: Decoded image with its display name
            bounds: Printable page size in device pixels

        Raises:
            PrintError: If the job could not be submitted
        """
        ...


@dataclass(frozen=True)
class PrintJob:
    """A job recorded by MockPrinterSink."""

    display_name: str
    width: int
    height: int
    bounds: PageBounds


class MockPrinterSink:
    """
    In-memory printer for testing.

    Records every job instead of printing. When output_dir is set, the
    rendered page is also written there as PNG so dry runs can be
    inspected by eye.

    Attributes:
        jobs: Jobs received, in order
        fail_with: If set, every call raises PrintError with this text
        output_dir: Optional directory for rendered pages
    """

    def __init__(
        self,
        output_dir: Optional[str] = None,
        fit: str = "stretch",
        fail_with: Optional[str] = None,
    ) -> None:
        self.jobs: List[PrintJob] = []
        self.output_dir = Path(output_dir) if output_dir else None
        self.fit = fit
        self.fail_with = fail_with
        self._lock = threading.Lock()

        logger.info(
            f"MockPrinterSink initialized: output_dir={self.output_dir}, fit={fit}"
        )

    def print_image(self, image: DecodedImage, bounds: PageBounds) -> None:
        if self.fail_with is not None:
            raise PrintError(self.fail_with)

        with self._lock:
            self.jobs.append(
                PrintJob(
                    display_name=image.display_name,
                    width=image.width,
                    height=image.height,
                    bounds=bounds,
                )
            )
            job_number = len(self.jobs)

        if self.output_dir is not None:
            page = render_to_page(image.pixels, bounds, self.fit)
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = self.output_dir / f"job-{job_number:04d}.png"
            if not cv2.imwrite(str(path), page):
                raise PrintError(f"Failed to write {path}")
            logger.info(f"Mock print written to {path}")


class SerializedPrinter:
    """
    Async, mutually exclusive front for a blocking PrinterSink.

    Jobs from all sessions queue on a single lock. The blocking sink
    call runs in a worker thread; one timeout bounds the wait for the
    lock plus the job, and a hung device surfaces as PrintError to the
    caller. Worker threads cannot be interrupted, so the lock is only
    released once the thread has actually returned, even after a timeout.

    Attributes:
        sink: Wrapped printer sink
        bounds: Page bounds passed to every job
        timeout: Seconds to wait for one job (0 = no limit)
    """

    def __init__(self, sink: PrinterSink, bounds: PageBounds, timeout: float = 60.0) -> None:
        self.sink = sink
        self.bounds = bounds
        self.timeout = timeout
        self._lock = asyncio.Lock()
        self.jobs_submitted: int = 0
        self.jobs_failed: int = 0

    @property
    def busy(self) -> bool:
        """Whether a job currently holds the printer."""
        return self._lock.locked()

    async def print_image(self, image: DecodedImage) -> None:
        """
        Print one image, waiting for any job in progress first.

        The timeout covers both the wait for the printer and the job itself,
        so a device left hung by an earlier job fails fast for later callers.

        Raises:
            PrintError: If the sink fails or does not return in time
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout if self.timeout > 0 else None

        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self._remaining(deadline))
        except asyncio.TimeoutError:
            self.jobs_failed += 1
            logger.error(
                f"Printer still busy after {self.timeout}s, dropping {image.display_name}"
            )
            raise PrintError(f"Printer busy or hung for {self.timeout}s")

        if self._remaining(deadline) == 0.0:
            self._lock.release()
            self.jobs_failed += 1
            raise PrintError(f"Printer busy or hung for {self.timeout}s")

        worker = asyncio.ensure_future(
            asyncio.to_thread(self.sink.print_image, image, self.bounds)
        )
        worker.add_done_callback(self._job_finished)

        try:
            await asyncio.wait_for(asyncio.shield(worker), timeout=self._remaining(deadline))
        except asyncio.TimeoutError:
            self.jobs_failed += 1
            logger.error(
                f"Printer did not finish {image.display_name} within {self.timeout}s"
            )
            raise PrintError(f"Print timed out after {self.timeout}s")
        except PrintError:
            self.jobs_failed += 1
            raise
        except Exception as e:
            self.jobs_failed += 1
            raise PrintError(f"Printer sink failed: {e}") from e

        self.jobs_submitted += 1

    @staticmethod
    def _remaining(deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return max(0.0, deadline - asyncio.get_running_loop().time())

    def _job_finished(self, worker: "asyncio.Future[None]") -> None:
        self._lock.release()
        if not worker.cancelled() and worker.exception() is not None:
            logger.debug(f"Print job ended with error: {worker.exception()}")
