"""
CUPS Printer Sink
=================

Prints decoded images on the system default printer through the CUPS
command-line tools.

Device selection:
    1. The system default destination (`lpstat -d`)
    2. Otherwise the first enumerated destination (`lpstat -e`)

The image is rendered onto the page, written to a temporary PNG file and
submitted with `lp`. Job status is not tracked after submission.
"""

import logging
import os
import subprocess
import tempfile
from typing import List, Optional

from printsocket.printing.imaging import DecodedImage, PageBounds, encode_png, render_to_page
from printsocket.printing.sink import PrintError


logger = logging.getLogger(__name__)

_DEFAULT_PREFIX = "system default destination:"


class CupsPrinterSink:
    """
    Printer sink backed by `lp` and `lpstat`.

    Attributes:
        fit: Page fit mode passed to render_to_page
        timeout: Seconds allowed for each CUPS command
        lp_command: Path or name of the lp binary
        lpstat_command: Path or name of the lpstat binary
    """

    def __init__(
        self,
        fit: str = "stretch",
        timeout: float = 60.0,
        lp_command: str = "lp",
        lpstat_command: str = "lpstat",
    ) -> None:
        self.fit = fit
        self.timeout = timeout
        self.lp_command = lp_command
        self.lpstat_command = lpstat_command

        logger.info(
            f"CupsPrinterSink initialized: fit={fit}, lp={lp_command}, "
            f"lpstat={lpstat_command}"
        )

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout if self.timeout > 0 else None,
                check=False,
            )
        except FileNotFoundError as e:
            raise PrintError(f"CUPS command not found: {args[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise PrintError(f"{args[0]} did not finish within {self.timeout}s") from e

    def default_printer(self) -> str:
        """
        Resolve the printer every job is sent to.

        Raises:
            PrintError: If no destination is configured
        """
        result = self._run([self.lpstat_command, "-d"])
        if result.returncode == 0:
            for line in result.stdout.splitlines():
                if line.startswith(_DEFAULT_PREFIX):
                    name = line[len(_DEFAULT_PREFIX):].strip()
                    if name:
                        return name

        first = self._first_destination()
        if first is None:
            raise PrintError("No printer is installed")

        logger.warning(f"No default printer set, using first destination: {first}")
        return first

    def _first_destination(self) -> Optional[str]:
        result = self._run([self.lpstat_command, "-e"])
        if result.returncode != 0:
            return None
        for line in result.stdout.splitlines():
            if line.strip():
                return line.strip()
        return None

    def print_image(self, image: DecodedImage, bounds: PageBounds) -> None:
        printer = self.default_printer()

        try:
            page = render_to_page(image.pixels, bounds, self.fit)
            payload = encode_png(page)
        except ValueError as e:
            raise PrintError(f"Failed to render {image.display_name}: {e}") from e

        fd, path = tempfile.mkstemp(prefix="printsocket-", suffix=".png")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)

            result = self._run(
                [self.lp_command, "-d", printer, "-t", image.display_name, path]
            )
            if result.returncode != 0:
                detail = result.stderr.strip() or f"exit status {result.returncode}"
                raise PrintError(f"lp failed for {printer}: {detail}")
        finally:
            os.unlink(path)

        logger.info(f"Submitted {image.display_name} to {printer}: {result.stdout.strip()}")
