#!/usr/bin/env python3
"""
Manual Print Client
===================

Standalone script to send an image to a running printsocket server.

This script:
    1. Reads a PNG/JPEG file (or generates a test image)
    2. Sends it as a print request, optionally split into fragments
    3. Waits for the response and reports it

Usage:
    python scripts/send_print.py label.png
    python scripts/send_print.py --test-image --fragment-size 4096
    python scripts/send_print.py label.png --url ws://printer-host:8080/
"""

import argparse
import asyncio
import base64
import json
import logging
import os
import sys
from pathlib import Path

import cv2
import numpy as np
from websockets.asyncio.client import connect


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def make_test_image() -> bytes:
    """Render a small labelled test card as PNG."""
    card = np.full((200, 400, 3), 255, dtype=np.uint8)
    cv2.rectangle(card, (4, 4), (395, 195), (0, 0, 0), 2)
    cv2.putText(card, "printsocket TEST", (40, 110), cv2.FONT_HERSHEY_SIMPLEX, 1.2, (0, 0, 0), 2)
    ok, buffer = cv2.imencode(".png", card)
    if not ok:
        raise RuntimeError("Failed to encode test image")
    return buffer.tobytes()


async def send(url: str, image: bytes, file_name: str, fragment_size: int, wait: float) -> int:
    message = json.dumps({
        "action": "print",
        "imageData": base64.b64encode(image).decode("ascii"),
        "fileName": file_name,
    })
    logger.info(f"Sending {file_name} ({len(message)} chars) to {url}")

    async with connect(url, max_size=None) as ws:
        if fragment_size > 0:
            await ws.send([message[i:i + fragment_size] for i in range(0, len(message), fragment_size)])
        else:
            await ws.send(message)

        try:
            reply = json.loads(await asyncio.wait_for(ws.recv(), timeout=wait))
        except asyncio.TimeoutError:
            logger.warning(f"No response within {wait}s (printer errors are not reported by default)")
            return 1

    logger.info(f"Response: {reply}")
    return 0 if reply.get("Action") == "printSuccess" else 1


def main():
    parser = argparse.ArgumentParser(description="Send an image to a printsocket server")
    parser.add_argument("image", nargs="?", help="PNG or JPEG file to print")
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("PRINTSOCKET_URL", "ws://localhost:8080/"),
        help="WebSocket URL of the print server",
    )
    parser.add_argument("--test-image", action="store_true", help="Print a generated test card")
    parser.add_argument(
        "--fragment-size",
        type=int,
        default=0,
        help="Split the message into fragments of this many characters (default: 0, no split)",
    )
    parser.add_argument("--wait", type=float, default=30.0, help="Seconds to wait for a response")

    args = parser.parse_args()

    if args.test_image:
        image, file_name = make_test_image(), "test-card.png"
    elif args.image:
        path = Path(args.image)
        image, file_name = path.read_bytes(), path.name
    else:
        parser.error("pass an image file or --test-image")

    sys.exit(asyncio.run(send(args.url, image, file_name, args.fragment_size, args.wait)))


if __name__ == "__main__":
    main()
