"""
printsocket
===========

WebSocket print server for base64-encoded images.

A client connects over WebSocket, sends a JSON message carrying a base64
PNG/JPEG image, and the server prints it on the default printer and
answers with a JSON status message.

Components:
    - stream: WebSocket frame model, accumulator and transport adapter
    - models: Request and response schemas
    - protocol: Message decoding and print dispatch
    - printing: Image decoding and printer sinks
    - server: Per-connection sessions and the accept loop

Example:
    from printsocket.config import load_config
    from printsocket.main import create_server

    server = create_server(load_config())
    await server.run()
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
