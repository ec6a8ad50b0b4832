"""Compass JSON-lines server entry point.

Usage: python -m compass.server

Reads JSON requests from stdin (one per line), writes JSON responses to stdout.
All logging goes to stderr to keep the protocol clean.
"""

from __future__ import annotations

import asyncio
import json
import sys

from loguru import logger

from compass.config.settings import Settings

from .handler import ServerHandler
from .protocol import Notification, Request, Response


async def main() -> None:
    settings = Settings.load()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    loop = asyncio.get_event_loop()

    def write_line(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    def write_notification(notification: Notification) -> None:
        write_line(notification.to_json_line())

    handler = ServerHandler(settings=settings, write_notification=write_notification)
    logger.info("compass-server: ready")

    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)

    while True:
        line = await reader.readline()
        if not line:
            break  # stdin closed

        line_str = line.decode("utf-8", errors="replace").strip()
        if not line_str:
            continue

        try:
            request = Request.from_dict(json.loads(line_str))
        except (json.JSONDecodeError, ValueError, AttributeError) as e:
            write_line(Response(id=0, error=f"Invalid request: {e}", error_kind="MalformedRequest").to_json_line())
            continue

        try:
            result = await handler.dispatch({"method": request.method, "params": request.params})
            resp = Response(id=request.id, result=result)
        except Exception as e:
            logger.error(f"{request.method} failed: {e}")
            resp = Response.from_exception(request.id, e)

        write_line(resp.to_json_line())


if __name__ == "__main__":
    asyncio.run(main())
