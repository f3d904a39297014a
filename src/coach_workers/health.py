"""Liveness endpoint for container healthchecks.

Serves GET /health from a bare asyncio server; the payload includes database
reachability and the in-process job/evaluation counters.
"""

import asyncio
import json
import logging

import psycopg

from .metrics import get_metrics

logger = logging.getLogger(__name__)

_STATUS_LINES = {
    200: "HTTP/1.1 200 OK",
    404: "HTTP/1.1 404 Not Found",
    503: "HTTP/1.1 503 Service Unavailable",
}
_DB_CHECK_TIMEOUT_SECONDS = 2


async def check_database(db_url: str) -> str:
    """'ok' when SELECT 1 answers within the timeout, otherwise 'error'."""
    try:
        async with asyncio.timeout(_DB_CHECK_TIMEOUT_SECONDS):
            async with await psycopg.AsyncConnection.connect(db_url, autocommit=True) as conn:
                await conn.execute("SELECT 1")
    except (OSError, TimeoutError, psycopg.Error):
        return "error"
    return "ok"


async def render_health_response(path: str, db_url: str) -> tuple[int, dict]:
    if path != "/health":
        return 404, {"error": "not_found"}

    db_status = await check_database(db_url)
    metrics = get_metrics()
    status = "ok" if db_status == "ok" else "degraded"
    body = {
        "status": status,
        "uptime_seconds": metrics["uptime_seconds"],
        "db": db_status,
        "metrics": metrics,
    }
    return (200 if status == "ok" else 503), body


async def _handle_request(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    db_url: str,
) -> None:
    try:
        request_line = await asyncio.wait_for(reader.readline(), timeout=5)
        # "GET /health HTTP/1.1\r\n"
        parts = request_line.decode("utf-8", errors="replace").strip().split()
        path = parts[1] if len(parts) >= 2 else "/"

        status_code, payload = await render_health_response(path, db_url)
        body = json.dumps(payload).encode()
        head = (
            f"{_STATUS_LINES[status_code]}\r\n"
            "Content-Type: application/json\r\n"
            f"Content-Length: {len(body)}\r\n\r\n"
        )
        writer.write(head.encode() + body)
        await writer.drain()
    except (OSError, TimeoutError, UnicodeError):
        logger.debug("Health endpoint request error", exc_info=True)
    finally:
        writer.close()
        await writer.wait_closed()


async def start_health_server(port: int, db_url: str) -> asyncio.Server:
    async def handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await _handle_request(reader, writer, db_url)

    server = await asyncio.start_server(handler, "0.0.0.0", port)
    logger.info("Health endpoint listening on port %d", port)
    return server
