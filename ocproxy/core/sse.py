"""SSE (Server-Sent Events) framing utilities."""

import json
import logging
from typing import Any, AsyncIterator, Optional

logger = logging.getLogger("ocproxy")

SSE_MEDIA_TYPE = "text/event-stream"
DONE_SENTINEL = "[DONE]"
DONE_EVENT = b"data: [DONE]\n\n"


def format_sse_data(payload: Any) -> bytes:
    """Serialize a JSON payload as a single ``data:`` SSE frame."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


def parse_sse_data_line(line: str) -> Optional[str]:
    """Return the payload of a ``data:`` line, or None for any other line."""
    line = line.strip()
    if not line.startswith("data:"):
        return None
    return line[5:].strip()


async def iter_sse_json(lines: AsyncIterator[str]) -> AsyncIterator[dict[str, Any]]:
    """Decode JSON objects carried by the ``data:`` lines of an SSE stream.

    Stops at the ``[DONE]`` sentinel. Comment, event and blank lines are
    ignored, as are data lines that are not JSON objects.
    """
    async for line in lines:
        data = parse_sse_data_line(line)
        if not data:
            continue
        if data == DONE_SENTINEL:
            return
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError:
            logger.debug("Skipping undecodable SSE data: %s", data[:100])
            continue
        if isinstance(parsed, dict):
            yield parsed
