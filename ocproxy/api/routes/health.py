"""Health check endpoint."""

from datetime import datetime, timezone


async def health() -> dict:
    """GET /health - liveness probe, no backend call involved."""
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return {
        "status": "ok",
        "timestamp": timestamp.replace("+00:00", "Z"),
    }
