"""FastMCP server exposing tracked player state as MCP tools.

Tools:
  - get_player_summary(slug)  the thread's current tracked-property summary
  - list_versions()           the version catalogue, oldest first

Threads are read from a ThreadStorage replaced via set_storage() for tests,
or opened on DATA_DIR when run as __main__.

Usage:
    uv run python -m tale_companion.mcp_server
"""

from pathlib import Path

from mcp.server.fastmcp import FastMCP

from tale_companion.panel import title_case
from tale_companion.storage import ThreadStorage
from tale_companion.versions import VERSION_CATALOGUE

mcp = FastMCP("tale-companion")

_storage: ThreadStorage | None = None


def set_storage(storage: ThreadStorage) -> None:
    """Replace the active storage (used in tests)."""
    global _storage
    _storage = storage


@mcp.tool()
def get_player_summary(slug: str) -> dict:
    """Return the tracked player state of a thread, keyed by property title."""
    if _storage is None:
        raise RuntimeError("No thread storage configured")
    thread = _storage.get_thread(slug)
    if thread is None:
        raise ValueError(f"Thread {slug!r} not found")
    return {title_case(k): v for k, v in thread.state.context_summary.items()}


@mcp.tool()
def list_versions() -> list[dict]:
    """Return the version catalogue, oldest first."""
    return [v.model_dump() for v in VERSION_CATALOGUE]


if __name__ == "__main__":
    import os
    set_storage(ThreadStorage(Path(os.getenv("DATA_DIR", "data"))))
    mcp.run()
