"""FastAPI endpoints under /api.

Endpoint groups: health, version catalogue, threads (read, delete, post a
message through the plugin) and the side panel of a thread.
"""

from typing import Literal

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from tale_companion.models import Message
from tale_companion.plugin import PluginInactiveError
from tale_companion.sessions import Sessions
from tale_companion.versions import VERSION_CATALOGUE, VersionNotFoundError

router = APIRouter()


class PostMessageBody(BaseModel):
    author: Literal["user", "ai"]
    content: str
    name: str | None = None


def _sessions(request: Request) -> Sessions:
    return request.app.state.sessions


async def _plugin(request: Request, slug: str):
    try:
        return await _sessions(request).get(slug)
    except ValueError as e:
        raise HTTPException(400, str(e))
    except VersionNotFoundError as e:
        raise HTTPException(409, str(e))


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/versions")
async def list_versions():
    """The version catalogue, oldest first."""
    return [v.model_dump() for v in VERSION_CATALOGUE]


@router.get("/threads")
async def list_threads(request: Request):
    """Slugs of all stored threads."""
    return _sessions(request).storage.list_threads()


@router.get("/threads/{slug}")
async def get_thread(request: Request, slug: str):
    """Get a stored thread."""
    try:
        thread = _sessions(request).storage.get_thread(slug)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if thread is None:
        raise HTTPException(404, f"Thread {slug!r} not found")
    return thread.model_dump(mode="json")


@router.delete("/threads/{slug}")
async def delete_thread(request: Request, slug: str):
    """Delete a thread and drop its session."""
    sessions = _sessions(request)
    try:
        deleted = sessions.storage.delete_thread(slug)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not deleted:
        raise HTTPException(404, f"Thread {slug!r} not found")
    sessions.close(slug)
    return {"ok": True}


@router.post("/threads/{slug}/messages")
async def post_message(request: Request, slug: str, body: PostMessageBody):
    """Append a message and run it through the plugin. Returns the thread."""
    plugin = await _plugin(request, slug)
    try:
        await plugin.post_message(Message(
            author=body.author, content=body.content, name=body.name,
        ))
    except PluginInactiveError:
        _sessions(request).save(slug)
        raise HTTPException(409, "Plugin failed to start for this thread")
    _sessions(request).save(slug)
    return plugin.thread.model_dump(mode="json")


@router.get("/threads/{slug}/panel")
async def get_panel(request: Request, slug: str):
    """Current side panel document of a thread."""
    await _plugin(request, slug)
    host = _sessions(request).panel_host(slug)
    return {"visible": host.visible, "html": host.html}


@router.post("/threads/{slug}/panel/hide")
async def hide_panel(request: Request, slug: str):
    await _plugin(request, slug)
    host = _sessions(request).panel_host(slug)
    host.hide()
    return {"visible": host.visible}
