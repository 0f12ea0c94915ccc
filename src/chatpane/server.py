"""FastAPI web server exposing the chat client to a UI."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel

from .backends import get_service
from .client import ChatClient
from .config import get_backend_name
from .core import NotFoundError, Snapshot
from .export import message_to_dict, session_to_dict, session_to_json, session_to_markdown

logger = logging.getLogger(__name__)

# Client cache (created on first request)
_client: ChatClient | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _client
    yield
    if _client is not None:
        await _client.aclose()
        _client = None


app = FastAPI(title="chatpane", version="0.1.0", lifespan=lifespan)


def _get_client() -> ChatClient:
    """Lazily create and cache the chat client."""
    global _client
    if _client is None:
        service = get_service(get_backend_name())
        _client = ChatClient(service)
        logger.info("Using response backend: %s", service.name)
    return _client


def _snapshot_to_dict(snapshot: Snapshot) -> dict:
    return {
        "sessions": [session_to_dict(s) for s in snapshot.sessions],
        "active_session_id": snapshot.active_session_id,
        "active_messages": [message_to_dict(m) for m in snapshot.active_messages],
        "is_streaming": snapshot.is_streaming,
    }


class SendRequest(BaseModel):
    text: str


# ── Routes ───────────────────────────────────────────────────────


@app.get("/api/state")
async def get_state():
    """Return the current sessions, active messages and streaming flag."""
    return _snapshot_to_dict(_get_client().snapshot())


@app.post("/api/messages")
async def send_message(body: SendRequest):
    """Submit a user turn to the active session."""
    snapshot = await _get_client().send_message(body.text)
    return _snapshot_to_dict(snapshot)


@app.post("/api/chats")
async def new_chat():
    """Start a new chat and make it active."""
    return _snapshot_to_dict(_get_client().new_chat())


@app.post("/api/chats/{session_id}/activate")
async def switch_chat(session_id: str):
    """Make an existing chat the active one."""
    try:
        snapshot = _get_client().switch_chat(session_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    return _snapshot_to_dict(snapshot)


@app.delete("/api/chats/{session_id}")
async def delete_chat(session_id: str):
    """Delete a chat. Unknown ids are ignored."""
    return _snapshot_to_dict(_get_client().delete_chat(session_id))


@app.get("/api/export/{session_id}")
async def export_session(
    session_id: str,
    format: str = Query("md", description="Export format: md or json"),
):
    """Export a session as Markdown or JSON."""
    store = _get_client().store
    try:
        session = store.get(session_id)
        messages = list(store.log(session_id))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")

    safe_title = "".join(c if c.isalnum() or c in "-_ " else "" for c in session.title)[:50]

    if format == "json":
        content = session_to_json(session, messages)
        return Response(
            content=content,
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{safe_title}.json"'},
        )
    else:
        content = session_to_markdown(session, messages)
        return Response(
            content=content,
            media_type="text/markdown",
            headers={"Content-Disposition": f'attachment; filename="{safe_title}.md"'},
        )
