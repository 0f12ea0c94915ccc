"""Export chat sessions to Markdown and JSON formats."""

import json

from .core import ChatSession, Message


def session_to_markdown(session: ChatSession, messages: list[Message]) -> str:
    """Export a session and its messages as clean Markdown."""
    lines = [f"# {session.title}", ""]
    lines.append(f"**Started:** {session.timestamp.isoformat()}")
    lines.append(f"**Messages:** {len(messages)}")
    lines.extend(["", "---", ""])

    for msg in messages:
        ts = msg.timestamp.strftime("%Y-%m-%d %H:%M")
        lines.append(f"## {msg.role.value.capitalize()} ({ts})")
        lines.append("")
        lines.append(msg.content)
        lines.extend(["", "---", ""])

    return "\n".join(lines)


def session_to_json(session: ChatSession, messages: list[Message]) -> str:
    """Export a session and its messages as structured JSON."""
    data = {
        "session": session_to_dict(session),
        "messages": [message_to_dict(msg) for msg in messages],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def session_to_dict(session: ChatSession) -> dict:
    """Convert a ChatSession to a JSON-serializable dict."""
    return {
        "id": session.id,
        "title": session.title,
        "preview": session.preview,
        "timestamp": session.timestamp.isoformat(),
        "is_active": session.is_active,
    }


def message_to_dict(msg: Message) -> dict:
    """Convert a Message to a JSON-serializable dict."""
    return {
        "id": msg.id,
        "role": msg.role.value,
        "content": msg.content,
        "timestamp": msg.timestamp.isoformat(),
    }
