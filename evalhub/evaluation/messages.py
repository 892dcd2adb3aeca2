"""
Chat Message Reconstruction

Converts the serialized message lists stored in example inputs back into
Message objects a chat model accepts.

Stored form:
    {"type": "human", "data": {"content": "Hi"}}
    {"type": "chat", "data": {"content": "Hi", "role": "critic"}}
Plain {"role": ..., "content": ...} dicts are accepted as-is.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence


@dataclass
class Message:
    """A single message in a conversation."""

    role: str  # "system", "user", "assistant", or a custom chat role
    content: str


STORED_TYPE_ROLES: Dict[str, str] = {
    "human": "user",
    "ai": "assistant",
    "system": "system",
}


def message_from_dict(stored: Dict[str, Any]) -> Message:
    """Rebuild one Message from its stored representation."""
    if "type" not in stored:
        if "role" in stored and "content" in stored:
            return Message(role=stored["role"], content=stored["content"])
        raise ValueError(f"Cannot reconstruct message from {stored!r}")

    msg_type = stored["type"]
    data = stored.get("data", {})
    content = data.get("content", "")

    if msg_type in STORED_TYPE_ROLES:
        return Message(role=STORED_TYPE_ROLES[msg_type], content=content)
    if msg_type == "chat":
        if "role" not in data:
            raise ValueError("Stored chat message is missing a role")
        return Message(role=data["role"], content=content)
    raise ValueError(f"Got unexpected message type: {msg_type}")


def messages_from_dict(stored: Sequence[Dict[str, Any]]) -> List[Message]:
    """Rebuild a list of Messages from stored dicts."""
    return [message_from_dict(m) for m in stored]
