"""Tests for chat message reconstruction."""

import pytest

from evalhub.evaluation import Message, message_from_dict, messages_from_dict


class TestMessageFromDict:
    @pytest.mark.parametrize(
        "stored_type,role",
        [("human", "user"), ("ai", "assistant"), ("system", "system")],
    )
    def test_stored_types(self, stored_type: str, role: str) -> None:
        message = message_from_dict({"type": stored_type, "data": {"content": "hi"}})
        assert message == Message(role=role, content="hi")

    def test_chat_with_custom_role(self) -> None:
        stored = {"type": "chat", "data": {"content": "looks off", "role": "critic"}}
        assert message_from_dict(stored) == Message(role="critic", content="looks off")

    def test_chat_without_role(self) -> None:
        with pytest.raises(ValueError, match="missing a role"):
            message_from_dict({"type": "chat", "data": {"content": "x"}})

    def test_plain_role_content(self) -> None:
        assert message_from_dict({"role": "user", "content": "x"}) == Message("user", "x")

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError, match="unexpected message type"):
            message_from_dict({"type": "function", "data": {"content": "x"}})

    def test_unrecognized_shape(self) -> None:
        with pytest.raises(ValueError):
            message_from_dict({"text": "x"})


def test_messages_from_dict_keeps_order() -> None:
    messages = messages_from_dict(
        [
            {"type": "system", "data": {"content": "a"}},
            {"type": "human", "data": {"content": "b"}},
            {"type": "ai", "data": {"content": "c"}},
        ]
    )
    assert [m.content for m in messages] == ["a", "b", "c"]
