"""Tests for conversation message conversion."""

from types import SimpleNamespace

from relaybot.core.providers.messages import (
    ConversationMessage,
    content_to_text,
    parse_tool_definitions,
    to_wire_message,
)


def test_native_message_passes_through():
    assert to_wire_message({"role": "user", "content": "hi"}) == {"role": "user", "content": "hi"}


def test_parts_keep_unknown_part_types():
    raw = {
        "role": "user",
        "content": [
            {"type": "text", "text": "look"},
            {"type": "image_url", "image_url": {"url": "https://example.com/a.png"}},
        ],
    }
    wire = to_wire_message(raw)
    assert wire["content"][0] == {"type": "text", "text": "look"}
    assert wire["content"][1] == {
        "type": "image_url",
        "image_url": {"url": "https://example.com/a.png"},
    }


def test_assistant_tool_calls_survive_conversion():
    raw = {
        "role": "assistant",
        "content": None,
        "tool_calls": [
            {
                "id": "call_1",
                "type": "function",
                "function": {"name": "read_file", "arguments": '{"path": "a.txt"}'},
            }
        ],
    }
    wire = to_wire_message(raw)
    assert wire["role"] == "assistant"
    assert wire["content"] is None
    assert wire["tool_calls"][0]["function"]["name"] == "read_file"


def test_tool_result_message_keeps_call_id_and_name():
    wire = to_wire_message(
        {"role": "tool", "tool_call_id": "call_1", "name": "read_file", "content": "done"}
    )
    assert wire == {
        "role": "tool",
        "tool_call_id": "call_1",
        "name": "read_file",
        "content": "done",
    }


def test_unknown_role_falls_back_to_user():
    wire = to_wire_message({"role": "developer", "content": "be brief"})
    assert wire["role"] == "user"
    assert wire["content"] == "be brief"


def test_invalid_tool_calls_are_dropped_without_losing_content():
    wire = to_wire_message({"role": "assistant", "content": "thinking", "tool_calls": "oops"})
    assert wire["content"] == "thinking"
    assert "tool_calls" not in wire


def test_invalid_function_call_is_dropped():
    wire = to_wire_message(
        {"role": "assistant", "content": "x", "function_call": {"arguments": "{}"}, "name": "bot"}
    )
    assert "function_call" not in wire
    assert wire["name"] == "bot"


def test_invalid_parts_drop_content_only():
    wire = to_wire_message({"role": "user", "content": [{"text": "no type"}], "name": "ann"})
    assert wire["content"] is None
    assert wire["name"] == "ann"


def test_conversation_message_instances_are_accepted():
    message = ConversationMessage(role="system", content="rules")
    assert to_wire_message(message) == {"role": "system", "content": "rules"}


def test_non_mapping_message_becomes_empty_user_message():
    assert to_wire_message("hello") == {"role": "user", "content": None}


def test_content_to_text_flattens_text_and_tool_results():
    content = [
        {"type": "text", "text": "first"},
        {"type": "image_url", "image_url": {"url": "x"}},
        {"type": "tool_result", "content": "second"},
        SimpleNamespace(type="tool_result", content={"ok": True}),
    ]
    assert content_to_text(content) == 'first\nsecond\n{"ok": true}'
    assert content_to_text("plain") == "plain"
    assert content_to_text(None) is None


def test_parse_tool_definitions_filters_malformed_entries():
    good = {"type": "function", "function": {"name": "search", "parameters": {"type": "object"}}}
    bad = {"type": "function", "function": {"description": "no name"}}
    assert parse_tool_definitions([good, bad]) == [good]


def test_native_message_keeps_undeclared_keys():
    raw = {"role": "assistant", "content": "x", "reasoning_content": "r"}
    assert to_wire_message(raw) == raw
