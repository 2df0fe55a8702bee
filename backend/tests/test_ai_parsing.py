from __future__ import annotations

from app.services.ai.parsing import DEFAULT_APOLOGY, extract_json_object, parse_chat_reply, parse_insight_reply
from app.services.ai.prompts import build_chat_prompt


def test_extract_plain_json():
    assert extract_json_object('{"a": 1}') == {"a": 1}


def test_extract_fenced_json():
    text = 'Here you go:\n```json\n{"response": "ok"}\n```\nanything else?'
    assert extract_json_object(text) == {"response": "ok"}


def test_extract_embedded_object_with_braces_in_strings():
    text = 'Prefix {"response": "use {curly} braces", "n": 2} suffix'
    assert extract_json_object(text) == {"response": "use {curly} braces", "n": 2}


def test_extract_rejects_non_objects():
    assert extract_json_object("[1, 2]") is None
    assert extract_json_object("no json here") is None
    assert extract_json_object("") is None


def test_chat_reply_with_suggestion():
    raw = '{"response": "Created a plan.", "suggestions": {"type": "task", "title": "Stretch"}}'
    response, suggestion = parse_chat_reply(raw)
    assert response == "Created a plan."
    assert suggestion == {"type": "task", "title": "Stretch"}


def test_chat_reply_ignores_non_dict_suggestion():
    response, suggestion = parse_chat_reply('{"response": "Hi", "suggestion": ["a"]}')
    assert response == "Hi"
    assert suggestion is None


def test_chat_reply_plain_text_and_empty():
    assert parse_chat_reply("Just text") == ("Just text", None)
    assert parse_chat_reply("   ") == (DEFAULT_APOLOGY, None)


def test_insight_reply_fallback():
    assert parse_insight_reply('{"summary": "good"}') == {"summary": "good"}
    assert parse_insight_reply("broken") == {"raw_response": "broken", "error": "Failed to parse response"}


def test_chat_prompt_skips_malformed_history():
    _, with_strings = build_chat_prompt(
        {"previousMessages": ["hello", {"role": "assistant", "content": "Hi there"}, None]}, "next?"
    )
    assert "assistant: Hi there" in with_strings
    assert "hello" not in with_strings

    _, with_text = build_chat_prompt({"previousMessages": "hello"}, "next?")
    assert "No previous messages" in with_text
