"""Unit tests for JSON reply parsing, fence stripping and repair."""

from __future__ import annotations

import json

import pytest

from src.services.synthesis.response_parser import parse_json_reply, strip_code_fences
from src.utils.errors import SchemaViolationError


class TestStripCodeFences:
    @pytest.mark.parametrize(
        "reply",
        [
            '```json\n{"a": 1}\n```',
            '```JSON\n{"a": 1}\n```',
            '```\n{"a": 1}\n```',
            '  ```json {"a": 1}```  ',
            '{"a": 1}',
        ],
    )
    def test_fenced_and_bare_replies_agree(self, reply: str) -> None:
        assert strip_code_fences(reply) == '{"a": 1}'

    def test_fence_inside_prose(self) -> None:
        reply = 'Sure! Here are your notes:\n```json\n{"title": "Cells"}\n```\nGood luck.'

        assert strip_code_fences(reply) == '{"title": "Cells"}'


class TestParseJsonReply:
    def test_plain_object(self) -> None:
        assert parse_json_reply('{"questions": []}') == {"questions": []}

    def test_bare_array(self) -> None:
        assert parse_json_reply('[{"q": 1}]') == [{"q": 1}]

    def test_fenced_equals_unfenced(self) -> None:
        body = '{"title": "Photosynthesis", "outline": ["Light", "Dark"]}'

        assert parse_json_reply(f"```json\n{body}\n```") == parse_json_reply(body)

    def test_preamble_and_epilogue_sliced_off(self) -> None:
        reply = 'Here is the JSON you asked for: {"title": "Cells"} Let me know!'

        assert parse_json_reply(reply) == {"title": "Cells"}

    def test_trailing_commas_repaired(self) -> None:
        reply = '{"outline": ["a", "b",], "key_terms": [],}'

        assert parse_json_reply(reply) == {"outline": ["a", "b"], "key_terms": []}

    def test_trailing_comma_inside_prose(self) -> None:
        reply = 'Result: {"questions": [{"q": "x"},]} done'

        assert parse_json_reply(reply) == {"questions": [{"q": "x"}]}

    def test_code_fence_inside_string_value(self) -> None:
        payload = {
            "questions": [
                {
                    "question": "What does this print?\n```python\nprint(1)\n```",
                    "options": ["1", "0", "None"],
                    "correct_answer_index": 0,
                }
            ]
        }

        assert parse_json_reply(json.dumps(payload)) == payload

    def test_fenced_reply_with_code_in_string_value(self) -> None:
        payload = {"question": "Output?\n```js\nconsole.log(2)\n```", "options": ["2", "3"]}

        assert parse_json_reply(f"```json\n{json.dumps(payload)}\n```") == payload

    def test_bare_json_with_inner_fence_and_trailing_comma(self) -> None:
        reply = '{"question": "Run:\\n```sh\\nls\\n```", "options": ["a", "b",],}'

        assert parse_json_reply(reply) == {"question": "Run:\n```sh\nls\n```", "options": ["a", "b"]}

    @pytest.mark.parametrize("reply", ["", "   ", "\n\t"])
    def test_empty_reply(self, reply: str) -> None:
        with pytest.raises(SchemaViolationError, match="empty"):
            parse_json_reply(reply)

    @pytest.mark.parametrize(
        "reply",
        [
            "I cannot help with that.",
            '{"title": "unterminated',
            "```json\nnot json at all\n```",
        ],
    )
    def test_unrepairable_reply(self, reply: str) -> None:
        with pytest.raises(SchemaViolationError, match="not valid JSON"):
            parse_json_reply(reply)
