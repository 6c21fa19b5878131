"""Unit tests for JSON extraction and repair of model output"""

import json
import pytest
from finhealth_gateway.domain.sanitizer import (
    Unparseable,
    extract_candidate,
    nesting_depth,
    parse_model_json,
    strip_comments,
    strip_trailing_commas,
)


@pytest.mark.parametrize(
    "obj",
    [
        {"a": 1},
        {"healthScore": 72, "summary": "ok", "insights": [], "nested": {"x": [1, 2, {"y": None}]}},
        {"text": "commas, inside ,} strings ,]", "url": "http://example.com//path"},
        {"quote": 'she said "hi" /* not a comment */'},
        {"a": "x\x7fy"},
        {},
    ],
)
def test_valid_minified_json_is_unchanged(obj):
    raw = json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    assert parse_model_json(raw) == obj


def test_fenced_json_is_extracted():
    raw = 'Here you go:\n```json\n{"a":1}\n```\nThanks'
    assert parse_model_json(raw) == {"a": 1}


def test_unlabeled_fence_is_extracted():
    raw = '```\n{"a": {"b": 2}}\n```'
    assert parse_model_json(raw) == {"a": {"b": 2}}


def test_fence_without_object_is_skipped():
    raw = 'Example: ```python\nprint(1)\n``` and then {"a": 3}'
    assert parse_model_json(raw) == {"a": 3}


def test_prose_around_object():
    raw = 'Sure! Based on your data {"healthScore": 55} is my answer. Let me know {if} you need more.'
    # first "{" to last "}" includes the trailing prose, which is not JSON
    assert isinstance(parse_model_json(raw), Unparseable)

    raw = 'Sure! Based on your data: {"healthScore": 55}. Let me know if you need more.'
    assert parse_model_json(raw) == {"healthScore": 55}


def test_trailing_commas_repaired():
    assert parse_model_json('{"a":1,"b":[1,2,],}') == {"a": 1, "b": [1, 2]}


def test_trailing_comma_with_whitespace():
    raw = '{\n  "a": [\n    "x",\n  ],\n}'
    assert parse_model_json(raw) == {"a": ["x"]}


def test_comments_removed():
    raw = """{
      // overall score
      "healthScore": 64, /* model guess */
      "summary": "fine"
    }"""
    assert parse_model_json(raw) == {"healthScore": 64, "summary": "fine"}


def test_control_characters_removed():
    raw = '{"summary": "ok\x00\x07", "score": 1\x1f}'
    assert parse_model_json(raw) == {"summary": "ok", "score": 1}


def test_raw_newline_inside_string_is_accepted():
    raw = '{"summary": "line one\nline two"}'
    assert parse_model_json(raw) == {"summary": "line one\nline two"}


def test_no_braces_is_unparseable():
    result = parse_model_json("I cannot help with that request.")

    assert isinstance(result, Unparseable)
    assert result.reason == "no JSON object found"
    assert result.raw == "I cannot help with that request."


def test_broken_json_is_unparseable():
    result = parse_model_json('{"summary": "unterminated}')
    assert isinstance(result, Unparseable)
    assert result.reason.startswith("invalid JSON")


def test_non_string_input_is_unparseable():
    assert isinstance(parse_model_json(None), Unparseable)
    assert isinstance(parse_model_json({"a": 1}), Unparseable)


def test_extract_candidate_reversed_braces():
    assert extract_candidate("} nothing here {") is None


def test_strip_comments_keeps_string_contents():
    text = '{"a": "// keep", "b": "/* keep */"} // drop'
    assert strip_comments(text) == '{"a": "// keep", "b": "/* keep */"} '


def test_strip_trailing_commas_respects_escaped_quotes():
    text = '{"a": "x\\",]", "b": 1,}'
    assert strip_trailing_commas(text) == '{"a": "x\\",]", "b": 1}'


def test_delete_character_inside_string_is_kept():
    assert parse_model_json('{"a":"x\x7fy"}') == {"a": "x\x7fy"}


def test_oversized_response_is_unparseable():
    raw = '{"summary": "' + "x" * 200 + '"}'

    result = parse_model_json(raw, max_chars=100)

    assert isinstance(result, Unparseable)
    assert result.reason.startswith("response too large")


def test_deeply_nested_response_is_unparseable():
    raw = '{"a":' + "[" * 100_000 + "]" * 100_000 + "}"

    result = parse_model_json(raw, max_chars=len(raw))

    assert isinstance(result, Unparseable)
    assert "nested deeper" in result.reason


def test_nesting_limit_is_inclusive():
    raw = '{"a": {"b": {"c": 1}}}'

    assert parse_model_json(raw, max_depth=3) == {"a": {"b": {"c": 1}}}
    assert isinstance(parse_model_json(raw, max_depth=2), Unparseable)


def test_nesting_depth_ignores_brackets_in_strings():
    assert nesting_depth('{"a": "[[[{{{", "b": ["\\"]]]"]}') == 2
    assert nesting_depth("no json") == 0


def test_recursion_during_parse_is_unparseable():
    # depth check disabled so the decoder itself hits the recursion limit
    raw = '{"a":' + "[" * 100_000 + "]" * 100_000 + "}"

    result = parse_model_json(raw, max_chars=len(raw), max_depth=len(raw))

    assert isinstance(result, Unparseable)
    assert result.reason.startswith("invalid JSON")
