"""Unit tests for environment-driven settings"""

from finhealth_gateway.config import Settings


def test_parser_limits_have_defaults(monkeypatch):
    monkeypatch.delenv("LLM_MAX_RESPONSE_CHARS", raising=False)
    monkeypatch.delenv("LLM_MAX_JSON_DEPTH", raising=False)

    defaults = Settings(_env_file=None)

    assert defaults.llm_max_response_chars == 100_000
    assert defaults.llm_max_json_depth == 10


def test_parser_limits_from_environment(monkeypatch):
    monkeypatch.setenv("LLM_MAX_JSON_DEPTH", "4")

    assert Settings(_env_file=None).llm_max_json_depth == 4
