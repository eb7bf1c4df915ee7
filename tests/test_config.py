"""Tests for configuration loading (env > YAML > defaults)."""

import pytest

from unit_editor.config import Config

_ENV_KEYS = ("OR_BASE", "OR_TOKEN", "OR_LOW", "OR_HIGH", "MAX_CONTINUATIONS",
             "STREAM_RESPONSES", "EDITOR_DIR", "BUILD_COMMAND", "LLM_MAX_RETRIES")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


class TestConfig:
    def test_defaults(self):
        cfg = Config()
        assert cfg.OR_BASE == "https://openrouter.ai/api/v1"
        assert cfg.EDITOR_DIR == "editor"
        assert cfg.UNIT_EXTENSION == ".gopart"
        assert cfg.MAX_CONTINUATIONS == 3
        assert cfg.BUILD_COMMAND == "make build"
        assert cfg.STREAM_RESPONSES is True
        assert cfg.missing() == ["OR_TOKEN", "OR_LOW", "OR_HIGH"]

    def test_yaml_values(self):
        cfg = Config({"or_token": "t", "or_low": "cheap", "or_high": "smart",
                      "max_continuations": "5", "stream": False})
        assert cfg.OR_LOW == "cheap"
        assert cfg.MAX_CONTINUATIONS == 5
        assert cfg.STREAM_RESPONSES is False
        assert cfg.missing() == []

    def test_env_beats_yaml(self, monkeypatch):
        monkeypatch.setenv("OR_HIGH", "from-env")
        monkeypatch.setenv("STREAM_RESPONSES", "no")
        cfg = Config({"or_high": "from-yaml", "stream": True})
        assert cfg.OR_HIGH == "from-env"
        assert cfg.STREAM_RESPONSES is False

    def test_prompt_overrides(self):
        cfg = Config({"prompts": {"changes": "my_changes.txt", "bogus": "x.txt"}})
        assert cfg.PROMPT_FILES == {"changes": "my_changes.txt"}

    def test_pricing_merged(self):
        cfg = Config({"pricing": {"GPT-4o": {"input": 5, "output": 15},
                                  "broken": {"input": 1}}})
        assert cfg.PRICING["gpt-4o"] == {"input": 5.0, "output": 15.0}
        assert "claude-3-sonnet" in cfg.PRICING
        assert "broken" not in cfg.PRICING

    def test_load_from_file(self, tmp_path):
        (tmp_path / ".uniteditor.yaml").write_text(
            "or_low: cheap\neditor_dir: parts\n", encoding="utf-8")
        cfg = Config.load()
        assert cfg.OR_LOW == "cheap"
        assert cfg.EDITOR_DIR == "parts"

    def test_load_explicit_missing_file(self, tmp_path):
        cfg = Config.load(str(tmp_path / "nope.yaml"))
        assert cfg.EDITOR_DIR == "editor"

    def test_invalid_yaml_ignored(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("or_low: [unclosed\n", encoding="utf-8")
        assert Config.load(str(path)).OR_LOW == ""
