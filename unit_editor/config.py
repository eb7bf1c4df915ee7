"""
Configuration — loads settings from .uniteditor.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

import os

import yaml

from .cli_display import DEFAULT_PRICING


_DEFAULTS = {
    "or_base": "https://openrouter.ai/api/v1",
    "or_token": "",
    "or_low": "",
    "or_high": "",
    "editor_dir": "editor",
    "unit_extension": ".gopart",
    "max_continuations": 3,
    "llm_max_retries": 3,
    "llm_retry_delay": 2.0,
    "stream": True,
    "build_command": "make build",
    "main_branch": "main",
    "log_dir": ".uniteditor/logs",
}

# Config file search locations
_CONFIG_FILENAMES = [".uniteditor.yaml", ".uniteditor.yml"]

# Prompt names that may be overridden with a template file
PROMPT_NAMES = ("branch_name", "changes", "continuation", "commit_message")

# Required settings: attribute name -> environment variable
_REQUIRED = {
    "OR_BASE": "OR_BASE",
    "OR_TOKEN": "OR_TOKEN",
    "OR_LOW": "OR_LOW",
    "OR_HIGH": "OR_HIGH",
}


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Find the config file. Checks explicit path, CWD, then user home."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        return None

    search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


class Config:
    """Application configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables
    3. .uniteditor.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None and env_val != "":
                return cast(env_val)
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return cast(yaml_val)
            return default

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return env_val.lower() in ("1", "true", "yes")
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return bool(yaml_val)
            return default

        # Generative service (OpenRouter-compatible)
        self.OR_BASE = _get("OR_BASE", "or_base", _DEFAULTS["or_base"])
        self.OR_TOKEN = _get("OR_TOKEN", "or_token", _DEFAULTS["or_token"])
        self.OR_LOW = _get("OR_LOW", "or_low", _DEFAULTS["or_low"])
        self.OR_HIGH = _get("OR_HIGH", "or_high", _DEFAULTS["or_high"])

        self.LLM_MAX_RETRIES = _get("LLM_MAX_RETRIES", "llm_max_retries",
                                    _DEFAULTS["llm_max_retries"], cast=int)
        self.LLM_RETRY_DELAY = _get("LLM_RETRY_DELAY", "llm_retry_delay",
                                    _DEFAULTS["llm_retry_delay"], cast=float)
        self.STREAM_RESPONSES = _get_bool("STREAM_RESPONSES", "stream",
                                          _DEFAULTS["stream"])

        # Unit store
        self.EDITOR_DIR = _get("EDITOR_DIR", "editor_dir", _DEFAULTS["editor_dir"])
        self.UNIT_EXTENSION = _get("UNIT_EXTENSION", "unit_extension",
                                   _DEFAULTS["unit_extension"])
        self.MAX_CONTINUATIONS = _get("MAX_CONTINUATIONS", "max_continuations",
                                      _DEFAULTS["max_continuations"], cast=int)

        # Workflow
        self.BUILD_COMMAND = _get("BUILD_COMMAND", "build_command",
                                  _DEFAULTS["build_command"])
        self.MAIN_BRANCH = _get("MAIN_BRANCH", "main_branch",
                                _DEFAULTS["main_branch"])
        self.LOG_DIR = _get("LOG_DIR", "log_dir", _DEFAULTS["log_dir"])

        # Prompt template overrides (file paths)
        self.PROMPT_FILES: dict[str, str] = {}
        prompts_section = yd.get("prompts", {})
        if isinstance(prompts_section, dict):
            for name in PROMPT_NAMES:
                if prompts_section.get(name):
                    self.PROMPT_FILES[name] = str(prompts_section[name])

        # Model pricing per 1M tokens
        self.PRICING: dict[str, dict] = dict(DEFAULT_PRICING)
        pricing_section = yd.get("pricing", {})
        if isinstance(pricing_section, dict):
            for pattern, prices in pricing_section.items():
                if isinstance(prices, dict) and {"input", "output"} <= prices.keys():
                    self.PRICING[str(pattern).lower()] = {
                        "input": float(prices["input"]),
                        "output": float(prices["output"]),
                    }

    def missing(self) -> list[str]:
        """Names of required settings that are empty."""
        return [env for attr, env in _REQUIRED.items() if not getattr(self, attr)]

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
