"""
Configuration — loads settings from .incremental_editor.yaml, environment
variables, and built-in defaults (in that priority order: CLI args > env >
YAML > defaults).
"""

import os

import yaml

from .editing.diff_parser import EditEncoding


_DEFAULTS = {
    "encoding_order": list(EditEncoding.ALL),
    "fuzzy_match_window": 0,
    "allow_partial_changeset": False,
    "context_lines": 15,
    "max_prompt_symbols": 5,
    "response_format": EditEncoding.STRUCTURED,
    "log_level": "WARNING",
}

# Config file search locations
_CONFIG_FILENAMES = [".incremental_editor.yaml", ".incremental_editor.yml"]


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


def _as_list(value) -> list[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [str(part).strip() for part in value]
    return []


class Config:
    """Edit protocol configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables
    3. .incremental_editor.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None:
                return cast(env_val)
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return cast(yaml_val)
            return default

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return env_val.lower() == "true"
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return bool(yaml_val)
            return default

        order = _as_list(_get("EDIT_ENCODING_ORDER", "encoding_order",
                              _DEFAULTS["encoding_order"], cast=lambda v: v))
        self.ENCODING_ORDER: list[str] = [
            enc for enc in order if enc in EditEncoding.ALL
        ] or list(_DEFAULTS["encoding_order"])

        self.FUZZY_MATCH_WINDOW = _get("FUZZY_MATCH_WINDOW", "fuzzy_match_window",
                                       _DEFAULTS["fuzzy_match_window"], cast=int)
        self.ALLOW_PARTIAL_CHANGESET = _get_bool(
            "ALLOW_PARTIAL_CHANGESET", "allow_partial_changeset",
            _DEFAULTS["allow_partial_changeset"])

        self.CONTEXT_LINES = _get("CONTEXT_LINES", "context_lines",
                                  _DEFAULTS["context_lines"], cast=int)
        self.MAX_PROMPT_SYMBOLS = _get("MAX_PROMPT_SYMBOLS", "max_prompt_symbols",
                                       _DEFAULTS["max_prompt_symbols"], cast=int)

        self.RESPONSE_FORMAT = _get("RESPONSE_FORMAT", "response_format",
                                    _DEFAULTS["response_format"])
        if self.RESPONSE_FORMAT not in EditEncoding.ALL:
            self.RESPONSE_FORMAT = _DEFAULTS["response_format"]

        self.LOG_LEVEL = _get("LOG_LEVEL", "log_level",
                              _DEFAULTS["log_level"]).upper()

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
