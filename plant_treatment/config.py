import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/treatment_config.json"


def load_runtime_config(path: str | os.PathLike | None = None) -> Dict[str, Any]:
    """Load JSON config if it exists, otherwise return empty dict."""
    cfg_path = Path(path or os.getenv("TREATMENT_CONFIG", DEFAULT_CONFIG_PATH))
    if not cfg_path.exists():
        return {}
    try:
        with cfg_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(f"Ignoring unreadable config file {cfg_path}: {exc}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {cfg_path}: top level is not an object")
        return {}
    return data


def apply_runtime_config(path: str | os.PathLike | None = None) -> None:
    """
    Apply runtime settings by setting environment variables.
    Existing env vars take precedence.
    """

    config = load_runtime_config(path)
    if not config:
        return

    sections = {
        "gemini": {
            "api_key": "GEMINI_API_KEY",
            "base_url": "GEMINI_BASE_URL",
            "model_name": "GEMINI_MODEL",
            "temperature": "GEMINI_TEMPERATURE",
            "request_timeout": "GEMINI_REQUEST_TIMEOUT",
        },
        "server": {
            "host": "HOST",
            "port": "PORT",
        },
        "logging": {
            "debug": "TREATMENT_DEBUG",
            "log_file": "TREATMENT_LOG_FILE",
        },
    }

    for section, mapping in sections.items():
        values = config.get(section) or {}
        for key, env_var in mapping.items():
            if env_var in os.environ:
                continue
            value = values.get(key)
            if value is None or value == "":
                continue
            if isinstance(value, bool):
                value = "1" if value else "0"
            os.environ[env_var] = str(value)
