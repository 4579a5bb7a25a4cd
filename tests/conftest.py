import json
import logging
from contextlib import contextmanager

import pytest

VALID_TREATMENT = {
    "organic": "Spray diluted neem oil on affected leaves every 7 days.",
    "biological": "Apply a Bacillus subtilis based biofungicide.",
    "chemical": "Use a sulfur fungicide at the first sign of infection.",
    "prevention": [
        "Space plants for good air circulation.",
        "Water at the soil line in the morning.",
        "Remove infected leaves promptly.",
        "Grow resistant varieties.",
        "Avoid excess nitrogen fertiliser.",
    ],
}


def gemini_response(text=None, **candidate_extra):
    """Build a generateContent response body with a single candidate."""
    parts = [{"text": text}] if text is not None else []
    candidate = {"content": {"role": "model", "parts": parts}, **candidate_extra}
    return {"candidates": [candidate]}


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    """Stands in for requests.Session, recording every POST."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


class FakeClient:
    """Stands in for GeminiClient at the HTTP layer."""

    model_name = "gemini-test"

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def generate_content(self, prompt, response_schema):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def valid_body():
    return gemini_response(json.dumps(VALID_TREATMENT))


ENV_VARS = [
    "GEMINI_API_KEY",
    "GEMINI_BASE_URL",
    "GEMINI_MODEL",
    "GEMINI_TEMPERATURE",
    "GEMINI_REQUEST_TIMEOUT",
    "HOST",
    "PORT",
    "TREATMENT_CONFIG",
    "TREATMENT_DEBUG",
    "TREATMENT_LOG_FILE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Unset every setting variable and restore the originals afterwards."""
    for name in ENV_VARS:
        # setenv first so monkeypatch remembers the original state, even when unset
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


@contextmanager
def preserved_root_logging():
    """Put the root logger back the way it was after configure_logging() runs."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    try:
        yield root
    finally:
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)
