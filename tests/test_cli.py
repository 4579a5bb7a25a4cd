import json

import pytest
from click.testing import CliRunner

from plant_treatment import cli as cli_module
from plant_treatment.errors import ExternalServiceError

from .conftest import VALID_TREATMENT, FakeClient, gemini_response


@pytest.fixture
def runner(monkeypatch, tmp_path):
    # Keep a developer's .env and config file out of the picture.
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli_module, "load_dotenv", lambda: None)
    monkeypatch.setattr(cli_module, "configure_logging", lambda: None)
    return CliRunner()


def test_serve_without_key_exits_before_serving(runner, monkeypatch):
    started = []
    monkeypatch.setattr(cli_module.uvicorn, "run", lambda *a, **kw: started.append(a))

    result = runner.invoke(cli_module.cli, ["serve"])

    assert result.exit_code == 1
    assert started == []


def test_serve_runs_uvicorn_with_injected_client(runner, monkeypatch):
    calls = []
    monkeypatch.setattr(cli_module.uvicorn, "run", lambda app, **kw: calls.append((app, kw)))

    result = runner.invoke(cli_module.cli, ["serve", "--api-key", "k", "--port", "8123"])

    assert result.exit_code == 0, result.output
    app, kwargs = calls[0]
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 8123
    assert app.state.gemini_client.api_key == "k"


def test_treat_without_key_exits(runner):
    result = runner.invoke(cli_module.cli, ["treat", "Powdery Mildew"])
    assert result.exit_code == 1


def test_treat_prints_json(runner, monkeypatch):
    fake = FakeClient(gemini_response(json.dumps(VALID_TREATMENT)))
    monkeypatch.setattr(cli_module, "GeminiClient", lambda *a, **kw: fake)

    result = runner.invoke(cli_module.cli, ["treat", "Powdery Mildew", "--api-key", "k"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload == {"disease": "Powdery Mildew", "data": VALID_TREATMENT}


def test_treat_failure_exits_nonzero(runner, monkeypatch, caplog):
    fake = FakeClient(error=ExternalServiceError("quota exceeded"))
    monkeypatch.setattr(cli_module, "GeminiClient", lambda *a, **kw: fake)

    with caplog.at_level("ERROR", logger="plant_treatment"):
        result = runner.invoke(cli_module.cli, ["treat", "Powdery Mildew", "--api-key", "k"])

    assert result.exit_code == 1
    errors = [r.getMessage() for r in caplog.records if r.levelname == "ERROR"]
    assert any("quota exceeded" in line for line in errors)


def test_treat_non_object_response_exits_cleanly(runner, monkeypatch):
    fake = FakeClient(["unexpected"])
    monkeypatch.setattr(cli_module, "GeminiClient", lambda *a, **kw: fake)

    result = runner.invoke(cli_module.cli, ["treat", "Powdery Mildew", "--api-key", "k"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


def test_config_option_supplies_key(runner, monkeypatch, tmp_path):
    fake = FakeClient(gemini_response(json.dumps(VALID_TREATMENT)))
    seen = []
    monkeypatch.setattr(cli_module, "GeminiClient", lambda *a, **kw: seen.append(a) or fake)
    config = tmp_path / "cfg.json"
    config.write_text(json.dumps({"gemini": {"api_key": "from-file"}}), encoding="utf-8")

    result = runner.invoke(cli_module.cli, ["--config", str(config), "treat", "Early Blight"])

    assert result.exit_code == 0
    assert seen[0][0] == "from-file"
