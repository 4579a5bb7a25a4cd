import dataclasses
import json
import logging
import sys

import click
import uvicorn
from dotenv import load_dotenv

from .config import apply_runtime_config
from .errors import InvalidInputError, TreatmentError
from .generation import DEFAULT_MODEL, DEFAULT_TEMPERATURE, GEMINI_BASE_URL, GeminiClient, generate_treatment
from .utils import clean_disease_name, configure_logging

logger = logging.getLogger("plant_treatment")


def _fatal_missing_key():
    logger.critical(
        "[FATAL] GEMINI_API_KEY is missing. Please set it in your .env file, "
        "the runtime config, or pass --api-key."
    )
    sys.exit(1)


@click.group()
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), help='Path to a JSON runtime config file.')
def cli(config_path):
    """Plant treatment relay: structured treatment advice for plant diseases via Gemini."""
    load_dotenv()
    apply_runtime_config(config_path)
    configure_logging()


@cli.command()
@click.option('--host', help='Listen address. Defaults to HOST or 0.0.0.0.')
@click.option('--port', type=int, help='Listen port. Defaults to PORT or 3001.')
@click.option('--api-key', help='Gemini API key. Defaults to GEMINI_API_KEY.')
@click.option('--model', help='Gemini model name. Defaults to GEMINI_MODEL or gemini-2.5-flash.')
@click.option('--temperature', type=float, help='Sampling temperature. Defaults to GEMINI_TEMPERATURE or 0.3.')
def serve(host, port, api_key, model, temperature):
    """Starts the HTTP treatment service."""
    from webapp.backend.app import create_app
    from webapp.backend.deps import Settings, build_gemini_client

    overrides = {
        "host": host,
        "port": port,
        "gemini_api_key": api_key,
        "llm_model_name": model,
        "temperature": temperature,
    }
    settings = dataclasses.replace(Settings(), **{k: v for k, v in overrides.items() if v is not None})
    if not settings.gemini_api_key:
        _fatal_missing_key()

    app = create_app(settings=settings, client=build_gemini_client(settings))
    logger.info(f"Server running on http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="debug" if settings.debug else "info")


@cli.command()
@click.argument('disease')
@click.option('--api-key', envvar='GEMINI_API_KEY', help='Gemini API key. Can be set via GEMINI_API_KEY environment variable.')
@click.option('--base-url', envvar='GEMINI_BASE_URL', default=GEMINI_BASE_URL, help='Gemini REST base URL.')
@click.option('--model', envvar='GEMINI_MODEL', default=DEFAULT_MODEL, help='Gemini model name.')
@click.option('--temperature', envvar='GEMINI_TEMPERATURE', default=DEFAULT_TEMPERATURE, type=float, help='Sampling temperature.')
@click.option('--timeout', envvar='GEMINI_REQUEST_TIMEOUT', default=120.0, type=float, help='Request timeout in seconds.')
def treat(disease, api_key, base_url, model, temperature, timeout):
    """Generates treatment advice for DISEASE and prints it as JSON."""
    if not api_key:
        _fatal_missing_key()

    client = GeminiClient(api_key, base_url, model, temperature, timeout)
    try:
        name = clean_disease_name(disease)
        if not name:
            raise InvalidInputError()
        result = generate_treatment(name, client)
    except TreatmentError as e:
        logger.error(f"{e.error} {e.details or ''}".strip())
        sys.exit(1)
    click.echo(json.dumps({"disease": disease, "data": result.model_dump()}, indent=2, ensure_ascii=False))


def main():
    cli()


if __name__ == '__main__':
    main()
