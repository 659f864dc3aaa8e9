"""One-shot transform and cache-key commands."""

import asyncio
import json

import click

from .main import main


@main.command()
@click.argument("prompt")
@click.option("--mode", default=None, help="Mode hint (coding, research, travel, writing, ...)")
@click.option("--model", default=None, help="Model identifier (default: DEFAULT_MODEL)")
@click.option("--mock", is_flag=True, help="Force mock mode (no upstream calls)")
@click.option("--json", "as_json", is_flag=True, help="Print the full JSON response body")
def transform(prompt: str, mode: str | None, model: str | None, mock: bool, as_json: bool) -> None:
    """Transform PROMPT once, without starting the HTTP server.

    Runs the same pipeline as POST /transform (mock engine or cache plus
    upstream). Exits with status 1 when the transform fails.

    \b
    Examples:
        promptgear transform "Analyze network security logs" --mode research
        promptgear transform "Fix my flaky test" --mock --json
    """
    from promptgear.config import ServiceConfig
    from promptgear.exceptions import ConfigurationError, RequestValidationError
    from promptgear.models import TransformRequest
    from promptgear.service import TransformService

    from ._utils.formatting import print_error, print_structured_prompt

    try:
        config = ServiceConfig.from_env(mock_transform="true" if mock else None)
        request = TransformRequest.from_payload({"prompt": prompt, "mode": mode, "model": model})
    except (ConfigurationError, RequestValidationError) as e:
        print_error(str(e))
        raise SystemExit(2) from None

    async def run():
        service = TransformService(config)
        await service.startup()
        try:
            return await service.transform(request)
        finally:
            await service.shutdown()

    outcome = asyncio.run(run())

    if as_json:
        click.echo(json.dumps(outcome.body, indent=2))
    elif outcome.ok:
        print_structured_prompt(outcome.body)
    else:
        print_error(f"{outcome.body['error']} (status {outcome.status_code})")

    if not outcome.ok:
        raise SystemExit(1)


@main.command("cache-key")
@click.argument("prompt")
@click.option("--mode", default=None, help="Mode hint")
@click.option("--model", default=None, help="Model identifier (default: DEFAULT_MODEL)")
def cache_key(prompt: str, mode: str | None, model: str | None) -> None:
    """Print the cache key the service would use for a request.

    The prompt is trimmed first, exactly as the service does.
    """
    from promptgear.cache import build_cache_key
    from promptgear.config import ServiceConfig

    resolved_model = model or ServiceConfig.from_env().default_model
    click.echo(build_cache_key(prompt.strip(), mode, resolved_model))
