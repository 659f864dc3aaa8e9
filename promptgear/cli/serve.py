"""Transform service CLI command."""

import click

from .main import main


@main.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
@click.option("--port", "-p", default=8787, type=int, help="Port to bind to (default: 8787)")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default="info",
    help="Log level (default: info)",
)
@click.option("--mock", is_flag=True, help="Force mock mode (no upstream calls)")
def serve(host: str, port: int, log_level: str, mock: bool) -> None:
    """Start the transform service.

    \b
    Examples:
        promptgear serve                  Start on port 8787
        promptgear serve --port 8080      Start on port 8080
        promptgear serve --mock           Local development, no API key needed
    """
    from promptgear.config import ServiceConfig
    from promptgear.exceptions import ConfigurationError
    from promptgear.service import run_server

    from ._utils.formatting import print_error

    try:
        config = ServiceConfig.from_env(
            host=host,
            port=port,
            log_level=log_level.upper(),
            mock_transform="true" if mock else None,
        )
    except ConfigurationError as e:
        print_error(str(e))
        raise SystemExit(2) from None

    origins = ", ".join(sorted(config.allowed_origins)) or "(none - all cross-origin denied)"
    click.echo(f"""
PromptGear transform service

  URL:        http://{config.host}:{config.port}
  Mock mode:  {"ENABLED" if config.mock_mode else "DISABLED"}
  Model:      {config.default_model}
  Cache:      {config.cache_backend} (TTL {config.cache_ttl_seconds}s)
  Origins:    {origins}

Endpoints:
  GET  /health       Health check
  POST /transform    Restructure a prompt

Press Ctrl+C to stop.
""")

    try:
        run_server(config)
    except KeyboardInterrupt:
        click.echo("\nShutting down...")
