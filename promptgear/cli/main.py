"""Main CLI entry point for PromptGear."""

import click
from dotenv import load_dotenv


def get_version() -> str:
    """Get the current version."""
    try:
        from promptgear import __version__

        return __version__
    except ImportError:
        return "unknown"


@click.group()
@click.version_option(version=get_version(), prog_name="promptgear")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=".env",
    show_default=True,
    help="Load environment variables from this file if it exists",
)
@click.pass_context
def main(ctx: click.Context, env_file: str) -> None:
    """PromptGear - restructure raw prompts through an upstream LLM.

    Configuration comes from the environment (OPENAI_API_KEY, DEFAULT_MODEL,
    MOCK_TRANSFORM, ALLOWED_ORIGINS, PROMPTGEAR_*). Variables already set in
    the environment win over the env file.

    \b
    Examples:
        promptgear serve                    Start the transform service
        promptgear transform "Plan a trip"  Transform one prompt locally
        promptgear cache-key "Plan a trip"  Print the cache key of a request
    """
    ctx.ensure_object(dict)
    load_dotenv(env_file, override=False)


# Import subcommands - these register themselves with the main group
def _register_commands() -> None:
    """Register all subcommands."""
    from . import (
        serve,  # noqa: F401
        transform,  # noqa: F401
    )


_register_commands()

if __name__ == "__main__":
    main()
