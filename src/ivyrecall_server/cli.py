"""ivyrecall CLI - Command line interface for the recall server."""
import asyncio
import json

import click

from scitrera_app_framework import get_variables

_REDACTED_MARKERS = ('password', 'secret', 'credentials', 'token', 'key')


def _redacted_settings(v) -> dict:
    return {
        k.removeprefix('IVYRECALL_'): '(redacted)' if any(x in k.lower() for x in _REDACTED_MARKERS) else val
        for (k, val) in sorted(v.export_all_variables().items(), key=lambda kv: kv[0])
        if k.startswith('IVYRECALL')
    }


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logs")
def cli(verbose: bool):
    """ivyrecall - Integrity-aware memory recall for conversational agents."""
    v = get_variables()  # get variables instance prior to preconfigure() call
    if verbose:
        v.set("LOGGING_LEVEL", "DEBUG")


@cli.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
def serve(host: str, port: int):
    """Start the HTTP REST API server."""
    import uvicorn
    from ivyrecall_server.config import (
        IVYRECALL_SERVER_HOST, IVYRECALL_SERVER_PORT, DEFAULT_IVYRECALL_SERVER_HOST, DEFAULT_IVYRECALL_SERVER_PORT
    )
    from ivyrecall_server.dependencies import preconfigure
    from ivyrecall_server.lifecycle.fastapi import fastapi_app_factory

    # preconfigure ensures that plugins are registered
    v, _ = preconfigure()
    if host is None:
        host = v.environ(IVYRECALL_SERVER_HOST, default=DEFAULT_IVYRECALL_SERVER_HOST)
    if port is None:
        port = v.environ(IVYRECALL_SERVER_PORT, default=DEFAULT_IVYRECALL_SERVER_PORT, type_fn=int)

    app = fastapi_app_factory(v)

    click.echo(f"Starting ivyrecall server on {host}:{port}")
    uvicorn.run(
        app,
        host=host,
        port=port,
        reload=False,
    )


@cli.command()
def version():
    """Show version information."""
    from ivyrecall_server import __version__
    click.echo(f"ivyrecall v{__version__}")


@cli.command()
@click.argument("query")
@click.option("--user", "-u", "user_id", required=True, help="User whose memories are searched")
@click.option("--session", "-s", "session_id", default=None, help="Active session ID")
@click.option("--emotion", "emotions", multiple=True, help="Emotion filter (repeatable)")
@click.option("--deep", is_flag=True, help="Use the deep recall depth")
@click.option("--max-depth", default=None, type=int, help="Recall depth before integrity scaling")
@click.option("--consolidation", type=click.Choice(["raw", "clustered", "synthesized"]), default="synthesized",
              help="Response shape")
@click.option("--awareness", is_flag=True, help="Include the awareness block")
def recall(query: str, user_id: str, session_id: str, emotions: tuple, deep: bool, max_depth: int,
           consolidation: str, awareness: bool):
    """Run a recall against the configured store and print the result as JSON."""
    from ivyrecall_server.dependencies import initialize_services, shutdown_services
    from ivyrecall_server.models import RecallInput
    from ivyrecall_server.services.recall import get_recall_service, RecallValidationError

    recall_input = RecallInput(
        user_id=user_id,
        query=query,
        session_id=session_id,
        emotion_filter=list(emotions),
        depth='deep' if deep else None,
        max_depth=max_depth,
        consolidation_level=consolidation,
        awareness_mode=awareness,
    )

    async def _run() -> dict:
        v = await initialize_services(get_variables())
        try:
            result = await get_recall_service(v).recall(recall_input)
            return result.model_dump(mode='json', by_alias=True)
        finally:
            await shutdown_services(v)

    try:
        output = asyncio.run(_run())
    except RecallValidationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(2)

    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.option("--format", "output_format", default="text", type=click.Choice(["text", "json"]))
def info(output_format: str):
    """Show system information and configuration."""
    from ivyrecall_server.dependencies import initialize_sync

    v = get_variables()
    v.set("LOGGING_LEVEL", "ERROR")  # suppress logs during info output
    v = initialize_sync(v)
    settings = _redacted_settings(v)

    if output_format == "json":
        click.echo(json.dumps(settings, indent=2, default=str))
    else:
        click.echo("ivyrecall Configuration")
        click.echo("=" * 40)
        for k, val in settings.items():
            click.echo(f"{k}: {val}")
        click.echo("")


if __name__ == "__main__":
    cli()
