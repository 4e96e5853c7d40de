"""
Conduit CLI - Main entry point.

Commands:
    conduit manifest        - Print an extension's manifest
    conduit process <file>  - Run a batch file through an extension
    conduit serve           - Serve an extension over HTTP
    conduit version         - Show the version
"""
import asyncio
import json
from pathlib import Path

import typer
from pydantic import ValidationError

from conduit_common import EventProcessingRequest

from ..errors import ConduitError
from ..loader import load_extension
from ..registration import RegistrationService

DEFAULT_EXTENSION = "conduit.sample:extension"

app = typer.Typer(
    name="conduit",
    help="Conduit CLI - inspect and run capability-declaring extensions.",
    no_args_is_help=True,
)

ExtensionOption = typer.Option(
    DEFAULT_EXTENSION,
    "--extension",
    "-e",
    help="Extension import path (module:attribute).",
)


def _load(path: str):
    try:
        return load_extension(path)
    except ConduitError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(2)


@app.command()
def manifest(extension: str = ExtensionOption):
    """
    Print the extension's registration document as JSON.
    """
    ext = _load(extension)
    document = RegistrationService.document(ext.process_registration_request())
    typer.echo(json.dumps(document, indent=2))


@app.command()
def process(
    batch_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Batch JSON file."),
    extension: str = ExtensionOption,
):
    """
    Process an event batch file and print the response.

    Exits with status 1 when the batch is rejected.
    """
    ext = _load(extension)
    try:
        batch = EventProcessingRequest.model_validate_json(batch_file.read_text())
    except ValidationError as e:
        typer.echo(f"❌ Invalid batch file: {e}", err=True)
        raise typer.Exit(2)

    response = asyncio.run(ext.process_event_processing_request(batch))
    typer.echo(response.model_dump_json(by_alias=True, indent=2))
    if response.is_rejected:
        raise typer.Exit(1)


@app.command()
def serve(
    extension: str = ExtensionOption,
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8090, help="Bind port."),
):
    """
    Serve the extension over HTTP.
    """
    import os
    import uvicorn

    # Read by conduit_service.config on import
    os.environ["CONDUIT_EXTENSION"] = extension
    typer.echo(f"🚀 Serving {extension} on http://{host}:{port}")
    uvicorn.run("conduit_service.main:app", host=host, port=port)


@app.command()
def version():
    """
    Show the Conduit version.
    """
    from conduit import __version__
    typer.echo(f"Conduit v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
