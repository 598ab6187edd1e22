"""Thin CLI wrapper for gobinaries.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
import shutil
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from gobinaries import __version__
from gobinaries.config import get_settings, print_settings_json
from gobinaries.types import LATEST

app = typer.Typer(
    name="gobinaries",
    help="gobinaries - resolve, build and cache Go binaries on demand",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"gobinaries version {__version__}")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override the configured log level"),
    ] = None,
) -> None:
    """gobinaries - resolve, build and cache Go binaries on demand."""
    configure_logging((log_level or get_settings().log_level).upper())


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
        return

    scratch_display = (
        str(settings.scratch_dir) if settings.scratch_dir else "(system default)"
    )
    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Storage:[/bold]")
    console.print(f"  Storage directory:   {settings.storage_dir}")
    console.print(f"  Key prefix:          {settings.storage_prefix or '(none)'}")
    console.print()
    console.print("[bold]Builds:[/bold]")
    console.print(f"  Scratch directory:   {scratch_display}")
    console.print(f"  Go toolchain:        {settings.go_binary}")
    console.print(f"  Default platform:    {settings.default_os}/{settings.default_arch}")
    console.print()
    console.print("[bold]Upstream:[/bold]")
    console.print(f"  GitHub API:          {settings.github_api_url}")
    console.print(
        f"  GitHub token:        {'set' if settings.github_token else '(not set)'}"
    )
    console.print()
    console.print("[bold]Timeouts (seconds):[/bold]")
    console.print(f"  Resolve timeout:     {settings.resolve_timeout}")
    console.print(f"  Build timeout:       {settings.build_timeout}")
    console.print(f"  Wait timeout:        {settings.wait_timeout}")


@app.command()
def resolve(
    module: Annotated[str, typer.Argument(help="Module path, e.g. github.com/tj/triage")],
    version: Annotated[
        str,
        typer.Option("--version", "-v", help="Tag, constraint, or 'latest'"),
    ] = LATEST,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Resolve a module version to a published tag."""
    from gobinaries.builds.service import create_binary_service
    from gobinaries.resolver.errors import ResolutionError

    service = create_binary_service()
    try:
        resolved = service.resolver.resolve(module, version)
    except ResolutionError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from None
    finally:
        service.close()

    if json_output:
        output = {
            "module": resolved.module,
            "version": resolved.version,
            "major": resolved.major,
        }
        console.print(json.dumps(output, indent=2))
    else:
        console.print(f"[green]{resolved.module}@{resolved.version}[/green]")


@app.command()
def build(
    module: Annotated[str, typer.Argument(help="Module path, e.g. github.com/tj/triage")],
    version: Annotated[
        str,
        typer.Option("--version", "-v", help="Tag, constraint, or 'latest'"),
    ] = LATEST,
    goos: Annotated[
        str | None,
        typer.Option("--os", help="Target GOOS (default from settings)"),
    ] = None,
    goarch: Annotated[
        str | None,
        typer.Option("--arch", help="Target GOARCH, armv<N> for ARM profiles"),
    ] = None,
    cgo: Annotated[
        str,
        typer.Option("--cgo", help="Enable CGO (true/false)"),
    ] = "false",
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the binary to this path"),
    ] = None,
) -> None:
    """Build (or fetch from cache) a module's binary."""
    from gobinaries.builds.builder import NotExecutableError
    from gobinaries.builds.runner import BuildError
    from gobinaries.builds.service import create_binary_service
    from gobinaries.resolver.errors import ResolutionError
    from gobinaries.storage.base import StorageError

    settings = get_settings()
    service = create_binary_service(settings)
    try:
        target, stream = service.serve(
            module,
            version,
            goos or settings.default_os,
            goarch or settings.default_arch,
            cgo,
        )
    except (ResolutionError, NotExecutableError, StorageError, ValueError) as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from None
    except BuildError as e:
        err_console.print(f"[red]{e}[/red]")
        if e.stderr:
            err_console.print(e.stderr, markup=False, highlight=False)
        raise typer.Exit(code=1) from None
    finally:
        service.close()

    destination = output or Path(target.name)
    with stream, destination.open("wb") as f:
        shutil.copyfileobj(stream, f)
    destination.chmod(0o755)
    console.print(f"[green]Wrote {target} to {destination}[/green]")


cache_app = typer.Typer(help="Manage the build cache")
app.add_typer(cache_app, name="cache")


@cache_app.command("clear")
def cache_clear(
    keep_artifacts: Annotated[
        bool,
        typer.Option(
            "--keep-artifacts",
            help="Only wipe the host Go module cache; stored binaries stay served",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation"),
    ] = False,
) -> None:
    """Wipe the Go module cache and stored binaries."""
    from gobinaries.builds.builder import CacheClearError
    from gobinaries.builds.service import create_binary_service
    from gobinaries.storage.base import StorageError

    if not yes:
        typer.confirm("Wipe the whole build cache?", abort=True)

    service = create_binary_service()
    try:
        service.clear_cache(artifacts=not keep_artifacts)
    except (CacheClearError, StorageError) as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from None
    finally:
        service.close()

    if keep_artifacts:
        console.print(
            "[green]Module cache cleared[/green] (stored binaries kept and still served)"
        )
    else:
        console.print("[green]Cache cleared[/green] (stored binaries removed)")


if __name__ == "__main__":
    app()
