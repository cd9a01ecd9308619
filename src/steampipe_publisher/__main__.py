"""CLI entry point for steampipe-publisher."""

import asyncio
import logging
from pathlib import Path

import typer

from .config import get_config, get_search_root
from .models import LoginSuccess, ManifestValidationError, ReportedError, UploadSuccess
from .session import SessionController
from .storage import load_build_spec
from .tools.locator import ToolLocator
from .tools.manifest import build_upload_manifest, read_manifest, simple_build_spec

cli = typer.Typer(help="Publish builds to Steam through steamcmd.")


def _configure_logging() -> None:
    config = get_config()
    logging.basicConfig(
        level=logging.DEBUG if config.debug else config.log_level.upper(),
        format="%(asctime)s [%(levelname)8s] %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def _controller(sdk_folder: str, tool_path: str) -> SessionController:
    config = get_config()
    controller = SessionController(
        sdk_folder=sdk_folder or config.steamworks_sdk_folder,
        tool_path=tool_path or config.steamcmd_path,
    )
    if not controller.is_tool_found:
        typer.echo("⚠️  steamcmd not found. Use --sdk-folder or --tool-path.", err=True)
    return controller


def _build_spec(
    build_file: Path | None,
    app_id: str | None,
    content_path: str | None,
    description: str,
    branch: str,
    preview: bool,
):
    if build_file is not None:
        spec = load_build_spec(build_file)
    elif app_id and content_path:
        spec = simple_build_spec(app_id, content_path, description, branch)
    else:
        typer.echo("❌ Provide APP_ID and CONTENT_PATH, or --build-file.", err=True)
        raise typer.Exit(code=2)

    if preview:
        spec = spec.model_copy(update={"preview_only": True})
    return spec


@cli.command()
def locate(
    sdk_folder: str = typer.Option("", "--sdk-folder", help="Steamworks SDK folder"),
    tool_path: str = typer.Option("", "--tool-path", help="Direct path to steamcmd"),
):
    """Show which steamcmd would be used."""
    _configure_logging()
    locator = ToolLocator()

    if sdk_folder:
        found = locator.resolve_from_sdk_folder(Path(sdk_folder))
    elif tool_path:
        found = locator.resolve_from_direct_path(Path(tool_path))
    else:
        found = locator.locate(get_search_root())

    if found is None:
        typer.echo("❌ steamcmd not found")
        typer.echo("   Expected: <sdk>/tools/ContentBuilder/builder_linux/steamcmd.sh")
        raise typer.Exit(code=1)

    typer.echo(f"✅ steamcmd: {found}")


@cli.command()
def manifest(
    app_id: str = typer.Argument(None, help="Steam AppID"),
    content_path: str = typer.Argument(None, help="Folder with the build content"),
    description: str = typer.Option("", "--desc", "-d", help="Build description"),
    branch: str = typer.Option("", "--branch", "-b", help="Branch to set live"),
    preview: bool = typer.Option(False, "--preview", help="Preview build, no upload"),
    build_file: Path = typer.Option(None, "--build-file", "-f", help="YAML build description"),
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-o", help="Where to write the manifest"),
):
    """Write an app build manifest without uploading."""
    _configure_logging()
    try:
        spec = _build_spec(build_file, app_id, content_path, description, branch, preview)
        path = build_upload_manifest(spec, output_dir)
    except ManifestValidationError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"📄 Manifest: {path}")
    typer.echo(read_manifest(path))


@cli.command()
def upload(
    username: str = typer.Argument(..., help="Steam account name"),
    app_id: str = typer.Argument(None, help="Steam AppID"),
    content_path: str = typer.Argument(None, help="Folder with the build content"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, envvar="STEAM_PASSWORD"
    ),
    guard_code: str = typer.Option("", "--guard-code", "-g", help="Steam Guard code"),
    description: str = typer.Option("", "--desc", "-d", help="Build description"),
    branch: str = typer.Option("", "--branch", "-b", help="Branch name"),
    set_live: bool = typer.Option(False, "--set-live", help="Set the branch live after upload"),
    preview: bool = typer.Option(False, "--preview", help="Preview build, no upload"),
    build_file: Path = typer.Option(None, "--build-file", "-f", help="YAML build description"),
    sdk_folder: str = typer.Option("", "--sdk-folder", help="Steamworks SDK folder"),
    tool_path: str = typer.Option("", "--tool-path", help="Direct path to steamcmd"),
):
    """Log in and upload a build."""
    _configure_logging()
    try:
        spec = _build_spec(
            build_file, app_id, content_path, description, branch if set_live else "", preview
        )
    except ManifestValidationError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)

    controller = _controller(sdk_folder, tool_path)

    async def login_and_upload() -> bool:
        login_outcome = await controller.login(username, password, guard_code)
        if not isinstance(login_outcome, LoginSuccess):
            return False
        upload_outcome = await controller.upload(spec)
        return isinstance(upload_outcome, UploadSuccess)

    with controller.log.subscribe(typer.echo), controller.status.subscribe(_echo_status):
        success = asyncio.run(login_and_upload())

    if success:
        typer.echo(f"✅ Build uploaded for app {spec.app_id}")
    else:
        typer.echo(f"❌ Upload failed for app {spec.app_id}")
        raise typer.Exit(code=1)


@cli.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def run(
    args: list[str] = typer.Argument(..., help="Arguments passed to steamcmd"),
    sdk_folder: str = typer.Option("", "--sdk-folder", help="Steamworks SDK folder"),
    tool_path: str = typer.Option("", "--tool-path", help="Direct path to steamcmd"),
):
    """Run steamcmd with raw arguments, e.g. run +login anonymous +quit."""
    _configure_logging()
    controller = _controller(sdk_folder, tool_path)

    with controller.log.subscribe(typer.echo), controller.status.subscribe(_echo_status):
        result = asyncio.run(controller.run_command(args))

    if isinstance(result, ReportedError) or result.exit_code != 0:
        raise typer.Exit(code=1)


def _echo_status(message: str) -> None:
    typer.echo(f"📊 {message}")


def main():
    cli()


if __name__ == "__main__":
    main()
