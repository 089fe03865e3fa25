# projecttree/cli.py

import asyncio
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from .services.logging import setup_logging
from .config.loader import get_config, load_config, save_config
from .core.fs_scanner import _FileScannerCore
from .core.loaders import ProjectLoaders
from .core.models import TreeNode
from .core.rendering import format_rows
from .core.tree_view import TreeView
from . import __version__

# Handlers are loaded via __init__

# --- Typer App ---
app = typer.Typer(help="ProjectTree CLI - Inspect and configure the project explorer headlessly.")

def version_callback(value: bool):
    if value:
        print(f"ProjectTree CLI Version: {__version__}")
        raise typer.Exit()

@app.callback()
def main_options(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: Optional[bool] = typer.Option(None, "--version", callback=version_callback, is_eager=True, help="Show version and exit."),
):
    """ Main callback to set up logging """
    log_level = "DEBUG" if verbose else "INFO"
    setup_logging(level=log_level, verbose=verbose)
    logger.info(f"Log level set to: {log_level}")
    ctx.ensure_object(dict)
    ctx.obj["VERBOSE"] = verbose


def _build_view(repo: Optional[Path], name: Optional[str]) -> TreeView:
    """TreeView over `repo` when given, otherwise over the configured project."""
    config = get_config()
    loaders = ProjectLoaders(progress_callback=logger.debug, error_callback=logger.warning)

    if repo is None:
        load_snapshot = loaders.load_filesystem_snapshot
    else:
        async def load_snapshot() -> TreeNode:
            scanner = _FileScannerCore(root_path=repo, ignore_patterns=config.ignore_patterns,
                                       progress_callback=logger.debug, error_callback=logger.warning)
            return await asyncio.get_running_loop().run_in_executor(None, scanner.scan_snapshot_sync)

    if name:
        async def load_name() -> str:
            return name
    elif repo is not None:
        async def load_name() -> str:
            return repo.name
    else:
        load_name = loaders.load_project_name

    return TreeView(load_snapshot, load_name, config.tree)


@app.command()
def show(
    repo: Optional[Path] = typer.Option(None, "--repo", "-r", help="Repository to show instead of the configured project.", exists=True, file_okay=False, dir_okay=True, readable=True, resolve_path=True),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Override the project name shown on the root row."),
    expand_all: bool = typer.Option(False, "--expand-all", "-a", help="Expand every folder instead of only the configured ones."),
):
    """
    Loads the project tree the way the explorer panel does and prints the visible rows.
    """
    view = _build_view(repo, name)
    try:
        asyncio.run(view.initialize())
    except Exception as e:
        logger.exception(f"Unexpected error while loading the project tree: {e}")
        raise typer.Exit(code=1)

    if view.error:
        logger.error(f"Project tree could not be loaded: {view.error}")
        raise typer.Exit(code=1)

    if expand_all:
        for node in view.model.iter_nodes():
            if node.is_directory:
                view.selection.set_expanded(node.id, True)

    for line in format_rows(view.rows()):
        typer.echo(line)
    logger.info(f"Printed {len(view.model)} nodes of '{view.project_name}'.")


@app.command("set-project")
def set_project(
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Project folder to show in the explorer.", exists=True, file_okay=False, dir_okay=True, resolve_path=True),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Project name shown on the root row."),
):
    """
    Stores the project name and/or folder in the user configuration.
    """
    if path is None and name is None:
        logger.error("Nothing to update: pass --path and/or --name.")
        raise typer.Exit(code=1)

    config = load_config()
    if path is not None:
        config.project.filepath = path.as_posix()
    if name is not None:
        config.project.name = name
    try:
        save_config(config)
    except (OSError, TypeError) as e:
        logger.error(f"Could not save configuration: {e}")
        raise typer.Exit(code=1)
    logger.success(f"Project set to '{config.project.name}' at {config.project.filepath or '(no folder)'}")


@app.command()
def gui():
    """
    Opens the desktop explorer panel.
    """
    # Qt is only imported when the panel is actually requested
    from .ui.application import run
    exit_code = run()
    raise typer.Exit(code=exit_code)


if __name__ == "__main__":
    app()
