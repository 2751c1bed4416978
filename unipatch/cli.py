import logging
from pathlib import Path

import typer

from unipatch.config import PatchOptions
from unipatch.logging import get_logger, setup_logging
from unipatch.patch import PatchError, apply_patch

logger = get_logger(__name__)

app = typer.Typer(no_args_is_help = True)


@app.command('apply')
def apply_cmd(
    patch_file: Path = typer.Argument(..., help="Unified diff to apply"),
    strip: int = typer.Option(0, "--strip", "-p", min=0, help="Leading path components to strip"),
    directory: Path = typer.Option(Path('.'), "--directory", "-d", help="Directory to apply the patch under"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Check that the patch applies without writing"),
    allow_symlinks: bool = typer.Option(False, "--allow-symlinks", help="Allow patching through symlinks"),
    encoding: str | None = typer.Option(None, "--encoding", help="Text encoding of the patch and targets"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log each step"),
):
    """
    Apply a unified diff to a directory tree.
    """
    setup_logging(logging.DEBUG if verbose else None)

    options = PatchOptions.from_env(
        strip = strip,
        output_dir = directory,
        encoding = encoding,
        dry_run = dry_run or None,
        allow_symlinks = allow_symlinks or None,
    )

    try:
        result = apply_patch(patch_file, options)
    except PatchError as exc:
        logger.debug('Patch %s failed: %s', patch_file, exc.details)
        typer.echo(f'error: {exc}', err = True)
        raise typer.Exit(code = 1)

    prefix = 'would patch' if result.dry_run else 'patched'
    for applied in result.files:
        path = applied.old_path if applied.new_path is None else applied.new_path
        typer.echo(f'{prefix} {path} ({applied.action}, {applied.hunks} hunks)')
    typer.echo(f'Files: {len(result.files)}')
    logger.debug('Applied %s to %s', patch_file, options.output_dir)


@app.callback()
def main():
    """
    unipatch CLI
    """
    pass
