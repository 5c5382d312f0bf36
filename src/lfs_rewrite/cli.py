"""
lfs-rewrite CLI

Implements 2 CLI verbs with Operations facade integration:
- convert: Rewrite a commit's tree, moving matching blobs into LFS storage
- pointer: Print the LFS pointer for a local file
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .cli_context import CLIContext
from .operations import Operations, OpsConfig, run_and_exit
from .operations.printers import print_pointer, print_rewrite_summary

app = typer.Typer(name="lfs-rewrite", help="Move large blobs of a git tree into LFS storage")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def convert(
    repo: Path = typer.Argument(..., help="Path to the git repository"),
    pattern: Optional[str] = typer.Option(None, "--pattern", "-p", envvar="LFS_REWRITE_PATTERN", help="Glob selecting files to convert, e.g. '*.bin'"),
    ref: str = typer.Option("HEAD", "--ref", help="Branch, ref, commit or tree to rewrite"),
    objects_dir: Optional[Path] = typer.Option(None, "--objects-dir", help="LFS object store root (default: <git-dir>/lfs/objects)"),
    workers: Optional[int] = typer.Option(None, "--workers", help="Number of worker threads"),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed output"),
) -> None:
    """Rewrite the tree of REF, replacing matching files with LFS pointers."""
    _configure_logging(verbose)

    def _convert() -> None:
        context = CLIContext.from_env(repo, pattern=pattern, objects_dir=objects_dir, max_workers=workers)
        ops = Operations(OpsConfig(verbose=verbose), context.settings, context.database)
        result = ops.convert(ref)
        print_rewrite_summary(result, verbose=verbose)

    run_and_exit(_convert)


@app.command()
def pointer(
    path: Path = typer.Argument(..., help="File to render a pointer for"),
    store: bool = typer.Option(False, "--store", help="Also place the file in the LFS object store"),
    repo: Optional[Path] = typer.Option(None, "--repo", help="Git repository whose LFS store receives the file"),
    objects_dir: Optional[Path] = typer.Option(None, "--objects-dir", help="LFS object store root"),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed output"),
) -> None:
    """Print the LFS pointer document for PATH."""
    _configure_logging(verbose)

    def _pointer() -> None:
        # The pattern is irrelevant here; any valid value satisfies Settings
        context = CLIContext.from_env(repo, pattern="*", objects_dir=objects_dir)
        ops = Operations(OpsConfig(verbose=verbose), context.settings, context.database)
        print_pointer(ops.pointer(path, store=store))

    run_and_exit(_pointer)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
