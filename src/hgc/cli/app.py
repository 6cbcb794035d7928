# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""hgc-deploy command line application."""

from __future__ import annotations

import functools
import logging
import sys

import typer

from hgc import __version__
from hgc.cli.output import print_dim, print_error, print_success, print_warning
from hgc.config import load_config
from hgc.deploy import DeployOptions, deploy
from hgc.exceptions import HgcError
from hgc.union import UNION_TYPES, get_union

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="hgc-deploy",
    help="Launch a Mercury capsule.",
    add_completion=False,
)


def configure_logging(verbose: bool) -> None:
    """Set up logging once for the whole process."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        stream=sys.stderr,
    )


def handle_errors(func):
    """Decorator to report deploy errors and exit non-zero."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except HgcError as e:
            logger.debug("Deploy failed", exc_info=True)
            print_error(str(e))
            raise typer.Exit(1) from None
        except KeyboardInterrupt:
            print_warning("interrupted")
            raise typer.Exit(130) from None
    return wrapper


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"hgc-deploy version {__version__}")
        raise typer.Exit()


@app.command()
@handle_errors
def main(
    capsule: str = typer.Argument(..., help="Name of the capsule template to launch."),
    mount: list[str] | None = typer.Option(
        None,
        "--mount",
        "-m",
        metavar="RESOURCE",
        help="Load the specified resource into the capsule. May be repeated.",
    ),
    repository: str | None = typer.Option(
        None,
        "--repository",
        "-r",
        metavar="REPOSITORY",
        help="Use the specified repository name (defaults to mercury.repo).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output."),
    union_type: str | None = typer.Option(
        None,
        "--union-type",
        "-t",
        metavar="UNION_TYPE",
        help=f"Filesystem used for the union mount: {', '.join(UNION_TYPES)}.",
    ),
    scratch: str | None = typer.Option(
        None, "--scratch", metavar="PATH", help="Directory to create capsule instances in."
    ),
    cleanup: bool = typer.Option(
        False, "--cleanup", help="Remove the instance directory after the capsule exits."
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Launch a Mercury capsule."""
    configure_logging(verbose)
    options = DeployOptions.from_config(load_config())

    if mount:
        options.mounts = list(mount)
    if repository is not None:
        options.repository = repository
    if scratch is not None:
        options.scratch_path = scratch
    if cleanup:
        options.cleanup = True
    if union_type is not None:
        union = get_union(union_type)
        if union is None:
            logger.debug("Ignoring unknown union type %r, using %s", union_type, options.union.name)
        else:
            options.union = union

    instance = deploy(capsule, options)
    print_success(f"Capsule '{instance.id}' finished.")
    if not options.cleanup:
        print_dim(f"Instance left at {instance.path}")


def run() -> None:
    """Console script entry point."""
    app()
