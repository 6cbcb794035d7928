# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""CLI output formatting using rich."""

from rich.console import Console

console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    err_console.print(f"[red]error:[/red] {message}")


def print_warning(message: str) -> None:
    err_console.print(f"[yellow]warning:[/yellow] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def print_dim(message: str) -> None:
    console.print(f"[dim]{message}[/dim]")
