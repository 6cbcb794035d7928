# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Thin wrapper around the external commands hgc drives."""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)


def run(cmd: list[str], *, interactive: bool = False) -> subprocess.CompletedProcess[str]:
    """Run *cmd* and return the completed process.

    Output is captured unless *interactive* is set, in which case the
    command inherits the terminal. A missing executable is reported as
    exit status 127 rather than raised, so callers only need to check
    ``returncode``.
    """
    logger.debug("Running: %s", " ".join(cmd))
    try:
        if interactive:
            return subprocess.run(cmd, text=True)
        return subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError as e:
        return subprocess.CompletedProcess(cmd, 127, "", str(e))


def describe_failure(result: subprocess.CompletedProcess[str]) -> str:
    """Human-readable reason for a failed command."""
    stderr = (result.stderr or "").strip()
    if stderr:
        return stderr
    return f"{result.args[0]} exited with status {result.returncode}"
