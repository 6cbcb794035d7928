# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""LXC configuration files and container process control.

Container processes are driven through the ``lxc-*`` command line
tools; their internals are opaque to hgc.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from . import shell
from .exceptions import CapsuleProcessError

logger = logging.getLogger(__name__)

# Keys rewritten when a capsule is cloned from its template.
ROOTFS_KEY = "lxc.rootfs"
MOUNT_KEY = "lxc.mount"
UTSNAME_KEY = "lxc.utsname"

# LXC 2.1 renamed them; templates may use either spelling.
KEY_ALIASES = {
    ROOTFS_KEY: "lxc.rootfs.path",
    MOUNT_KEY: "lxc.mount.fstab",
    UTSNAME_KEY: "lxc.uts.name",
}

DEFAULT_CONSOLE_DELAY = 1.0
DEFAULT_CONSOLE_TTY = 1


@dataclass
class LxcConfig:
    """An LXC ``key = value`` configuration file.

    Lines are kept in order; comments and blank lines are stored as
    ``(None, text)`` and written back untouched. A key may repeat.
    """

    lines: list[tuple[str | None, str]] = field(default_factory=list)

    @classmethod
    def loads(cls, text: str) -> "LxcConfig":
        lines: list[tuple[str | None, str]] = []
        for raw in text.splitlines():
            stripped = raw.strip()
            if not stripped or stripped.startswith("#") or "=" not in stripped:
                lines.append((None, raw))
                continue
            key, _, value = stripped.partition("=")
            lines.append((key.strip(), value.strip()))
        return cls(lines)

    @classmethod
    def read(cls, path: str | Path) -> "LxcConfig":
        return cls.loads(Path(path).read_text())

    def dumps(self) -> str:
        return "".join(
            f"{value}\n" if key is None else f"{key} = {value}\n"
            for key, value in self.lines
        )

    def write(self, path: str | Path) -> None:
        Path(path).write_text(self.dumps())

    def get(self, key: str) -> list[str]:
        """All values of *key*, in file order."""
        return [v for k, v in self.lines if k == key]

    def set(self, key: str, values: list[str]) -> "LxcConfig":
        """Replace every occurrence of *key* with *values*.

        The new lines go where the key first appeared, or at the end of
        the file when it was absent.
        """
        new = [(key, v) for v in values]
        out: list[tuple[str | None, str]] = []
        placed = False
        for k, v in self.lines:
            if k == key:
                if not placed:
                    out.extend(new)
                    placed = True
                continue
            out.append((k, v))
        if not placed:
            out.extend(new)
        self.lines = out
        return self

    def remove(self, key: str) -> "LxcConfig":
        """Drop every occurrence of *key*."""
        self.lines = [(k, v) for k, v in self.lines if k != key]
        return self

    def set_aliased(self, key: str, values: list[str]) -> "LxcConfig":
        """Set *key*, or its newer spelling if the file already uses that.

        The spelling not chosen is removed, so only one value survives.
        """
        alias = KEY_ALIASES.get(key)
        if alias and self.get(alias):
            return self.remove(key).set(alias, values)
        if alias:
            self.remove(alias)
        return self.set(key, values)


# =============================================================================
# Process control
# =============================================================================


def start_daemon(capsule_id: str, config_path: str | Path) -> None:
    """Start the container in the background."""
    result = shell.run(["lxc-start", "-n", capsule_id, "-f", str(config_path), "-d"])
    if result.returncode != 0:
        raise CapsuleProcessError(capsule_id, f"start failed: {shell.describe_failure(result)}")


def stop(capsule_id: str) -> None:
    result = shell.run(["lxc-stop", "-n", capsule_id])
    if result.returncode != 0:
        raise CapsuleProcessError(capsule_id, f"stop failed: {shell.describe_failure(result)}")
    logger.debug("Stopped capsule %s", capsule_id)


def wait_until_ready(
    capsule_id: str,
    delay: float = DEFAULT_CONSOLE_DELAY,
    wait_timeout: int = 0,
) -> None:
    """Wait for the console of a freshly started capsule.

    With ``wait_timeout`` > 0, first block in ``lxc-wait`` until the
    container reports RUNNING. The fixed *delay* always follows, since
    RUNNING does not mean the console getty is up.
    """
    if wait_timeout > 0:
        result = shell.run([
            "lxc-wait", "-n", capsule_id, "-s", "RUNNING", "-t", str(wait_timeout),
        ])
        if result.returncode != 0:
            raise CapsuleProcessError(
                capsule_id, f"not RUNNING after {wait_timeout}s: {shell.describe_failure(result)}"
            )
    if delay > 0:
        time.sleep(delay)


def attach_console(
    capsule_id: str,
    tty: int = DEFAULT_CONSOLE_TTY,
    delay: float = DEFAULT_CONSOLE_DELAY,
    wait_timeout: int = 0,
) -> None:
    """Attach the terminal to the capsule console until the user detaches."""
    wait_until_ready(capsule_id, delay, wait_timeout)
    logger.debug("Attaching console %d of %s", tty, capsule_id)
    result = shell.run(["lxc-console", "-n", capsule_id, "-t", str(tty)], interactive=True)
    if result.returncode != 0:
        raise CapsuleProcessError(capsule_id, f"console exited with status {result.returncode}")


@contextmanager
def with_running_capsule(capsule_id: str, config_path: str | Path) -> Iterator[str]:
    """Keep the capsule running for the duration of the block.

    If the start fails the block is not entered. The capsule is stopped
    on every exit path; a stop failure is logged as a cleanup warning
    and only raised when the block itself succeeded.
    """
    start_daemon(capsule_id, config_path)
    try:
        logger.debug("Started capsule %s", capsule_id)
        yield capsule_id
    except BaseException:
        try:
            stop(capsule_id)
        except CapsuleProcessError as e:
            logger.warning("Cleanup: %s", e)
        raise
    else:
        try:
            stop(capsule_id)
        except CapsuleProcessError as e:
            logger.warning("Cleanup: %s", e)
            raise
