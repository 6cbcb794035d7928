# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Inject the invoking user's account into a capsule image."""

from __future__ import annotations

import logging
import os
import pwd
from pathlib import Path

from .exceptions import IdentityLookupError, ResourceCreationError

logger = logging.getLogger(__name__)

PASSWD_PATH = "etc/passwd"
HOME_ROOT = "/home"


def _inside_image(image: Path, path: Path) -> Path:
    """Resolve *path* and make sure no symlink leads it out of *image*."""
    resolved = path.resolve()
    if not resolved.is_relative_to(image.resolve()):
        raise ResourceCreationError(path, f"resolves outside the capsule image to {resolved}")
    return resolved


def format_passwd_entry(entry: pwd.struct_passwd, home: str | None = None) -> str:
    """Serialize *entry* as a passwd line, optionally with another home."""
    return ":".join([
        entry.pw_name,
        entry.pw_passwd,
        str(entry.pw_uid),
        str(entry.pw_gid),
        entry.pw_gecos,
        home if home is not None else entry.pw_dir,
        entry.pw_shell,
    ])


def add_user(uid: int, image: str | Path) -> str:
    """Add the account for *uid* to the capsule rooted at *image*.

    Creates ``<image>/home/<name>`` owned by *uid* (group untouched) and
    appends the account to ``<image>/etc/passwd`` with that home. Returns
    the appended line. Lines already written are not rolled back.
    """
    logger.debug("Adding user with ID %d into container", uid)
    try:
        entry = pwd.getpwuid(uid)
    except KeyError as e:
        raise IdentityLookupError(uid) from e

    image = Path(image)
    home = f"{HOME_ROOT}/{entry.pw_name}"
    host_home = _inside_image(image, image / home.lstrip("/"))
    logger.debug("Username: %s, homedir: %s", entry.pw_name, home)

    try:
        host_home.mkdir(parents=True, exist_ok=True)
        os.chown(host_home, uid, -1)
    except OSError as e:
        raise ResourceCreationError(host_home, e.strerror or str(e)) from e

    line = format_passwd_entry(entry, home=home)
    passwd = _inside_image(image, image / PASSWD_PATH)
    logger.debug("Adding passwd entry: %s", line)
    try:
        fd = os.open(passwd, os.O_WRONLY | os.O_APPEND | os.O_NOFOLLOW)
        with os.fdopen(fd, "a") as f:
            f.write(line + "\n")
    except OSError as e:
        raise ResourceCreationError(passwd, e.strerror or str(e)) from e
    return line
