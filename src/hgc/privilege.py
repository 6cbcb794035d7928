# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Scoped privilege escalation.

The effective uid is process-wide state, so escalation is only ever
done through :func:`with_root`, which pairs every raise with exactly
one restore. Operations that need the raised identity take the yielded
:class:`PrivilegeContext` as an explicit argument instead of checking
``os.geteuid()`` themselves.

Only one deploy may hold the context per process at a time.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from .exceptions import PrivilegeError

logger = logging.getLogger(__name__)

ROOT_UID = 0


@dataclass(frozen=True)
class PrivilegeContext:
    """Proof that the effective uid has been raised for this scope."""

    real_uid: int
    effective_uid: int

    @property
    def is_root(self) -> bool:
        return self.effective_uid == ROOT_UID

    def require_root(self, action: str) -> None:
        """Raise PrivilegeError unless this context runs as root."""
        if not self.is_root:
            raise PrivilegeError(
                f"{action} requires root, running as uid {self.effective_uid}"
            )


@contextmanager
def with_root(target_uid: int = ROOT_UID) -> Iterator[PrivilegeContext]:
    """Run the enclosed block with the effective uid set to *target_uid*.

    The real uid is restored on every exit path, including exceptions
    and ``KeyboardInterrupt``. If escalation fails the block never runs.
    A failed restore is logged and raised as PrivilegeError, chained to
    whatever error was already propagating.
    """
    real_uid = os.getuid()
    try:
        os.seteuid(target_uid)
    except OSError as e:
        raise PrivilegeError(
            f"cannot set effective uid to {target_uid}: {e.strerror or e}"
        ) from e
    try:
        logger.debug("Effective uid raised from %d to %d", real_uid, target_uid)
        yield PrivilegeContext(real_uid=real_uid, effective_uid=target_uid)
    finally:
        try:
            os.seteuid(real_uid)
        except OSError as e:
            logger.error("Failed to restore effective uid %d: %s", real_uid, e)
            raise PrivilegeError(
                f"cannot restore effective uid to {real_uid}: {e.strerror or e}"
            ) from e
        logger.debug("Effective uid restored to %d", real_uid)
