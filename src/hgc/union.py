# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Union filesystem drivers.

Each driver knows its filesystem type name and how to spell a
read-only lower branch plus a writable upper branch as mount options.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class UnionMount:
    """A union filesystem variant."""

    name: str
    formatter: Callable[[str, str], str]

    def format(self, lower: str, upper: str) -> str:
        """Format the lower (ro) and upper (rw) branches as mount options."""
        return self.formatter(str(lower), str(upper))


AUFS = UnionMount(
    "aufs",
    lambda lower, upper: f"br={upper}=rw:{lower}=ro",
)

OVERLAYFS = UnionMount(
    "overlayfs",
    lambda lower, upper: f"lowerdir={lower},upperdir={upper}",
)

UNION_TYPES: dict[str, UnionMount] = {u.name: u for u in (AUFS, OVERLAYFS)}


def get_union(name: str) -> UnionMount | None:
    """Look up a union driver by name, or None if it is not supported."""
    return UNION_TYPES.get(name)
