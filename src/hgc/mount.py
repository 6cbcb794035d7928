# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Mount descriptors, the fstab codec and scoped union mounts."""

from __future__ import annotations

import logging
import os
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator

from . import shell
from .exceptions import MountError, ResourceCreationError
from .privilege import PrivilegeContext
from .union import UnionMount

logger = logging.getLogger(__name__)

# fstab escapes whitespace and backslashes in paths as octal sequences.
_FSTAB_ESCAPES = {"\\": "\\134", " ": "\\040", "\t": "\\011", "\n": "\\012"}
_OCTAL_RE = re.compile(r"\\([0-7]{3})")


class MountFlag(str, Enum):
    """Mount flags understood by mount(8) and lxc.mount."""

    BIND = "bind"
    RBIND = "rbind"
    RO = "ro"
    RW = "rw"


def _escape(value: str) -> str:
    return "".join(_FSTAB_ESCAPES.get(c, c) for c in value)


def _unescape(value: str) -> str:
    return _OCTAL_RE.sub(lambda m: chr(int(m.group(1), 8)), value)


@dataclass
class MountSpec:
    """Declarative description of one mount.

    Used both for the union mount hgc performs itself and for the bind
    entries written to the capsule's fstab for LXC to perform.
    """

    source: str
    target: str
    fstype: str = "none"
    flags: list[MountFlag] = field(default_factory=list)
    options: list[str] = field(default_factory=list)

    @property
    def mount_options(self) -> str:
        """Comma-joined flags followed by free-form options."""
        return ",".join([f.value for f in self.flags] + list(self.options))

    def to_fstab_line(self) -> str:
        return " ".join([
            _escape(self.source),
            _escape(self.target),
            self.fstype,
            self.mount_options or "defaults",
            "0",
            "0",
        ])

    @classmethod
    def from_fstab_line(cls, line: str) -> "MountSpec":
        fields = line.split()
        if len(fields) < 4:
            raise ValueError(f"malformed fstab line: {line!r}")
        source, target, fstype, opts = fields[:4]
        flags: list[MountFlag] = []
        options: list[str] = []
        for opt in opts.split(","):
            if opt == "defaults":
                continue
            try:
                flags.append(MountFlag(opt))
            except ValueError:
                options.append(opt)
        return cls(_unescape(source), _unescape(target), fstype, flags, options)


def bind_mount(source: str | Path, target: str | Path) -> MountSpec:
    """Bind-mount descriptor for *source* at *target*."""
    return MountSpec(str(source), str(target), "none", [MountFlag.BIND], [])


def read_fstab(path: str | Path) -> list[MountSpec]:
    """Parse every entry of an fstab file, skipping blanks and comments."""
    specs: list[MountSpec] = []
    for line in Path(path).read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        specs.append(MountSpec.from_fstab_line(stripped))
    return specs


def append_fstab(existing: str, specs: Iterable[MountSpec]) -> str:
    """Return *existing* fstab text with one row per spec appended."""
    if existing and not existing.endswith("\n"):
        existing += "\n"
    return existing + "".join(f"{s.to_fstab_line()}\n" for s in specs)


def write_fstab(path: str | Path, specs: Iterable[MountSpec], header: str = "") -> None:
    """Write *specs* as fstab rows after the verbatim *header* text."""
    Path(path).write_text(append_fstab(header, specs))


# =============================================================================
# mount(8) / umount(8)
# =============================================================================


def mount(ctx: PrivilegeContext, spec: MountSpec) -> None:
    """Perform *spec*. Raises MountError on failure."""
    ctx.require_root("mount")
    cmd = ["mount"]
    if spec.fstype and spec.fstype != "none":
        cmd += ["-t", spec.fstype]
    if spec.mount_options:
        cmd += ["-o", spec.mount_options]
    cmd += [spec.source, spec.target]

    result = shell.run(cmd)
    if result.returncode != 0:
        raise MountError(spec.target, shell.describe_failure(result))


def umount(ctx: PrivilegeContext, target: str | Path) -> None:
    """Unmount *target*. Raises MountError on failure."""
    ctx.require_root("umount")
    result = shell.run(["umount", str(target)])
    if result.returncode != 0:
        raise MountError(target, shell.describe_failure(result))
    logger.debug("Unmounted %s", target)


def _mkdir(path: Path) -> None:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise ResourceCreationError(path, e.strerror or str(e)) from e


@contextmanager
def with_union_mount(
    ctx: PrivilegeContext,
    union: UnionMount,
    lower: str | Path,
    scratch: str | Path,
    image: str | Path,
) -> Iterator[MountSpec]:
    """Union-mount *lower* (ro) and *scratch* (rw) on *image* for the block.

    ``image`` is unmounted on every exit path. When the block fails, an
    unmount failure is logged and the block's own error propagates;
    when the block succeeds, the unmount failure is raised.
    """
    scratch, image = Path(scratch), Path(image)
    _mkdir(scratch)
    _mkdir(image)

    spec = MountSpec(
        source="none",
        target=str(image),
        fstype=union.name,
        options=[union.format(str(lower), str(scratch))],
    )
    mount(ctx, spec)
    try:
        logger.debug("Mounted %s on %s (%s)", spec.source, spec.target, spec.fstype)
        yield spec
    except BaseException:
        try:
            umount(ctx, image)
        except MountError as e:
            logger.warning("Could not unmount %s during unwind: %s", image, e)
        raise
    else:
        umount(ctx, image)
