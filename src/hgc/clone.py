# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Materialize a capsule instance from its template.

On-disk layout of an instance, rooted at ``<scratch_path>/<id>/``::

    config        derived LXC configuration
    fstab         template fstab plus one bind entry per resource
    scratch/      writable union branch
    scratch/mnt/  mount points for requested resources
    image/        merged union view, the capsule root
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import ResourceCreationError
from .lxc import MOUNT_KEY, ROOTFS_KEY, UTSNAME_KEY, LxcConfig
from .mount import MountSpec, bind_mount, write_fstab

logger = logging.getLogger(__name__)

CONFIG_FILE = "config"
FSTAB_FILE = "fstab"
ROOTFS_DIR = "rootfs"
SCRATCH_DIR = "scratch"
IMAGE_DIR = "image"
MNT_DIR = "mnt"


@dataclass(frozen=True)
class CapsuleTemplate:
    """An immutable capsule template inside a repository."""

    repository: str
    name: str
    base: Path

    @property
    def path(self) -> Path:
        return Path(self.base) / self.repository / self.name

    @property
    def rootfs(self) -> Path:
        return self.path / ROOTFS_DIR

    @property
    def config(self) -> Path:
        return self.path / CONFIG_FILE

    @property
    def fstab(self) -> Path:
        return self.path / FSTAB_FILE


@dataclass
class CapsuleInstance:
    """One deployment of a template."""

    id: str
    path: Path
    template: CapsuleTemplate
    mounts: list[MountSpec] = field(default_factory=list)

    @property
    def config(self) -> Path:
        return self.path / CONFIG_FILE

    @property
    def fstab(self) -> Path:
        return self.path / FSTAB_FILE

    @property
    def scratch(self) -> Path:
        return self.path / SCRATCH_DIR

    @property
    def image(self) -> Path:
        return self.path / IMAGE_DIR

    @property
    def scratch_mnt(self) -> Path:
        return self.scratch / MNT_DIR

    @property
    def image_mnt(self) -> Path:
        return self.image / MNT_DIR


def _mount_point_name(source: str, taken: set[str]) -> str:
    base = os.path.basename(os.path.normpath(source)) or "root"
    name, n = base, 1
    while name in taken:
        name = f"{base}_{n}"
        n += 1
    taken.add(name)
    return name


def make_mount_point(scratch_mnt: Path, source: str, taken: set[str]) -> str:
    """Create the scratch-side mount point for *source*; return its name.

    Files get an empty file as target, everything else a directory.
    """
    name = _mount_point_name(source, taken)
    point = scratch_mnt / name
    try:
        scratch_mnt.mkdir(parents=True, exist_ok=True)
        if os.path.isfile(source):
            point.touch(exist_ok=False)
        else:
            point.mkdir()
    except OSError as e:
        raise ResourceCreationError(point, e.strerror or str(e)) from e
    return name


def write_instance_config(template: CapsuleTemplate, instance: CapsuleInstance) -> LxcConfig:
    """Write the instance config: the template's, with instance-scoped paths."""
    try:
        config = LxcConfig.read(template.config)
    except OSError as e:
        raise ResourceCreationError(template.config, e.strerror or str(e)) from e

    config.set_aliased(ROOTFS_KEY, [str(instance.image)])
    config.set_aliased(MOUNT_KEY, [str(instance.fstab)])
    config.set_aliased(UTSNAME_KEY, [instance.id])
    try:
        config.write(instance.config)
    except OSError as e:
        raise ResourceCreationError(instance.config, e.strerror or str(e)) from e
    return config


def write_instance_fstab(
    template: CapsuleTemplate, instance: CapsuleInstance, resources: list[str]
) -> list[MountSpec]:
    """Write the instance fstab with one bind entry per resource, in order."""
    taken: set[str] = set()
    mounts = [
        bind_mount(source, instance.image_mnt / make_mount_point(instance.scratch_mnt, source, taken))
        for source in resources
    ]
    try:
        text = template.fstab.read_text()
    except OSError as e:
        raise ResourceCreationError(template.fstab, e.strerror or str(e)) from e
    try:
        write_fstab(instance.fstab, mounts, header=text)
    except OSError as e:
        raise ResourceCreationError(instance.fstab, e.strerror or str(e)) from e
    return mounts


def clone_capsule(
    template: CapsuleTemplate,
    capsule_id: str,
    scratch_path: str | Path,
    resources: list[str] | None = None,
) -> CapsuleInstance:
    """Create the instance tree for *capsule_id* and its config and fstab.

    The instance directory must not exist yet. Nothing created here is
    removed again if a later step fails.
    """
    instance = CapsuleInstance(capsule_id, Path(scratch_path) / capsule_id, template)
    logger.debug("Source path: %s", template.path)
    logger.debug("Clone path: %s", instance.path)

    try:
        instance.path.parent.mkdir(parents=True, exist_ok=True)
        instance.path.mkdir()
    except OSError as e:
        raise ResourceCreationError(instance.path, e.strerror or str(e)) from e

    write_instance_config(template, instance)
    instance.mounts = write_instance_fstab(template, instance, list(resources or []))
    return instance
