# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Capsule deployment lifecycle.

A deploy acquires its resources in this order and releases them in
exactly the reverse order, on every exit path::

    resolve id -> clone -> root  ⊃  union mount  ⊃  (add user; running capsule ⊃ console)

Each stage is a method on :class:`Deployer` so it can be replaced
independently.
"""

from __future__ import annotations

import logging
import os
import random
import shutil
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from pathlib import Path

from . import lxc
from .clone import CapsuleInstance, CapsuleTemplate, clone_capsule
from .config import DEFAULTS, DeployConfig
from .exceptions import ResourceCreationError, UsageError
from .identity import get_login_name, make_capsule_id
from .mount import MountSpec, with_union_mount
from .privilege import PrivilegeContext, with_root
from .union import UnionMount, get_union
from .users import add_user

logger = logging.getLogger(__name__)


@dataclass
class DeployOptions:
    """Everything a deploy needs besides the capsule name."""

    repository: str = DEFAULTS.repository
    mounts: list[str] = field(default_factory=list)
    union: UnionMount = field(default_factory=lambda: get_union(DEFAULTS.union_type))
    scratch_path: str = DEFAULTS.scratch_path
    template_base: str = DEFAULTS.template_base
    console_delay: float = DEFAULTS.console_delay
    console_tty: int = DEFAULTS.console_tty
    wait_timeout: int = DEFAULTS.wait_timeout
    cleanup: bool = DEFAULTS.cleanup

    @classmethod
    def from_config(cls, config: DeployConfig, **overrides) -> "DeployOptions":
        """Options seeded from *config*; keyword arguments take precedence."""
        values = config._asdict()
        union = get_union(values.pop("union_type")) or get_union(DEFAULTS.union_type)
        values["union"] = union
        values.update(overrides)
        return cls(**values)


class Deployer:
    """Runs one capsule deployment."""

    def __init__(self, options: DeployOptions, rng: random.Random | None = None):
        self.options = options
        self.rng = rng

    def template(self, capsule: str) -> CapsuleTemplate:
        return CapsuleTemplate(self.options.repository, capsule, Path(self.options.template_base))

    def resolve_id(self, capsule: str) -> str:
        return make_capsule_id(get_login_name(), capsule, self.rng)

    def materialize(self, template: CapsuleTemplate, capsule_id: str) -> CapsuleInstance:
        return clone_capsule(template, capsule_id, self.options.scratch_path, self.options.mounts)

    def escalate(self) -> AbstractContextManager[PrivilegeContext]:
        return with_root()

    def union_mount(
        self, ctx: PrivilegeContext, instance: CapsuleInstance
    ) -> AbstractContextManager[MountSpec]:
        return with_union_mount(
            ctx,
            self.options.union,
            instance.template.rootfs,
            instance.scratch,
            instance.image,
        )

    def inject_user(self, uid: int, instance: CapsuleInstance) -> None:
        add_user(uid, instance.image)

    def run_capsule(self, instance: CapsuleInstance) -> AbstractContextManager[str]:
        return lxc.with_running_capsule(instance.id, instance.config)

    def attach(self, instance: CapsuleInstance) -> None:
        lxc.attach_console(
            instance.id,
            tty=self.options.console_tty,
            delay=self.options.console_delay,
            wait_timeout=self.options.wait_timeout,
        )

    def remove_instance(self, instance: CapsuleInstance) -> None:
        logger.debug("Removing instance directory %s", instance.path)
        try:
            shutil.rmtree(instance.path)
        except OSError as e:
            raise ResourceCreationError(instance.path, f"cleanup failed: {e}") from e

    def deploy(self, capsule: str) -> CapsuleInstance:
        """Clone *capsule*, run it interactively and release everything."""
        if not capsule or capsule in (".", "..") or "/" in capsule:
            raise UsageError(f"invalid capsule name: {capsule!r}")
        real_uid = os.getuid()
        logger.debug("Cloning capsule %s", capsule)
        template = self.template(capsule)
        instance = self.materialize(template, self.resolve_id(capsule))

        with self.escalate() as ctx:
            with self.union_mount(ctx, instance):
                self.inject_user(real_uid, instance)
                with self.run_capsule(instance):
                    self.attach(instance)
            # Only reached once the image is unmounted again.
            if self.options.cleanup:
                self.remove_instance(instance)
        return instance


def deploy(
    capsule: str, options: DeployOptions, rng: random.Random | None = None
) -> CapsuleInstance:
    """Deploy *capsule* with *options*. See :class:`Deployer`."""
    return Deployer(options, rng).deploy(capsule)
