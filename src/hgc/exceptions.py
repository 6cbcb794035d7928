# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""hgc exceptions."""


class HgcError(Exception):
    """Base exception for capsule deployment errors."""


class UsageError(HgcError):
    """The command line could not be turned into a deployment."""


class PrivilegeError(HgcError):
    """Effective identity could not be raised or restored."""


class ResourceCreationError(HgcError):
    """A directory or file for the capsule instance could not be created."""

    def __init__(self, path, message: str):
        self.path = str(path)
        super().__init__(f"{self.path}: {message}")


class MountError(HgcError):
    """A mount or unmount call failed."""

    def __init__(self, target, message: str):
        self.target = str(target)
        super().__init__(f"{self.target}: {message}")


class IdentityLookupError(HgcError):
    """The invoking uid has no account record."""

    def __init__(self, uid: int):
        self.uid = uid
        super().__init__(f"no account record for uid {uid}")


class CapsuleProcessError(HgcError):
    """Starting, attaching to or stopping the container failed."""

    def __init__(self, capsule_id: str, message: str):
        self.capsule_id = capsule_id
        super().__init__(f"capsule {capsule_id}: {message}")
