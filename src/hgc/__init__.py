# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Deploy ephemeral, writable capsules from immutable LXC templates."""

__version__ = "0.1.0"

from .deploy import Deployer, DeployOptions
from .exceptions import (
    CapsuleProcessError,
    HgcError,
    IdentityLookupError,
    MountError,
    PrivilegeError,
    ResourceCreationError,
    UsageError,
)

__all__ = [
    "CapsuleProcessError",
    "DeployOptions",
    "Deployer",
    "HgcError",
    "IdentityLookupError",
    "MountError",
    "PrivilegeError",
    "ResourceCreationError",
    "UsageError",
    "__version__",
]
