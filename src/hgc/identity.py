# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Unique, human-readable capsule instance identifiers."""

from __future__ import annotations

import logging
import os
import pwd
import random
import sys

from .exceptions import IdentityLookupError

logger = logging.getLogger(__name__)

# Separator between login, template and random draw.
ID_SEPARATOR = "_"


def make_capsule_id(login: str, template: str, rng: random.Random | None = None) -> str:
    """Build an instance id of the form ``<login>_<template>_<n>``.

    ``n`` is a non-negative random integer. Collisions are possible but
    unlikely; pass a seeded ``rng`` for a deterministic draw.
    """
    draw = (rng or random).randrange(sys.maxsize)
    capsule_id = ID_SEPARATOR.join([login, template, str(draw)])
    logger.debug("Setting unique capsule ID to %s", capsule_id)
    return capsule_id


def get_login_name() -> str:
    """Return the invoking user's login name."""
    try:
        return os.getlogin()
    except OSError:
        # No controlling terminal (cron, CI, piped stdin).
        uid = os.getuid()
        try:
            return pwd.getpwuid(uid).pw_name
        except KeyError as e:
            raise IdentityLookupError(uid) from e
