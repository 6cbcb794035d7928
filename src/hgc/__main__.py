# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Entry point for ``python -m hgc``."""

from .cli.app import run

if __name__ == "__main__":
    run()
