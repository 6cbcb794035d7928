# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""hgc configuration.

Defaults are layered systemd-style, highest priority first:

1. ~/.config/hgc/hgc.conf   (user overrides)
2. /etc/hgc/hgc.conf        (admin/system overrides)
3. /usr/lib/hgc/hgc.conf    (package defaults)

All keys live in the ``[hgc]`` section:

- repository: template repository name
- scratch_path: directory instances are created under
- template_base: directory repositories are mounted under
- union_type: aufs or overlayfs
- console_delay: seconds to wait before attaching the console
- console_tty: console tty number
- wait_timeout: seconds lxc-wait may block for RUNNING (0 disables)
- cleanup: remove the instance directory after the run

Command line options override all of these.
"""

import configparser
import os
from pathlib import Path
from typing import NamedTuple


class DeployConfig(NamedTuple):
    """Configured defaults for a deploy."""

    repository: str
    scratch_path: str
    template_base: str
    union_type: str
    console_delay: float
    console_tty: int
    wait_timeout: int
    cleanup: bool


DEFAULT_REPOSITORY = "mercury.repo"
DEFAULT_SCRATCH_PATH = "/tmp/hgc"
DEFAULT_TEMPLATE_BASE = "/cvmfs"
DEFAULT_UNION_TYPE = "aufs"

DEFAULTS = DeployConfig(
    repository=DEFAULT_REPOSITORY,
    scratch_path=DEFAULT_SCRATCH_PATH,
    template_base=DEFAULT_TEMPLATE_BASE,
    union_type=DEFAULT_UNION_TYPE,
    console_delay=1.0,
    console_tty=1,
    wait_timeout=0,
    cleanup=False,
)

SECTION = "hgc"


def get_config_paths(home_dir: str | None = None) -> list[Path]:
    """Get all config file paths in priority order (highest first).

    Args:
        home_dir: Home directory to use for user config. If None, uses
            $XDG_CONFIG_HOME or the current user's ~/.config.

    Returns:
        List of paths to check, highest priority first.
    """
    if home_dir:
        user = Path(home_dir) / ".config" / "hgc" / "hgc.conf"
    else:
        config_home = os.environ.get("XDG_CONFIG_HOME", "")
        if not config_home:
            config_home = os.path.expanduser("~/.config")
        user = Path(config_home) / "hgc" / "hgc.conf"

    return [
        user,
        Path("/etc/hgc/hgc.conf"),
        Path("/usr/lib/hgc/hgc.conf"),
    ]


def _read_value(parser: configparser.ConfigParser, key: str, default):
    """Read *key* with the type of *default*; keep *default* if malformed."""
    if not parser.has_option(SECTION, key):
        return default
    try:
        if isinstance(default, bool):
            return parser.getboolean(SECTION, key)
        if isinstance(default, int):
            return parser.getint(SECTION, key)
        if isinstance(default, float):
            return parser.getfloat(SECTION, key)
    except ValueError:
        return default
    return parser.get(SECTION, key)


def load_config(paths: list[Path] | None = None) -> DeployConfig:
    """Load configuration from all config paths, merging with precedence.

    Reads config files from lowest to highest priority, with higher
    priority values overriding lower ones. Malformed files and values
    are skipped.

    Args:
        paths: Config files, highest priority first. If None, uses
            get_config_paths().

    Returns:
        DeployConfig with merged settings.
    """
    values = DEFAULTS._asdict()

    for config_path in reversed(paths if paths is not None else get_config_paths()):
        if not config_path.exists():
            continue

        parser = configparser.ConfigParser()
        try:
            parser.read(config_path)
        except configparser.Error:
            continue

        if parser.has_section(SECTION):
            for key, current in values.items():
                values[key] = _read_value(parser, key, current)

    return DeployConfig(**values)
