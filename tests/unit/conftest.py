"""Shared fixtures for hgc unit tests.

Nothing here needs root: identity changes, chown, mount(8) and the
lxc-* tools are all replaced by :class:`FakeHost`.
"""

import pwd
import shutil
import subprocess
from pathlib import Path

import pytest

from hgc.clone import CapsuleTemplate

TEMPLATE_CONFIG = """\
# Mercury capsule template
lxc.utsname = template1
lxc.rootfs = /cvmfs/mercury.repo/template1/rootfs
lxc.mount = /cvmfs/mercury.repo/template1/fstab
lxc.network.type = empty
"""

TEMPLATE_FSTAB = """\
proc proc proc nodev,noexec,nosuid 0 0
sysfs sys sysfs defaults 0 0
"""

ALICE = pwd.struct_passwd(("alice", "x", 1000, 1000, "Alice", "/nfs/home/alice", "/bin/bash"))


class FakeHost:
    """Records identity changes and external commands in call order."""

    def __init__(self, uid: int = 1000):
        self.real_uid = uid
        self.euid = uid
        self.calls: list[tuple] = []
        self.mounted: set[str] = set()
        self.chowns: list[tuple] = []
        self.fail: dict[str, str] = {}
        self.rootfs: Path | None = None
        # Hook run while the console is "attached".
        self.on_console = None

    def getuid(self) -> int:
        return self.real_uid

    def seteuid(self, uid: int) -> None:
        if "seteuid" in self.fail or (uid != self.real_uid and "escalate" in self.fail):
            raise PermissionError(1, "Operation not permitted")
        self.calls.append(("seteuid", uid))
        self.euid = uid

    def chown(self, path, uid, gid) -> None:
        self.chowns.append((str(path), uid, gid))

    def run(self, cmd, *, interactive=False):
        name = cmd[0]
        self.calls.append(tuple(cmd))
        if name in self.fail:
            return subprocess.CompletedProcess(cmd, 1, "", self.fail[name])
        if name == "mount":
            target = cmd[-1]
            self.mounted.add(target)
            if self.rootfs is not None:
                shutil.copytree(self.rootfs, target, dirs_exist_ok=True)
        elif name == "umount":
            self.mounted.discard(cmd[-1])
        elif name == "lxc-console" and self.on_console is not None:
            self.on_console()
        return subprocess.CompletedProcess(cmd, 0, "", "")

    def events(self) -> list[str]:
        """Calls as short names: root/restore for identity, else the command."""
        names = []
        for call in self.calls:
            if call[0] == "seteuid":
                names.append("restore" if call[1] == self.real_uid else "root")
            else:
                names.append(call[0])
        return names


@pytest.fixture
def host(tmp_path, monkeypatch):
    """Fake host; depends on tmp_path so pytest's temp dir exists first."""
    fake = FakeHost()
    monkeypatch.setattr("hgc.privilege.os.getuid", fake.getuid)
    monkeypatch.setattr("hgc.privilege.os.seteuid", fake.seteuid)
    monkeypatch.setattr("hgc.users.os.chown", fake.chown)
    monkeypatch.setattr("hgc.shell.run", fake.run)
    monkeypatch.setattr("hgc.users.pwd.getpwuid", lambda uid: ALICE if uid == 1000 else _missing(uid))
    monkeypatch.setattr("hgc.deploy.get_login_name", lambda: "alice")
    return fake


def _missing(uid):
    raise KeyError(f"getpwuid(): uid not found: {uid}")


@pytest.fixture
def template(tmp_path) -> CapsuleTemplate:
    """A template1 capsule in a fake mercury.repo repository."""
    tmpl = CapsuleTemplate("mercury.repo", "template1", tmp_path / "cvmfs")
    (tmpl.rootfs / "etc").mkdir(parents=True)
    (tmpl.rootfs / "etc" / "passwd").write_text("root:x:0:0:root:/root:/bin/bash\n")
    tmpl.config.write_text(TEMPLATE_CONFIG)
    tmpl.fstab.write_text(TEMPLATE_FSTAB)
    return tmpl


@pytest.fixture
def scratch(tmp_path) -> Path:
    return tmp_path / "scratch"


def interrupt_first_debug(monkeypatch, logger_path: str) -> None:
    """Make the first ``logger.debug`` call at *logger_path* raise Ctrl-C."""
    calls = []

    def debug(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            raise KeyboardInterrupt

    monkeypatch.setattr(f"{logger_path}.debug", debug)
