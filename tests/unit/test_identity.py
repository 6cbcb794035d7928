"""Tests for capsule id generation."""

import random
import re

import pytest

from hgc.exceptions import IdentityLookupError
from hgc.identity import get_login_name, make_capsule_id

ID_RE = re.compile(r"^alice_template1_(\d+)$")


def test_id_format():
    capsule_id = make_capsule_id("alice", "template1")
    match = ID_RE.match(capsule_id)
    assert match is not None
    assert int(match.group(1)) >= 0


def test_seeded_draws_are_deterministic():
    a = make_capsule_id("alice", "template1", random.Random(42))
    b = make_capsule_id("alice", "template1", random.Random(42))
    assert a == b


def test_successive_draws_do_not_collide():
    rng = random.Random(7)
    ids = {make_capsule_id("alice", "template1", rng) for _ in range(100)}
    assert len(ids) == 100


def test_login_name_falls_back_to_passwd(monkeypatch):
    def no_tty():
        raise OSError(6, "No such device or address")

    monkeypatch.setattr("hgc.identity.os.getlogin", no_tty)
    monkeypatch.setattr("hgc.identity.os.getuid", lambda: 1000)
    monkeypatch.setattr(
        "hgc.identity.pwd.getpwuid",
        lambda uid: type("Entry", (), {"pw_name": "alice"})(),
    )
    assert get_login_name() == "alice"


def test_login_name_without_account(monkeypatch):
    def no_tty():
        raise OSError(6, "No such device or address")

    def no_entry(uid):
        raise KeyError(f"getpwuid(): uid not found: {uid}")

    monkeypatch.setattr("hgc.identity.os.getlogin", no_tty)
    monkeypatch.setattr("hgc.identity.os.getuid", lambda: 4242)
    monkeypatch.setattr("hgc.identity.pwd.getpwuid", no_entry)
    with pytest.raises(IdentityLookupError, match="4242"):
        get_login_name()
