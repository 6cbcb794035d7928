"""Tests for layered configuration."""

from hgc.config import DEFAULTS, get_config_paths, load_config


def test_defaults_when_no_files(tmp_path):
    assert load_config([tmp_path / "missing.conf"]) == DEFAULTS
    assert DEFAULTS.repository == "mercury.repo"
    assert DEFAULTS.union_type == "aufs"
    assert DEFAULTS.cleanup is False


def test_higher_priority_overrides(tmp_path):
    user = tmp_path / "user.conf"
    system = tmp_path / "system.conf"
    system.write_text("[hgc]\nrepository = system.repo\nscratch_path = /var/tmp/hgc\n")
    user.write_text("[hgc]\nrepository = user.repo\nconsole_delay = 2.5\ncleanup = yes\n")

    config = load_config([user, system])
    assert config.repository == "user.repo"
    assert config.scratch_path == "/var/tmp/hgc"
    assert config.console_delay == 2.5
    assert config.cleanup is True


def test_malformed_values_and_files_are_skipped(tmp_path):
    bad_value = tmp_path / "a.conf"
    bad_value.write_text("[hgc]\nconsole_tty = two\nwait_timeout = 30\n")
    bad_file = tmp_path / "b.conf"
    bad_file.write_text("not an ini file\n")

    config = load_config([bad_value, bad_file])
    assert config.console_tty == DEFAULTS.console_tty
    assert config.wait_timeout == 30


def test_user_config_path_follows_xdg(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert get_config_paths()[0] == tmp_path / "hgc" / "hgc.conf"
