"""Tests for injecting the invoking user into a capsule."""

import pytest

from hgc.exceptions import IdentityLookupError, ResourceCreationError
from hgc.users import add_user, format_passwd_entry

from conftest import ALICE


@pytest.fixture
def image(tmp_path):
    image = tmp_path / "image"
    (image / "etc").mkdir(parents=True)
    (image / "etc" / "passwd").write_text("root:x:0:0:root:/root:/bin/bash\n")
    return image


def test_format_passwd_entry():
    assert format_passwd_entry(ALICE) == "alice:x:1000:1000:Alice:/nfs/home/alice:/bin/bash"


def test_add_user_rewrites_home_only(host, image):
    line = add_user(1000, image)
    assert line == "alice:x:1000:1000:Alice:/home/alice:/bin/bash"
    assert (image / "etc" / "passwd").read_text().splitlines() == [
        "root:x:0:0:root:/root:/bin/bash",
        line,
    ]


def test_add_user_creates_owned_home(host, image):
    add_user(1000, image)
    home = image / "home" / "alice"
    assert home.is_dir()
    assert host.chowns == [(str(home.resolve()), 1000, -1)]


def test_unknown_uid(host, image):
    with pytest.raises(IdentityLookupError, match="4242"):
        add_user(4242, image)


def test_missing_passwd_file(host, tmp_path):
    with pytest.raises(ResourceCreationError, match="passwd"):
        add_user(1000, tmp_path / "empty")


def test_passwd_symlink_out_of_image_is_refused(host, image, tmp_path):
    outside = tmp_path / "host_passwd"
    outside.write_text("root:x:0:0:root:/root:/bin/bash\n")
    (image / "etc" / "passwd").unlink()
    (image / "etc" / "passwd").symlink_to(outside)

    with pytest.raises(ResourceCreationError, match="outside the capsule image"):
        add_user(1000, image)
    assert outside.read_text() == "root:x:0:0:root:/root:/bin/bash\n"


def test_home_symlink_out_of_image_is_refused(host, image, tmp_path):
    outside = tmp_path / "host_home"
    outside.mkdir()
    (image / "home").symlink_to(outside)

    with pytest.raises(ResourceCreationError, match="outside the capsule image"):
        add_user(1000, image)
    assert list(outside.iterdir()) == []
    assert host.chowns == []


def test_passwd_symlink_within_image_is_followed(host, image):
    real = image / "etc" / "passwd.real"
    (image / "etc" / "passwd").rename(real)
    (image / "etc" / "passwd").symlink_to("passwd.real")

    line = add_user(1000, image)
    assert real.read_text().splitlines()[-1] == line
