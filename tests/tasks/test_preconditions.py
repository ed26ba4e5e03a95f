import pytest

from desktopsetup.core.errors import PrivilegeError, UnsupportedPlatformError
from desktopsetup.tasks import preconditions

MOD = "desktopsetup.tasks.preconditions"


def test_linux_is_rejected(monkeypatch):
    monkeypatch.setattr(f"{MOD}.platform.system", lambda: "Linux")
    with pytest.raises(UnsupportedPlatformError) as excinfo:
        preconditions.ensure_macos()
    assert excinfo.value.exit_code == 1


def test_macos_passes(monkeypatch):
    monkeypatch.setattr(f"{MOD}.platform.system", lambda: "Darwin")
    preconditions.ensure_macos()


def test_root_outside_container_is_rejected(monkeypatch):
    monkeypatch.setattr(f"{MOD}.os.geteuid", lambda: 0)
    monkeypatch.setattr(f"{MOD}.in_container", lambda: False)
    with pytest.raises(PrivilegeError):
        preconditions.ensure_not_root()


def test_root_inside_container_is_allowed(monkeypatch):
    monkeypatch.setattr(f"{MOD}.os.geteuid", lambda: 0)
    monkeypatch.setattr(f"{MOD}.in_container", lambda: True)
    preconditions.ensure_not_root()
    with pytest.raises(PrivilegeError):
        preconditions.ensure_not_root(allow_in_container=False)


def test_regular_user_passes(monkeypatch):
    monkeypatch.setattr(f"{MOD}.os.geteuid", lambda: 501)
    preconditions.ensure_not_root(allow_in_container=False)
