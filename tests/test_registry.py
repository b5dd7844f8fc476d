"""Tests for the package registry clients."""

import sys
import tempfile
from pathlib import Path

import pytest

from globconf.errors import HomeNotSet, RegistrationConflict
from globconf.registry import UserPackageRegistry, open_registry
from globconf.registry.base import entry_name
from globconf.settings import Settings


def _provider_dir(tmpdir: str, name: str = "provider") -> Path:
    path = Path(tmpdir) / name
    path.mkdir()
    return path.resolve()


def test_register_and_resolve():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = UserPackageRegistry(Path(tmpdir) / "packages")
        location = _provider_dir(tmpdir)

        reg.register("GLOBCONF_EXAMPLE", location)

        assert reg.resolve("GLOBCONF_EXAMPLE") == location
        entry = reg.package_dir("GLOBCONF_EXAMPLE") / entry_name(location)
        assert entry.read_text() == str(location)


def test_register_same_location_is_noop():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = UserPackageRegistry(Path(tmpdir) / "packages")
        location = _provider_dir(tmpdir)

        reg.register("GLOBCONF_EXAMPLE", location)
        reg.register("GLOBCONF_EXAMPLE", location)

        assert len(list(reg.package_dir("GLOBCONF_EXAMPLE").iterdir())) == 1


def test_register_different_location_conflicts():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = UserPackageRegistry(Path(tmpdir) / "packages")
        reg.register("GLOBCONF_EXAMPLE", _provider_dir(tmpdir, "first"))

        with pytest.raises(RegistrationConflict):
            reg.register("GLOBCONF_EXAMPLE", _provider_dir(tmpdir, "second"))


def test_resolve_nonexistent():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = UserPackageRegistry(Path(tmpdir) / "packages")
        assert reg.resolve("GLOBCONF_MISSING") is None


def test_stale_entry_is_ignored():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = UserPackageRegistry(Path(tmpdir) / "packages")
        location = _provider_dir(tmpdir)
        reg.register("GLOBCONF_EXAMPLE", location)
        location.rmdir()

        assert reg.resolve("GLOBCONF_EXAMPLE") is None
        # a stale entry does not block a new location
        reg.register("GLOBCONF_EXAMPLE", _provider_dir(tmpdir, "moved"))
        assert reg.resolve("GLOBCONF_EXAMPLE").name == "moved"


def test_unregister():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = UserPackageRegistry(Path(tmpdir) / "packages")
        reg.register("GLOBCONF_EXAMPLE", _provider_dir(tmpdir))

        reg.unregister("GLOBCONF_EXAMPLE")
        reg.unregister("GLOBCONF_EXAMPLE")

        assert reg.resolve("GLOBCONF_EXAMPLE") is None
        assert not reg.package_dir("GLOBCONF_EXAMPLE").exists()


def test_packages_lists_resolvable_entries():
    with tempfile.TemporaryDirectory() as tmpdir:
        reg = UserPackageRegistry(Path(tmpdir) / "packages")
        assert reg.packages() == {}

        a = _provider_dir(tmpdir, "a")
        reg.register("GLOBCONF_A", a)
        reg.register("GLOBCONF_B", _provider_dir(tmpdir, "b"))
        (Path(tmpdir) / "b").rmdir()

        assert reg.packages() == {"GLOBCONF_A": a}


def test_from_environ_uses_home():
    with tempfile.TemporaryDirectory() as home:
        reg = UserPackageRegistry.from_environ(Settings(), {"HOME": home})
        assert reg.packages_dir == Path(home) / ".globconf" / "packages"


def test_from_environ_without_home():
    with pytest.raises(HomeNotSet):
        UserPackageRegistry.from_environ(Settings(), {})


def test_open_registry_on_posix():
    with tempfile.TemporaryDirectory() as home:
        reg = open_registry(Settings(registry_dir_name=".other"), {"HOME": home}, "linux")
        assert isinstance(reg, UserPackageRegistry)
        assert reg.packages_dir == Path(home) / ".other" / "packages"


@pytest.mark.skipif(sys.platform != "win32", reason="Windows registry only")
def test_windows_registry_round_trip():
    from globconf.registry.windows_registry import WindowsPackageRegistry

    with tempfile.TemporaryDirectory() as tmpdir:
        reg = WindowsPackageRegistry("Software\\GlobconfTests\\Globconf\\Packages")
        location = _provider_dir(tmpdir)
        try:
            reg.register("GLOBCONF_WINTEST", location)
            assert reg.resolve("GLOBCONF_WINTEST") == location
            assert "GLOBCONF_WINTEST" in reg.packages()
        finally:
            reg.unregister("GLOBCONF_WINTEST")
        assert reg.resolve("GLOBCONF_WINTEST") is None
