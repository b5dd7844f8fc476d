"""Tests for settings loading."""

import tempfile
from dataclasses import fields
from pathlib import Path

import pytest
import yaml

from globconf.errors import InvalidSettings
from globconf.settings import DEFAULT_TEMPLATE, FIELD_TYPES, SETTINGS_ENV_VAR, Settings, load_settings


def _write(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(data, f)
    return path


def test_defaults_without_any_file():
    with tempfile.TemporaryDirectory() as home:
        settings = load_settings(environ={"HOME": home})
    assert settings == Settings()
    assert settings.package_name("EXAMPLE") == "GLOBCONF_EXAMPLE"
    assert settings.template_path == DEFAULT_TEMPLATE
    assert settings.windows_packages_key == "Software\\Globconf\\Globconf\\Packages"


def test_explicit_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write(Path(tmpdir) / "s.yaml", {"package_prefix": "ACME_", "direct_script_registration": False})
        settings = load_settings(path, environ={})
    assert settings.package_prefix == "ACME_"
    assert settings.direct_script_registration is False
    assert settings.source_path == str(path)


def test_env_var_then_home_file():
    with tempfile.TemporaryDirectory() as home:
        _write(Path(home) / ".globconf" / "settings.yaml", {"registry_dir_name": ".from_home"})
        env_file = _write(Path(home) / "env.yaml", {"registry_dir_name": ".from_env"})

        assert load_settings(environ={"HOME": home}).registry_dir_name == ".from_home"
        environ = {"HOME": home, SETTINGS_ENV_VAR: str(env_file)}
        assert load_settings(environ=environ).registry_dir_name == ".from_env"


def test_empty_file_gives_defaults():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "s.yaml"
        path.write_text("")
        assert load_settings(path, environ={}).package_prefix == "GLOBCONF_"


def test_unknown_keys_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write(Path(tmpdir) / "s.yaml", {"package_prefix": "X_", "colour": "blue"})
        with pytest.raises(InvalidSettings, match="colour"):
            load_settings(path, environ={})


def test_wrong_value_types_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        quoted_bool = _write(Path(tmpdir) / "a.yaml", {"direct_script_registration": "false"})
        with pytest.raises(InvalidSettings, match="'direct_script_registration' .* must be bool, got str"):
            load_settings(quoted_bool, environ={})

        numeric_prefix = _write(Path(tmpdir) / "b.yaml", {"package_prefix": 12})
        with pytest.raises(InvalidSettings, match="'package_prefix' .* must be str, got int"):
            load_settings(numeric_prefix, environ={})

        nullable = _write(
            Path(tmpdir) / "c.yaml",
            {"cache_file": None, "install_project_template": None, "direct_script_registration": False},
        )
        settings = load_settings(nullable, environ={})
        assert settings.cache_file is None
        assert settings.direct_script_registration is False


def test_every_setting_has_a_type():
    assert set(FIELD_TYPES) == {f.name for f in fields(Settings)} - {"source_path"}


def test_invalid_documents_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        not_mapping = Path(tmpdir) / "list.yaml"
        not_mapping.write_text("- a\n- b\n")
        broken = Path(tmpdir) / "broken.yaml"
        broken.write_text("{{invalid yaml::: [")

        with pytest.raises(InvalidSettings):
            load_settings(not_mapping, environ={})
        with pytest.raises(InvalidSettings):
            load_settings(broken, environ={})
        with pytest.raises(InvalidSettings, match="not found"):
            load_settings(Path(tmpdir) / "missing.yaml", environ={})


def test_to_dict_round_trips_through_yaml():
    settings = Settings(package_prefix="ACME_", cache_file="cache.json", source_path="/x")
    data = settings.to_dict()
    assert "source_path" not in data
    assert Settings(**yaml.safe_load(yaml.safe_dump(data))) == settings
