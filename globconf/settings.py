"""Settings for a globconf invocation.

Settings come from a small YAML file. The lookup order is an explicit path,
then ``GLOBCONF_SETTINGS_FILE``, then ``~/.globconf/settings.yaml``; when none
exists the defaults below apply.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from globconf.errors import InvalidSettings

SETTINGS_ENV_VAR = "GLOBCONF_SETTINGS_FILE"
DEFAULT_SETTINGS_FILE = "settings.yaml"
DEFAULT_TEMPLATE = Path(__file__).parent / "templates" / "install_project.yaml.in"

# accepted YAML types per setting; None marks an optional value
FIELD_TYPES = {
    "package_prefix": (str,),
    "registry_dir_name": (str,),
    "registry_vendor": (str,),
    "registry_tool": (str,),
    "install_project_template": (str, None),
    "direct_script_registration": (bool,),
    "cache_file": (str, None),
}


@dataclass
class Settings:
    """Knobs shared by every operation of one invocation."""

    package_prefix: str = "GLOBCONF_"
    registry_dir_name: str = ".globconf"

    # Windows registry key: HKCU\Software\<vendor>\<tool>\Packages
    registry_vendor: str = "Globconf"
    registry_tool: str = "Globconf"

    install_project_template: str | None = None
    direct_script_registration: bool = True
    cache_file: str | None = None

    source_path: str | None = field(default=None, compare=False)

    @property
    def template_path(self) -> Path:
        if self.install_project_template:
            return Path(self.install_project_template)
        return DEFAULT_TEMPLATE

    @property
    def windows_packages_key(self) -> str:
        return f"Software\\{self.registry_vendor}\\{self.registry_tool}\\Packages"

    def package_name(self, system_name: str) -> str:
        return f"{self.package_prefix}{system_name}"

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "source_path"}


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from YAML, falling back to defaults."""
    environ = os.environ if environ is None else environ

    if path is None:
        path = environ.get(SETTINGS_ENV_VAR) or None
    if path is None:
        home = environ.get("HOME")
        if home:
            candidate = Path(home) / Settings.registry_dir_name / DEFAULT_SETTINGS_FILE
            if candidate.is_file():
                path = candidate
    if path is None:
        return Settings()

    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise InvalidSettings(f"Settings file not found: {path}")
    except yaml.YAMLError as e:
        raise InvalidSettings(f"Invalid YAML in settings file {path}: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidSettings(f"Settings file {path} must contain a mapping")

    unknown = sorted(str(key) for key in set(data) - set(FIELD_TYPES))
    if unknown:
        raise InvalidSettings(f"Unknown settings in {path}: {', '.join(unknown)}")

    for name, value in data.items():
        accepted = FIELD_TYPES[name]
        if value is None and None in accepted:
            continue
        if not isinstance(value, tuple(t for t in accepted if t is not None)):
            expected = " or ".join("null" if t is None else t.__name__ for t in accepted)
            raise InvalidSettings(
                f"Setting '{name}' in {path} must be {expected}, got {type(value).__name__}"
            )

    return Settings(**data, source_path=str(path))
