"""Install projects — project-mode runs of a single provider.

An install project is a directory holding ``globconf_project.yaml``::

    project: GLOBCONF_MQTTCOMM_install
    system: MQTTCOMM
    provider: GLOBCONF_MQTTCOMMConfig.py

Running it executes the provider in project mode, where the registry can be
written directly once the allow-install capability is granted.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from globconf.context import Context, InvocationMode, Switches
from globconf.errors import InvalidProject
from globconf.installer import PROJECT_FILE
from globconf.provider import run_provider
from globconf.settings import Settings

REQUIRED_KEYS = ("project", "system", "provider")


def load_project(directory: str | Path) -> dict:
    """Read and check the project file of an install project directory."""
    path = Path(directory) / PROJECT_FILE
    if not path.is_file():
        raise InvalidProject(f"No {PROJECT_FILE} found in {directory}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidProject(f"Invalid YAML in {path}: {e}")

    if not isinstance(data, dict):
        raise InvalidProject(f"{path} must contain a mapping")

    missing = [k for k in REQUIRED_KEYS if not isinstance(data.get(k), str) or not data.get(k)]
    if missing:
        raise InvalidProject(f"{path} is missing required keys: {', '.join(missing)}")
    return data


def run_project(
    directory: str | Path,
    switches: Switches | None = None,
    settings: Settings | None = None,
    **context_kwargs,
) -> Context:
    """Run the provider named by an install project in project mode."""
    directory = Path(directory)
    project = load_project(directory)
    return run_provider(
        directory / project["provider"],
        switches=switches,
        settings=settings,
        invocation=InvocationMode.PROJECT,
        expected_system=project["system"],
        **context_kwargs,
    )
