"""YAML settings source with environment-based file merging."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic_settings import PydanticBaseSettingsSource


if TYPE_CHECKING:
    from pydantic.fields import FieldInfo

# Names a single extra YAML file merged over everything else
CONFIG_FILE_ENV = "TRANSMISSION_PROXY_CONFIG"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge override into base dict.

    Args:
        base: Base dictionary to merge into.
        override: Dictionary with values to override.

    Returns:
        New dictionary with merged values.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        msg = f"{path} must contain a YAML mapping"
        raise ValueError(msg)
    return data


class MultiYamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load and merge YAML configuration files.

    Files are merged in three stages, later ones winning:
    1. All base YAML files from config/base/
    2. Overrides from config/environments/{APP_ENV}/
    3. The file named by TRANSMISSION_PROXY_CONFIG, if set

    Lists (ACL rules, providers) are replaced, not concatenated.
    """

    def __init__(self, settings_cls: type[Any], config_dir: Path | None = None) -> None:
        """Initialize the YAML settings source.

        Args:
            settings_cls: The settings class to load configuration for.
            config_dir: Directory holding base/ and environments/.
        """
        super().__init__(settings_cls)
        self._config_dir = config_dir or self._find_config_dir()
        self._app_env = os.getenv("APP_ENV", "development")
        self._extra_file = os.getenv(CONFIG_FILE_ENV)
        self._yaml_data: dict[str, Any] = {}
        self._load_yaml_files()

    def _find_config_dir(self) -> Path:
        # src/transmission_proxy/core/config/yaml_source.py -> project root
        current = Path(__file__).resolve()
        project_root = current.parent.parent.parent.parent.parent
        return project_root / "config"

    def _load_yaml_files(self) -> None:
        merged: dict[str, Any] = {}

        base_dir = self._config_dir / "base"
        if base_dir.exists():
            for yaml_file in sorted(base_dir.glob("*.yaml")):
                merged = deep_merge(merged, _load_yaml(yaml_file))

        env_dir = self._config_dir / "environments" / self._app_env
        if env_dir.exists():
            for yaml_file in sorted(env_dir.glob("*.yaml")):
                merged = deep_merge(merged, _load_yaml(yaml_file))

        if self._extra_file:
            merged = deep_merge(merged, _load_yaml(Path(self._extra_file)))

        self._yaml_data = merged

    def get_field_value(
        self,
        _field: FieldInfo,
        field_name: str,
    ) -> tuple[Any, str, bool]:
        """Get the value for a specific field from YAML data."""
        value = self._yaml_data.get(field_name)
        return value, field_name, isinstance(value, (dict, list))

    def __call__(self) -> dict[str, Any]:
        """Return all YAML configuration data."""
        return self._yaml_data
