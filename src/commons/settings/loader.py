"""Layered settings loader: JSON files overlaid by environment variables."""

import json
import os
from pathlib import Path
from typing import Any

from src.commons.settings.models import Settings

ENV_PREFIX = "VIDEO_MEMORY__"
_NULL_LITERALS = {"null", "none"}


def coerce_env_value(raw: str) -> Any:
    """Turn an environment string into bool, None, number, JSON or str.

    Args:
        raw: Raw environment value.

    Returns:
        The coerced value, or ``raw`` when nothing else fits.
    """
    lowered = raw.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in _NULL_LITERALS:
        return None

    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue

    if raw.lstrip().startswith(("[", "{")):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw

    return raw


def merge_config(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively overlay one config tree onto another without mutating either."""
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = value
    return merged


class SettingsLoader:
    """Resolves Settings from layered sources.

    Precedence (highest wins):
    1. ``VIDEO_MEMORY__*`` environment variables
    2. ``appsettings.{environment}.json``
    3. ``appsettings.json``
    """

    ENV_PREFIX = ENV_PREFIX

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the settings loader.

        Args:
            config_dir: Directory holding the JSON files. Defaults to
                ``VIDEO_MEMORY__CONFIG_DIR`` or ``./config``.
            environment: Environment name. Defaults to
                ``VIDEO_MEMORY__APP__ENVIRONMENT`` or ``dev``.
        """
        self.config_dir = config_dir or Path(
            os.getenv(f"{ENV_PREFIX}CONFIG_DIR", "config")
        )
        self.environment = environment or os.getenv(
            f"{ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    def load(self) -> Settings:
        """Load and validate settings.

        Returns:
            Fully resolved Settings instance.
        """
        layers = [
            self._read_json("appsettings.json"),
            self._read_json(f"appsettings.{self.environment}.json"),
            self._env_overrides(),
        ]
        config: dict[str, Any] = {}
        for layer in layers:
            config = merge_config(config, layer)
        return Settings(**config)

    def _env_overrides(self) -> dict[str, Any]:
        """Nest ``VIDEO_MEMORY__SECTION__KEY`` variables into a config tree.

        ``VIDEO_MEMORY__VECTOR_DB__HOST=qdrant`` becomes
        ``{"vector_db": {"host": "qdrant"}}``.
        """
        tree: dict[str, Any] = {}
        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX) or key == f"{ENV_PREFIX}CONFIG_DIR":
                continue

            *parents, leaf = key[len(ENV_PREFIX) :].lower().split("__")
            node = tree
            for part in parents:
                node = node.setdefault(part, {})
            node[leaf] = coerce_env_value(value)
        return tree

    def _read_json(self, filename: str) -> dict[str, Any]:
        """Read one JSON layer; a missing file is an empty layer."""
        path = self.config_dir / filename
        if not path.exists():
            return {}
        with path.open(encoding="utf-8") as f:
            return dict(json.load(f))


# Global settings instance
_settings: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Get or create the global settings instance.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Force reload settings from files.

    Returns:
        Settings instance.
    """
    global _settings  # noqa: PLW0603
    if _settings is None or reload:
        _settings = SettingsLoader(config_dir=config_dir, environment=environment).load()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance. Useful for testing."""
    global _settings  # noqa: PLW0603
    _settings = None
