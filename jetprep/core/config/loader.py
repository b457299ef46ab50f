"""
Configuration loader — reads jetprep.yml into a RunConfig.

The file is optional: without one every default applies. CLI flags are
passed as ``overrides`` and win over file values; ``None`` means "flag
not given".
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from jetprep.core.errors import ConfigError
from jetprep.core.models.config import RunConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "jetprep.yml"
CONFIG_ENV = "JETPREP_CONFIG"

__all__ = ["CONFIG_FILE", "ConfigError", "find_config_file", "load_config", "read_config_file"]


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for jetprep.yml starting from the given directory, walking up.

    ``$JETPREP_CONFIG`` takes precedence when set.

    Returns:
        Path to the config file, or None if not found.
    """
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path)

    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Read raw settings from a YAML file.

    Raises:
        ConfigError: If the file is missing or not a YAML mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Settings may be wrapped under a "jetprep" key or be flat
    section = data.get("jetprep", data)
    if not isinstance(section, dict):
        raise ConfigError(f"Expected a mapping under 'jetprep' in {path}")
    return dict(section)


def load_config(
    path: Path | None = None,
    overrides: dict[str, Any] | None = None,
    *,
    search: bool = True,
) -> RunConfig:
    """Build the run configuration.

    Args:
        path: Explicit config file. If None and ``search`` is set, searches upward.
        overrides: Values from CLI flags; ``None`` entries are ignored.
        search: Whether to look for a config file when ``path`` is None.

    Raises:
        ConfigError: If the file or the merged values are invalid.
    """
    if path is None and search:
        path = find_config_file()

    data: dict[str, Any] = read_config_file(path) if path is not None else {}
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        config = RunConfig.model_validate(data)
    except ValidationError as e:
        source = f" in {path}" if path else ""
        raise ConfigError(f"Invalid configuration{source}: {e}") from e

    logger.info(
        "Config: swap=%s(%dGB) update=%s vscode=%s(%s) dry_run=%s",
        config.manage_swap, config.swap_size_gb, config.update_system,
        config.install_vscode, config.vscode_version, config.dry_run,
    )
    return config
