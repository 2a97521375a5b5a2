"""Configuration utilities for the CodeSync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from codesync.core.config import DEFAULT_SERVER_URL, ServerConfig

CONFIG_DIR_ENV = "CODESYNC_HOME"
SERVER_URL_ENV = "CODESYNC_SERVER_URL"


def get_config_dir() -> Path:
    """Get the configuration directory for CodeSync.

    Returns:
        Path to $CODESYNC_HOME, or ~/.codesync.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".codesync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_state_db() -> Path:
    """Get the path to the local state database."""
    return get_config_dir() / "state.db"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def get_server_config(server_url: str | None = None) -> ServerConfig:
    """Build the server configuration.

    Precedence: explicit argument, $CODESYNC_SERVER_URL, config file,
    then the default local store.
    """
    config = load_config()
    url = (
        server_url
        or os.environ.get(SERVER_URL_ENV)
        or config.get("server_url")
        or DEFAULT_SERVER_URL
    )
    server_config = ServerConfig(server_url=url)
    if config.get("debounce_delay"):
        server_config.debounce_delay = float(config["debounce_delay"])
    return server_config
