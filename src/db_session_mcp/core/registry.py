"""Connection registry: named connections loaded from ``connections.json``."""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional, Union

import orjson
from pydantic import ValidationError

from db_session_mcp.errors import ConfigurationError, ConnectionNotFound
from db_session_mcp.models.config import (
    ConnectionDescriptor,
    ConnectionsConfig,
    LoggingConfig,
)

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = "db-mcp"
CONFIG_FILE_NAME = "connections.json"


def config_search_paths() -> list[Path]:
    """Candidate configuration files, in lookup order."""
    paths: list[Path] = []
    if sys.platform == "win32":
        app_data = os.getenv("APPDATA")
        if app_data:
            paths.append(Path(app_data) / CONFIG_DIR_NAME / CONFIG_FILE_NAME)
    else:
        home = os.getenv("HOME")
        if home:
            paths.append(Path(home) / ".config" / CONFIG_DIR_NAME / CONFIG_FILE_NAME)
    paths.append(Path.cwd() / CONFIG_FILE_NAME)
    return paths


def _error_text(error: ValidationError) -> str:
    # Only the validator's message, without pydantic's location prefix
    first = error.errors()[0]
    return str(first.get("ctx", {}).get("error") or first["msg"])


def parse_config(data: Any) -> ConnectionsConfig:
    """
    Validate decoded configuration data.

    Args:
        data: Decoded JSON document

    Returns:
        Validated configuration, connections in document order

    Raises:
        ConfigurationError: If any part of the document is invalid
    """
    if not isinstance(data, dict):
        raise ConfigurationError("configuration must be a JSON object")

    entries = data.get("connections") or {}
    if not isinstance(entries, dict):
        raise ConfigurationError("'connections' must be an object")

    connections: dict[str, ConnectionDescriptor] = {}
    for key, entry in entries.items():
        if not isinstance(entry, dict):
            raise ConfigurationError(f"invalid connection {key}: entry must be an object")
        try:
            connections[key] = ConnectionDescriptor.from_entry(key, entry)
        except ValidationError as e:
            raise ConfigurationError(f"invalid connection {key}: {_error_text(e)}", e)

    try:
        return ConnectionsConfig(
            connections=connections,
            default_connection=data.get("default_connection") or "",
            logging=LoggingConfig(**(data.get("logging") or {})),
        )
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {_error_text(e)}", e)
    except TypeError as e:
        raise ConfigurationError(f"invalid configuration: {e}", e)


def load_config(path: Optional[Union[str, Path]] = None) -> ConnectionsConfig:
    """
    Load the connections configuration.

    Args:
        path: Explicit file to load; when omitted the standard locations are
            searched and a missing file yields an empty configuration

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If an explicit path is missing or any file found
            cannot be read, parsed or validated
    """
    if path is not None:
        config_file = Path(path).expanduser()
        if not config_file.is_file():
            raise ConfigurationError(f"config file not found: {config_file}")
    else:
        config_file = next((p for p in config_search_paths() if p.is_file()), None)
        if config_file is None:
            logger.debug("No connections.json found, starting with an empty registry")
            return ConnectionsConfig()

    try:
        data = orjson.loads(config_file.read_bytes())
    except OSError as e:
        raise ConfigurationError(f"failed to read config file {config_file}: {e}", e)
    except orjson.JSONDecodeError as e:
        raise ConfigurationError(f"failed to parse config file {config_file}: {e}", e)

    config = parse_config(data)
    logger.info(
        f"Loaded {len(config.connections)} connection(s) from {config_file}"
    )
    return config


class ConnectionRegistry:
    """Read-only view over the configured connections."""

    def __init__(self, config: Optional[ConnectionsConfig] = None):
        self.config = config if config is not None else ConnectionsConfig()

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "ConnectionRegistry":
        return cls(load_config(path))

    def lookup(self, name: str) -> ConnectionDescriptor:
        """
        Find a connection by name.

        Raises:
            ConnectionNotFound: If no connection has that name
        """
        descriptor = self.config.connections.get(name)
        if descriptor is None:
            raise ConnectionNotFound(name)
        return descriptor

    def list_all(self) -> list[ConnectionDescriptor]:
        """All connections in configuration file order."""
        return list(self.config.connections.values())

    def default_name(self) -> str:
        """Name of the default connection, empty when none is set."""
        return self.config.default_connection

    @property
    def logging_config(self) -> LoggingConfig:
        return self.config.logging

    def __contains__(self, name: str) -> bool:
        return name in self.config.connections

    def __len__(self) -> int:
        return len(self.config.connections)
