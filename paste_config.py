"""
Startup configuration and logging for the pastebin server.

Values are layered: built-in defaults, then ~/.pastebinit/config.yaml,
then PASTEBINIT_* environment variables, then command-line flags. The
result is a frozen ServerConfig handed to every component that needs it.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from paste_errors import ConfigError

logger = logging.getLogger("pastebinit")

CONFIG_DIR = Path.home() / ".pastebinit"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

DEFAULT_CONFIG = {
    "base_uri": "https://paste.j3ss.co/",
    "host": "0.0.0.0",
    "port": 8080,
    "storage": "/etc/pastebinit/files",
    "asset_path": "/src/static",
    "cert": None,
    "key": None,
    "username": "",
    "password": "",
    "highlight_style": "default",
    "max_paste_size_mb": 10,
    "id_length": 8,
    "id_retries": 3,
    "log_file": None,
    "debug": False,
}

# Environment variable -> config key
ENV_VARS = {
    "PASTEBINIT_USERNAME": "username",
    "PASTEBINIT_PASSWORD": "password",
    "PASTEBINIT_URI": "base_uri",
    "PASTEBINIT_STORAGE": "storage",
    "PASTEBINIT_PORT": "port",
}


class ServerConfig(BaseModel):
    """Immutable process-wide settings"""

    model_config = ConfigDict(frozen=True)

    base_uri: str
    host: str
    port: int
    storage: str
    asset_path: str
    cert: Optional[str] = None
    key: Optional[str] = None
    username: str
    password: str
    highlight_style: str = "default"
    max_paste_size_mb: int = 10
    id_length: int = 8
    id_retries: int = 3
    log_file: Optional[str] = None
    debug: bool = False

    @property
    def max_paste_size(self) -> int:
        return self.max_paste_size_mb * 1024 * 1024

    @property
    def use_tls(self) -> bool:
        return bool(self.cert) and bool(self.key)


def normalize_base_uri(uri: str) -> str:
    """Make sure the uri starts with http(s):// and ends with a trailing /"""
    if not uri.endswith("/"):
        uri += "/"
    if not uri.startswith("http"):
        uri = "http://" + uri
    return uri


def read_config_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the YAML config file, writing the defaults if it does not exist"""
    path = Path(path) if path else CONFIG_FILE

    if path.exists():
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"reading {path} failed: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping")
        return data

    # Create default config, never with credentials in it
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(DEFAULT_CONFIG, f)
    except OSError as e:
        logger.warning(f"Could not write default config to {path}: {e}")
    return {}


def load_config(
    path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> ServerConfig:
    """
    Build the ServerConfig from every configuration layer.

    Args:
        path: Config file location (default: ~/.pastebinit/config.yaml)
        overrides: Values from command-line flags; None entries are ignored
        environ: Environment to read PASTEBINIT_* variables from (default: os.environ)

    Raises:
        ConfigError: If the merged configuration is unusable
    """
    environ = os.environ if environ is None else environ

    values = {**DEFAULT_CONFIG, **read_config_file(path)}
    for var, key in ENV_VARS.items():
        if environ.get(var):
            values[key] = environ[var]
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    try:
        config = ServerConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e

    if not config.username:
        raise ConfigError("username cannot be empty")
    if not config.password:
        raise ConfigError("password cannot be empty")
    if not 0 < config.port < 65536:
        raise ConfigError(f"invalid port: {config.port}")
    if config.id_length < 1:
        raise ConfigError("id_length must be positive")

    return config.model_copy(update={"base_uri": normalize_base_uri(config.base_uri)})


def setup_logging(log_file: Optional[str] = None, debug: bool = False) -> logging.Logger:
    """Configure the service logger, optionally mirroring it to a file"""
    logger = logging.getLogger("pastebinit")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False  # Prevent propagation to uvicorn logger

    # Log format: timestamp | level | message
    formatter = logging.Formatter('%(asctime)s | %(levelname)s | %(message)s', datefmt='%Y-%m-%d %H:%M:%S')

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            # Set restrictive permissions on log file
            os.chmod(log_file, 0o600)
        except OSError as e:
            logger.warning(f"Failed to setup file logging: {e}")

    return logger
