"""Configuration helpers for dkci."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

from .errors import ConfigIncompleteError, ConfigMalformedError, ConfigUnreadableError

CONFIG_PATH = Path(os.path.expanduser("~")) / ".local" / "app" / "dkci" / "config.toml"
# Working directory for export/upload and download/import round trips
TEMP_DIR = Path("/tmp/dkci")
DEFAULT_CLOUD_DIR = "/"

ENV_CLIENT_ID = "BDFS_CLIENT_ID"
ENV_CLIENT_SECRET = "BDFS_CLIENT_SECRET"
ENV_TOKEN_PATH = "BDFS_TOKEN_PATH"
ENV_DEFAULT_CLOUD_DIR = "BDFS_DEFAULT_CLOUD_DIR"
ENV_CONFIG_FILE = "BDFS_CONFIG_FILE"

_FIELDS = ("client_id", "client_secret", "token_path", "default_cloud_dir")


@dataclass(frozen=True)
class BDFSConfig:
    """Credentials and defaults for the Baidu Netdisk client."""

    client_id: str
    client_secret: str
    token_path: str
    default_cloud_dir: str = DEFAULT_CLOUD_DIR


def _env(environ: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def bdfs_config_available(environ: Mapping[str, str] | None = None) -> bool:
    """Return True when the environment points at some BDFS configuration."""
    env = _env(environ)
    if env.get(ENV_CONFIG_FILE):
        return True
    return all(env.get(k) for k in (ENV_CLIENT_ID, ENV_CLIENT_SECRET, ENV_TOKEN_PATH))


def config_file_path(environ: Mapping[str, str] | None = None) -> Path:
    env = _env(environ)
    custom = env.get(ENV_CONFIG_FILE)
    return Path(custom) if custom else CONFIG_PATH


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigUnreadableError(f"failed to read config file {path}: {e}") from e
    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigMalformedError(f"failed to parse config file {path}: {e}") from e
    for key in _FIELDS:
        if key in data and not isinstance(data[key], str):
            raise ConfigMalformedError(f"config key {key!r} in {path} must be a string")
    return data


def resolve_config(environ: Mapping[str, str] | None = None) -> BDFSConfig:
    """Return the BDFS configuration from the environment or the TOML file.

    The three credential variables win when all of them are set; the file is
    not consulted at all in that case.  Otherwise the file named by
    ``BDFS_CONFIG_FILE`` (or :data:`CONFIG_PATH`) must hold ``client_id``,
    ``client_secret`` and ``token_path``.  ``default_cloud_dir`` falls back to
    ``"/"`` either way.
    """
    env = _env(environ)
    client_id = env.get(ENV_CLIENT_ID, "")
    client_secret = env.get(ENV_CLIENT_SECRET, "")
    token_path = env.get(ENV_TOKEN_PATH, "")
    if client_id and client_secret and token_path:
        return BDFSConfig(
            client_id=client_id,
            client_secret=client_secret,
            token_path=token_path,
            default_cloud_dir=env.get(ENV_DEFAULT_CLOUD_DIR) or DEFAULT_CLOUD_DIR,
        )

    path = config_file_path(env)
    data = _read_config_file(path)
    values = {key: data.get(key) or "" for key in _FIELDS}
    if not (values["client_id"] and values["client_secret"] and values["token_path"]):
        raise ConfigIncompleteError(
            f"config file {path} missing required fields (client_id, client_secret, token_path)"
        )
    return BDFSConfig(
        client_id=values["client_id"],
        client_secret=values["client_secret"],
        token_path=values["token_path"],
        default_cloud_dir=values["default_cloud_dir"] or DEFAULT_CLOUD_DIR,
    )
