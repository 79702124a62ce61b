"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles everything cloudflare-cli reads from outside the command
line:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.cloudflare-cli/`` on macOS and Windows. See :func:`get_config_dir`
  and :func:`get_data_dir`.
* **User config** -- an optional ``config.json`` holding non-secret
  defaults (``api_url``, ``account_id``, ``zone_id``, ``timeout``,
  ``tree_path``). The API token is only ever read from the environment.
* **Precedence resolution** -- :func:`load_settings` merges CLI flags,
  environment variables, the user config and defaults into a
  :class:`~cloudflare_cli.models.Settings`.

File writes go through :func:`atomic_write` (temp file, then rename).
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from cloudflare_cli.exceptions import ConfigError
from cloudflare_cli.models import Settings

logger = logging.getLogger(__name__)

_APP_NAME = "cloudflare-cli"
_CONFIG_FILENAME = "config.json"

ENV_API_TOKEN = "CLOUDFLARE_API_TOKEN"
ENV_API_URL = "CLOUDFLARE_API_URL"
ENV_ACCOUNT_ID = "CLOUDFLARE_ACCOUNT_ID"
ENV_ZONE_ID = "CLOUDFLARE_ZONE_ID"
ENV_TREE = "CLOUDFLARE_CLI_TREE"
ENV_TIMEOUT = "CLOUDFLARE_CLI_TIMEOUT"

_FILE_KEYS = ("api_url", "account_id", "zone_id", "timeout", "tree_path")
_ENV_KEYS = {
    "api_token": ENV_API_TOKEN,
    "api_url": ENV_API_URL,
    "account_id": ENV_ACCOUNT_ID,
    "zone_id": ENV_ZONE_ID,
    "tree_path": ENV_TREE,
    "timeout": ENV_TIMEOUT,
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from *env_var*, else a path under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def get_config_dir(create: bool = True) -> Path:
    """Return the configuration directory.

    On Linux/BSD: ``$XDG_CONFIG_HOME/cloudflare-cli/`` (default
    ``~/.config/cloudflare-cli/``). On macOS/Windows: ``~/.cloudflare-cli/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory used for crash logs, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/cloudflare-cli/`` (default
    ``~/.local/share/cloudflare-cli/``). On macOS/Windows:
    ``~/.cloudflare-cli/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_file_path() -> Path:
    return get_config_dir(create=False) / _CONFIG_FILENAME


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* atomically using a temp file and ``os.replace``.

    The temporary file lives in the target directory so the rename never
    crosses filesystems. On any failure the temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- User config ---


def load_file_config(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the user config file.

    Returns:
        The recognised keys of the file, or an empty dict when there is no
        file. Unknown keys are ignored with a debug message.

    Raises:
        ConfigError: If the file is not valid JSON or not a JSON object, or
            if it contains an API token.
    """
    path = path or config_file_path()
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid config file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file at {path}: expected a JSON object")
    if "api_token" in data:
        raise ConfigError(
            f"Config file {path} must not contain an API token; "
            f"set {ENV_API_TOKEN} instead"
        )

    unknown = sorted(set(data) - set(_FILE_KEYS))
    if unknown:
        logger.debug("Ignoring unknown config keys in %s: %s", path, ", ".join(unknown))
    return {key: data[key] for key in _FILE_KEYS if data.get(key) is not None}


# --- Precedence resolution ---


def load_settings(
    cli_tree: Optional[str] = None,
    cli_timeout: Optional[float] = None,
    environ: Optional[Mapping[str, str]] = None,
    config_path: Optional[Path] = None,
) -> Settings:
    """Resolve the effective settings.

    Precedence (high to low):
        1. CLI flags (``--tree``, ``--timeout``)
        2. Environment variables (``CLOUDFLARE_*``)
        3. User config (``~/.config/cloudflare-cli/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the config file is invalid or a value fails
            validation (for example a non-numeric ``CLOUDFLARE_CLI_TIMEOUT``).
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = load_file_config(config_path)

    for field, var in _ENV_KEYS.items():
        value = env.get(var, "").strip()
        if value:
            values[field] = value

    if cli_tree is not None:
        values["tree_path"] = cli_tree
    if cli_timeout is not None:
        values["timeout"] = cli_timeout

    try:
        return Settings.model_validate(values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from exc
