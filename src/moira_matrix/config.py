from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from .errors import ConfigError
from .logging import get_logger

logger = get_logger("moira_matrix.config")

DEFAULT_CONFIG_PATH = "moira-matrix.toml"
DEFAULT_WSDL_URL = "https://moiraws.mit.edu/moiraws/services/moira?wsdl"
DEFAULT_CLASS_PREFIX = "canvas"
DEFAULT_CURRENT_CLASS_PREFIX = "canvas-2023"


@dataclass(frozen=True, slots=True)
class MatrixSettings:
    homeserver: str
    user_id: str | None
    access_token: str
    storage_path: Path
    autojoin: bool = True


@dataclass(frozen=True, slots=True)
class MoiraSettings:
    key_file: Path
    cert_file: Path
    wsdl_url: str = DEFAULT_WSDL_URL
    class_prefix: str = DEFAULT_CLASS_PREFIX


@dataclass(frozen=True, slots=True)
class CommandSettings:
    current_class_prefix: str = DEFAULT_CURRENT_CLASS_PREFIX
    reply_on_error: bool = False


@dataclass(frozen=True, slots=True)
class Settings:
    matrix: MatrixSettings
    moira: MoiraSettings
    commands: CommandSettings
    config_path: Path


def expand_path(s: str) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(s)))


def _env(name: str) -> str:
    return (os.environ.get(name) or "").strip()


def _resolve_path(base_dir: Path, raw: str) -> Path:
    path = expand_path(raw)
    if not path.is_absolute():
        path = base_dir / path
    return path


def _table(cfg: dict[str, Any], key: str) -> dict[str, Any]:
    value = cfg.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{key}] must be a table")
    return value


def _str_opt(table: dict[str, Any], key: str, default: str = "") -> str:
    value = table.get(key, default)
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")
    return value.strip()


def _bool_opt(table: dict[str, Any], key: str, default: bool) -> bool:
    value = table.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false")
    return value


def load_config_file(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def _read_access_token(base_dir: Path, matrix_config: dict[str, Any]) -> str:
    env_token = _env("MATRIX_ACCESS_TOKEN") or _env("matrix_access_token")
    if env_token:
        return env_token
    token_file = _resolve_path(
        base_dir, _str_opt(matrix_config, "access_token_file", "token.txt")
    )
    try:
        token = token_file.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigError(
            f"cannot read access token file {token_file} "
            "(or set MATRIX_ACCESS_TOKEN)"
        ) from exc
    if not token:
        raise ConfigError(f"access token file {token_file} is empty")
    return token


def _moira_settings(base_dir: Path, moira_config: dict[str, Any]) -> MoiraSettings:
    return MoiraSettings(
        key_file=_resolve_path(
            base_dir, _str_opt(moira_config, "key_file", "personal.key")
        ),
        cert_file=_resolve_path(
            base_dir, _str_opt(moira_config, "cert_file", "personal.cert")
        ),
        wsdl_url=_str_opt(moira_config, "wsdl_url", DEFAULT_WSDL_URL),
        class_prefix=_str_opt(moira_config, "class_prefix", DEFAULT_CLASS_PREFIX),
    )


def load_moira_settings(config_path: Path) -> MoiraSettings:
    """Load only the [moira] table; no Matrix credentials needed."""
    cfg = load_config_file(config_path)
    return _moira_settings(config_path.parent, _table(cfg, "moira"))


def load_settings(config_path: Path) -> Settings:
    """Load and validate the bot configuration.

    Relative paths in the file are resolved against the config file's
    directory.
    """
    cfg = load_config_file(config_path)
    base_dir = config_path.parent
    matrix_config = _table(cfg, "matrix")
    moira_config = _table(cfg, "moira")
    commands_config = _table(cfg, "commands")

    homeserver = _str_opt(matrix_config, "homeserver").rstrip("/")
    if not homeserver:
        raise ConfigError("Missing matrix.homeserver")

    matrix = MatrixSettings(
        homeserver=homeserver,
        user_id=_str_opt(matrix_config, "user_id") or None,
        access_token=_read_access_token(base_dir, matrix_config),
        storage_path=_resolve_path(
            base_dir, _str_opt(matrix_config, "storage_path", "storage.json")
        ),
        autojoin=_bool_opt(matrix_config, "autojoin", True),
    )
    moira = _moira_settings(base_dir, moira_config)
    commands = CommandSettings(
        current_class_prefix=_str_opt(
            commands_config, "current_class_prefix", DEFAULT_CURRENT_CLASS_PREFIX
        ),
        reply_on_error=_bool_opt(commands_config, "reply_on_error", False),
    )
    logger.info(
        "config.loaded",
        path=str(config_path),
        homeserver=homeserver,
        storage_path=str(matrix.storage_path),
        wsdl_url=moira.wsdl_url,
    )
    return Settings(
        matrix=matrix, moira=moira, commands=commands, config_path=config_path
    )


def whoami(homeserver: str, token: str) -> dict[str, Any]:
    hs = homeserver.rstrip("/")
    response = httpx.get(
        f"{hs}/_matrix/client/v3/account/whoami",
        headers={"Authorization": f"Bearer {token}"},
        timeout=20.0,
    )
    if response.status_code == 401:
        raise ConfigError("whoami unauthorized (401); check the access token")
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, dict):
        raise ConfigError("whoami returned non-object JSON")
    return data


def resolve_identity(matrix: MatrixSettings) -> tuple[str, str | None]:
    """Return the bot's (user_id, device_id) as reported by the homeserver.

    A configured `user_id` must agree with the token's owner.
    """
    who = whoami(matrix.homeserver, matrix.access_token)
    who_user = str(who.get("user_id") or "")
    who_device = str(who.get("device_id") or "") or None

    if matrix.user_id and who_user and who_user != matrix.user_id:
        raise ConfigError(
            "whoami mismatch: access token belongs to "
            f"{who_user!r} but config says {matrix.user_id!r}"
        )
    user_id = who_user or matrix.user_id
    if not user_id:
        raise ConfigError("Missing matrix.user_id and whoami returned none")
    logger.info("matrix.identity_resolved", user_id=user_id, device_id=who_device)
    return user_id, who_device
