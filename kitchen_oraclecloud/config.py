"""Driver configuration.

Immutable configuration for the Oracle Cloud driver, plus TOML loading.
Loads ~/.kitchen/oraclecloud.toml (global) and kitchen.toml (project),
merges their ``[driver]`` tables, and resolves them into an OracleCloud
instance.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from kitchen_oraclecloud.errors import ConfigError

type RawConfig = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".kitchen" / "oraclecloud.toml"
PROJECT_CONFIG_NAME = "kitchen.toml"
PASSWORD_ENV_VAR = "ORACLECLOUD_PASSWORD"

REQUIRED_KEYS = ("username", "password", "api_url", "identity_domain", "shape", "image")


@dataclass(frozen=True, slots=True)
class OracleCloud:
    """Oracle Compute Cloud driver configuration.

    Example:
        >>> from kitchen_oraclecloud import OracleCloud
        >>> config = OracleCloud(
        ...     username="jdoe",
        ...     password="secret",
        ...     api_url="https://api-z999.compute.us0.oraclecloud.com",
        ...     identity_domain="mydomain",
        ...     shape="oc3",
        ...     image="/oracle/public/OL_7.2_UEKR4_x86_64",
        ... )

    Args:
        username: Oracle Cloud account user.
        password: Account password. Falls back to ORACLECLOUD_PASSWORD env var.
        api_url: Compute API endpoint for the account's site.
        identity_domain: Identity domain the account belongs to.
        shape: Instance shape (hardware sizing class), e.g. ``oc3``.
        image: Image list the instance boots from.
        verify_ssl: Verify the API's TLS certificate. Default: True.
        wait_time: Seconds to wait for an orchestration status. Default: 600.
        refresh_time: Seconds between status polls. Default: 2.
        sshkeys: SSH key names, relative to the identity domain.
        description: Orchestration description. Derived when None.
        project_name: Orchestration name prefix. Random per driver when None.
        public_ip: ``"pool"`` for an address from the shared pool, or the
            name of an IP reservation. No public address when None.
    """

    username: str
    password: str
    api_url: str
    identity_domain: str
    shape: str
    image: str
    verify_ssl: bool = True
    wait_time: int = 600
    refresh_time: int = 2
    sshkeys: tuple[str, ...] = ()
    description: str | None = None
    project_name: str | None = None
    public_ip: str | None = None

    def __post_init__(self) -> None:
        if self.wait_time < 0:
            raise ConfigError(f"wait_time must be >= 0, got {self.wait_time}")
        if self.refresh_time < 0:
            raise ConfigError(f"refresh_time must be >= 0, got {self.refresh_time}")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> OracleCloud:
        """Build a config from loosely-typed settings (TOML, CLI, env)."""
        values = dict(raw)
        if not values.get("password") and (password := os.environ.get(PASSWORD_ENV_VAR)):
            values["password"] = password

        missing = [key for key in REQUIRED_KEYS if not values.get(key)]
        if missing:
            raise ConfigError(f"Missing required driver config: {', '.join(missing)}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"Unknown driver config: {', '.join(unknown)}")

        for key in ("wait_time", "refresh_time"):
            if key in values:
                values[key] = _to_int(key, values[key])

        match values.get("sshkeys"):
            case None:
                values.pop("sshkeys", None)
            case str() as key:
                values["sshkeys"] = (key,)
            case keys:
                values["sshkeys"] = tuple(keys)

        return cls(**values)


def _to_int(key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from e


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    project_cfg = _read_toml(project_path)

    merged = _deep_merge(global_cfg, project_cfg)
    merged.setdefault("driver", {})
    return merged


def resolve_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> OracleCloud:
    config = load_config(project_dir=project_dir, global_path=global_path)
    driver = config["driver"]
    if not isinstance(driver, dict):
        raise ConfigError("[driver] must be a table")
    return OracleCloud.from_mapping(_deep_merge(driver, dict(overrides or {})))


__all__ = [
    "GLOBAL_CONFIG_PATH",
    "OracleCloud",
    "PROJECT_CONFIG_NAME",
    "load_config",
    "resolve_config",
]
