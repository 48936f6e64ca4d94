# store_config.py
from __future__ import annotations

import configparser
import os
import platform
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from client_filter import (
    DEFAULT_NAME_MAP,
    DEFAULT_PERSISTENT_SPEAKER_USERS,
    DEFAULT_VALID_CLIENTS,
    ClientFilter,
)


_NAME_MAP_TEXT = "\n".join(f"{k} = {v}" for k, v in DEFAULT_NAME_MAP.items())

DEFAULT_CONFIG_TEXT = f"""\
[Clients]
# application.name of streams that belong to calls (regular expression)
valid = {DEFAULT_VALID_CLIENTS}
# clients that may keep the speaker open outside of calls; empty for none
persistent_speaker_users = {DEFAULT_PERSISTENT_SPEAKER_USERS}

[NameMap]
# capture stream label = playback stream label
{_NAME_MAP_TEXT}

[Muting]
enabled = yes

[Profiles]
high_fidelity = a2dp_sink
telephony = headset_head_unit

[Volume]
per_profile = no

[Startup]
timeout = 30
retry_interval = 1
"""


class ConfigError(ValueError):
    pass


def _linux_xdg_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def user_config_dir(app_name: str) -> Path:
    sysname = (platform.system() or "").lower()
    if sysname.startswith("linux"):
        return _linux_xdg_config_dir() / app_name
    return Path.home() / ".config" / app_name


@dataclass(frozen=True)
class AppConfig:
    client_filter: ClientFilter
    mute_enabled: bool = True
    high_fidelity_profile: str = "a2dp_sink"
    telephony_profile: str = "headset_head_unit"
    per_profile_volume: bool = False
    startup_timeout: float = 30.0
    retry_interval: float = 1.0


def _compile(what: str, pattern: str) -> "re.Pattern[str]":
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"invalid regular expression for {what}: {e}") from e


def parse_config(cfg: configparser.ConfigParser) -> AppConfig:
    try:
        valid = cfg.get("Clients", "valid", fallback=DEFAULT_VALID_CLIENTS).strip()
        persistent = cfg.get(
            "Clients", "persistent_speaker_users", fallback=DEFAULT_PERSISTENT_SPEAKER_USERS
        ).strip()
        name_map: Dict[str, str] = (
            {k: v.strip() for k, v in cfg.items("NameMap")} if cfg.has_section("NameMap") else dict(DEFAULT_NAME_MAP)
        )

        client_filter = ClientFilter(
            valid=_compile("[Clients] valid", valid or "(?!)"),
            persistent_speaker_users=_compile("[Clients] persistent_speaker_users", persistent) if persistent else None,
            name_map=name_map,
        )

        return AppConfig(
            client_filter=client_filter,
            mute_enabled=cfg.getboolean("Muting", "enabled", fallback=True),
            high_fidelity_profile=cfg.get("Profiles", "high_fidelity", fallback="a2dp_sink").strip(),
            telephony_profile=cfg.get("Profiles", "telephony", fallback="headset_head_unit").strip(),
            per_profile_volume=cfg.getboolean("Volume", "per_profile", fallback=False),
            startup_timeout=cfg.getfloat("Startup", "timeout", fallback=30.0),
            retry_interval=cfg.getfloat("Startup", "retry_interval", fallback=1.0),
        )
    except ValueError as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(str(e)) from e


@dataclass(frozen=True)
class ConfigStore:
    app_name: str = "bt-autoswitch"
    filename: str = "bt-autoswitch.cfg"
    path_override: Optional[Path] = None

    @property
    def dir_path(self) -> Path:
        if self.path_override is not None:
            return self.path_override.parent
        return user_config_dir(self.app_name)

    @property
    def file_path(self) -> Path:
        if self.path_override is not None:
            return self.path_override
        return self.dir_path / self.filename

    def ensure_exists(self) -> None:
        self.dir_path.mkdir(parents=True, exist_ok=True)
        if not self.file_path.exists():
            self.file_path.write_text(DEFAULT_CONFIG_TEXT, encoding="utf-8")

    def load(self) -> AppConfig:
        self.ensure_exists()
        # Keys in [NameMap] are application names; keep their case.
        cfg = configparser.ConfigParser(interpolation=None)
        cfg.optionxform = str  # type: ignore[assignment]
        try:
            cfg.read(self.file_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigError(f"{self.file_path}: {e}") from e
        return parse_config(cfg)
