"""
wifiap Configuration Management
================================

Centralized configuration for the wifiap toolkit using Python
dataclasses and TOML-based persistence.

Every value has a working default, so a configuration file is optional.
A file only needs the keys it wants to override::

    [global]
    log_level = "DEBUG"
    log_file = "/var/log/wifiap.log"

    [wifiap]
    default_ip = "10.42.0.1/24"
    scan_settle_seconds = 3.0

References:
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
    - nmcli(1) manual page, NetworkManager project.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[no-redef]


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "config.toml"


# ========================== Tool-Specific Config ===========================


@dataclass(frozen=False, slots=True)
class WifiAPConfig:
    """Configuration for the access point manager.

    Controls the defaults applied to ``create``, the external binaries
    that are driven, and the fixed waits around scans and restarts.
    """

    # Access point defaults
    default_ip: str = "192.168.4.1/24"
    default_band: str = "2.4"
    default_channel: str = "auto"
    show_password: bool = False

    # Timing
    scan_settle_seconds: float = 2.0
    restart_delay_seconds: float = 2.0
    command_timeout: float = 30.0

    # External tools
    nmcli_binary: str = "nmcli"
    iw_binary: str = "iw"
    sudo_binary: str = "sudo"
    auto_sudo: bool = True


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Global settings: logging verbosity and destinations."""

    log_level: str = "WARNING"
    log_file: str | None = None
    log_json: bool = False
    debug: bool = False


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class ToolkitConfig:
    """Master configuration aggregating global and tool settings.

    Usage:
        >>> config = ToolkitConfig.load()                  # from default path
        >>> config = ToolkitConfig.load("custom.toml")     # from custom path
        >>> print(config.wifiap.default_ip)
        '192.168.4.1/24'
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    wifiap: WifiAPConfig = field(default_factory=WifiAPConfig)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> ToolkitConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``config.toml`` in the
        project root.  Missing keys fall back to dataclass defaults.

        Args:
            path: Filesystem path to a TOML configuration file.

        Returns:
            A fully-populated :class:`ToolkitConfig` instance.

        Raises:
            FileNotFoundError: If the specified path does not exist
                *and* was explicitly provided by the caller.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            wifiap=cls._build_section(WifiAPConfig, raw.get("wifiap", {})),
        )

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares.

        Unknown keys in the TOML source are ignored so that newer config
        files do not break older code.
        """
        valid_keys = {f for f in cls.__dataclass_fields__}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)
