"""
wifiap Core Data Models
========================

Pydantic-based domain models for the access point manager: the
requested AP configuration, NetworkManager connection profiles, WiFi
interface descriptors, scan observations and the per-command system
snapshot.

All models are transient.  Every invocation re-derives them from the
live system; NetworkManager owns the only persisted state.

References:
    - IEEE. (2020). IEEE Std 802.11-2020. Annex E: Country Information
      and Operating Classes.
    - nm-settings-nmcli(5), NetworkManager project.
    - Pydantic v2 Documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import enum
import ipaddress
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SSID_MAX_BYTES = 32
PASSWORD_MIN_BYTES = 8
PASSWORD_MAX_BYTES = 63

PROFILE_SUFFIX = "-AP"
WIRELESS_PROFILE_TYPE = "802-11-wireless"

CHANNELS_24GHZ: tuple[int, ...] = tuple(range(1, 15))
CHANNELS_5GHZ: tuple[int, ...] = (
    36, 40, 44, 48, 52, 56, 60, 64,
    100, 104, 108, 112, 116, 120, 124, 128, 132, 136, 140, 144,
    149, 153, 157, 161, 165,
)

# Auto-selection candidates, in scanning order, and the preferred default.
NON_OVERLAPPING_24GHZ: tuple[int, ...] = (1, 6, 11)
AUTO_CANDIDATES_5GHZ: tuple[int, ...] = (36, 40, 44, 48, 149, 153, 157, 161, 165)

AUTO_CHANNEL = "auto"

_SANITIZE_RE = re.compile(r"[^A-Za-z0-9_-]")


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Band(str, enum.Enum):
    """WiFi frequency band.

    The value is the operator-facing spelling; :attr:`nm_value` is the
    NetworkManager ``802-11-wireless.band`` setting.
    """

    GHZ_24 = "2.4"
    GHZ_5 = "5"

    @property
    def nm_value(self) -> str:
        return "bg" if self is Band.GHZ_24 else "a"

    @property
    def label(self) -> str:
        return f"{self.value}GHz"

    @property
    def legal_channels(self) -> tuple[int, ...]:
        return CHANNELS_24GHZ if self is Band.GHZ_24 else CHANNELS_5GHZ

    @property
    def auto_candidates(self) -> tuple[int, ...]:
        return NON_OVERLAPPING_24GHZ if self is Band.GHZ_24 else AUTO_CANDIDATES_5GHZ

    @property
    def default_channel(self) -> int:
        return 6 if self is Band.GHZ_24 else 36

    @property
    def frequency_range(self) -> tuple[int, int]:
        """Inclusive MHz range used to recognise the band in ``iw`` output."""
        return (2000, 2999) if self is Band.GHZ_24 else (5000, 5999)

    @classmethod
    def parse(cls, value: str | Band) -> Band:
        """Accept ``2.4``/``2.4GHz``/``bg`` and ``5``/``5GHz``/``a``."""
        if isinstance(value, Band):
            return value
        text = str(value).strip().lower()
        if text.endswith("ghz"):
            text = text[:-3].strip()
        if text in ("2.4", "bg"):
            return cls.GHZ_24
        if text in ("5", "a"):
            return cls.GHZ_5
        raise ValueError(f"Invalid band '{value}': use 2.4 or 5")

    @classmethod
    def from_nm_value(cls, value: str) -> Optional[Band]:
        try:
            return cls.parse(value)
        except ValueError:
            return None


class ExistingProfileAction(str, enum.Enum):
    """What to do when the target profile already exists."""

    REPLACE = "replace"
    KEEP = "keep"
    ABORT = "abort"


class ControlAction(str, enum.Enum):
    START = "start"
    STOP = "stop"
    RESTART = "restart"
    STATUS = "status"
    LIST = "list"
    DELETE = "delete"
    INTERFACES = "interfaces"

    @property
    def needs_root(self) -> bool:
        return self in (
            ControlAction.START,
            ControlAction.STOP,
            ControlAction.RESTART,
            ControlAction.DELETE,
        )


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def sanitize_ssid(ssid: str) -> str:
    """Make an SSID safe for use in a profile name.

    Spaces become underscores and anything outside ``[A-Za-z0-9_-]`` is
    dropped.  Applying it twice changes nothing.
    """
    return _SANITIZE_RE.sub("", ssid.replace(" ", "_"))


def profile_name_for(ssid: str) -> str:
    """``"My Home AP"`` -> ``"My_Home_AP-AP"``."""
    return sanitize_ssid(ssid) + PROFILE_SUFFIX


def is_ap_profile_name(name: str) -> bool:
    """AP naming pattern: names ending in ``AP`` (which covers ``-AP``)."""
    return name.endswith("AP")


def validate_ssid(ssid: str) -> str:
    size = len(ssid.encode("utf-8"))
    if size == 0:
        raise ValueError("SSID cannot be empty")
    if size > SSID_MAX_BYTES:
        raise ValueError(
            f"SSID cannot be longer than {SSID_MAX_BYTES} bytes (got {size})"
        )
    return ssid


def validate_password(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    size = len(password.encode("utf-8"))
    if size < PASSWORD_MIN_BYTES:
        raise ValueError(
            f"Password must be at least {PASSWORD_MIN_BYTES} bytes long (got {size})"
        )
    if size > PASSWORD_MAX_BYTES:
        raise ValueError(
            f"Password cannot be longer than {PASSWORD_MAX_BYTES} bytes (got {size})"
        )
    return password


def validate_channel(channel: int, band: Band) -> int:
    if channel not in band.legal_channels:
        if band is Band.GHZ_24:
            raise ValueError("Channel must be a number between 1 and 14 for 2.4GHz")
        allowed = ", ".join(str(c) for c in CHANNELS_5GHZ)
        raise ValueError(f"Channel {channel} is not valid for 5GHz (use one of {allowed})")
    return channel


def parse_channel(value: str | int | None, band: Band) -> Optional[int]:
    """Parse a channel argument; ``None``/``"auto"`` mean auto-select."""
    if value is None:
        return None
    if isinstance(value, int):
        return validate_channel(value, band)
    text = value.strip().lower()
    if text in ("", AUTO_CHANNEL):
        return None
    if not text.isdigit():
        raise ValueError(f"Channel must be a number or 'auto' (got '{value}')")
    return validate_channel(int(text), band)


def validate_ip_cidr(ip_cidr: str) -> str:
    if "/" not in ip_cidr:
        raise ValueError(f"IP address must include a prefix length, e.g. 192.168.4.1/24 (got '{ip_cidr}')")
    try:
        iface = ipaddress.IPv4Interface(ip_cidr)
    except ValueError as exc:
        raise ValueError(f"Invalid IP address '{ip_cidr}': {exc}") from exc
    return str(iface)


# ---------------------------------------------------------------------------
# Requested configuration
# ---------------------------------------------------------------------------


class APConfig(BaseModel):
    """The access point an operator asked for.

    Attributes:
        ssid: Broadcast network name (1-32 bytes).
        password: WPA2 passphrase (8-63 UTF-8 bytes).
        interface: WiFi interface hosting the AP.
        band: Frequency band.
        channel: Channel legal for *band*.
        ip_cidr: Gateway address with prefix, shared to clients.
    """

    model_config = ConfigDict(frozen=True)

    ssid: str
    password: str
    interface: str
    band: Band = Band.GHZ_24
    channel: int = 6
    ip_cidr: str = "192.168.4.1/24"

    @field_validator("ssid")
    @classmethod
    def _check_ssid(cls, v: str) -> str:
        return validate_ssid(v)

    @field_validator("password")
    @classmethod
    def _check_password(cls, v: str) -> str:
        return validate_password(v)

    @field_validator("ip_cidr")
    @classmethod
    def _check_ip(cls, v: str) -> str:
        return validate_ip_cidr(v)

    @model_validator(mode="after")
    def _check_channel(self) -> APConfig:
        validate_channel(self.channel, self.band)
        return self

    @property
    def profile_name(self) -> str:
        return profile_name_for(self.ssid)

    def profile_settings(self) -> dict[str, str]:
        """NetworkManager settings applied after the profile is added."""
        return {
            "802-11-wireless.band": self.band.nm_value,
            "802-11-wireless.channel": str(self.channel),
            "ipv4.method": "shared",
            "ipv4.addresses": self.ip_cidr,
            "ipv6.method": "disabled",
            "wifi-sec.key-mgmt": "wpa-psk",
            "wifi-sec.psk": self.password,
            "wifi-sec.proto": "rsn",
            "wifi-sec.pairwise": "ccmp",
            "wifi-sec.group": "ccmp",
            "802-11-wireless-security.wps-method": "disabled",
        }


# ---------------------------------------------------------------------------
# Observed system state
# ---------------------------------------------------------------------------


class ConnectionProfile(BaseModel):
    """A NetworkManager connection profile.

    Attributes:
        name: Profile name (``connection.id``).
        type: Profile type, ``802-11-wireless`` for WiFi.
        state: Activation state (``activated``, ``activating``, or empty).
        device: Device the profile is currently active on, if any.
        interface_name: Configured ``connection.interface-name`` binding.
        ssid, band, channel, ipv4_addresses, key_mgmt, mode: detail
            fields, filled only when the profile was read in full.
    """

    name: str
    type: str = WIRELESS_PROFILE_TYPE
    state: str = ""
    device: str = ""
    interface_name: str = ""
    ssid: str = ""
    mode: str = ""
    band: Optional[Band] = None
    channel: Optional[int] = None
    ipv4_addresses: str = ""
    key_mgmt: str = ""

    @property
    def is_wireless(self) -> bool:
        return self.type in (WIRELESS_PROFILE_TYPE, "wifi")

    @property
    def is_ap(self) -> bool:
        return self.is_wireless and is_ap_profile_name(self.name)

    @property
    def active(self) -> bool:
        return self.state == "activated"

    @property
    def bound_interface(self) -> str:
        """Interface the profile runs on: the live device, else the binding."""
        return self.device or self.interface_name


class InterfaceDescriptor(BaseModel):
    """A network device as reported by NetworkManager."""

    name: str
    type: str = "wifi"
    state: str = "disconnected"
    connection: str = ""
    supported_bands: set[Band] = Field(default_factory=set)

    @property
    def is_wifi(self) -> bool:
        return self.type in ("wifi", "wifi-p2p")

    @property
    def is_p2p(self) -> bool:
        return self.type == "wifi-p2p" or "p2p" in self.name

    @property
    def managed(self) -> bool:
        return self.state != "unmanaged"

    @property
    def connected(self) -> bool:
        return self.state == "connected"

    @property
    def ap_candidate(self) -> bool:
        return self.is_wifi and not self.is_p2p and self.managed


class NetworkObservation(BaseModel):
    """One network seen in a WiFi scan."""

    ssid: str = ""
    channel: int = 0


class ChannelUsageSample(BaseModel):
    """Number of observed networks on one channel."""

    channel: int
    count: int = Field(default=0, ge=0)


class SystemSnapshot(BaseModel):
    """Devices and profiles captured once per command invocation."""

    interfaces: list[InterfaceDescriptor] = Field(default_factory=list)
    profiles: list[ConnectionProfile] = Field(default_factory=list)

    @property
    def wifi_interfaces(self) -> list[InterfaceDescriptor]:
        return [i for i in self.interfaces if i.is_wifi]

    @property
    def ap_candidates(self) -> list[InterfaceDescriptor]:
        return [i for i in self.interfaces if i.ap_candidate]

    @property
    def ap_profiles(self) -> list[ConnectionProfile]:
        """AP-pattern profiles in lexicographic name order."""
        return sorted((p for p in self.profiles if p.is_ap), key=lambda p: p.name)

    @property
    def active_ap_profiles(self) -> list[ConnectionProfile]:
        return [p for p in self.ap_profiles if p.active]

    def interface(self, name: str) -> Optional[InterfaceDescriptor]:
        for iface in self.interfaces:
            if iface.name == name:
                return iface
        return None

    def profile(self, name: str) -> Optional[ConnectionProfile]:
        for prof in self.profiles:
            if prof.name == name:
                return prof
        return None
