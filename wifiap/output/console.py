"""
wifiap Console Output
======================

Rich tables and panels for configuration summaries, profile status,
interface listings, channel occupancy and scan results.
"""

from __future__ import annotations

from typing import Optional, Sequence

from rich.text import Text

from apshared.console import ToolConsole

from wifiap.core.models import (
    APConfig,
    Band,
    ChannelUsageSample,
    ConnectionProfile,
    InterfaceDescriptor,
    NetworkObservation,
)

_STATE_STYLES: dict[str, str] = {
    "connected": "bold bright_green",
    "disconnected": "yellow",
    "unavailable": "dim",
    "unmanaged": "dim",
}


def mask_secret(secret: str) -> str:
    if len(secret) <= 2:
        return "*" * len(secret)
    return secret[0] + "*" * (len(secret) - 2) + secret[-1]


def _bands_cell(bands: Optional[set[Band]]) -> str:
    if bands is None:
        return "unknown"
    if not bands:
        return "none"
    return ", ".join(b.label for b in sorted(bands, key=lambda b: float(b.value)))


def _yes_no(value: Optional[bool]) -> str:
    if value is None:
        return "unknown"
    return "Supported" if value else "Not supported"


class APConsoleOutput:
    """Console rendering for wifiap commands.

    Usage::

        output = APConsoleOutput(console)
        output.display_config_summary(config, show_password=False)
        output.display_profiles(snapshot.ap_profiles)
    """

    def __init__(self, console: Optional[ToolConsole] = None) -> None:
        self._console = console or ToolConsole()

    @property
    def console(self) -> ToolConsole:
        return self._console

    def display_banner(self, title: str) -> None:
        self._console.banner(title, "NetworkManager access point manager")

    # ------------------------------------------------------------------ #
    #  Configuration / profiles
    # ------------------------------------------------------------------ #

    def display_config_summary(
        self,
        config: APConfig,
        *,
        show_password: bool = False,
        channel_note: str = "",
    ) -> None:
        password = config.password if show_password else mask_secret(config.password)
        channel = f"{config.channel}{channel_note}"
        self._console.key_values(
            "WiFi Access Point Configuration",
            [
                ("SSID", config.ssid),
                ("Password", password),
                ("Interface", config.interface),
                ("Band", config.band.label),
                ("Channel", channel),
                ("IP Address", config.ip_cidr),
                ("Connection Name", config.profile_name),
            ],
        )

    def display_profile_details(self, profile: ConnectionProfile) -> None:
        self._console.key_values(
            f"Connection: {profile.name}",
            [
                ("State", profile.state or "inactive"),
                ("Interface", profile.bound_interface or "--"),
                ("SSID", profile.ssid or "--"),
                ("Band", profile.band.label if profile.band else "--"),
                ("Channel", profile.channel if profile.channel else "--"),
                ("IPv4 Addresses", profile.ipv4_addresses or "--"),
                ("Key Management", profile.key_mgmt or "--"),
            ],
        )

    def display_profiles(
        self,
        profiles: Sequence[ConnectionProfile],
        title: str = "Access Point Connections",
    ) -> None:
        rows = []
        for prof in profiles:
            state = (
                Text("ACTIVE", style="bold bright_green")
                if prof.active
                else Text("INACTIVE", style="dim")
            )
            rows.append((state, prof.name, prof.bound_interface or "--"))
        self._console.table(title, ["State", "Connection", "Interface"], rows)

    def display_wifi_profiles(self, profiles: Sequence[ConnectionProfile]) -> None:
        rows = [
            (p.name, p.type, p.state or "--", p.device or "--", "yes" if p.is_ap else "")
            for p in profiles
        ]
        self._console.table(
            "All WiFi Connections",
            ["Name", "Type", "State", "Device", "AP"],
            rows,
        )

    # ------------------------------------------------------------------ #
    #  Devices
    # ------------------------------------------------------------------ #

    def display_devices(
        self,
        interfaces: Sequence[InterfaceDescriptor],
        title: str = "WiFi Interface Status",
    ) -> None:
        rows = []
        for iface in interfaces:
            state = Text(iface.state, style=_STATE_STYLES.get(iface.state, ""))
            rows.append((iface.name, iface.type, state, iface.connection or "--"))
        self._console.table(title, ["Device", "Type", "State", "Connection"], rows)

    def display_interfaces(
        self,
        interfaces: Sequence[InterfaceDescriptor],
        ap_modes: dict[str, Optional[bool]],
        bands: dict[str, Optional[set[Band]]],
    ) -> None:
        rows = []
        for iface in interfaces:
            rows.append(
                (
                    iface.name,
                    iface.type,
                    iface.state,
                    iface.connection or "--",
                    "n/a (P2P)" if iface.is_p2p else _yes_no(ap_modes.get(iface.name)),
                    _bands_cell(bands.get(iface.name)),
                )
            )
        self._console.table(
            "Available WiFi Interfaces",
            ["Interface", "Type", "State", "Connection", "AP Mode", "Bands"],
            rows,
        )

    # ------------------------------------------------------------------ #
    #  Scans
    # ------------------------------------------------------------------ #

    def display_channel_usage(
        self, samples: Sequence[ChannelUsageSample], chosen: int
    ) -> None:
        rows = [
            (
                Text(str(s.channel), style="bold bright_green")
                if s.channel == chosen
                else s.channel,
                s.count,
            )
            for s in samples
        ]
        self._console.table(
            "Channel Occupancy", ["Channel", "Networks"], rows,
            caption=f"Selected channel {chosen}",
        )

    def display_networks(
        self, observations: Sequence[NetworkObservation], limit: int = 10
    ) -> None:
        rows = [(o.ssid or "<hidden>", o.channel) for o in observations[:limit]]
        self._console.table("Available Networks", ["SSID", "Channel"], rows)
