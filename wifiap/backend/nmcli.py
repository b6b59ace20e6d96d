"""
NetworkManager Backend
=======================

:class:`NmcliService` implements :class:`~wifiap.backend.service.NetworkConfigService`
by invoking ``nmcli`` and parsing its terse (``-t``) output.

Terse multi-column output separates fields with ``:`` and escapes
literal colons and backslashes inside values as ``\\:`` and ``\\\\``.
Single-profile ``connection show NAME`` output is ``field:value`` per
line and is split on the first colon only.

References:
    - nmcli(1), nm-settings-nmcli(5). NetworkManager project.
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional, Sequence

from apshared.logger import ToolLogger
from apshared.process import CommandResult, run_command

from wifiap.core.models import (
    Band,
    ConnectionProfile,
    InterfaceDescriptor,
    NetworkObservation,
    SystemSnapshot,
)

logger = ToolLogger("backend.nmcli")

Runner = Callable[..., CommandResult]

# Settings read back for a single profile.
_PROFILE_FIELDS: tuple[str, ...] = (
    "connection.id",
    "connection.type",
    "connection.interface-name",
    "802-11-wireless.ssid",
    "802-11-wireless.mode",
    "802-11-wireless.band",
    "802-11-wireless.channel",
    "ipv4.addresses",
    "802-11-wireless-security.key-mgmt",
)

_SECRET_SETTINGS = frozenset({"wifi-sec.psk", "802-11-wireless-security.psk"})


# ---------------------------------------------------------------------------
# Terse output parsing
# ---------------------------------------------------------------------------


def split_terse_line(line: str) -> list[str]:
    """Split one line of ``nmcli -t`` output on unescaped colons."""
    parts: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\" and i + 1 < len(line):
            current.append(line[i + 1])
            i += 2
        elif ch == ":":
            parts.append("".join(current))
            current = []
            i += 1
        else:
            current.append(ch)
            i += 1
    parts.append("".join(current))
    return parts


def _pad(fields: list[str], count: int) -> list[str]:
    return fields + [""] * (count - len(fields))


def _none_if_dashes(value: str) -> str:
    return "" if value in ("--", "") else value


def parse_device_status(output: str) -> list[InterfaceDescriptor]:
    """Parse ``nmcli -t -f DEVICE,TYPE,STATE,CONNECTION device status``."""
    devices: list[InterfaceDescriptor] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        name, dev_type, state, connection = _pad(split_terse_line(line), 4)[:4]
        # "connected (externally)" and friends
        state = state.split(" ")[0] if state else "unknown"
        devices.append(
            InterfaceDescriptor(
                name=name,
                type=dev_type,
                state=state,
                connection=_none_if_dashes(connection),
            )
        )
    return devices


def parse_connection_list(output: str) -> list[ConnectionProfile]:
    """Parse ``nmcli -t -f NAME,TYPE,STATE,DEVICE connection show``."""
    profiles: list[ConnectionProfile] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        name, conn_type, state, device = _pad(split_terse_line(line), 4)[:4]
        profiles.append(
            ConnectionProfile(
                name=name,
                type=conn_type,
                state=state,
                device=_none_if_dashes(device),
            )
        )
    return profiles


def parse_profile_fields(output: str) -> dict[str, str]:
    """Parse ``field:value`` lines from ``nmcli -t -f ... connection show NAME``."""
    fields: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            fields[key.strip()] = value.strip()
    return fields


def parse_wifi_list(output: str) -> list[NetworkObservation]:
    """Parse ``nmcli -t -f SSID,CHAN device wifi list``; bad rows are skipped."""
    observations: list[NetworkObservation] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        ssid, chan = _pad(split_terse_line(line), 2)[:2]
        try:
            channel = int(chan)
        except ValueError:
            logger.debug("Skipping scan row without channel: %r", line)
            continue
        observations.append(NetworkObservation(ssid=ssid, channel=channel))
    return observations


def _profile_from_fields(base: ConnectionProfile, fields: Mapping[str, str]) -> ConnectionProfile:
    channel_text = fields.get("802-11-wireless.channel", "")
    try:
        channel: Optional[int] = int(channel_text) or None
    except ValueError:
        channel = None
    return base.model_copy(
        update={
            "type": fields.get("connection.type") or base.type,
            "interface_name": _none_if_dashes(fields.get("connection.interface-name", "")),
            "ssid": fields.get("802-11-wireless.ssid", ""),
            "mode": fields.get("802-11-wireless.mode", ""),
            "band": Band.from_nm_value(fields.get("802-11-wireless.band", "")),
            "channel": channel,
            "ipv4_addresses": _none_if_dashes(fields.get("ipv4.addresses", "")),
            "key_mgmt": _none_if_dashes(
                fields.get("802-11-wireless-security.key-mgmt", "")
            ),
        }
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class NmcliService:
    """NetworkManager-backed :class:`NetworkConfigService`.

    Usage::

        service = NmcliService()
        snapshot = service.snapshot()
        result = service.up("MyHome-AP")

    Args:
        binary: ``nmcli`` executable.
        timeout: Per-command timeout in seconds.
        runner: Command runner (injectable for tests).
    """

    def __init__(
        self,
        binary: str = "nmcli",
        *,
        timeout: float = 30.0,
        runner: Runner = run_command,
    ) -> None:
        self._binary = binary
        self._timeout = timeout
        self._run = runner

    def _nmcli(self, *args: str, redact: Sequence[str] = ()) -> CommandResult:
        return self._run([self._binary, *args], timeout=self._timeout, redact=redact)

    # ------------------------------------------------------------------ #
    #  Queries
    # ------------------------------------------------------------------ #

    def list_devices(self) -> list[InterfaceDescriptor]:
        result = self._nmcli("-t", "-f", "DEVICE,TYPE,STATE,CONNECTION", "device", "status")
        if not result.ok:
            logger.warning("Could not list devices: %s", result.stderr.strip())
            return []
        return parse_device_status(result.stdout)

    def list_profiles(self) -> list[ConnectionProfile]:
        result = self._nmcli("-t", "-f", "NAME,TYPE,STATE,DEVICE", "connection", "show")
        if not result.ok:
            logger.warning("Could not list connections: %s", result.stderr.strip())
            return []
        return parse_connection_list(result.stdout)

    def get_profile(self, name: str) -> Optional[ConnectionProfile]:
        base = next((p for p in self.list_profiles() if p.name == name), None)
        if base is None:
            return None
        return self._read_details(base)

    def _read_details(self, base: ConnectionProfile) -> ConnectionProfile:
        result = self._nmcli(
            "-t", "-f", ",".join(_PROFILE_FIELDS), "connection", "show", base.name
        )
        if not result.ok:
            logger.warning(
                "Could not read settings of %s: %s", base.name, result.stderr.strip()
            )
            return base
        return _profile_from_fields(base, parse_profile_fields(result.stdout))

    def snapshot(self) -> SystemSnapshot:
        """Devices and profiles; AP-pattern profiles are read in full."""
        profiles = [
            self._read_details(p) if p.is_ap else p for p in self.list_profiles()
        ]
        return SystemSnapshot(interfaces=self.list_devices(), profiles=profiles)

    def scan_networks(self, interface: Optional[str] = None) -> list[NetworkObservation]:
        args = ["-t", "-f", "SSID,CHAN", "device", "wifi", "list", "--rescan", "no"]
        if interface:
            args += ["ifname", interface]
        result = self._nmcli(*args)
        if not result.ok:
            logger.warning("WiFi scan listing failed: %s", result.stderr.strip())
            return []
        return parse_wifi_list(result.stdout)

    # ------------------------------------------------------------------ #
    #  Profile mutation
    # ------------------------------------------------------------------ #

    def add_ap_profile(self, name: str, interface: str, ssid: str) -> CommandResult:
        return self._nmcli(
            "connection", "add", "type", "wifi", "ifname", interface,
            "mode", "ap", "con-name", name, "ssid", ssid,
        )

    def modify_profile(self, name: str, settings: Mapping[str, str]) -> CommandResult:
        args: list[str] = ["connection", "modify", name]
        secrets: list[str] = []
        for key, value in settings.items():
            args += [key, value]
            if key in _SECRET_SETTINGS:
                secrets.append(value)
        return self._nmcli(*args, redact=secrets)

    def delete_profile(self, name: str) -> CommandResult:
        return self._nmcli("connection", "delete", name)

    def up(self, name: str, interface: Optional[str] = None) -> CommandResult:
        args = ["connection", "up", name]
        if interface:
            args += ["ifname", interface]
        return self._nmcli(*args)

    def down(self, name: str) -> CommandResult:
        return self._nmcli("connection", "down", name)

    # ------------------------------------------------------------------ #
    #  Device / radio
    # ------------------------------------------------------------------ #

    def disconnect_device(self, interface: str) -> CommandResult:
        return self._nmcli("device", "disconnect", interface)

    def set_wifi_radio(self, enabled: bool) -> CommandResult:
        return self._nmcli("radio", "wifi", "on" if enabled else "off")

    def set_managed(self, interface: str, managed: bool) -> CommandResult:
        return self._nmcli("device", "set", interface, "managed", "yes" if managed else "no")

    def rescan(self, interface: str) -> CommandResult:
        return self._nmcli("device", "wifi", "rescan", "ifname", interface)
