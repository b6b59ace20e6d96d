"""
Network Configuration Service Interface
========================================

The narrow seam between wifiap's decision logic and the external tools
that own the real state.  Everything above this interface works on the
models from :mod:`wifiap.core.models`; everything below it (command
lines, terse-output parsing) lives in :mod:`wifiap.backend.nmcli` and
:mod:`wifiap.backend.iw`.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

from apshared.process import CommandResult

from wifiap.core.models import (
    Band,
    ConnectionProfile,
    InterfaceDescriptor,
    NetworkObservation,
    SystemSnapshot,
)


class NetworkConfigService(Protocol):
    """Profile and device operations backed by a connection manager."""

    # -- queries ---------------------------------------------------------

    def list_devices(self) -> list[InterfaceDescriptor]: ...

    def list_profiles(self) -> list[ConnectionProfile]: ...

    def get_profile(self, name: str) -> Optional[ConnectionProfile]: ...

    def snapshot(self) -> SystemSnapshot: ...

    def scan_networks(self, interface: Optional[str] = None) -> list[NetworkObservation]: ...

    # -- profile mutation --------------------------------------------------

    def add_ap_profile(self, name: str, interface: str, ssid: str) -> CommandResult: ...

    def modify_profile(self, name: str, settings: Mapping[str, str]) -> CommandResult: ...

    def delete_profile(self, name: str) -> CommandResult: ...

    def up(self, name: str, interface: Optional[str] = None) -> CommandResult: ...

    def down(self, name: str) -> CommandResult: ...

    # -- device / radio ----------------------------------------------------

    def disconnect_device(self, interface: str) -> CommandResult: ...

    def set_wifi_radio(self, enabled: bool) -> CommandResult: ...

    def set_managed(self, interface: str, managed: bool) -> CommandResult: ...

    def rescan(self, interface: str) -> CommandResult: ...


class CapabilityProber(Protocol):
    """Radio capability queries for one interface."""

    def supports(self, interface: str, band: Band) -> bool: ...

    def supported_bands(self, interface: str) -> Optional[set[Band]]: ...

    def supports_ap_mode(self, interface: str) -> Optional[bool]: ...
