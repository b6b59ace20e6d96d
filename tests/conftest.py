"""
Shared fixtures for the wifiap test suite.

The fakes below stand in for NetworkManager and ``iw`` so that the
engine, selectors and CLI can be exercised without WiFi hardware or
root privileges.
"""

from __future__ import annotations

import io
from typing import Iterable, Mapping, Optional

import pytest
from rich.console import Console

from apshared.config import ToolkitConfig
from apshared.console import ToolConsole
from apshared.process import CommandResult

from wifiap.core.engine import APEngine
from wifiap.core.models import (
    Band,
    ConnectionProfile,
    ExistingProfileAction,
    InterfaceDescriptor,
    NetworkObservation,
    SystemSnapshot,
)

QUERY_OPS = frozenset(
    {"list_devices", "list_profiles", "get_profile", "snapshot", "scan_networks"}
)


class FakeNetworkService:
    """In-memory NetworkConfigService.

    Mutations change the stored state the way NetworkManager would, and
    every call is appended to :attr:`calls` as ``(operation, *args)``.
    Operation names listed in :attr:`failures` return exit status 10.
    """

    def __init__(
        self,
        interfaces: Iterable[InterfaceDescriptor] = (),
        profiles: Iterable[ConnectionProfile] = (),
        observations: Iterable[NetworkObservation] = (),
        settings: Optional[Mapping[str, Mapping[str, str]]] = None,
    ) -> None:
        self.interfaces = {i.name: i for i in interfaces}
        self.profiles = {p.name: p for p in profiles}
        self.observations = list(observations)
        self.settings: dict[str, dict[str, str]] = {
            name: dict(values) for name, values in (settings or {}).items()
        }
        self.calls: list[tuple] = []
        self.failures: set[str] = set()

    # -- helpers -------------------------------------------------------

    @property
    def mutations(self) -> list[tuple]:
        return [c for c in self.calls if c[0] not in QUERY_OPS]

    @property
    def mutation_ops(self) -> list[str]:
        return [c[0] for c in self.mutations]

    def _result(self, op: str, *args: object, ok: bool = True) -> CommandResult:
        argv = ("nmcli", op, *(str(a) for a in args))
        if op in self.failures or not ok:
            return CommandResult(argv, 10, "", f"Error: {op} failed")
        return CommandResult(argv, 0)

    def _update_profile(self, name: str, **changes: object) -> None:
        self.profiles[name] = self.profiles[name].model_copy(update=changes)

    def _update_interface(self, name: str, **changes: object) -> None:
        if name in self.interfaces:
            self.interfaces[name] = self.interfaces[name].model_copy(update=changes)

    # -- queries -------------------------------------------------------

    def list_devices(self) -> list[InterfaceDescriptor]:
        self.calls.append(("list_devices",))
        return list(self.interfaces.values())

    def list_profiles(self) -> list[ConnectionProfile]:
        self.calls.append(("list_profiles",))
        return list(self.profiles.values())

    def get_profile(self, name: str) -> Optional[ConnectionProfile]:
        self.calls.append(("get_profile", name))
        return self.profiles.get(name)

    def snapshot(self) -> SystemSnapshot:
        self.calls.append(("snapshot",))
        return SystemSnapshot(
            interfaces=list(self.interfaces.values()),
            profiles=list(self.profiles.values()),
        )

    def scan_networks(self, interface: Optional[str] = None) -> list[NetworkObservation]:
        self.calls.append(("scan_networks", interface))
        return list(self.observations)

    # -- mutations -----------------------------------------------------

    def add_ap_profile(self, name: str, interface: str, ssid: str) -> CommandResult:
        self.calls.append(("add_ap_profile", name, interface, ssid))
        result = self._result("add_ap_profile", name, interface, ssid)
        if result.ok:
            self.profiles[name] = ConnectionProfile(
                name=name, interface_name=interface, ssid=ssid, mode="ap"
            )
            self.settings[name] = {}
        return result

    def modify_profile(self, name: str, settings: Mapping[str, str]) -> CommandResult:
        self.calls.append(("modify_profile", name, dict(settings)))
        result = self._result("modify_profile", name, ok=name in self.profiles)
        if result.ok:
            self.settings.setdefault(name, {}).update(settings)
            changes: dict[str, object] = {}
            if "802-11-wireless.band" in settings:
                changes["band"] = Band.from_nm_value(settings["802-11-wireless.band"])
            if "802-11-wireless.channel" in settings:
                changes["channel"] = int(settings["802-11-wireless.channel"])
            if "ipv4.addresses" in settings:
                changes["ipv4_addresses"] = settings["ipv4.addresses"]
            self._update_profile(name, **changes)
        return result

    def delete_profile(self, name: str) -> CommandResult:
        self.calls.append(("delete_profile", name))
        result = self._result("delete_profile", name, ok=name in self.profiles)
        if result.ok:
            del self.profiles[name]
            self.settings.pop(name, None)
        return result

    def up(self, name: str, interface: Optional[str] = None) -> CommandResult:
        self.calls.append(("up", name, interface))
        result = self._result("up", name, ok=name in self.profiles)
        if result.ok:
            device = interface or self.profiles[name].interface_name
            self._update_profile(name, state="activated", device=device)
            self._update_interface(device, state="connected", connection=name)
        return result

    def down(self, name: str) -> CommandResult:
        self.calls.append(("down", name))
        profile = self.profiles.get(name)
        result = self._result("down", name, ok=profile is not None and bool(profile.state))
        if result.ok and profile is not None:
            self._update_interface(profile.device, state="disconnected", connection="")
            self._update_profile(name, state="", device="")
        return result

    def disconnect_device(self, interface: str) -> CommandResult:
        self.calls.append(("disconnect_device", interface))
        result = self._result("disconnect_device", interface)
        if result.ok:
            self._update_interface(interface, state="disconnected", connection="")
        return result

    def set_wifi_radio(self, enabled: bool) -> CommandResult:
        self.calls.append(("set_wifi_radio", enabled))
        return self._result("set_wifi_radio", enabled)

    def set_managed(self, interface: str, managed: bool) -> CommandResult:
        self.calls.append(("set_managed", interface, managed))
        result = self._result("set_managed", interface, managed)
        if result.ok:
            self._update_interface(
                interface, state="disconnected" if managed else "unmanaged"
            )
        return result

    def rescan(self, interface: str) -> CommandResult:
        self.calls.append(("rescan", interface))
        return self._result("rescan", interface)


class FakeProber:
    """CapabilityProber answering from fixed tables; unknown means supported."""

    def __init__(
        self,
        bands: Optional[Mapping[str, set[Band]]] = None,
        ap_mode: Optional[Mapping[str, bool]] = None,
    ) -> None:
        self.bands = dict(bands or {})
        self.ap_mode = dict(ap_mode or {})

    def supported_bands(self, interface: str) -> Optional[set[Band]]:
        return self.bands.get(interface)

    def supports(self, interface: str, band: Band) -> bool:
        bands = self.bands.get(interface)
        return True if bands is None else band in bands

    def supports_ap_mode(self, interface: str) -> Optional[bool]:
        return self.ap_mode.get(interface)


class ScriptedPrompter:
    """Prompter replaying canned answers; confirms by default."""

    def __init__(
        self,
        answers: Iterable[bool] = (),
        action: ExistingProfileAction = ExistingProfileAction.REPLACE,
    ) -> None:
        self.answers = list(answers)
        self.action = action
        self.questions: list[str] = []
        self.existing_asked: list[str] = []

    def confirm(self, question: str) -> bool:
        self.questions.append(question)
        return self.answers.pop(0) if self.answers else True

    def existing_profile_action(self, name: str) -> ExistingProfileAction:
        self.existing_asked.append(name)
        return self.action


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def wifi(name: str = "wlan0", state: str = "disconnected", connection: str = "") -> InterfaceDescriptor:
    return InterfaceDescriptor(name=name, type="wifi", state=state, connection=connection)


def p2p(name: str = "p2p-dev-wlan0") -> InterfaceDescriptor:
    return InterfaceDescriptor(name=name, type="wifi-p2p", state="disconnected")


def ap_profile(
    name: str = "Net-AP",
    interface: str = "wlan0",
    *,
    active: bool = False,
    ssid: str = "Net",
    band: Band = Band.GHZ_24,
    channel: int = 6,
) -> ConnectionProfile:
    return ConnectionProfile(
        name=name,
        state="activated" if active else "",
        device=interface if active else "",
        interface_name=interface,
        ssid=ssid,
        mode="ap",
        band=band,
        channel=channel,
    )


def seen(ssid: str, channel: int) -> NetworkObservation:
    return NetworkObservation(ssid=ssid, channel=channel)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def console() -> ToolConsole:
    """Console writing to an in-memory buffer (see :func:`console_text`)."""
    return ToolConsole(console=Console(file=io.StringIO(), width=200, color_system=None))


def console_text(console: ToolConsole) -> str:
    return console.rich.file.getvalue()  # type: ignore[attr-defined]


@pytest.fixture
def config() -> ToolkitConfig:
    return ToolkitConfig()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_engine(config, console, sleeps):
    """Factory building an APEngine over fakes."""

    def _make(
        service: FakeNetworkService,
        *,
        prober: Optional[FakeProber] = None,
        prompter: Optional[ScriptedPrompter] = None,
    ) -> APEngine:
        return APEngine(
            config=config,
            console=console,
            service=service,
            prober=prober or FakeProber(),
            prompter=prompter or ScriptedPrompter(),
            sleep=sleeps.append,
        )

    return _make
