"""
wifiap Engine
==============

Central orchestration for the access point manager.  The engine owns
no state of its own: each operation takes one snapshot of the system
through the :class:`~wifiap.backend.service.NetworkConfigService`, runs
the selectors on it, and issues the resulting profile changes.

Operations:
    create       -- create, replace or restart the AP profile for an SSID
    reset        -- remove every AP profile, return radios to client mode
    update_band  -- change band/channel of an existing profile only
    start / stop / restart / status / list_connections / delete /
    interfaces   -- control surface over named profiles

Every failure is raised as a :class:`~wifiap.core.errors.WifiAPError`
carrying its exit code; best-effort cleanup steps only log warnings.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from apshared.config import ToolkitConfig, WifiAPConfig
from apshared.console import ToolConsole
from apshared.logger import ToolLogger
from apshared.process import CommandResult

from wifiap.backend.iw import IwProber
from wifiap.backend.nmcli import NmcliService
from wifiap.backend.service import CapabilityProber, NetworkConfigService
from wifiap.core.errors import (
    ExternalToolError,
    OperatorAbort,
    PreconditionError,
    ValidationError,
)
from wifiap.core.models import (
    APConfig,
    Band,
    ConnectionProfile,
    ControlAction,
    ExistingProfileAction,
    InterfaceDescriptor,
    SystemSnapshot,
    parse_channel,
    validate_ip_cidr,
    validate_password,
    validate_ssid,
)
from wifiap.core.prompts import InteractivePrompter, Prompter
from wifiap.output.console import APConsoleOutput
from wifiap.selectors.channel import ChannelSelector
from wifiap.selectors.interface import select_interface, validate_interface

logger = ToolLogger("core.engine")

_CREATE_HINT = "Create one first with: wifiap create <SSID> <PASSWORD>"


def check_create_arguments(
    ssid: str,
    password: str,
    channel: Optional[str | int],
    ip_cidr: Optional[str],
    band: Optional[str | Band],
    settings: WifiAPConfig,
) -> tuple[Band, Optional[int], str]:
    """Validate create arguments without touching the system.

    Missing values take the configured defaults.

    Returns:
        ``(band, channel, ip_cidr)``; channel is ``None`` for ``auto``.
    """
    try:
        validate_ssid(ssid)
        validate_password(password)
        band_ = Band.parse(band if band is not None else settings.default_band)
        requested = parse_channel(
            channel if channel is not None else settings.default_channel, band_
        )
        address = validate_ip_cidr(ip_cidr or settings.default_ip)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    return band_, requested, address


def check_band_arguments(
    band: str | Band, channel: Optional[str | int]
) -> tuple[Band, Optional[int]]:
    try:
        band_ = Band.parse(band)
        return band_, parse_channel(channel, band_)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


class APEngine:
    """Access point orchestration engine.

    Usage::

        engine = APEngine(config=config, console=console, prompter=prompter)
        engine.create("MyHome", "secretpass", channel="auto")
        engine.update_band("MyHome-AP", "5")
        engine.reset()

    Args:
        config: Toolkit configuration. Defaults if None.
        console: Console for operator output.
        service: Network configuration service (``nmcli`` if None).
        prober: Radio capability prober (``iw`` if None).
        prompter: Confirmation capability (interactive if None).
        sleep: Sleep function, replaced in tests.
    """

    def __init__(
        self,
        config: Optional[ToolkitConfig] = None,
        console: Optional[ToolConsole] = None,
        *,
        service: Optional[NetworkConfigService] = None,
        prober: Optional[CapabilityProber] = None,
        prompter: Optional[Prompter] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config or ToolkitConfig()
        settings = self._config.wifiap
        self._settings = settings
        self._console = console or ToolConsole()
        self._output = APConsoleOutput(self._console)
        self._service: NetworkConfigService = service or NmcliService(
            settings.nmcli_binary, timeout=settings.command_timeout
        )
        self._prober: CapabilityProber = prober or IwProber(
            settings.iw_binary, timeout=settings.command_timeout
        )
        self._prompter: Prompter = prompter or InteractivePrompter(self._console)
        self._sleep = sleep
        self._channel_selector = ChannelSelector(
            self._service,
            settle_seconds=settings.scan_settle_seconds,
            sleep=sleep,
        )

    # ================================================================== #
    #  Create
    # ================================================================== #

    def create(
        self,
        ssid: str,
        password: str,
        interface: Optional[str] = None,
        channel: Optional[str | int] = None,
        ip_cidr: Optional[str] = None,
        band: Optional[str | Band] = None,
    ) -> str:
        """Create (or replace / restart) the access point for *ssid*.

        Args:
            ssid: Network name, 1-32 bytes.
            password: WPA2 passphrase, 8-63 bytes of UTF-8.
            interface: WiFi interface; auto-selected if None.
            channel: Channel number or ``"auto"``; config default if None.
            ip_cidr: Gateway address with prefix; config default if None.
            band: ``2.4`` or ``5``; config default if None.

        Returns:
            Name of the activated connection profile.
        """
        with logger.operation("create"):
            band_, requested, address = check_create_arguments(
                ssid, password, channel, ip_cidr, band, self._settings
            )

            self._output.display_banner("WiFi Access Point Setup")
            snapshot = self._service.snapshot()
            iface_name = self._resolve_interface(snapshot, interface)
            self._require_band(iface_name, band_)

            channel_note = ""
            if requested is None:
                requested = self._auto_channel(band_, iface_name, ssid)
                channel_note = " (auto-selected)"

            ap = APConfig(
                ssid=ssid,
                password=password,
                interface=iface_name,
                band=band_,
                channel=requested,
                ip_cidr=address,
            )
            name = ap.profile_name
            iface = snapshot.interface(iface_name)
            busy = iface is not None and iface.connected

            if busy:
                self._console.warning(f"Interface {iface_name} is currently connected")
                if not self._prompter.confirm(
                    "This will disconnect any existing connection. Continue?"
                ):
                    raise OperatorAbort("Aborted", exit_code=1)

            self._output.display_config_summary(
                ap,
                show_password=self._settings.show_password,
                channel_note=channel_note,
            )

            existing = snapshot.profile(name)
            if existing is not None:
                self._console.info(
                    f"Connection '{name}' already exists "
                    f"(State: {existing.state or 'inactive'})"
                )
            else:
                self._console.info(f"Will create new connection '{name}'")

            if not self._prompter.confirm("Proceed with this configuration?"):
                raise OperatorAbort("Aborted")

            if busy:
                self._best_effort(
                    self._service.disconnect_device(iface_name),
                    f"Could not disconnect {iface_name}",
                )

            if existing is not None:
                if existing.active:
                    self._console.info(
                        "Connection is currently active. It will be stopped and reconfigured."
                    )
                    self._best_effort(self._service.down(name), f"Could not stop {name}")

                action = self._prompter.existing_profile_action(name)
                if action is ExistingProfileAction.ABORT:
                    raise OperatorAbort("Aborted")
                if action is ExistingProfileAction.KEEP:
                    self._console.info("Keeping existing configuration, just restarting...")
                    self._activate(name, None, "Could not restart existing connection")
                    self._console.success(f"Existing WiFi access point '{name}' restarted")
                    self._show_profile(name)
                    return name

                self._console.info("Deleting existing connection...")
                self._best_effort(
                    self._service.delete_profile(name), f"Could not delete {name}"
                )

            self._build_profile(ap)
            self._console.info("Starting access point...")
            self._activate(name, iface_name, "Failed to start access point")

            self._console.success(f"WiFi access point '{ap.ssid}' created on {iface_name}")
            self._console.print("Clients can now connect to your access point.")
            self._show_profile(name)
            logger.info("Access point %s active on %s", name, iface_name, channel=ap.channel)
            return name

    def _resolve_interface(self, snapshot: SystemSnapshot, interface: Optional[str]) -> str:
        if interface:
            validate_interface(snapshot, interface)
            return interface

        self._console.info("No interface specified, auto-detecting...")
        choice = select_interface(snapshot)
        if choice.profile is not None:
            self._console.info(
                f"Found existing access point on interface {choice.name}; "
                f"defaulting to update it"
            )
        else:
            self._console.info(f"Using only available interface: {choice.name}")
        return choice.name

    def _build_profile(self, ap: APConfig) -> None:
        name = ap.profile_name
        self._console.info(f"Creating access point connection '{name}'...")
        result = self._service.add_ap_profile(name, ap.interface, ap.ssid)
        if not result.ok:
            raise ExternalToolError(f"Could not create connection '{name}'", result)

        self._console.info("Configuring wireless, IP and security settings...")
        result = self._service.modify_profile(name, ap.profile_settings())
        if not result.ok:
            raise ExternalToolError(f"Could not configure connection '{name}'", result)

    # ================================================================== #
    #  Reset
    # ================================================================== #

    def reset(self) -> list[str]:
        """Remove all AP profiles and return interfaces to client mode.

        Returns:
            Names of the profiles that were deleted.
        """
        with logger.operation("reset"):
            self._console.section("WiFi Access Point Reset")
            self._console.print("This will:")
            self._console.print("  1. Stop all active access points")
            self._console.print("  2. Delete all AP connection profiles")
            self._console.print("  3. Restore interfaces to client mode")

            if not self._prompter.confirm("Continue with reset?"):
                raise OperatorAbort("Reset cancelled.")

            snapshot = self._service.snapshot()
            profiles = snapshot.ap_profiles
            deleted: list[str] = []

            if not profiles:
                self._console.info("No access point connections found.")
            for profile in profiles:
                self._console.print(f"Stopping and deleting: {profile.name}")
                self._best_effort(self._service.down(profile.name), None)
                result = self._service.delete_profile(profile.name)
                if result.ok:
                    deleted.append(profile.name)
                else:
                    self._console.warning(f"Could not delete {profile.name}")
                    logger.warning(
                        "Delete of %s failed: %s", profile.name, result.stderr.strip()
                    )

            self._console.info("Re-enabling WiFi interfaces for client mode...")
            for iface in snapshot.wifi_interfaces:
                if iface.is_p2p:
                    continue
                self._restore_client_mode(iface)

            self._console.success(
                "Access point reset complete! "
                "WiFi interfaces are now ready for client connections."
            )
            networks = self._service.scan_networks()
            if networks:
                self._output.display_networks(networks, limit=10)
            self._console.print(
                'To connect to a network, use: '
                'nmcli dev wifi connect "NETWORK_NAME" password "PASSWORD"'
            )
            return deleted

    def _restore_client_mode(self, iface: InterfaceDescriptor) -> None:
        self._console.print(f"Enabling interface: {iface.name}")
        self._best_effort(self._service.set_wifi_radio(True), "Could not enable WiFi radio")
        self._best_effort(
            self._service.set_managed(iface.name, True),
            f"Could not set {iface.name} to managed",
        )
        self._best_effort(self._service.rescan(iface.name), None)

    # ================================================================== #
    #  Update band / channel
    # ================================================================== #

    def update_band(
        self,
        name: str,
        band: str | Band,
        channel: Optional[str | int] = None,
    ) -> int:
        """Change only the band and channel of profile *name*.

        An active profile is stopped, modified and restarted.

        Returns:
            The channel now configured.
        """
        with logger.operation("update-band"):
            band_, requested = check_band_arguments(band, channel)

            profile = self._service.get_profile(name)
            if profile is None:
                raise PreconditionError(f"Connection '{name}' not found")
            if not profile.is_wireless:
                raise PreconditionError(f"Connection '{name}' is not a WiFi connection")

            iface_name = profile.bound_interface
            if iface_name:
                self._require_band(iface_name, band_)

            if requested is None:
                if not iface_name:
                    raise PreconditionError(
                        f"Connection '{name}' is not bound to an interface; "
                        f"pass an explicit channel instead of auto"
                    )
                requested = self._auto_channel(band_, iface_name, profile.ssid or None)

            was_active = profile.active
            if was_active:
                self._console.info(f"Stopping {name} to apply changes...")
                self._best_effort(self._service.down(name), f"Could not stop {name}")

            result = self._service.modify_profile(
                name,
                {
                    "802-11-wireless.band": band_.nm_value,
                    "802-11-wireless.channel": str(requested),
                },
            )
            if not result.ok:
                raise ExternalToolError(f"Failed to update band/channel of '{name}'", result)
            self._console.success(
                f"Updated '{name}' to {band_.label}, channel {requested}"
            )

            if was_active:
                result = self._service.up(name)
                if not result.ok:
                    raise ExternalToolError(
                        f"Settings were updated but restarting '{name}' failed", result
                    )
                self._console.success(f"Access point '{name}' restarted")

            return requested

    # ================================================================== #
    #  Control surface
    # ================================================================== #

    def control(
        self,
        action: ControlAction,
        name: Optional[str] = None,
        interface: Optional[str] = None,
    ) -> None:
        """Dispatch one control command."""
        with logger.operation(action.value):
            if action is ControlAction.START:
                self.start(name, interface)
            elif action is ControlAction.STOP:
                self.stop(name)
            elif action is ControlAction.RESTART:
                self.restart(name, interface)
            elif action is ControlAction.STATUS:
                self.status(name)
            elif action is ControlAction.LIST:
                self.list_connections()
            elif action is ControlAction.DELETE:
                self.delete(name)
            elif action is ControlAction.INTERFACES:
                self.interfaces()

    def _default_ap(self) -> str:
        profiles = SystemSnapshot(profiles=self._service.list_profiles()).ap_profiles
        if not profiles:
            raise PreconditionError(f"No access point connections found. {_CREATE_HINT}")
        return profiles[0].name

    def start(self, name: Optional[str] = None, interface: Optional[str] = None) -> str:
        target = name or self._default_ap()
        self._console.info(f"Starting access point: {target}")
        self._activate(target, interface, "Failed to start access point")
        self._console.success("Access point started successfully")
        return target

    def stop(self, name: Optional[str] = None) -> list[str]:
        if name:
            self._console.info(f"Stopping access point: {name}")
            result = self._service.down(name)
            if result.ok:
                self._console.success("Access point stopped successfully")
                return [name]
            self._console.warning("Failed to stop access point (may not be active)")
            return []

        active = SystemSnapshot(profiles=self._service.list_profiles()).active_ap_profiles
        if not active:
            self._console.info("No active access points found")
            return []
        self._console.info("Stopping all active access points...")
        stopped: list[str] = []
        for profile in active:
            self._console.print(f"  Stopping: {profile.name}")
            if self._best_effort(self._service.down(profile.name), f"Could not stop {profile.name}"):
                stopped.append(profile.name)
        self._console.success("All access points stopped")
        return stopped

    def restart(self, name: Optional[str] = None, interface: Optional[str] = None) -> str:
        target = name or self._default_ap()
        self._console.info(f"Restarting access point: {target}")
        self._best_effort(self._service.down(target), None)
        self._sleep(self._settings.restart_delay_seconds)
        self._activate(target, interface, "Failed to restart access point")
        self._console.success("Access point restarted successfully")
        return target

    def status(self, name: Optional[str] = None) -> None:
        self._console.section("WiFi Access Point Status")
        if name:
            profile = self._service.get_profile(name)
            if profile is None:
                raise PreconditionError(f"Connection '{name}' not found")
            self._console.print(f"Connection: {profile.name}")
            self._console.print(f"State: {profile.state or 'inactive'}")
            if profile.active:
                self._output.display_profile_details(profile)
                wifi = [i for i in self._service.list_devices() if i.is_wifi]
                self._output.display_devices(wifi)
            return

        snapshot = self._service.snapshot()
        if not snapshot.ap_profiles:
            self._console.info("No access point connections configured")
            self._console.print(_CREATE_HINT)
            return

        self._output.display_profiles(snapshot.ap_profiles)
        if snapshot.wifi_interfaces:
            self._output.display_devices(snapshot.wifi_interfaces)
        else:
            self._console.info("No WiFi interfaces found")
        for profile in snapshot.active_ap_profiles:
            self._output.display_profile_details(profile)

    def list_connections(self) -> list[ConnectionProfile]:
        profiles = [p for p in self._service.list_profiles() if p.is_wireless]
        if not profiles:
            self._console.info("No WiFi connections found")
        else:
            self._output.display_wifi_profiles(profiles)
        return profiles

    def delete(self, name: Optional[str]) -> None:
        if not name:
            raise ValidationError(
                "Connection name required for delete command "
                "(usage: wifiap control delete <CONNECTION_NAME>)"
            )
        self._console.info(f"Deleting access point connection: {name}")
        result = self._service.delete_profile(name)
        if not result.ok:
            raise ExternalToolError(f"Failed to delete connection '{name}'", result)
        self._console.success("Connection deleted successfully")

    def interfaces(self) -> list[InterfaceDescriptor]:
        wifi = [i for i in self._service.list_devices() if i.is_wifi]
        if not wifi:
            self._console.info("No WiFi interfaces found")
            return wifi
        ap_modes: dict[str, Optional[bool]] = {}
        bands: dict[str, Optional[set[Band]]] = {}
        for iface in wifi:
            if iface.is_p2p:
                continue
            ap_modes[iface.name] = self._prober.supports_ap_mode(iface.name)
            bands[iface.name] = self._prober.supported_bands(iface.name)
        self._output.display_interfaces(wifi, ap_modes, bands)
        return wifi

    # ================================================================== #
    #  Helpers
    # ================================================================== #

    def _require_band(self, interface: str, band: Band) -> None:
        if not self._prober.supports(interface, band):
            raise PreconditionError(
                f"Interface {interface} does not support the {band.label} band"
            )

    def _auto_channel(self, band: Band, interface: str, own_ssid: Optional[str]) -> int:
        with self._console.status(f"Scanning for the least congested {band.label} channel..."):
            channel = self._channel_selector.select(band, interface, own_ssid)
        self._output.display_channel_usage(self._channel_selector.last_samples, channel)
        return channel

    def _activate(self, name: str, interface: Optional[str], step: str) -> None:
        result = self._service.up(name, interface)
        if not result.ok:
            raise ExternalToolError(step, result, hint=self._ap_mode_hint(interface))

    def _ap_mode_hint(self, interface: Optional[str]) -> str:
        if not interface:
            return "Check the connection with: wifiap control status"
        supported = self._prober.supports_ap_mode(interface)
        if supported is False:
            return f"Interface {interface} does not report AP mode support."
        return (
            f"Check that {interface} supports AP mode and that no "
            f"conflicting connections are active."
        )

    def _show_profile(self, name: str) -> None:
        profile = self._service.get_profile(name)
        if profile is not None:
            self._output.display_profile_details(profile)

    def _best_effort(self, result: CommandResult, warning: Optional[str]) -> bool:
        """Log a failed non-fatal step; returns whether it succeeded."""
        if result.ok:
            return True
        if warning:
            self._console.warning(warning)
        logger.warning(
            "Non-fatal step failed: %s (exit %d) %s",
            result.command_line,
            result.returncode,
            result.stderr.strip(),
        )
        return False
