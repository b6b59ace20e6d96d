"""Tests for the nmcli backend: terse output parsing and command lines."""

from __future__ import annotations

from typing import Optional

from apshared.process import CommandResult

from wifiap.backend.nmcli import (
    NmcliService,
    parse_connection_list,
    parse_device_status,
    parse_profile_fields,
    parse_wifi_list,
    split_terse_line,
)
from wifiap.core.models import Band


class FakeRunner:
    """Command runner returning canned output keyed by the nmcli arguments."""

    def __init__(self, responses: Optional[dict[tuple[str, ...], tuple[int, str]]] = None):
        self.responses = responses or {}
        self.calls: list[tuple[str, ...]] = []
        self.redactions: list[tuple[str, ...]] = []

    def __call__(self, args, *, timeout=None, redact=()):
        argv = tuple(args)
        self.calls.append(argv)
        self.redactions.append(tuple(redact))
        rc, out = self.responses.get(argv[1:], (0, ""))
        return CommandResult(argv, rc, out, "" if rc == 0 else "Error: failed")


DEVICES = (
    "wlan0:wifi:connected:HomeWifi\n"
    "p2p-dev-wlan0:wifi-p2p:disconnected:--\n"
    "eth0:ethernet:connected (externally):Wired connection 1\n"
    "lo:loopback:unmanaged:--\n"
)

CONNECTIONS = (
    "HomeWifi:802-11-wireless:activated:wlan0\n"
    "Net-AP:802-11-wireless::\n"
    "Wired connection 1:802-3-ethernet:activated:eth0\n"
)

NET_AP_DETAILS = (
    "connection.id:Net-AP\n"
    "connection.type:802-11-wireless\n"
    "connection.interface-name:wlan0\n"
    "802-11-wireless.ssid:Net\n"
    "802-11-wireless.mode:ap\n"
    "802-11-wireless.band:a\n"
    "802-11-wireless.channel:36\n"
    "ipv4.addresses:192.168.4.1/24\n"
    "802-11-wireless-security.key-mgmt:wpa-psk\n"
)


class TestTerseParsing:

    def test_escaped_colons(self):
        assert split_terse_line(r"Cafe\:Guest:6") == ["Cafe:Guest", "6"]

    def test_escaped_backslash(self):
        assert split_terse_line(r"a\\b:c") == ["a\\b", "c"]

    def test_empty_fields_kept(self):
        assert split_terse_line("Net-AP:802-11-wireless::") == ["Net-AP", "802-11-wireless", "", ""]

    def test_device_status(self):
        devices = parse_device_status(DEVICES)
        assert [d.name for d in devices] == ["wlan0", "p2p-dev-wlan0", "eth0", "lo"]
        assert devices[0].connected and devices[0].connection == "HomeWifi"
        assert devices[1].is_p2p and devices[1].connection == ""
        assert devices[2].state == "connected"
        assert not devices[3].managed

    def test_connection_list(self):
        profiles = parse_connection_list(CONNECTIONS)
        assert [p.name for p in profiles] == ["HomeWifi", "Net-AP", "Wired connection 1"]
        assert profiles[0].active and profiles[0].device == "wlan0"
        assert profiles[1].is_ap and not profiles[1].active
        assert not profiles[2].is_wireless

    def test_profile_fields_split_on_first_colon(self):
        fields = parse_profile_fields("ipv4.addresses:10.0.0.1/24\nconnection.id:a:b\n")
        assert fields == {"ipv4.addresses": "10.0.0.1/24", "connection.id": "a:b"}

    def test_wifi_list_skips_rows_without_channel(self):
        obs = parse_wifi_list("Home:6\n:11\nBroken:\nCafe\\:Guest:36\n")
        assert [(o.ssid, o.channel) for o in obs] == [("Home", 6), ("", 11), ("Cafe:Guest", 36)]


class TestNmcliService:

    def test_snapshot_reads_ap_details(self):
        runner = FakeRunner(
            {
                ("-t", "-f", "DEVICE,TYPE,STATE,CONNECTION", "device", "status"): (0, DEVICES),
                ("-t", "-f", "NAME,TYPE,STATE,DEVICE", "connection", "show"): (0, CONNECTIONS),
            }
        )
        snap = NmcliService(runner=runner).snapshot()
        detail_calls = [c for c in runner.calls if c[-1] == "Net-AP" and "show" in c]
        assert len(detail_calls) == 1
        assert [p.name for p in snap.ap_profiles] == ["Net-AP"]
        assert [i.name for i in snap.ap_candidates] == ["wlan0"]

    def test_get_profile_details(self):
        list_key = ("-t", "-f", "NAME,TYPE,STATE,DEVICE", "connection", "show")

        runner = FakeRunner({list_key: (0, CONNECTIONS)})

        def respond(args, *, timeout=None, redact=()):
            if args[-1] == "Net-AP":
                return CommandResult(tuple(args), 0, NET_AP_DETAILS, "")
            return runner(args, timeout=timeout, redact=redact)

        service = NmcliService(runner=respond)
        profile = service.get_profile("Net-AP")
        assert profile is not None
        assert profile.ssid == "Net"
        assert profile.band is Band.GHZ_5
        assert profile.channel == 36
        assert profile.interface_name == "wlan0"
        assert profile.bound_interface == "wlan0"
        assert profile.key_mgmt == "wpa-psk"

    def test_get_profile_missing(self):
        service = NmcliService(runner=FakeRunner())
        assert service.get_profile("Nope-AP") is None

    def test_query_failure_returns_empty(self):
        runner = FakeRunner(
            {("-t", "-f", "DEVICE,TYPE,STATE,CONNECTION", "device", "status"): (8, "")}
        )
        assert NmcliService(runner=runner).list_devices() == []

    def test_scan_networks_per_interface(self):
        runner = FakeRunner()
        NmcliService(runner=runner).scan_networks("wlan0")
        assert runner.calls[-1] == (
            "nmcli", "-t", "-f", "SSID,CHAN", "device", "wifi", "list",
            "--rescan", "no", "ifname", "wlan0",
        )

    def test_add_profile_command(self):
        runner = FakeRunner()
        NmcliService("/usr/bin/nmcli", runner=runner).add_ap_profile("Net-AP", "wlan0", "Net")
        assert runner.calls == [
            (
                "/usr/bin/nmcli", "connection", "add", "type", "wifi", "ifname", "wlan0",
                "mode", "ap", "con-name", "Net-AP", "ssid", "Net",
            )
        ]

    def test_modify_single_call_redacts_psk(self):
        runner = FakeRunner()
        result = NmcliService(runner=runner).modify_profile(
            "Net-AP",
            {"802-11-wireless.band": "a", "wifi-sec.psk": "secretpass"},
        )
        assert result.ok
        assert runner.calls == [
            (
                "nmcli", "connection", "modify", "Net-AP",
                "802-11-wireless.band", "a", "wifi-sec.psk", "secretpass",
            )
        ]
        assert runner.redactions == [("secretpass",)]

    def test_lifecycle_commands(self):
        runner = FakeRunner()
        service = NmcliService(runner=runner)
        service.up("Net-AP", "wlan0")
        service.up("Net-AP")
        service.down("Net-AP")
        service.delete_profile("Net-AP")
        service.disconnect_device("wlan0")
        service.set_wifi_radio(True)
        service.set_managed("wlan0", True)
        service.rescan("wlan0")
        assert [c[1:] for c in runner.calls] == [
            ("connection", "up", "Net-AP", "ifname", "wlan0"),
            ("connection", "up", "Net-AP"),
            ("connection", "down", "Net-AP"),
            ("connection", "delete", "Net-AP"),
            ("device", "disconnect", "wlan0"),
            ("radio", "wifi", "on"),
            ("device", "set", "wlan0", "managed", "yes"),
            ("device", "wifi", "rescan", "ifname", "wlan0"),
        ]

    def test_failed_mutation_is_reported(self):
        runner = FakeRunner({("connection", "delete", "Nope-AP"): (10, "")})
        result = NmcliService(runner=runner).delete_profile("Nope-AP")
        assert not result.ok
        assert result.returncode == 10
