"""Tests for the wifiap command-line interface."""

from __future__ import annotations

import pytest
from click.testing import CliRunner
from conftest import FakeNetworkService, FakeProber, ap_profile, console_text, wifi

import wifiap.cli as cli_module
from wifiap.cli import cli, normalize_argv
from wifiap.core import privilege
from wifiap.core.engine import APEngine


@pytest.fixture
def root_calls(monkeypatch) -> list[str]:
    """Replace the privilege gate with a recorder."""
    calls: list[str] = []

    def fake_ensure_root(argv, *, operation, **kwargs):
        calls.append(operation)

    monkeypatch.setattr(cli_module, "ensure_root", fake_ensure_root)
    return calls


@pytest.fixture
def invoke(console):
    """Run the CLI against a fake service; returns (result, service)."""

    def _invoke(args, service=None, prober=None):
        service = service if service is not None else FakeNetworkService(interfaces=[wifi("wlan0")])

        def factory(**kwargs):
            return APEngine(
                service=service,
                prober=prober or FakeProber(),
                sleep=lambda _s: None,
                **kwargs,
            )

        result = CliRunner().invoke(
            cli,
            args,
            obj={"console": console, "engine_factory": factory, "argv": list(args)},
        )
        return result, service

    return _invoke


class TestLegacyArguments:

    def test_reset_flag(self):
        assert normalize_argv(["--reset"]) == ["reset"]
        assert normalize_argv(["--reset", "--force"]) == ["reset", "--force"]

    def test_update_band_flag_after_global_option(self):
        assert normalize_argv(["--quiet", "--update-band", "Net-AP", "5"]) == [
            "--quiet", "update-band", "Net-AP", "5",
        ]

    def test_command_arguments_untouched(self):
        argv = ["create", "--reset", "secretpass"]
        assert normalize_argv(argv) == argv


class TestCreateCommand:

    def test_force_creates_access_point(self, invoke, root_calls, console):
        result, service = invoke(["create", "Net", "secretpass", "wlan0", "6", "--force"])

        assert result.exit_code == 0, console_text(console)
        assert root_calls == ["create"]
        assert service.profiles["Net-AP"].active
        assert service.settings["Net-AP"]["802-11-wireless.channel"] == "6"

    def test_band_option_overrides_positional(self, invoke, root_calls):
        result, service = invoke(
            ["create", "Net", "secretpass", "wlan0", "36", "192.168.4.1/24", "2.4",
             "--band", "5", "--force"]
        )
        assert result.exit_code == 0
        assert service.settings["Net-AP"]["802-11-wireless.band"] == "a"

    def test_auto_placeholders(self, invoke, root_calls):
        result, service = invoke(["create", "Net", "secretpass", "auto", "auto", "--force"])
        assert result.exit_code == 0
        assert ("rescan", "wlan0") in service.calls

    def test_invalid_password_exit_one(self, invoke, root_calls, console):
        result, service = invoke(["create", "Net", "short", "--force"])
        assert result.exit_code == 1
        assert "at least 8 bytes" in console_text(console)
        assert service.calls == []
        assert root_calls == []

    def test_multibyte_password_over_limit_never_reaches_sudo(self, invoke, root_calls):
        result, service = invoke(["create", "Net", "é" * 40, "wlan0", "6", "--force"])
        assert result.exit_code == 1
        assert root_calls == []
        assert service.calls == []

    def test_force_keeps_existing_profile(self, invoke, root_calls):
        service = FakeNetworkService(
            interfaces=[wifi("wlan0")], profiles=[ap_profile("Net-AP", "wlan0")]
        )
        result, _ = invoke(["create", "Net", "secretpass", "wlan0", "6", "--force"], service)
        assert result.exit_code == 0
        assert service.mutation_ops == ["up"]

    def test_force_replace_rebuilds_profile(self, invoke, root_calls):
        service = FakeNetworkService(
            interfaces=[wifi("wlan0")], profiles=[ap_profile("Net-AP", "wlan0")]
        )
        result, _ = invoke(
            ["create", "Net", "secretpass", "wlan0", "6", "--force", "--replace"], service
        )
        assert result.exit_code == 0
        assert service.mutation_ops == ["delete_profile", "add_ap_profile", "modify_profile", "up"]

    def test_activation_failure_shows_hint(self, invoke, root_calls, console):
        service = FakeNetworkService(interfaces=[wifi("wlan0")])
        service.failures.add("up")
        result, _ = invoke(["create", "Net", "secretpass", "wlan0", "6", "--force"], service)
        assert result.exit_code == 1
        text = console_text(console)
        assert "Failed to start access point" in text
        assert "supports AP mode" in text


class TestOtherCommands:

    def test_reset_force(self, invoke, root_calls):
        service = FakeNetworkService(
            interfaces=[wifi("wlan0")], profiles=[ap_profile("Net-AP", "wlan0")]
        )
        result, _ = invoke(["reset", "--force"], service)
        assert result.exit_code == 0
        assert root_calls == ["reset"]
        assert service.profiles == {}

    def test_update_band(self, invoke, root_calls):
        service = FakeNetworkService(
            interfaces=[wifi("wlan0")], profiles=[ap_profile("Net-AP", "wlan0")]
        )
        result, _ = invoke(["update-band", "Net-AP", "5", "36"], service)
        assert result.exit_code == 0
        assert root_calls == ["update-band"]
        assert service.settings["Net-AP"]["802-11-wireless.channel"] == "36"

    def test_update_band_unknown_profile(self, invoke, root_calls, console):
        result, _ = invoke(["update-band", "Nope-AP", "5"])
        assert result.exit_code == 1
        assert "not found" in console_text(console)

    def test_control_defaults_to_status_without_root(self, invoke, root_calls):
        result, service = invoke(["control"])
        assert result.exit_code == 0
        assert root_calls == []
        assert service.mutations == []

    @pytest.mark.parametrize("action", ["list", "interfaces", "status"])
    def test_read_only_actions_skip_privilege_gate(self, invoke, root_calls, action):
        result, _ = invoke(["control", action])
        assert result.exit_code == 0
        assert root_calls == []

    def test_control_stop_needs_root(self, invoke, root_calls):
        result, _ = invoke(["control", "stop"])
        assert result.exit_code == 0
        assert root_calls == ["stop"]

    def test_control_delete_without_name(self, invoke, root_calls, console):
        result, _ = invoke(["control", "delete"])
        assert result.exit_code == 1
        assert "Connection name required" in console_text(console)
        assert root_calls == []

    def test_update_band_bad_channel_checked_before_privileges(self, invoke, root_calls, console):
        result, service = invoke(["update-band", "Net-AP", "5", "6"])
        assert result.exit_code == 1
        assert root_calls == []
        assert service.calls == []
        assert "not valid for 5GHz" in console_text(console)

    def test_control_unknown_action(self, invoke, root_calls):
        result, _ = invoke(["control", "explode"])
        assert result.exit_code == 2

    def test_start_without_profiles(self, invoke, root_calls):
        result, _ = invoke(["control", "start"])
        assert result.exit_code == 1


class TestGlobalOptions:

    def test_missing_config_file(self, invoke, tmp_path):
        result, _ = invoke(["--config", str(tmp_path / "nope.toml"), "control"])
        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_config_file_applies(self, invoke, root_calls, tmp_path):
        path = tmp_path / "wifiap.toml"
        path.write_text('[wifiap]\ndefault_ip = "10.42.0.1/24"\n')
        result, service = invoke(
            ["--config", str(path), "create", "Net", "secretpass", "wlan0", "6", "--force"]
        )
        assert result.exit_code == 0
        assert service.settings["Net-AP"]["ipv4.addresses"] == "10.42.0.1/24"


class TestPrivilegeGate:

    def test_refused_without_auto_sudo(self, invoke, tmp_path, monkeypatch, console):
        monkeypatch.setattr(privilege.os, "geteuid", lambda: 1000)
        path = tmp_path / "wifiap.toml"
        path.write_text("[wifiap]\nauto_sudo = false\n")

        result, service = invoke(["--config", str(path), "control", "start", "Net-AP"])

        assert result.exit_code == 1
        assert "requires root privileges" in console_text(console)
        assert service.calls == []

    def test_invalid_ssid_rejected_before_sudo(self, invoke, monkeypatch, console):
        monkeypatch.setattr(privilege.os, "geteuid", lambda: 1000)
        monkeypatch.setattr(privilege.shutil, "which", lambda _b: None)

        result, service = invoke(["create", "x" * 33, "secretpass"])

        assert result.exit_code == 1
        text = console_text(console)
        assert "32 bytes" in text
        assert "sudo" not in text
        assert service.calls == []

    def test_reexecs_through_sudo(self, monkeypatch):
        execs: list[list[str]] = []
        monkeypatch.setattr(privilege.os, "geteuid", lambda: 1000)
        monkeypatch.setattr(privilege.shutil, "which", lambda _b: "/usr/bin/sudo")

        privilege.ensure_root(
            ["reset", "--force"],
            operation="reset",
            execvp=lambda path, argv: execs.append(argv),
        )

        assert execs == [
            ["/usr/bin/sudo", privilege.sys.executable, "-m", "wifiap", "reset", "--force"]
        ]

    def test_root_passes_through(self, monkeypatch):
        monkeypatch.setattr(privilege.os, "geteuid", lambda: 0)
        privilege.ensure_root([], operation="reset", execvp=pytest.fail)

    def test_missing_sudo(self, monkeypatch):
        monkeypatch.setattr(privilege.os, "geteuid", lambda: 1000)
        monkeypatch.setattr(privilege.shutil, "which", lambda _b: None)
        with pytest.raises(privilege.PreconditionError, match="'sudo' was not found"):
            privilege.ensure_root([], operation="reset", execvp=pytest.fail)
