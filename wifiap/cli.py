"""
wifiap CLI
===========

Click-based command-line interface for the NetworkManager access point
manager.

Commands:
    wifiap create SSID PASSWORD [INTERFACE] [CHANNEL|auto] [IP_CIDR] [BAND]
    wifiap reset [--force]
    wifiap update-band NAME BAND [CHANNEL|auto]
    wifiap control [start|stop|restart|status|list|delete|interfaces] [NAME] [INTERFACE]

``wifiap --reset`` and ``wifiap --update-band ...`` are accepted as
aliases of the ``reset`` and ``update-band`` commands.

Common options:
    --config PATH       TOML configuration file
    --quiet             Suppress console output
    --verbose           Debug logging
    --log-file PATH     Also log to a rotating file

Exit codes: 0 on success or a declined prompt, 1 on any failure,
130 when interrupted.

References:
    - Click Documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import sys
from typing import Callable, Optional, Sequence

import click

from apshared.config import ToolkitConfig
from apshared.console import ToolConsole
from apshared.logger import configure_logging

from wifiap.core.engine import APEngine, check_band_arguments, check_create_arguments
from wifiap.core.errors import (
    ExternalToolError,
    InterfaceSelectionError,
    OperatorAbort,
    ValidationError,
    WifiAPError,
)
from wifiap.core.models import ControlAction
from wifiap.core.privilege import ensure_root
from wifiap.core.prompts import AutomaticPrompter, Prompter, build_prompter

_LEGACY_MODES: dict[str, str] = {
    "--reset": "reset",
    "--update-band": "update-band",
}

_BAND_CHOICES = ["2.4", "5", "2.4GHz", "5GHz"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def normalize_argv(argv: Sequence[str]) -> list[str]:
    """Rewrite a leading ``--reset``/``--update-band`` into its command."""
    args = list(argv)
    commands = set(cli.commands)
    for idx, token in enumerate(args):
        if token in commands:
            break
        if token in _LEGACY_MODES:
            args[idx] = _LEGACY_MODES[token]
            break
    return args


def _console(ctx: click.Context) -> ToolConsole:
    return ctx.obj["console"]


def _require_root(ctx: click.Context, operation: str) -> None:
    config: ToolkitConfig = ctx.obj["config"]
    console = _console(ctx)
    ensure_root(
        ctx.obj.get("argv", sys.argv[1:]),
        operation=operation,
        auto_sudo=config.wifiap.auto_sudo,
        sudo_binary=config.wifiap.sudo_binary,
        announce=console.info,
    )


def _engine(ctx: click.Context, prompter: Optional[Prompter] = None) -> APEngine:
    factory: Callable[..., APEngine] = ctx.obj.get("engine_factory", APEngine)
    return factory(
        config=ctx.obj["config"],
        console=_console(ctx),
        prompter=prompter,
    )


def _execute(console: ToolConsole, action: Callable[[], object]) -> None:
    """Run *action*, mapping wifiap errors to messages and exit codes."""
    try:
        action()
    except OperatorAbort as exc:
        console.info(exc.message)
        sys.exit(exc.exit_code)
    except InterfaceSelectionError as exc:
        console.error(exc.message)
        if exc.candidates:
            console.print("Usage: wifiap create <SSID> <PASSWORD> <INTERFACE>")
        sys.exit(exc.exit_code)
    except ExternalToolError as exc:
        console.error(f"FAILED: {exc.message}")
        if exc.hint:
            console.info(exc.hint)
        sys.exit(exc.exit_code)
    except WifiAPError as exc:
        console.error(exc.message)
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        console.warning("Interrupted by user")
        sys.exit(130)


# ---------------------------------------------------------------------------
# CLI Group
# ---------------------------------------------------------------------------


@click.group(
    name="wifiap",
    help=(
        "WIFIAP - NetworkManager access point manager\n\n"
        "Create, update and control WiFi access points through nmcli, "
        "with automatic interface and channel selection."
    ),
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to a wifiap configuration file (TOML).",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress console output.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also write logs to this rotating file.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    quiet: bool,
    verbose: bool,
    log_file: Optional[str],
) -> None:
    """wifiap main CLI entry point."""
    ctx.ensure_object(dict)

    try:
        config = ToolkitConfig.load(config_path) if config_path else ToolkitConfig.load()
    except FileNotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except ValueError as exc:
        # tomllib.TOMLDecodeError
        click.echo(f"Error: invalid configuration file: {exc}", err=True)
        sys.exit(1)

    settings = config.global_settings
    configure_logging(
        level="DEBUG" if verbose or settings.debug else settings.log_level,
        log_file=log_file or settings.log_file,
        json_logs=settings.log_json,
    )

    ctx.obj["config"] = config
    ctx.obj.setdefault("console", ToolConsole(quiet=quiet))
    ctx.obj["quiet"] = quiet


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


@cli.command(
    name="create",
    help=(
        "Create or update an access point.\n\n"
        "INTERFACE defaults to auto-detection (an interface already running "
        "an access point, else the only WiFi interface). CHANNEL may be a "
        "number or 'auto' to pick the least congested channel. IP_CIDR "
        "defaults to 192.168.4.1/24 and BAND to 2.4."
    ),
)
@click.argument("ssid")
@click.argument("password")
@click.argument("interface", required=False)
@click.argument("channel", required=False)
@click.argument("ip_cidr", required=False)
@click.argument("band", required=False)
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Skip confirmation prompts; keep and restart an existing profile.",
)
@click.option(
    "--replace",
    is_flag=True,
    default=False,
    help="Replace an existing profile without asking.",
)
@click.option(
    "--band",
    "band_option",
    type=click.Choice(_BAND_CHOICES, case_sensitive=False),
    default=None,
    help="Frequency band (overrides the positional BAND).",
)
@click.pass_context
def create(
    ctx: click.Context,
    ssid: str,
    password: str,
    interface: Optional[str],
    channel: Optional[str],
    ip_cidr: Optional[str],
    band: Optional[str],
    force: bool,
    replace: bool,
    band_option: Optional[str],
) -> None:
    """Create an access point."""
    console = _console(ctx)

    chosen_band = band_option or band or None

    def run() -> None:
        check_create_arguments(
            ssid, password, channel or None, ip_cidr or None, chosen_band,
            ctx.obj["config"].wifiap,
        )
        _require_root(ctx, "create")
        prompter = build_prompter(console, force=force, replace=replace)
        engine = _engine(ctx, prompter)
        engine.create(
            ssid,
            password,
            interface=None if interface in (None, "", "auto") else interface,
            channel=channel or None,
            ip_cidr=ip_cidr or None,
            band=chosen_band,
        )

    _execute(console, run)


# ---------------------------------------------------------------------------
# reset
# ---------------------------------------------------------------------------


@cli.command(
    name="reset",
    help=(
        "Remove all access point profiles and restore client mode.\n\n"
        "Stops and deletes every profile named *AP / *-AP, re-enables the "
        "WiFi radio, marks each WiFi interface managed and rescans."
    ),
)
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Do not ask for confirmation.",
)
@click.pass_context
def reset(ctx: click.Context, force: bool) -> None:
    """Reset all access points."""
    console = _console(ctx)

    def run() -> None:
        _require_root(ctx, "reset")
        prompter = AutomaticPrompter(console=console) if force else None
        _engine(ctx, prompter).reset()

    _execute(console, run)


# ---------------------------------------------------------------------------
# update-band
# ---------------------------------------------------------------------------


@cli.command(
    name="update-band",
    help=(
        "Change the band and channel of an existing profile.\n\n"
        "All other settings (SSID, password, addresses) are preserved. "
        "An active access point is stopped, updated and restarted."
    ),
)
@click.argument("name")
@click.argument("band")
@click.argument("channel", required=False)
@click.pass_context
def update_band(
    ctx: click.Context,
    name: str,
    band: str,
    channel: Optional[str],
) -> None:
    """Update band/channel of an access point."""
    console = _console(ctx)

    def run() -> None:
        check_band_arguments(band, channel or None)
        _require_root(ctx, "update-band")
        _engine(ctx).update_band(name, band, channel or None)

    _execute(console, run)


# ---------------------------------------------------------------------------
# control
# ---------------------------------------------------------------------------


@cli.command(
    name="control",
    help=(
        "Control access point profiles.\n\n"
        "start [NAME] [INTERFACE]    start NAME (default: first AP profile)\n\n"
        "stop [NAME]                 stop NAME (default: all active APs)\n\n"
        "restart [NAME] [INTERFACE]  restart NAME (default: first AP profile)\n\n"
        "status [NAME]               show access point status (default command)\n\n"
        "list                        list all WiFi connections\n\n"
        "delete NAME                 delete a connection\n\n"
        "interfaces                  show WiFi interfaces and capabilities"
    ),
)
@click.argument(
    "action",
    type=click.Choice([a.value for a in ControlAction]),
    required=False,
    default=ControlAction.STATUS.value,
)
@click.argument("name", required=False)
@click.argument("interface", required=False)
@click.pass_context
def control(
    ctx: click.Context,
    action: str,
    name: Optional[str],
    interface: Optional[str],
) -> None:
    """Run a control command."""
    console = _console(ctx)
    command = ControlAction(action)

    def run() -> None:
        if command is ControlAction.DELETE and not name:
            raise ValidationError(
                "Connection name required for delete command "
                "(usage: wifiap control delete <CONNECTION_NAME>)"
            )
        if command.needs_root:
            _require_root(ctx, command.value)
        _engine(ctx).control(command, name or None, interface or None)

    _execute(console, run)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the wifiap CLI."""
    args = normalize_argv(sys.argv[1:] if argv is None else argv)
    cli.main(args=args, prog_name="wifiap", obj={"argv": args})


if __name__ == "__main__":
    main()
