"""
Radio Capability Prober
========================

Answers "does this interface's radio support band X / AP mode?" from
``iw`` output.  The interface is first resolved to its physical radio
(``iw dev IFACE info`` -> ``wiphy N``), then the radio's description
(``iw phy phyN info``) is inspected:

- 2.4 GHz is present if any 2000-2999 MHz frequency or a ``Band 1:``
  header is listed; 5 GHz if any 5000-5999 MHz frequency or a
  ``Band 2:`` header is listed.
- AP mode is present if ``* AP`` appears under
  ``Supported interface modes``.

Introspection failures never block: :meth:`IwProber.supports` answers
``True`` and logs a warning.

References:
    - iw(8). https://wireless.wiki.kernel.org/en/users/documentation/iw
"""

from __future__ import annotations

import re
from typing import Callable, Optional

from apshared.logger import ToolLogger
from apshared.process import CommandResult, run_command

from wifiap.core.models import Band

logger = ToolLogger("backend.iw")

Runner = Callable[..., CommandResult]

_WIPHY_RE = re.compile(r"^\s*wiphy\s+(\d+)\s*$", re.MULTILINE)
_FREQ_RE = re.compile(r"\*\s*(\d{4})(?:\.\d+)?\s*MHz")
_BAND_HEADER_RE = re.compile(r"^\s*Band\s+(\d+):", re.MULTILINE)

_BAND_HEADERS: dict[str, Band] = {"1": Band.GHZ_24, "2": Band.GHZ_5}


def parse_wiphy(output: str) -> Optional[str]:
    """``iw dev IFACE info`` output -> ``phyN`` (or ``None``)."""
    match = _WIPHY_RE.search(output)
    return f"phy{match.group(1)}" if match else None


def parse_bands(output: str) -> set[Band]:
    """Bands advertised in ``iw phy phyN info`` output."""
    bands: set[Band] = set()
    for match in _BAND_HEADER_RE.finditer(output):
        band = _BAND_HEADERS.get(match.group(1))
        if band is not None:
            bands.add(band)
    for match in _FREQ_RE.finditer(output):
        freq = int(match.group(1))
        for band in Band:
            low, high = band.frequency_range
            if low <= freq <= high:
                bands.add(band)
    return bands


def parse_interface_modes(output: str) -> list[str]:
    """Entries of the ``Supported interface modes`` block."""
    modes: list[str] = []
    in_block = False
    for line in output.splitlines():
        stripped = line.strip()
        if stripped.startswith("Supported interface modes"):
            in_block = True
            continue
        if in_block:
            if stripped.startswith("*"):
                modes.append(stripped.lstrip("*").strip())
            else:
                break
    return modes


class IwProber:
    """``iw``-backed :class:`~wifiap.backend.service.CapabilityProber`.

    Args:
        binary: ``iw`` executable.
        timeout: Per-command timeout in seconds.
        runner: Command runner (injectable for tests).
    """

    def __init__(
        self,
        binary: str = "iw",
        *,
        timeout: float = 10.0,
        runner: Runner = run_command,
    ) -> None:
        self._binary = binary
        self._timeout = timeout
        self._run = runner
        self._phy_info: dict[str, Optional[str]] = {}

    def _phy_for(self, interface: str) -> Optional[str]:
        result = self._run(
            [self._binary, "dev", interface, "info"], timeout=self._timeout
        )
        if not result.ok:
            return None
        return parse_wiphy(result.stdout)

    def _radio_info(self, interface: str) -> Optional[str]:
        """Cached ``iw phy`` output for the interface's radio."""
        if interface in self._phy_info:
            return self._phy_info[interface]

        info: Optional[str] = None
        phy = self._phy_for(interface)
        if phy is not None:
            result = self._run(
                [self._binary, "phy", phy, "info"], timeout=self._timeout
            )
            if result.ok:
                info = result.stdout
        self._phy_info[interface] = info
        return info

    def supported_bands(self, interface: str) -> Optional[set[Band]]:
        """Advertised bands, or ``None`` if the radio cannot be resolved."""
        info = self._radio_info(interface)
        if info is None:
            return None
        return parse_bands(info)

    def supports(self, interface: str, band: Band) -> bool:
        bands = self.supported_bands(interface)
        if bands is None:
            logger.warning(
                "Could not determine the radio behind %s; assuming %s is supported",
                interface,
                band.label,
            )
            return True
        return band in bands

    def supports_ap_mode(self, interface: str) -> Optional[bool]:
        info = self._radio_info(interface)
        if info is None:
            return None
        return "AP" in parse_interface_modes(info)
