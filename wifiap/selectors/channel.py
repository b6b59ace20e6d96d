"""
Channel Selector
=================

Picks the least congested channel for a new or updated access point.

The selector refreshes the scan list on the AP interface, waits a short
settle time, counts how many visible networks sit on each candidate
channel and returns the emptiest one.

Candidates:
    - 2.4 GHz: the non-overlapping channels 1, 6 and 11 (default 6).
    - 5 GHz: 36, 40, 44, 48, 149, 153, 157, 161, 165 (default 36).
      DFS channels (52-144) are legal for a manual choice but never
      auto-selected.

Tie-break: the default channel is kept unless another candidate is
strictly less occupied; among those, the first in scanning order with
the lowest count wins.  Networks broadcasting the AP's own SSID are not
counted, so re-tuning a live AP does not see itself as interference.

References:
    - IEEE. (2020). IEEE Std 802.11-2020. Annex E.
    - Cisco. (2023). 2.4 GHz Band Channel Assignment. Wireless LAN
      Design Guide.
"""

from __future__ import annotations

import time
from typing import Callable, Iterable, Optional, Sequence

from apshared.logger import ToolLogger

from wifiap.backend.service import NetworkConfigService
from wifiap.core.models import Band, ChannelUsageSample, NetworkObservation

logger = ToolLogger("selectors.channel")


def tally_channels(
    observations: Iterable[NetworkObservation],
    candidates: Sequence[int],
    own_ssid: Optional[str] = None,
) -> list[ChannelUsageSample]:
    """Count observed networks per candidate channel.

    Candidates nobody was seen on are reported with a count of zero.
    """
    counts: dict[int, int] = {ch: 0 for ch in candidates}
    for obs in observations:
        if own_ssid is not None and obs.ssid == own_ssid:
            continue
        if obs.channel in counts:
            counts[obs.channel] += 1
    return [ChannelUsageSample(channel=ch, count=counts[ch]) for ch in candidates]


def pick_channel(samples: Sequence[ChannelUsageSample], default: int) -> int:
    """Lowest-count channel; *default* wins unless strictly beaten."""
    by_channel = {s.channel: s.count for s in samples}
    best = default
    best_count = by_channel.get(default, 0)
    for sample in samples:
        if sample.count < best_count:
            best = sample.channel
            best_count = sample.count
    return best


def select_channel(
    observations: Iterable[NetworkObservation],
    band: Band,
    own_ssid: Optional[str] = None,
) -> int:
    """Pure selection over already-collected observations."""
    samples = tally_channels(observations, band.auto_candidates, own_ssid)
    return pick_channel(samples, band.default_channel)


class ChannelSelector:
    """Scans and selects a channel for one band and interface.

    Usage::

        selector = ChannelSelector(service, settle_seconds=2.0)
        channel = selector.select(Band.GHZ_24, "wlan0", own_ssid="MyHome")

    Args:
        service: Network configuration service used to scan.
        settle_seconds: Wait between the rescan request and reading results.
        sleep: Sleep function (injectable for tests).
    """

    def __init__(
        self,
        service: NetworkConfigService,
        *,
        settle_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._service = service
        self._settle_seconds = settle_seconds
        self._sleep = sleep
        self.last_samples: list[ChannelUsageSample] = []

    def scan(self, interface: str) -> list[NetworkObservation]:
        """Refresh and read the visible networks; a failed rescan is ignored."""
        result = self._service.rescan(interface)
        if not result.ok:
            logger.warning(
                "Rescan on %s failed (%s); using cached scan results",
                interface,
                result.stderr.strip() or f"exit {result.returncode}",
            )
        self._sleep(self._settle_seconds)
        return self._service.scan_networks(interface)

    def select(
        self,
        band: Band,
        interface: str,
        own_ssid: Optional[str] = None,
    ) -> int:
        with logger.timed(f"channel selection on {interface}"):
            observations = self.scan(interface)
        self.last_samples = tally_channels(observations, band.auto_candidates, own_ssid)
        channel = pick_channel(self.last_samples, band.default_channel)
        logger.info(
            "Selected channel %d for %s on %s (%d networks visible)",
            channel,
            band.label,
            interface,
            len(observations),
            usage={s.channel: s.count for s in self.last_samples},
        )
        return channel
