"""
Interface Selector
===================

Chooses the WiFi interface for an access point when the operator did
not name one, and validates the one they did name.

Decision table, first match wins:

    1. An AP profile already bound to an interface -> that interface
       (update the running AP instead of starting a second one).
    2. Exactly one managed, non-P2P WiFi interface  -> that interface.
    3. Several such interfaces                      -> refuse, list them.
    4. None                                         -> refuse.

AP profiles are examined in lexicographic name order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from apshared.logger import ToolLogger

from wifiap.core.errors import InterfaceSelectionError, PreconditionError
from wifiap.core.models import InterfaceDescriptor, SystemSnapshot

logger = ToolLogger("selectors.interface")


@dataclass(frozen=True, slots=True)
class InterfaceChoice:
    """Selected interface and why it was chosen."""

    name: str
    reason: str
    profile: Optional[str] = None


def existing_ap_interface(snapshot: SystemSnapshot) -> Optional[tuple[str, str]]:
    """``(interface, profile)`` of the first AP profile bound to an interface."""
    for profile in snapshot.ap_profiles:
        if profile.bound_interface:
            return profile.bound_interface, profile.name
    return None


def select_interface(snapshot: SystemSnapshot) -> InterfaceChoice:
    """Apply the decision table to *snapshot*.

    Raises:
        InterfaceSelectionError: Several candidates, or none.
    """
    existing = existing_ap_interface(snapshot)
    if existing is not None:
        name, profile = existing
        logger.info("Existing access point %s runs on %s", profile, name)
        return InterfaceChoice(name, "existing access point", profile)

    candidates = [i.name for i in snapshot.ap_candidates]
    if len(candidates) == 1:
        return InterfaceChoice(candidates[0], "only available interface")
    if len(candidates) > 1:
        raise InterfaceSelectionError(
            "Multiple WiFi interfaces detected; please specify which one to use: "
            + ", ".join(candidates),
            candidates,
        )
    raise InterfaceSelectionError(
        "No suitable WiFi interfaces found (P2P interfaces are not suitable "
        "for access points)"
    )


def validate_interface(snapshot: SystemSnapshot, name: str) -> InterfaceDescriptor:
    """Check an operator-supplied interface.

    Raises:
        PreconditionError: Unknown, not WiFi, or a P2P interface.
    """
    iface = snapshot.interface(name)
    if iface is None or not iface.is_wifi:
        known = ", ".join(i.name for i in snapshot.wifi_interfaces) or "none"
        raise PreconditionError(
            f"Interface '{name}' not found or is not a WiFi interface "
            f"(available: {known})"
        )
    if iface.is_p2p:
        raise PreconditionError(
            f"P2P interface '{name}' cannot be used for access points; "
            f"specify a regular WiFi interface (e.g. wlan0)"
        )
    return iface
