"""
wifiap Backend
===============

External-tool implementations of the network configuration seam.

Modules:
    service  -- NetworkConfigService / CapabilityProber protocols
    nmcli    -- NetworkManager implementation
    iw       -- radio capability prober
"""

from wifiap.backend.iw import IwProber
from wifiap.backend.nmcli import NmcliService
from wifiap.backend.service import CapabilityProber, NetworkConfigService

__all__ = [
    "CapabilityProber",
    "IwProber",
    "NetworkConfigService",
    "NmcliService",
]
