"""
wifiap Selectors
=================

Decision logic that runs on collected state rather than on the system.

Modules:
    channel    -- least-congested channel selection
    interface  -- interface auto-selection and validation
"""

from wifiap.selectors.channel import ChannelSelector, select_channel
from wifiap.selectors.interface import InterfaceChoice, select_interface, validate_interface

__all__ = [
    "ChannelSelector",
    "InterfaceChoice",
    "select_channel",
    "select_interface",
    "validate_interface",
]
