"""
wifiap -- NetworkManager Access Point Manager
==============================================

wifiap turns a Linux WiFi interface into a WPA2 access point by driving
NetworkManager (``nmcli``).  It picks the interface and the least
congested channel automatically, re-tunes existing access points to a
different band, returns every radio to client mode on reset, and offers
a small control surface over the resulting connection profiles.

Modules:
    core.engine     -- Central orchestration engine
    core.models     -- Pydantic domain models
    core.prompts    -- Operator confirmation capability
    core.privilege  -- Root check and sudo re-execution
    backend         -- nmcli service and iw capability prober
    selectors       -- Interface and channel selection
    output          -- Console output
    cli             -- Click-based command-line interface

References:
    - nmcli(1), nm-settings-nmcli(5). NetworkManager project.
    - iw(8). Linux wireless documentation.
    - IEEE. (2020). IEEE Std 802.11-2020.
"""

__version__ = "1.0.0"
__tool__ = "wifiap"
__description__ = "NetworkManager Access Point Manager"
