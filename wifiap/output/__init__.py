"""
wifiap Output
==============

Rich-based console display for wifiap commands.
"""

from wifiap.output.console import APConsoleOutput

__all__ = ["APConsoleOutput"]
