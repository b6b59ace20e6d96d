"""
wifiap Shared Module
=====================

Configuration, console, logging and process utilities shared by the
wifiap command modules.
"""

from apshared.config import ToolkitConfig

__all__ = ["ToolkitConfig"]
