"""
wifiap Core
============

Domain models, errors and the orchestration engine.  The engine itself
lives in :mod:`wifiap.core.engine` and is imported from there.
"""

from wifiap.core.errors import (
    ExternalToolError,
    InterfaceSelectionError,
    OperatorAbort,
    PreconditionError,
    ValidationError,
    WifiAPError,
)
from wifiap.core.models import (
    APConfig,
    Band,
    ChannelUsageSample,
    ConnectionProfile,
    ControlAction,
    ExistingProfileAction,
    InterfaceDescriptor,
    NetworkObservation,
    SystemSnapshot,
)

__all__ = [
    "APConfig",
    "Band",
    "ChannelUsageSample",
    "ConnectionProfile",
    "ControlAction",
    "ExistingProfileAction",
    "ExternalToolError",
    "InterfaceDescriptor",
    "InterfaceSelectionError",
    "NetworkObservation",
    "OperatorAbort",
    "PreconditionError",
    "SystemSnapshot",
    "ValidationError",
    "WifiAPError",
]
