"""Topology and connectivity reasoning engine for a classroom network simulator.

This package has no GUI dependencies and is designed for unit testing.
"""

from .core import NetworkSim
from .config import EngineConfig
from .errors import AddressError, ConfigError, DuplicateAddressError, NetsimError, ProjectError
from .links import TickScheduler
from .pc_cli import PCCLIEngine
from .routing import Failure, PingResult
from .topology import DeviceKind, LinkState, Media

__all__ = [
    "NetworkSim",
    "EngineConfig",
    "PCCLIEngine",
    "TickScheduler",
    "Failure",
    "PingResult",
    "DeviceKind",
    "LinkState",
    "Media",
    "NetsimError",
    "AddressError",
    "ConfigError",
    "DuplicateAddressError",
    "ProjectError",
]
