"""
EchoPing - ICMP reachability and latency probe

Sends ICMP or ICMPv6 echo requests to a host over a raw socket and keeps
running round-trip and packet loss statistics, like the classic ``ping``.
"""

__version__ = "1.0.0"
__author__ = "EchoPing Authors"
__license__ = "MIT"

from .core.config import Config
from .core.errors import (
    ConfigError,
    EchoPingError,
    ProbeSocketError,
    ProtocolDecodeError,
    ResolutionError,
)
from .core.logger import setup_logging
from .driver.round_trip import PingResult, ProbeOutcome, RoundTripDriver, ping
from .net.codec import IPV4, IPV6, Classification
from .net.resolver import TargetAddress, resolve
from .stats.aggregator import StatsAggregator, StatsSnapshot

__all__ = [
    "Config",
    "setup_logging",
    "EchoPingError",
    "ConfigError",
    "ResolutionError",
    "ProbeSocketError",
    "ProtocolDecodeError",
    "RoundTripDriver",
    "ProbeOutcome",
    "PingResult",
    "ping",
    "IPV4",
    "IPV6",
    "Classification",
    "TargetAddress",
    "resolve",
    "StatsAggregator",
    "StatsSnapshot",
]
