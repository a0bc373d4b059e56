"""
Error types for EchoPing.

Components raise these; only the command-line entry point decides whether
an error ends the session.
"""


class EchoPingError(Exception):
    """Base class for all EchoPing errors."""


class ConfigError(EchoPingError):
    """Configuration file missing, unreadable or invalid."""


class ResolutionError(EchoPingError):
    """Target could not be resolved to a single address and family."""


class ProbeSocketError(EchoPingError):
    """Raw socket could not be opened, bound, written or read."""


class ProtocolDecodeError(EchoPingError):
    """Received bytes do not form an ICMP message."""
