"""
Target resolution for EchoPing.

Classifies a target string as an IPv4 literal, an IPv6 literal or a
hostname, and resolves hostnames through DNS.
"""

import ipaddress
import logging
import re
import socket
from dataclasses import dataclass
from typing import Callable, Optional, Pattern, Union

from ..core.errors import ResolutionError
from .codec import FAMILIES, IPV4, IPV6, Family

logger = logging.getLogger(__name__)

IPV4_PATTERN = re.compile(
    r'^((25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}'
    r'(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$'
)

_V4_OCTET = r'(25[0-5]|(2[0-4]|1{0,1}[0-9]){0,1}[0-9])'
IPV6_PATTERN = re.compile(
    r'^('
    r'([0-9a-fA-F]{1,4}:){7,7}[0-9a-fA-F]{1,4}|'
    r'([0-9a-fA-F]{1,4}:){1,7}:|'
    r'([0-9a-fA-F]{1,4}:){1,6}:[0-9a-fA-F]{1,4}|'
    r'([0-9a-fA-F]{1,4}:){1,5}(:[0-9a-fA-F]{1,4}){1,2}|'
    r'([0-9a-fA-F]{1,4}:){1,4}(:[0-9a-fA-F]{1,4}){1,3}|'
    r'([0-9a-fA-F]{1,4}:){1,3}(:[0-9a-fA-F]{1,4}){1,4}|'
    r'([0-9a-fA-F]{1,4}:){1,2}(:[0-9a-fA-F]{1,4}){1,5}|'
    r'[0-9a-fA-F]{1,4}:((:[0-9a-fA-F]{1,4}){1,6})|'
    r':((:[0-9a-fA-F]{1,4}){1,7}|:)|'
    r'fe80:(:[0-9a-fA-F]{0,4}){0,4}%[0-9a-zA-Z]{1,}|'
    r'::(ffff(:0{1,4}){0,1}:){0,1}(' + _V4_OCTET + r'\.){3,3}' + _V4_OCTET + r'|'
    r'([0-9a-fA-F]{1,4}:){1,4}:(' + _V4_OCTET + r'\.){3,3}' + _V4_OCTET +
    r')$'
)

Lookup = Callable[..., list]
PatternLike = Union[str, Pattern]


@dataclass(frozen=True)
class TargetAddress:
    """A resolved address and the family used to reach it."""
    address: str
    family: Family

    def __str__(self) -> str:
        return f"{self.address} ({self.family.name})"


def _compile(pattern: PatternLike) -> Pattern:
    return re.compile(pattern) if isinstance(pattern, str) else pattern


def _parse_literal(target: str, family: Family) -> TargetAddress:
    address, _, zone = target.partition('%')
    try:
        parsed = ipaddress.ip_address(address)
    except ValueError as e:
        raise ResolutionError(f"Invalid {family.name} literal {target!r}: {e}")

    if parsed.version == 6 and family is not IPV6:
        raise ResolutionError(f"{target!r} is not an {family.name} address")

    text = str(parsed)
    if zone:
        text = f"{text}%{zone}"
    return TargetAddress(address=text, family=family)


def _lookup(target: str, prefer: Optional[str], lookup: Lookup) -> TargetAddress:
    if prefer is not None:
        af = FAMILIES[prefer].socket_family
    else:
        af = socket.AF_UNSPEC

    try:
        entries = lookup(target, None, af, socket.SOCK_RAW)
    except (socket.gaierror, OSError) as e:
        raise ResolutionError(f"Error while looking up hostname {target!r}: {e}")

    if not entries:
        raise ResolutionError(f"No addresses found for {target!r}")

    entry_family, _, _, _, sockaddr = entries[0]
    family = IPV6 if entry_family == socket.AF_INET6 else IPV4
    address = sockaddr[0]
    logger.debug(f"DNS returned {len(entries)} entries for {target}, using {address}")
    return TargetAddress(address=address, family=family)


def resolve(target: str,
            prefer: Optional[str] = None,
            ipv4_pattern: PatternLike = IPV4_PATTERN,
            ipv6_pattern: PatternLike = IPV6_PATTERN,
            lookup: Lookup = socket.getaddrinfo) -> TargetAddress:
    """Resolve a hostname or IP literal into a TargetAddress.

    Args:
        target: Hostname, IPv4 literal or IPv6 literal.
        prefer: Restrict DNS lookups to ``"IPv4"`` or ``"IPv6"``. Literals
            are never affected.
        ipv4_pattern: Pattern recognising IPv4 literals.
        ipv6_pattern: Pattern recognising IPv6 literals.
        lookup: ``getaddrinfo``-compatible callable used for hostnames.

    Raises:
        ResolutionError: DNS failure, empty result, or a target matched by
            both literal patterns.
    """
    if not target:
        raise ResolutionError("Empty target")

    if prefer is not None and prefer not in FAMILIES:
        raise ResolutionError(f"Unknown address family preference: {prefer}")

    is_ipv4 = _compile(ipv4_pattern).search(target) is not None
    is_ipv6 = _compile(ipv6_pattern).search(target) is not None

    if is_ipv4 and is_ipv6:
        raise ResolutionError("Problem with address patterns, IP can not be both v4 and v6")

    if is_ipv4:
        return _parse_literal(target, IPV4)
    if is_ipv6:
        return _parse_literal(target, IPV6)

    return _lookup(target, prefer, lookup)
