"""
ICMP and ICMPv6 echo message encoding and decoding.

Each protocol family is represented by a ``Family`` object carrying its
socket parameters and echo type codes, so callers pick a family once and
pass it around instead of switching on protocol numbers.
"""

import enum
import os
import socket
import struct
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..core.errors import ProtocolDecodeError

ICMP_HEADER = struct.Struct('!BBHHH')
DEFAULT_PAYLOAD = b"Hi-Pinging"
MIN_RECV_BUFFER = 1500

# Linux <netinet/icmp6.h>; not exported by the socket module
ICMP6_FILTER = getattr(socket, 'ICMP6_FILTER', 1)
# ICMPv6 errors still reach the socket so they can be reported
ICMP6_PASSED_ERRORS = (1, 2, 3, 4)


class Classification(enum.Enum):
    """Outcome of one probe attempt."""
    ECHO_REPLY = "echo_reply"
    OTHER_ICMP = "other_icmp"
    TIMEOUT = "timeout"


@dataclass
class EchoMessage:
    """An ICMP message in echo layout."""
    type: int
    code: int
    identifier: int
    sequence: int
    payload: bytes = b""
    checksum: int = 0


@dataclass
class Reply:
    """A decoded datagram received on the probe socket."""
    classification: Classification
    message: EchoMessage
    peer: Optional[str] = None


def checksum(data: bytes) -> int:
    """Internet checksum (RFC 1071)."""
    if len(data) % 2:
        data += b'\x00'
    total = 0
    for i in range(0, len(data), 2):
        total += (data[i] << 8) | data[i + 1]
    while total >> 16:
        total = (total & 0xffff) + (total >> 16)
    return ~total & 0xffff


def default_identifier() -> int:
    """Echo identifier derived from the process id."""
    return os.getpid() & 0xffff


class Family:
    """Protocol family capabilities: socket parameters, type codes and codec."""

    network_header_max = 0

    def __init__(self, name: str, socket_family: int, protocol: int,
                 echo_request_type: int, echo_reply_type: int, wildcard: str):
        self.name = name
        self.socket_family = socket_family
        self.protocol = protocol
        self.echo_request_type = echo_request_type
        self.echo_reply_type = echo_reply_type
        self.wildcard = wildcard

    def __repr__(self) -> str:
        return f"Family({self.name})"

    def encode(self, message: EchoMessage) -> bytes:
        """Pack a message, filling in the checksum."""
        header = ICMP_HEADER.pack(message.type, message.code, 0,
                                  message.identifier & 0xffff,
                                  message.sequence & 0xffff)
        cs = checksum(header + message.payload)
        header = ICMP_HEADER.pack(message.type, message.code, cs,
                                  message.identifier & 0xffff,
                                  message.sequence & 0xffff)
        return header + message.payload

    def build_request(self, identifier: int, sequence: int,
                      payload: bytes = DEFAULT_PAYLOAD) -> bytes:
        """Encode an echo request."""
        return self.encode(EchoMessage(
            type=self.echo_request_type,
            code=0,
            identifier=identifier,
            sequence=sequence,
            payload=payload,
        ))

    def strip_network_header(self, data: bytes) -> bytes:
        """Return the ICMP part of a datagram as delivered by a raw socket."""
        return data

    def receive_buffer_size(self, payload_len: int) -> int:
        """Bytes needed to read back an echo reply carrying ``payload_len`` bytes."""
        return max(MIN_RECV_BUFFER, self.network_header_max + ICMP_HEADER.size + payload_len)

    def socket_options(self) -> List[Tuple[int, int, bytes]]:
        """``(level, option, value)`` triples applied to a freshly opened socket."""
        return []

    def parse_reply(self, data: bytes, peer: Optional[str] = None) -> Reply:
        """Decode a datagram and classify it by type."""
        icmp = self.strip_network_header(data)
        if len(icmp) < ICMP_HEADER.size:
            raise ProtocolDecodeError(
                f"{self.name} ICMP message too short: {len(icmp)} bytes"
            )

        msg_type, code, cs, identifier, sequence = ICMP_HEADER.unpack_from(icmp)
        message = EchoMessage(
            type=msg_type,
            code=code,
            identifier=identifier,
            sequence=sequence,
            payload=bytes(icmp[ICMP_HEADER.size:]),
            checksum=cs,
        )

        if msg_type == self.echo_reply_type:
            classification = Classification.ECHO_REPLY
        else:
            classification = Classification.OTHER_ICMP

        return Reply(classification=classification, message=message, peer=peer)


class _IPv4Family(Family):
    """IPv4 raw sockets hand back the IP header in front of the ICMP message."""

    network_header_max = 60

    def strip_network_header(self, data: bytes) -> bytes:
        if data and data[0] >> 4 == 4:
            header_length = (data[0] & 0x0f) * 4
            if header_length < 20 or len(data) < header_length:
                raise ProtocolDecodeError(
                    f"Truncated IPv4 header: {len(data)} bytes, IHL {header_length}"
                )
            return data[header_length:]
        return data


class _IPv6Family(Family):
    """A raw ICMPv6 socket also sees Neighbor Discovery and echo requests.

    The type filter keeps only echo replies and ICMPv6 errors.
    """

    def icmp6_filter(self) -> bytes:
        # One bit per type, set means blocked
        words = [0xffffffff] * 8
        for msg_type in (self.echo_reply_type,) + ICMP6_PASSED_ERRORS:
            words[msg_type >> 5] &= ~(1 << (msg_type & 31))
        return struct.pack('=8I', *words)

    def socket_options(self) -> List[Tuple[int, int, bytes]]:
        return [(socket.IPPROTO_ICMPV6, ICMP6_FILTER, self.icmp6_filter())]


# The kernel recomputes the ICMPv6 checksum with the pseudo-header on raw
# ICMPv6 sockets, so the plain checksum written by encode() is replaced.
IPV4 = _IPv4Family("IPv4", socket.AF_INET, socket.IPPROTO_ICMP, 8, 0, "0.0.0.0")
IPV6 = _IPv6Family("IPv6", socket.AF_INET6, socket.IPPROTO_ICMPV6, 128, 129, "::")

FAMILIES = {IPV4.name: IPV4, IPV6.name: IPV6}


def encode_request(family: Family, identifier: int, sequence: int,
                   payload: bytes = DEFAULT_PAYLOAD) -> bytes:
    return family.build_request(identifier, sequence, payload)


def encode_message(family: Family, message: EchoMessage) -> bytes:
    return family.encode(message)


def decode_reply(family: Family, data: bytes, peer: Optional[str] = None) -> Reply:
    return family.parse_reply(data, peer)
