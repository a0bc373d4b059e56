"""
Raw ICMP socket used to send echo requests and wait for replies.
"""

import logging
import select
import socket
import threading
import time
from typing import Optional, Tuple, Union

from ..core.errors import ProbeSocketError
from .codec import MIN_RECV_BUFFER, Family

logger = logging.getLogger(__name__)


class _Sentinel:
    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name


TIMEOUT = _Sentinel("TIMEOUT")
CANCELLED = _Sentinel("CANCELLED")

Received = Union[Tuple[bytes, str], _Sentinel]


class ProbeSocket:
    """A raw ICMP endpoint bound to the wildcard address of one family.

    Use as a context manager so the socket is closed on every exit path::

        with ProbeSocket(IPV4) as sock:
            sock.send_to(packet, "192.0.2.1")
    """

    def __init__(self, family: Family, poll_interval: float = 0.1,
                 clock=time.monotonic):
        self.family = family
        self.poll_interval = poll_interval
        self._clock = clock
        self._sock: Optional[socket.socket] = None

    def __enter__(self) -> 'ProbeSocket':
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def open(self) -> 'ProbeSocket':
        """Create and bind the raw socket."""
        if self._sock is not None:
            return self

        try:
            sock = socket.socket(self.family.socket_family, socket.SOCK_RAW,
                                 self.family.protocol)
        except OSError as e:
            raise ProbeSocketError(
                f"Cannot open raw {self.family.name} ICMP socket "
                f"(raw sockets usually need root or CAP_NET_RAW): {e}"
            )

        try:
            sock.bind((self.family.wildcard, 0))
        except OSError as e:
            sock.close()
            raise ProbeSocketError(f"Cannot bind {self.family.name} ICMP socket: {e}")

        for level, option, value in self.family.socket_options():
            try:
                sock.setsockopt(level, option, value)
            except OSError as e:
                logger.warning(f"Could not set socket option {option} on {self.family.name} socket: {e}")

        self._sock = sock
        logger.debug(f"Opened raw {self.family.name} socket (protocol {self.family.protocol})")
        return self

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.debug(f"Closed raw {self.family.name} socket")

    def _require_open(self) -> socket.socket:
        if self._sock is None:
            raise ProbeSocketError("Probe socket is not open")
        return self._sock

    def send_to(self, data: bytes, address: str) -> int:
        """Send a datagram to the given address. Returns bytes sent."""
        sock = self._require_open()
        try:
            return sock.sendto(data, (address, 0))
        except OSError as e:
            raise ProbeSocketError(f"Error in writing message to {address}: {e}")

    def receive(self, deadline: float,
                cancel: Optional[threading.Event] = None,
                bufsize: int = MIN_RECV_BUFFER) -> Received:
        """Wait for one datagram until ``deadline`` on the monotonic clock.

        Returns ``(data, peer_address)``, ``TIMEOUT`` when the deadline
        passes first, or ``CANCELLED`` when ``cancel`` is set while waiting.
        """
        sock = self._require_open()

        while True:
            if cancel is not None and cancel.is_set():
                return CANCELLED

            remaining = deadline - self._clock()
            if remaining <= 0:
                return TIMEOUT

            try:
                ready, _, _ = select.select([sock], [], [], min(remaining, self.poll_interval))
            except OSError as e:
                raise ProbeSocketError(f"Error while waiting for reply: {e}")

            if not ready:
                continue

            try:
                data, peer = sock.recvfrom(bufsize)
            except OSError as e:
                raise ProbeSocketError(f"Fatal error while reading incoming message: {e}")

            return data, peer[0]
