"""
Round-trip driver for EchoPing.

Runs probe attempts one at a time: send an echo request, wait for a reply
until the deadline, classify it and update the session statistics.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..core.config import DEFAULT_INTERVAL, DEFAULT_TIMEOUT
from ..core.errors import ProtocolDecodeError
from ..net.codec import (
    DEFAULT_PAYLOAD,
    Classification,
    EchoMessage,
    default_identifier,
)
from ..net.probe_socket import CANCELLED, TIMEOUT, ProbeSocket
from ..net.resolver import TargetAddress, resolve
from ..stats.aggregator import StatsAggregator, StatsSnapshot


@dataclass
class ProbeOutcome:
    """Result of a single attempt. ``rtt_ms`` is None when nothing came back."""
    sequence: int
    classification: Classification
    rtt_ms: Optional[float] = None
    peer: Optional[str] = None
    message: Optional[EchoMessage] = None

    @property
    def lost(self) -> bool:
        return self.rtt_ms is None


class RoundTripDriver:
    """Drives echo probes against one resolved target."""

    def __init__(self,
                 target: TargetAddress,
                 sock: ProbeSocket,
                 stats: Optional[StatsAggregator] = None,
                 identifier: Optional[int] = None,
                 payload: bytes = DEFAULT_PAYLOAD,
                 timeout: float = DEFAULT_TIMEOUT,
                 interval: float = DEFAULT_INTERVAL,
                 cancel: Optional[threading.Event] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.target = target
        self.sock = sock
        self.stats = stats if stats is not None else StatsAggregator()
        self.identifier = default_identifier() if identifier is None else identifier & 0xffff
        self.payload = payload
        self.recv_size = target.family.receive_buffer_size(len(payload))
        self.timeout = timeout
        self.interval = interval
        self.cancel = cancel if cancel is not None else threading.Event()
        self._clock = clock
        self.sequence = 0
        self.logger = logging.getLogger(__name__)

    @property
    def family(self):
        return self.target.family

    def _next_sequence(self) -> int:
        self.sequence = (self.sequence + 1) & 0xffff
        return self.sequence

    def run_probe(self) -> ProbeOutcome:
        """Send one echo request and wait for the reply or the deadline."""
        start = self._clock()
        sequence = self._next_sequence()
        packet = self.family.build_request(self.identifier, sequence, self.payload)

        sent = self.sock.send_to(packet, self.target.address)
        self.stats.record_attempt()
        self.logger.info(f"Sent {sent} bytes to {self.target.address} (seq={sequence})")

        deadline = start + self.timeout
        while True:
            received = self.sock.receive(deadline, cancel=self.cancel, bufsize=self.recv_size)

            if received is TIMEOUT or received is CANCELLED:
                if received is TIMEOUT:
                    self.logger.info("Read timeout, packet considered lost")
                else:
                    self.logger.info("Probe cancelled, packet considered lost")
                self.stats.record_loss()
                self.stats.log_summary(self.logger)
                return ProbeOutcome(sequence=sequence, classification=Classification.TIMEOUT)

            data, peer = received
            arrival = self._clock()
            try:
                reply = self.family.parse_reply(data, peer)
            except ProtocolDecodeError as e:
                self.logger.debug(f"Discarding malformed datagram from {peer}: {e}")
                continue
            break

        elapsed = max(0.0, (arrival - start) * 1000)

        if reply.classification is Classification.ECHO_REPLY:
            self.logger.info(f"Got echo reply from {peer}")
        else:
            self.logger.info(f"Got non echo-reply ICMP message from {peer}: {reply.message}")

        self.stats.record_success(elapsed)
        self.logger.info(f"RTT: {elapsed:.3f} ms")
        self.stats.log_summary(self.logger)

        return ProbeOutcome(
            sequence=sequence,
            classification=reply.classification,
            rtt_ms=elapsed,
            peer=peer,
            message=reply.message,
        )

    def run(self, count: Optional[int] = None) -> StatsSnapshot:
        """Probe ``count`` times, or until cancelled when count is None."""
        attempts = 0
        while count is None or attempts < count:
            if self.cancel.is_set():
                self.logger.info("Stop requested, ending probe loop")
                break

            self.run_probe()
            attempts += 1

            if count is not None and attempts >= count:
                break

            if self.cancel.wait(self.interval):
                self.logger.info("Stop requested, ending probe loop")
                break

        return self.stats.snapshot()


@dataclass
class PingResult:
    """What a complete session resolved and measured."""
    target: TargetAddress
    statistics: StatsSnapshot


def ping(target: str,
         count: Optional[int] = None,
         timeout: float = DEFAULT_TIMEOUT,
         interval: float = DEFAULT_INTERVAL,
         payload: bytes = DEFAULT_PAYLOAD,
         prefer: Optional[str] = None,
         cancel: Optional[threading.Event] = None) -> PingResult:
    """Resolve ``target``, open a raw socket and run the probe loop."""
    logger = logging.getLogger(__name__)

    resolved = resolve(target, prefer=prefer)
    logger.info(f"Resolved to: {resolved}")

    with ProbeSocket(resolved.family) as sock:
        driver = RoundTripDriver(
            resolved,
            sock,
            payload=payload,
            timeout=timeout,
            interval=interval,
            cancel=cancel,
        )
        return PingResult(target=resolved, statistics=driver.run(count))
