"""
Running packet loss and latency statistics.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time view of session statistics. Latencies are in ms."""
    total_sent: int
    received: int
    lost: int
    loss_ratio: float
    avg_latency: float
    min_latency: Optional[float]
    max_latency: Optional[float]
    total_time: float

    @property
    def loss_percent(self) -> float:
        return self.loss_ratio * 100

    def as_dict(self) -> dict:
        data = asdict(self)
        data['loss_percent'] = self.loss_percent
        return data


class StatsAggregator:
    """Counters and an incremental mean latency for one probe session.

    ``record_attempt`` is called when a request goes out, then exactly one
    of ``record_loss`` or ``record_success`` once the outcome is known.
    """

    def __init__(self):
        self.total_sent = 0
        self.lost = 0
        self.total_time = 0.0
        self.avg_latency = 0.0
        self.min_latency: Optional[float] = None
        self.max_latency: Optional[float] = None

    @property
    def received(self) -> int:
        return self.total_sent - self.lost

    def record_attempt(self) -> None:
        self.total_sent += 1

    def record_loss(self) -> None:
        if self.lost >= self.total_sent:
            raise ValueError("record_loss() without a matching record_attempt()")
        self.lost += 1

    def record_success(self, elapsed: float) -> None:
        """Add one round-trip time, in milliseconds."""
        if elapsed < 0:
            raise ValueError(f"Negative round-trip time: {elapsed}")

        n = self.received
        if n < 1:
            raise ValueError("record_success() without a matching record_attempt()")

        self.total_time += elapsed
        self.avg_latency = (self.avg_latency * (n - 1) + elapsed) / n

        if self.min_latency is None or elapsed < self.min_latency:
            self.min_latency = elapsed
        if self.max_latency is None or elapsed > self.max_latency:
            self.max_latency = elapsed

    def snapshot(self) -> StatsSnapshot:
        loss_ratio = self.lost / self.total_sent if self.total_sent else 0.0
        return StatsSnapshot(
            total_sent=self.total_sent,
            received=self.received,
            lost=self.lost,
            loss_ratio=loss_ratio,
            avg_latency=self.avg_latency,
            min_latency=self.min_latency,
            max_latency=self.max_latency,
            total_time=self.total_time,
        )

    def log_summary(self, logger: logging.Logger) -> None:
        """Log the statistics block shown after every attempt."""
        snap = self.snapshot()
        logger.info(f"Total packets sent: {snap.total_sent}")
        logger.info(f"Total packets received: {snap.received}")
        logger.info(f"Packet loss so far: {snap.loss_percent:.1f}%")
        logger.info(f"Average latency: {snap.avg_latency:.3f} ms")
