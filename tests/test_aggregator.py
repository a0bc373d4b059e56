# tests/test_aggregator.py
import itertools
import logging
import random

import pytest

from echoping.stats.aggregator import StatsAggregator


def run_sequence(outcomes):
    """Feed (lost: bool, elapsed) pairs through an aggregator."""
    stats = StatsAggregator()
    for lost, elapsed in outcomes:
        stats.record_attempt()
        if lost:
            stats.record_loss()
        else:
            stats.record_success(elapsed)
        assert stats.lost <= stats.total_sent
    return stats


def test_empty_snapshot():
    snap = StatsAggregator().snapshot()
    assert snap.total_sent == 0
    assert snap.lost == 0
    assert snap.loss_ratio == 0.0
    assert snap.avg_latency == 0.0
    assert snap.min_latency is None


def test_average_is_arithmetic_mean():
    stats = run_sequence([(False, 10.0), (False, 20.0), (False, 60.0)])
    assert stats.avg_latency == pytest.approx(30.0)
    assert stats.total_time == pytest.approx(90.0)
    assert stats.min_latency == 10.0
    assert stats.max_latency == 60.0


def test_average_independent_of_order():
    samples = [3.5, 12.0, 7.25, 40.0, 1.0]
    averages = {
        round(run_sequence([(False, e) for e in perm]).avg_latency, 9)
        for perm in itertools.permutations(samples)
    }
    assert len(averages) == 1
    assert averages.pop() == pytest.approx(sum(samples) / len(samples))


def test_losses_do_not_move_average():
    stats = run_sequence([(False, 10.0), (True, None), (False, 30.0), (True, None)])
    assert stats.avg_latency == pytest.approx(20.0)
    snap = stats.snapshot()
    assert snap.total_sent == 4
    assert snap.received == 2
    assert snap.lost == 2
    assert snap.loss_ratio == pytest.approx(0.5)
    assert snap.loss_percent == pytest.approx(50.0)


def test_loss_leaves_average_unchanged():
    stats = run_sequence([(False, 15.0)])
    stats.record_attempt()
    stats.record_loss()
    assert stats.avg_latency == 15.0
    assert stats.lost == 1


def test_all_lost():
    snap = run_sequence([(True, None)] * 3).snapshot()
    assert snap.loss_ratio == 1.0
    assert snap.avg_latency == 0.0


def test_random_sequences_keep_invariant():
    rng = random.Random(1234)
    outcomes = [(rng.random() < 0.3, rng.uniform(0, 100)) for _ in range(500)]
    stats = run_sequence(outcomes)
    received = [e for lost, e in outcomes if not lost]
    assert stats.avg_latency == pytest.approx(sum(received) / len(received))


def test_loss_without_attempt_rejected():
    with pytest.raises(ValueError):
        StatsAggregator().record_loss()


def test_success_without_attempt_rejected():
    with pytest.raises(ValueError):
        StatsAggregator().record_success(1.0)


def test_negative_elapsed_rejected():
    stats = StatsAggregator()
    stats.record_attempt()
    with pytest.raises(ValueError):
        stats.record_success(-1.0)


def test_log_summary(caplog):
    stats = run_sequence([(False, 10.0), (True, None)])
    with caplog.at_level(logging.INFO):
        stats.log_summary(logging.getLogger("test"))
    assert "Total packets sent: 2" in caplog.text
    assert "Total packets received: 1" in caplog.text
    assert "Packet loss so far: 50.0%" in caplog.text
    assert "Average latency: 10.000 ms" in caplog.text


def test_as_dict():
    data = run_sequence([(False, 5.0)]).snapshot().as_dict()
    assert data["total_sent"] == 1
    assert data["loss_percent"] == 0.0
    assert data["avg_latency"] == 5.0
