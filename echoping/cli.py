"""
EchoPing command-line entry point.
"""

import json
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

import click

from .core.config import Config
from .core.errors import EchoPingError
from .core.logger import get_logger, setup_logging
from .driver.round_trip import ping
from .notify.webhook import WebhookNotifier


def build_payload(text: str, size: Optional[int]) -> bytes:
    """Payload bytes from the configured text, optionally stretched to ``size``."""
    base = text.encode('utf-8')
    if size is None:
        return base
    if not base:
        return b'\x00' * size
    repeats = size // len(base) + 1
    return (base * repeats)[:size]


def _install_signal_handlers(stop: threading.Event) -> dict:
    logger = get_logger('cli')

    def signal_handler(signum, frame):
        """Ask the probe loop to stop."""
        logger.info(f"Received signal {signum}, shutting down...")
        stop.set()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, signal_handler)
    return previous


def _restore_signal_handlers(previous: dict) -> None:
    for signum, handler in previous.items():
        if handler is not None:
            signal.signal(signum, handler)


@click.command()
@click.argument('target')
@click.option('--count', '-c', type=click.IntRange(min=1), default=None,
              help='Stop after COUNT probes (default: run until interrupted)')
@click.option('--timeout', '-W', type=click.FloatRange(min=0, min_open=True), default=None,
              help='Seconds to wait for each reply')
@click.option('--interval', '-i', type=click.FloatRange(min=0), default=None,
              help='Seconds to wait between probes')
@click.option('--size', '-s', type=click.IntRange(min=0, max=65500), default=None,
              help='Payload size in bytes')
@click.option('--payload', '-p', default=None, help='Payload text')
@click.option('--ipv4', '-4', 'prefer', flag_value='IPv4', help='Resolve hostnames to IPv4 only')
@click.option('--ipv6', '-6', 'prefer', flag_value='IPv6', help='Resolve hostnames to IPv6 only')
@click.option('--config', 'config_file', type=click.Path(dir_okay=False), default=None,
              help='Configuration file path')
@click.option('--json', 'as_json', is_flag=True, help='Print the final summary as JSON')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(target: str, count: Optional[int], timeout: Optional[float],
         interval: Optional[float], size: Optional[int], payload: Optional[str],
         prefer: Optional[str], config_file: Optional[str], as_json: bool,
         verbose: bool):
    """Measure reachability and round-trip time to TARGET with ICMP echo."""

    try:
        if config_file:
            config_path = Path(config_file)
            if not config_path.exists():
                click.echo(f"Error: Configuration file {config_file} not found", err=True)
                sys.exit(1)
            cfg = Config.from_file(config_path)
        else:
            cfg = Config.default()

        cfg = cfg.with_overrides(count=count, timeout=timeout, interval=interval,
                                 payload=payload)
        cfg.validate()
    except EchoPingError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    # With --json, stdout carries only the summary
    setup_logging(cfg.logging, verbose=verbose, stream=sys.stderr if as_json else sys.stdout)
    logger = get_logger('cli')

    stop = threading.Event()
    previous_handlers = _install_signal_handlers(stop)

    try:
        logger.info(f"hostname or ip entered: {target}")
        result = ping(
            target,
            count=cfg.probe.count,
            timeout=cfg.probe.timeout,
            interval=cfg.probe.interval,
            payload=build_payload(cfg.probe.payload, size),
            prefer=prefer,
            cancel=stop,
        )
        snapshot = result.statistics

        if as_json:
            click.echo(json.dumps({'target': target,
                                   'address': result.target.address,
                                   'family': result.target.family.name,
                                   'statistics': snapshot.as_dict()}))

        WebhookNotifier(cfg.monitoring).send_summary(target, snapshot)

    except EchoPingError as e:
        logger.error(f"Fatal error: {e}")
        if verbose:
            logger.exception("Full traceback:")
        sys.exit(1)
    finally:
        _restore_signal_handlers(previous_handlers)


if __name__ == '__main__':
    main()
