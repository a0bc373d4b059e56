"""
Webhook notification of probe session summaries.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

import requests

from ..core.config import MonitoringConfig
from ..stats.aggregator import StatsSnapshot


class WebhookNotifier:
    """Posts the final session summary to a configured webhook URL."""

    def __init__(self, config: MonitoringConfig, timeout: float = 10):
        self.config = config
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)
        self._headers = {'Content-Type': 'application/json'}

    @property
    def enabled(self) -> bool:
        return bool(self.config.webhook_enabled and self.config.webhook_url)

    def build_payload(self, target: str, snapshot: StatsSnapshot) -> Dict[str, Any]:
        return {
            'target': target,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'statistics': snapshot.as_dict(),
        }

    def send_summary(self, target: str, snapshot: StatsSnapshot) -> bool:
        """POST the summary. Returns True when the webhook accepted it."""
        if not self.enabled:
            return False

        try:
            response = requests.post(
                self.config.webhook_url,
                headers=self._headers,
                json=self.build_payload(target, snapshot),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            self.logger.error(f"Failed to send summary to webhook: {e}")
            return False

        if not 200 <= response.status_code < 300:
            self.logger.error(f"Webhook rejected summary: {response.status_code}")
            return False

        self.logger.info(f"Summary sent to webhook {self.config.webhook_url}")
        return True
