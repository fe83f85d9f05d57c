import logging

import requests

logger = logging.getLogger(__name__)


def send_slack_notification(message, webhook_url=None, timeout=10):
    """Send a message to Slack via Webhook"""
    if not webhook_url:
        logger.info("Slack notification (dry run): %s", message)
        return False

    payload = {"text": message}
    try:
        response = requests.post(webhook_url, json=payload, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Failed to send Slack notification: %s", e)
        return False
    return True


class SlackNotifier:
    """send_slack_notification bound to the configured webhook"""

    def __init__(self, config):
        self.webhook_url = config.slack_webhook_url
        self.timeout = config.request_timeout

    def __call__(self, message):
        return send_slack_notification(message, self.webhook_url, self.timeout)
