import atexit
import hmac
import logging
import sys

from flask import Flask, Response, jsonify, request

from config import Config
from errors import ConfigError
from event_log import EventLog
from handlers.webhook import DeviceRelay, handle_device_event
from jobs import BackgroundJobs, BonusChecker, BonusWorkerPool, Reconciler, RetryProcessor
from listmonk_api import ListmonkClient
from logging_config import setup_logging
from mcrm_api import McrmClient
from pocketbase_api import PocketBaseClient
from retry_ledger import RetryLedger
from slack_notify import SlackNotifier

logger = logging.getLogger(__name__)


def _credentials_match(auth, config):
    if auth is None or auth.type != "basic":
        return False
    username_ok = hmac.compare_digest((auth.username or "").encode(), (config.webhook_username or "").encode())
    password_ok = hmac.compare_digest((auth.password or "").encode(), (config.webhook_password or "").encode())
    return username_ok and password_ok


def create_app(config, relay, ledger, events, on_success=None):
    app = Flask(__name__)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "healthy"}), 200

    @app.route("/webhook", methods=["POST"])
    def webhook():
        if not _credentials_match(request.authorization, config):
            return Response(status=401, headers={"WWW-Authenticate": 'Basic realm="Restricted"'})

        status = handle_device_event(request.form, relay, ledger, events, on_success=on_success)
        return Response(status=status)

    return app


class Relay:
    """Everything the relay process needs, wired from one Config"""

    def __init__(self, config):
        self.config = config
        self.datastore = PocketBaseClient(config)
        self.listmonk = ListmonkClient(config)
        self.mcrm = McrmClient(config)
        self.events = EventLog(self.datastore)
        self.ledger = RetryLedger(self.datastore, self.events, max_retries=config.max_retries)
        self.notify = SlackNotifier(config)

        self.device_relay = DeviceRelay(config, self.mcrm, self.listmonk, self.datastore, self.events)
        self.bonus_checker = BonusChecker(
            config, self.listmonk, self.mcrm, self.datastore, self.ledger, self.events
        )
        self.jobs = BackgroundJobs(
            RetryProcessor(
                self.ledger,
                self.device_relay,
                self.bonus_checker,
                self.events,
                notify=self.notify,
                interval=config.retry_interval,
            ),
            BonusWorkerPool(
                self.bonus_checker,
                self.datastore,
                workers=config.bonus_workers,
                queue_size=config.bonus_queue_size,
                interval=config.bonus_interval,
                bulk_timeout=config.bulk_timeout,
            ),
            Reconciler(config, self.listmonk, self.datastore, self.events),
        )
        self.app = create_app(
            config,
            self.device_relay,
            self.ledger,
            self.events,
            on_success=self.jobs.trigger_reconcile,
        )

    def close(self):
        self.jobs.stop()
        for client in (self.datastore, self.listmonk, self.mcrm):
            client.close()


def main():
    config = Config.from_env()
    setup_logging(config.log_level, config.log_file)
    try:
        config.validate()
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(1)

    relay = Relay(config)
    relay.jobs.start()
    atexit.register(relay.close)
    relay.notify(f"MCRM relay started on port {config.port}")

    relay.app.run(host="0.0.0.0", port=config.port, debug=config.debug, use_reloader=False)


if __name__ == "__main__":
    main()
