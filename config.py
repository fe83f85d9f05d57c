import os
from dotenv import load_dotenv

from errors import ConfigError


def _clean(value):
    if value is None:
        return None
    value = value.strip()
    return value or None


class Config:
    """
    Relay settings, read once at startup and handed to every component.
    """

    REQUIRED = (
        "POCKETBASE_URL",
        "POCKETBASE_ADMIN_TOKEN",
        "LISTMONK_API_URL",
        "LISTMONK_USERNAME",
        "LISTMONK_API_KEY",
        "LIST_ID",
        "MCRM_API_URL_USER",
        "MCRM_API_URL_BONUS",
        "MCRM_API_KEY",
        "BONUS_SUM",
        "WEBHOOK_USERNAME",
        "WEBHOOK_PASSWORD",
    )

    def __init__(self, environ=None):
        env = os.environ if environ is None else environ

        def get(name, default=None):
            return _clean(env.get(name)) or default

        self._env = env
        self._invalid = []

        # PocketBase Settings
        self.pocketbase_url = (get("POCKETBASE_URL") or "").rstrip("/")
        self.pocketbase_admin_token = get("POCKETBASE_ADMIN_TOKEN")

        # Listmonk Settings
        self.listmonk_api_url = (get("LISTMONK_API_URL") or "").rstrip("/")
        self.listmonk_username = get("LISTMONK_USERNAME")
        self.listmonk_api_key = get("LISTMONK_API_KEY")
        self.list_id = self._number("LIST_ID", int)

        # MCRM Settings
        self.mcrm_api_url_user = get("MCRM_API_URL_USER")
        self.mcrm_api_url_bonus = get("MCRM_API_URL_BONUS")
        self.mcrm_api_key = get("MCRM_API_KEY")
        self.bonus_sum = self._number("BONUS_SUM", float)

        # Webhook Settings
        self.webhook_username = get("WEBHOOK_USERNAME")
        self.webhook_password = get("WEBHOOK_PASSWORD")

        # Slack Settings
        self.slack_webhook_url = get("SLACK_WEBHOOK_URL")

        # App Settings
        self.port = self._number("PORT", int, 8080)
        self.debug = (get("DEBUG", "False")).lower() == "true"
        self.log_level = get("LOG_LEVEL", "INFO")
        self.log_file = get("LOG_FILE")

        # Timeouts (seconds)
        self.request_timeout = self._number("REQUEST_TIMEOUT", float, 10.0)
        self.bulk_timeout = self._number("BULK_TIMEOUT", float, 30.0)

        # Background jobs
        self.retry_interval = self._number("RETRY_INTERVAL", float, 30.0)
        self.max_retries = self._number("MAX_RETRIES", int, 5)
        self.bonus_interval = self._number("BONUS_INTERVAL", float, 15.0)
        self.bonus_workers = self._number("BONUS_WORKERS", int, 10)
        self.bonus_queue_size = self._number("BONUS_QUEUE_SIZE", int, 2000)
        self.reconcile_interval = self._number("RECONCILE_INTERVAL", float, 3600.0)
        self.reconcile_cooldown = self._number("RECONCILE_COOLDOWN", float, 300.0)

    @classmethod
    def from_env(cls, dotenv_path=None):
        load_dotenv(dotenv_path)
        return cls()

    def _number(self, name, kind, default=None):
        raw = _clean(self._env.get(name))
        if raw is None:
            return default
        try:
            return kind(raw)
        except ValueError:
            self._invalid.append(name)
            return default

    def missing(self):
        """Names of required settings that are unset or could not be parsed"""
        names = [name for name in self.REQUIRED if _clean(self._env.get(name)) is None]
        names.extend(name for name in self._invalid if name not in names)
        return names

    def validate(self):
        missing = self.missing()
        if missing:
            raise ConfigError(missing)
        return self


class ScannerConfig:
    """
    Barcode scanner settings.
    """

    REQUIRED = ("API_URL", "API_TOKEN", "API_AUTH")

    def __init__(self, environ=None):
        env = os.environ if environ is None else environ
        self._env = env

        # Inventory API Settings
        self.api_url = _clean(env.get("API_URL"))
        self.api_token = _clean(env.get("API_TOKEN"))
        self.api_auth = _clean(env.get("API_AUTH"))
        self.request_timeout = float(_clean(env.get("REQUEST_TIMEOUT")) or 10)

        # App Settings
        self.port = int(_clean(env.get("PORT")) or 8080)
        self.debug = (_clean(env.get("DEBUG")) or "False").lower() == "true"
        self.log_level = _clean(env.get("LOG_LEVEL")) or "INFO"
        self.tls_cert = _clean(env.get("TLS_CERT")) or "cert.pem"
        self.tls_key = _clean(env.get("TLS_KEY")) or "key.pem"

    @classmethod
    def from_env(cls, dotenv_path=None):
        load_dotenv(dotenv_path)
        return cls()

    def missing(self):
        return [name for name in self.REQUIRED if _clean(self._env.get(name)) is None]

    def validate(self):
        missing = self.missing()
        if missing:
            raise ConfigError(missing)
        return self
