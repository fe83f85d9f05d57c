import pytest

from config import Config, ScannerConfig
from errors import ConfigError

from conftest import BASE_ENV, make_config


def test_full_environment_validates():
    config = make_config().validate()

    assert config.pocketbase_url == "https://pb.test"
    assert config.list_id == 3
    assert config.bonus_sum == 500.0
    assert config.port == 8080
    assert config.max_retries == 5
    assert config.bonus_workers == 10
    assert config.reconcile_interval == 3600.0


def test_missing_settings_are_all_reported():
    env = dict(BASE_ENV)
    del env["MCRM_API_KEY"]
    env["WEBHOOK_PASSWORD"] = "  "

    with pytest.raises(ConfigError) as excinfo:
        Config(environ=env).validate()

    assert excinfo.value.missing == ["MCRM_API_KEY", "WEBHOOK_PASSWORD"]


def test_unparsable_numbers_count_as_missing():
    config = make_config(LIST_ID="three", BONUS_SUM="lots")

    assert config.missing() == ["LIST_ID", "BONUS_SUM"]


def test_non_positive_list_id_is_accepted_at_startup():
    config = make_config(LIST_ID="0").validate()

    assert config.list_id == 0


def test_trailing_slashes_are_trimmed():
    config = make_config(POCKETBASE_URL="https://pb.test/", LISTMONK_API_URL="https://lists.test/api/subscribers/")

    assert config.pocketbase_url == "https://pb.test"
    assert config.listmonk_api_url == "https://lists.test/api/subscribers"


def test_scanner_config_requires_api_settings():
    with pytest.raises(ConfigError) as excinfo:
        ScannerConfig(environ={"API_URL": "https://inv.test"}).validate()

    assert excinfo.value.missing == ["API_TOKEN", "API_AUTH"]


def test_scanner_config_defaults():
    config = ScannerConfig(environ={"API_URL": "u", "API_TOKEN": "t", "API_AUTH": "a"}).validate()

    assert config.tls_cert == "cert.pem"
    assert config.tls_key == "key.pem"
    assert config.port == 8080


def test_blank_optional_settings_fall_back_to_defaults():
    config = make_config(LOG_LEVEL="  ", DEBUG="", SLACK_WEBHOOK_URL=" ")

    assert config.log_level == "INFO"
    assert config.debug is False
    assert config.slack_webhook_url is None
