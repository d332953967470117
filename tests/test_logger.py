# File: tests/test_logger.py
import pytest

from order_scout.client.api import BackofficeClient
from order_scout.config import ScoutConfig
from order_scout.logger import REDACTED, configure, get_logger, init_logging, redact


@pytest.fixture()
def log_file(tmp_path):
    path = tmp_path / "scout.log"
    yield path
    init_logging()


def test_redact_masks_secret_keys_case_insensitively():
    data = {"Cookie": "session=1", "csrf_token": "t", "user-agent": "UA", "authorization": ""}
    assert redact(data) == {"Cookie": REDACTED, "csrf_token": REDACTED, "user-agent": "UA", "authorization": ""}
    # исходный словарь не меняется
    assert data["Cookie"] == "session=1"


def test_child_loggers_write_to_file(log_file):
    configure(level="INFO", log_file=log_file)
    get_logger("engine").info("batch started")
    get_logger("engine").debug("hidden at INFO")

    text = log_file.read_text(encoding="utf-8")
    assert "OrderScout.engine | batch started" in text
    assert "hidden at INFO" not in text


def test_debug_request_log_hides_credentials(log_file):
    configure(level="DEBUG", log_file=log_file)
    client = BackofficeClient(ScoutConfig(cookie="session=top-secret", csrf_token="csrf-secret"))

    client._log_request("POST", "https://example.com/invoke", client._headers(json_body=True), {"a": 1})

    text = log_file.read_text(encoding="utf-8")
    assert "https://example.com/invoke" in text
    assert "top-secret" not in text
    assert "csrf-secret" not in text
    assert REDACTED in text
