import json
import logging

import pytest

from creatorbrief.core.errors import (
    BriefGenerationError,
    CreatorBriefError,
    ConfigError,
    ProviderError,
    RateLimitError,
    ResponseFormatError,
    ValidationError,
)
from creatorbrief.core.logging import JsonFormatter, setup_logging


@pytest.mark.parametrize("cls, status, code", [
    (ValidationError, 400, "VALIDATION_ERROR"),
    (RateLimitError, 429, "RATE_LIMIT_EXCEEDED"),
    (ProviderError, 503, "AI_SERVICE_ERROR"),
    (ResponseFormatError, 500, "RESPONSE_FORMAT_ERROR"),
    (BriefGenerationError, 500, "INTERNAL_ERROR"),
])
def test_error_kinds_map_to_status(cls, status, code):
    err = cls("boom")

    assert isinstance(err, CreatorBriefError)
    assert err.status_code == status
    assert err.code == code
    assert err.user_message == "boom"


def test_user_message_is_separate_from_detail():
    err = ProviderError("openai API error: HTTP 401", user_message="Try again later")

    assert str(err) == "openai API error: HTTP 401"
    assert err.user_message == "Try again later"


def test_config_error_hides_detail_from_callers():
    err = ConfigError("Provider config file not found: /etc/creatorbrief/providers.yml")

    assert err.status_code == 500
    assert err.code == "INTERNAL_ERROR"
    assert "/etc/creatorbrief" in str(err)
    assert "/etc/creatorbrief" not in err.user_message
    assert err.user_message == "The service is not configured correctly. Please try again later."


def test_json_formatter():
    record = logging.LogRecord("creatorbrief.test", logging.WARNING, __file__, 1, "cache %s", ("miss",), None)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["name"] == "creatorbrief.test"
    assert payload["message"] == "cache miss"


def test_setup_logging_writes_json_file(tmp_path):
    log_file = tmp_path / "logs" / "app.log"
    root = setup_logging("DEBUG", log_file)
    try:
        logging.getLogger("creatorbrief.test").info("brief generated")
        for handler in root.handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "brief generated"
        assert root.level == logging.DEBUG
    finally:
        for handler in root.handlers:
            handler.close()
        setup_logging("INFO")
