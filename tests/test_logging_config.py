import logging

from solmate.logging_config import REDACTED, _use_console, add_service_name, redact_sensitive


def test_signed_payloads_are_masked():
    event = redact_sensitive(None, "info", {
        "event": "signing request answered",
        "signedTransaction": "AQID",
        "api_key": "sk-live",
        "wallet": "abc",
    })

    assert event["signedTransaction"] == REDACTED
    assert event["api_key"] == REDACTED
    assert event["wallet"] == "abc"


def test_empty_sensitive_values_are_left_alone():
    assert redact_sensitive(None, "info", {"api_key": ""})["api_key"] == ""


def test_service_name_added():
    assert add_service_name(None, "info", {"event": "x"})["service"] == "solmate"


def test_renderer_choice():
    assert _use_console(logging.DEBUG, "auto")
    assert not _use_console(logging.INFO, "auto")
    assert _use_console(logging.INFO, "console")
    assert not _use_console(logging.DEBUG, "json")
