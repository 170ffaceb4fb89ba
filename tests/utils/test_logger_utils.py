from __future__ import annotations

import logging

import pytest

from utils.logger_utils import CredentialRedactFilter, LoggerUtils


def _record(msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord("AITrans.test", logging.INFO, __file__, 1, msg, args, None)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("POST https://host/v1:generateContent?key=abc123", "POST https://host/v1:generateContent?key=***"),
        ("url=https://host/x?alt=json&key=abc&foo=1", "url=https://host/x?alt=json&key=***&foo=1"),
        ("headers={'Authorization': 'Bearer sk-123'}", "headers={'Authorization': 'Bearer ***'}"),
        ("nothing secret here", "nothing secret here"),
    ],
)
def test_redact(text: str, expected: str) -> None:
    assert CredentialRedactFilter.redact(text) == expected


def test_filter_rewrites_formatted_message() -> None:
    record = _record("Sending to %s", "https://host/v1?key=secret")

    assert CredentialRedactFilter().filter(record) is True
    assert record.getMessage() == "Sending to https://host/v1?key=***"


def test_filter_keeps_args_when_nothing_to_redact() -> None:
    record = _record("Cache '%s' cleared (%d entries)", "analysis", 3)

    CredentialRedactFilter().filter(record)

    assert record.args == ("analysis", 3)


def test_get_logger_uses_namespace() -> None:
    assert LoggerUtils.get_logger("core.trans.manager").name == "AITrans.core.trans.manager"
    assert LoggerUtils.get_logger().name == "AITrans"
