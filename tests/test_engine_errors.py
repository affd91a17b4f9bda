from __future__ import annotations

import pytest

from aichat.engine.errors import APIError, classify_response, should_return_credential


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        (200, None),
        (204, None),
        (429, APIError.RATE_LIMIT_REACHED),
        (413, APIError.CONTEXT_LIMIT_REACHED),
        (401, APIError.CONNECTION_ISSUE),
        (500, APIError.CONNECTION_ISSUE),
        (302, APIError.CONNECTION_ISSUE),
        (-1, APIError.CONNECTION_ISSUE),
    ],
)
def test_classify_response(code, expected):
    assert classify_response(code) is expected


def test_credential_dropped_only_on_auth_failure():
    assert should_return_credential(500)
    assert should_return_credential(429)
    assert should_return_credential(-1)
    assert not should_return_credential(401)
    assert not should_return_credential(200)
