"""
Shared fixtures for the revoke access action tests.
"""

import json
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
import requests

FIXED_NOW = datetime(2025, 12, 4, 17, 30, 0, 123000, tzinfo=timezone.utc)
FIXED_UUID = "550e8400-e29b-41d4-a716-446655440000"


def make_response(status_code=202, json_body=None, text=None, reason="Accepted"):
    """Build a mock requests.Response."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.reason = reason
    if json_body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = text or ""
    else:
        response.json.return_value = json_body
        response.text = text if text is not None else json.dumps(json_body)
    return response


@pytest.fixture
def mock_session():
    """Mock HTTP session answering 202 Accepted."""
    session = Mock(spec=requests.Session)
    session.post.return_value = make_response(202, {"id": "request-123"})
    return session


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def context():
    """Execution context with a bearer token and a default address."""
    return {
        "environment": {"ADDRESS": "https://tenant.api.identitynow.com/"},
        "secrets": {"BEARER_AUTH_TOKEN": "test-sailpoint-token-123456"},
    }


@pytest.fixture
def params():
    """Valid revoke access parameters."""
    return {
        "identityId": "identity-456",
        "itemType": "ACCESS_PROFILE",
        "itemId": "ap-789",
        "itemComment": "Access revocation required",
    }


@pytest.fixture
def response_factory():
    """Factory building mock responses, see make_response."""
    return make_response
