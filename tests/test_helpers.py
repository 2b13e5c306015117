"""
Tests for workflow helpers and action settings.
"""

from datetime import date, datetime, timezone

import pytest

from access_revoke.config import ActionSettings
from access_revoke.exceptions import ValidationError
from access_revoke.models import ItemType
from access_revoke.workflows import (
    build_access_request,
    get_base_url,
    normalize_remove_date,
    parse_metadata,
    validate_revoke_params,
)
from access_revoke.workflows.helpers import format_timestamp


class TestActionSettings:
    """Tests for reading settings from the context environment."""

    def test_defaults(self):
        settings = ActionSettings.from_context({})

        assert settings.address is None
        assert settings.rate_limit_backoff_ms == 30000
        assert settings.service_error_backoff_ms == 10000
        assert settings.request_timeout == 30.0

    def test_values_from_environment(self):
        settings = ActionSettings.from_context({"environment": {
            "ADDRESS": "https://tenant.api.identitynow.com",
            "RATE_LIMIT_BACKOFF_MS": "100",
            "SERVICE_ERROR_BACKOFF_MS": 200,
            "REQUEST_TIMEOUT_SECONDS": "5",
        }})

        assert settings.address == "https://tenant.api.identitynow.com"
        assert settings.rate_limit_backoff_ms == 100
        assert settings.service_error_backoff_ms == 200
        assert settings.request_timeout == 5.0

    @pytest.mark.parametrize("raw", ["soon", "-5", "", "nan", "inf", "1e400"])
    def test_invalid_numbers_fall_back_to_defaults(self, raw):
        settings = ActionSettings.from_context({"environment": {
            "RATE_LIMIT_BACKOFF_MS": raw,
            "SERVICE_ERROR_BACKOFF_MS": raw,
        }})
        assert settings.rate_limit_backoff_ms == 30000
        assert settings.service_error_backoff_ms == 10000

    @pytest.mark.parametrize("raw", ["nan", "inf", "-1", "0"])
    def test_invalid_timeout_falls_back_to_default(self, raw):
        settings = ActionSettings.from_context({"environment": {"REQUEST_TIMEOUT_SECONDS": raw}})
        assert settings.request_timeout == 30.0


class TestBaseUrl:
    """Tests for base URL resolution."""

    def test_trailing_slash_removed(self):
        assert get_base_url({"address": "https://a.example.com/"}, ActionSettings()) == \
            "https://a.example.com"

    def test_environment_fallback(self):
        settings = ActionSettings(address="https://env.example.com")
        assert get_base_url({}, settings) == "https://env.example.com"

    def test_missing_address(self):
        with pytest.raises(ValidationError, match="No URL specified"):
            get_base_url({"address": ""}, ActionSettings())


class TestRemoveDate:
    """Tests for remove date normalization."""

    def test_utc_suffix(self):
        assert normalize_remove_date("2026-01-31T12:00:00Z") == "2026-01-31T12:00:00.000Z"

    def test_offset_is_converted(self):
        assert normalize_remove_date("2026-01-31T22:00:00-05:00") == "2026-02-01T03:00:00.000Z"

    def test_date_only(self):
        assert normalize_remove_date("2026-01-31") == "2026-01-31T00:00:00.000Z"
        assert normalize_remove_date(date(2026, 1, 31)) == "2026-01-31T00:00:00.000Z"

    def test_datetime_object(self):
        moment = datetime(2026, 1, 31, 8, 15, 30, 250000, tzinfo=timezone.utc)
        assert normalize_remove_date(moment) == "2026-01-31T08:15:30.250Z"

    @pytest.mark.parametrize("value", [None, "", "tomorrow", "31/01/2026"])
    def test_unusable_values_are_dropped(self, value):
        assert normalize_remove_date(value) is None

    def test_format_timestamp_of_naive_datetime(self):
        assert format_timestamp(datetime(2025, 1, 2, 3, 4, 5)) == "2025-01-02T03:04:05.000Z"


class TestMetadata:
    """Tests for JSON metadata parsing."""

    def test_json_string(self):
        assert parse_metadata('{"a": "1"}', "clientMetadata") == {"a": "1"}

    def test_mapping_passthrough(self):
        assert parse_metadata({"a": "1"}, "clientMetadata") == {"a": "1"}

    def test_empty_values(self):
        assert parse_metadata(None, "clientMetadata") is None
        assert parse_metadata("", "clientMetadata") is None

    @pytest.mark.parametrize("value", ["not json", '"a string"', "[1]", 42])
    def test_invalid_values(self, value):
        with pytest.raises(ValidationError, match="itemClientMetadata must be a JSON object"):
            parse_metadata(value, "itemClientMetadata")


class TestRequestBuilder:
    """Tests for building the access request body."""

    def test_body_includes_optional_fields(self, params):
        params.update({
            "address": "https://tenant.api.identitynow.com",
            "itemRemoveDate": "2026-01-31",
            "itemClientMetadata": '{"ticket": "CHG-1"}',
        })

        validated = validate_revoke_params(params, ActionSettings())
        body = build_access_request(validated).to_wire()

        assert validated.item_type is ItemType.ACCESS_PROFILE
        assert body == {
            "requestedFor": ["identity-456"],
            "requestType": "REVOKE_ACCESS",
            "requestedItems": [{
                "type": "ACCESS_PROFILE",
                "id": "ap-789",
                "comment": "Access revocation required",
                "removeDate": "2026-01-31T00:00:00.000Z",
                "clientMetadata": {"ticket": "CHG-1"},
            }],
        }

    def test_validation_order(self):
        # identityId is checked before itemType
        with pytest.raises(ValidationError, match="identityId"):
            validate_revoke_params({"itemType": "BOGUS"}, ActionSettings())
