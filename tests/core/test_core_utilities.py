"""Tests for request context, log masking and error mapping."""

import pytest

from coursegate.core.context import (
    clear_context,
    get_context,
    get_request_id,
    set_actor,
    set_request_id,
    set_trace_id,
)
from coursegate.core.exceptions import (
    AlreadyEnrolledError,
    AuthorizationError,
    CourseGateError,
    GatewayError,
    NotFoundError,
    ValidationError,
    status_for_error,
)
from coursegate.core.logging import filter_sensitive_data, mask_value
from coursegate.core.redis import access_cache_key


class TestRequestContext:
    def teardown_method(self) -> None:
        clear_context()

    def test_generates_request_id(self) -> None:
        request_id = set_request_id()

        assert request_id
        assert get_request_id() == request_id

    def test_keeps_incoming_request_id(self) -> None:
        assert set_request_id("req-123") == "req-123"

    def test_context_includes_actor_and_trace(self) -> None:
        set_request_id("req-1")
        set_actor("user-1", "student")
        set_trace_id("trace-1")

        assert get_context() == {
            "request_id": "req-1",
            "actor_id": "user-1",
            "actor_role": "student",
            "trace_id": "trace-1",
        }

    def test_clear_context(self) -> None:
        set_request_id("req-1")
        set_actor("user-1", "student")

        clear_context()

        assert get_context() == {}


class TestSensitiveDataMasking:
    def test_masks_client_secret(self) -> None:
        assert mask_value("client_secret", "pi_123_secret_abc") == "pi" + "*" * 13 + "bc"

    def test_short_values_fully_masked(self) -> None:
        assert mask_value("token", "abc") == "***"

    def test_regular_fields_untouched(self) -> None:
        assert mask_value("course_id", "c-1") == "c-1"

    def test_nested_dicts(self) -> None:
        masked = mask_value("payload", {"stripe_signature": "t=1,v1=abcdef"})

        assert masked["stripe_signature"].startswith("t=")
        assert "abcd" not in masked["stripe_signature"]

    def test_processor_filters_event_dict(self) -> None:
        event = filter_sensitive_data(
            None, "info", {"event": "x", "api_key": "sk_test_123456"}
        )

        assert event["event"] == "x"
        assert event["api_key"] != "sk_test_123456"


class TestErrorStatus:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (NotFoundError(), 404),
            (ValidationError(), 400),
            (AuthorizationError(), 403),
            (AlreadyEnrolledError(), 409),
            (GatewayError(), 502),
            (CourseGateError("boom"), 500),
        ],
    )
    def test_status_for_error(self, error, expected) -> None:
        assert status_for_error(error) == expected

    def test_error_carries_message(self) -> None:
        error = NotFoundError("Course not found")

        assert error.message == "Course not found"
        assert error.code == "not_found"
        assert str(error) == "Course not found"


def test_access_cache_key() -> None:
    assert access_cache_key("c1", "u1") == "enrollment:c1:u1"
