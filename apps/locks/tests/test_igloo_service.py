"""Tests for the Igloo PIN gateway with the HTTP session mocked out."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

import pytest
import requests

from apps.locks.exceptions import (
    AuthenticationFailed,
    GatewayConfigurationError,
    InvalidRange,
    PinFormatError,
    PinProviderError,
)
from apps.locks.services import PIN_FIELD_PRIORITY, IglooService, extract_and_parse_pin

UTC = dt_timezone.utc


def _response(status_code: int, payload=None, text: str = ""):
    response = mock.Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    response.text = text
    return response


def _service(session=None) -> IglooService:
    return IglooService(
        "client",
        "secret",
        "DEVICE1",
        token_url="https://auth.example/oauth2/token",
        api_base_url="https://api.example/devices/",
        time_zone="Europe/Stockholm",
        timeout=5,
        session=session or mock.Mock(),
    )


def test_missing_credentials_are_rejected():
    with pytest.raises(GatewayConfigurationError) as exc_info:
        IglooService("", "", "DEVICE1", token_url="t", api_base_url="a")
    assert "IGLOO_CLIENT_ID" in str(exc_info.value)
    assert "IGLOO_CLIENT_SECRET" in str(exc_info.value)


def test_from_settings_uses_configured_credentials(settings):
    settings.IGLOO_CLIENT_ID = "cid"
    settings.IGLOO_CLIENT_SECRET = "csecret"
    settings.IGLOO_DEVICE_ID = "DEV42"
    service = IglooService.from_settings(session=mock.Mock())
    assert service.client_id == "cid"
    assert service.device_id == "DEV42"


# ----------------------------------------------------------------------
# format_date
# ----------------------------------------------------------------------


def test_format_date_truncates_to_the_hour_in_lock_time():
    service = _service()
    instant = datetime(2024, 1, 15, 9, 47, 31, tzinfo=UTC)
    assert service.format_date(instant) == "2024-01-15T10:00:00+01:00"


def test_format_date_offset_changes_across_spring_forward():
    service = _service()
    before = datetime(2024, 3, 30, 12, 0, tzinfo=UTC)
    after = before + timedelta(hours=24)

    formatted_before = service.format_date(before)
    formatted_after = service.format_date(after)

    assert formatted_before == "2024-03-30T13:00:00+01:00"
    assert formatted_after == "2024-03-31T14:00:00+02:00"
    assert datetime.fromisoformat(formatted_before) == before
    assert datetime.fromisoformat(formatted_after) == after


def test_format_date_switches_offset_exactly_at_transition():
    service = _service()
    last_winter_minute = datetime(2024, 3, 31, 0, 59, tzinfo=UTC)
    first_summer_hour = datetime(2024, 3, 31, 1, 0, tzinfo=UTC)

    assert service.format_date(last_winter_minute) == "2024-03-31T01:00:00+01:00"
    assert service.format_date(first_summer_hour) == "2024-03-31T03:00:00+02:00"


def test_format_date_keeps_repeated_autumn_hour_apart():
    service = _service()
    first = datetime(2024, 10, 27, 0, 30, tzinfo=UTC)
    second = datetime(2024, 10, 27, 1, 30, tzinfo=UTC)

    assert service.format_date(first) == "2024-10-27T02:00:00+02:00"
    assert service.format_date(second) == "2024-10-27T02:00:00+01:00"
    assert datetime.fromisoformat(service.format_date(second)) == datetime(2024, 10, 27, 1, 0, tzinfo=UTC)


# ----------------------------------------------------------------------
# Token and PIN requests
# ----------------------------------------------------------------------


def test_get_access_token_posts_client_credentials():
    session = mock.Mock()
    session.post.return_value = _response(200, {"access_token": "tok"})
    service = _service(session)

    assert service.get_access_token() == "tok"
    _, kwargs = session.post.call_args
    assert kwargs["auth"] == ("client", "secret")
    assert kwargs["data"] == {"grant_type": "client_credentials"}
    assert kwargs["timeout"] == 5


def test_get_access_token_failure_includes_body():
    session = mock.Mock()
    session.post.return_value = _response(401, {"error": "invalid_client"})

    with pytest.raises(AuthenticationFailed) as exc_info:
        _service(session).get_access_token()
    assert "401" in str(exc_info.value)
    assert "invalid_client" in str(exc_info.value)


def test_get_access_token_without_token_field():
    session = mock.Mock()
    session.post.return_value = _response(200, {"token_type": "bearer"})

    with pytest.raises(AuthenticationFailed):
        _service(session).get_access_token()


def test_network_error_is_a_provider_error():
    session = mock.Mock()
    session.post.side_effect = requests.Timeout("timed out")

    with pytest.raises(PinProviderError):
        _service(session).get_access_token()


def test_generate_booking_pin_posts_hourly_window():
    session = mock.Mock()
    session.post.side_effect = [
        _response(200, {"access_token": "tok"}),
        _response(200, {"pin": "123456789"}),
    ]
    service = _service(session)
    start = datetime(2024, 1, 10, 11, 0, tzinfo=UTC)
    end = datetime(2024, 1, 15, 22, 59, tzinfo=UTC)

    pin = service.generate_and_parse_booking_pin(start, end, device_id="STAND7")

    assert pin == 123456789
    url = session.post.call_args_list[1].args[0]
    kwargs = session.post.call_args_list[1].kwargs
    assert url == "https://api.example/devices/STAND7/algopin/hourly"
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["json"] == {
        "variance": 1,
        "startDate": "2024-01-10T12:00:00+01:00",
        "endDate": "2024-01-15T23:00:00+01:00",
        "accessName": "Customer",
    }


def test_generate_booking_pin_error_carries_status_and_body():
    session = mock.Mock()
    session.post.side_effect = [
        _response(200, {"access_token": "tok"}),
        _response(503, None, text="upstream down"),
    ]

    with pytest.raises(PinProviderError) as exc_info:
        _service(session).generate_booking_pin(
            datetime(2024, 1, 10, tzinfo=UTC), datetime(2024, 1, 11, tzinfo=UTC)
        )
    assert exc_info.value.status_code == 503
    assert exc_info.value.body == "upstream down"


def test_invalid_range_is_rejected_before_any_request():
    session = mock.Mock()
    start = datetime(2024, 1, 10, tzinfo=UTC)

    with pytest.raises(InvalidRange):
        _service(session).generate_and_parse_booking_pin(start, start)
    session.post.assert_not_called()


# ----------------------------------------------------------------------
# PIN extraction
# ----------------------------------------------------------------------


def test_pin_field_priority_order():
    assert PIN_FIELD_PRIORITY == ("pin", "pinCode", "code", "unlockCode")
    assert extract_and_parse_pin({"code": "222", "pinCode": "111"}) == 111
    assert extract_and_parse_pin({"unlockCode": 333}) == 333


def test_empty_fields_are_skipped():
    assert extract_and_parse_pin({"pin": "", "pinCode": None, "code": "0042"}) == 42


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"pin": "12ab"},
        {"pin": 12.5},
        {"pin": True},
        {"other": "1234"},
    ],
)
def test_unusable_pin_payloads(payload):
    with pytest.raises(PinFormatError):
        extract_and_parse_pin(payload)
