"""
Igloo smart-lock PIN issuance.

Every booking (and every extension) needs an hourly algoPIN covering its
rental window. The flow per request is:

    fetch token (client credentials) -> POST hourly PIN -> parse PIN

No token is cached between calls; the provider's tokens are short lived
and a PIN is requested at most once per booking write.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Mapping
from zoneinfo import ZoneInfo

import requests
from django.conf import settings
from django.utils import timezone

from .exceptions import (
    AuthenticationFailed,
    GatewayConfigurationError,
    InvalidRange,
    PinFormatError,
    PinProviderError,
)

logger = logging.getLogger(__name__)

# Field names under which provider versions return the PIN, in lookup order.
PIN_FIELD_PRIORITY: tuple[str, ...] = ("pin", "pinCode", "code", "unlockCode")

DEFAULT_ACCESS_NAME = "Customer"


def _response_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def extract_and_parse_pin(pin_result: Mapping[str, Any]) -> int:
    """
    Return the numeric PIN from a provider response.

    The first field of ``PIN_FIELD_PRIORITY`` that is present and non-empty
    wins; its value must be an integer or a string of digits.
    """
    if not isinstance(pin_result, Mapping):
        raise PinFormatError(f"PIN response is not an object: {pin_result!r}")

    field_name = next(
        (name for name in PIN_FIELD_PRIORITY if pin_result.get(name) not in (None, "")),
        None,
    )
    if field_name is None:
        logger.error(f"PIN not found in Igloo response, keys: {sorted(pin_result)}")
        raise PinFormatError("PIN not found in Igloo API response")

    value = pin_result[field_name]
    if isinstance(value, bool):
        raise PinFormatError(f"Invalid PIN format from Igloo API: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise PinFormatError(f"Invalid PIN format from Igloo API: {value!r}")


class IglooService:
    """Client for the Igloo OAuth2 token endpoint and hourly PIN endpoint."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        device_id: str,
        *,
        token_url: str,
        api_base_url: str,
        time_zone: str = "Europe/Stockholm",
        timeout: float = 10.0,
        variance: int = 1,
        session: requests.Session | None = None,
    ):
        if not client_id or not client_secret:
            missing = [
                name
                for name, value in (("IGLOO_CLIENT_ID", client_id), ("IGLOO_CLIENT_SECRET", client_secret))
                if not value
            ]
            raise GatewayConfigurationError(
                f"Missing required Igloo settings: {', '.join(missing)}"
            )
        self.client_id = client_id
        self.client_secret = client_secret
        self.device_id = device_id
        self.token_url = token_url
        self.api_base_url = api_base_url.rstrip("/")
        self.time_zone = ZoneInfo(time_zone)
        self.timeout = timeout
        self.variance = variance
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, session: requests.Session | None = None) -> "IglooService":
        return cls(
            settings.IGLOO_CLIENT_ID,
            settings.IGLOO_CLIENT_SECRET,
            settings.IGLOO_DEVICE_ID,
            token_url=settings.IGLOO_TOKEN_URL,
            api_base_url=settings.IGLOO_API_BASE_URL,
            time_zone=settings.IGLOO_LOCK_TIME_ZONE,
            timeout=settings.IGLOO_REQUEST_TIMEOUT,
            variance=settings.IGLOO_PIN_VARIANCE,
            session=session,
        )

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def format_date(self, instant: datetime) -> str:
        """
        Render ``instant`` as ``YYYY-MM-DDTHH:00:00+HH:MM`` in lock local time.

        The offset is the zone's UTC offset at that instant, so the suffix
        switches exactly at a daylight-saving transition.
        """
        if timezone.is_naive(instant):
            instant = timezone.make_aware(instant)
        local = instant.astimezone(self.time_zone).replace(minute=0, second=0, microsecond=0)
        offset = local.utcoffset() or timedelta(0)
        total_minutes = int(offset.total_seconds()) // 60
        sign = "+" if total_minutes >= 0 else "-"
        hours, minutes = divmod(abs(total_minutes), 60)
        return f"{local:%Y-%m-%dT%H}:00:00{sign}{hours:02d}:{minutes:02d}"

    # ------------------------------------------------------------------
    # Provider calls
    # ------------------------------------------------------------------

    def get_access_token(self) -> str:
        try:
            response = self.session.post(
                self.token_url,
                auth=(self.client_id, self.client_secret),
                data={"grant_type": "client_credentials"},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise PinProviderError(f"Igloo token endpoint unreachable: {exc}") from exc

        if not response.ok:
            body = _response_body(response)
            raise AuthenticationFailed(f"Failed to get access token: {response.status_code} {body}")

        token = _response_body(response)
        token = token.get("access_token") if isinstance(token, dict) else None
        if not token:
            raise AuthenticationFailed("Access token not found in response")
        return token

    def generate_booking_pin(
        self,
        start: datetime,
        end: datetime,
        access_name: str = DEFAULT_ACCESS_NAME,
        device_id: str | None = None,
    ) -> dict:
        """Request an hourly PIN for ``[start, end]`` and return the raw response."""
        access_token = self.get_access_token()
        device = device_id or self.device_id
        url = f"{self.api_base_url}/{device}/algopin/hourly"
        payload = {
            "variance": self.variance,
            "startDate": self.format_date(start),
            "endDate": self.format_date(end),
            "accessName": access_name,
        }
        logger.info(f"Requesting hourly PIN on device {device}: {payload['startDate']} -> {payload['endDate']}")

        try:
            response = self.session.post(
                url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json, application/xml",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise PinProviderError(f"Igloo PIN endpoint unreachable: {exc}") from exc

        body = _response_body(response)
        if not response.ok:
            raise PinProviderError(
                f"Failed to generate booking PIN: {response.status_code} {body}",
                status_code=response.status_code,
                body=body,
            )
        if not isinstance(body, dict):
            raise PinFormatError(f"Unexpected PIN response body: {body!r}")
        logger.debug(f"Igloo PIN response keys: {sorted(body)}")
        return body

    def extract_and_parse_pin(self, pin_result: Mapping[str, Any]) -> int:
        return extract_and_parse_pin(pin_result)

    def generate_and_parse_booking_pin(
        self,
        start: datetime,
        end: datetime,
        access_name: str = DEFAULT_ACCESS_NAME,
        device_id: str | None = None,
    ) -> int:
        """Issue the mandatory PIN for a booking window."""
        if end <= start:
            raise InvalidRange(f"PIN window end {end.isoformat()} must be after start {start.isoformat()}")

        pin_result = self.generate_booking_pin(start, end, access_name, device_id)
        pin = self.extract_and_parse_pin(pin_result)
        logger.info(f"Lock PIN issued for window {start.isoformat()} -> {end.isoformat()}")
        return pin
