"""Errors raised by the PIN issuance gateway."""

from __future__ import annotations


class PinGatewayError(Exception):
    """Base class for lock provider failures."""

    code = "pin_gateway_error"


class GatewayConfigurationError(PinGatewayError):
    """Provider credentials are missing from settings."""

    code = "gateway_not_configured"


class AuthenticationFailed(PinGatewayError):
    """The token endpoint refused the client credentials."""

    code = "authentication_failed"


class PinProviderError(PinGatewayError):
    """The PIN endpoint answered with an error or could not be reached."""

    code = "pin_provider_error"

    def __init__(self, message: str, status_code: int | None = None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PinFormatError(PinGatewayError):
    """The provider response carries no usable numeric PIN."""

    code = "pin_format_error"


class InvalidRange(PinGatewayError):
    """A PIN was requested for a window whose end is not after its start."""

    code = "invalid_range"
