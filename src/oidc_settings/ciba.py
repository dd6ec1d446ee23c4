# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration dataclasses for OIDC CIBA.

CIBA (Client-Initiated Backchannel Authentication) lets a client ask the
provider to authenticate a user out of band, e.g. by sending them an email
with a verification link. These classes only hold settings; the protocol
layer consuming them lives elsewhere.

Example:
    props = OidcCibaProperties.from_dict({"maxTimeToLiveInSeconds": "PT10M"})
    props.max_time_to_live  # timedelta(minutes=10)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from pydantic import TypeAdapter, ValidationError

from mail_notifier.errors import ConfigurationError
from mail_notifier.models import EmailProperties

_DURATION = TypeAdapter(timedelta)


def parse_duration(value: str) -> timedelta:
    """Parse an ISO-8601 duration (``PT5M``) or a number of seconds.

    Raises:
        ConfigurationError: If the value is not a duration.
    """
    text = value.strip()
    if text.lstrip("-").isdigit():
        return timedelta(seconds=int(text))
    try:
        return _DURATION.validate_python(text)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid duration: {value!r}") from e


def _default_verification_mail() -> EmailProperties:
    return EmailProperties(
        subject="Authentication request",
        text="An application is asking you to sign in. Confirm the request here: {0}",
        html=False,
    )


@dataclass
class OidcCibaVerificationProperties:
    """How users are asked to confirm a CIBA request."""

    delivery_methods: list[str] = field(default_factory=lambda: ["mail"])
    """Channels used to reach the user."""

    mail: EmailProperties = field(default_factory=_default_verification_mail)
    """Email sent to the user with the verification link."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "deliveryMethods": list(self.delivery_methods),
            "mail": self.mail.model_dump(by_alias=True, exclude_none=True, mode="json"),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OidcCibaVerificationProperties:
        props = cls()
        if "deliveryMethods" in data:
            props.delivery_methods = list(data["deliveryMethods"])
        if "mail" in data:
            try:
                props.mail = EmailProperties.model_validate(data["mail"])
            except ValidationError as e:
                raise ConfigurationError(f"Invalid CIBA verification mail settings: {e}") from e
        return props


@dataclass
class OidcCibaProperties:
    """CIBA settings of the OIDC provider."""

    max_time_to_live_in_seconds: str = "PT5M"
    """Hard timeout after which the authentication request expires."""

    verification: OidcCibaVerificationProperties = field(default_factory=OidcCibaVerificationProperties)
    """Notification settings used to reach the user."""

    @property
    def max_time_to_live(self) -> timedelta:
        return parse_duration(self.max_time_to_live_in_seconds)

    def to_dict(self) -> dict[str, Any]:
        return {
            "maxTimeToLiveInSeconds": self.max_time_to_live_in_seconds,
            "verification": self.verification.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OidcCibaProperties:
        props = cls()
        if "maxTimeToLiveInSeconds" in data:
            props.max_time_to_live_in_seconds = str(data["maxTimeToLiveInSeconds"])
        if "verification" in data:
            props.verification = OidcCibaVerificationProperties.from_dict(data["verification"])
        return props


__all__ = ["OidcCibaProperties", "OidcCibaVerificationProperties", "parse_duration"]
