# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models for tenant-aware email notifications.

This module defines the values flowing through the sender: the request
describing one message, the per-tenant communication policy overriding
the global mail server, and the result handed back to the caller.

Models:
    - EmailProperties: Per-message settings (from, subject, cc, bcc, ...)
    - EmailMessageRequest: One message to deliver
    - TenantEmailCommunicationPolicy: Per-tenant SMTP override
    - TenantCommunicationPolicy: Tenant-level outbound message settings
    - TenantDefinition: A tenant as known by the tenant registry
    - EmailCommunicationResult: Outcome of a send
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _dedupe(values: list[str] | tuple[str, ...] | set[str] | frozenset[str] | None) -> tuple[str, ...]:
    """Normalise an address collection to an ordered tuple without duplicates."""
    if isinstance(values, str):
        raise ValueError("expected a collection of addresses, not a single string")
    if not values:
        return ()
    result: list[str] = []
    for value in values:
        if value is None:
            continue
        address = str(value).strip()
        if address and address not in result:
            result.append(address)
    return tuple(result)


class DispatchOutcome(str, Enum):
    """Stage reached by a send.

    Attributes:
        UNREACHABLE: No usable transport or the connectivity probe failed.
        READY: The server answered the probe; the message can be built.
        SENT: The message was handed to the transport.
    """

    UNREACHABLE = "unreachable"
    READY = "ready"
    SENT = "sent"


class EmailProperties(BaseModel):
    """Per-message email settings.

    Attributes:
        from_address: Default sender, used unless the tenant policy overrides it.
        subject: Message code resolved through the message source, or the
            literal subject when no message matches.
        text: Default body text, used by callers building requests.
        reply_to: Reply-To address. Blank means no Reply-To header.
        cc: Carbon-copy recipients.
        bcc: Blind carbon-copy recipients.
        html: Whether the body is HTML.
        validate_addresses: Whether addresses are validated while building.
        priority: Value of the X-Priority header (1 = highest, 5 = lowest).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    from_address: Annotated[
        str | None,
        Field(default=None, alias="from", description="Default sender address")
    ]
    subject: Annotated[
        str | None,
        Field(default=None, description="Subject or subject message code")
    ]
    text: Annotated[
        str | None,
        Field(default=None, description="Default body text")
    ]
    reply_to: Annotated[
        str | None,
        Field(default=None, alias="replyTo", description="Reply-To address")
    ]
    cc: Annotated[
        tuple[str, ...],
        Field(default=(), description="Carbon-copy recipients")
    ]
    bcc: Annotated[
        tuple[str, ...],
        Field(default=(), description="Blind carbon-copy recipients")
    ]
    html: Annotated[
        bool,
        Field(default=False, description="Send body as text/html")
    ]
    validate_addresses: Annotated[
        bool,
        Field(default=False, alias="validateAddresses", description="Validate addresses while building")
    ]
    priority: Annotated[
        int,
        Field(default=1, ge=1, le=5, description="X-Priority header value")
    ]

    @field_validator("cc", "bcc", mode="before")
    @classmethod
    def normalise_addresses(cls, v):
        return _dedupe(v)


class EmailMessageRequest(BaseModel):
    """A single message to deliver.

    Attributes:
        recipients: Target addresses, duplicates removed, order kept.
        body: Message body.
        tenant: Tenant identifier used to look up the communication policy.
        locale: Locale forwarded to the message source for the subject.
        email_properties: Per-message settings.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    recipients: Annotated[
        tuple[str, ...],
        Field(default=(), alias="to", description="Recipient addresses")
    ]
    body: Annotated[
        str,
        Field(default="", description="Message body")
    ]
    tenant: Annotated[
        str | None,
        Field(default=None, description="Tenant identifier")
    ]
    locale: Annotated[
        str | None,
        Field(default=None, description="Locale for subject resolution")
    ]
    email_properties: Annotated[
        EmailProperties,
        Field(default_factory=EmailProperties, alias="emailProperties")
    ]

    @field_validator("recipients", mode="before")
    @classmethod
    def normalise_recipients(cls, v):
        return _dedupe(v)


class TenantEmailCommunicationPolicy(BaseModel):
    """Per-tenant override of the outbound mail server.

    When present, host/port/username/password replace the global ones as a
    unit. ``from_address`` is applied independently and only when non-blank.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    host: Annotated[
        str | None,
        Field(default=None, description="SMTP server hostname")
    ]
    port: Annotated[
        int,
        Field(default=0, ge=0, le=65535, description="SMTP port (0 = transport default)")
    ]
    username: Annotated[
        str | None,
        Field(default=None, description="SMTP username")
    ]
    password: Annotated[
        str | None,
        Field(default=None, repr=False, description="SMTP password")
    ]
    from_address: Annotated[
        str | None,
        Field(default=None, alias="from", description="Sender override")
    ]


class TenantCommunicationPolicy(BaseModel):
    """Tenant-level bundle of outbound message settings."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    email_communication_policy: Annotated[
        TenantEmailCommunicationPolicy | None,
        Field(default=None, alias="emailCommunicationPolicy")
    ]


class TenantDefinition(BaseModel):
    """A tenant known to the registry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    id: Annotated[
        str,
        Field(min_length=1, description="Unique tenant identifier")
    ]
    description: Annotated[
        str | None,
        Field(default=None, description="Human-readable description")
    ]
    communication_policy: Annotated[
        TenantCommunicationPolicy | None,
        Field(default=None, alias="communicationPolicy")
    ]

    @property
    def email_communication_policy(self) -> TenantEmailCommunicationPolicy | None:
        if self.communication_policy is None:
            return None
        return self.communication_policy.email_communication_policy


class EmailCommunicationResult(BaseModel):
    """Result of a send, echoing recipients and body back to the caller."""

    model_config = ConfigDict(frozen=True)

    success: bool
    to: tuple[str, ...] = ()
    body: str = ""
    outcome: DispatchOutcome = DispatchOutcome.UNREACHABLE


__all__ = [
    "DispatchOutcome",
    "EmailCommunicationResult",
    "EmailMessageRequest",
    "EmailProperties",
    "TenantCommunicationPolicy",
    "TenantDefinition",
    "TenantEmailCommunicationPolicy",
]
