# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tenant-aware email sender.

The sender turns an :class:`EmailMessageRequest` into one SMTP delivery:

1. Resolve the connection block: a tenant email policy replaces the global
   host/port/username/password as a unit; protocol and encoding always
   come from the global settings.
2. Attach SSL properties (``ssl.enable``, bundle-derived SSL context).
3. Probe the server. A blank host or a failed probe ends the send with
   ``success=False`` and nothing is raised.
4. Build the message, apply customizers in registration order, send.

Errors raised while building or sending the message propagate to the
caller; there is no retry at this layer.

Example:
    Sending a notification::

        sender = DefaultEmailSender(
            mail_settings=load_mail_settings("config.ini"),
            message_source=StaticMessageSource({"en": {"reset.subject": "Reset"}}),
            tenants=InMemoryTenantsManager.from_file("tenants.json"),
        )
        result = await sender.send(
            EmailMessageRequest(
                recipients=["user@example.com"],
                body="Click the link",
                tenant="acme",
                email_properties=EmailProperties(from_address="noreply@example.com",
                                                 subject="reset.subject"),
            )
        )
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Any, Protocol, runtime_checkable

import aiosmtplib

from .errors import TransportError
from .logger import get_logger
from .messages import MessageSource, StaticMessageSource, determine_email_subject
from .models import (
    DispatchOutcome,
    EmailCommunicationResult,
    EmailMessageRequest,
    TenantEmailCommunicationPolicy,
)
from .settings import DEFAULT_ENCODING, DEFAULT_PROTOCOL, MailSettings
from .ssl_bundles import SslBundles
from .tenants import TenantsManager, find_email_communication_policy
from .transport import MailTransport, MimeMessageHelper


@dataclass
class MailConnectionConfig:
    """Connection settings resolved for one request."""

    host: str | None = None
    port: int | None = None
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    protocol: str = DEFAULT_PROTOCOL
    default_encoding: str = DEFAULT_ENCODING
    ssl_enabled: bool = False
    ssl_bundle: str | None = None

    @property
    def usable(self) -> bool:
        return bool(self.host and self.host.strip())


def resolve_connection_config(
    settings: MailSettings,
    policy: TenantEmailCommunicationPolicy | None = None,
) -> MailConnectionConfig:
    """Merge a tenant email policy over the global mail settings.

    A present policy wins for host, username and password as a block, and
    for the port only when it is positive. Protocol, encoding and SSL
    always come from ``settings``.
    """
    if policy is not None:
        host = policy.host
        port = policy.port if policy.port > 0 else None
        username = policy.username
        password = policy.password
    else:
        host = settings.host
        port = settings.port
        username = settings.username
        password = settings.password
    return MailConnectionConfig(
        host=host,
        port=port,
        username=username,
        password=password,
        protocol=settings.protocol or DEFAULT_PROTOCOL,
        default_encoding=settings.default_encoding or DEFAULT_ENCODING,
        ssl_enabled=settings.ssl.enabled,
        ssl_bundle=settings.ssl.bundle,
    )


@runtime_checkable
class EmailSenderCustomizer(Protocol):
    """Hook invoked right before a message is handed to the transport."""

    def customize(self, transport: MailTransport, request: EmailMessageRequest) -> None: ...


class _CallableCustomizer:
    def __init__(self, func: Callable[[MailTransport, EmailMessageRequest], None]):
        self.func = func

    def customize(self, transport: MailTransport, request: EmailMessageRequest) -> None:
        self.func(transport, request)


def _as_customizer(customizer: Any) -> EmailSenderCustomizer:
    if isinstance(customizer, EmailSenderCustomizer):
        return customizer
    if callable(customizer):
        return _CallableCustomizer(customizer)
    raise TypeError(f"Not an email sender customizer: {customizer!r}")


class EmailSender:
    """Base class for email senders."""

    def can_send(self) -> bool:
        return True

    async def send(self, request: EmailMessageRequest) -> EmailCommunicationResult:
        raise NotImplementedError


class NoOpEmailSender(EmailSender):
    """Sender used when mail is disabled: never sends, always reports failure."""

    def can_send(self) -> bool:
        return False

    async def send(self, request: EmailMessageRequest) -> EmailCommunicationResult:
        return EmailCommunicationResult(
            success=False,
            to=request.recipients,
            body=request.body,
            outcome=DispatchOutcome.UNREACHABLE,
        )


class DefaultEmailSender(EmailSender):
    """Send one message per request through a freshly built transport.

    The sender keeps no per-request state, so a single instance can be
    shared by concurrent callers.

    Attributes:
        mail_settings: Global mail server defaults.
        message_source: Resolver for subject message codes.
        tenants: Tenant registry, or None when tenancy is not used.
        ssl_bundles: Registry used when ``mail_settings.ssl.bundle`` is set.
        customizers: Hooks applied in registration order before each send.
    """

    def __init__(
        self,
        mail_settings: MailSettings,
        message_source: MessageSource | None = None,
        tenants: TenantsManager | None = None,
        ssl_bundles: SslBundles | None = None,
        customizers: Iterable[EmailSenderCustomizer | Callable[[MailTransport, EmailMessageRequest], None]] = (),
    ):
        self.mail_settings = mail_settings
        self.message_source = message_source or StaticMessageSource()
        self.tenants = tenants
        self.ssl_bundles = ssl_bundles
        self.customizers: list[EmailSenderCustomizer] = [_as_customizer(c) for c in customizers]
        self.logger = get_logger("EmailSender")

    def add_customizer(
        self,
        customizer: EmailSenderCustomizer | Callable[[MailTransport, EmailMessageRequest], None],
    ) -> None:
        self.customizers.append(_as_customizer(customizer))

    def can_send(self) -> bool:
        return bool(self.mail_settings.host) or self.tenants is not None

    # ---------------------------------------------------------------- send
    async def send(self, request: EmailMessageRequest) -> EmailCommunicationResult:
        """Deliver one message.

        Returns:
            Result whose ``success`` reflects the connectivity probe, with
            recipients and body echoed from the request.

        Raises:
            InvalidAddressError: If address validation is on and fails.
            NoSuchMessageError: If the subject cannot be resolved.
            aiosmtplib.SMTPException: If the server rejects the message.
            TransportError: On any other failure while sending.
        """
        policy = find_email_communication_policy(self.tenants, request.tenant)
        transport = self.create_transport(request, policy)
        outcome = await self._probe(transport)

        if outcome is DispatchOutcome.READY:
            message = self.create_email_message(request, transport, policy)
            for customizer in self.customizers:
                customizer.customize(transport, request)
            await self._deliver(transport, message)
            outcome = DispatchOutcome.SENT
            self.logger.info(
                "Sent email to %s via %s (tenant=%s)",
                ", ".join(request.recipients), transport.host, request.tenant,
            )

        return EmailCommunicationResult(
            success=outcome is not DispatchOutcome.UNREACHABLE,
            to=request.recipients,
            body=request.body,
            outcome=outcome,
        )

    async def _probe(self, transport: MailTransport | None) -> DispatchOutcome:
        if transport is None:
            self.logger.debug("No mail host configured, skipping send")
            return DispatchOutcome.UNREACHABLE
        try:
            await transport.test_connection()
        except Exception as e:
            self.logger.warning("Mail server %s:%s is not reachable: %s", transport.host, transport.port, e)
            self.logger.debug("Connectivity probe failure", exc_info=True)
            return DispatchOutcome.UNREACHABLE
        return DispatchOutcome.READY

    async def _deliver(self, transport: MailTransport, message: EmailMessage) -> None:
        try:
            await transport.send(message)
        except aiosmtplib.SMTPException:
            raise
        except Exception as e:
            raise TransportError(f"Failed to send email via {transport.host}: {e}", host=transport.host) from e

    # ---------------------------------------------------------- transport
    def create_transport(
        self,
        request: EmailMessageRequest,
        policy: TenantEmailCommunicationPolicy | None = None,
    ) -> MailTransport | None:
        """Build the transport for a request, or None when no host is resolved."""
        config = resolve_connection_config(self.mail_settings, policy)
        self.logger.debug(
            "Resolved mail server %s:%s for tenant %s (tenant policy: %s)",
            config.host, config.port, request.tenant, policy is not None,
        )
        if not config.usable:
            return None
        return MailTransport(
            host=config.host,
            port=config.port,
            username=config.username,
            password=config.password,
            protocol=config.protocol,
            default_encoding=config.default_encoding,
            properties=self._transport_properties(config),
        )

    def _transport_properties(self, config: MailConnectionConfig) -> dict[str, Any]:
        properties: dict[str, Any] = dict(self.mail_settings.properties)
        protocol = config.protocol or DEFAULT_PROTOCOL
        if config.ssl_enabled:
            properties[f"mail.{protocol}.ssl.enable"] = "true"
        if config.ssl_bundle:
            if self.ssl_bundles is None:
                raise TransportError(f"SSL bundle {config.ssl_bundle!r} configured but no SSL bundles available")
            bundle = self.ssl_bundles.get_bundle(config.ssl_bundle)
            properties[f"mail.{protocol}.ssl.socketFactory"] = bundle.create_ssl_context()
        return properties

    # ------------------------------------------------------------ message
    def create_email_message(
        self,
        request: EmailMessageRequest,
        transport: MailTransport,
        policy: TenantEmailCommunicationPolicy | None = None,
    ) -> EmailMessage:
        """Assemble the message for a request.

        The tenant policy ``from`` wins when non-blank; otherwise the
        request's ``from_address`` is used.
        """
        props = request.email_properties
        helper = MimeMessageHelper(
            transport.create_message(),
            encoding=transport.default_encoding,
            validate_addresses=props.validate_addresses,
        )
        helper.set_to(request.recipients)
        helper.set_text(request.body, props.html)
        helper.set_subject(determine_email_subject(request, self.message_source))

        if policy is not None and policy.from_address and policy.from_address.strip():
            helper.set_from(policy.from_address)
        elif props.from_address and props.from_address.strip():
            helper.set_from(props.from_address)
        else:
            helper.set_from(self.mail_settings.default_from)

        if props.reply_to and props.reply_to.strip():
            helper.set_reply_to(props.reply_to)
        helper.set_priority(props.priority)
        helper.set_cc(props.cc)
        helper.set_bcc(props.bcc)
        return helper.message


__all__ = [
    "DefaultEmailSender",
    "EmailSender",
    "EmailSenderCustomizer",
    "MailConnectionConfig",
    "NoOpEmailSender",
    "resolve_connection_config",
]
