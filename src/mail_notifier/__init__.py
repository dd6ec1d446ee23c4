# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tenant-aware email notifications over SMTP.

This package resolves the outbound mail server for a request (a tenant
email policy or the global defaults), probes it, builds the message and
hands it to aiosmtplib.

Components:
    DefaultEmailSender: Resolves, probes, builds and sends one message.
    MailTransport: Per-request wrapper around ``aiosmtplib.SMTP``.
    MailSettings: Global mail server defaults loaded from INI/environment.
    InMemoryTenantsManager: Tenant registry loaded from JSON.
    StaticMessageSource: Localized subject lookup.

Example:
    Sending a message::

        from mail_notifier import DefaultEmailSender, EmailMessageRequest, load_mail_settings

        sender = DefaultEmailSender(mail_settings=load_mail_settings("config.ini"))
        result = await sender.send(EmailMessageRequest(recipients=["a@example.com"], body="Hi"))
"""

from .errors import (
    ConfigurationError,
    InvalidAddressError,
    MailNotifierError,
    NoSuchMessageError,
    SslBundleNotFoundError,
    TransportError,
)
from .messages import MessageSource, StaticMessageSource, determine_email_subject
from .models import (
    DispatchOutcome,
    EmailCommunicationResult,
    EmailMessageRequest,
    EmailProperties,
    TenantCommunicationPolicy,
    TenantDefinition,
    TenantEmailCommunicationPolicy,
)
from .sender import (
    DefaultEmailSender,
    EmailSender,
    EmailSenderCustomizer,
    MailConnectionConfig,
    NoOpEmailSender,
    resolve_connection_config,
)
from .settings import MailSettings, SslSettings, load_mail_settings
from .ssl_bundles import SslBundle, SslBundles, load_ssl_bundles
from .tenants import InMemoryTenantsManager, TenantsManager
from .transport import MailTransport, MimeMessageHelper

__all__ = [
    "ConfigurationError",
    "DefaultEmailSender",
    "DispatchOutcome",
    "EmailCommunicationResult",
    "EmailMessageRequest",
    "EmailProperties",
    "EmailSender",
    "EmailSenderCustomizer",
    "InMemoryTenantsManager",
    "InvalidAddressError",
    "MailConnectionConfig",
    "MailNotifierError",
    "MailSettings",
    "MailTransport",
    "MessageSource",
    "MimeMessageHelper",
    "NoOpEmailSender",
    "NoSuchMessageError",
    "SslBundle",
    "SslBundleNotFoundError",
    "SslBundles",
    "SslSettings",
    "StaticMessageSource",
    "TenantCommunicationPolicy",
    "TenantDefinition",
    "TenantEmailCommunicationPolicy",
    "TenantsManager",
    "TransportError",
    "determine_email_subject",
    "load_mail_settings",
    "load_ssl_bundles",
    "resolve_connection_config",
]
