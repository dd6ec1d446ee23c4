# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for the mail notifier.

Connectivity failures are never raised: the sender turns them into a
negative result. Everything here is raised for problems the caller has
to deal with.
"""


class MailNotifierError(Exception):
    """Base class for all mail notifier errors."""

    code = "mail_notifier_error"


class ConfigurationError(MailNotifierError):
    """Raised when mail settings, SSL bundles or tenant files are invalid."""

    code = "invalid_configuration"


class TransportError(MailNotifierError):
    """Raised when the transport fails unexpectedly while sending."""

    code = "transport_error"

    def __init__(self, message: str, *, host: str | None = None):
        super().__init__(message)
        self.host = host


class InvalidAddressError(MailNotifierError, ValueError):
    """Raised when address validation is enabled and an address is malformed."""

    code = "invalid_address"

    def __init__(self, address: str, reason: str | None = None):
        message = f"Invalid email address: {address!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.address = address


class SslBundleNotFoundError(MailNotifierError, KeyError):
    """Raised when a named SSL bundle is not registered."""

    code = "ssl_bundle_not_found"

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"SSL bundle not found: {self.name}"


class NoSuchMessageError(MailNotifierError, LookupError):
    """Raised when a message code has no translation and no default."""

    code = "no_such_message"

    def __init__(self, message_code: str, locale: str | None = None):
        super().__init__(f"No message found under code {message_code!r} for locale {locale!r}")
        self.message_code = message_code
        self.locale = locale
