# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Mail transport client and message helper.

:class:`MailTransport` is a thin, per-request wrapper around
``aiosmtplib.SMTP``: it holds resolved connection settings plus a
dictionary of protocol-scoped properties (``mail.<protocol>.*``) and
opens a fresh connection for each probe or send. No connection is pooled.

Recognised properties (``<p>`` is the transport protocol):

- ``mail.<p>.ssl.enable``: "true" for implicit TLS (port 465 style).
- ``mail.<p>.starttls.enable``: "true"/"false" to force or disable STARTTLS.
  When absent aiosmtplib upgrades opportunistically.
- ``mail.<p>.ssl.socketFactory``: an ``ssl.SSLContext`` used for TLS.
- ``mail.<p>.timeout``: socket timeout in milliseconds.

Example:
    Sending one message::

        transport = MailTransport(host="smtp.example.com", port=587)
        await transport.test_connection()

        helper = MimeMessageHelper(transport.create_message())
        helper.set_to(["user@example.com"])
        helper.set_from("noreply@example.com")
        helper.set_subject("Hello")
        helper.set_text("Hi there", html=False)

        await transport.send(helper.message)
"""

from __future__ import annotations

import ssl
from collections.abc import Iterable
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import Any

import aiosmtplib
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from .errors import InvalidAddressError
from .logger import get_logger
from .settings import DEFAULT_ENCODING, DEFAULT_PROTOCOL

logger = get_logger("MailTransport")

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _is_true(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


class MailTransport:
    """Connection settings for one outbound mail server.

    Attributes:
        host: SMTP server hostname. A blank host makes the transport unusable.
        port: SMTP port, or None for the protocol default.
        username: Username for SMTP authentication.
        password: Password for SMTP authentication.
        protocol: ``smtp`` or ``smtps``.
        default_encoding: Charset for message bodies.
        properties: Protocol-scoped transport properties.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        protocol: str | None = DEFAULT_PROTOCOL,
        default_encoding: str | None = DEFAULT_ENCODING,
        properties: dict[str, Any] | None = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.protocol = protocol or DEFAULT_PROTOCOL
        self.default_encoding = default_encoding or DEFAULT_ENCODING
        self.properties: dict[str, Any] = dict(properties or {})

    def __repr__(self) -> str:
        return (
            f"MailTransport(host={self.host!r}, port={self.port!r}, "
            f"username={self.username!r}, protocol={self.protocol!r})"
        )

    def _property(self, name: str) -> Any:
        return self.properties.get(f"mail.{self.protocol}.{name}")

    @property
    def use_tls(self) -> bool:
        return self.protocol == "smtps" or _is_true(self._property("ssl.enable"))

    @property
    def start_tls(self) -> bool | None:
        if self.use_tls:
            return False
        value = self._property("starttls.enable")
        if value is None:
            return None
        return _is_true(value)

    @property
    def tls_context(self) -> ssl.SSLContext | None:
        value = self._property("ssl.socketFactory")
        return value if isinstance(value, ssl.SSLContext) else None

    @property
    def timeout(self) -> float | None:
        value = self._property("timeout")
        if value in (None, ""):
            return None
        return int(value) / 1000.0

    def _create_client(self) -> aiosmtplib.SMTP:
        kwargs: dict[str, Any] = {
            "hostname": self.host,
            "port": self.port,
            "use_tls": self.use_tls,
            "start_tls": self.start_tls,
        }
        if self.username and self.password:
            kwargs["username"] = self.username
            kwargs["password"] = self.password
        if self.tls_context is not None:
            kwargs["tls_context"] = self.tls_context
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return aiosmtplib.SMTP(**kwargs)

    async def test_connection(self) -> None:
        """Connect, authenticate when credentials are set, NOOP and quit.

        Raises:
            aiosmtplib.SMTPException: On protocol or authentication failures.
            OSError: On network failures.
        """
        smtp = self._create_client()
        await smtp.connect()
        try:
            await smtp.noop()
        finally:
            if smtp.is_connected:
                await smtp.quit()

    def create_message(self) -> EmailMessage:
        return EmailMessage()

    async def send(self, *messages: EmailMessage) -> None:
        """Send messages over a single connection."""
        smtp = self._create_client()
        await smtp.connect()
        try:
            for message in messages:
                if "Date" not in message:
                    message["Date"] = formatdate(localtime=True)
                if "Message-ID" not in message:
                    message["Message-ID"] = make_msgid()
                await smtp.send_message(message)
        finally:
            if smtp.is_connected:
                await smtp.quit()


class MimeMessageHelper:
    """Populate an ``EmailMessage`` through explicit setters.

    Address lists are always kept as plain lists, so an empty cc list
    yields ``[]`` and no header. When ``validate_addresses`` is on every
    address passed to a setter is checked.
    """

    def __init__(
        self,
        message: EmailMessage,
        encoding: str = DEFAULT_ENCODING,
        validate_addresses: bool = False,
    ):
        self.message = message
        self.encoding = encoding
        self.validate_addresses = validate_addresses
        self.recipients: list[str] = []
        self.cc: list[str] = []
        self.bcc: list[str] = []

    def set_validate_addresses(self, validate: bool) -> None:
        self.validate_addresses = validate

    def _check(self, address: str) -> str:
        if self.validate_addresses:
            try:
                validate_email(address)
            except PydanticCustomError as e:
                raise InvalidAddressError(address, str(e)) from e
        return address

    def _set_addresses(self, header: str, addresses: Iterable[str]) -> list[str]:
        values = [self._check(address) for address in addresses]
        del self.message[header]
        if values:
            self.message[header] = ", ".join(values)
        return values

    def set_to(self, addresses: Iterable[str]) -> None:
        self.recipients = self._set_addresses("To", addresses)

    def set_cc(self, addresses: Iterable[str]) -> None:
        self.cc = self._set_addresses("Cc", addresses)

    def set_bcc(self, addresses: Iterable[str]) -> None:
        self.bcc = self._set_addresses("Bcc", addresses)

    def set_from(self, address: str | None) -> None:
        del self.message["From"]
        if address:
            self.message["From"] = self._check(address)

    def set_reply_to(self, address: str) -> None:
        del self.message["Reply-To"]
        self.message["Reply-To"] = self._check(address)

    def set_subject(self, subject: str) -> None:
        del self.message["Subject"]
        self.message["Subject"] = subject

    def set_priority(self, priority: int) -> None:
        del self.message["X-Priority"]
        self.message["X-Priority"] = str(priority)

    def set_text(self, text: str, html: bool = False) -> None:
        self.message.set_content(text or "", subtype="html" if html else "plain", charset=self.encoding)


__all__ = ["MailTransport", "MimeMessageHelper"]
