# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Global mail settings and their INI/environment loader.

The settings describe the default outbound mail server used when a tenant
does not carry its own email communication policy.

Example:
    Configuration file format (config.ini)::

        [mail]
        host = smtp.example.com
        port = 587
        username = mailer@example.com
        password = secret
        protocol = smtp
        default_encoding = utf-8
        from = noreply@example.com
        ssl_enabled = false
        ssl_bundle = corporate

        [mail.properties]
        mail.smtp.starttls.enable = true
        mail.smtp.timeout = 10000

    Environment variables (all prefixed with MAIL_) override the file:
      MAIL_HOST, MAIL_PORT, MAIL_USERNAME, MAIL_PASSWORD, MAIL_PROTOCOL,
      MAIL_DEFAULT_ENCODING, MAIL_FROM, MAIL_SSL_ENABLED, MAIL_SSL_BUNDLE

    Loading::

        settings = load_mail_settings("/etc/mail-notifier/config.ini")
"""

from __future__ import annotations

import configparser
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigurationError
from .logger import get_logger

DEFAULT_PROTOCOL = "smtp"
DEFAULT_ENCODING = "utf-8"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}

logger = get_logger("MailSettings")


@dataclass
class SslSettings:
    """SSL settings of the global mail server."""

    enabled: bool = False
    """Whether implicit SSL/TLS is enabled for the protocol."""

    bundle: str | None = None
    """Name of the SSL bundle providing the trust material."""


@dataclass
class MailSettings:
    """Global outbound mail server defaults.

    Protocol and default encoding always come from here, even when a
    tenant overrides the connection block.
    """

    host: str | None = None
    """SMTP server hostname. Blank means mail is not configured."""

    port: int | None = None
    """SMTP server port. None keeps the transport default."""

    username: str | None = None
    """Username for SMTP authentication."""

    password: str | None = None
    """Password for SMTP authentication."""

    protocol: str = DEFAULT_PROTOCOL
    """Transport protocol (smtp or smtps)."""

    default_encoding: str = DEFAULT_ENCODING
    """Charset used for message bodies."""

    default_from: str | None = None
    """Sender used when neither the tenant policy nor the request gives one."""

    properties: dict[str, str] = field(default_factory=dict)
    """Extra transport properties, e.g. ``mail.smtp.starttls.enable``."""

    ssl: SslSettings = field(default_factory=SslSettings)
    """SSL settings."""

    def __repr__(self) -> str:
        password = "***" if self.password else None
        return (
            f"MailSettings(host={self.host!r}, port={self.port!r}, "
            f"username={self.username!r}, password={password!r}, "
            f"protocol={self.protocol!r}, default_encoding={self.default_encoding!r})"
        )


def _parse_bool(value: str, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {key}: {value!r}")


def _parse_port(value: str | None, key: str) -> int | None:
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"Invalid port for {key}: {value!r}") from e


def load_mail_settings(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> MailSettings:
    """Load mail settings from an INI file with environment overrides.

    Args:
        config_path: Path to the INI file. When None only the environment
            is read.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        MailSettings with defaults for any missing value.

    Raises:
        FileNotFoundError: If ``config_path`` is given but does not exist.
        ConfigurationError: If a value cannot be parsed.
    """
    env = os.environ if environ is None else environ
    values: dict[str, str] = {}
    properties: dict[str, str] = {}

    if config_path is not None:
        if not Path(config_path).exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        config = configparser.ConfigParser(interpolation=None)
        # transport property keys are case sensitive (socketFactory)
        config.optionxform = str  # type: ignore[assignment,method-assign]
        config.read(config_path)
        if config.has_section("mail"):
            values.update({key.lower(): value.strip() for key, value in config.items("mail")})
        else:
            logger.info("No [mail] section in %s, using defaults", config_path)
        if config.has_section("mail.properties"):
            properties.update({key: value.strip() for key, value in config.items("mail.properties")})

    for key in (
        "host",
        "port",
        "username",
        "password",
        "protocol",
        "default_encoding",
        "from",
        "ssl_enabled",
        "ssl_bundle",
    ):
        env_value = env.get(f"MAIL_{key.upper()}")
        if env_value is not None:
            values[key] = env_value

    settings = MailSettings(
        host=values.get("host") or None,
        port=_parse_port(values.get("port"), "port"),
        username=values.get("username") or None,
        password=values.get("password") or None,
        protocol=values.get("protocol") or DEFAULT_PROTOCOL,
        default_encoding=values.get("default_encoding") or DEFAULT_ENCODING,
        default_from=values.get("from") or None,
        properties=properties,
        ssl=SslSettings(
            enabled=_parse_bool(values.get("ssl_enabled", "false"), "ssl_enabled"),
            bundle=values.get("ssl_bundle") or None,
        ),
    )
    logger.debug("Loaded %r", settings)
    return settings


__all__ = [
    "DEFAULT_ENCODING",
    "DEFAULT_PROTOCOL",
    "MailSettings",
    "SslSettings",
    "load_mail_settings",
]
