# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Named SSL bundles providing trust material for mail connections.

A bundle is a named set of CA/certificate files from which an
``ssl.SSLContext`` is derived. The global mail settings reference a bundle
by name; the sender attaches the resulting context to the transport.

Example:
    Configuration file format (config.ini)::

        [ssl.bundle.corporate]
        cafile = /etc/ssl/corporate-ca.pem
        certfile = /etc/ssl/client.pem
        keyfile = /etc/ssl/client.key

    Loading::

        bundles = load_ssl_bundles("/etc/mail-notifier/config.ini")
        context = bundles.get_bundle("corporate").create_ssl_context()
"""

from __future__ import annotations

import configparser
import ssl
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError, SslBundleNotFoundError
from .logger import get_logger

SECTION_PREFIX = "ssl.bundle."

logger = get_logger("SslBundles")


@dataclass(frozen=True)
class SslBundle:
    """Trust and key material for TLS connections.

    Attributes:
        name: Bundle name.
        cafile: PEM file with trusted CA certificates. None uses system CAs.
        certfile: Client certificate chain, for mutual TLS.
        keyfile: Private key of the client certificate.
        verify: Whether server certificates are verified.
    """

    name: str
    cafile: str | None = None
    certfile: str | None = None
    keyfile: str | None = None
    verify: bool = True

    def create_ssl_context(self) -> ssl.SSLContext:
        """Build a client-side SSL context from the bundle material."""
        context = ssl.create_default_context(cafile=self.cafile)
        if self.certfile:
            context.load_cert_chain(self.certfile, self.keyfile)
        if not self.verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context


class SslBundles:
    """Registry of SSL bundles keyed by name."""

    def __init__(self, bundles: list[SslBundle] | None = None):
        self._bundles: dict[str, SslBundle] = {}
        for bundle in bundles or []:
            self.register(bundle)

    def register(self, bundle: SslBundle) -> None:
        self._bundles[bundle.name] = bundle

    def get_bundle(self, name: str) -> SslBundle:
        """Return the named bundle.

        Raises:
            SslBundleNotFoundError: If no bundle is registered under ``name``.
        """
        try:
            return self._bundles[name]
        except KeyError:
            raise SslBundleNotFoundError(name) from None

    def names(self) -> list[str]:
        return sorted(self._bundles)

    def __len__(self) -> int:
        return len(self._bundles)


def load_ssl_bundles(config_path: str | Path) -> SslBundles:
    """Load ``[ssl.bundle.<name>]`` sections from an INI file.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ConfigurationError: If a ``verify`` flag is not a boolean.
    """
    if not Path(config_path).exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    config = configparser.ConfigParser(interpolation=None)
    config.read(config_path)

    bundles = SslBundles()
    for section in config.sections():
        if not section.startswith(SECTION_PREFIX):
            continue
        name = section[len(SECTION_PREFIX):]
        try:
            verify = config.getboolean(section, "verify", fallback=True)
        except ValueError as e:
            raise ConfigurationError(f"Invalid verify flag in [{section}]: {e}") from e
        bundles.register(
            SslBundle(
                name=name,
                cafile=config.get(section, "cafile", fallback=None) or None,
                certfile=config.get(section, "certfile", fallback=None) or None,
                keyfile=config.get(section, "keyfile", fallback=None) or None,
                verify=verify,
            )
        )
    logger.info(f"Loaded {len(bundles)} SSL bundles from config")
    return bundles


__all__ = ["SslBundle", "SslBundles", "load_ssl_bundles"]
