# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Localized message lookup used to resolve email subjects.

The sender does not decide locales: it forwards the request locale to the
message source, which walks its own fallback chain.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from .errors import NoSuchMessageError
from .models import EmailMessageRequest


@runtime_checkable
class MessageSource(Protocol):
    """Resolve message codes to localized text."""

    def get_message(
        self,
        code: str,
        args: Sequence[Any] | None = None,
        default: str | None = None,
        locale: str | None = None,
    ) -> str: ...


class StaticMessageSource:
    """Message source backed by in-memory bundles.

    Bundles are keyed by locale (``"en"``, ``"it_IT"``...). A lookup for
    ``it_IT`` tries ``it_IT``, then ``it``, then the default locale.
    Templates use ``str.format`` positional placeholders (``{0}``).

    Example:
        >>> source = StaticMessageSource({"en": {"reset.subject": "Reset your password"}})
        >>> source.get_message("reset.subject", locale="en_US")
        'Reset your password'
    """

    def __init__(
        self,
        bundles: Mapping[str, Mapping[str, str]] | None = None,
        default_locale: str = "en",
    ):
        self.default_locale = default_locale
        self._bundles: dict[str, dict[str, str]] = {
            self._normalise(locale): dict(messages) for locale, messages in (bundles or {}).items()
        }

    @staticmethod
    def _normalise(locale: str) -> str:
        return locale.replace("-", "_").lower()

    def add_message(self, code: str, locale: str, message: str) -> None:
        self._bundles.setdefault(self._normalise(locale), {})[code] = message

    def _candidates(self, locale: str | None) -> list[str]:
        candidates: list[str] = []
        if locale:
            normalised = self._normalise(locale)
            candidates.append(normalised)
            language = normalised.split("_", 1)[0]
            if language != normalised:
                candidates.append(language)
        default = self._normalise(self.default_locale)
        if default not in candidates:
            candidates.append(default)
        return candidates

    def get_message(
        self,
        code: str,
        args: Sequence[Any] | None = None,
        default: str | None = None,
        locale: str | None = None,
    ) -> str:
        for candidate in self._candidates(locale):
            template = self._bundles.get(candidate, {}).get(code)
            if template is not None:
                return template.format(*args) if args else template
        if default is not None:
            return default
        raise NoSuchMessageError(code, locale)


def determine_email_subject(request: EmailMessageRequest, message_source: MessageSource) -> str:
    """Resolve the subject of a request.

    The configured subject is treated as a message code; when the source
    has no entry for it the subject itself is used.
    """
    subject = request.email_properties.subject
    if not subject or not subject.strip():
        return ""
    return message_source.get_message(subject, None, subject, request.locale)


__all__ = ["MessageSource", "StaticMessageSource", "determine_email_subject"]
