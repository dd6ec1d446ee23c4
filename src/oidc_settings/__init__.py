# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration values for OIDC protocol extensions."""

from .ciba import OidcCibaProperties, OidcCibaVerificationProperties, parse_duration

__all__ = ["OidcCibaProperties", "OidcCibaVerificationProperties", "parse_duration"]
