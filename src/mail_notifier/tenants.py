# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tenant registry used to resolve per-tenant communication policies.

The sender only needs ``find_tenant(tenant_id)``; any object exposing it
can act as the registry. :class:`InMemoryTenantsManager` is the default
implementation, fed either programmatically or from a JSON file.

Example:
    Tenant file format (tenants.json)::

        [
          {
            "id": "acme",
            "description": "ACME Corporation",
            "communicationPolicy": {
              "emailCommunicationPolicy": {
                "host": "smtp.acme.com",
                "port": 587,
                "username": "mailer@acme.com",
                "password": "secret",
                "from": "noreply@acme.com"
              }
            }
          }
        ]
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from .errors import ConfigurationError
from .logger import get_logger
from .models import TenantDefinition, TenantEmailCommunicationPolicy

logger = get_logger("TenantsManager")

_TENANT_LIST = TypeAdapter(list[TenantDefinition])


@runtime_checkable
class TenantsManager(Protocol):
    """Lookup of tenants by identifier."""

    def find_tenant(self, tenant_id: str | None) -> TenantDefinition | None: ...


class InMemoryTenantsManager:
    """Tenant registry backed by a dictionary."""

    def __init__(self, tenants: list[TenantDefinition] | None = None):
        self._tenants: dict[str, TenantDefinition] = {}
        for tenant in tenants or []:
            self.add(tenant)

    def add(self, tenant: TenantDefinition) -> None:
        if tenant.id in self._tenants:
            logger.warning(f"Replacing tenant definition for {tenant.id}")
        self._tenants[tenant.id] = tenant

    def find_tenant(self, tenant_id: str | None) -> TenantDefinition | None:
        if not tenant_id:
            return None
        return self._tenants.get(tenant_id)

    def list_tenants(self) -> list[TenantDefinition]:
        return [self._tenants[key] for key in sorted(self._tenants)]

    def __len__(self) -> int:
        return len(self._tenants)

    @classmethod
    def from_file(cls, path: str | Path) -> InMemoryTenantsManager:
        """Load tenants from a JSON file holding a list of tenant definitions.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the content does not validate.
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Tenants file not found: {path}")
        try:
            tenants = _TENANT_LIST.validate_json(file_path.read_bytes())
        except ValidationError as e:
            raise ConfigurationError(f"Invalid tenants file {path}: {e}") from e
        logger.info(f"Loaded {len(tenants)} tenants from {path}")
        return cls(tenants)


def find_email_communication_policy(
    tenants: TenantsManager | None,
    tenant_id: str | None,
) -> TenantEmailCommunicationPolicy | None:
    """Return the email communication policy of a tenant, if any."""
    if tenants is None or not tenant_id:
        return None
    tenant = tenants.find_tenant(tenant_id)
    if tenant is None:
        return None
    return tenant.email_communication_policy


__all__ = ["InMemoryTenantsManager", "TenantsManager", "find_email_communication_policy"]
