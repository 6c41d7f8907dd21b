"""Service layer for vault business logic."""

from vault.services.vault_service import VaultService

__all__ = [
    "VaultService",
]
