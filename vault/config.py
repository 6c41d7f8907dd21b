"""Configuration settings for the vault server."""

import os

from common.constants import DEFAULT_VAULT_PORT


DATABASE_PATH = os.environ.get("VAULT_DATABASE_PATH", "/app/data/vault.db")

VAULT_HOST = os.environ.get("VAULT_HOST", "0.0.0.0")

VAULT_PORT = int(os.environ.get("VAULT_PORT", str(DEFAULT_VAULT_PORT)))
