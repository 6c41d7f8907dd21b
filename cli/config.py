"""Configuration management for the MediVault CLI."""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from common.constants import BULK_ITEM_DELAY_SECONDS, DEFAULT_VAULT_PORT
from common.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.medivault' / 'config.json'


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "vault_host": os.environ.get("VAULT_HOST", "localhost"),
        "vault_port": int(os.environ.get("VAULT_PORT", str(DEFAULT_VAULT_PORT))),
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "bulk_item_delay": BULK_ITEM_DELAY_SECONDS,
    }

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.medivault/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        A file that cannot be parsed is copied to ``config.json.bak`` and
        replaced by defaults.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.medivault' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.config_path.exists():
            config = self.DEFAULT_CONFIG.copy()
            self._write(config)
            return config

        try:
            with open(self.config_path, 'r') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("config root must be an object")
        except (ValueError, IOError) as e:
            backup_path = self.config_path.with_suffix('.json.bak')
            logger.warning(f"Unreadable config {self.config_path} ({e}), backing up to {backup_path}")
            try:
                shutil.copy(self.config_path, backup_path)
            except OSError as copy_error:
                logger.error(f"Failed to back up config: {copy_error}")
            config = self.DEFAULT_CONFIG.copy()
            self._write(config)
            return config

        config = self.DEFAULT_CONFIG.copy()
        config.update(data)
        return config

    def _write(self, data: dict) -> None:
        try:
            with open(self.config_path, 'w') as f:
                json.dump(data, f, indent=2)
        except IOError as e:
            logger.error(f"Failed to write config {self.config_path}: {e}")

    def save(self) -> None:
        """Save current configuration to file."""
        self._write(self.data)

    def get_principal(self) -> Optional[str]:
        """
        Get the stored session principal.

        Returns:
            Principal text or None if not logged in
        """
        return self.data.get('principal')

    def set_principal(self, principal: Optional[str]) -> None:
        """
        Set (or clear, with None) the session principal and save to file.
        """
        if principal is None:
            self.data.pop('principal', None)
        else:
            self.data['principal'] = principal
        self.save()

    def get_base_url(self) -> str:
        """
        Get vault base URL.

        Returns:
            Base URL string (e.g., "http://localhost:8000")
        """
        host = self.data.get('vault_host', 'localhost')
        port = self.data.get('vault_port', DEFAULT_VAULT_PORT)
        return f"http://{host}:{port}"

    def get_timeout(self) -> float:
        return self.data.get('timeout', 30)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }

    def get_bulk_item_delay(self) -> float:
        return self.data.get('bulk_item_delay', BULK_ITEM_DELAY_SECONDS)
