"""
Settings Store - account-scoped pricing configuration.

Configurations are immutable records. An update builds a complete new
record, validates it, and swaps it in under a lock, so a reader always sees
either the old or the new configuration, never a mix. The store is backed
by a JSON file that is rewritten atomically on every change.
"""
import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from ..engine.errors import AccountNotFound, ConfigurationError
from ..engine.models import PricingConfiguration
from ..engine.validation import ValidationResult, validate_pricing_configuration

logger = logging.getLogger(__name__)


class SettingsStore:
    """Pricing configuration per account."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        self._lock = threading.Lock()
        self._configs: dict[str, PricingConfiguration] = {}
        self._updated_at: dict[str, str] = {}

        if self.path and self.path.exists():
            self._load()

    def _load(self):
        """Load configurations from the JSON file."""
        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        for account_id, entry in data.get('accounts', {}).items():
            self._configs[account_id] = PricingConfiguration.from_dict(entry.get('pricing', {}))
            self._updated_at[account_id] = entry.get('updated_at', '')

        logger.info("Loaded pricing settings for %d accounts from %s", len(self._configs), self.path)

    def _write(self):
        """Rewrite the JSON file. Caller holds the lock."""
        if not self.path:
            return

        data = {
            'accounts': {
                account_id: {
                    'pricing': config.to_dict(),
                    'updated_at': self._updated_at.get(account_id, ''),
                }
                for account_id, config in self._configs.items()
            }
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise

    def list_accounts(self) -> list[str]:
        with self._lock:
            return sorted(self._configs)

    def has_account(self, account_id: str) -> bool:
        with self._lock:
            return account_id in self._configs

    def get_pricing(self, account_id: str) -> PricingConfiguration:
        """Current configuration for an account."""
        with self._lock:
            try:
                return self._configs[account_id]
            except KeyError:
                raise AccountNotFound(account_id) from None

    def provision_account(
        self,
        account_id: str,
        config: Optional[PricingConfiguration] = None,
    ) -> PricingConfiguration:
        """Create the configuration for a new account (defaults unless given)."""
        config = config or PricingConfiguration.default_for_account()
        validation = validate_pricing_configuration(config)
        if not validation.valid:
            raise ConfigurationError(validation.errors)

        with self._lock:
            if account_id in self._configs:
                raise ValueError(f"Account '{account_id}' already has pricing settings")
            self._configs[account_id] = config
            self._updated_at[account_id] = _now()
            self._write()

        logger.info("Provisioned pricing settings for account %s", account_id)
        return config

    def backfill_defaults(self, account_ids: Iterable[str]) -> list[str]:
        """Give default settings to every listed account that has none. Returns the ids created."""
        created = []
        with self._lock:
            for account_id in account_ids:
                if account_id in self._configs:
                    continue
                self._configs[account_id] = PricingConfiguration.default_for_account()
                self._updated_at[account_id] = _now()
                created.append(account_id)
            if created:
                self._write()

        logger.info("Backfill complete: %d new account settings created", len(created))
        return created

    def preview_update(self, account_id: str, updates: dict) -> tuple[PricingConfiguration, ValidationResult]:
        """Apply `updates` to a copy of the account's settings and validate it."""
        current = self.get_pricing(account_id)
        try:
            candidate = current.with_updates(updates)
        except (TypeError, ValueError, KeyError) as e:
            result = ValidationResult(valid=True)
            result.add_error(f"Invalid setting value: {e}")
            return current, result
        return candidate, validate_pricing_configuration(candidate)

    def update_pricing(self, account_id: str, updates: dict) -> PricingConfiguration:
        """
        Apply a full or partial update to an account's settings.

        Raises ConfigurationError if the result would be invalid; the stored
        configuration is left unchanged in that case.
        """
        with self._lock:
            try:
                current = self._configs[account_id]
            except KeyError:
                raise AccountNotFound(account_id) from None

            try:
                candidate = current.with_updates(updates)
            except (TypeError, ValueError, KeyError) as e:
                raise ConfigurationError(f"Invalid setting value: {e}") from e

            validation = validate_pricing_configuration(candidate)
            if not validation.valid:
                raise ConfigurationError(validation.errors)

            self._configs[account_id] = candidate
            self._updated_at[account_id] = _now()
            self._write()

        logger.info("Updated pricing settings for account %s (%s)", account_id, ", ".join(sorted(updates)))
        return candidate

    def get_updated_at(self, account_id: str) -> Optional[str]:
        with self._lock:
            return self._updated_at.get(account_id)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
