"""
Centralized settings and path configuration for the quote service.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Storage
    data_dir: Path
    account_settings_file: Path
    quotes_file: Path
    clients_file: Path

    # Lead forwarding (empty URL disables the webhook)
    webhook_url: Optional[str] = None
    webhook_timeout: float = 10.0

    # Email branding
    business_name: str = "Lawn Care"

    log_level: str = "INFO"

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> 'Settings':
        """Load settings from the environment, falling back to the project layout."""
        env_dir = os.getenv('LAWN_QUOTE_DATA_DIR')
        root = data_dir or (Path(env_dir) if env_dir else get_project_root() / 'data')

        return cls(
            data_dir=root,
            account_settings_file=root / 'account_settings.json',
            quotes_file=root / 'quotes.csv',
            clients_file=root / 'clients.csv',
            webhook_url=os.getenv('LAWN_QUOTE_WEBHOOK_URL') or None,
            webhook_timeout=float(os.getenv('LAWN_QUOTE_WEBHOOK_TIMEOUT', '10')),
            business_name=os.getenv('LAWN_QUOTE_BUSINESS_NAME', 'Lawn Care'),
            log_level=os.getenv('LAWN_QUOTE_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def configure_logging(settings: Optional[Settings] = None):
    """Basic stderr logging at the configured level."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
