"""
Shared service instances for the API.

Built on first use from the environment settings; tests replace
`get_services` through FastAPI dependency overrides.
"""
from typing import Optional

from ..config.settings import configure_logging, get_settings
from ..services.quote_service import Services, build_services

_services: Optional[Services] = None


def get_services() -> Services:
    global _services
    if _services is None:
        settings = get_settings()
        configure_logging(settings)
        _services = build_services(settings)
    return _services
