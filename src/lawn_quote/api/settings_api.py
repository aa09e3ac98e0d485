"""
Settings API - FastAPI router for account pricing configuration.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..engine.errors import AccountNotFound, ConfigurationError
from ..engine.models import PricingConfiguration
from ..services.quote_service import Services
from .state import get_services

router = APIRouter(prefix="/accounts", tags=["accounts"])


# Pydantic models for API
class TierModel(BaseModel):
    """One pricing band; `up_to_area` null means no upper limit."""
    up_to_area: Optional[float] = None
    rate_per_unit_area: float


class AddOnModel(BaseModel):
    id: str
    label: str
    price_per_visit: float
    enabled: bool = True


class PricingUpdate(BaseModel):
    """Request model for updating pricing; omitted fields are left unchanged."""
    use_tiered_pricing: Optional[bool] = None
    tiers: Optional[list[TierModel]] = None
    flat_rate_per_unit_area: Optional[float] = None
    min_price_per_visit: Optional[float] = None
    base_fee: Optional[float] = None
    add_ons: Optional[list[AddOnModel]] = None
    frequency_multipliers: Optional[dict[str, float]] = None


class PricingResponse(BaseModel):
    """Response model for an account's pricing."""
    account_id: str
    use_tiered_pricing: bool
    tiers: list[TierModel]
    flat_rate_per_unit_area: float
    min_price_per_visit: float
    base_fee: float
    add_ons: list[AddOnModel]
    frequency_multipliers: dict[str, float]
    updated_at: Optional[str] = None


class ValidationResponse(BaseModel):
    """Response model for validation."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def _pricing_response(account_id: str, config: PricingConfiguration, updated_at: Optional[str]) -> PricingResponse:
    return PricingResponse(account_id=account_id, updated_at=updated_at, **config.to_dict())


def _updates_from(body: PricingUpdate) -> dict:
    # Only fields present in the request body are applied
    return body.model_dump(exclude_unset=True)


# Endpoints

@router.post("/{account_id}", response_model=PricingResponse, status_code=201)
async def provision_account(account_id: str, services: Services = Depends(get_services)):
    """Create an account's pricing settings with the defaults."""
    try:
        config = services.settings_store.provision_account(account_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _pricing_response(account_id, config, services.settings_store.get_updated_at(account_id))


@router.get("/{account_id}/pricing", response_model=PricingResponse)
async def get_pricing(account_id: str, services: Services = Depends(get_services)):
    """Get an account's pricing settings."""
    try:
        config = services.settings_store.get_pricing(account_id)
    except AccountNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _pricing_response(account_id, config, services.settings_store.get_updated_at(account_id))


@router.put("/{account_id}/pricing", response_model=PricingResponse)
async def update_pricing(account_id: str, body: PricingUpdate, services: Services = Depends(get_services)):
    """Update an account's pricing settings (full or partial)."""
    try:
        config = services.settings_store.update_pricing(account_id, _updates_from(body))
    except AccountNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail={"errors": e.errors})
    return _pricing_response(account_id, config, services.settings_store.get_updated_at(account_id))


@router.post("/{account_id}/pricing/validate", response_model=ValidationResponse)
async def validate_pricing(account_id: str, body: PricingUpdate, services: Services = Depends(get_services)):
    """Validate a pricing update without saving."""
    try:
        _, result = services.settings_store.preview_update(account_id, _updates_from(body))
    except AccountNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ValidationResponse(valid=result.valid, errors=result.errors, warnings=result.warnings)
