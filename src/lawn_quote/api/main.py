from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..engine.area import estimated_area, make_measurement
from ..engine.errors import (
    AccountNotFound,
    ConfigurationError,
    InvalidInputError,
    InvalidStatusTransition,
    QuoteNotFound,
)
from ..engine.models import DEFAULT_PRICING_TIERS, QuoteRequest
from ..engine.tiered_pricing import compare_pricing, price_area
from ..services.quote_service import Services
from .clients_api import router as clients_router
from .settings_api import TierModel
from .settings_api import router as settings_router
from .state import get_services


app = FastAPI(
    title="Lawn Quote API",
    description="Tiered lawn-care pricing and quote pipeline",
    version="1.0.0"
)

# Enable CORS for the quoting widget and field tool
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include account settings and clients APIs
app.include_router(settings_router)
app.include_router(clients_router)


class AreaPriceRequest(BaseModel):
    account_id: str
    area: Optional[float] = None


class CompareRequest(BaseModel):
    area: Optional[float] = None
    tiers: Optional[list[TierModel]] = None
    flat_rate: float


class QuoteCreate(BaseModel):
    account_id: str
    primary_service: str
    frequency: str
    area: Optional[float] = None
    area_source: str = "measured"
    add_on_ids: list[str] = []
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    property_address: Optional[str] = None
    property_type: Optional[str] = None
    notes: Optional[str] = None
    operator_name: Optional[str] = None
    source: str = "app"
    send_to_customer: bool = False


class StatusUpdate(BaseModel):
    status: str


def _quote_request(body: QuoteCreate) -> QuoteRequest:
    if body.area is None and body.area_source == "estimated":
        measurement = estimated_area(body.property_type)
    else:
        measurement = make_measurement(body.area, body.area_source)

    return QuoteRequest(
        account_id=body.account_id,
        measurement=measurement,
        primary_service=body.primary_service,
        frequency=body.frequency,
        selected_add_on_ids=list(body.add_on_ids),
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        customer_phone=body.customer_phone,
        property_address=body.property_address,
        property_type=body.property_type,
        notes=body.notes,
        operator_name=body.operator_name,
        source=body.source,
        send_to_customer=body.send_to_customer,
    )


def _pricing_error(e: Exception) -> HTTPException:
    """Map engine and store errors to HTTP errors."""
    if isinstance(e, (AccountNotFound, QuoteNotFound)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=409, detail={"errors": e.errors})
    if isinstance(e, InvalidStatusTransition):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


_HANDLED = (AccountNotFound, QuoteNotFound, ConfigurationError, InvalidStatusTransition, InvalidInputError)


@app.get("/")
async def root():
    return {"status": "online", "message": "Lawn Quote API Active"}


@app.post("/pricing/area")
async def price_area_for_account(req: AreaPriceRequest, services: Services = Depends(get_services)):
    """Area price and band breakdown with an account's current settings."""
    try:
        config = services.settings_store.get_pricing(req.account_id)
        mode, result = price_area(req.area, config)
    except _HANDLED as e:
        raise _pricing_error(e)
    return {
        "pricing_mode": mode,
        "total_price": result.total_price,
        "effective_rate": result.effective_rate,
        "breakdown": jsonable_encoder(result.breakdown),
    }


@app.post("/pricing/compare")
async def compare(req: CompareRequest):
    """Tiered vs flat price for an area."""
    tiers = DEFAULT_PRICING_TIERS if req.tiers is None else [t.model_dump() for t in req.tiers]
    try:
        return compare_pricing(req.area, tiers, req.flat_rate)
    except ConfigurationError as e:
        raise _pricing_error(e)


@app.post("/quotes/preview")
async def preview_quote(body: QuoteCreate, services: Services = Depends(get_services)):
    try:
        quote = services.quote_service.preview(_quote_request(body))
    except _HANDLED as e:
        raise _pricing_error(e)
    return jsonable_encoder(quote)


@app.post("/quotes", status_code=201)
async def submit_quote(body: QuoteCreate, services: Services = Depends(get_services)):
    try:
        quote, report = services.quote_service.submit(_quote_request(body))
    except _HANDLED as e:
        raise _pricing_error(e)
    return {"quote": jsonable_encoder(quote), "delivery": jsonable_encoder(report)}


@app.get("/quotes")
async def list_quotes(
    account_id: Optional[str] = None,
    status: Optional[str] = None,
    services: Services = Depends(get_services),
):
    quotes = services.quote_store.list_quotes(account_id=account_id, status=status)
    return jsonable_encoder(quotes)


@app.get("/quotes/stats")
async def quote_stats(account_id: Optional[str] = None, services: Services = Depends(get_services)):
    return services.quote_store.get_stats(account_id)


@app.get("/quotes/{quote_id}")
async def get_quote(quote_id: str, services: Services = Depends(get_services)):
    try:
        return jsonable_encoder(services.quote_store.get_quote(quote_id))
    except QuoteNotFound as e:
        raise _pricing_error(e)


@app.get("/quotes/{quote_id}/audit")
async def audit_quote(quote_id: str, services: Services = Depends(get_services)):
    """Check that a stored quote still reprices to its recorded area price."""
    try:
        return services.quote_service.audit(quote_id)
    except _HANDLED as e:
        raise _pricing_error(e)


@app.patch("/quotes/{quote_id}/status")
async def update_quote_status(quote_id: str, body: StatusUpdate, services: Services = Depends(get_services)):
    try:
        quote = services.quote_service.update_status(quote_id, body.status)
    except _HANDLED as e:
        raise _pricing_error(e)
    return jsonable_encoder(quote)
