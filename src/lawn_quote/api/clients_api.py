"""
Clients API - FastAPI router for customers won through the quote pipeline.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from ..engine.errors import ClientNotFound
from ..services.quote_service import Services
from .state import get_services

router = APIRouter(prefix="/clients", tags=["clients"])


class ClientActiveUpdate(BaseModel):
    is_active: bool


@router.get("")
async def list_clients(
    account_id: Optional[str] = None,
    include_inactive: bool = False,
    services: Services = Depends(get_services),
):
    clients = services.client_store.list_clients(account_id=account_id, active_only=not include_inactive)
    return jsonable_encoder(clients)


@router.get("/stats")
async def client_stats(account_id: Optional[str] = None, services: Services = Depends(get_services)):
    """Active clients and their estimated monthly revenue."""
    return services.client_store.get_stats(account_id)


@router.get("/{client_id}")
async def get_client(client_id: str, services: Services = Depends(get_services)):
    try:
        return jsonable_encoder(services.client_store.get_client(client_id))
    except ClientNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{client_id}/active")
async def set_client_active(client_id: str, body: ClientActiveUpdate, services: Services = Depends(get_services)):
    try:
        client = services.client_store.set_active(client_id, body.is_active)
    except ClientNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return jsonable_encoder(client)
