"""
Client Store - recurring customers created from won quotes.

One CSV row per client. A quote becomes at most one client: creating a
client for a quote that already has one returns the existing record.
"""
import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pandas as pd

from ..engine.errors import ClientNotFound
from ..engine.models import Client, Quote
from .csv_files import append_row, read_rows, write_rows

logger = logging.getLogger(__name__)


CSV_COLUMNS = [
    'id', 'account_id', 'source_quote_id', 'created_at', 'updated_at', 'is_active',
    'customer_name', 'customer_email', 'customer_phone',
    'property_address', 'property_type', 'area',
    'primary_service', 'add_on_ids', 'frequency',
    'price_per_visit', 'estimated_monthly_revenue',
]


def _opt_float(value) -> Optional[float]:
    return float(value) if value not in (None, '') else None


def _opt_str(value) -> str:
    return '' if value is None else str(value)


def client_to_row(client: Client) -> dict:
    return {
        'id': client.id,
        'account_id': client.account_id,
        'source_quote_id': _opt_str(client.source_quote_id),
        'created_at': _opt_str(client.created_at),
        'updated_at': _opt_str(client.updated_at),
        'is_active': 'true' if client.is_active else 'false',
        'customer_name': _opt_str(client.customer_name),
        'customer_email': _opt_str(client.customer_email),
        'customer_phone': _opt_str(client.customer_phone),
        'property_address': _opt_str(client.property_address),
        'property_type': _opt_str(client.property_type),
        'area': _opt_str(client.area),
        'primary_service': _opt_str(client.primary_service),
        'add_on_ids': json.dumps(client.add_on_ids),
        'frequency': _opt_str(client.frequency),
        'price_per_visit': _opt_str(client.price_per_visit),
        'estimated_monthly_revenue': _opt_str(client.estimated_monthly_revenue),
    }


def client_from_row(row: dict) -> Client:
    return Client(
        id=row['id'],
        account_id=row['account_id'],
        source_quote_id=row.get('source_quote_id') or None,
        created_at=row.get('created_at') or None,
        updated_at=row.get('updated_at') or None,
        is_active=row.get('is_active', 'true').lower() == 'true',
        customer_name=row.get('customer_name') or None,
        customer_email=row.get('customer_email') or None,
        customer_phone=row.get('customer_phone') or None,
        property_address=row.get('property_address') or None,
        property_type=row.get('property_type') or None,
        area=_opt_float(row.get('area')),
        primary_service=row.get('primary_service') or None,
        add_on_ids=json.loads(row.get('add_on_ids') or '[]'),
        frequency=row.get('frequency') or None,
        price_per_visit=_opt_float(row.get('price_per_visit')),
        estimated_monthly_revenue=_opt_float(row.get('estimated_monthly_revenue')),
    )


class ClientStore:
    """Service for the clients won through the quote pipeline."""

    def __init__(self, clients_csv_path: Path):
        self.clients_csv_path = clients_csv_path
        self._lock = threading.Lock()

    def _read_clients(self) -> list[Client]:
        return [client_from_row(row) for row in read_rows(self.clients_csv_path)]

    def list_clients(self, account_id: Optional[str] = None, active_only: bool = True) -> list[Client]:
        """Clients newest first; inactive ones only when `active_only` is False."""
        with self._lock:
            clients = self._read_clients()

        if account_id:
            clients = [c for c in clients if c.account_id == account_id]
        if active_only:
            clients = [c for c in clients if c.is_active]
        return sorted(clients, key=lambda c: c.created_at or '', reverse=True)

    def get_client(self, client_id: str) -> Client:
        with self._lock:
            clients = self._read_clients()
        for client in clients:
            if client.id == client_id:
                return client
        raise ClientNotFound(client_id)

    def find_by_quote(self, quote_id: str) -> Optional[Client]:
        with self._lock:
            clients = self._read_clients()
        for client in clients:
            if client.source_quote_id == quote_id:
                return client
        return None

    def create_from_quote(self, quote: Quote) -> Client:
        """Create the client for a won quote, or return the one already created for it."""
        with self._lock:
            for existing in self._read_clients():
                if quote.id and existing.source_quote_id == quote.id:
                    logger.info("Client %s already exists for quote %s", existing.id, quote.id)
                    return existing

            client = Client.from_quote(quote)
            client.id = uuid.uuid4().hex
            client.created_at = client.updated_at = datetime.now(timezone.utc).isoformat()
            append_row(self.clients_csv_path, CSV_COLUMNS, client_to_row(client))

        logger.info("Client %s created for account %s from quote %s", client.id, client.account_id, quote.id)
        return client

    def set_active(self, client_id: str, active: bool) -> Client:
        """Deactivate a client who stopped service, or reactivate them."""
        with self._lock:
            clients = self._read_clients()
            for client in clients:
                if client.id == client_id:
                    break
            else:
                raise ClientNotFound(client_id)

            client.is_active = active
            client.updated_at = datetime.now(timezone.utc).isoformat()
            write_rows(self.clients_csv_path, CSV_COLUMNS, [client_to_row(c) for c in clients])

        logger.info("Client %s is now %s", client_id, 'active' if active else 'inactive')
        return client

    def get_stats(self, account_id: Optional[str] = None) -> dict:
        """Active client count and their estimated monthly revenue."""
        stats = {'active_clients': 0, 'monthly_revenue': 0.0}

        with self._lock:
            if not self.clients_csv_path.exists() or self.clients_csv_path.stat().st_size == 0:
                return stats
            df = pd.read_csv(self.clients_csv_path, dtype={'id': str, 'account_id': str, 'is_active': str})

        if account_id:
            df = df[df['account_id'] == account_id]
        active = df[df['is_active'].str.lower() == 'true']
        if active.empty:
            return stats

        revenue = pd.to_numeric(active['estimated_monthly_revenue'], errors='coerce').fillna(0.0)
        stats['active_clients'] = int(len(active))
        stats['monthly_revenue'] = round(float(revenue.sum()), 2)
        return stats
