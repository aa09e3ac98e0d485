"""
Quote Store - CRUD operations for issued quotes.

Quotes are kept in a CSV file, one row per quote. Nested snapshot values
(tier schedule, add-ons, band breakdown) are stored as JSON text in their
columns. Pricing columns are written once at creation; only `status`
is ever rewritten.
"""
import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pandas as pd

from ..engine.errors import InvalidInputError, InvalidStatusTransition, QuoteNotFound
from ..engine.models import QUOTE_STATUSES, AddOn, BandResult, PricingTier, Quote
from .csv_files import append_row, read_rows, write_rows

logger = logging.getLogger(__name__)


CSV_COLUMNS = [
    'id', 'account_id', 'created_at', 'status',
    'area', 'area_source', 'primary_service', 'frequency', 'frequency_multiplier',
    'pricing_mode', 'area_price', 'base_fee', 'min_price_per_visit', 'min_price_applied',
    'base_price', 'add_ons', 'add_ons_total', 'price_per_visit', 'monthly_estimate',
    'tiers_snapshot', 'flat_rate_snapshot', 'breakdown',
    'customer_name', 'customer_email', 'customer_phone', 'property_address',
    'property_type', 'notes', 'operator_name', 'source', 'send_to_customer',
    'warnings',
]


def _opt_float(value: str) -> Optional[float]:
    return float(value) if value not in (None, '') else None


def _opt_str(value) -> str:
    return '' if value is None else str(value)


def quote_to_row(quote: Quote) -> dict:
    """Convert a quote to its CSV row."""
    return {
        'id': quote.id,
        'account_id': quote.account_id,
        'created_at': quote.created_at,
        'status': quote.status,
        'area': str(quote.area),
        'area_source': quote.area_source,
        'primary_service': quote.primary_service,
        'frequency': quote.frequency,
        'frequency_multiplier': str(quote.frequency_multiplier),
        'pricing_mode': quote.pricing_mode,
        'area_price': str(quote.area_price),
        'base_fee': str(quote.base_fee),
        'min_price_per_visit': str(quote.min_price_per_visit),
        'min_price_applied': 'true' if quote.min_price_applied else 'false',
        'base_price': str(quote.base_price),
        'add_ons': json.dumps([a.to_dict() for a in quote.add_ons]),
        'add_ons_total': str(quote.add_ons_total),
        'price_per_visit': str(quote.price_per_visit),
        'monthly_estimate': _opt_str(quote.monthly_estimate),
        'tiers_snapshot': json.dumps(quote.tiers_snapshot_dicts()) if quote.tiers_snapshot is not None else '',
        'flat_rate_snapshot': _opt_str(quote.flat_rate_snapshot),
        'breakdown': json.dumps([b.to_dict() for b in quote.breakdown]),
        'customer_name': _opt_str(quote.customer_name),
        'customer_email': _opt_str(quote.customer_email),
        'customer_phone': _opt_str(quote.customer_phone),
        'property_address': _opt_str(quote.property_address),
        'property_type': _opt_str(quote.property_type),
        'notes': _opt_str(quote.notes),
        'operator_name': _opt_str(quote.operator_name),
        'source': quote.source,
        'send_to_customer': 'true' if quote.send_to_customer else 'false',
        'warnings': json.dumps(quote.warnings),
    }


def quote_from_row(row: dict) -> Quote:
    """Create a Quote from a CSV row."""
    tiers = row.get('tiers_snapshot')
    return Quote(
        id=row['id'],
        account_id=row['account_id'],
        created_at=row.get('created_at') or None,
        status=row.get('status') or 'pending',
        area=float(row['area']),
        area_source=row['area_source'],
        primary_service=row['primary_service'],
        frequency=row['frequency'],
        frequency_multiplier=float(row.get('frequency_multiplier') or 1.0),
        pricing_mode=row['pricing_mode'],
        area_price=float(row['area_price']),
        base_fee=float(row.get('base_fee') or 0),
        min_price_per_visit=float(row.get('min_price_per_visit') or 0),
        min_price_applied=row.get('min_price_applied', 'false').lower() == 'true',
        base_price=float(row['base_price']),
        add_ons=[AddOn.from_dict(a) for a in json.loads(row.get('add_ons') or '[]')],
        add_ons_total=float(row['add_ons_total']),
        price_per_visit=float(row['price_per_visit']),
        monthly_estimate=_opt_float(row.get('monthly_estimate')),
        tiers_snapshot=tuple(PricingTier.from_dict(t) for t in json.loads(tiers)) if tiers else None,
        flat_rate_snapshot=_opt_float(row.get('flat_rate_snapshot')),
        breakdown=[BandResult.from_dict(b) for b in json.loads(row.get('breakdown') or '[]')],
        customer_name=row.get('customer_name') or None,
        customer_email=row.get('customer_email') or None,
        customer_phone=row.get('customer_phone') or None,
        property_address=row.get('property_address') or None,
        property_type=row.get('property_type') or None,
        notes=row.get('notes') or None,
        operator_name=row.get('operator_name') or None,
        source=row.get('source') or 'app',
        send_to_customer=row.get('send_to_customer', 'false').lower() == 'true',
        warnings=json.loads(row.get('warnings') or '[]'),
    )


class QuoteStore:
    """Service for storing quotes and moving them through the sales pipeline."""

    def __init__(self, quotes_csv_path: Path):
        self.quotes_csv_path = quotes_csv_path
        self._lock = threading.Lock()

    def _read_rows(self) -> list[dict]:
        return read_rows(self.quotes_csv_path)

    def _write_quotes(self, quotes: list[Quote]):
        """Write quotes back to CSV."""
        write_rows(self.quotes_csv_path, CSV_COLUMNS, [quote_to_row(q) for q in quotes])

    def list_quotes(self, account_id: Optional[str] = None, status: Optional[str] = None) -> list[Quote]:
        """List quotes, newest first, optionally filtered by account and status."""
        with self._lock:
            rows = self._read_rows()

        quotes = [quote_from_row(row) for row in rows]
        if account_id:
            quotes = [q for q in quotes if q.account_id == account_id]
        if status:
            quotes = [q for q in quotes if q.status == status]
        return sorted(quotes, key=lambda q: q.created_at or '', reverse=True)

    def get_quote(self, quote_id: str) -> Quote:
        with self._lock:
            rows = self._read_rows()
        for row in rows:
            if row['id'] == quote_id:
                return quote_from_row(row)
        raise QuoteNotFound(quote_id)

    def create_quote(self, quote: Quote) -> Quote:
        """Store a newly assembled quote. Assigns id and timestamp; status starts pending."""
        if quote.id is None:
            quote.id = uuid.uuid4().hex
        if quote.created_at is None:
            quote.created_at = datetime.now(timezone.utc).isoformat()
        quote.status = 'pending'

        with self._lock:
            append_row(self.quotes_csv_path, CSV_COLUMNS, quote_to_row(quote))

        logger.info("Quote %s saved for account %s (%s, $%.2f/visit)",
                    quote.id, quote.account_id, quote.pricing_mode, quote.price_per_visit)
        return quote

    def update_status(self, quote_id: str, status: str) -> Quote:
        """Move a quote along the pipeline: pending -> won | lost."""
        if status not in QUOTE_STATUSES:
            raise InvalidInputError(f"Invalid status '{status}'. Must be: {', '.join(QUOTE_STATUSES)}")

        with self._lock:
            quotes = [quote_from_row(row) for row in self._read_rows()]
            for quote in quotes:
                if quote.id == quote_id:
                    break
            else:
                raise QuoteNotFound(quote_id)

            if not quote.can_transition_to(status):
                raise InvalidStatusTransition(quote.status, status)

            previous = quote.status
            quote.status = status
            self._write_quotes(quotes)

        logger.info("Quote %s status updated: %s -> %s", quote_id, previous, status)
        return quote

    def get_stats(self, account_id: Optional[str] = None) -> dict:
        """Pipeline statistics: counts by status, revenue figures, quotes this month."""
        stats = {
            'total': 0,
            'by_status': {s: 0 for s in QUOTE_STATUSES},
            'pending_monthly_value': 0.0,
            'won_monthly_revenue': 0.0,
            'conversion_rate': None,
            'quotes_this_month': 0,
        }

        with self._lock:
            if not self.quotes_csv_path.exists() or self.quotes_csv_path.stat().st_size == 0:
                return stats
            df = pd.read_csv(self.quotes_csv_path, dtype={'id': str, 'account_id': str})

        if account_id:
            df = df[df['account_id'] == account_id]
        if df.empty:
            return stats

        counts = df['status'].value_counts()
        for status in QUOTE_STATUSES:
            stats['by_status'][status] = int(counts.get(status, 0))
        stats['total'] = int(len(df))

        monthly = pd.to_numeric(df['monthly_estimate'], errors='coerce').fillna(0.0)
        stats['pending_monthly_value'] = round(float(monthly[df['status'] == 'pending'].sum()), 2)
        stats['won_monthly_revenue'] = round(float(monthly[df['status'] == 'won'].sum()), 2)

        closed = stats['by_status']['won'] + stats['by_status']['lost']
        if closed:
            stats['conversion_rate'] = round(stats['by_status']['won'] / closed, 4)

        created = pd.to_datetime(df['created_at'], utc=True, errors='coerce')
        now = pd.Timestamp.now(tz='UTC')
        start_of_month = now.normalize().replace(day=1)
        stats['quotes_this_month'] = int(((created >= start_of_month) & (created <= now)).sum())

        return stats
