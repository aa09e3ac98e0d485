"""
Quote Service - the submission workflow.

read account pricing -> assemble quote -> store it -> notify collaborators
"""
import logging
from dataclasses import dataclass
from typing import Optional

from ..config.settings import Settings
from ..engine.models import Quote, QuoteRequest
from ..engine.quote_engine import QuoteEngine, reprice_from_snapshot
from .client_store import ClientStore
from .notifications import DeliveryReport, LoggingEmailSender, NotificationDispatcher, WebhookForwarder
from .quote_store import QuoteStore
from .settings_store import SettingsStore

logger = logging.getLogger(__name__)


class QuoteService:
    """Prices, stores and forwards quotes for accounts."""

    def __init__(
        self,
        settings_store: SettingsStore,
        quote_store: QuoteStore,
        dispatcher: Optional[NotificationDispatcher] = None,
        engine: Optional[QuoteEngine] = None,
        client_store: Optional[ClientStore] = None,
    ):
        self.settings_store = settings_store
        self.quote_store = quote_store
        self.client_store = client_store
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.engine = engine or QuoteEngine()

    def preview(self, request: QuoteRequest) -> Quote:
        """Price a request with the account's current settings without storing it."""
        config = self.settings_store.get_pricing(request.account_id)
        return self.engine.assemble(request, config)

    def submit(self, request: QuoteRequest) -> tuple[Quote, DeliveryReport]:
        """
        Price, store and forward a quote.

        Pricing or configuration errors propagate and nothing is stored.
        Delivery failures are only reported.
        """
        quote = self.preview(request)
        for warning in quote.warnings:
            logger.warning("Quote for account %s: %s", quote.account_id, warning)
        quote = self.quote_store.create_quote(quote)
        report = self.dispatcher.dispatch(quote)
        if report.errors:
            logger.warning("Quote %s saved with delivery problems: %s", quote.id, "; ".join(report.errors))
        return quote, report

    def update_status(self, quote_id: str, status: str) -> Quote:
        """Move a quote along the pipeline; a won quote becomes a client."""
        quote = self.quote_store.update_status(quote_id, status)
        if quote.status == 'won' and self.client_store is not None:
            self.client_store.create_from_quote(quote)
        return quote

    def audit(self, quote_id: str) -> dict:
        """Recompute a stored quote's area price from its snapshot and compare."""
        quote = self.quote_store.get_quote(quote_id)
        recomputed = reprice_from_snapshot(quote)
        return {
            'quote_id': quote.id,
            'pricing_mode': quote.pricing_mode,
            'stored_area_price': quote.area_price,
            'recomputed_area_price': recomputed.total_price,
            'matches': recomputed.total_price == quote.area_price,
        }


@dataclass
class Services:
    settings_store: SettingsStore
    quote_store: QuoteStore
    quote_service: QuoteService
    client_store: ClientStore


def build_services(settings: Settings) -> Services:
    """Wire stores and collaborators from settings."""
    settings_store = SettingsStore(settings.account_settings_file)
    quote_store = QuoteStore(settings.quotes_file)
    client_store = ClientStore(settings.clients_file)

    forwarder = None
    if settings.webhook_url:
        forwarder = WebhookForwarder(settings.webhook_url, timeout=settings.webhook_timeout)

    dispatcher = NotificationDispatcher(
        forwarder=forwarder,
        email_sender=LoggingEmailSender(),
        business_name=settings.business_name,
    )
    quote_service = QuoteService(settings_store, quote_store, dispatcher, client_store=client_store)
    return Services(
        settings_store=settings_store,
        quote_store=quote_store,
        quote_service=quote_service,
        client_store=client_store,
    )
