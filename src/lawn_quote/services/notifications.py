"""
Notifications - forwards saved quotes to the lead webhook and to the customer.

Delivery happens after a quote is stored. A failed delivery is logged and
reported back to the caller but never undoes or blocks the quote.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import httpx

from ..engine.models import Quote

logger = logging.getLogger(__name__)

FREQUENCY_LABELS = {
    'one_time': 'One-Time',
    'weekly': 'Weekly',
    'bi_weekly': 'Bi-Weekly',
    'monthly': 'Monthly',
}


class EmailDeliveryError(Exception):
    """Raised by an EmailSender when a message could not be handed off."""


def build_quote_payload(quote: Quote) -> dict:
    """
    Lead payload for the webhook.

    Quotes entered by an operator in the field tool are tagged
    mode="internal" and carry an operator block.
    """
    payload = {
        'mode': 'internal' if quote.operator_name else 'public',
        'source': quote.source,
        'account_id': quote.account_id,
        'quote_id': quote.id,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'property_type': quote.property_type,
        'primary_service': quote.primary_service,
        'add_ons': [{'id': a.id, 'label': a.label, 'price': a.price_per_visit} for a in quote.add_ons],
        'frequency': quote.frequency,
        'area_data': {
            'area': quote.area,
            'area_source': quote.area_source,
        },
        'pricing': {
            'pricing_mode': quote.pricing_mode,
            'area_price': quote.area_price,
            'base_price': quote.base_price,
            'add_ons_total': quote.add_ons_total,
            'price_per_visit': quote.price_per_visit,
            'monthly_estimate': quote.monthly_estimate,
            'tiers_snapshot': quote.tiers_snapshot_dicts(),
            'flat_rate_snapshot': quote.flat_rate_snapshot,
        },
        'lead': {
            'name': quote.customer_name,
            'email': quote.customer_email,
            'phone': quote.customer_phone,
            'address': quote.property_address,
            'notes': quote.notes,
        },
        'actions': {
            'send_customer_email': quote.send_to_customer,
        },
    }
    if quote.operator_name:
        payload['operator'] = {
            'name': quote.operator_name,
            'timestamp': quote.created_at,
        }
    return payload


class WebhookForwarder:
    """POSTs quote payloads as JSON to a configured URL."""

    def __init__(self, url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.url = url
        self.timeout = timeout
        self.client = client or httpx.Client(timeout=timeout)

    def forward(self, payload: dict) -> int:
        """Send the payload. Raises httpx.HTTPError on transport failure or non-2xx reply."""
        response = self.client.post(self.url, json=payload)
        response.raise_for_status()
        return response.status_code

    def close(self):
        self.client.close()


@dataclass
class QuoteEmail:
    to: str
    subject: str
    text_body: str


def render_quote_email(quote: Quote, business_name: str) -> QuoteEmail:
    """Plain-text quote summary for the customer."""
    name = quote.customer_name or "there"
    frequency = FREQUENCY_LABELS.get(quote.frequency, quote.frequency)

    lines = [
        f"Hello {name},",
        "",
        "Thank you for your interest in our lawn care services! "
        "Below is your quote based on your property details.",
        "",
    ]
    if quote.property_address:
        lines.append(f"Property: {quote.property_address}")
    lines.append(f"Lawn size: {quote.area:,.0f} sq ft ({quote.area_source})")
    lines.append(f"Service: {quote.primary_service}")
    lines.append("")
    lines.append(f"Base service: ${quote.base_price:.2f}")
    for add_on in quote.add_ons:
        lines.append(f"  + {add_on.label}: ${add_on.price_per_visit:.2f}")
    lines.append(f"Price per visit ({frequency}): ${quote.price_per_visit:.2f}")
    if quote.monthly_estimate is None:
        lines.append("Monthly estimate: not applicable for one-time service")
    else:
        lines.append(f"Estimated monthly total: ${quote.monthly_estimate:.2f}")
    lines.extend(["", f"{business_name}"])

    return QuoteEmail(
        to=quote.customer_email or '',
        subject=f"Your lawn care quote from {business_name}",
        text_body="\n".join(lines),
    )


class EmailSender:
    """Interface for the email transport."""

    def send(self, message: QuoteEmail):
        raise NotImplementedError


class LoggingEmailSender(EmailSender):
    """Development sender: writes the message to the log instead of sending it."""

    def __init__(self):
        self.sent: list[QuoteEmail] = []

    def send(self, message: QuoteEmail):
        logger.info("Email to %s: %s\n%s", message.to, message.subject, message.text_body)
        self.sent.append(message)


@dataclass
class DeliveryReport:
    """What happened to each notification channel for one quote."""
    webhook: str = 'skipped'  # "sent", "failed", "skipped"
    email: str = 'skipped'
    errors: list[str] = field(default_factory=list)


class NotificationDispatcher:
    """Sends a saved quote to every configured channel."""

    def __init__(
        self,
        forwarder: Optional[WebhookForwarder] = None,
        email_sender: Optional[EmailSender] = None,
        business_name: str = "Lawn Care",
    ):
        self.forwarder = forwarder
        self.email_sender = email_sender
        self.business_name = business_name

    def dispatch(self, quote: Quote) -> DeliveryReport:
        report = DeliveryReport()

        if self.forwarder is not None:
            try:
                self.forwarder.forward(build_quote_payload(quote))
                report.webhook = 'sent'
            except httpx.HTTPError as e:
                report.webhook = 'failed'
                report.errors.append(f"webhook: {e}")
                logger.warning("Webhook delivery failed for quote %s: %s", quote.id, e)

        if self.email_sender is not None and quote.send_to_customer:
            if not quote.customer_email:
                report.errors.append("email: no customer email address")
                logger.warning("Quote %s asked for a customer email but has no address", quote.id)
            else:
                try:
                    self.email_sender.send(render_quote_email(quote, self.business_name))
                    report.email = 'sent'
                except (EmailDeliveryError, OSError) as e:
                    report.email = 'failed'
                    report.errors.append(f"email: {e}")
                    logger.warning("Email delivery failed for quote %s: %s", quote.id, e)

        return report
