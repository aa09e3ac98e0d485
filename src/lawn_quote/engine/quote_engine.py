"""
Quote Engine - assembles a priced quote from an area measurement and an
account's pricing configuration.

Pricing order:
1. Area price from the tier schedule (or flat rate)
2. Add the base visit fee
3. Apply the minimum price per visit (floor covers the bare service only)
4. Add selected, enabled add-ons
5. Apply the frequency multiplier and round to cents
6. Project a monthly estimate from average visits per month

Each step is recorded on the quote's trace. The engine does not persist
anything; callers store the returned Quote.
"""
from decimal import Decimal
from typing import Optional

from .errors import InvalidInputError
from .models import (
    AREA_SOURCES,
    FREQUENCIES,
    VISITS_PER_MONTH,
    AreaPriceResult,
    PricingConfiguration,
    Quote,
    QuoteRequest,
)
from .tiered_pricing import (
    PRICING_MODE_TIERED,
    coerce_area,
    compute_flat_price,
    compute_tiered_price,
    price_area,
    round_currency,
    to_decimal,
)


class QuoteEngine:
    """
    Stateless quote assembler.

    `visits_per_month` can be overridden for markets that bill on a
    different calendar; it defaults to VISITS_PER_MONTH.
    """

    def __init__(self, visits_per_month: Optional[dict] = None):
        self.visits_per_month = dict(visits_per_month or VISITS_PER_MONTH)

    def assemble(self, request: QuoteRequest, config: PricingConfiguration) -> Quote:
        """
        Price a quote request.

        Raises:
            InvalidInputError: unknown frequency or area source.
            ConfigurationError: the account's tier schedule cannot be priced.
        """
        if request.frequency not in FREQUENCIES:
            raise InvalidInputError(
                f"Unknown frequency '{request.frequency}'; expected one of {', '.join(FREQUENCIES)}"
            )
        if request.measurement.source not in AREA_SOURCES:
            raise InvalidInputError(f"Unknown area source '{request.measurement.source}'")

        area = coerce_area(request.measurement.area)
        mode, area_result = price_area(area, config)

        trace = []
        trace.append(("Area", f"Pricing {area:,.0f} sq ft ({request.measurement.source})", None))
        for band in area_result.breakdown:
            trace.append((
                "Band",
                f"{band.area_in_band:,.0f} sq ft @ ${band.rate:.4f} ({band.label})",
                f"${band.price:.2f}",
            ))
        trace.append(("Area Price", f"{mode.capitalize()} pricing", f"${area_result.total_price:.2f}"))

        # Floor applies to area price + base fee, before add-ons
        service_price = to_decimal(area_result.total_price) + to_decimal(config.base_fee)
        if config.base_fee:
            trace.append(("Base Fee", "Base visit fee added", f"${config.base_fee:.2f}"))
        floor = to_decimal(config.min_price_per_visit)
        min_price_applied = service_price < floor
        base_price = max(service_price, floor)
        if min_price_applied:
            trace.append(("Minimum", f"Minimum price applied (min ${config.min_price_per_visit:.2f})",
                          f"${float(base_price):.2f}"))

        quote = Quote(
            account_id=request.account_id,
            area=area,
            area_source=request.measurement.source,
            primary_service=request.primary_service,
            frequency=request.frequency,
            pricing_mode=mode,
            area_price=area_result.total_price,
            base_price=float(base_price),
            add_ons_total=0.0,
            price_per_visit=0.0,
            monthly_estimate=None,
            base_fee=config.base_fee,
            min_price_per_visit=config.min_price_per_visit,
            min_price_applied=min_price_applied,
            breakdown=area_result.breakdown,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            property_address=request.property_address,
            property_type=request.property_type,
            notes=request.notes,
            operator_name=request.operator_name,
            source=request.source,
            send_to_customer=request.send_to_customer,
        )
        for step, desc, val in trace:
            quote.add_trace(step, desc, val)

        if mode == PRICING_MODE_TIERED:
            quote.tiers_snapshot = tuple(config.tiers)
        else:
            quote.flat_rate_snapshot = config.flat_rate_per_unit_area

        add_ons_total = Decimal(0)
        for add_on_id in request.selected_add_on_ids:
            add_on = config.get_add_on(add_on_id)
            if add_on is None:
                quote.add_warning(f"Add-on '{add_on_id}' is not offered by this account")
                continue
            if not add_on.enabled:
                quote.add_warning(f"Add-on '{add_on_id}' is disabled")
                continue
            add_ons_total += to_decimal(add_on.price_per_visit)
            quote.add_ons.append(add_on)
            quote.add_trace("Add-on", add_on.label, f"${add_on.price_per_visit:.2f}")
        quote.add_ons_total = float(add_ons_total)

        multiplier = config.frequency_multipliers.get(request.frequency)
        if multiplier is None:
            multiplier = 1.0
            quote.add_warning(f"No multiplier configured for '{request.frequency}', using 1.0")
        quote.frequency_multiplier = multiplier

        quote.price_per_visit = round_currency((base_price + add_ons_total) * to_decimal(multiplier))
        quote.add_trace("Per Visit", f"({float(base_price):.2f} + {float(add_ons_total):.2f}) x {multiplier:g}",
                        f"${quote.price_per_visit:.2f}")

        visits = self.visits_per_month.get(request.frequency)
        if visits is None:
            quote.add_trace("Monthly", "One-time service has no monthly estimate")
        else:
            quote.monthly_estimate = round_currency(to_decimal(quote.price_per_visit) * to_decimal(visits))
            quote.add_trace("Monthly", f"{quote.price_per_visit:.2f} x {visits:g} visits",
                            f"${quote.monthly_estimate:.2f}")

        return quote


def reprice_from_snapshot(quote: Quote) -> AreaPriceResult:
    """Recompute a stored quote's area price from its own snapshot, for audit."""
    if quote.pricing_mode == PRICING_MODE_TIERED:
        return compute_tiered_price(quote.area, quote.tiers_snapshot or ())
    return compute_flat_price(quote.area, quote.flat_rate_snapshot or 0.0)
