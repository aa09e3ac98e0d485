"""
Tiered square-footage pricing.

Area is billed band by band, like tax brackets: the first band's span at
the first rate, the next span at the next rate, and so on until the whole
area is covered. Example for 25,000 sq ft with the default tiers:

    first  5,000 sq ft x $0.012 = $ 60.00
    next  15,000 sq ft x $0.008 = $120.00
    final  5,000 sq ft x $0.005 = $ 25.00
                          total = $205.00

Band products are computed with Decimal values built from each float's
shortest decimal form, so they are exact; the total is rounded once,
half-up, to cents. Nothing here keeps state between calls.
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .errors import ConfigurationError
from .models import AreaPriceResult, BandResult, PricingConfiguration, PricingTier
from .validation import check_engine_configuration

CENT = Decimal('0.01')

PRICING_MODE_TIERED = 'tiered'
PRICING_MODE_FLAT = 'flat'


def to_decimal(value) -> Decimal:
    """Exact Decimal for a float, via its shortest decimal form."""
    return Decimal(str(value))


def coerce_area(total_area) -> float:
    """Normalize an area input: missing, non-numeric, non-finite or negative -> 0."""
    if total_area is None or isinstance(total_area, bool):
        return 0.0
    try:
        area = float(total_area)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(area) or area <= 0:
        return 0.0
    return area


def round_currency(value) -> float:
    """Round to cents, half-up."""
    if not isinstance(value, Decimal):
        value = to_decimal(value)
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def sort_tiers(tiers) -> list[PricingTier]:
    """Ascending by upper bound; unbounded tiers always last, in input order."""
    normalized = [t if isinstance(t, PricingTier) else PricingTier.from_dict(t) for t in tiers]
    return sorted(normalized, key=lambda t: (t.is_unbounded, t.up_to_area or 0.0))


def band_label(range_start: float, range_end: Optional[float]) -> str:
    if range_end is None:
        return f"{range_start:,.0f}+ sq ft"
    return f"{range_start:,.0f}-{range_end:,.0f} sq ft"


def compute_tiered_price(total_area, tiers) -> AreaPriceResult:
    """
    Price `total_area` against a banded tier schedule.

    Args:
        total_area: Area to price. Missing or non-positive values price to 0.
        tiers: PricingTier records (or their dict form), in any order.

    Returns:
        AreaPriceResult with the rounded total and one BandResult per band
        that received area.

    Raises:
        ConfigurationError: a tier has a negative rate, or positive area but
            no tiers to price it with.

    Area past the last bounded tier is not billed when no unbounded tier
    exists. Validation reports that schedule as invalid; it is not
    corrected here.
    """
    ordered = sort_tiers(tiers or ())
    if any(t.rate_per_unit_area < 0 for t in ordered):
        raise ConfigurationError("A pricing tier has a negative rate")

    area = coerce_area(total_area)
    if area <= 0:
        return AreaPriceResult(total_price=0.0, breakdown=[])

    if not ordered:
        raise ConfigurationError("Tiered pricing is enabled but no pricing tiers are configured")

    remaining = to_decimal(area)
    previous_boundary = Decimal(0)
    total = Decimal(0)
    breakdown = []

    for tier in ordered:
        rate = to_decimal(tier.rate_per_unit_area)
        if tier.is_unbounded:
            boundary = None
            billed = remaining
        else:
            boundary = to_decimal(tier.up_to_area)
            billed = min(remaining, boundary - previous_boundary)

        if billed > 0:
            price = billed * rate
            total += price
            range_start = float(previous_boundary)
            range_end = float(boundary) if boundary is not None else None
            breakdown.append(BandResult(
                range_start=range_start,
                range_end=range_end,
                area_in_band=float(billed),
                rate=float(tier.rate_per_unit_area),
                price=float(price),
                label=band_label(range_start, range_end),
            ))
            remaining -= billed

        if boundary is not None:
            previous_boundary = max(previous_boundary, boundary)

        if remaining <= 0:
            break

    return AreaPriceResult(total_price=round_currency(total), breakdown=breakdown)


def compute_flat_price(total_area, rate_per_unit_area) -> AreaPriceResult:
    """Single-rate pricing, returned in the same shape as tiered pricing."""
    if rate_per_unit_area < 0:
        raise ConfigurationError("Flat rate must not be negative")

    area = coerce_area(total_area)
    if area <= 0:
        return AreaPriceResult(total_price=0.0, breakdown=[])

    price = to_decimal(area) * to_decimal(rate_per_unit_area)
    band = BandResult(
        range_start=0.0,
        range_end=None,
        area_in_band=area,
        rate=float(rate_per_unit_area),
        price=float(price),
        label=band_label(0.0, None),
    )
    return AreaPriceResult(total_price=round_currency(price), breakdown=[band])


def price_area(total_area, config: PricingConfiguration) -> tuple[str, AreaPriceResult]:
    """
    Price an area with an account's configuration.

    Returns (pricing_mode, result). Raises ConfigurationError when the
    configuration cannot produce a trustworthy price.
    """
    check_engine_configuration(config)
    if config.use_tiered_pricing:
        return PRICING_MODE_TIERED, compute_tiered_price(total_area, config.tiers)
    return PRICING_MODE_FLAT, compute_flat_price(total_area, config.flat_rate_per_unit_area)


def compare_pricing(total_area, tiers, flat_rate) -> dict:
    """Tiered vs flat price for the same area, with the savings tiering gives."""
    tiered_price = compute_tiered_price(total_area, tiers).total_price
    flat_price = compute_flat_price(total_area, flat_rate).total_price
    savings = to_decimal(flat_price) - to_decimal(tiered_price)
    savings_percent = 0.0
    if flat_price > 0:
        savings_percent = float(
            (savings / to_decimal(flat_price) * 100).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
        )
    return {
        'tiered_price': tiered_price,
        'flat_price': flat_price,
        'savings': round_currency(savings),
        'savings_percent': savings_percent,
    }
