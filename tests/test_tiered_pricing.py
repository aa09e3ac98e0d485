"""
Tests for tiered area pricing.

Covers the worked examples, edge cases for malformed input and tier
schedules, and the properties the band calculation must keep.
"""
import math

import pytest

from lawn_quote.engine.errors import ConfigurationError
from lawn_quote.engine.models import DEFAULT_PRICING_TIERS, PricingConfiguration, PricingTier
from lawn_quote.engine.tiered_pricing import (
    PRICING_MODE_FLAT,
    PRICING_MODE_TIERED,
    band_label,
    compare_pricing,
    compute_flat_price,
    compute_tiered_price,
    price_area,
    sort_tiers,
)


@pytest.fixture
def tiers():
    return DEFAULT_PRICING_TIERS


class TestWorkedExamples:
    """Reference prices for the default schedule."""

    def test_single_band(self, tiers):
        result = compute_tiered_price(2500, tiers)
        assert result.total_price == 30.00
        assert len(result.breakdown) == 1
        band = result.breakdown[0]
        assert band.range_start == 0
        assert band.range_end == 5000
        assert band.area_in_band == 2500
        assert band.rate == 0.012
        assert band.price == 30.0

    def test_two_bands(self, tiers):
        result = compute_tiered_price(10000, tiers)
        assert result.total_price == 100.00
        assert [(b.range_start, b.range_end, b.area_in_band, b.price) for b in result.breakdown] == [
            (0, 5000, 5000, 60.0),
            (5000, 20000, 5000, 40.0),
        ]

    def test_three_bands(self, tiers):
        result = compute_tiered_price(25000, tiers)
        assert result.total_price == 205.00
        assert [b.price for b in result.breakdown] == [60.0, 120.0, 25.0]
        last = result.breakdown[-1]
        assert last.range_start == 20000
        assert last.range_end is None, "Unbounded band should have no end"
        assert last.area_in_band == 5000

    def test_large_area(self, tiers):
        result = compute_tiered_price(40000, tiers)
        assert result.total_price == 280.00
        assert result.breakdown[-1].area_in_band == 20000

    def test_band_labels(self, tiers):
        result = compute_tiered_price(25000, tiers)
        assert [b.label for b in result.breakdown] == [
            "0-5,000 sq ft",
            "5,000-20,000 sq ft",
            "20,000+ sq ft",
        ]

    def test_effective_rate(self, tiers):
        result = compute_tiered_price(10000, tiers)
        assert result.effective_rate == pytest.approx(0.01)
        assert result.billed_area == 10000


class TestMalformedArea:
    @pytest.mark.parametrize("area", [0, -100, None, float('nan'), float('inf'), "lots", True])
    def test_unusable_area_prices_to_zero(self, tiers, area):
        result = compute_tiered_price(area, tiers)
        assert result.total_price == 0.0, f"Area {area!r} should price to 0"
        assert result.breakdown == []

    def test_numeric_string_area(self, tiers):
        assert compute_tiered_price("2500", tiers).total_price == 30.00

    def test_zero_area_with_empty_tiers(self):
        assert compute_tiered_price(0, []).total_price == 0.0

    def test_positive_area_with_empty_tiers_raises(self):
        with pytest.raises(ConfigurationError):
            compute_tiered_price(100, [])


class TestTierSchedules:
    def test_unsorted_input_matches_sorted(self, tiers):
        shuffled = [tiers[2], tiers[0], tiers[1]]
        assert compute_tiered_price(25000, shuffled) == compute_tiered_price(25000, tiers)

    def test_dict_tiers(self):
        tiers = [
            {'up_to_area': 5000, 'rate_per_unit_area': 0.012},
            {'up_to_area': None, 'rate_per_unit_area': 0.005},
        ]
        assert compute_tiered_price(6000, tiers).total_price == 65.00

    def test_older_sqft_keys(self):
        tiers = [
            {'up_to_sqft': 5000, 'rate_per_sqft': 0.012},
            {'up_to_sqft': None, 'rate_per_sqft': 0.005},
        ]
        assert compute_tiered_price(6000, tiers).total_price == 65.00

    def test_no_unbounded_tier_stops_billing(self):
        tiers = [PricingTier(5000, 0.012), PricingTier(20000, 0.008)]
        result = compute_tiered_price(25000, tiers)
        assert result.total_price == 180.00, "Area past the last bound is not billed"
        assert result.billed_area == 20000

    def test_multiple_unbounded_uses_first(self):
        tiers = [PricingTier(5000, 0.012), PricingTier(None, 0.005), PricingTier(None, 0.009)]
        result = compute_tiered_price(10000, tiers)
        assert result.total_price == 85.00
        assert len(result.breakdown) == 2

    def test_single_unbounded_tier_matches_flat(self):
        for area in (1, 999.5, 8000, 123456):
            tiered = compute_tiered_price(area, [PricingTier(None, 0.1)])
            flat = compute_flat_price(area, 0.1)
            assert tiered.total_price == flat.total_price, f"Mismatch at {area}"
            assert tiered.breakdown == flat.breakdown

    def test_sort_tiers_puts_unbounded_last(self):
        ordered = sort_tiers([PricingTier(None, 0.005), PricingTier(20000, 0.008), PricingTier(5000, 0.012)])
        assert [t.up_to_area for t in ordered] == [5000, 20000, None]


class TestProperties:
    @pytest.mark.parametrize("area", [1, 4999, 5000, 5001, 12345.5, 20000, 20001, 250000])
    def test_bands_partition_area(self, tiers, area):
        result = compute_tiered_price(area, tiers)
        assert math.isclose(sum(b.area_in_band for b in result.breakdown), area)
        assert result.breakdown[0].range_start == 0
        for previous, band in zip(result.breakdown, result.breakdown[1:]):
            assert band.range_start == previous.range_end, "Bands must be contiguous"

    def test_total_is_sum_of_bands(self, tiers):
        result = compute_tiered_price(33333, tiers)
        assert result.total_price == pytest.approx(sum(b.price for b in result.breakdown), abs=0.005)

    def test_monotonic(self, tiers):
        previous = 0.0
        for area in range(0, 50001, 250):
            price = compute_tiered_price(area, tiers).total_price
            assert price >= previous, f"Price dropped at {area}"
            previous = price

    def test_repeatable(self, tiers):
        assert compute_tiered_price(17250, tiers) == compute_tiered_price(17250, tiers)

    def test_rounds_half_up(self):
        assert compute_tiered_price(1, [PricingTier(None, 0.125)]).total_price == 0.13
        assert compute_flat_price(1, 0.125).total_price == 0.13

    def test_rounds_total_once(self):
        # Each band is half a cent; rounding per band would give 0.02
        tiers = [PricingTier(1, 0.005), PricingTier(None, 0.005)]
        result = compute_tiered_price(2, tiers)
        assert result.total_price == 0.01
        assert [b.price for b in result.breakdown] == [0.005, 0.005]


class TestFlatPricing:
    def test_flat_price(self):
        result = compute_flat_price(8000, 0.10)
        assert result.total_price == 800.00
        assert len(result.breakdown) == 1
        assert result.breakdown[0].label == "0+ sq ft"

    def test_flat_zero_area(self):
        assert compute_flat_price(None, 0.10).total_price == 0.0


class TestPriceArea:
    def test_tiered_mode(self):
        mode, result = price_area(10000, PricingConfiguration())
        assert mode == PRICING_MODE_TIERED
        assert result.total_price == 100.00

    def test_flat_mode(self):
        config = PricingConfiguration(use_tiered_pricing=False, flat_rate_per_unit_area=0.02)
        mode, result = price_area(10000, config)
        assert mode == PRICING_MODE_FLAT
        assert result.total_price == 200.00

    def test_empty_tiers_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            price_area(10000, PricingConfiguration(tiers=()))
        assert exc_info.value.errors

    def test_multiple_unbounded_rejected(self):
        config = PricingConfiguration(tiers=(PricingTier(None, 0.01), PricingTier(None, 0.02)))
        with pytest.raises(ConfigurationError):
            price_area(10000, config)

    def test_negative_rate_rejected(self):
        config = PricingConfiguration(tiers=(PricingTier(5000, -0.01), PricingTier(None, 0.02)))
        with pytest.raises(ConfigurationError):
            price_area(100, config)

    def test_negative_flat_rate_rejected(self):
        config = PricingConfiguration(use_tiered_pricing=False, flat_rate_per_unit_area=-0.1)
        with pytest.raises(ConfigurationError):
            price_area(100, config)

    def test_flat_mode_ignores_broken_tiers(self):
        config = PricingConfiguration(use_tiered_pricing=False, tiers=())
        mode, result = price_area(1000, config)
        assert mode == PRICING_MODE_FLAT
        assert result.total_price == 100.00


def test_compare_pricing(tiers):
    comparison = compare_pricing(10000, tiers, 0.012)
    assert comparison == {
        'tiered_price': 100.00,
        'flat_price': 120.00,
        'savings': 20.00,
        'savings_percent': 16.7,
    }


def test_compare_pricing_zero_area(tiers):
    comparison = compare_pricing(0, tiers, 0.012)
    assert comparison['savings'] == 0.0
    assert comparison['savings_percent'] == 0.0


def test_band_label_formats():
    assert band_label(0.0, 5000.0) == "0-5,000 sq ft"
    assert band_label(20000.0, None) == "20,000+ sq ft"


class TestNegativeRates:
    """A negative rate is a configuration problem, never a price."""

    def test_tiered_negative_rate_raises(self):
        tiers = [PricingTier(5000, 0.012), PricingTier(None, -0.01)]
        with pytest.raises(ConfigurationError) as exc_info:
            compute_tiered_price(25000, tiers)
        assert exc_info.value.errors == ["A pricing tier has a negative rate"]

    def test_tiered_negative_rate_raises_for_zero_area(self):
        with pytest.raises(ConfigurationError):
            compute_tiered_price(0, [PricingTier(None, -0.01)])

    def test_negative_rate_in_dict_tiers(self):
        with pytest.raises(ConfigurationError):
            compute_tiered_price(100, [{'up_to_area': None, 'rate_per_unit_area': -1}])

    def test_flat_negative_rate_raises(self):
        with pytest.raises(ConfigurationError):
            compute_flat_price(8000, -0.1)

    def test_compare_rejects_negative_tier(self):
        with pytest.raises(ConfigurationError):
            compare_pricing(25000, [PricingTier(5000, 0.012), PricingTier(None, -0.01)], 0.01)

    def test_compare_rejects_negative_flat_rate(self, tiers):
        with pytest.raises(ConfigurationError):
            compare_pricing(25000, tiers, -0.01)

    def test_compare_rejects_empty_tiers(self):
        with pytest.raises(ConfigurationError):
            compare_pricing(25000, [], 0.01)
