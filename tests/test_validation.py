"""
Tests for pricing configuration validation.
"""
import pytest

from lawn_quote.engine.errors import ConfigurationError
from lawn_quote.engine.models import AddOn, PricingConfiguration, PricingTier
from lawn_quote.engine.validation import (
    ValidationResult,
    check_engine_configuration,
    validate_pricing_configuration,
    validate_tiers,
)


def test_default_configuration_is_valid():
    result = validate_pricing_configuration(PricingConfiguration.default_for_account())
    assert result.valid, f"Defaults should validate: {result.errors}"
    assert result.warnings == []


class TestTierValidation:
    def test_empty(self):
        result = validate_tiers([])
        assert not result.valid
        assert result.errors == ["At least one pricing tier is required"]

    def test_negative_rate(self):
        result = validate_tiers([PricingTier(5000, -0.01), PricingTier(None, 0.005)])
        assert not result.valid
        assert "Tier 1: Rate must not be negative" in result.errors

    def test_zero_rate_is_warning(self):
        result = validate_tiers([PricingTier(5000, 0.0), PricingTier(None, 0.005)])
        assert result.valid
        assert result.warnings == ["Tier 1: Rate is zero, area in this band is free"]

    def test_non_positive_bound(self):
        result = validate_tiers([PricingTier(0, 0.01), PricingTier(None, 0.005)])
        assert "Tier 1: Upper limit must be greater than 0" in result.errors

    def test_duplicate_bound(self):
        result = validate_tiers([PricingTier(5000, 0.012), PricingTier(5000, 0.008), PricingTier(None, 0.005)])
        assert not result.valid
        assert any(e.startswith("Tier 2: Upper limit must be greater than previous tier") for e in result.errors)

    def test_multiple_unbounded(self):
        result = validate_tiers([PricingTier(None, 0.01), PricingTier(None, 0.02)])
        assert "Only one tier can have no upper limit" in result.errors

    def test_missing_unbounded(self):
        result = validate_tiers([PricingTier(5000, 0.012), PricingTier(20000, 0.008)])
        assert not result.valid
        assert result.errors == [
            "Last tier must have no upper limit; area above 20000 would not be billed"
        ]

    def test_order_does_not_matter(self):
        result = validate_tiers([PricingTier(None, 0.005), PricingTier(20000, 0.008), PricingTier(5000, 0.012)])
        assert result.valid

    def test_appends_to_existing_result(self):
        existing = ValidationResult(valid=True, warnings=["earlier"])
        result = validate_tiers([], existing)
        assert result is existing
        assert result.warnings == ["earlier"]
        assert not result.valid


class TestConfigurationValidation:
    def test_inactive_tiers_only_warn(self):
        config = PricingConfiguration(use_tiered_pricing=False, tiers=(PricingTier(5000, 0.012),))
        result = validate_pricing_configuration(config)
        assert result.valid
        assert result.warnings and result.warnings[0].startswith("Inactive tiers:")

    def test_flat_mode_without_tiers(self):
        result = validate_pricing_configuration(PricingConfiguration(use_tiered_pricing=False, tiers=()))
        assert result.valid

    @pytest.mark.parametrize("field_name,message", [
        ('flat_rate_per_unit_area', "Flat rate must not be negative"),
        ('min_price_per_visit', "Minimum price per visit must not be negative"),
        ('base_fee', "Base fee must not be negative"),
    ])
    def test_negative_amounts(self, field_name, message):
        config = PricingConfiguration().with_updates({field_name: -1})
        result = validate_pricing_configuration(config)
        assert message in result.errors

    def test_duplicate_add_on(self):
        config = PricingConfiguration(add_ons=(AddOn('edging', 'Edging', 15), AddOn('edging', 'Edging', 20)))
        result = validate_pricing_configuration(config)
        assert "Add-on 'edging' is defined more than once" in result.errors

    def test_negative_add_on_price(self):
        config = PricingConfiguration(add_ons=(AddOn('edging', 'Edging', -5),))
        assert not validate_pricing_configuration(config).valid

    def test_non_positive_multiplier(self):
        config = PricingConfiguration(frequency_multipliers={'weekly': 0})
        result = validate_pricing_configuration(config)
        assert "Frequency 'weekly': Multiplier must be greater than 0" in result.errors

    def test_unknown_frequency_warns(self):
        config = PricingConfiguration(frequency_multipliers={'weekly': 0.85, 'daily': 0.5})
        result = validate_pricing_configuration(config)
        assert result.valid
        assert "Frequency 'daily' is not offered and will be ignored" in result.warnings


class TestEngineCheck:
    def test_default_passes(self):
        check_engine_configuration(PricingConfiguration())

    def test_missing_unbounded_is_not_an_engine_error(self):
        # Rejected when saved, but the engine can still price it
        check_engine_configuration(PricingConfiguration(tiers=(PricingTier(5000, 0.01),)))

    def test_collects_all_errors(self):
        config = PricingConfiguration(tiers=(PricingTier(None, -0.01), PricingTier(None, 0.02)))
        with pytest.raises(ConfigurationError) as exc_info:
            check_engine_configuration(config)
        assert len(exc_info.value.errors) == 2


def test_configuration_error_accepts_single_message():
    error = ConfigurationError("broken")
    assert error.errors == ["broken"]
    assert str(error) == "broken"


class TestConfigurationRecords:
    def test_string_boolean_rejected(self):
        with pytest.raises(ValueError):
            PricingConfiguration().with_updates({'use_tiered_pricing': 'false'})

    def test_add_on_string_enabled_rejected(self):
        with pytest.raises(ValueError):
            AddOn.from_dict({'id': 'edging', 'label': 'Edging', 'price_per_visit': 25, 'enabled': 'no'})

    def test_add_on_older_active_key(self):
        assert AddOn.from_dict({'id': 'edging', 'name': 'Edging', 'is_active': False}).enabled is False

    def test_multipliers_are_read_only(self):
        config = PricingConfiguration.default_for_account()
        with pytest.raises(TypeError):
            config.frequency_multipliers['weekly'] = 0.5
        assert config.frequency_multipliers['weekly'] == 0.85

    def test_multipliers_copied_from_caller(self):
        multipliers = {'weekly': 0.85}
        config = PricingConfiguration(frequency_multipliers=multipliers)
        multipliers['weekly'] = 0.1
        assert config.frequency_multipliers['weekly'] == 0.85

    def test_round_trip_keeps_multipliers(self):
        config = PricingConfiguration.default_for_account()
        assert PricingConfiguration.from_dict(config.to_dict()) == config
