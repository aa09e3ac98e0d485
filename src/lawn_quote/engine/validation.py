"""
Pricing configuration validation.

`validate_pricing_configuration` is the full check run when an account
saves its settings. `check_engine_configuration` is the narrow check the
engine runs before pricing; it only rejects schedules that cannot yield a
trustworthy number.
"""
from dataclasses import dataclass, field

from .errors import ConfigurationError
from .models import FREQUENCIES, PricingConfiguration, PricingTier


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: str):
        self.errors.append(error)
        self.valid = False


def _sorted_for_validation(tiers) -> list[PricingTier]:
    return sorted(tiers, key=lambda t: (t.is_unbounded, t.up_to_area or 0.0))


def validate_tiers(tiers, result: ValidationResult = None) -> ValidationResult:
    """Validate a tier schedule; errors are numbered in ascending band order."""
    result = result or ValidationResult(valid=True)

    if not tiers:
        result.add_error("At least one pricing tier is required")
        return result

    previous_bound = 0.0
    unbounded_count = 0

    for i, tier in enumerate(_sorted_for_validation(tiers), start=1):
        if tier.rate_per_unit_area < 0:
            result.add_error(f"Tier {i}: Rate must not be negative")
        elif tier.rate_per_unit_area == 0:
            result.warnings.append(f"Tier {i}: Rate is zero, area in this band is free")

        if tier.is_unbounded:
            unbounded_count += 1
            continue

        if tier.up_to_area <= 0:
            result.add_error(f"Tier {i}: Upper limit must be greater than 0")
        elif tier.up_to_area <= previous_bound:
            result.add_error(
                f"Tier {i}: Upper limit must be greater than previous tier ({previous_bound:g})"
            )
        previous_bound = max(previous_bound, tier.up_to_area)

    if unbounded_count > 1:
        result.add_error("Only one tier can have no upper limit")
    elif unbounded_count == 0:
        result.add_error(
            f"Last tier must have no upper limit; area above {previous_bound:g} would not be billed"
        )

    return result


def validate_pricing_configuration(config: PricingConfiguration) -> ValidationResult:
    """Validate a full account configuration before it is stored."""
    result = ValidationResult(valid=True)

    if config.use_tiered_pricing:
        validate_tiers(config.tiers, result)
    elif config.tiers:
        # Kept for when tiered pricing is switched back on
        nested = validate_tiers(config.tiers)
        result.warnings.extend(f"Inactive tiers: {e}" for e in nested.errors)

    if config.flat_rate_per_unit_area < 0:
        result.add_error("Flat rate must not be negative")
    if config.min_price_per_visit < 0:
        result.add_error("Minimum price per visit must not be negative")
    if config.base_fee < 0:
        result.add_error("Base fee must not be negative")

    seen_ids = set()
    for add_on in config.add_ons:
        if add_on.id in seen_ids:
            result.add_error(f"Add-on '{add_on.id}' is defined more than once")
        seen_ids.add(add_on.id)
        if add_on.price_per_visit < 0:
            result.add_error(f"Add-on '{add_on.id}': Price must not be negative")

    for frequency, multiplier in config.frequency_multipliers.items():
        if multiplier <= 0:
            result.add_error(f"Frequency '{frequency}': Multiplier must be greater than 0")
        if frequency not in FREQUENCIES:
            result.warnings.append(f"Frequency '{frequency}' is not offered and will be ignored")

    return result


def check_engine_configuration(config: PricingConfiguration):
    """
    Raise ConfigurationError if the configuration cannot be priced.

    Tiered mode: empty tier list, a negative rate, or more than one
    unbounded tier. Flat mode: a negative flat rate.
    """
    errors = []
    if config.use_tiered_pricing:
        if not config.tiers:
            errors.append("Tiered pricing is enabled but no pricing tiers are configured")
        if any(t.rate_per_unit_area < 0 for t in config.tiers):
            errors.append("A pricing tier has a negative rate")
        if sum(1 for t in config.tiers if t.is_unbounded) > 1:
            errors.append("More than one pricing tier has no upper limit")
    elif config.flat_rate_per_unit_area < 0:
        errors.append("Flat rate must not be negative")

    if errors:
        raise ConfigurationError(errors)
