"""Engine subpackage - tiered area pricing and quote assembly."""
from .errors import ClientNotFound, ConfigurationError, InvalidInputError, InvalidStatusTransition
from .models import (
    DEFAULT_ADD_ONS,
    DEFAULT_PRICING_TIERS,
    AddOn,
    AreaMeasurement,
    AreaPriceResult,
    BandResult,
    Client,
    PricingConfiguration,
    PricingTier,
    Quote,
    QuoteRequest,
)
from .quote_engine import QuoteEngine, reprice_from_snapshot
from .tiered_pricing import compute_flat_price, compute_tiered_price, price_area

__all__ = [
    'ClientNotFound', 'ConfigurationError', 'InvalidInputError', 'InvalidStatusTransition',
    'DEFAULT_ADD_ONS', 'DEFAULT_PRICING_TIERS', 'AddOn', 'AreaMeasurement', 'AreaPriceResult',
    'BandResult', 'Client', 'PricingConfiguration', 'PricingTier', 'Quote', 'QuoteRequest',
    'QuoteEngine', 'reprice_from_snapshot',
    'compute_flat_price', 'compute_tiered_price', 'price_area',
]
