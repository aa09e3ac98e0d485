"""
Data models for the lawn quote engine.

Uses dataclasses for structured, type-safe data representation. Pricing
configuration records are frozen so a stored configuration can be shared
between readers without copying, and a quote can hold its tier snapshot
without it being altered later.
"""
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Optional


AREA_SOURCES = ('measured', 'estimated')

FREQUENCIES = ('one_time', 'weekly', 'bi_weekly', 'monthly')

# Average visits in a calendar month; one-time service has no monthly figure
VISITS_PER_MONTH = {
    'weekly': 4.33,
    'bi_weekly': 2.17,
    'monthly': 1.0,
    'one_time': None,
}

DEFAULT_FREQUENCY_MULTIPLIERS = {
    'one_time': 1.0,
    'weekly': 0.85,
    'bi_weekly': 0.95,
    'monthly': 1.0,
}

# Area used when no boundary has been drawn for the property
DEFAULT_AREA_ESTIMATES = {
    'residential': 8000.0,
    'commercial': 15000.0,
}

QUOTE_STATUSES = ('pending', 'won', 'lost')

ALLOWED_STATUS_TRANSITIONS = {
    'pending': ('won', 'lost'),
    'won': (),
    'lost': (),
}

DEFAULT_MIN_PRICE_PER_VISIT = 50.00
DEFAULT_FLAT_RATE = 0.10


@dataclass
class TraceStep:
    """A single step in the quote assembly trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class PricingTier:
    """One volume band: area up to `up_to_area` is billed at `rate_per_unit_area`."""
    up_to_area: Optional[float]  # None = no upper limit
    rate_per_unit_area: float

    @property
    def is_unbounded(self) -> bool:
        return self.up_to_area is None

    def to_dict(self) -> dict:
        return {
            'up_to_area': self.up_to_area,
            'rate_per_unit_area': self.rate_per_unit_area,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PricingTier':
        """Build a tier from its at-rest shape (also accepts the older sq-ft keys)."""
        bound = data.get('up_to_area', data.get('up_to_sqft'))
        rate = data.get('rate_per_unit_area', data.get('rate_per_sqft', 0))
        return cls(
            up_to_area=float(bound) if bound is not None else None,
            rate_per_unit_area=float(rate),
        )


DEFAULT_PRICING_TIERS = (
    PricingTier(up_to_area=5000.0, rate_per_unit_area=0.012),
    PricingTier(up_to_area=20000.0, rate_per_unit_area=0.008),
    PricingTier(up_to_area=None, rate_per_unit_area=0.005),
)


@dataclass(frozen=True)
class AddOn:
    """An optional extra service billed per visit."""
    id: str
    label: str
    price_per_visit: float
    enabled: bool = True

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'label': self.label,
            'price_per_visit': self.price_per_visit,
            'enabled': self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AddOn':
        return cls(
            id=str(data['id']),
            label=str(data.get('label') or data.get('name') or data['id']),
            price_per_visit=float(data.get('price_per_visit', 0) or 0),
            enabled=_as_bool(data.get('enabled', data.get('is_active', True)), 'enabled'),
        )


# Offered to every new account; each account can edit or disable them
DEFAULT_ADD_ONS = (
    AddOn(id='mulch', label='Mulch Installation', price_per_visit=75.00),
    AddOn(id='flower_beds', label='Flower Bed Maintenance', price_per_visit=35.00),
    AddOn(id='hedge_trimming', label='Hedge Trimming', price_per_visit=45.00),
    AddOn(id='leaf_removal', label='Leaf Removal', price_per_visit=55.00),
    AddOn(id='edging', label='Edging', price_per_visit=25.00),
)


@dataclass(frozen=True)
class PricingConfiguration:
    """Per-account pricing settings."""
    use_tiered_pricing: bool = True
    tiers: tuple = DEFAULT_PRICING_TIERS
    flat_rate_per_unit_area: float = DEFAULT_FLAT_RATE
    min_price_per_visit: float = DEFAULT_MIN_PRICE_PER_VISIT
    base_fee: float = 0.0
    add_ons: tuple = ()
    frequency_multipliers: MappingProxyType = field(
        default_factory=lambda: dict(DEFAULT_FREQUENCY_MULTIPLIERS)
    )

    def __post_init__(self):
        # Read-only view so a shared configuration cannot be changed in place
        object.__setattr__(self, 'frequency_multipliers', MappingProxyType(dict(self.frequency_multipliers)))

    @classmethod
    def default_for_account(cls) -> 'PricingConfiguration':
        """Configuration every new account starts with."""
        return cls(add_ons=DEFAULT_ADD_ONS)

    def get_add_on(self, add_on_id: str) -> Optional[AddOn]:
        for add_on in self.add_ons:
            if add_on.id == add_on_id:
                return add_on
        return None

    def with_updates(self, updates: dict) -> 'PricingConfiguration':
        """
        Return a new configuration with `updates` applied.

        Accepts the at-rest shape for nested values (tiers and add-ons as
        lists of dicts). Unknown keys raise ValueError.
        """
        changes = {}
        for key, value in updates.items():
            if key not in _CONFIG_FIELDS:
                raise ValueError(f"Unknown pricing setting '{key}'")
            changes[key] = _coerce_config_value(key, value)
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            'use_tiered_pricing': self.use_tiered_pricing,
            'tiers': [t.to_dict() for t in self.tiers],
            'flat_rate_per_unit_area': self.flat_rate_per_unit_area,
            'min_price_per_visit': self.min_price_per_visit,
            'base_fee': self.base_fee,
            'add_ons': [a.to_dict() for a in self.add_ons],
            'frequency_multipliers': dict(self.frequency_multipliers),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PricingConfiguration':
        return cls().with_updates(
            {k: v for k, v in data.items() if k in _CONFIG_FIELDS}
        )


_CONFIG_FIELDS = (
    'use_tiered_pricing',
    'tiers',
    'flat_rate_per_unit_area',
    'min_price_per_visit',
    'base_fee',
    'add_ons',
    'frequency_multipliers',
)


def _as_bool(value, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"'{name}' must be true or false, got {value!r}")
    return value


def _coerce_config_value(key: str, value):
    if key == 'tiers':
        return tuple(
            t if isinstance(t, PricingTier) else PricingTier.from_dict(t)
            for t in (value or ())
        )
    if key == 'add_ons':
        return tuple(
            a if isinstance(a, AddOn) else AddOn.from_dict(a)
            for a in (value or ())
        )
    if key == 'frequency_multipliers':
        return {str(k): float(v) for k, v in (value or {}).items()}
    if key == 'use_tiered_pricing':
        return _as_bool(value, key)
    return float(value)


@dataclass(frozen=True)
class AreaMeasurement:
    """Area to price and where it came from (drawn boundary or default estimate)."""
    area: Optional[float]
    source: str = 'measured'


@dataclass
class BandResult:
    """Area billed inside one tier."""
    range_start: float
    range_end: Optional[float]  # None = open-ended band
    area_in_band: float
    rate: float
    price: float
    label: str = ""

    def to_dict(self) -> dict:
        return {
            'range_start': self.range_start,
            'range_end': self.range_end,
            'area_in_band': self.area_in_band,
            'rate': self.rate,
            'price': self.price,
            'label': self.label,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'BandResult':
        return cls(
            range_start=float(data['range_start']),
            range_end=float(data['range_end']) if data.get('range_end') is not None else None,
            area_in_band=float(data['area_in_band']),
            rate=float(data['rate']),
            price=float(data['price']),
            label=data.get('label', ''),
        )


@dataclass
class AreaPriceResult:
    """Price for an area plus the per-band breakdown."""
    total_price: float
    breakdown: list[BandResult] = field(default_factory=list)

    @property
    def billed_area(self) -> float:
        return sum(b.area_in_band for b in self.breakdown)

    @property
    def effective_rate(self) -> float:
        """Blended rate across all bands."""
        area = self.billed_area
        if area <= 0:
            return 0.0
        return self.total_price / area


@dataclass
class QuoteRequest:
    """Everything a caller supplies to price and record a quote."""
    account_id: str
    measurement: AreaMeasurement
    primary_service: str
    frequency: str
    selected_add_on_ids: list[str] = field(default_factory=list)

    # Lead / contact details, passed through to the quote record
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    property_address: Optional[str] = None
    property_type: Optional[str] = None
    notes: Optional[str] = None

    # Set when the quote comes from the internal field tool
    operator_name: Optional[str] = None
    source: str = 'app'  # "app", "widget", "internal"
    send_to_customer: bool = False


@dataclass
class Quote:
    """
    A priced quote.

    Pricing fields are a snapshot taken at creation time; only `status`
    changes afterwards.
    """
    account_id: str
    area: float
    area_source: str
    primary_service: str
    frequency: str
    pricing_mode: str  # "tiered" or "flat"
    area_price: float
    base_price: float
    add_ons_total: float
    price_per_visit: float
    monthly_estimate: Optional[float]

    id: Optional[str] = None
    created_at: Optional[str] = None
    status: str = 'pending'

    frequency_multiplier: float = 1.0
    base_fee: float = 0.0
    min_price_per_visit: float = 0.0
    min_price_applied: bool = False
    add_ons: list[AddOn] = field(default_factory=list)
    tiers_snapshot: Optional[tuple] = None
    flat_rate_snapshot: Optional[float] = None
    breakdown: list[BandResult] = field(default_factory=list)

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    property_address: Optional[str] = None
    property_type: Optional[str] = None
    notes: Optional[str] = None
    operator_name: Optional[str] = None
    source: str = 'app'
    send_to_customer: bool = False

    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_STATUS_TRANSITIONS.get(self.status)

    def can_transition_to(self, status: str) -> bool:
        return status in ALLOWED_STATUS_TRANSITIONS.get(self.status, ())

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the assembly trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def tiers_snapshot_dicts(self) -> Optional[list[dict]]:
        if self.tiers_snapshot is None:
            return None
        return [t.to_dict() for t in self.tiers_snapshot]


@dataclass
class Client:
    """A recurring customer, created when a quote is won."""
    account_id: str
    id: Optional[str] = None
    source_quote_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    property_address: Optional[str] = None
    property_type: Optional[str] = None
    area: Optional[float] = None
    primary_service: Optional[str] = None
    add_on_ids: list[str] = field(default_factory=list)
    frequency: Optional[str] = None
    price_per_visit: Optional[float] = None
    estimated_monthly_revenue: Optional[float] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_quote(cls, quote: Quote) -> 'Client':
        """Client record carrying a quote's lead details and pricing."""
        return cls(
            account_id=quote.account_id,
            source_quote_id=quote.id,
            customer_name=quote.customer_name,
            customer_email=quote.customer_email,
            customer_phone=quote.customer_phone,
            property_address=quote.property_address,
            property_type=quote.property_type,
            area=quote.area,
            primary_service=quote.primary_service,
            add_on_ids=[a.id for a in quote.add_ons],
            frequency=quote.frequency,
            price_per_visit=quote.price_per_visit,
            estimated_monthly_revenue=quote.monthly_estimate,
        )
