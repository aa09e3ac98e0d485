import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from lawn_quote.engine.models import AddOn, AreaMeasurement, PricingConfiguration, QuoteRequest


@pytest.fixture
def default_config():
    """Documented account defaults plus two add-ons and the bi-weekly 0.95 multiplier."""
    return PricingConfiguration(
        add_ons=(
            AddOn(id='edging', label='Edging', price_per_visit=15.0),
            AddOn(id='leaf_cleanup', label='Leaf Cleanup', price_per_visit=25.0, enabled=False),
        ),
        frequency_multipliers={'one_time': 1.0, 'weekly': 0.85, 'bi_weekly': 0.95, 'monthly': 1.0},
    )


@pytest.fixture
def make_request():
    def _make(area=10000, frequency='bi_weekly', add_ons=None, area_source='measured', **kwargs):
        return QuoteRequest(
            account_id=kwargs.pop('account_id', 'acct-1'),
            measurement=AreaMeasurement(area=area, source=area_source),
            primary_service=kwargs.pop('primary_service', 'mowing'),
            frequency=frequency,
            selected_add_on_ids=list(add_ons or []),
            **kwargs,
        )
    return _make
