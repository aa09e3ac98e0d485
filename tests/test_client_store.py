"""
Tests for clients created from won quotes.
"""
import pytest

from lawn_quote.engine.errors import ClientNotFound
from lawn_quote.engine.quote_engine import QuoteEngine
from lawn_quote.services.client_store import ClientStore
from lawn_quote.services.quote_service import QuoteService
from lawn_quote.services.quote_store import QuoteStore
from lawn_quote.services.settings_store import SettingsStore


@pytest.fixture
def client_store(tmp_path):
    return ClientStore(tmp_path / 'clients.csv')


@pytest.fixture
def won_quote(default_config, make_request):
    quote = QuoteEngine().assemble(
        make_request(add_ons=['edging'], customer_name='Dana', property_address='12 Elm St',
                     property_type='residential'),
        default_config,
    )
    quote.id = 'q-1'
    quote.status = 'won'
    return quote


def test_create_from_quote(client_store, won_quote):
    client = client_store.create_from_quote(won_quote)

    assert client.id
    assert client.is_active is True
    assert client.source_quote_id == 'q-1'
    assert client.customer_name == 'Dana'
    assert client.property_address == '12 Elm St'
    assert client.area == 10000
    assert client.add_on_ids == ['edging']
    assert client.frequency == 'bi_weekly'
    assert client.price_per_visit == 109.25
    assert client.estimated_monthly_revenue == 237.07


def test_one_client_per_quote(client_store, won_quote):
    first = client_store.create_from_quote(won_quote)
    second = client_store.create_from_quote(won_quote)
    assert second.id == first.id
    assert len(client_store.list_clients()) == 1


def test_round_trip(client_store, won_quote):
    created = client_store.create_from_quote(won_quote)
    assert client_store.get_client(created.id) == created
    assert client_store.find_by_quote('q-1') == created
    assert client_store.find_by_quote('q-2') is None


def test_one_time_client_has_no_revenue(client_store, won_quote):
    won_quote.frequency = 'one_time'
    won_quote.monthly_estimate = None
    client = client_store.get_client(client_store.create_from_quote(won_quote).id)
    assert client.estimated_monthly_revenue is None
    assert client_store.get_stats() == {'active_clients': 1, 'monthly_revenue': 0.0}


def test_missing_client(client_store):
    with pytest.raises(ClientNotFound):
        client_store.get_client('missing')
    with pytest.raises(ClientNotFound):
        client_store.set_active('missing', False)


def test_deactivate(client_store, won_quote):
    client = client_store.create_from_quote(won_quote)
    updated = client_store.set_active(client.id, False)

    assert updated.is_active is False
    assert client_store.list_clients() == []
    assert [c.id for c in client_store.list_clients(active_only=False)] == [client.id]


def test_stats_by_account(client_store, won_quote):
    client_store.create_from_quote(won_quote)
    won_quote.id = 'q-2'
    won_quote.account_id = 'acct-2'
    client_store.create_from_quote(won_quote)

    assert client_store.get_stats() == {'active_clients': 2, 'monthly_revenue': 474.14}
    assert client_store.get_stats('acct-2') == {'active_clients': 1, 'monthly_revenue': 237.07}
    assert client_store.get_stats('acct-3') == {'active_clients': 0, 'monthly_revenue': 0.0}


def test_empty_stats(client_store):
    assert client_store.get_stats() == {'active_clients': 0, 'monthly_revenue': 0.0}


class TestPipeline:
    @pytest.fixture
    def service(self, tmp_path, default_config, client_store):
        settings_store = SettingsStore()
        settings_store.provision_account('acct-1', default_config)
        return QuoteService(settings_store, QuoteStore(tmp_path / 'quotes.csv'), client_store=client_store)

    def test_won_quote_becomes_client(self, service, client_store, make_request):
        quote, _ = service.submit(make_request(property_address='12 Elm St'))
        service.update_status(quote.id, 'won')

        client = client_store.find_by_quote(quote.id)
        assert client is not None, "Winning a quote should create a client"
        assert client.account_id == 'acct-1'

    def test_lost_quote_creates_no_client(self, service, client_store, make_request):
        quote, _ = service.submit(make_request())
        service.update_status(quote.id, 'lost')
        assert client_store.list_clients(active_only=False) == []
