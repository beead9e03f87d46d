from __future__ import annotations

import random
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.notifications.repositories import NotificationDjangoRepository
from modules.notifications.services import NotificationService
from modules.orders.config import EventProcessingSettings
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from modules.products.repositories import ProductDjangoRepository
from modules.users.repositories import UserDjangoRepository
from shared.infrastructure.bus import InMemoryEventBus


class RecordingEventBus(InMemoryEventBus):
    """In-memory bus that also keeps every published event."""

    def __init__(self) -> None:
        super().__init__()
        self.published = []

    def publish(self, event) -> None:
        self.published.append(event)
        super().publish(event)

    def of_type(self, event_class):
        return [e for e in self.published if isinstance(e, event_class)]


def no_sleep(_seconds: float) -> None:
    """Stand-in for ``time.sleep`` in the simulated delays."""


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def event_bus(monkeypatch):
    """Every entry point publishes to an in-memory bus instead of the broker."""
    bus = RecordingEventBus()
    monkeypatch.setattr("modules.orders.factories.build_event_bus", lambda: bus)
    return bus


@pytest.fixture(autouse=True)
def fast_event_processing(settings):
    """Zero simulated delays and a deterministic payment outcome."""
    from modules.orders import factories

    settings.EVENT_PROCESSING = {
        "payment_processing_delay_seconds": 0,
        "order_completion_success_rate": 1.0,
        "order_expiry_threshold_minutes": 30,
        "expiry_check_interval_seconds": 60,
        "email_simulation_delay_seconds": 0,
        "payment_random_seed": 1234,
    }
    factories.event_processing_settings.cache_clear()
    factories.payment_rng.cache_clear()
    yield settings.EVENT_PROCESSING
    factories.event_processing_settings.cache_clear()
    factories.payment_rng.cache_clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def user():
    return get_user_model().objects.create_user(
        username="buyer", password="testpass123"
    )


@pytest.fixture()
def auth_client(user):
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def make_product():
    def _make(name="Sample Product", price="99.99", stock=100):
        return Product.objects.create(
            name=name, price=Decimal(price), stock_quantity=stock
        )

    return _make


@pytest.fixture()
def product(make_product):
    return make_product()


@pytest.fixture()
def processing_settings():
    return EventProcessingSettings(
        payment_processing_delay_seconds=5,
        order_completion_success_rate=1.0,
        order_expiry_threshold_minutes=30,
        expiry_check_interval_seconds=60,
        email_simulation_delay_seconds=0.5,
        payment_random_seed=1234,
    )


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def notification_service():
    return NotificationService(
        repository=NotificationDjangoRepository(), sleep=no_sleep
    )


@pytest.fixture()
def order_service(event_bus, notification_service):
    """OrderService wired to the real repositories and the in-memory bus."""
    return OrderService(
        order_repository=OrderDjangoRepository(),
        user_repository=UserDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        event_bus=event_bus,
        notification_service=notification_service,
    )
