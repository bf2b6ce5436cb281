"""
Shared fixtures for the API test suite.
"""

import hashlib
import hmac
import json
import time

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from core.models import Listing

User = get_user_model()

WEBHOOK_SECRET = 'whsec_test_secret'


@pytest.fixture(autouse=True)
def clear_throttle_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    """Build an APIClient authenticated as the given user."""
    def _client_for(user):
        client = APIClient()
        token = RefreshToken.for_user(user).access_token
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        return client
    return _client_for


@pytest.fixture
def seller(db):
    return User.objects.create_user(
        email='seller@example.com',
        password='SellerPass123!',
        name='Sam Seller',
        role='seller'
    )


@pytest.fixture
def buyer(db):
    return User.objects.create_user(
        email='buyer@example.com',
        password='BuyerPass123!',
        name='Bailey Buyer',
        role='buyer'
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email='other@example.com',
        password='OtherPass123!',
        name='Olive Other',
        role='both'
    )


@pytest.fixture
def listing(seller):
    return Listing.objects.create(
        seller=seller,
        year=2021,
        converter='Marathon',
        num='#1234',
        price=1850000,
        price_display='$1,850,000'
    )


def sign_payload(payload, secret=WEBHOOK_SECRET, timestamp=None):
    """Build a Stripe-Signature header for a payload."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f'{timestamp}.{payload}'.encode('utf-8')
    signature = hmac.new(secret.encode('utf-8'), signed, hashlib.sha256).hexdigest()
    return f't={timestamp},v1={signature}'


def checkout_event(user_id=None, event_id='evt_test_1', **session_fields):
    """Build a checkout.session.completed event payload."""
    session = {
        'id': 'cs_test_1',
        'object': 'checkout.session',
        'payment_intent': 'pi_test_1',
        'customer': 'cus_test_1',
        'metadata': {'user_id': str(user_id)} if user_id is not None else {},
    }
    session.update(session_fields)
    return {
        'id': event_id,
        'object': 'event',
        'type': 'checkout.session.completed',
        'data': {'object': session},
    }


@pytest.fixture
def webhook_secret(settings):
    settings.STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET
    return WEBHOOK_SECRET


@pytest.fixture
def post_webhook(api_client, webhook_secret):
    """POST an event to the webhook endpoint, correctly signed by default."""
    def _post_webhook(event, signature=None):
        payload = event if isinstance(event, str) else json.dumps(event)
        if signature is None:
            signature = sign_payload(payload)
        extra = {'HTTP_STRIPE_SIGNATURE': signature} if signature else {}
        return api_client.post(
            '/api/stripe/webhook/',
            data=payload,
            content_type='application/json',
            **extra
        )
    return _post_webhook


@pytest.fixture
def make_signature():
    return sign_payload


@pytest.fixture
def make_checkout_event():
    return checkout_event
