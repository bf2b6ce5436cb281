"""
Tests for starting the messaging unlock checkout and reading payment status.

Stripe is never contacted: ``stripe.checkout.Session.create`` is patched.
"""

from unittest.mock import MagicMock, patch

import pytest
import stripe
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import status

User = get_user_model()

CHECKOUT_URL = '/api/stripe/create-checkout/'
STATUS_URL = '/api/stripe/status/'


@pytest.fixture
def stripe_settings(settings):
    settings.STRIPE_SECRET_KEY = 'sk_test_key'
    settings.FRONTEND_URL = 'https://coaches.example.com'
    settings.UNLOCK_PRICE_CENTS = 50000
    return settings


@pytest.fixture
def fake_session():
    session = MagicMock()
    session.id = 'cs_test_abc'
    session.url = 'https://checkout.stripe.com/c/pay/cs_test_abc'
    return session


@pytest.mark.django_db
class TestCreateCheckout:

    def test_returns_checkout_url(self, client_for, seller, stripe_settings, fake_session):
        with patch('stripe.checkout.Session.create', return_value=fake_session):
            response = client_for(seller).post(CHECKOUT_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            'url': 'https://checkout.stripe.com/c/pay/cs_test_abc',
            'session_id': 'cs_test_abc',
        }

    def test_session_parameters(self, client_for, seller, stripe_settings, fake_session):
        with patch('stripe.checkout.Session.create', return_value=fake_session) as create:
            client_for(seller).post(CHECKOUT_URL)

        kwargs = create.call_args.kwargs
        assert kwargs['api_key'] == 'sk_test_key'
        assert kwargs['mode'] == 'payment'
        assert kwargs['customer_email'] == 'seller@example.com'
        assert kwargs['client_reference_id'] == str(seller.id)
        assert kwargs['metadata'] == {'user_id': str(seller.id)}
        assert kwargs['line_items'][0]['price_data']['unit_amount'] == 50000
        assert kwargs['line_items'][0]['price_data']['currency'] == 'usd'
        assert kwargs['line_items'][0]['quantity'] == 1
        assert kwargs['success_url'] == 'https://coaches.example.com?payment=success'
        assert kwargs['cancel_url'] == 'https://coaches.example.com?payment=cancelled'

    def test_checkout_does_not_unlock(self, client_for, seller, stripe_settings, fake_session):
        with patch('stripe.checkout.Session.create', return_value=fake_session):
            client_for(seller).post(CHECKOUT_URL)

        seller.refresh_from_db()
        assert seller.paid is False

    def test_already_unlocked(self, client_for, seller, stripe_settings):
        User.objects.filter(pk=seller.pk).update(paid=True, paid_at=timezone.now())

        with patch('stripe.checkout.Session.create') as create:
            response = client_for(seller).post(CHECKOUT_URL)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'already_unlocked'
        create.assert_not_called()

    def test_stripe_failure_returns_500(self, client_for, seller, stripe_settings):
        error = stripe.StripeError('Invalid API Key provided')

        with patch('stripe.checkout.Session.create', side_effect=error):
            response = client_for(seller).post(CHECKOUT_URL)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data['code'] == 'payment_setup_failed'
        # Stripe's message is not passed through
        assert 'API Key' not in response.data['detail']

    def test_requires_authentication(self, api_client):
        response = api_client.post(CHECKOUT_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestPaymentStatus:

    def test_unpaid(self, client_for, seller):
        response = client_for(seller).get(STATUS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'paid': False, 'paid_at': None}

    def test_paid(self, client_for, seller):
        User.objects.filter(pk=seller.pk).update(paid=True, paid_at=timezone.now())

        response = client_for(seller).get(STATUS_URL)

        assert response.data['paid'] is True
        assert response.data['paid_at'] is not None

    def test_requires_authentication(self, api_client):
        response = api_client.get(STATUS_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
