"""
Stripe payments for the seller messaging unlock.

The unlock is a one-time Checkout payment. Stripe reports completion through
a signed webhook; the signature must be verified before anything in the
event is trusted. ``verify_webhook`` is the only way to obtain a
``VerifiedEvent``, and the event handlers only accept ``VerifiedEvent``.

``handle_checkout_completed`` is the only code in the system that sets
``User.paid``. There is no reversal path.
"""

import json
import logging

import stripe
from django.conf import settings
from django.utils import timezone

from .exceptions import AlreadyUnlocked, PaymentSetupFailed, WebhookVerificationFailed
from .messaging import parse_uuid
from .models import User

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = 'checkout.session.completed'

_VERIFIED = object()


class VerifiedEvent:
    """
    A Stripe event whose authenticity has been established.

    Built by ``verify_webhook`` (signature checked) or ``retrieve_event``
    (fetched from the Stripe API with our secret key).
    """

    def __init__(self, payload, _proof=None):
        if _proof is not _VERIFIED:
            raise TypeError('VerifiedEvent can only be built by verify_webhook() or retrieve_event().')
        self.payload = payload

    @property
    def id(self):
        return self.payload.get('id', '')

    @property
    def type(self):
        return self.payload.get('type', '')

    @property
    def object(self):
        """The event's ``data.object``, or an empty dict if absent."""
        data = self.payload.get('data')
        if not isinstance(data, dict):
            return {}
        obj = data.get('object')
        return obj if isinstance(obj, dict) else {}

    def __repr__(self):
        return f"<VerifiedEvent {self.id} {self.type}>"


def verify_webhook(payload, signature_header):
    """
    Verify a webhook delivery and parse it.

    Args:
        payload: Raw request body (bytes or str), exactly as received
        signature_header: Value of the ``Stripe-Signature`` header

    Returns:
        VerifiedEvent: The parsed event

    Raises:
        WebhookVerificationFailed: If the secret is not configured, the
            header is missing, the signature does not match, or the body is
            not a JSON object
    """
    secret = settings.STRIPE_WEBHOOK_SECRET
    if not secret:
        logger.error("Webhook received but STRIPE_WEBHOOK_SECRET is not configured.")
        raise WebhookVerificationFailed()

    if not signature_header:
        logger.warning("Webhook received without Stripe-Signature header.")
        raise WebhookVerificationFailed()

    if isinstance(payload, bytes):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError:
            raise WebhookVerificationFailed('Invalid payload.')

    try:
        stripe.WebhookSignature.verify_header(
            payload,
            signature_header,
            secret,
            tolerance=settings.STRIPE_WEBHOOK_TOLERANCE
        )
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        raise WebhookVerificationFailed()

    try:
        event = json.loads(payload)
    except ValueError:
        raise WebhookVerificationFailed('Invalid payload.')

    if not isinstance(event, dict):
        raise WebhookVerificationFailed('Invalid payload.')

    return VerifiedEvent(event, _proof=_VERIFIED)


def retrieve_event(event_id):
    """
    Fetch an event from the Stripe API.

    Used to replay deliveries that never reached the webhook. An event read
    back from Stripe with our secret key needs no signature check.

    Raises:
        stripe.StripeError: If the event cannot be retrieved
    """
    event = stripe.Event.retrieve(event_id, api_key=settings.STRIPE_SECRET_KEY)
    return VerifiedEvent(event.to_dict_recursive(), _proof=_VERIFIED)


def _payment_reference(session):
    intent = session.get('payment_intent')
    if isinstance(intent, dict):
        intent = intent.get('id')
    return intent or session.get('id') or ''


def handle_checkout_completed(event):
    """
    Unlock messaging for the user who paid.

    Events without a resolvable user are logged and dropped. A replayed event
    for a user that is already unlocked changes nothing, so the first
    ``paid_at`` is kept.

    Args:
        event: VerifiedEvent of type ``checkout.session.completed``

    Returns:
        bool: True if this event unlocked the user
    """
    if not isinstance(event, VerifiedEvent):
        raise TypeError('handle_checkout_completed() requires a VerifiedEvent.')

    session = event.object
    metadata = session.get('metadata')
    if not isinstance(metadata, dict):
        metadata = {}

    user_id = parse_uuid(metadata.get('user_id') or session.get('client_reference_id'))
    if user_id is None:
        logger.warning(f"Checkout event {event.id} carries no user id, ignoring.")
        return False

    now = timezone.now()
    changes = {
        'paid': True,
        'paid_at': now,
        'stripe_payment_id': _payment_reference(session),
        'updated_at': now,
    }
    customer = session.get('customer')
    if isinstance(customer, str) and customer:
        changes['stripe_customer_id'] = customer

    # Conditional update: concurrent or repeated deliveries unlock once
    unlocked = User.objects.filter(pk=user_id, paid=False).update(**changes)

    if unlocked:
        logger.info(f"User {user_id} unlocked messaging. Event ID: {event.id}")
        return True

    if User.objects.filter(pk=user_id).exists():
        logger.info(f"User {user_id} already unlocked, duplicate event {event.id} ignored.")
    else:
        logger.warning(f"Checkout event {event.id} references unknown user {user_id}, ignoring.")
    return False


EVENT_HANDLERS = {
    CHECKOUT_COMPLETED: handle_checkout_completed,
}


def dispatch_event(event):
    """
    Route a verified event to its handler.

    Event types without a handler are acknowledged and ignored.

    Returns:
        The handler's result, or None if the event type is not handled
    """
    handler = EVENT_HANDLERS.get(event.type)
    if handler is None:
        logger.debug(f"Ignoring Stripe event {event.id} of type {event.type}.")
        return None
    return handler(event)


def create_unlock_checkout(user):
    """
    Start a Stripe Checkout session for the messaging unlock.

    Args:
        user: Authenticated user

    Returns:
        dict: ``url`` to redirect to and ``session_id``

    Raises:
        AlreadyUnlocked: If the user has already paid
        PaymentSetupFailed: If Stripe rejects the request
    """
    account = User.objects.only('id', 'email', 'paid').get(pk=user.pk)
    if account.paid:
        raise AlreadyUnlocked()

    try:
        session = stripe.checkout.Session.create(
            api_key=settings.STRIPE_SECRET_KEY,
            payment_method_types=['card'],
            mode='payment',
            customer_email=account.email,
            client_reference_id=str(account.pk),
            line_items=[{
                'price_data': {
                    'currency': 'usd',
                    'product_data': {
                        'name': settings.UNLOCK_PRODUCT_NAME,
                        'description': settings.UNLOCK_PRODUCT_DESCRIPTION,
                    },
                    'unit_amount': settings.UNLOCK_PRICE_CENTS,
                },
                'quantity': 1,
            }],
            metadata={
                'user_id': str(account.pk),
            },
            success_url=f"{settings.FRONTEND_URL}?payment=success",
            cancel_url=f"{settings.FRONTEND_URL}?payment=cancelled",
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe checkout creation failed for user {account.pk}: {e}")
        raise PaymentSetupFailed()

    logger.info(f"Checkout session {session.id} created for user {account.pk}")
    return {'url': session.url, 'session_id': session.id}
