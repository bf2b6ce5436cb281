"""
Conversations and messages between buyers and sellers.

A buyer opens one conversation per listing. Both participants append
messages; the seller's access is governed by the paywall gate in
``core.paywall``. Viewing a conversation always marks the counterpart's
messages read, whether or not the viewer can see their text.

All coordination between concurrent requests is left to the database:
the (listing, buyer) unique constraint, single-statement updates and
``transaction.atomic()``.
"""

import logging
import uuid

from django.db import IntegrityError, transaction
from django.db.models import Count, IntegerField, OuterRef, Q, Subquery, UUIDField, Value
from django.db.models.functions import Coalesce

from . import paywall
from .exceptions import EmptyMessage, ListingNotFound, NotParticipant, PaymentRequired, SelfMessaging
from .models import Conversation, Listing, ListingPhoto, Message, User

logger = logging.getLogger(__name__)


def parse_uuid(value):
    """
    Parse a client supplied identifier.

    Returns:
        UUID or None if the value is not a valid UUID
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _seller_paid(seller_id):
    """Read the seller's current unlock flag from the database."""
    paid = User.objects.filter(pk=seller_id).values_list('paid', flat=True).first()
    return bool(paid)


def _participant_conversation(conversation_id, user):
    """
    Load a conversation the user takes part in.

    Missing conversations and conversations the user is not part of raise the
    same error, so ids cannot be probed.

    Raises:
        NotParticipant: If the user is neither buyer nor seller
    """
    pk = parse_uuid(conversation_id)
    if pk is None:
        raise NotParticipant()

    conversation = (
        Conversation.objects
        .filter(pk=pk)
        .filter(Q(buyer=user) | Q(seller=user))
        .first()
    )
    if conversation is None:
        raise NotParticipant()
    return conversation


# ============================================================================
# Conversation store
# ============================================================================

def get_or_create_conversation(listing_id, buyer):
    """
    Open the buyer's conversation about a listing, or return the existing one.

    The seller is copied from the listing at creation time. Concurrent calls
    for the same (listing, buyer) pair converge on a single row: the loser of
    the insert race catches the unique constraint violation and returns the
    winner's conversation.

    Args:
        listing_id: Listing identifier supplied by the client
        buyer: Authenticated user opening the conversation

    Returns:
        tuple: (Conversation, created)

    Raises:
        ListingNotFound: If the listing does not exist
        SelfMessaging: If the buyer is the listing's seller
    """
    pk = parse_uuid(listing_id)
    if pk is None:
        raise ListingNotFound()

    try:
        listing = Listing.objects.only('id', 'seller').get(pk=pk)
    except Listing.DoesNotExist:
        raise ListingNotFound()

    if listing.seller_id == buyer.pk:
        raise SelfMessaging()

    existing = Conversation.objects.filter(listing=listing, buyer=buyer).first()
    if existing is not None:
        return existing, False

    try:
        # Savepoint so the outer transaction survives a lost race
        with transaction.atomic():
            conversation = Conversation.objects.create(
                listing=listing,
                buyer=buyer,
                seller_id=listing.seller_id
            )
    except IntegrityError:
        conversation = Conversation.objects.get(listing=listing, buyer=buyer)
        logger.info(
            f"Conversation already opened concurrently. "
            f"Conversation ID: {conversation.id}, Listing ID: {listing.id}, Buyer ID: {buyer.pk}"
        )
        return conversation, False

    logger.info(
        f"Conversation opened. "
        f"Conversation ID: {conversation.id}, Listing ID: {listing.id}, "
        f"Buyer ID: {buyer.pk}, Seller ID: {listing.seller_id}"
    )
    return conversation, True


def list_conversations(user):
    """
    List the user's conversations, most recently active first.

    Each conversation carries:
    - last_message: Text of the newest message (redacted for an unpaid seller
      when the buyer wrote it)
    - last_message_at: Timestamp of the newest message
    - last_message_locked: Whether last_message was redacted
    - unread_count: Messages from the other participant not yet read
    - listing_photo: First photo of the listing

    Args:
        user: Authenticated user, as buyer or seller

    Returns:
        list: Annotated Conversation instances
    """
    newest = Message.objects.filter(conversation=OuterRef('pk')).order_by('-created_at')

    unread = (
        Message.objects
        .filter(conversation=OuterRef('pk'), read=False)
        .exclude(sender=user)
        .order_by()
        .values('conversation')
        .annotate(total=Count('pk'))
        .values('total')
    )

    first_photo = (
        ListingPhoto.objects
        .filter(listing=OuterRef('listing'))
        .order_by('sort_order', 'created_at')
    )

    queryset = (
        Conversation.objects
        .filter(Q(buyer=user) | Q(seller=user))
        .select_related('listing', 'buyer', 'seller')
        .annotate(
            last_message=Subquery(newest.values('text')[:1]),
            last_message_at=Subquery(newest.values('created_at')[:1]),
            last_message_sender_id=Subquery(newest.values('sender_id')[:1], output_field=UUIDField()),
            unread_count=Coalesce(
                Subquery(unread, output_field=IntegerField()),
                Value(0)
            ),
            listing_photo=Subquery(first_photo.values('url')[:1]),
        )
        .order_by('-updated_at')
    )

    conversations = list(queryset)
    for conversation in conversations:
        is_seller_viewer = conversation.seller_id == user.pk
        sender_is_buyer = conversation.last_message_sender_id == conversation.buyer_id
        conversation.last_message_locked = (
            conversation.last_message is not None
            and paywall.is_message_locked(is_seller_viewer, conversation.seller.paid, sender_is_buyer)
        )
        if conversation.last_message_locked:
            conversation.last_message = paywall.LOCKED_MESSAGE_TEXT
    return conversations


# ============================================================================
# Message ledger
# ============================================================================

def _message_view(message):
    return {
        'id': message.id,
        'conversation_id': message.conversation_id,
        'sender_id': message.sender_id,
        'sender_name': message.sender.display_name,
        'text': message.text,
        'read': message.read,
        'created_at': message.created_at,
    }


def list_messages(conversation_id, viewer):
    """
    Read a conversation as one of its participants.

    Buyer messages are redacted when the viewer is the seller and the seller
    has not paid. Every message from the other participant is marked read as
    a side effect, including redacted ones. Returned read flags are the
    values seen before this call marked them.

    Args:
        conversation_id: Conversation identifier supplied by the client
        viewer: Authenticated user

    Returns:
        tuple: (list of message dicts in creation order, conversation locked)

    Raises:
        NotParticipant: If the viewer is not the buyer or seller
    """
    conversation = _participant_conversation(conversation_id, viewer)

    is_seller_viewer = conversation.seller_id == viewer.pk
    seller_paid = _seller_paid(conversation.seller_id) if is_seller_viewer else True

    with transaction.atomic():
        messages = list(
            Message.objects
            .filter(conversation=conversation)
            .select_related('sender')
            .order_by('created_at')
        )
        marked = (
            Message.objects
            .filter(conversation=conversation, read=False)
            .exclude(sender=viewer)
            .update(read=True)
        )

    if marked:
        logger.debug(
            f"Marked {marked} messages read. "
            f"Conversation ID: {conversation.id}, Viewer ID: {viewer.pk}"
        )

    views = [
        paywall.render(_message_view(message), is_seller_viewer, seller_paid, conversation.buyer_id)
        for message in messages
    ]
    return views, paywall.is_conversation_locked(is_seller_viewer, seller_paid)


def append_message(conversation_id, sender, text):
    """
    Append a message to a conversation.

    The insert and the conversation's ``updated_at`` bump (done by the
    Message post_save receiver) commit together.

    Args:
        conversation_id: Conversation identifier supplied by the client
        sender: Authenticated user
        text: Message body

    Returns:
        Message: The stored message, unread

    Raises:
        NotParticipant: If the sender is not the buyer or seller
        EmptyMessage: If the text is missing or blank
        PaymentRequired: If the sender is the seller and has not paid
    """
    conversation = _participant_conversation(conversation_id, sender)

    if not isinstance(text, str) or not text.strip():
        raise EmptyMessage()

    is_seller_sender = conversation.seller_id == sender.pk
    if is_seller_sender and not paywall.can_send(True, _seller_paid(conversation.seller_id)):
        logger.info(
            f"Seller reply blocked until payment. "
            f"Conversation ID: {conversation.id}, Seller ID: {sender.pk}"
        )
        raise PaymentRequired()

    with transaction.atomic():
        message = Message.objects.create(
            conversation=conversation,
            sender=sender,
            text=text
        )

    logger.info(
        f"Message appended. "
        f"Message ID: {message.id}, Conversation ID: {conversation.id}, Sender ID: {sender.pk}"
    )
    return message
