"""
Paywall gate for seller messaging.

Sellers can see that buyers have written to them, but cannot read buyer
messages or reply until their one-time messaging unlock has been paid.
Buyers are never restricted.

Every function here is a pure decision over plain values, so callers are
responsible for loading the seller's current ``paid`` flag.
"""

# Shown to unpaid sellers in place of buyer messages. Clients match on this
# exact string.
LOCKED_MESSAGE_TEXT = '[Message locked — pay $500 to unlock]'


def is_message_locked(is_seller_viewer, seller_paid, sender_is_buyer):
    """
    Decide whether a message must be redacted for the viewer.

    A message is locked only when the seller is looking at it, the seller has
    not paid, and the buyer wrote it.

    Args:
        is_seller_viewer: Viewer is the conversation's seller
        seller_paid: The seller's current ``paid`` flag
        sender_is_buyer: The message was written by the conversation's buyer

    Returns:
        bool: True if the message text must be hidden
    """
    return is_seller_viewer and not seller_paid and sender_is_buyer


def is_conversation_locked(is_seller_viewer, seller_paid):
    """Whether the viewer is an unpaid seller."""
    return is_seller_viewer and not seller_paid


def can_send(is_seller_sender, seller_paid):
    """
    Decide whether a participant may append a message.

    Only the conversation's seller is gated; buyers may always send.

    Args:
        is_seller_sender: Sender is the conversation's seller
        seller_paid: The seller's current ``paid`` flag

    Returns:
        bool: False if the send must be rejected with payment required
    """
    return not is_seller_sender or seller_paid


def redact(message):
    """Return a copy of a message dict with its text replaced by the placeholder."""
    return {**message, 'text': LOCKED_MESSAGE_TEXT, 'locked': True}


def render(message, is_seller_viewer, seller_paid, buyer_id):
    """
    Apply the visibility rule to one message.

    Args:
        message: Message dict with at least ``sender_id`` and ``text``
        is_seller_viewer: Viewer is the conversation's seller
        seller_paid: The seller's current ``paid`` flag
        buyer_id: The conversation's buyer id

    Returns:
        dict: Copy of the message with ``locked`` set, text redacted if locked
    """
    sender_is_buyer = message['sender_id'] == buyer_id
    if is_message_locked(is_seller_viewer, seller_paid, sender_is_buyer):
        return redact(message)
    return {**message, 'locked': False}
