"""
Django signals for conversation bookkeeping.

Appending a message moves its conversation to the top of both participants'
conversation lists by bumping ``Conversation.updated_at``.
"""

from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone

from .models import Conversation, Message


@receiver(post_save, sender=Message)
def touch_conversation_on_message_create(sender, instance, created, **kwargs):
    """
    Bump the conversation's ``updated_at`` when a message is created.

    Runs inside the caller's transaction, so the message and the bump commit
    or roll back together. Read-flag updates are bulk ``UPDATE`` statements
    and never reach this receiver.

    Args:
        sender: The Message model class
        instance: The Message instance that was saved
        created: Boolean indicating if this is a new message
        **kwargs: Additional keyword arguments
    """
    if not created:
        return

    Conversation.objects.filter(pk=instance.conversation_id).update(
        updated_at=timezone.now()
    )
