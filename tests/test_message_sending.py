"""
Tests for appending messages.

Tests cover:
- Buyers can always send
- Unpaid sellers are blocked with payment_required, paid sellers can reply
- Empty and whitespace-only text
- Participant checks run before anything else
"""

import uuid

import pytest
from django.contrib.auth import get_user_model
from rest_framework import status

from core import messaging
from core.exceptions import EmptyMessage, NotParticipant, PaymentRequired
from core.models import Conversation, Message

User = get_user_model()


@pytest.fixture
def conversation(listing, buyer, seller):
    return Conversation.objects.create(listing=listing, buyer=buyer, seller=seller)


def messages_url(conversation_id):
    return f'/api/conversations/{conversation_id}/messages/'


@pytest.mark.django_db
class TestSendMessageEndpoint:

    def test_buyer_sends_message(self, client_for, buyer, conversation):
        response = client_for(buyer).post(
            messages_url(conversation.id),
            {'text': 'Is the coach still available?'},
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        message = response.data['message']
        assert message['text'] == 'Is the coach still available?'
        assert message['sender_id'] == str(buyer.id)
        assert message['conversation_id'] == str(conversation.id)
        assert message['read'] is False
        assert Message.objects.filter(conversation=conversation).count() == 1

    def test_unpaid_seller_reply_rejected(self, client_for, seller, conversation):
        response = client_for(seller).post(
            messages_url(conversation.id),
            {'text': 'Yes it is!'},
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'payment_required'
        assert Message.objects.count() == 0

    def test_paid_seller_can_reply(self, client_for, seller, conversation):
        User.objects.filter(pk=seller.pk).update(paid=True)

        response = client_for(seller).post(
            messages_url(conversation.id),
            {'text': 'Yes it is!'},
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['message']['sender_id'] == str(seller.id)

    def test_empty_text_rejected(self, client_for, buyer, conversation):
        response = client_for(buyer).post(messages_url(conversation.id), {'text': ''}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'empty_message'
        assert response.data['detail'] == 'Message text required.'

    def test_whitespace_text_rejected(self, client_for, buyer, conversation):
        response = client_for(buyer).post(messages_url(conversation.id), {'text': '   \n'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'empty_message'

    def test_missing_text_rejected(self, client_for, buyer, conversation):
        response = client_for(buyer).post(messages_url(conversation.id), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'empty_message'

    def test_null_text_rejected(self, client_for, buyer, conversation):
        response = client_for(buyer).post(messages_url(conversation.id), {'text': None}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'empty_message'

    def test_list_text_rejected(self, client_for, buyer, conversation):
        response = client_for(buyer).post(messages_url(conversation.id), {'text': ['hi']}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'text' in response.data
        assert Message.objects.count() == 0

    def test_non_object_body_rejected(self, client_for, buyer, conversation):
        response = client_for(buyer).post(messages_url(conversation.id), ['hi'], format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'invalid'
        assert Message.objects.count() == 0

    def test_stranger_rejected(self, client_for, other_user, conversation):
        response = client_for(other_user).post(
            messages_url(conversation.id),
            {'text': 'Hello'},
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'not_participant'

    def test_unknown_conversation_rejected(self, client_for, buyer):
        response = client_for(buyer).post(messages_url(uuid.uuid4()), {'text': 'Hello'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'not_participant'

    def test_requires_authentication(self, api_client, conversation):
        response = api_client.post(messages_url(conversation.id), {'text': 'Hello'}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestAppendMessage:

    def test_check_order_participant_before_empty(self, other_user, conversation):
        with pytest.raises(NotParticipant):
            messaging.append_message(conversation.id, other_user, '')

    def test_check_order_empty_before_payment(self, seller, conversation):
        with pytest.raises(EmptyMessage):
            messaging.append_message(conversation.id, seller, '  ')

    def test_unpaid_seller_raises_payment_required(self, seller, conversation):
        with pytest.raises(PaymentRequired):
            messaging.append_message(conversation.id, seller, 'Reply')

    def test_text_stored_as_given(self, buyer, conversation):
        message = messaging.append_message(conversation.id, buyer, '  padded text  ')

        message.refresh_from_db()
        assert message.text == '  padded text  '

    def test_append_bumps_conversation(self, buyer, conversation):
        conversation.refresh_from_db()
        before = conversation.updated_at

        messaging.append_message(conversation.id, buyer, 'Hello')

        conversation.refresh_from_db()
        assert conversation.updated_at > before

    def test_buyer_can_send_to_unpaid_seller_repeatedly(self, buyer, conversation):
        for text in ('one', 'two', 'three'):
            messaging.append_message(conversation.id, buyer, text)

        assert Message.objects.filter(conversation=conversation, sender=buyer).count() == 3
