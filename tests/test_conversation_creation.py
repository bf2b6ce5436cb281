"""
Tests for opening conversations.

Tests cover:
- Creating a conversation as a buyer
- Idempotence for repeated opens of the same (listing, buyer)
- Lost insert races converging on the existing row
- Self-messaging and missing listing errors
- Authentication requirements
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest
from rest_framework import status

from core import messaging
from core.exceptions import ListingNotFound, SelfMessaging
from core.models import Conversation, Listing


URL = '/api/conversations/'


@pytest.mark.django_db
class TestOpenConversationEndpoint:

    def test_buyer_opens_conversation(self, client_for, buyer, seller, listing):
        response = client_for(buyer).post(URL, {'listing_id': str(listing.id)}, format='json')

        assert response.status_code == status.HTTP_200_OK
        body = response.data['conversation']
        assert body['listing_id'] == str(listing.id)
        assert body['buyer_id'] == str(buyer.id)
        assert body['seller_id'] == str(seller.id)
        assert Conversation.objects.count() == 1

    def test_reopening_returns_same_conversation(self, client_for, buyer, listing):
        client = client_for(buyer)

        first = client.post(URL, {'listing_id': str(listing.id)}, format='json')
        second = client.post(URL, {'listing_id': str(listing.id)}, format='json')

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_200_OK
        assert first.data['conversation']['id'] == second.data['conversation']['id']
        assert Conversation.objects.filter(listing=listing, buyer=buyer).count() == 1

    def test_different_buyers_get_different_conversations(self, client_for, buyer, other_user, listing):
        first = client_for(buyer).post(URL, {'listing_id': str(listing.id)}, format='json')
        second = client_for(other_user).post(URL, {'listing_id': str(listing.id)}, format='json')

        assert first.data['conversation']['id'] != second.data['conversation']['id']
        assert Conversation.objects.filter(listing=listing).count() == 2

    def test_seller_cannot_message_own_listing(self, client_for, seller, listing):
        response = client_for(seller).post(URL, {'listing_id': str(listing.id)}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'self_message'
        assert response.data['detail'] == 'Cannot message yourself.'
        assert Conversation.objects.count() == 0

    def test_unknown_listing_returns_404(self, client_for, buyer):
        response = client_for(buyer).post(URL, {'listing_id': str(uuid.uuid4())}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'listing_not_found'

    def test_malformed_listing_id_returns_404(self, client_for, buyer):
        response = client_for(buyer).post(URL, {'listing_id': 'not-a-uuid'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'listing_not_found'

    def test_missing_listing_id_returns_400(self, client_for, buyer):
        response = client_for(buyer).post(URL, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'listing_id' in response.data

    def test_requires_authentication(self, api_client, listing):
        response = api_client.post(URL, {'listing_id': str(listing.id)}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestGetOrCreateConversation:

    def test_seller_copied_from_listing(self, buyer, seller, listing):
        conversation, created = messaging.get_or_create_conversation(listing.id, buyer)

        assert created is True
        assert conversation.seller_id == seller.id

    def test_existing_conversation_returned_unchanged(self, buyer, listing):
        conversation, _ = messaging.get_or_create_conversation(listing.id, buyer)

        again, created = messaging.get_or_create_conversation(str(listing.id), buyer)

        assert created is False
        assert again.pk == conversation.pk
        assert again.created_at == conversation.created_at

    def test_seller_fixed_at_creation(self, buyer, listing, other_user):
        conversation, _ = messaging.get_or_create_conversation(listing.id, buyer)

        # Listing changes hands after the conversation was opened
        Listing.objects.filter(pk=listing.pk).update(seller=other_user)
        again, _ = messaging.get_or_create_conversation(listing.id, buyer)

        assert again.pk == conversation.pk
        assert again.seller_id == listing.seller_id

    def test_self_messaging_raises(self, seller, listing):
        with pytest.raises(SelfMessaging):
            messaging.get_or_create_conversation(listing.id, seller)

    def test_missing_listing_raises(self, buyer):
        with pytest.raises(ListingNotFound):
            messaging.get_or_create_conversation(uuid.uuid4(), buyer)

    def test_none_listing_id_raises(self, buyer):
        with pytest.raises(ListingNotFound):
            messaging.get_or_create_conversation(None, buyer)

    def test_lost_insert_race_returns_winner(self, buyer, listing):
        """
        A concurrent request inserted the row between our lookup and insert.

        The unique constraint rejects our insert and the existing row is
        returned instead of an error.
        """
        winner = Conversation.objects.create(listing=listing, buyer=buyer, seller=listing.seller)

        # Make the initial lookup miss, as if the winner had not committed yet
        missed_lookup = MagicMock()
        missed_lookup.first.return_value = None
        with patch.object(Conversation.objects, 'filter', return_value=missed_lookup):
            conversation, created = messaging.get_or_create_conversation(listing.id, buyer)

        assert created is False
        assert conversation.pk == winner.pk
        assert Conversation.objects.filter(listing=listing, buyer=buyer).count() == 1
