"""
Tests for the data model.

Covers account creation and validation, the irrevocable messaging unlock,
listing validation and the uniqueness constraints on conversations and
saved coaches.
"""

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.test import TestCase
from django.utils import timezone

from core.models import Conversation, Listing, ListingPhoto, Message, SavedCoach
from core.validators import MIN_LISTING_YEAR

User = get_user_model()


class UserModelTests(TestCase):
    """Test account creation and constraints."""

    def test_email_is_username_and_lowercased(self):
        user = User.objects.create_user(email='Mixed.Case@Example.COM', password='CoachPass123!')

        self.assertEqual(user.email, 'mixed.case@example.com')
        self.assertEqual(user.username, 'mixed.case@example.com')

    def test_email_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='CoachPass123!')

    def test_duplicate_email_rejected(self):
        User.objects.create_user(email='dup@example.com', password='CoachPass123!')

        with self.assertRaises(IntegrityError):
            User.objects.create_user(email='DUP@example.com', password='CoachPass123!', username='other')

    def test_defaults(self):
        user = User.objects.create_user(email='new@example.com', password='CoachPass123!')

        self.assertEqual(user.role, 'buyer')
        self.assertFalse(user.paid)
        self.assertIsNone(user.paid_at)
        self.assertEqual(user.stripe_payment_id, '')

    def test_display_name_falls_back_to_email(self):
        user = User.objects.create_user(email='anon@example.com', password='CoachPass123!')

        self.assertEqual(user.display_name, 'anon@example.com')
        user.name = 'Avery'
        self.assertEqual(user.display_name, 'Avery')

    def test_superuser(self):
        admin = User.objects.create_superuser(email='admin@example.com', password='CoachPass123!')

        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)

    def test_invalid_phone_rejected_on_update(self):
        user = User.objects.create_user(email='phone@example.com', password='CoachPass123!')
        user.phone = 'call me'

        with self.assertRaises(ValidationError):
            user.save()

    def test_invalid_role_rejected_on_update(self):
        user = User.objects.create_user(email='role@example.com', password='CoachPass123!')
        user.role = 'admin'

        with self.assertRaises(ValidationError):
            user.save()


class MessagingUnlockTests(TestCase):
    """The paid flag only ever moves from False to True."""

    def setUp(self):
        self.user = User.objects.create_user(email='seller@example.com', password='CoachPass123!')
        User.objects.filter(pk=self.user.pk).update(paid=True, paid_at=timezone.now())
        self.user.refresh_from_db()

    def test_cannot_revoke_through_save(self):
        self.user.paid = False

        with self.assertRaises(ValidationError) as ctx:
            self.user.save()

        self.assertIn('paid', ctx.exception.message_dict)
        self.user.refresh_from_db()
        self.assertTrue(self.user.paid)

    def test_other_updates_keep_unlock(self):
        self.user.name = 'Renamed'
        self.user.save()

        self.user.refresh_from_db()
        self.assertTrue(self.user.paid)
        self.assertEqual(self.user.name, 'Renamed')


class ListingModelTests(TestCase):

    def setUp(self):
        self.seller = User.objects.create_user(email='seller@example.com', password='CoachPass123!')

    def test_defaults(self):
        listing = Listing.objects.create(seller=self.seller, year=2020, converter='Marathon')

        self.assertEqual(listing.model, 'H3-45')
        self.assertEqual(listing.engine, 'Volvo D13')
        self.assertEqual(listing.length, '45 ft')
        self.assertEqual(listing.price, 0)
        self.assertEqual(listing.status, 'active')
        self.assertTrue(listing.is_active())

    def test_blank_converter_rejected(self):
        with self.assertRaises(ValidationError):
            Listing.objects.create(seller=self.seller, year=2020, converter='   ')

    def test_year_bounds(self):
        with self.assertRaises(ValidationError):
            Listing.objects.create(seller=self.seller, year=MIN_LISTING_YEAR - 1, converter='Marathon')

        with self.assertRaises(ValidationError):
            Listing.objects.create(seller=self.seller, year=timezone.now().year + 2, converter='Marathon')

        listing = Listing.objects.create(seller=self.seller, year=timezone.now().year + 1, converter='Marathon')
        self.assertIsNotNone(listing.pk)

    def test_invalid_status_rejected(self):
        with self.assertRaises(ValidationError):
            Listing.objects.create(seller=self.seller, year=2020, converter='Marathon', status='archived')

    def test_photo_ordering(self):
        listing = Listing.objects.create(seller=self.seller, year=2020, converter='Marathon')
        ListingPhoto.objects.create(listing=listing, url='https://img.example.com/2.jpg', sort_order=2)
        ListingPhoto.objects.create(listing=listing, url='https://img.example.com/1.jpg', sort_order=1)

        self.assertEqual(
            [p.url for p in listing.photos.all()],
            ['https://img.example.com/1.jpg', 'https://img.example.com/2.jpg']
        )


class ConversationModelTests(TestCase):

    def setUp(self):
        self.seller = User.objects.create_user(email='seller@example.com', password='CoachPass123!')
        self.buyer = User.objects.create_user(email='buyer@example.com', password='CoachPass123!')
        self.listing = Listing.objects.create(seller=self.seller, year=2020, converter='Marathon')

    def test_one_conversation_per_listing_and_buyer(self):
        Conversation.objects.create(listing=self.listing, buyer=self.buyer, seller=self.seller)

        with self.assertRaises(IntegrityError):
            Conversation.objects.create(listing=self.listing, buyer=self.buyer, seller=self.seller)

    def test_is_participant(self):
        conversation = Conversation.objects.create(listing=self.listing, buyer=self.buyer, seller=self.seller)
        stranger = User.objects.create_user(email='x@example.com', password='CoachPass123!')

        self.assertTrue(conversation.is_participant(self.buyer.pk))
        self.assertTrue(conversation.is_participant(self.seller.pk))
        self.assertFalse(conversation.is_participant(stranger.pk))

    def test_new_message_is_unread(self):
        conversation = Conversation.objects.create(listing=self.listing, buyer=self.buyer, seller=self.seller)
        message = Message.objects.create(conversation=conversation, sender=self.buyer, text='Hi')

        self.assertFalse(message.read)

    def test_saved_coach_unique_per_user(self):
        SavedCoach.objects.create(user=self.buyer, listing=self.listing)

        with self.assertRaises(IntegrityError):
            SavedCoach.objects.create(user=self.buyer, listing=self.listing)
