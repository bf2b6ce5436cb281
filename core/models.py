"""
Data model for Luxury Coach Exchange.

Accounts, coach listings with photo galleries, buyer/seller conversations,
messages and saved coaches.
"""

import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _

from .validators import validate_phone_number, validate_listing_year


class AccountManager(UserManager):
    """
    Manager for email-identified accounts.

    ``username`` is still required by AbstractUser, so it is derived from the
    email address when the caller does not supply one.
    """

    def _create_user(self, username, email, password, **extra_fields):
        email = self.normalize_email(email or '').lower()
        if not email:
            raise ValueError('The email address must be set.')
        if not username:
            username = email
        return super()._create_user(username, email, password, **extra_fields)

    def create_user(self, username=None, email=None, password=None, **extra_fields):
        return super().create_user(username, email, password, **extra_fields)

    def create_superuser(self, username=None, email=None, password=None, **extra_fields):
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Marketplace account.

    A user can buy, sell or both. Sellers must clear a one-time payment
    (``paid``) before they can read buyer messages or reply to them.

    Additional fields:
    - name: Display name
    - email: Required, unique email address (stored lowercase)
    - role: 'buyer', 'seller' or 'both'
    - phone: Optional phone number
    - avatar_url: Optional avatar image URL
    - paid: Messaging unlock flag, never reset once set
    - paid_at: When the unlock payment cleared
    - stripe_customer_id / stripe_payment_id: Payment references
    """

    ROLE_CHOICES = [
        ('buyer', 'Buyer'),
        ('seller', 'Seller'),
        ('both', 'Buyer & Seller'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(
        _('name'),
        max_length=255,
        blank=True,
        default='',
        help_text=_('Display name shown to other users.')
    )

    email = models.EmailField(
        _('email address'),
        unique=True,
        blank=False,
        null=False,
        error_messages={
            'unique': _('Email already registered.'),
        },
        help_text=_('Required. Used to sign in.')
    )

    # Emails can be longer than AbstractUser's 150 character usernames
    username = models.CharField(
        _('username'),
        max_length=255,
        unique=True,
        help_text=_('Internal identifier, derived from the email address.')
    )

    role = models.CharField(
        _('role'),
        max_length=20,
        choices=ROLE_CHOICES,
        default='buyer',
        help_text=_('Whether the user buys, sells, or both.')
    )

    phone = models.CharField(
        _('phone'),
        max_length=50,
        blank=True,
        default='',
        validators=[validate_phone_number],
        help_text=_('Optional contact phone number.')
    )

    avatar_url = models.URLField(
        _('avatar url'),
        max_length=500,
        blank=True,
        default='',
        help_text=_('Optional avatar image URL.')
    )

    paid = models.BooleanField(
        _('messaging unlocked'),
        default=False,
        help_text=_('Set once the one-time messaging unlock payment clears.')
    )

    paid_at = models.DateTimeField(
        _('paid at'),
        blank=True,
        null=True,
        help_text=_('When the messaging unlock payment cleared.')
    )

    stripe_customer_id = models.CharField(
        _('stripe customer id'),
        max_length=255,
        blank=True,
        default=''
    )

    stripe_payment_id = models.CharField(
        _('stripe payment id'),
        max_length=255,
        blank=True,
        default='',
        help_text=_('Payment reference of the unlock payment.')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    objects = AccountManager()

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role'], name='user_role_idx'),
            models.Index(fields=['paid'], name='user_paid_idx'),
        ]

    def __str__(self):
        return self.email or self.username

    @property
    def display_name(self):
        return self.name or self.email

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - Email is lowercase for case-insensitive uniqueness
        - The messaging unlock is never revoked

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if self.email:
            self.email = self.email.lower()

        if self.pk is not None and not self.paid:
            was_paid = User.objects.filter(pk=self.pk, paid=True).exists()
            if was_paid:
                raise ValidationError({
                    'paid': _('Messaging unlock cannot be revoked.')
                })

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.lower()

        # Updates are validated. Creation skips full_clean so that duplicate
        # emails surface as IntegrityError from the database.
        if not self._state.adding:
            self.full_clean(exclude=['password'])

        super().save(*args, **kwargs)


class Listing(models.Model):
    """
    A coach offered for sale.

    Fields:
    - seller: Owner of the listing
    - year, model, converter, num: Coach identification
    - price: Asking price in whole dollars (0 means "call for price")
    - price_display: Free-form price label shown to buyers
    - mileage, slides, engine, length, color, description, tag: Details
    - status: active, sold, pending or draft
    """

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('sold', 'Sold'),
        ('pending', 'Pending'),
        ('draft', 'Draft'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    seller = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='listings',
        help_text=_('User selling this coach')
    )

    year = models.PositiveIntegerField(
        _('year'),
        validators=[validate_listing_year],
        help_text=_('Model year of the coach')
    )

    model = models.CharField(_('model'), max_length=100, default='H3-45')

    converter = models.CharField(
        _('converter'),
        max_length=100,
        help_text=_('Coach converter, e.g. Marathon or Liberty')
    )

    num = models.CharField(_('coach number'), max_length=50, blank=True, default='')

    price = models.PositiveIntegerField(
        _('price'),
        default=0,
        help_text=_('Asking price in USD, 0 when not disclosed')
    )

    price_display = models.CharField(_('price display'), max_length=50, blank=True, default='')

    mileage = models.CharField(_('mileage'), max_length=50, blank=True, default='')

    slides = models.CharField(_('slides'), max_length=50, blank=True, default='')

    engine = models.CharField(_('engine'), max_length=100, default='Volvo D13')

    length = models.CharField(_('length'), max_length=20, default='45 ft')

    color = models.CharField(_('color'), max_length=100, blank=True, default='')

    description = models.TextField(_('description'), blank=True, default='')

    tag = models.CharField(_('tag'), max_length=50, blank=True, default='')

    status = models.CharField(
        _('status'),
        max_length=20,
        choices=STATUS_CHOICES,
        default='active',
        help_text=_('Visibility and sale state of the listing')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('listing')
        verbose_name_plural = _('listings')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['seller'], name='listing_seller_idx'),
            models.Index(fields=['status'], name='listing_status_idx'),
            models.Index(fields=['converter'], name='listing_converter_idx'),
            models.Index(fields=['price'], name='listing_price_idx'),
        ]

    def __str__(self):
        return f"{self.year} {self.converter} {self.model}".strip()

    def clean(self):
        super().clean()

        if not self.converter or not self.converter.strip():
            raise ValidationError({
                'converter': _('Converter cannot be empty.')
            })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def is_active(self):
        return self.status == 'active'


class ListingPhoto(models.Model):
    """Photo URL in a listing's gallery, ordered by ``sort_order``."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='photos',
        help_text=_('Listing this photo belongs to')
    )

    url = models.URLField(_('url'), max_length=1000)

    sort_order = models.PositiveIntegerField(_('sort order'), default=0)

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('listing photo')
        verbose_name_plural = _('listing photos')
        ordering = ['sort_order', 'created_at']
        indexes = [
            models.Index(fields=['listing', 'sort_order'], name='listing_photo_order_idx'),
        ]

    def __str__(self):
        return f"Photo {self.sort_order} for {self.listing}"


class Conversation(models.Model):
    """
    Buyer/seller thread about one listing.

    There is at most one conversation per (listing, buyer). The seller is
    copied from the listing when the conversation is opened and is not
    re-derived if the listing later changes hands.

    ``updated_at`` is bumped whenever a message is appended and drives the
    ordering of conversation lists.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='conversations',
        help_text=_('Listing the conversation is about')
    )

    buyer = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='buyer_conversations',
        help_text=_('User who opened the conversation')
    )

    seller = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='seller_conversations',
        help_text=_('Seller of the listing at the time the conversation was opened')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('conversation')
        verbose_name_plural = _('conversations')
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=['buyer'], name='conversation_buyer_idx'),
            models.Index(fields=['seller'], name='conversation_seller_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['listing', 'buyer'],
                name='unique_conversation_per_listing_buyer'
            )
        ]

    def __str__(self):
        return f"Conversation about {self.listing_id} with {self.buyer_id}"

    def is_participant(self, user_id):
        return user_id in (self.buyer_id, self.seller_id)


class Message(models.Model):
    """
    Message in a conversation.

    Messages are append-only. The only mutable field is ``read``, which moves
    from False to True when the counterpart views the conversation.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name='messages',
        help_text=_('Conversation this message belongs to')
    )

    sender = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='sent_messages',
        help_text=_('User who wrote the message')
    )

    text = models.TextField(_('text'))

    read = models.BooleanField(
        _('read'),
        default=False,
        help_text=_('Whether the counterpart has viewed the message')
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _('message')
        verbose_name_plural = _('messages')
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['conversation', 'created_at'], name='message_conv_created_idx'),
            models.Index(fields=['conversation', 'read'], name='message_conv_read_idx'),
        ]

    def __str__(self):
        return f"Message from {self.sender_id} in {self.conversation_id}"


class SavedCoach(models.Model):
    """A listing on a user's favorites list."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='saved_coaches'
    )

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='saved_by'
    )

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('saved coach')
        verbose_name_plural = _('saved coaches')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user'], name='saved_coach_user_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'listing'],
                name='unique_saved_coach_per_user'
            )
        ]

    def __str__(self):
        return f"{self.user_id} saved {self.listing_id}"
