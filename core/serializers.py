"""
Serializers for accounts, listings, conversations and saved coaches.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from rest_framework import serializers

from .models import Conversation, Listing, ListingPhoto, Message

User = get_user_model()


# ============================================================================
# Accounts
# ============================================================================

class UserSerializer(serializers.ModelSerializer):
    """
    Account details returned to the account owner.

    Excludes password, permissions and payment provider references.
    """

    class Meta:
        model = User
        fields = [
            'id',
            'name',
            'email',
            'role',
            'phone',
            'avatar_url',
            'paid',
            'paid_at',
            'created_at',
        ]
        read_only_fields = fields


class SignupSerializer(serializers.Serializer):
    """
    Serializer for account signup.

    Fields:
    - name: Required display name
    - email: Required, valid email format
    - password: Required, checked with Django's password validators
    - role: Optional, 'buyer' (default), 'seller' or 'both'

    Email uniqueness is enforced by the view (409) and the database.
    """

    name = serializers.CharField(max_length=255)
    email = serializers.EmailField(max_length=254)
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})
    role = serializers.ChoiceField(
        choices=[choice for choice, _ in User.ROLE_CHOICES],
        default='buyer'
    )

    def validate_email(self, value):
        return value.strip().lower()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name cannot be empty.')
        return value

    def validate_password(self, value):
        try:
            validate_password(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return value

    def create(self, validated_data):
        with transaction.atomic():
            return User.objects.create_user(
                email=validated_data['email'],
                password=validated_data['password'],
                name=validated_data['name'],
                role=validated_data['role'],
            )


class LoginSerializer(serializers.Serializer):
    """
    Serializer for login with email and password.

    Minimal validation to avoid revealing which emails exist; the view
    authenticates.
    """

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """
    Serializer for profile updates.

    Only ``name`` and ``phone`` can be changed here. Email, role and the
    payment fields are not writable through the API.
    """

    class Meta:
        model = User
        fields = ['name', 'phone']
        extra_kwargs = {
            'name': {'required': False},
            'phone': {'required': False, 'allow_blank': True},
        }


# ============================================================================
# Listings
# ============================================================================

LISTING_FIELDS = [
    'id',
    'seller_id',
    'year',
    'model',
    'converter',
    'num',
    'price',
    'price_display',
    'mileage',
    'slides',
    'engine',
    'length',
    'color',
    'description',
    'tag',
    'status',
    'created_at',
    'updated_at',
]


class ListingPhotoSerializer(serializers.ModelSerializer):
    class Meta:
        model = ListingPhoto
        fields = ['id', 'url', 'sort_order']
        read_only_fields = fields


class ListingSummarySerializer(serializers.ModelSerializer):
    """
    Listing as shown in the public index and saved coaches.

    Expects ``photo_url`` to be annotated on the queryset and the seller to be
    loaded with select_related.
    """

    seller_id = serializers.UUIDField(read_only=True)
    seller_name = serializers.CharField(source='seller.display_name', read_only=True)
    photo_url = serializers.CharField(read_only=True, allow_null=True)

    class Meta:
        model = Listing
        fields = LISTING_FIELDS + ['seller_name', 'photo_url']
        read_only_fields = fields


class ListingDetailSerializer(serializers.ModelSerializer):
    """Single listing with its full photo gallery."""

    seller_id = serializers.UUIDField(read_only=True)
    seller_name = serializers.CharField(source='seller.display_name', read_only=True)
    photos = ListingPhotoSerializer(many=True, read_only=True)

    class Meta:
        model = Listing
        fields = LISTING_FIELDS + ['seller_name', 'photos']
        read_only_fields = fields


class ListingWriteSerializer(serializers.ModelSerializer):
    """
    Serializer for creating and updating listings.

    ``photos`` is an ordered list of image URLs. On create it seeds the
    gallery; on update, when provided, it replaces the gallery.
    The seller is always the authenticated user.
    """

    photos = serializers.ListField(
        child=serializers.URLField(max_length=1000),
        required=False,
        write_only=True,
        max_length=50
    )

    class Meta:
        model = Listing
        fields = [
            'year',
            'model',
            'converter',
            'num',
            'price',
            'price_display',
            'mileage',
            'slides',
            'engine',
            'length',
            'color',
            'description',
            'tag',
            'status',
            'photos',
        ]
        extra_kwargs = {
            'model': {'required': False},
            'engine': {'required': False},
            'length': {'required': False},
            'price': {'required': False},
        }

    def _save_photos(self, listing, urls):
        ListingPhoto.objects.bulk_create([
            ListingPhoto(listing=listing, url=url, sort_order=index)
            for index, url in enumerate(urls)
        ])

    def create(self, validated_data):
        photos = validated_data.pop('photos', [])
        with transaction.atomic():
            listing = Listing.objects.create(**validated_data)
            self._save_photos(listing, photos)
        return listing

    def update(self, instance, validated_data):
        photos = validated_data.pop('photos', None)
        with transaction.atomic():
            for attr, value in validated_data.items():
                setattr(instance, attr, value)
            instance.save()
            if photos is not None:
                instance.photos.all().delete()
                self._save_photos(instance, photos)
        return instance


# ============================================================================
# Conversations and messages
# ============================================================================

class ConversationCreateSerializer(serializers.Serializer):
    """
    Request body for opening a conversation.

    The id is parsed by the messaging service so that malformed ids are
    reported as a missing listing.
    """

    listing_id = serializers.CharField()


class ConversationSerializer(serializers.ModelSerializer):
    listing_id = serializers.UUIDField(read_only=True)
    buyer_id = serializers.UUIDField(read_only=True)
    seller_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Conversation
        fields = ['id', 'listing_id', 'buyer_id', 'seller_id', 'created_at', 'updated_at']
        read_only_fields = fields


class ConversationListSerializer(ConversationSerializer):
    """
    Conversation list entry with listing summary and activity.

    Reads the annotations added by ``core.messaging.list_conversations``.
    """

    year = serializers.IntegerField(source='listing.year', read_only=True)
    model = serializers.CharField(source='listing.model', read_only=True)
    converter = serializers.CharField(source='listing.converter', read_only=True)
    num = serializers.CharField(source='listing.num', read_only=True)
    price_display = serializers.CharField(source='listing.price_display', read_only=True)
    listing_photo = serializers.CharField(read_only=True, allow_null=True)
    buyer_name = serializers.CharField(source='buyer.display_name', read_only=True)
    seller_name = serializers.CharField(source='seller.display_name', read_only=True)
    last_message = serializers.CharField(read_only=True, allow_null=True)
    last_message_at = serializers.DateTimeField(read_only=True, allow_null=True)
    last_message_locked = serializers.BooleanField(read_only=True)
    unread_count = serializers.IntegerField(read_only=True)

    class Meta(ConversationSerializer.Meta):
        fields = ConversationSerializer.Meta.fields + [
            'year',
            'model',
            'converter',
            'num',
            'price_display',
            'listing_photo',
            'buyer_name',
            'seller_name',
            'last_message',
            'last_message_at',
            'last_message_locked',
            'unread_count',
        ]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    """
    Request body for sending a message.

    Blank or missing text passes here and is rejected by the messaging
    service after the participant check. Text is stored exactly as sent.
    """

    text = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=False)


class MessageSerializer(serializers.ModelSerializer):
    """Stored message as returned to its sender."""

    conversation_id = serializers.UUIDField(read_only=True)
    sender_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'conversation_id', 'sender_id', 'text', 'read', 'created_at']
        read_only_fields = fields


class MessageViewSerializer(serializers.Serializer):
    """
    Message as rendered for one viewer by ``core.messaging.list_messages``.

    ``locked`` messages carry the placeholder text instead of the original.
    """

    id = serializers.UUIDField()
    conversation_id = serializers.UUIDField()
    sender_id = serializers.UUIDField()
    sender_name = serializers.CharField()
    text = serializers.CharField()
    read = serializers.BooleanField()
    locked = serializers.BooleanField()
    created_at = serializers.DateTimeField()


# ============================================================================
# Saved coaches
# ============================================================================

class SavedCoachCreateSerializer(serializers.Serializer):
    listing_id = serializers.UUIDField()
