"""
Django admin configuration for accounts, listings and messaging.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import Conversation, Listing, ListingPhoto, Message, SavedCoach, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for accounts.

    Payment fields are read-only: only the Stripe webhook unlocks messaging.
    """

    list_display = [
        'email',
        'name',
        'role',
        'paid',
        'paid_at',
        'is_staff',
        'is_active',
        'created_at',
    ]

    list_filter = [
        'role',
        'paid',
        'is_staff',
        'is_active',
        'created_at',
    ]

    search_fields = [
        'email',
        'name',
        'phone',
        'stripe_customer_id',
        'stripe_payment_id',
    ]

    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('email', 'username', 'password')
        }),
        (_('Profile'), {
            'fields': ('name', 'role', 'phone', 'avatar_url')
        }),
        (_('Messaging Unlock'), {
            'fields': ('paid', 'paid_at', 'stripe_customer_id', 'stripe_payment_id')
        }),
        (_('Permissions'), {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'username',
                'email',
                'name',
                'role',
                'password1',
                'password2',
            ),
        }),
    )

    readonly_fields = [
        'paid',
        'paid_at',
        'stripe_customer_id',
        'stripe_payment_id',
        'created_at',
        'updated_at',
        'last_login',
        'date_joined',
    ]

    date_hierarchy = 'created_at'

    list_per_page = 25

    def get_readonly_fields(self, request, obj=None):
        if obj:
            return self.readonly_fields
        return []


class ListingPhotoInline(admin.TabularInline):
    """Inline admin for listing photos."""
    model = ListingPhoto
    extra = 1
    fields = ['url', 'sort_order', 'created_at']
    readonly_fields = ['created_at']
    ordering = ['sort_order']


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    """Admin interface for Listing model."""

    list_display = [
        'year',
        'converter',
        'model',
        'num',
        'seller',
        'price_display',
        'status',
        'created_at',
    ]

    list_filter = [
        'status',
        'converter',
        'year',
        'created_at',
    ]

    search_fields = [
        'converter',
        'model',
        'num',
        'description',
        'seller__email',
        'seller__name',
    ]

    readonly_fields = ['created_at', 'updated_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25

    inlines = [ListingPhotoInline]

    fieldsets = (
        (None, {
            'fields': ('seller', 'status', 'tag')
        }),
        (_('Coach'), {
            'fields': (
                'year',
                'model',
                'converter',
                'num',
                'mileage',
                'slides',
                'engine',
                'length',
                'color',
                'description',
            )
        }),
        (_('Pricing'), {
            'fields': ('price', 'price_display')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


class MessageInline(admin.TabularInline):
    """Read-only message history shown on a conversation."""
    model = Message
    extra = 0
    fields = ['sender', 'text', 'read', 'created_at']
    readonly_fields = fields
    ordering = ['created_at']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = [
        'id',
        'listing',
        'buyer',
        'seller',
        'created_at',
        'updated_at',
    ]

    list_filter = [
        'created_at',
        'updated_at',
    ]

    search_fields = [
        'buyer__email',
        'seller__email',
        'listing__converter',
        'listing__num',
    ]

    readonly_fields = ['listing', 'buyer', 'seller', 'created_at', 'updated_at']

    ordering = ['-updated_at']

    list_per_page = 25

    inlines = [MessageInline]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        'id',
        'conversation',
        'sender',
        'read',
        'created_at',
    ]

    list_filter = [
        'read',
        'created_at',
    ]

    search_fields = [
        'sender__email',
        'text',
    ]

    readonly_fields = ['conversation', 'sender', 'created_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 50


@admin.register(SavedCoach)
class SavedCoachAdmin(admin.ModelAdmin):
    """Admin interface for SavedCoach model."""

    list_display = [
        'user',
        'listing',
        'created_at',
    ]

    search_fields = [
        'user__email',
        'listing__converter',
    ]

    readonly_fields = ['created_at']

    ordering = ['-created_at']

    list_per_page = 50
