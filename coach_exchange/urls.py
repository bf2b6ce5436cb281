"""
URL configuration for coach_exchange project.

All API endpoints live under /api/. The Django admin is mounted at /admin/.
"""
from django.contrib import admin
from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from core.views import (
    CheckoutCreateView,
    ConversationListCreateView,
    ConversationMessagesView,
    HealthView,
    ListingDetailView,
    ListingListCreateView,
    LoginView,
    MeView,
    PaymentStatusView,
    ProfileUpdateView,
    SavedCoachDeleteView,
    SavedCoachListCreateView,
    SignupView,
    StatsView,
    StripeWebhookView,
)


urlpatterns = [
    path('admin/', admin.site.urls),

    # Authentication endpoints
    path('api/auth/signup/', SignupView.as_view(), name='signup'),
    path('api/auth/login/', LoginView.as_view(), name='login'),
    path('api/auth/me/', MeView.as_view(), name='me'),
    path('api/auth/profile/', ProfileUpdateView.as_view(), name='profile'),
    path('api/auth/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Listing endpoints
    path('api/listings/', ListingListCreateView.as_view(), name='listing_list'),
    path('api/listings/<uuid:pk>/', ListingDetailView.as_view(), name='listing_detail'),

    # Messaging endpoints
    path('api/conversations/', ConversationListCreateView.as_view(), name='conversation_list'),
    path(
        'api/conversations/<str:pk>/messages/',
        ConversationMessagesView.as_view(),
        name='conversation_messages'
    ),

    # Saved coaches
    path('api/saved/', SavedCoachListCreateView.as_view(), name='saved_list'),
    path('api/saved/<uuid:listing_id>/', SavedCoachDeleteView.as_view(), name='saved_delete'),

    # Payments
    path('api/stripe/create-checkout/', CheckoutCreateView.as_view(), name='stripe_checkout'),
    path('api/stripe/status/', PaymentStatusView.as_view(), name='stripe_status'),
    path('api/stripe/webhook/', StripeWebhookView.as_view(), name='stripe_webhook'),

    # Stats and health
    path('api/stats/', StatsView.as_view(), name='stats'),
    path('api/health/', HealthView.as_view(), name='health'),
]
