"""
API views for Luxury Coach Exchange.
"""

import logging

from django.contrib.auth import authenticate, get_user_model
from django.db import IntegrityError
from django.db.models import OuterRef, Subquery
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from . import messaging, payments
from .exceptions import ListingNotFound
from .models import Listing, ListingPhoto, SavedCoach
from .permissions import IsListingOwnerOrReadOnly
from .serializers import (
    ConversationCreateSerializer,
    ConversationListSerializer,
    ConversationSerializer,
    ListingDetailSerializer,
    ListingSummarySerializer,
    ListingWriteSerializer,
    LoginSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    MessageViewSerializer,
    ProfileUpdateSerializer,
    SavedCoachCreateSerializer,
    SignupSerializer,
    UserSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


def get_client_ip(request):
    """
    Get client IP address from request.
    Handles proxy headers for accurate IP detection.
    """
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def issue_tokens(user):
    """Return a fresh access/refresh token pair for the user."""
    refresh = RefreshToken.for_user(user)
    return {
        'token': str(refresh.access_token),
        'refresh': str(refresh),
    }


def with_first_photo(queryset):
    """Annotate listings with the URL of their first gallery photo."""
    first_photo = (
        ListingPhoto.objects
        .filter(listing=OuterRef('pk'))
        .order_by('sort_order', 'created_at')
        .values('url')[:1]
    )
    return queryset.annotate(photo_url=Subquery(first_photo))


# ============================================================================
# Accounts
# ============================================================================

class SignupView(APIView):
    """
    API endpoint for account signup.

    POST /api/auth/signup/
    Request body: {"name": "Pat", "email": "pat@example.com", "password": "...", "role": "seller"}

    Success response (201): {"user": {...}, "token": "<access>", "refresh": "<refresh>"}

    Error responses:
    - 400: Missing or invalid fields
    - 409: Email already registered (including concurrent duplicate signups)
    """
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data['email']
        if User.objects.filter(email__iexact=email).exists():
            return Response(
                {'detail': 'Email already registered.', 'code': 'email_taken'},
                status=status.HTTP_409_CONFLICT
            )

        try:
            user = serializer.save()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            return Response(
                {'detail': 'Email already registered.', 'code': 'email_taken'},
                status=status.HTTP_409_CONFLICT
            )

        logger.info(f"Account created. User ID: {user.id}, Role: {user.role}")
        return Response(
            {'user': UserSerializer(user).data, **issue_tokens(user)},
            status=status.HTTP_201_CREATED
        )


class LoginView(APIView):
    """
    API endpoint for login.

    POST /api/auth/login/
    Request body: {"email": "pat@example.com", "password": "..."}

    Success response (200): {"user": {...}, "token": "<access>", "refresh": "<refresh>"}

    Error responses:
    - 400: Missing fields
    - 401: Invalid credentials (same message for unknown email and wrong password)
    - 429: Too many attempts
    """
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request,
            email=serializer.validated_data['email'],
            password=serializer.validated_data['password']
        )
        if user is None:
            logger.warning(
                f"Failed login attempt. "
                f"Email: {serializer.validated_data['email']}, IP: {get_client_ip(request)}"
            )
            return Response(
                {'detail': 'Invalid credentials.', 'code': 'invalid_credentials'},
                status=status.HTTP_401_UNAUTHORIZED
            )

        logger.info(f"Login. User ID: {user.id}, IP: {get_client_ip(request)}")
        return Response(
            {'user': UserSerializer(user).data, **issue_tokens(user)},
            status=status.HTTP_200_OK
        )


class MeView(APIView):
    """
    GET /api/auth/me/

    Returns the authenticated user's account, including the messaging unlock
    state. Read from the database, not from the token.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        user = get_object_or_404(User, pk=request.user.pk)
        return Response({'user': UserSerializer(user).data})


class ProfileUpdateView(APIView):
    """
    PUT /api/auth/profile/
    Request body: {"name": "...", "phone": "..."} (both optional)

    Returns the updated account. Other account fields are ignored.
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, *args, **kwargs):
        user = get_object_or_404(User, pk=request.user.pk)
        serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        logger.info(f"Profile updated. User ID: {user.id}")
        return Response({'user': UserSerializer(user).data})


# ============================================================================
# Listings
# ============================================================================

class ListingListCreateView(APIView):
    """
    GET /api/listings/
    Public. Active listings, newest first, with seller name and first photo.

    POST /api/listings/
    Authenticated. Creates a listing owned by the caller.
    Request body: listing fields plus optional "photos": ["https://...", ...]

    Success response (201): {"listing": {...}}
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request, *args, **kwargs):
        queryset = with_first_photo(
            Listing.objects.filter(status='active').select_related('seller')
        ).order_by('-created_at')
        serializer = ListingSummarySerializer(queryset, many=True)
        return Response({'listings': serializer.data})

    def post(self, request, *args, **kwargs):
        serializer = ListingWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        listing = serializer.save(seller=request.user)

        logger.info(f"Listing created. Listing ID: {listing.id}, Seller ID: {request.user.pk}")
        listing = Listing.objects.select_related('seller').prefetch_related('photos').get(pk=listing.pk)
        return Response(
            {'listing': ListingDetailSerializer(listing).data},
            status=status.HTTP_201_CREATED
        )


class ListingDetailView(APIView):
    """
    GET /api/listings/<id>/
    Public. Listing with its photo gallery.

    PUT /api/listings/<id>/
    Owner only. Partial update; "photos", if present, replaces the gallery.

    DELETE /api/listings/<id>/
    Owner only. Deletes the listing with its photos, conversations and saves.

    Error responses:
    - 404: Listing not found
    - 403: Caller is not the listing's seller
    """
    permission_classes = [IsListingOwnerOrReadOnly]

    def get_object(self, pk):
        try:
            listing = (
                Listing.objects
                .select_related('seller')
                .prefetch_related('photos')
                .get(pk=pk)
            )
        except Listing.DoesNotExist:
            raise ListingNotFound()
        self.check_object_permissions(self.request, listing)
        return listing

    def get(self, request, pk, *args, **kwargs):
        listing = self.get_object(pk)
        return Response({'listing': ListingDetailSerializer(listing).data})

    def put(self, request, pk, *args, **kwargs):
        listing = self.get_object(pk)
        serializer = ListingWriteSerializer(listing, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        logger.info(f"Listing updated. Listing ID: {listing.id}, Seller ID: {request.user.pk}")
        listing = self.get_object(pk)
        return Response({'listing': ListingDetailSerializer(listing).data})

    def delete(self, request, pk, *args, **kwargs):
        listing = self.get_object(pk)
        listing.delete()

        logger.info(f"Listing deleted. Listing ID: {pk}, Seller ID: {request.user.pk}")
        return Response({'deleted': True})


# ============================================================================
# Conversations and messages
# ============================================================================

class ConversationListCreateView(APIView):
    """
    POST /api/conversations/
    Request body: {"listing_id": "<uuid>"}
    Opens the caller's conversation about a listing, or returns the existing
    one. Response (200): {"conversation": {...}}

    GET /api/conversations/
    Response (200): {"conversations": [...]} newest activity first, each with
    unread_count, last_message, last_message_at and last_message_locked.

    Error responses:
    - 400: listing_id missing, or the caller is the listing's seller
    - 404: Listing not found
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        conversations = messaging.list_conversations(request.user)
        serializer = ConversationListSerializer(conversations, many=True)
        return Response({'conversations': serializer.data})

    def post(self, request, *args, **kwargs):
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        conversation, _created = messaging.get_or_create_conversation(
            serializer.validated_data['listing_id'],
            request.user
        )
        return Response({'conversation': ConversationSerializer(conversation).data})


class ConversationMessagesView(APIView):
    """
    GET /api/conversations/<id>/messages/
    Response (200): {"messages": [...], "locked": bool}
    Buyer messages are replaced by the locked placeholder while the viewing
    seller has not paid. Marks the other participant's messages read.

    POST /api/conversations/<id>/messages/
    Request body: {"text": "..."}
    Response (201): {"message": {...}}

    Error responses:
    - 400: Missing or blank text (code empty_message)
    - 400: Body is not a JSON object
    - 403: Not a participant (code not_participant)
    - 403: Seller has not paid (code payment_required)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk, *args, **kwargs):
        views, locked = messaging.list_messages(pk, request.user)
        return Response({
            'messages': MessageViewSerializer(views, many=True).data,
            'locked': locked,
        })

    def post(self, request, pk, *args, **kwargs):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        message = messaging.append_message(pk, request.user, serializer.validated_data.get('text'))
        return Response(
            {'message': MessageSerializer(message).data},
            status=status.HTTP_201_CREATED
        )


# ============================================================================
# Saved coaches
# ============================================================================

class SavedCoachListCreateView(APIView):
    """
    GET /api/saved/
    Response (200): {"listings": [...]} most recently saved first.

    POST /api/saved/
    Request body: {"listing_id": "<uuid>"}. Saving twice is a no-op.
    Response (200): {"saved": true}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        queryset = with_first_photo(
            Listing.objects
            .filter(saved_by__user=request.user)
            .select_related('seller')
        ).order_by('-saved_by__created_at')
        serializer = ListingSummarySerializer(queryset, many=True)
        return Response({'listings': serializer.data})

    def post(self, request, *args, **kwargs):
        serializer = SavedCoachCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        listing_id = serializer.validated_data['listing_id']
        if not Listing.objects.filter(pk=listing_id).exists():
            raise ListingNotFound()

        try:
            SavedCoach.objects.get_or_create(user=request.user, listing_id=listing_id)
        except IntegrityError:
            # Saved concurrently by another request
            pass
        return Response({'saved': True})


class SavedCoachDeleteView(APIView):
    """
    DELETE /api/saved/<listing_id>/
    Removes the listing from the caller's saved coaches. Removing a listing
    that was not saved is a no-op.
    """
    permission_classes = [IsAuthenticated]

    def delete(self, request, listing_id, *args, **kwargs):
        SavedCoach.objects.filter(user=request.user, listing_id=listing_id).delete()
        return Response({'removed': True})


# ============================================================================
# Payments
# ============================================================================

class CheckoutCreateView(APIView):
    """
    POST /api/stripe/create-checkout/
    Starts the one-time messaging unlock payment.

    Response (200): {"url": "<stripe checkout url>", "session_id": "cs_..."}

    Error responses:
    - 400: Already unlocked (code already_unlocked)
    - 500: Stripe rejected the request (code payment_setup_failed)
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        return Response(payments.create_unlock_checkout(request.user))


class PaymentStatusView(APIView):
    """
    GET /api/stripe/status/
    Response (200): {"paid": bool, "paid_at": timestamp or null}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        user = get_object_or_404(User, pk=request.user.pk)
        data = UserSerializer(user).data
        return Response({'paid': data['paid'], 'paid_at': data['paid_at']})


class StripeWebhookView(APIView):
    """
    POST /api/stripe/webhook/

    Receives Stripe events. The signature is verified against the raw body
    before anything is parsed.

    Response (200): {"received": true}

    Error responses:
    - 400: Signature verification failed

    After verification the endpoint always acknowledges: events that cannot
    be processed are logged and dropped, since Stripe retries every non-2xx
    response.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        event = payments.verify_webhook(
            request.body,
            request.META.get('HTTP_STRIPE_SIGNATURE')
        )

        try:
            payments.dispatch_event(event)
        except Exception:
            logger.exception(f"Failed to process Stripe event {event.id} ({event.type}).")

        return Response({'received': True})


# ============================================================================
# Stats and health
# ============================================================================

class StatsView(APIView):
    """
    GET /api/stats/
    Public marketplace counters.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, *args, **kwargs):
        return Response({
            'active_listings': Listing.objects.filter(status='active').count(),
            'total_users': User.objects.count(),
            'paid_sellers': User.objects.filter(paid=True).count(),
        })


class HealthView(APIView):
    """GET /api/health/"""
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, *args, **kwargs):
        return Response({'status': 'ok', 'timestamp': timezone.now().isoformat()})
