"""
Custom permission classes for Luxury Coach Exchange.
"""

from rest_framework import permissions

from .exceptions import NotListingOwner


class IsListingOwnerOrReadOnly(permissions.BasePermission):
    """
    Object-level permission for listings.

    Anyone may read a listing. Only its seller may change or delete it;
    other authenticated users get 403 with code ``not_listing_owner``.

    Usage:
        class ListingDetailView(APIView):
            permission_classes = [IsListingOwnerOrReadOnly]
    """

    def has_permission(self, request, view):
        """
        Reads are public; writes require an authenticated user.

        Args:
            request: HTTP request object
            view: View being accessed

        Returns:
            bool: True if the request may proceed to the object check
        """
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        """
        Check that the user owns the listing for write methods.

        Args:
            request: HTTP request object
            view: View being accessed
            obj: Listing instance

        Returns:
            bool: True if the user may act on this listing

        Raises:
            NotListingOwner: If a non-owner attempts a write
        """
        if request.method in permissions.SAFE_METHODS:
            return True

        if obj.seller_id != request.user.pk:
            raise NotListingOwner()

        return True
