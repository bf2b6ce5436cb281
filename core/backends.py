"""
Authentication backend that signs users in by email address.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()


class EmailBackend(ModelBackend):
    """
    Authenticate with email and password.

    Emails are stored lowercase, so the lookup is case-insensitive. Inactive
    accounts are rejected by ``user_can_authenticate``.
    """

    def authenticate(self, request, username=None, password=None, email=None, **kwargs):
        """
        Authenticate a user by email.

        Args:
            request: HTTP request object (may be None)
            username: Accepted as the email for compatibility with admin login
            password: User password
            email: Email address

        Returns:
            User object if authentication succeeds, None otherwise
        """
        email = email or username
        if not email or password is None:
            return None

        user = User.objects.filter(email__iexact=email.strip()).first()
        if user is None:
            # Hash anyway so unknown emails take as long as wrong passwords
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
