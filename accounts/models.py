from django.conf import settings
from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class MarketplaceUserManager(UserManager):
    """Manager that keys users by the identity provider's opaque user ID."""

    def _create_user(self, username, email, password, **extra_fields):
        # Staff accounts created from the shell reuse the username as identity ID
        extra_fields.setdefault('id', username)
        return super()._create_user(username, email, password, **extra_fields)

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault('role', User.UserRole.ADMIN)
        extra_fields.setdefault('is_verified', True)
        return super().create_superuser(username, email, password, **extra_fields)

    def upsert_from_identity(self, identity):
        """
        Return the User for an identity, creating it on first sight.

        Returns:
            (user, created) tuple. An existing user is returned unchanged.
        """
        email = (identity.email or '').strip().lower()
        return self.get_or_create(
            id=identity.uid,
            defaults={
                'username': identity.uid,
                'email': email,
                'name': identity.name or email.split('@')[0],
                'role': User.UserRole.CUSTOMER,
                'is_verified': self.model.is_institution_email(email),
            },
        )


class User(AbstractUser):
    """
    Marketplace user, one per identity-provider account.

    The primary key is the identity provider's user ID; passwords are only
    used for Django admin staff accounts.
    """

    id = models.CharField(primary_key=True, max_length=128, editable=False)

    class UserRole(models.TextChoices):
        CUSTOMER = 'customer', 'Customer'
        SHOP_OWNER = 'shop_owner', 'Shop Owner'
        ADMIN = 'admin', 'Administrator'

    name = models.CharField(max_length=200, blank=True)

    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CUSTOMER,
        db_index=True,
        help_text="Role resolved by the authorization gate; never taken from the client"
    )

    is_verified = models.BooleanField(
        default=False,
        help_text="True when the email belongs to the institution's domain"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MarketplaceUserManager()

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role', 'is_verified'], name='users_role_verified_idx'),
        ]

    def __str__(self):
        return f"{self.name or self.email} ({self.get_role_display()})"

    @staticmethod
    def is_institution_email(email):
        """Match the email domain against the suffix on a label boundary."""
        if not email or '@' not in email:
            return False
        domain = email.rsplit('@', 1)[-1].lower()
        suffix = settings.INSTITUTION_EMAIL_SUFFIX.lower().lstrip('@.')
        return bool(suffix) and (domain == suffix or domain.endswith('.' + suffix))

    @property
    def is_admin(self):
        return self.role == self.UserRole.ADMIN

    @property
    def is_shop_owner(self):
        return self.role == self.UserRole.SHOP_OWNER

    @property
    def is_customer(self):
        return self.role == self.UserRole.CUSTOMER
