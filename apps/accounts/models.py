from django.conf import settings
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.core.cache import cache
from django.db.models.signals import post_save
from django.dispatch import receiver


class UserRole(models.TextChoices):
    ADMIN = "ADMIN", "Admin"
    ADMINISTRATOR = "ADMINISTRATOR", "Administrator"
    MANAGER = "MANAGER", "Manager"
    STAFF = "STAFF", "Staff"


class CustomUserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("The Email field must be set")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", UserRole.ADMIN)
        if not extra_fields.get("is_staff"):
            raise ValueError("Superuser must have is_staff=True.")
        if not extra_fields.get("is_superuser"):
            raise ValueError("Superuser must have is_superuser=True.")
        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    username = None  # Remove the username field
    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=50, blank=True, null=True)
    last_name = models.CharField(max_length=50, blank=True, null=True)
    role = models.CharField(max_length=20, choices=UserRole.choices, default=UserRole.STAFF)
    is_verified = models.BooleanField(default=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = CustomUserManager()

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def is_administrator(self):
        return self.is_superuser or self.role in settings.ADMIN_ROLES

    @property
    def display_name(self):
        """Name shown in notification messages, cached for an hour."""
        cache_key = f"user_display_name:{self.id}"
        cached_name = cache.get(cache_key)

        if cached_name is not None:
            return cached_name

        name = self.full_name or self.email
        cache.set(cache_key, name, 3600)
        return name

    def clear_cache(self):
        """Clear all cached data for this user"""
        cache.delete(f"user_display_name:{self.id}")
        cache.delete(f"user_notifications:{self.id}")
        cache.delete(f"user_unread_count:{self.id}")


@receiver(post_save, sender=User)
def clear_user_cache(sender, instance, **kwargs):
    """Clear user cache when user model is updated"""
    instance.clear_cache()
