from django.conf import settings
from django.db import models


class Profile(models.Model):
    """Storefront data attached to Django's auth user.

    ``role`` drives authorization: vendors own products, vendors and admins
    may move orders through their lifecycle, admins may act on any order.
    """

    class Role(models.TextChoices):
        USER = "user"
        VENDOR = "vendor"
        ADMIN = "admin"

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.USER)
    phone = models.CharField(max_length=32, blank=True, default="")
    address = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "profiles"

    def __str__(self):
        return f"{self.user.get_username()} ({self.role})"
