"""Role lookups and DRF permission classes built on ``Profile.role``."""

from rest_framework.permissions import BasePermission

from .models import Profile

ELEVATED_ROLES = frozenset({Profile.Role.ADMIN, Profile.Role.VENDOR})


def role_of(user) -> str:
    """Return the storefront role of ``user``.

    Django superusers are always admins; users without a profile are plain
    users.
    """
    if not user or not user.is_authenticated:
        return ""
    if user.is_superuser:
        return Profile.Role.ADMIN
    profile = getattr(user, "profile", None)
    return profile.role if profile else Profile.Role.USER


def is_admin(user) -> bool:
    return role_of(user) == Profile.Role.ADMIN


def is_elevated(user) -> bool:
    return role_of(user) in ELEVATED_ROLES


class IsVendorOrAdmin(BasePermission):
    message = "Vendor or admin role required"

    def has_permission(self, request, view):
        return is_elevated(request.user)


class IsVendor(BasePermission):
    message = "Vendor role required"

    def has_permission(self, request, view):
        return role_of(request.user) == Profile.Role.VENDOR
