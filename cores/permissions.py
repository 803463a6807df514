from rest_framework import permissions


class IsPlatformAdmin(permissions.BasePermission):
    """Staff accounts and users holding the admin role."""

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return request.user.is_admin
