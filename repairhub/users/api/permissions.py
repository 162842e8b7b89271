from rest_framework.permissions import BasePermission


class IsAdminRole(BasePermission):
    """Allow access only to staff or users holding the ``admin`` role."""

    def has_permission(self, request, view):
        u = getattr(request, "user", None)
        if not (u and getattr(u, "is_authenticated", False)):
            return False
        if getattr(u, "is_staff", False):
            return True
        return bool(getattr(u, "is_admin_role", False))
