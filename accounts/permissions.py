from rest_framework.permissions import BasePermission


def role_of(user):
    """Role used by the order state machine; anonymous callers act as guests."""
    if user is None or not user.is_authenticated:
        return "GUEST"
    return getattr(user, "role", "GUEST") or "GUEST"


class _RolePermission(BasePermission):
    allowed_roles = ()

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and role_of(user) in self.allowed_roles
        )


class IsAdminRole(_RolePermission):
    allowed_roles = ("ADMIN",)


class IsAdminOrStaff(_RolePermission):
    allowed_roles = ("ADMIN", "WAITER", "CHEF")


class IsWaiter(_RolePermission):
    allowed_roles = ("ADMIN", "WAITER")


class IsKitchen(_RolePermission):
    allowed_roles = ("ADMIN", "CHEF")
