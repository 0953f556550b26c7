from rest_framework import permissions


class IsStudioAdmin(permissions.BasePermission):
    """Staff users only. Simulator and finance endpoints all sit behind this."""
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        return bool(request.user.is_staff)
