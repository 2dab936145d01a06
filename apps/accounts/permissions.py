from rest_framework import permissions


class IsModerator(permissions.BasePermission):
    """
    Allows access to moderators, admins and staff.
    """

    message = "Moderator privileges required"

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_moderator)

