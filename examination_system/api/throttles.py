from rest_framework.throttling import UserRateThrottle


class AdminBypassUserRateThrottle(UserRateThrottle):
    """
    Skip user-level throttling for administrators so bulk actions such as
    enrollment uploads and seating regeneration are never rate limited,
    while students and faculty keep the configured limit.
    """

    def allow_request(self, request, view):
        user = getattr(request, "user", None)
        if user and user.is_authenticated and user.is_admin_role:
            return True
        return super().allow_request(request, view)
