from rest_framework.throttling import UserRateThrottle


class BurstRateThrottle(UserRateThrottle):
    """General burst protection for authenticated users."""
    scope = 'burst'


class AuthoringRateThrottle(UserRateThrottle):
    """Limit on quiz, question and answer mutations per user."""
    scope = 'authoring'

    def allow_request(self, request, view):
        if request.method in ('GET', 'HEAD', 'OPTIONS'):
            return True
        return super().allow_request(request, view)
