from rest_framework.authentication import TokenAuthentication


class BearerTokenAuthentication(TokenAuthentication):
    """Accept ``Authorization: Bearer <key>`` instead of DRF's ``Token`` keyword."""
    keyword = 'Bearer'
