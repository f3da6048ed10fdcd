"""
Request middleware for the authoring API.
"""
import logging
import re
import uuid

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
REQUEST_ID_PATTERN = re.compile(r'^[A-Za-z0-9._-]{1,64}$')
DOCS_PATHS = ('/api/docs/', '/api/redoc/', '/api/schema/')


class RequestIdMiddleware:
    """Tag each request with an id, reusing a well-formed X-Request-ID from the caller."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        incoming = request.META.get(REQUEST_ID_HEADER, '')
        request.request_id = incoming if REQUEST_ID_PATTERN.match(incoming) else uuid.uuid4().hex

        response = self.get_response(request)
        response['X-Request-ID'] = request.request_id

        if response.status_code >= 500:
            logger.error(
                f"REQUEST_FAILED | ID: {request.request_id} | {request.method} {request.path} | "
                f"Status: {response.status_code}"
            )
        return response


class SecurityHeadersMiddleware:
    """Add security headers to all responses."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        response['X-Content-Type-Options'] = 'nosniff'
        response['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        # Authoring data is per-user
        if request.path.startswith('/api/') and request.path not in DOCS_PATHS:
            response['Cache-Control'] = 'no-store, no-cache, must-revalidate, private'
            response['Pragma'] = 'no-cache'

        return response
