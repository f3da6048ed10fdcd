"""
Custom hooks for drf-spectacular to customize OpenAPI schema.
"""


def keep_bearer_security_scheme(result, generator, request, public):
    """Replace auto-detected security schemes with the bearer token scheme."""
    if 'components' in result and 'securitySchemes' in result['components']:
        result['components']['securitySchemes'] = {
            'BearerAuth': {
                'type': 'http',
                'scheme': 'bearer',
                'description': 'Token authentication. Format: `Bearer <your-token>`'
            }
        }
    return result
