from graphql_jwt.utils import get_http_authorization
import logging

logger = logging.getLogger(__name__)


class AuthorizationTokenMiddleware:
    """
    Threads the caller's credential into the request.

    Both `Authorization: Bearer <token>` and a bare `Authorization: <token>`
    are accepted. The token is stored on `request.auth_token` (empty string
    when absent) so GraphQL resolvers can read it from `info.context`. It is
    not verified here; the viewer query decides what an invalid token means.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        token = get_http_authorization(request)
        if not token:
            token = request.META.get('HTTP_AUTHORIZATION', '').strip()
        request.auth_token = token or ''
        if request.auth_token:
            logger.debug("Authorization token present on %s", request.path)
        return self.get_response(request)
