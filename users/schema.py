import graphene
from graphql import GraphQLError
import logging

from users.jwt import TokenError
from sms_verification.services import ErrorKind, get_auth_service

logger = logging.getLogger(__name__)


class UserType(graphene.ObjectType):
    class Meta:
        name = 'User'

    phone = graphene.String(required=True)


class ViewerType(graphene.ObjectType):
    """The identity carried by a valid bearer token."""
    class Meta:
        name = 'Viewer'

    phone = graphene.String(required=True)
    user = graphene.Field(UserType, required=True)

    @staticmethod
    def resolve_user(root, info):
        return UserType(phone=root.phone)


class Query(graphene.ObjectType):
    viewer = graphene.Field(ViewerType)

    def resolve_viewer(self, info):
        token = getattr(info.context, 'auth_token', '') or ''
        try:
            return get_auth_service().resolve_viewer(token)
        except TokenError as e:
            logger.warning("unable to view user: %s", e)
            raise GraphQLError(
                f"unable to view user: {e}",
                extensions={'code': ErrorKind.UNAUTHENTICATED.value, 'reason': type(e).__name__},
            ) from e
