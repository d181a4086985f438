import graphene
from graphene_django import DjangoObjectType
from graphql import GraphQLError
import logging

from sms_verification.repository import PersistenceError
from sms_verification.services import ErrorKind, get_auth_service
from .models import Product

logger = logging.getLogger(__name__)


class ProductType(DjangoObjectType):
    class Meta:
        model = Product
        name = 'Product'
        fields = ('id', 'name')


class Query(graphene.ObjectType):
    products = graphene.List(graphene.NonNull(ProductType), required=True)

    def resolve_products(self, info):
        try:
            return get_auth_service().get_all_products()
        except PersistenceError as e:
            logger.exception("unable to get all products")
            raise GraphQLError(
                "unable to get all products",
                extensions={'code': ErrorKind.INTERNAL.value},
            ) from e
