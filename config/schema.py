from users import schema as users_schema
from sms_verification import schema as sms_verification_schema
from products import schema as products_schema
import graphene


class Query(products_schema.Query, users_schema.Query, graphene.ObjectType):
	pass


class Mutation(sms_verification_schema.Mutation, graphene.ObjectType):
	pass


# Register all types
types = [
	users_schema.UserType,
	users_schema.ViewerType,
	products_schema.ProductType,
	sms_verification_schema.ErrorPayload,
	sms_verification_schema.SignInPayload,
]

schema = graphene.Schema(
	query=Query,
	mutation=Mutation,
	types=types
)

__all__ = ['schema']
