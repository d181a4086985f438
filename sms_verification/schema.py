import graphene

from users.schema import ViewerType
from .services import AuthError, ErrorKind, get_auth_service


ErrorKindEnum = graphene.Enum.from_enum(ErrorKind)


class ErrorPayload(graphene.ObjectType):
    message = graphene.String(required=True)
    code = ErrorKindEnum(required=True)

    @classmethod
    def from_error(cls, error: AuthError):
        return cls(message=error.message, code=error.kind)


class SignInPayload(graphene.ObjectType):
    token = graphene.String(required=True)
    viewer = graphene.Field(ViewerType, required=True)


class SignInOrErrorPayload(graphene.Union):
    class Meta:
        types = (SignInPayload, ErrorPayload)


class RequestSignInCodeInput(graphene.InputObjectType):
    phone = graphene.String(required=True)


class SignInByCodeInput(graphene.InputObjectType):
    phone = graphene.String(required=True)
    code = graphene.String(required=True)


class RequestSignInCode(graphene.Mutation):
    """Sends a one-time code to the phone. Returns null on success."""
    class Arguments:
        input = RequestSignInCodeInput(required=True)

    Output = ErrorPayload

    @classmethod
    def mutate(cls, root, info, input):
        error = get_auth_service().request_sign_in_code(input.phone)
        if error is not None:
            return ErrorPayload.from_error(error)
        return None


class SignInByCode(graphene.Mutation):
    class Arguments:
        input = SignInByCodeInput(required=True)

    Output = SignInOrErrorPayload

    @classmethod
    def mutate(cls, root, info, input):
        result = get_auth_service().sign_in_by_code(input.phone, input.code)
        if isinstance(result, AuthError):
            return ErrorPayload.from_error(result)
        return SignInPayload(token=result.token, viewer=result.viewer)


class Mutation(graphene.ObjectType):
    request_sign_in_code = RequestSignInCode.Field()
    sign_in_by_code = SignInByCode.Field()
