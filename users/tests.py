from datetime import datetime, timedelta
import json
from unittest import mock

from django.test import SimpleTestCase
from graphene_django.utils.testing import GraphQLTestCase
import jwt as pyjwt
import pytz

from config.clock import Clock
from .jwt import (
    EmptyTokenError,
    ExpiredOrInvalidError,
    InvalidSignatureError,
    MalformedTokenError,
    SigningError,
    TokenError,
    issue_token,
    verify_token,
)

SECRET = 'test-signing-secret-0123456789abcdef'
OTHER_SECRET = 'another-signing-secret-0123456789abcd'
PHONE = '+79990000000'


class FixedClock:
    def __init__(self, now):
        self.current = now

    def now(self):
        return self.current


class TokenTestCase(SimpleTestCase):
    def test_round_trip_recovers_phone(self):
        token = issue_token(PHONE, SECRET, 30, Clock())

        claims = verify_token(token, SECRET)

        self.assertEqual(claims.phone, PHONE)
        self.assertGreater(claims.expires_at, datetime.now(pytz.utc))

    def test_expiry_comes_from_clock(self):
        now = pytz.timezone('Europe/Moscow').localize(datetime(2030, 1, 1, 9, 0))
        token = issue_token(PHONE, SECRET, 15, FixedClock(now))

        claims = verify_token(token, SECRET)

        self.assertEqual(claims.expires_at, now + timedelta(minutes=15))

    def test_wrong_secret_is_signature_error(self):
        token = issue_token(PHONE, SECRET, 30, Clock())

        with self.assertRaises(InvalidSignatureError):
            verify_token(token, OTHER_SECRET)

    def test_empty_token(self):
        with self.assertRaises(EmptyTokenError):
            verify_token('', SECRET)
        with self.assertRaises(EmptyTokenError):
            verify_token(None, SECRET)

    def test_garbage_is_malformed(self):
        with self.assertRaises(MalformedTokenError):
            verify_token('not-a-token', SECRET)

    def test_expired_token(self):
        past = datetime.now(pytz.utc) - timedelta(hours=2)
        token = issue_token(PHONE, SECRET, 30, FixedClock(past))

        with self.assertRaises(ExpiredOrInvalidError):
            verify_token(token, SECRET)

    def test_token_without_phone_is_malformed(self):
        exp = datetime.now(pytz.utc) + timedelta(minutes=5)
        token = pyjwt.encode({'exp': exp}, SECRET, algorithm='HS256')

        with self.assertRaises(MalformedTokenError):
            verify_token(token, SECRET)

    def test_token_without_expiry_is_malformed(self):
        token = pyjwt.encode({'phone': PHONE}, SECRET, algorithm='HS256')

        with self.assertRaises(MalformedTokenError):
            verify_token(token, SECRET)

    def test_signing_failure(self):
        with mock.patch('users.jwt.jwt.encode', side_effect=TypeError('bad key')):
            with self.assertRaises(SigningError):
                issue_token(PHONE, SECRET, 30, Clock())

    def test_all_failures_share_a_base(self):
        for error in (SigningError, EmptyTokenError, InvalidSignatureError,
                      MalformedTokenError, ExpiredOrInvalidError):
            self.assertTrue(issubclass(error, TokenError))


VIEWER_QUERY = '''
    query Viewer {
        viewer { phone user { phone } }
    }
'''


class ViewerQueryTestCase(GraphQLTestCase):
    GRAPHQL_URL = '/graphql/'

    def post_viewer(self, **extra):
        return self.client.post(
            self.GRAPHQL_URL,
            json.dumps({'query': VIEWER_QUERY, 'operationName': 'Viewer'}),
            content_type='application/json',
            **extra
        )

    def test_valid_token_resolves_viewer(self):
        from django.conf import settings
        token = issue_token(PHONE, settings.TOKEN_SECRET_KEY, 30, Clock())

        response = self.post_viewer(HTTP_AUTHORIZATION=f'Bearer {token}')

        self.assertResponseNoErrors(response)
        viewer = json.loads(response.content)['data']['viewer']
        self.assertEqual(viewer, {'phone': PHONE, 'user': {'phone': PHONE}})

    def test_missing_token_is_transport_error(self):
        response = self.post_viewer()

        self.assertResponseHasErrors(response)
        content = json.loads(response.content)
        self.assertIsNone(content['data']['viewer'])
        error = content['errors'][0]
        self.assertEqual(error['extensions']['code'], 'UNAUTHENTICATED')
        self.assertEqual(error['extensions']['reason'], 'EmptyTokenError')

    def test_token_signed_with_other_secret_is_rejected(self):
        token = issue_token(PHONE, OTHER_SECRET, 30, Clock())

        response = self.post_viewer(HTTP_AUTHORIZATION=f'Bearer {token}')

        self.assertResponseHasErrors(response)
        error = json.loads(response.content)['errors'][0]
        self.assertEqual(error['extensions']['reason'], 'InvalidSignatureError')

    def test_bare_token_header_is_accepted(self):
        from django.conf import settings
        token = issue_token(PHONE, settings.TOKEN_SECRET_KEY, 30, Clock())

        response = self.post_viewer(HTTP_AUTHORIZATION=token)

        self.assertResponseNoErrors(response)
        viewer = json.loads(response.content)['data']['viewer']
        self.assertEqual(viewer['phone'], PHONE)

    def test_garbage_bare_header_is_not_reported_as_empty(self):
        response = self.post_viewer(HTTP_AUTHORIZATION='not-a-token')

        self.assertResponseHasErrors(response)
        error = json.loads(response.content)['errors'][0]
        self.assertEqual(error['extensions']['reason'], 'MalformedTokenError')
