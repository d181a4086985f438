from datetime import datetime, timedelta
from io import StringIO
import json
import random
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings
from graphene_django.utils.testing import GraphQLTestCase
import pytz
import requests

from config.clock import ClockError
from users.jwt import verify_token
from users.models import User
from .codes import CodeGenerator
from .models import SMSCode
from .repository import PersistenceError, Repository
from .sender import SMSDeliveryError, send_sign_in_code
from .services import (
    AuthError,
    AuthService,
    ErrorKind,
    SignInResult,
    Viewer,
)

MOSCOW = pytz.timezone('Europe/Moscow')
PHONE = '+79990000000'
SECRET = 'test-signing-secret-0123456789abcdef'


class FixedClock:
    def __init__(self, now):
        self.current = now

    def now(self):
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)


class BrokenClock:
    def now(self):
        raise ClockError("unable to load location: Europe/Moscow")


class StubGenerator:
    def __init__(self, *codes):
        self.codes = list(codes)

    def generate(self):
        return self.codes.pop(0)


class RecordingSender:
    def __init__(self):
        self.sent = []

    def __call__(self, phone, code):
        self.sent.append((phone, code))


def moscow(*args):
    return MOSCOW.localize(datetime(*args))


def build_service(clock, *codes, repository=None, sender=None, **kwargs):
    return AuthService(
        repository=repository or Repository(clock),
        generator=StubGenerator(*codes),
        sender=sender or RecordingSender(),
        clock=clock,
        secret_key=SECRET,
        token_ttl_minutes=60,
        code_ttl_minutes=10,
        **kwargs,
    )


class CodeGeneratorTestCase(SimpleTestCase):
    def test_codes_are_four_digits(self):
        generator = CodeGenerator(random.Random(42))
        for _ in range(500):
            code = generator.generate()
            self.assertEqual(len(code), 4)
            self.assertTrue(code.isdigit())
            self.assertTrue(1000 <= int(code) <= 9999)

    def test_same_seed_gives_same_sequence(self):
        first = CodeGenerator(random.Random(7))
        second = CodeGenerator(random.Random(7))
        self.assertEqual(
            [first.generate() for _ in range(5)],
            [second.generate() for _ in range(5)],
        )

    def test_default_source_is_created_once(self):
        generator = CodeGenerator()
        rng = generator.rng
        generator.generate()
        generator.generate()
        self.assertIs(generator.rng, rng)


class RepositoryTestCase(TestCase):
    def setUp(self):
        self.clock = FixedClock(moscow(2024, 3, 1, 12, 0))
        self.repository = Repository(self.clock)

    def test_upsert_inserts_with_expiry_from_clock(self):
        expires_at = self.repository.upsert_sms_code(PHONE, '1234', 10)

        stored = self.repository.get_sms_code(PHONE)
        self.assertEqual(stored.code, '1234')
        self.assertEqual(stored.expires_at, moscow(2024, 3, 1, 12, 10))
        self.assertEqual(expires_at, stored.expires_at)

    def test_upsert_overwrites_previous_code(self):
        self.repository.upsert_sms_code(PHONE, '1234', 10)
        self.clock.advance(minutes=3)
        self.repository.upsert_sms_code(PHONE, '5678', 10)

        self.assertEqual(SMSCode.objects.filter(phone=PHONE).count(), 1)
        stored = self.repository.get_sms_code(PHONE)
        self.assertEqual(stored.code, '5678')
        self.assertEqual(stored.expires_at, moscow(2024, 3, 1, 12, 13))

    def test_missing_records_are_none(self):
        self.assertIsNone(self.repository.get_sms_code(PHONE))
        self.assertIsNone(self.repository.get_user_by_phone(PHONE))

    def test_insert_and_find_user(self):
        self.repository.insert_user(User(phone=PHONE))

        user = self.repository.get_user_by_phone(PHONE)
        self.assertEqual(user.phone, PHONE)
        self.assertEqual(user.name, '')

    def test_duplicate_user_is_persistence_error(self):
        self.repository.insert_user(User(phone=PHONE))
        with self.assertRaises(PersistenceError):
            self.repository.insert_user(User(phone=PHONE))

    def test_clock_failure_is_persistence_error(self):
        repository = Repository(BrokenClock())
        with self.assertRaises(PersistenceError):
            repository.upsert_sms_code(PHONE, '1234', 10)
        self.assertFalse(SMSCode.objects.exists())

    def test_database_failure_is_persistence_error(self):
        with mock.patch.object(SMSCode.objects, 'filter', side_effect=DatabaseError('gone')):
            with self.assertRaises(PersistenceError):
                self.repository.get_sms_code(PHONE)

    def test_delete_sms_code(self):
        self.repository.upsert_sms_code(PHONE, '1234', 10)
        self.assertEqual(self.repository.delete_sms_code(PHONE), 1)
        self.assertIsNone(self.repository.get_sms_code(PHONE))


class RequestSignInCodeTestCase(TestCase):
    def setUp(self):
        self.clock = FixedClock(moscow(2024, 3, 1, 12, 0))

    def test_empty_phone_never_touches_storage(self):
        repository = mock.Mock()
        service = build_service(self.clock, '1234', repository=repository)

        error = service.request_sign_in_code('')

        self.assertEqual(error, AuthError(ErrorKind.PHONE_REQUIRED, 'phone number required'))
        self.assertEqual(repository.method_calls, [])

    def test_stores_code_and_sends_it(self):
        sender = RecordingSender()
        service = build_service(self.clock, '1234', sender=sender)

        self.assertIsNone(service.request_sign_in_code(PHONE))

        stored = SMSCode.objects.get(phone=PHONE)
        self.assertEqual(stored.code, '1234')
        self.assertEqual(stored.expires_at, moscow(2024, 3, 1, 12, 10))
        self.assertEqual(sender.sent, [(PHONE, '1234')])

    def test_second_request_supersedes_first(self):
        service = build_service(self.clock, '1234', '5678')
        service.request_sign_in_code(PHONE)
        self.clock.advance(minutes=1)
        service.request_sign_in_code(PHONE)

        self.assertEqual(SMSCode.objects.filter(phone=PHONE).count(), 1)
        stored = SMSCode.objects.get(phone=PHONE)
        self.assertEqual(stored.code, '5678')
        self.assertEqual(stored.expires_at, moscow(2024, 3, 1, 12, 11))

    def test_persistence_failure_is_internal_error(self):
        repository = mock.Mock()
        repository.upsert_sms_code.side_effect = PersistenceError('db down')
        sender = RecordingSender()
        service = build_service(self.clock, '1234', repository=repository, sender=sender)

        with self.assertLogs('sms_verification.services', level='ERROR'):
            error = service.request_sign_in_code(PHONE)

        self.assertEqual(error.kind, ErrorKind.INTERNAL)
        self.assertNotIn('1234', error.message)
        self.assertEqual(sender.sent, [])

    def test_delivery_failure_is_internal_error(self):
        def failing_sender(phone, code):
            raise SMSDeliveryError('gateway down')

        service = build_service(self.clock, '1234', sender=failing_sender)
        with self.assertLogs('sms_verification.services', level='ERROR'):
            error = service.request_sign_in_code(PHONE)

        self.assertEqual(error.kind, ErrorKind.INTERNAL)

    @override_settings(
        SMS_BACKEND='twilio',
        TWILIO_ACCOUNT_SID='AC123',
        TWILIO_AUTH_TOKEN='secret',
        TWILIO_FROM_NUMBER='+15550000000',
    )
    @mock.patch('sms_verification.sender.requests.post')
    def test_unreadable_gateway_reply_is_internal_error(self, post):
        post.return_value = mock.Mock(status_code=200, text='<html>', json=mock.Mock(side_effect=ValueError('no json')))
        service = build_service(self.clock, '1234', sender=send_sign_in_code)

        with self.assertLogs('sms_verification.services', level='ERROR'):
            error = service.request_sign_in_code(PHONE)

        self.assertEqual(error.kind, ErrorKind.INTERNAL)
        self.assertTrue(SMSCode.objects.filter(phone=PHONE).exists())

    def test_long_phone_is_stored(self):
        phone = '+7' + '9' * 62
        service = build_service(self.clock, '1234')

        self.assertIsNone(service.request_sign_in_code(phone))

        self.assertEqual(SMSCode.objects.get(phone=phone).code, '1234')
        result = service.sign_in_by_code(phone, '1234')
        self.assertIsInstance(result, SignInResult)
        self.assertEqual(User.objects.get(phone=phone).phone, phone)


class SignInByCodeTestCase(TestCase):
    def setUp(self):
        self.clock = FixedClock(moscow(2024, 3, 1, 12, 0))
        self.service = build_service(self.clock, '1234')
        self.service.request_sign_in_code(PHONE)

    def test_valid_code_creates_user_and_returns_token(self):
        self.clock.advance(minutes=5)

        result = self.service.sign_in_by_code(PHONE, '1234')

        self.assertIsInstance(result, SignInResult)
        self.assertTrue(result.token)
        self.assertEqual(result.viewer, Viewer(phone=PHONE))
        self.assertEqual(User.objects.filter(phone=PHONE).count(), 1)
        self.assertEqual(User.objects.get(phone=PHONE).name, '')

    def test_token_carries_phone(self):
        clock = FixedClock(datetime.now(pytz.utc).astimezone(MOSCOW))
        service = build_service(clock, '4321')
        service.request_sign_in_code(PHONE)

        result = service.sign_in_by_code(PHONE, '4321')

        claims = verify_token(result.token, SECRET)
        self.assertEqual(claims.phone, PHONE)
        self.assertEqual(claims.expires_at.timestamp(), int((clock.now() + timedelta(minutes=60)).timestamp()))

    def test_existing_user_is_not_duplicated(self):
        User.objects.create(phone=PHONE, name='Ivan')

        result = self.service.sign_in_by_code(PHONE, '1234')

        self.assertIsInstance(result, SignInResult)
        self.assertEqual(User.objects.filter(phone=PHONE).count(), 1)
        self.assertEqual(User.objects.get(phone=PHONE).name, 'Ivan')

    def test_wrong_code_is_invalid(self):
        result = self.service.sign_in_by_code(PHONE, '0000')

        self.assertEqual(result.kind, ErrorKind.INVALID_CODE)
        self.assertEqual(result.message, 'invalid sms code')
        self.assertFalse(User.objects.exists())

    def test_wrong_code_on_expired_record_is_invalid_not_expired(self):
        self.clock.advance(minutes=30)

        result = self.service.sign_in_by_code(PHONE, '0000')

        self.assertEqual(result.kind, ErrorKind.INVALID_CODE)

    def test_expired_code(self):
        self.clock.advance(minutes=10, seconds=1)

        result = self.service.sign_in_by_code(PHONE, '1234')

        self.assertEqual(result.kind, ErrorKind.CODE_EXPIRED)
        self.assertEqual(result.message, 'sms code has expired')
        self.assertFalse(User.objects.exists())

    def test_code_is_valid_up_to_expiry(self):
        self.clock.advance(minutes=10)

        result = self.service.sign_in_by_code(PHONE, '1234')

        self.assertIsInstance(result, SignInResult)

    def test_unknown_phone_is_invalid_code(self):
        result = self.service.sign_in_by_code('+70000000000', '1234')

        self.assertEqual(result.kind, ErrorKind.INVALID_CODE)

    def test_code_can_be_replayed_by_default(self):
        first = self.service.sign_in_by_code(PHONE, '1234')
        second = self.service.sign_in_by_code(PHONE, '1234')

        self.assertIsInstance(first, SignInResult)
        self.assertIsInstance(second, SignInResult)
        self.assertEqual(User.objects.filter(phone=PHONE).count(), 1)

    def test_single_use_codes_are_consumed(self):
        service = build_service(self.clock, single_use_codes=True)

        first = service.sign_in_by_code(PHONE, '1234')
        second = service.sign_in_by_code(PHONE, '1234')

        self.assertIsInstance(first, SignInResult)
        self.assertEqual(second.kind, ErrorKind.INVALID_CODE)
        self.assertFalse(SMSCode.objects.filter(phone=PHONE).exists())

    def test_persistence_failure_is_internal_error(self):
        repository = mock.Mock()
        repository.get_sms_code.side_effect = PersistenceError('db down')
        service = build_service(self.clock, repository=repository)

        with self.assertLogs('sms_verification.services', level='ERROR'):
            result = service.sign_in_by_code(PHONE, '1234')

        self.assertEqual(result.kind, ErrorKind.INTERNAL)
        self.assertEqual(result.message, 'Internal error. Please try again later')


class SignInExampleTestCase(TestCase):
    """Request at T, sign in before and after T+10min, and with a wrong code."""

    def test_example_flow(self):
        clock = FixedClock(moscow(2024, 3, 1, 12, 0))
        service = build_service(clock, '1234')

        self.assertIsNone(service.request_sign_in_code(PHONE))

        clock.advance(minutes=9)
        result = service.sign_in_by_code(PHONE, '1234')
        self.assertIsInstance(result, SignInResult)
        self.assertTrue(result.token)
        self.assertTrue(User.objects.filter(phone=PHONE).exists())

        self.assertEqual(service.sign_in_by_code(PHONE, '0000').kind, ErrorKind.INVALID_CODE)

        clock.advance(minutes=2)
        self.assertEqual(service.sign_in_by_code(PHONE, '1234').kind, ErrorKind.CODE_EXPIRED)
        self.assertEqual(service.sign_in_by_code(PHONE, '0000').kind, ErrorKind.INVALID_CODE)


@override_settings(
    SMS_BACKEND='twilio',
    TWILIO_ACCOUNT_SID='AC123',
    TWILIO_AUTH_TOKEN='secret',
    TWILIO_FROM_NUMBER='+15550000000',
    SMS_CODE_EXPIRATION_MINUTES=10,
)
class SenderTestCase(SimpleTestCase):
    @override_settings(SMS_BACKEND='console')
    def test_console_backend_logs_code(self):
        with self.assertLogs('sms_verification.sender', level='INFO') as logs:
            send_sign_in_code(PHONE, '1234')
        self.assertIn('1234', logs.output[0])
        self.assertIn(PHONE, logs.output[0])

    @mock.patch('sms_verification.sender.requests.post')
    def test_twilio_backend_posts_message(self, post):
        post.return_value = mock.Mock(status_code=201, json=lambda: {'sid': 'SM1'})

        send_sign_in_code(PHONE, '1234')

        args, kwargs = post.call_args
        self.assertIn('/Accounts/AC123/Messages.json', args[0])
        self.assertEqual(kwargs['auth'], ('AC123', 'secret'))
        self.assertEqual(kwargs['data']['To'], PHONE)
        self.assertIn('1234', kwargs['data']['Body'])

    @mock.patch('sms_verification.sender.requests.post')
    def test_twilio_http_error(self, post):
        post.return_value = mock.Mock(status_code=400, text='bad number')
        with self.assertRaises(SMSDeliveryError):
            send_sign_in_code(PHONE, '1234')

    @mock.patch('sms_verification.sender.requests.post', side_effect=requests.ConnectionError('down'))
    def test_twilio_network_error(self, post):
        with self.assertRaises(SMSDeliveryError):
            send_sign_in_code(PHONE, '1234')

    @mock.patch('sms_verification.sender.requests.post')
    def test_twilio_unreadable_reply(self, post):
        post.return_value = mock.Mock(status_code=200, text='<html>', json=mock.Mock(side_effect=ValueError('no json')))
        with self.assertRaises(SMSDeliveryError):
            send_sign_in_code(PHONE, '1234')

    @override_settings(TWILIO_AUTH_TOKEN='')
    def test_twilio_missing_credentials(self):
        with self.assertRaises(SMSDeliveryError):
            send_sign_in_code(PHONE, '1234')

    @override_settings(SMS_BACKEND='carrier-pigeon')
    def test_unknown_backend(self):
        with self.assertRaises(SMSDeliveryError):
            send_sign_in_code(PHONE, '1234')


SIGN_IN_MUTATION = '''
    mutation SignIn($phone: String!, $code: String!) {
        signInByCode(input: {phone: $phone, code: $code}) {
            __typename
            ... on SignInPayload { token viewer { phone user { phone } } }
            ... on ErrorPayload { message code }
        }
    }
'''

REQUEST_CODE_MUTATION = '''
    mutation RequestCode($phone: String!) {
        requestSignInCode(input: {phone: $phone}) { message code }
    }
'''


class SignInMutationTestCase(GraphQLTestCase):
    GRAPHQL_URL = '/graphql/'

    def setUp(self):
        self.clock = FixedClock(moscow(2024, 3, 1, 12, 0))
        self.service = build_service(self.clock, '1234')
        patcher = mock.patch('sms_verification.schema.get_auth_service', return_value=self.service)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_request_code_returns_null_on_success(self):
        response = self.query(REQUEST_CODE_MUTATION, variables={'phone': PHONE})

        self.assertResponseNoErrors(response)
        content = json.loads(response.content)
        self.assertIsNone(content['data']['requestSignInCode'])
        self.assertEqual(SMSCode.objects.get(phone=PHONE).code, '1234')

    def test_request_code_with_empty_phone(self):
        response = self.query(REQUEST_CODE_MUTATION, variables={'phone': ''})

        self.assertResponseNoErrors(response)
        payload = json.loads(response.content)['data']['requestSignInCode']
        self.assertEqual(payload, {'message': 'phone number required', 'code': 'PHONE_REQUIRED'})
        self.assertFalse(SMSCode.objects.exists())

    def test_sign_in_success(self):
        self.query(REQUEST_CODE_MUTATION, variables={'phone': PHONE})

        response = self.query(SIGN_IN_MUTATION, variables={'phone': PHONE, 'code': '1234'})

        self.assertResponseNoErrors(response)
        payload = json.loads(response.content)['data']['signInByCode']
        self.assertEqual(payload['__typename'], 'SignInPayload')
        self.assertTrue(payload['token'])
        self.assertEqual(payload['viewer'], {'phone': PHONE, 'user': {'phone': PHONE}})

    def test_sign_in_with_wrong_code_is_error_payload(self):
        self.query(REQUEST_CODE_MUTATION, variables={'phone': PHONE})

        response = self.query(SIGN_IN_MUTATION, variables={'phone': PHONE, 'code': '0000'})

        self.assertResponseNoErrors(response)
        payload = json.loads(response.content)['data']['signInByCode']
        self.assertEqual(payload['__typename'], 'ErrorPayload')
        self.assertEqual(payload['code'], 'INVALID_CODE')
        self.assertEqual(payload['message'], 'invalid sms code')

    def test_sign_in_with_expired_code_is_error_payload(self):
        self.query(REQUEST_CODE_MUTATION, variables={'phone': PHONE})
        self.clock.advance(minutes=11)

        response = self.query(SIGN_IN_MUTATION, variables={'phone': PHONE, 'code': '1234'})

        payload = json.loads(response.content)['data']['signInByCode']
        self.assertEqual(payload['code'], 'CODE_EXPIRED')


class RequestSignInCodeCommandTestCase(TestCase):
    def setUp(self):
        self.service = build_service(FixedClock(moscow(2024, 3, 1, 12, 0)), '1234')
        patcher = mock.patch(
            'sms_verification.management.commands.request_sign_in_code.get_auth_service',
            return_value=self.service,
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_command_stores_code(self):
        out = StringIO()
        call_command('request_sign_in_code', PHONE, stdout=out)

        self.assertEqual(SMSCode.objects.get(phone=PHONE).code, '1234')
        self.assertIn(PHONE, out.getvalue())

    def test_command_rejects_empty_phone(self):
        with self.assertRaisesMessage(CommandError, 'phone number required'):
            call_command('request_sign_in_code', '')
        self.assertFalse(SMSCode.objects.exists())
