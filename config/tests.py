from datetime import datetime
import logging
import os
from unittest import mock

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.management import call_command
from django.test import SimpleTestCase
import pytz

from .clock import Clock, ClockError
from .env import optional, required, required_minutes


class ClockTestCase(SimpleTestCase):
    def test_now_is_in_moscow(self):
        now = Clock().now()

        self.assertEqual(now.tzinfo.zone, 'Europe/Moscow')
        self.assertLess(abs((now - datetime.now(pytz.utc)).total_seconds()), 5)

    def test_unknown_zone_is_clock_error(self):
        with self.assertRaises(ClockError):
            Clock('Mars/Olympus_Mons').now()


class EnvTestCase(SimpleTestCase):
    def test_missing_required_value_is_fatal(self):
        with mock.patch.dict(os.environ, {}, clear=False):
            os.environ.pop('SOME_MISSING_SETTING', None)
            with self.assertRaises(ImproperlyConfigured):
                required('SOME_MISSING_SETTING')

    def test_required_value_is_cast(self):
        with mock.patch.dict(os.environ, {'SOME_PORT': '8080'}):
            self.assertEqual(required('SOME_PORT', cast=int), 8080)

    def test_non_integer_minutes_are_fatal(self):
        with mock.patch.dict(os.environ, {'SOME_TTL': 'ten'}):
            with self.assertRaises(ImproperlyConfigured):
                required_minutes('SOME_TTL')

    def test_non_positive_minutes_are_fatal(self):
        with mock.patch.dict(os.environ, {'SOME_TTL': '0'}):
            with self.assertRaises(ImproperlyConfigured):
                required_minutes('SOME_TTL')

    def test_optional_default(self):
        os.environ.pop('SOME_OPTIONAL_FLAG', None)
        self.assertIs(optional('SOME_OPTIONAL_FLAG', default=False, cast=bool), False)
        self.assertIsNone(optional('SOME_OPTIONAL_FLAG'))


class ServeCommandTestCase(SimpleTestCase):
    @mock.patch('config.management.commands.serve.call_command')
    def test_runs_server_on_configured_port(self, runserver):
        call_command('serve', '--noreload')

        runserver.assert_called_once_with(
            'runserver', f'0.0.0.0:{settings.SERVER_PORT}', use_reloader=False,
        )

    @mock.patch('config.management.commands.serve.call_command')
    def test_debug_flag_lowers_app_log_level(self, runserver):
        app_logger = logging.getLogger('sms_verification')
        self.addCleanup(app_logger.setLevel, app_logger.level)

        call_command('serve', '--debug')

        self.assertEqual(app_logger.level, logging.DEBUG)
        self.assertTrue(runserver.call_args.kwargs['use_reloader'])
