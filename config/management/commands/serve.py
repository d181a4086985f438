from django.conf import settings
from django.core.management import call_command
from django.core.management.base import BaseCommand
import logging

from config.logging import APP_LOGGERS

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Run the GraphQL server on the configured SERVER_PORT. Usage: manage.py serve [--debug]'

    def add_arguments(self, parser):
        parser.add_argument('--debug', action='store_true', help='Enable debug messages')
        parser.add_argument('--noreload', action='store_true', help='Do not use the auto-reloader')

    def handle(self, *args, **options):
        if options['debug']:
            for name in APP_LOGGERS:
                logging.getLogger(name).setLevel(logging.DEBUG)

        port = settings.SERVER_PORT
        logger.info("connect to http://localhost:%s/graphql/ for GraphQL", port)
        call_command(
            'runserver',
            f'0.0.0.0:{port}',
            use_reloader=not options['noreload'],
        )
