from django.core.management.base import BaseCommand, CommandError

from sms_verification.services import get_auth_service


class Command(BaseCommand):
    help = "Request a sign-in code for a phone through the regular flow. Usage: manage.py request_sign_in_code +79990000000"

    def add_arguments(self, parser):
        parser.add_argument('phone', help='Phone number exactly as clients send it')

    def handle(self, *args, **options):
        phone = options['phone'].strip()
        error = get_auth_service().request_sign_in_code(phone)
        if error is not None:
            raise CommandError(f"{error.kind.value}: {error.message}")

        self.stdout.write(self.style.SUCCESS(f"Sign-in code issued for {phone}"))
