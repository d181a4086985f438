from django.apps import AppConfig


class SmsVerificationConfig(AppConfig):
    name = 'sms_verification'
    default_auto_field = 'django.db.models.BigAutoField'
