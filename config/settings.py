"""
Django settings for the phone sign-in API.

All deployment values come from the environment (or a `.env` file) via
config/env.py. Required values are validated here, at import time.
"""
from pathlib import Path

from decouple import Csv

from .env import optional, required, required_minutes
from .logging import build_logging

BASE_DIR = Path(__file__).resolve().parent.parent

DEBUG = optional('DEBUG', default=False, cast=bool)

# Signing secret for viewer tokens
TOKEN_SECRET_KEY = required('TOKEN_SECRET_KEY')
TOKEN_EXPIRATION_MINUTES = required_minutes('TOKEN_EXPIRATION_MINUTES')
SMS_CODE_EXPIRATION_MINUTES = required_minutes('SMS_CODE_EXPIRATION_MINUTES')
SERVER_PORT = required('SERVER_PORT', cast=int)

SECRET_KEY = optional('DJANGO_SECRET_KEY', default=TOKEN_SECRET_KEY)
ALLOWED_HOSTS = optional('ALLOWED_HOSTS', default='*', cast=Csv())

# Every expiry comparison runs against this zone, never the host's local time.
SIGN_IN_TIME_ZONE = 'Europe/Moscow'

# SMS delivery: 'console' only logs the code, 'twilio' sends a real message
SMS_BACKEND = optional('SMS_BACKEND', default='console')
SMS_CODE_SINGLE_USE = optional('SMS_CODE_SINGLE_USE', default=False, cast=bool)
TWILIO_ACCOUNT_SID = optional('TWILIO_ACCOUNT_SID', default='')
TWILIO_AUTH_TOKEN = optional('TWILIO_AUTH_TOKEN', default='')
TWILIO_FROM_NUMBER = optional('TWILIO_FROM_NUMBER', default='')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'graphene_django',
    'users',
    'sms_verification',
    'products',
    'config',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'config.middleware.AuthorizationTokenMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'
ASGI_APPLICATION = 'config.asgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': required('DATABASE_NAME'),
        'HOST': required('DATABASE_HOST'),
        'PORT': required('DATABASE_PORT'),
        'USER': required('DATABASE_USER'),
        'PASSWORD': required('DATABASE_PASSWORD'),
        'OPTIONS': {'sslmode': optional('DATABASE_SSLMODE', default='disable')},
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

GRAPHENE = {
    'SCHEMA': 'config.schema.schema',
}

# Only the header parsing helpers of django-graphql-jwt are used; tokens are
# signed and verified by users.jwt with TOKEN_SECRET_KEY.
GRAPHQL_JWT = {
    'JWT_AUTH_HEADER_PREFIX': 'Bearer',
    'JWT_SECRET_KEY': TOKEN_SECRET_KEY,
    'JWT_ALGORITHM': 'HS256',
}

LOG_LEVEL = optional('LOG_LEVEL', default='DEBUG' if DEBUG else 'INFO')
LOGGING = build_logging(LOG_LEVEL)
