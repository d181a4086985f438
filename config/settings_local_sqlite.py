import os

# Defaults so local runs and the test suite need no .env file
os.environ.setdefault('TOKEN_SECRET_KEY', 'local-development-signing-secret-0123456789')
os.environ.setdefault('TOKEN_EXPIRATION_MINUTES', '60')
os.environ.setdefault('SMS_CODE_EXPIRATION_MINUTES', '10')
os.environ.setdefault('SERVER_PORT', '8080')
os.environ.setdefault('DATABASE_NAME', 'unused')
os.environ.setdefault('DATABASE_HOST', 'localhost')
os.environ.setdefault('DATABASE_PORT', '5432')
os.environ.setdefault('DATABASE_USER', 'unused')
os.environ.setdefault('DATABASE_PASSWORD', 'unused')

from .settings import *  # noqa

# Override database to use a local SQLite file for clean rebuild/tests
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.path.join(BASE_DIR, 'db.sqlite3'),
    }
}

# Make local checks easy
DEBUG = True
ALLOWED_HOSTS = ['*']
SMS_BACKEND = 'console'
