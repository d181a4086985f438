"""
Environment helpers for settings.py.

Values are read through python-decouple, so they may come from the process
environment or from a `.env` file next to manage.py. Every required value must
be present at startup; a missing or malformed one stops the process with
ImproperlyConfigured instead of failing later inside a request.
"""
from decouple import config, UndefinedValueError
from django.core.exceptions import ImproperlyConfigured


def required(name, cast=str):
    try:
        return config(name, cast=cast)
    except UndefinedValueError as exc:
        raise ImproperlyConfigured(f"Missing required setting: {name}") from exc
    except ValueError as exc:
        raise ImproperlyConfigured(f"Invalid value for setting {name}: {exc}") from exc


def required_minutes(name):
    minutes = required(name, cast=int)
    if minutes <= 0:
        raise ImproperlyConfigured(f"{name} must be a positive number of minutes")
    return minutes


def optional(name, default=None, cast=None):
    if cast is None:
        return config(name, default=default)
    return config(name, default=default, cast=cast)
