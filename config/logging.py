import os

# Ensure the logs directory exists
LOGS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'logs')
os.makedirs(LOGS_DIR, exist_ok=True)

APP_LOGGERS = ('config', 'users', 'sms_verification', 'products')


def build_logging(level='INFO'):
    """Return the LOGGING dict with every application logger at `level`."""
    level = str(level).upper()
    loggers = {
        '': {  # Root logger
            'handlers': ['console', 'file'],
            'level': 'WARNING',
            'propagate': True,
        },
        'django': {
            'handlers': ['console', 'file'],
            'level': 'INFO',
            'propagate': False,
        },
        'django.db.backends': {
            'handlers': ['console'],
            'level': 'INFO',  # Don't log SQL queries unless needed
            'propagate': False,
        },
        'graphql': {
            'handlers': ['console', 'file'],
            'level': 'WARNING',
            'propagate': False,
        },
    }
    for name in APP_LOGGERS:
        loggers[name] = {
            'handlers': ['console', 'file'],
            'level': level,
            'propagate': False,
        }

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'verbose': {
                'format': '{levelname} {asctime} {name} {process:d} {thread:d} {message}',
                'style': '{',
            },
            'simple': {
                'format': '{levelname} {message}',
                'style': '{',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'verbose',
                'level': 'DEBUG',
            },
            'file': {
                'class': 'logging.FileHandler',
                'filename': os.path.join(LOGS_DIR, 'server.log'),
                'formatter': 'verbose',
                'level': 'DEBUG',
            },
        },
        'loggers': loggers,
    }
