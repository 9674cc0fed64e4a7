"""
Django settings for the cssoptimizer project.

The project only hosts the ``stylesheets`` app: management commands, the
critical-CSS template tag and the Celery task that drive the CSS engine.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

# Priority: DJANGO_ENV_FILE -> .env next to manage.py
_explicit_env_file = os.environ.get('DJANGO_ENV_FILE')
if _explicit_env_file:
    load_dotenv(_explicit_env_file)
else:
    load_dotenv(BASE_DIR / '.env')


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_list(name, default):
    value = os.environ.get(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(',') if item.strip()]


SECRET_KEY = os.environ.get('SECRET_KEY', 'cssoptimizer-insecure-build-key')

DEBUG = _env_bool('DEBUG', False)

ALLOWED_HOSTS = _env_list('ALLOWED_HOSTS', ['localhost', '127.0.0.1'])

INSTALLED_APPS = [
    'django.contrib.staticfiles',
    'stylesheets',
]

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [],
        },
    },
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

STATIC_URL = '/static/'
STATIC_ROOT = Path(os.environ.get('STATIC_ROOT', BASE_DIR / 'staticfiles'))

USE_TZ = True

# Celery: jobs are CPU-bound and short, one stylesheet per task.
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', CELERY_BROKER_URL)
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_TIME_LIMIT = int(os.environ.get('CELERY_TASK_TIME_LIMIT', 300))

# CSS engine configuration. Values are merged over stylesheets.conf.DEFAULTS.
CSS_OPTIMIZER = {
    'CONTENT_PATTERNS': _env_list('CSS_OPTIMIZER_CONTENT', [
        '**/*.html',
        '**/*.htm',
        '**/*.js',
        '**/*.jsx',
        '**/*.ts',
        '**/*.tsx',
        '**/*.vue',
        '**/*.svelte',
    ]),
    'IGNORE_DIRS': _env_list('CSS_OPTIMIZER_IGNORE_DIRS', [
        'node_modules', '.git', 'dist', 'build',
    ]),
    'SAFELIST': _env_list('CSS_OPTIMIZER_SAFELIST', []),
    'PRESERVE_VARIABLES': _env_bool('CSS_OPTIMIZER_PRESERVE_VARIABLES', True),
    'PRESERVE_PSEUDO': _env_bool('CSS_OPTIMIZER_PRESERVE_PSEUDO', True),
    'CRITICAL_TAG_WINDOW': int(os.environ.get('CSS_OPTIMIZER_CRITICAL_TAG_WINDOW', 8)),
    'CRITICAL_CLASS_WINDOW': int(os.environ.get('CSS_OPTIMIZER_CRITICAL_CLASS_WINDOW', 12)),
    'CRITICAL_DENYLIST': _env_list('CSS_OPTIMIZER_CRITICAL_DENYLIST', [
        'footer', 'sidebar', 'card', 'btn',
    ]),
    'CRITICAL_SELECTORS': _env_list('CSS_OPTIMIZER_CRITICAL_SELECTORS', []),
    'CRITICAL_CSS_DIR': os.environ.get('CSS_OPTIMIZER_CRITICAL_CSS_DIR', ''),
    'UTILITY_FRAMEWORK': os.environ.get('CSS_OPTIMIZER_UTILITY_FRAMEWORK', 'auto'),
    'CONCURRENCY': int(os.environ.get('CSS_OPTIMIZER_CONCURRENCY', 4)),
    'FILE_TIMEOUT': float(os.environ.get('CSS_OPTIMIZER_FILE_TIMEOUT', 0)) or None,
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'stylesheets': {
            'handlers': ['console'],
            'level': os.environ.get('CSS_OPTIMIZER_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
