from pathlib import Path

from .config import load_config

BASE_DIR = Path(__file__).resolve().parent.parent

SERVICE_CONFIG = load_config()

SECRET_KEY = SERVICE_CONFIG.secret_key
DEBUG = SERVICE_CONFIG.debug
ALLOWED_HOSTS = list(SERVICE_CONFIG.allowed_hosts)

INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'rest_framework',
    'api',
]

MIDDLEWARE = [
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'reviewer_appointment.urls'
WSGI_APPLICATION = 'reviewer_appointment.wsgi.application'

_database = SERVICE_CONFIG.database.as_django()
if _database['ENGINE'].endswith('sqlite3'):
    _database['NAME'] = str(BASE_DIR / _database['NAME'])
    _database['TEST']['NAME'] = str(BASE_DIR / _database['TEST']['NAME'])
DATABASES = {'default': _database}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

USE_TZ = True
TIME_ZONE = 'UTC'

REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'DEFAULT_PARSER_CLASSES': ['rest_framework.parsers.JSONParser'],
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [],
    'UNAUTHENTICATED_USER': None,
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'default': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'default',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': SERVICE_CONFIG.log_level,
    },
}
