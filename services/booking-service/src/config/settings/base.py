# services/booking-service/src/config/settings/base.py
"""Base settings for Booking Service."""
import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')
DEBUG = os.environ.get('DEBUG', 'True').lower() == 'true'
ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', '*').split(',')

INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.staticfiles',
    'rest_framework',
    'corsheaders',
    'django_filters',
    'apps.core',
    'apps.api',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'shared.common.middleware.RequestContextMiddleware',
]

ROOT_URLCONF = 'config.urls'
TEMPLATES = [{'BACKEND': 'django.template.backends.django.DjangoTemplates', 'DIRS': [], 'APP_DIRS': True, 'OPTIONS': {'context_processors': ['django.template.context_processors.debug', 'django.template.context_processors.request']}}]
WSGI_APPLICATION = 'config.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.environ.get('DB_NAME', 'booking_service_db'),
        'USER': os.environ.get('DB_USER', 'booking_service_user'),
        'PASSWORD': os.environ.get('DB_PASSWORD', 'booking_service_password'),
        'HOST': os.environ.get('DB_HOST', 'pgbouncer'),
        'PORT': os.environ.get('DB_PORT', '6432'),
    }
}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': ['shared.common.authentication.GatewayHeaderAuthentication'],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.IsAuthenticated'],
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'DEFAULT_PAGINATION_CLASS': 'shared.common.pagination.StandardPagination',
    'PAGE_SIZE': 20,
    'DEFAULT_FILTER_BACKENDS': ['django_filters.rest_framework.DjangoFilterBackend', 'rest_framework.filters.OrderingFilter'],
    'EXCEPTION_HANDLER': 'shared.common.exceptions.custom_exception_handler',
    'UNAUTHENTICATED_USER': None,
}

CORS_ALLOW_ALL_ORIGINS = DEBUG
REDIS_URL = os.environ.get('REDIS_URL', 'redis://redis:6379/4')
CACHES = {'default': {'BACKEND': 'django_redis.cache.RedisCache', 'LOCATION': REDIS_URL}}

# Celery
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', REDIS_URL)
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = 'UTC'
CELERY_TASK_TIME_LIMIT = 5 * 60

# Booking rules
AUTO_CANCEL_PENDING_MINUTES = int(os.environ.get('AUTO_CANCEL_PENDING_MINUTES', 10))
AUTO_CANCEL_SWEEP_INTERVAL_SECONDS = int(os.environ.get('AUTO_CANCEL_SWEEP_INTERVAL_SECONDS', 60))
AUTO_CANCEL_BATCH_SIZE = int(os.environ.get('AUTO_CANCEL_BATCH_SIZE', 100))
DEFAULT_CURRENCY = os.environ.get('DEFAULT_CURRENCY', 'VND')
DEFAULT_FACILITY_TIMEZONE = os.environ.get('DEFAULT_FACILITY_TIMEZONE', 'Asia/Ho_Chi_Minh')

# Reference data cache
REFERENCE_DATA_CACHE_ALIAS = 'default'
REFERENCE_DATA_CACHE_TTL = int(os.environ.get('REFERENCE_DATA_CACHE_TTL', 300))

CELERY_BEAT_SCHEDULE = {
    'expire-pending-bookings': {
        'task': 'booking.expire_pending_bookings',
        'schedule': timedelta(seconds=AUTO_CANCEL_SWEEP_INTERVAL_SECONDS),
    },
}

# Events: log, redis or webhook
EVENT_BACKEND = os.environ.get('EVENT_BACKEND', 'log')
EVENT_CHANNEL = os.environ.get('EVENT_CHANNEL', 'court-booking.events')
EVENT_WEBHOOK_URL = os.environ.get('EVENT_WEBHOOK_URL', '')

# Downstream services
SERVICE_CLIENT_TIMEOUT = float(os.environ.get('SERVICE_CLIENT_TIMEOUT', 10))
SERVICE_URLS = {
    'finance-service': os.environ.get('FINANCE_SERVICE_URL', 'http://finance-service:8000'),
    'notification-service': os.environ.get('NOTIFICATION_SERVICE_URL', 'http://notification-service:8000'),
}

SERVICE_NAME = 'booking-service'
SERVICE_PORT = 8005

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {'json': {'()': 'pythonjsonlogger.jsonlogger.JsonFormatter', 'format': '%(asctime)s %(levelname)s %(name)s %(message)s'}},
    'handlers': {'console': {'class': 'logging.StreamHandler', 'formatter': 'json'}},
    'root': {'handlers': ['console'], 'level': 'INFO'},
    'loggers': {
        'django': {'handlers': ['console'], 'level': os.environ.get('DJANGO_LOG_LEVEL', 'INFO'), 'propagate': False},
        'apps': {'handlers': ['console'], 'level': os.environ.get('LOG_LEVEL', 'INFO'), 'propagate': False},
        'audit': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
    },
}
