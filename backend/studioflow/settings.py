"""
Django settings for the studioflow project.

Values that differ per deployment come from the environment (a local .env
file is loaded with python-dotenv). Scoring, calendar and health-score
tuning constants are plain dicts read by the engine with getattr(), so any
key left out here falls back to the engine defaults.
"""

import os
from datetime import timedelta
from pathlib import Path

from celery.schedules import crontab
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    return os.environ.get(name, str(default)).strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-studioflow-dev-key')
DEBUG = _env_bool('DJANGO_DEBUG', False)
ALLOWED_HOSTS = [h.strip() for h in os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h.strip()]


# ------------------ Applications ------------------

INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'rest_framework',
    'rest_framework_simplejwt',
    'users',
    'projects',
    'tasks',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
]

ROOT_URLCONF = 'studioflow.urls'
WSGI_APPLICATION = 'studioflow.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('DATABASE_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}

AUTH_USER_MODEL = 'users.CustomUser'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# ------------------ REST framework / JWT ------------------

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=60),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=7),
}


# ------------------ Celery ------------------

REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', REDIS_URL)
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', REDIS_URL)
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TIMEZONE = os.environ.get('STUDIO_TIMEZONE', 'Asia/Jerusalem')

# Freeze starts Thursday 14:00 and lifts at Saturday 00:00; the task itself
# decides which way to flip by looking at the calendar, so both entries
# point at the same worker.
CELERY_BEAT_SCHEDULE = {
    'recalculate-task-scores': {
        'task': 'tasks.engine.recalculate_all_scores',
        'schedule': crontab(minute='*/15'),
    },
    'recalculate-health-scores': {
        'task': 'projects.recalculate_health_scores',
        'schedule': crontab(minute=0, hour=2),
    },
    'weekly-freeze-start': {
        'task': 'tasks.engine.apply_weekly_freeze',
        'schedule': crontab(minute=0, hour=14, day_of_week='thu'),
    },
    'weekly-freeze-end': {
        'task': 'tasks.engine.apply_weekly_freeze',
        'schedule': crontab(minute=0, hour=0, day_of_week='sat'),
    },
}


# ------------------ Scheduler / collaborators ------------------

# Shared secret for the HTTP cron endpoints (Authorization: Bearer <secret>).
CRON_SECRET = os.environ.get('CRON_SECRET', '')

CALENDAR_SYNC_BACKEND = 'tasks.calendar_sync.LoggingCalendarSync'


# ------------------ Scoring engine ------------------

BUSINESS_CALENDAR = {
    'TIMEZONE': os.environ.get('STUDIO_TIMEZONE', 'Asia/Jerusalem'),
    'WORK_DAYS': ['sun', 'mon', 'tue', 'wed', 'thu'],
    'WORK_START': '10:00',
    'WORK_END': '18:00',
    'FREEZE_WINDOW': {'start': ('thu', '14:00'), 'end': ('sat', '00:00')},
    'BOOST_WINDOW': {'start': ('sun', '10:00'), 'end': ('sun', '13:00')},
}

# Overrides for tasks.engine.weights.DEFAULT_SCORING (keys are the same).
TASK_SCORING = {}

# Overrides for projects.health.DEFAULT_HEALTH_SETTINGS.
HEALTH_SCORE = {}


# ------------------ Logging ------------------

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'tasks': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'projects': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'users': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'api': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'celery': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}
