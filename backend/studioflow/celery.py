import os
from dotenv import load_dotenv
load_dotenv()  # same .env as settings.py
from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'studioflow.settings')

app = Celery('studioflow')

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django apps (projects.tasks),
# plus the scoring engine whose workers live in celery_tasks.py.
app.autodiscover_tasks()
app.autodiscover_tasks(['tasks.engine'], related_name='celery_tasks')
