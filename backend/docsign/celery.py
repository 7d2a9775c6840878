"""
Celery application for background work (signing invitations).
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'docsign.settings')

app = Celery('docsign')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
