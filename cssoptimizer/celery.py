"""
Celery application for running stylesheet jobs outside the request/CLI process.
"""
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "cssoptimizer.settings")

app = Celery("cssoptimizer")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
