"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory to ensure all services are properly initialized.
"""

from app_factory import create_app

# Create Flask app with all services initialized (including dependency container)
flask_app = create_app()

# Get Celery instance from Flask app
celery_app = flask_app.celery
if celery_app is None:
    raise RuntimeError("Celery is disabled (CELERY_ENABLED=false); no worker to start")

# Task modules are imported by name when the worker starts, so that
# importing this module never pulls in the tasks themselves.
celery_app.conf.imports = ("dropin.tasks.cleanup_task",)
