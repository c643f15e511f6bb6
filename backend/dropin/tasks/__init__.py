"""
Celery Tasks

Task modules are registered on the Celery app by name (see celery_app.py)
so importing this package has no side effects.
"""
