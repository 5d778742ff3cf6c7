"""
Celery tasks for background brief generation.
"""
