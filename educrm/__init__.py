__version__ = "1.0.0"

# Load the Celery app so shared_task binds to it when Django starts.
from .celery import app as celery_app

__all__ = ("celery_app",)
