"""
Scheduled jobs (Celery).
"""

from hostel_engine.tasks.resources import EngineResources

__all__ = ["EngineResources"]
