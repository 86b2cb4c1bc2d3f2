"""
reconciler/dependencies.py

FastAPI dependency providing the process-wide IncomingDataProcessor.
Tests replace it through app.dependency_overrides.
"""

from functools import lru_cache

from reconciler.services.processor import IncomingDataProcessor


@lru_cache(maxsize=1)
def get_processor() -> IncomingDataProcessor:
    """Process-wide processor built from settings on first use."""
    return IncomingDataProcessor.from_settings()
